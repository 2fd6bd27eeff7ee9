"""Unit tests for password hashing utilities."""

from src.gb_gateway.auth.password import hash_password, verify_password


def test_hash_is_not_plain() -> None:
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert hashed.startswith("$2")


def test_verify_correct_and_wrong_password() -> None:
    hashed = hash_password("secret1")
    assert verify_password("secret1", hashed) is True
    assert verify_password("secret2", hashed) is False


def test_same_plain_produces_different_hashes() -> None:
    # bcrypt salts every hash
    assert hash_password("secret1") != hash_password("secret1")
