"""Business ID and invite-code generation.

Entity IDs are snowflake-style strings: they sort by creation time, which the
projections rely on as a stable tie-breaker. Invite codes are short random
uppercase tokens; uniqueness is guaranteed by the database constraint and the
caller retries on collision.
"""

import secrets
import string
import threading
import time

_INVITE_ALPHABET = string.ascii_uppercase + string.digits


class SnowflakeIdGenerator:
    """Layout (64 bits): 41 bits ms timestamp | 10 bits machine | 12 bits sequence."""

    _EPOCH_MS = 1_700_000_000_000
    _MACHINE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._MACHINE_BITS)):
            raise ValueError(f"machine_id must be 0-{(1 << self._MACHINE_BITS) - 1}")
        self._machine_id = machine_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now_ms = int(time.time() * 1000)
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    # Sequence exhausted for this millisecond; spin to the next one.
                    while now_ms <= self._last_ms:
                        now_ms = int(time.time() * 1000)
            else:
                self._sequence = 0
            self._last_ms = now_ms
            value = (
                ((now_ms - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )
            return str(value)


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    """Generate a unique, time-ordered string ID."""
    return _default_generator.next_id()


def generate_invite_code(length: int = 8) -> str:
    """Random uppercase alphanumeric invite code, e.g. ``'K7Q2ZP9A'``."""
    if length < 4:
        raise ValueError(f"Invite code length must be at least 4, got {length}")
    return "".join(secrets.choice(_INVITE_ALPHABET) for _ in range(length))
