"""Tests for gb_common.errors and gb_common.response."""

from src.gb_common.errors import (
    AlreadySettledError,
    AppError,
    InsufficientPointsError,
    InvalidWinningOptionsError,
    LastAdminError,
    MarketClosedError,
    NotAdminError,
    NotAMemberError,
    SubMarketNotFoundError,
    ValidationError,
)
from src.gb_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)


class TestSpecificErrors:
    def test_insufficient_points_names_both_amounts(self) -> None:
        err = InsufficientPointsError(required=500, available=120.0)
        assert err.code == 4001
        assert err.http_status == 400
        assert "500" in err.message
        assert "120" in err.message

    def test_insufficient_points_keeps_fractional_balance(self) -> None:
        err = InsufficientPointsError(required=10, available=7.5)
        assert "7.5" in err.message

    def test_not_a_member_is_forbidden(self) -> None:
        assert NotAMemberError().http_status == 403

    def test_not_admin_message_names_action(self) -> None:
        err = NotAdminError("settle bet markets")
        assert err.http_status == 403
        assert "settle bet markets" in err.message

    def test_not_found(self) -> None:
        err = SubMarketNotFoundError("sm-1")
        assert err.http_status == 404
        assert "sm-1" in err.message

    def test_business_conflicts_are_400(self) -> None:
        for err in (
            MarketClosedError("sm-1"),
            AlreadySettledError("sm-1"),
            InvalidWinningOptionsError("none"),
            LastAdminError(),
            ValidationError("bad"),
        ):
            assert err.http_status == 400


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"x": 1}, "Bet placed", "req_abc")
        assert isinstance(resp, ApiResponse)
        assert resp.code == 0
        assert resp.message == "Bet placed"
        assert resp.data == {"x": 1}
        assert resp.request_id == "req_abc"

    def test_success_generates_request_id(self) -> None:
        resp = success_response()
        assert resp.request_id.startswith("req_")
        assert resp.timestamp

    def test_error_shape(self) -> None:
        resp = error_response(4001, "Insufficient points", "req_abc")
        assert resp.model_dump() == {
            "error": "Insufficient points",
            "code": 4001,
            "request_id": "req_abc",
        }
