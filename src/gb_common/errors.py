"""Unified error codes and custom exceptions.

Every error reaches the client as ``{"error": message, "code": code}`` with
``http_status`` (see the handlers in src/main.py).

Error code ranges:
  1xxx: Auth/User
  2xxx: Group/Membership
  3xxx: Market/Sub-market/Option
  4xxx: Stake
  5xxx: Settlement
  9xxx: System

HTTP mapping: validation 400, unauthenticated 401, forbidden 403,
not found 404, business conflicts 400, unexpected 500.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class ValidationError(AppError):
    """Malformed or missing input that passed schema validation."""

    def __init__(self, message: str) -> None:
        super().__init__(9003, message, 400)


# --- 1xxx: Auth/User ---

class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already in use", 400)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid email or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class UnauthenticatedError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Not authenticated", 401)


# --- 2xxx: Group/Membership ---

class GroupNotFoundError(AppError):
    def __init__(self, group_id: str) -> None:
        super().__init__(2001, f"Group not found: {group_id}", 404)


class NotAMemberError(AppError):
    def __init__(self) -> None:
        super().__init__(2002, "You are not a member of this group", 403)


class NotAdminError(AppError):
    def __init__(self, action: str = "perform this action") -> None:
        super().__init__(2003, f"Only group admins can {action}", 403)


class InvalidInviteCodeError(AppError):
    def __init__(self) -> None:
        super().__init__(2004, "Invalid invite code", 404)


class AlreadyMemberError(AppError):
    def __init__(self) -> None:
        super().__init__(2005, "You are already a member of this group", 400)


class MembershipNotFoundError(AppError):
    def __init__(self, membership_id: str) -> None:
        super().__init__(2006, f"Membership not found: {membership_id}", 404)


class LastAdminError(AppError):
    def __init__(self) -> None:
        super().__init__(2007, "Cannot remove the last admin from the group", 400)


class SelfRemovalError(AppError):
    def __init__(self) -> None:
        super().__init__(2008, "You cannot remove yourself from the group", 400)


# --- 3xxx: Market ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Bet market not found: {market_id}", 404)


class SubMarketNotFoundError(AppError):
    def __init__(self, sub_market_id: str) -> None:
        super().__init__(3002, f"Bet sub-market not found: {sub_market_id}", 404)


class OptionNotFoundError(AppError):
    def __init__(self, option_id: str) -> None:
        super().__init__(3003, f"Bet option not found: {option_id}", 404)


class MarketClosedError(AppError):
    def __init__(self, target_id: str) -> None:
        super().__init__(3004, f"Betting is closed: {target_id}", 400)


class MarketSettledError(AppError):
    """Edits and deletes are refused once a market is settled."""

    def __init__(self, target_id: str) -> None:
        super().__init__(3005, f"Settled markets cannot be modified: {target_id}", 400)


# --- 4xxx: Stake ---

class InsufficientPointsError(AppError):
    def __init__(self, required: int, available: float) -> None:
        super().__init__(
            4001,
            f"Insufficient points: required {required}, available {available:g}",
            400,
        )


class SingleSelectionError(AppError):
    def __init__(self, sub_market_id: str) -> None:
        super().__init__(
            4002,
            f"Only one bet per user is allowed on sub-market {sub_market_id}",
            400,
        )


# --- 5xxx: Settlement ---

class AlreadySettledError(AppError):
    def __init__(self, target_id: str) -> None:
        super().__init__(5001, f"Already settled: {target_id}", 400)


class InvalidWinningOptionsError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5002, f"Invalid winning options: {detail}", 400)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
