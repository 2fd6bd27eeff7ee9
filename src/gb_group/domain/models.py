"""Domain models for gb_group: pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime

from src.gb_common.enums import MembershipRole


@dataclass
class Group:
    id: str
    name: str
    description: str | None
    invite_code: str
    created_by_user_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    # Populated by the list query only
    member_count: int | None = None
    market_count: int | None = None


@dataclass
class Membership:
    id: str
    group_id: str
    user_id: str
    role: str                        # MembershipRole value
    created_at: datetime | None = None
    user_name: str | None = None
    user_email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == MembershipRole.ADMIN.value
