"""Pydantic schemas for gb_group API."""

from pydantic import BaseModel, Field, field_validator

from src.gb_common.datetime_utils import isoformat_or_none
from src.gb_common.enums import MembershipRole
from src.gb_group.domain.models import Group, Membership

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateGroupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class JoinGroupRequest(BaseModel):
    invite_code: str = Field(..., min_length=1, max_length=16)


class UpdateGroupRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)


class UpdateMembershipRequest(BaseModel):
    role: MembershipRole


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class MembershipResponse(BaseModel):
    id: str
    user_id: str
    user_name: str | None
    user_email: str | None
    role: str
    joined_at: str | None

    @classmethod
    def from_domain(cls, m: Membership) -> "MembershipResponse":
        return cls(
            id=m.id,
            user_id=m.user_id,
            user_name=m.user_name,
            user_email=m.user_email,
            role=m.role,
            joined_at=isoformat_or_none(m.created_at),
        )


class GroupResponse(BaseModel):
    id: str
    name: str
    description: str | None
    invite_code: str
    created_by_user_id: str
    created_at: str | None
    member_count: int | None = None
    market_count: int | None = None

    @classmethod
    def from_domain(cls, g: Group) -> "GroupResponse":
        return cls(
            id=g.id,
            name=g.name,
            description=g.description,
            invite_code=g.invite_code,
            created_by_user_id=g.created_by_user_id,
            created_at=isoformat_or_none(g.created_at),
            member_count=g.member_count,
            market_count=g.market_count,
        )


class GroupDetailResponse(GroupResponse):
    my_role: str
    memberships: list[MembershipResponse]


class GroupListResponse(BaseModel):
    groups: list[GroupResponse]
