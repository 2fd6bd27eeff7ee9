"""gb_group REST API: groups, invites, memberships. All require JWT auth."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.database import get_db_session
from src.gb_common.response import ApiResponse, request_id_of, success_response
from src.gb_gateway.auth.dependencies import CurrentUser
from src.gb_group.application.schemas import (
    CreateGroupRequest,
    JoinGroupRequest,
    UpdateGroupRequest,
    UpdateMembershipRequest,
)
from src.gb_group.application.service import GroupApplicationService

router = APIRouter(prefix="/groups", tags=["groups"])

_service = GroupApplicationService()

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("")
async def list_groups(
    current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.list_groups(db, str(current_user.id))
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_group(
    body: CreateGroupRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.create_group(db, str(current_user.id), body.name, body.description)
    return success_response(data.model_dump(), "Group created", request_id_of(request))


@router.post("/join")
async def join_group(
    body: JoinGroupRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.join_group(db, str(current_user.id), body.invite_code)
    return success_response(data.model_dump(), "Joined group", request_id_of(request))


@router.get("/{group_id}")
async def get_group(
    group_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.get_group(db, group_id, str(current_user.id))
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.patch("/{group_id}")
async def update_group(
    group_id: str,
    body: UpdateGroupRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.update_group(
        db, group_id, str(current_user.id), body.name, body.description
    )
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.delete("/{group_id}")
async def delete_group(
    group_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    await _service.delete_group(db, group_id, str(current_user.id))
    return success_response(None, "Group deleted", request_id_of(request))


@router.patch("/{group_id}/memberships/{membership_id}")
async def update_membership(
    group_id: str,
    membership_id: str,
    body: UpdateMembershipRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.update_membership_role(
        db, group_id, membership_id, str(current_user.id), body.role
    )
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.delete("/{group_id}/memberships/{membership_id}")
async def remove_member(
    group_id: str,
    membership_id: str,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    await _service.remove_member(db, group_id, membership_id, str(current_user.id))
    return success_response(None, "Member removed from group", request_id_of(request))
