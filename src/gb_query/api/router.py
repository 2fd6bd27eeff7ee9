"""gb_query REST API: leaderboard, my-bets, admin bet detail, ledger history."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.database import get_db_session
from src.gb_common.enums import LedgerEntryType
from src.gb_common.response import ApiResponse, request_id_of, success_response
from src.gb_gateway.auth.dependencies import CurrentUser
from src.gb_query.application.service import QueryService

router = APIRouter(tags=["queries"])

_service = QueryService()

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("/groups/{group_id}/leaderboard")
async def leaderboard(
    group_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.leaderboard(db, group_id, str(current_user.id))
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.get("/groups/{group_id}/my-bets")
async def my_bets_in_group(
    group_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.my_bets_in_group(db, group_id, str(current_user.id))
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.get("/groups/{group_id}/ledger")
async def ledger_history(
    group_id: str,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: LedgerEntryType | None = Query(None, description="Filter by entry type"),
) -> ApiResponse:
    data = await _service.ledger_history(
        db,
        group_id,
        str(current_user.id),
        cursor,
        limit,
        entry_type.value if entry_type else None,
    )
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.get("/bet-sub-markets/{sub_market_id}/my-bets")
async def my_bets_in_sub_market(
    sub_market_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.my_bets_in_sub_market(db, sub_market_id, str(current_user.id))
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.get("/bet-sub-markets/{sub_market_id}/bets")
async def sub_market_bets(
    sub_market_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.sub_market_bets(db, sub_market_id, str(current_user.id))
    return success_response(data.model_dump(), request_id=request_id_of(request))
