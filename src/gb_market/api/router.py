"""gb_market REST API: bet markets and bet sub-markets. All require JWT auth.

Settlement, stake and projection endpoints under the same paths live in
gb_settlement, gb_stake and gb_query.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.database import get_db_session
from src.gb_common.response import ApiResponse, request_id_of, success_response
from src.gb_gateway.auth.dependencies import CurrentUser
from src.gb_market.application.schemas import (
    CreateMarketRequest,
    CreateSubMarketRequest,
    UpdateMarketRequest,
    UpdateSubMarketRequest,
)
from src.gb_market.application.service import MarketApplicationService

router = APIRouter(tags=["markets"])

_service = MarketApplicationService()

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("/groups/{group_id}/bet-markets")
async def list_group_markets(
    group_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.list_group_markets(db, group_id, str(current_user.id))
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.post("/bet-markets", status_code=status.HTTP_201_CREATED)
async def create_market(
    body: CreateMarketRequest, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.create_market(db, str(current_user.id), body)
    return success_response(data.model_dump(), "Bet market created", request_id_of(request))


@router.get("/bet-markets/{market_id}")
async def get_market(
    market_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.get_market(db, market_id, str(current_user.id))
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.patch("/bet-markets/{market_id}")
async def update_market(
    market_id: str,
    body: UpdateMarketRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.update_market(db, market_id, str(current_user.id), body)
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.delete("/bet-markets/{market_id}")
async def delete_market(
    market_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    await _service.delete_market(db, market_id, str(current_user.id))
    return success_response(None, "Bet market deleted", request_id_of(request))


@router.post("/bet-sub-markets", status_code=status.HTTP_201_CREATED)
async def create_sub_market(
    body: CreateSubMarketRequest, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.create_sub_market(db, str(current_user.id), body)
    return success_response(data.model_dump(), "Bet sub-market created", request_id_of(request))


@router.get("/bet-sub-markets/{sub_market_id}")
async def get_sub_market(
    sub_market_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.get_sub_market(db, sub_market_id, str(current_user.id))
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.patch("/bet-sub-markets/{sub_market_id}")
async def update_sub_market(
    sub_market_id: str,
    body: UpdateSubMarketRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.update_sub_market(db, sub_market_id, str(current_user.id), body)
    return success_response(data.model_dump(), request_id=request_id_of(request))


@router.delete("/bet-sub-markets/{sub_market_id}")
async def delete_sub_market(
    sub_market_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    await _service.delete_sub_market(db, sub_market_id, str(current_user.id))
    return success_response(None, "Bet sub-market deleted", request_id_of(request))
