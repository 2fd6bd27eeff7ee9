"""gb_settlement REST API: admin-only settle endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.database import get_db_session
from src.gb_common.response import ApiResponse, request_id_of, success_response
from src.gb_gateway.auth.dependencies import CurrentUser
from src.gb_settlement.application.schemas import SettleMarketRequest, SettleSubMarketRequest
from src.gb_settlement.application.service import SettlementService

router = APIRouter(tags=["settlement"])

_service = SettlementService()

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/bet-sub-markets/{sub_market_id}/settle")
async def settle_sub_market(
    sub_market_id: str,
    body: SettleSubMarketRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.settle_sub_market(
        db, sub_market_id, str(current_user.id), body.winning_option_ids
    )
    return success_response(data.model_dump(), "Bet sub-market settled", request_id_of(request))


@router.post("/bet-markets/{market_id}/settle")
async def settle_market(
    market_id: str,
    body: SettleMarketRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.settle_market(
        db, market_id, str(current_user.id), body.winning_option_id
    )
    return success_response(data.model_dump(), "Bet market settled", request_id_of(request))
