"""gb_stake REST API: POST /bet-selections."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.database import get_db_session
from src.gb_common.response import ApiResponse, request_id_of, success_response
from src.gb_gateway.auth.dependencies import CurrentUser
from src.gb_stake.application.schemas import PlaceStakeRequest
from src.gb_stake.application.service import StakeService

router = APIRouter(prefix="/bet-selections", tags=["stakes"])

_service = StakeService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def place_stake(
    body: PlaceStakeRequest,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.place_stake(
        db,
        str(current_user.id),
        body.scope,
        body.target_id,
        body.bet_option_id,
        body.stake_points,
    )
    return success_response(data.model_dump(), "Bet placed", request_id_of(request))
