"""Auth API router: signup, login, refresh.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.gb_common.database import get_db_session
from src.gb_common.response import ApiResponse, request_id_of, success_response
from src.gb_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    SignupRequest,
    SignupResponse,
    UserInfo,
)
from src.gb_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="User signup",
)
async def signup(request: Request, body: SignupRequest, db: DbSession) -> ApiResponse:
    user = await _service.signup(body.name, body.email, body.password, db)
    data = SignupResponse(
        user_id=str(user.id),
        name=user.name,
        email=user.email,
        created_at=user.created_at.isoformat(),
    )
    return success_response(data.model_dump(), "User registered", request_id_of(request))


@router.post("/login", response_model=ApiResponse, summary="User login")
async def login(request: Request, body: LoginRequest, db: DbSession) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.email, body.password, db)
    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=UserInfo(user_id=str(user.id), name=user.name, email=user.email),
    )
    return success_response(data.model_dump(), "Login successful", request_id_of(request))


@router.post("/refresh", response_model=ApiResponse, summary="Refresh access token")
async def refresh_token(request: Request, body: RefreshRequest) -> ApiResponse:
    new_access_token = await _service.refresh(body.refresh_token)
    data = RefreshResponse(
        access_token=new_access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    return success_response(data.model_dump(), "Token refreshed", request_id_of(request))
