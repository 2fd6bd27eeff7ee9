"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from src.gb_common.database import engine
from src.gb_common.errors import AppError, InternalError, UnauthenticatedError, ValidationError
from src.gb_common.redis_client import close_redis, get_redis
from src.gb_common.response import error_response, request_id_of
from src.gb_gateway.api.router import router as auth_router
from src.gb_gateway.middleware.rate_limit import RateLimitMiddleware
from src.gb_gateway.middleware.request_log import RequestLogMiddleware
from src.gb_group.api.router import router as group_router
from src.gb_market.api.router import router as market_router
from src.gb_query.api.router import router as query_router
from src.gb_settlement.api.router import router as settlement_router
from src.gb_stake.api.router import router as stake_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("gb.app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Last added runs first: the request log wraps the rate limiter so a 429
# still carries a request_id.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


def _error_json(request: Request, status_code: int, code: int, message: str) -> JSONResponse:
    resp = error_response(code, message, request_id_of(request))
    return JSONResponse(status_code=status_code, content=resp.model_dump())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_json(request, exc.http_status, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report only the first violated rule, as a single readable message."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    err = ValidationError(message)
    return _error_json(request, err.http_status, err.code, err.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 401:
        # Missing bearer token, raised by OAuth2PasswordBearer
        err = UnauthenticatedError()
        return _error_json(request, err.http_status, err.code, err.message)
    return _error_json(request, exc.status_code, exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    err = InternalError(str(exc) if settings.DEBUG else "An unexpected error occurred")
    return _error_json(request, err.http_status, err.code, err.message)


app.include_router(auth_router, prefix="/api/v1")
app.include_router(group_router, prefix="/api/v1")
app.include_router(market_router, prefix="/api/v1")
app.include_router(stake_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")
app.include_router(query_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
