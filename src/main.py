"""FastAPI application entry point.

Run with: python -m src  (uvicorn on uvloop)
      or: uvicorn src.main:app --reload --port 8000
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.container import get_services
from src.wl_admin.api.router import router as admin_router
from src.wl_common.database import engine
from src.wl_common.errors import AppError
from src.wl_common.redis_client import close_redis, get_redis
from src.wl_common.response import error_response
from src.wl_gateway.api.router import router as auth_router
from src.wl_gateway.middleware.request_log import RequestLogMiddleware
from src.wl_ledger.api.router import router as wallet_router
from src.wl_market.api.router import router as market_router
from src.wl_market.infrastructure.oracles import SimulatedPriceOracle
from src.wl_pin.api.router import router as pin_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the market feed. Shutdown: stop and dispose."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()

    ticker: asyncio.Task[None] | None = None
    oracle = get_services().oracle
    if isinstance(oracle, SimulatedPriceOracle):
        ticker = asyncio.create_task(oracle.run(settings.MARKET_TICK_SECONDS))
    logger.info("%s started", settings.APP_NAME)
    yield

    if ticker is not None:
        ticker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await ticker
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(wallet_router, prefix="/api/v1")
app.include_router(pin_router, prefix="/api/v1")
app.include_router(market_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
