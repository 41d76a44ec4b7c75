"""Transfer PIN API: status and set/change."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.container import Services, get_services
from src.wl_common.database import get_db_session
from src.wl_common.datetime_utils import isoformat_or_none
from src.wl_common.enums import PinState
from src.wl_common.response import ApiResponse, success_response
from src.wl_gateway.auth.dependencies import get_current_user
from src.wl_gateway.middleware.rate_limit import RateLimiter
from src.wl_gateway.user.db_models import UserModel

router = APIRouter(prefix="/pin", tags=["pin"])

_pin_limit = RateLimiter("pin", settings.PIN_RATE_LIMIT_PER_MINUTE)


class SetPinRequest(BaseModel):
    # 4-6 digit format is checked by PinVault.
    pin: str = Field(..., min_length=1, max_length=16)


class PinStatusResponse(BaseModel):
    state: str
    is_configured: bool
    must_set_pin: bool
    last_updated: str | None = None


@router.get("")
async def pin_status(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    record = await services.pins.get_record(db, str(current_user.id))
    if record is None:
        data = PinStatusResponse(state=PinState.UNSET.value, is_configured=False, must_set_pin=True)
    else:
        data = PinStatusResponse(
            state=record.state.value,
            is_configured=record.is_configured,
            must_set_pin=record.must_set_pin,
            last_updated=isoformat_or_none(record.last_updated),
        )
    return success_response(data.model_dump(), request)


@router.post("/set", dependencies=[Depends(_pin_limit)])
async def set_pin(
    body: SetPinRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    record = await services.pins.set_pin(db, str(current_user.id), body.pin)
    data = PinStatusResponse(
        state=record.state.value,
        is_configured=record.is_configured,
        must_set_pin=record.must_set_pin,
        last_updated=isoformat_or_none(record.last_updated),
    )
    resp = success_response(data.model_dump(), request)
    resp.message = "Transfer PIN set"
    return resp
