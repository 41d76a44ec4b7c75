"""Admin REST API: PIN reset, balance override, global ledger view."""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.container import Services, get_services
from src.wl_common.database import get_db_session
from src.wl_common.response import ApiResponse, success_response
from src.wl_gateway.auth.dependencies import require_admin
from src.wl_gateway.user.db_models import UserModel
from src.wl_ledger.api.router import parse_tx_type
from src.wl_ledger.application.schemas import (
    TransactionListResponse,
    WalletResponse,
    cursor_decode,
)

router = APIRouter(prefix="/admin", tags=["admin"])

Admin = Annotated[UserModel, Depends(require_admin)]
Db = Annotated[AsyncSession, Depends(get_db_session)]
Svc = Annotated[Services, Depends(get_services)]


class SetBalanceRequest(BaseModel):
    balance: Decimal = Field(..., ge=0)


@router.post("/users/{user_id}/pin/reset")
async def reset_pin(
    user_id: str, admin: Admin, db: Db, services: Svc, request: Request
) -> ApiResponse:
    record = await services.pins.reset(db, user_id, str(admin.id))
    resp = success_response(
        {"user_id": user_id, "state": record.state.value, "must_set_pin": record.must_set_pin},
        request,
    )
    resp.message = "Transfer PIN reset"
    return resp


@router.put("/users/{user_id}/balances/{asset}")
async def set_balance(
    user_id: str,
    asset: str,
    body: SetBalanceRequest,
    admin: Admin,
    db: Db,
    services: Svc,
    request: Request,
) -> ApiResponse:
    wallet = await services.engine.admin_set_balance(
        db, str(admin.id), user_id, asset, body.balance
    )
    data = WalletResponse.from_domain(wallet, services.engine.fiat_asset)
    return success_response(data.model_dump(), request)


@router.get("/transactions")
async def list_all_transactions(
    admin: Admin,
    db: Db,
    services: Svc,
    request: Request,
    user_id: str | None = Query(None, description="Restrict to one user's ledger"),
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    type: str | None = Query(None),
) -> ApiResponse:
    page = await services.engine.get_transaction_history(
        db, user_id, cursor_decode(cursor), limit + 1, parse_tx_type(type)
    )
    data = TransactionListResponse.from_page(page, limit)
    return success_response(data.model_dump(), request)
