"""Wallet REST API: balances, history and every value-moving command.

All endpoints act on the authenticated user's own wallet.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.container import Services, get_services
from src.wl_common.database import get_db_session
from src.wl_common.decimals import fiat_to_display, normalize
from src.wl_common.enums import TransactionType
from src.wl_common.errors import ValidationError
from src.wl_common.response import ApiResponse, success_response
from src.wl_gateway.auth.dependencies import get_current_user
from src.wl_gateway.middleware.rate_limit import RateLimiter
from src.wl_gateway.user.db_models import UserModel
from src.wl_ledger.application.schemas import (
    AddMoneyRequest,
    BuyRequest,
    ReceiveRequest,
    SellRequest,
    SendRequest,
    SwapRequest,
    TotalValueResponse,
    TransactionListResponse,
    TransactionResponse,
    TransferResponse,
    WalletResponse,
    cursor_decode,
)

router = APIRouter(prefix="/wallet", tags=["wallet"])

CurrentUser = Annotated[UserModel, Depends(get_current_user)]
Db = Annotated[AsyncSession, Depends(get_db_session)]
Svc = Annotated[Services, Depends(get_services)]

_transfer_limit = RateLimiter("transfer", settings.PIN_RATE_LIMIT_PER_MINUTE)


def parse_tx_type(value: str | None) -> TransactionType | None:
    if value is None:
        return None
    try:
        return TransactionType(value)
    except ValueError:
        raise ValidationError(f"Unknown transaction type: {value}") from None


@router.get("")
async def get_wallet(
    current_user: CurrentUser, db: Db, services: Svc, request: Request
) -> ApiResponse:
    wallet = await services.engine.get_wallet(db, str(current_user.id))
    data = WalletResponse.from_domain(wallet, services.engine.fiat_asset)
    return success_response(data.model_dump(), request)


@router.get("/total-value")
async def get_total_value(
    current_user: CurrentUser, db: Db, services: Svc, request: Request
) -> ApiResponse:
    user_id = str(current_user.id)
    total = await services.engine.get_total_value(db, user_id)
    data = TotalValueResponse(
        user_id=user_id,
        total_value=str(normalize(total)),
        total_value_display=fiat_to_display(total),
    )
    return success_response(data.model_dump(), request)


@router.get("/transactions")
async def list_transactions(
    current_user: CurrentUser,
    db: Db,
    services: Svc,
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    type: str | None = Query(None, description="Filter by transaction type"),
) -> ApiResponse:
    page = await services.engine.get_transaction_history(
        db, str(current_user.id), cursor_decode(cursor), limit + 1, parse_tx_type(type)
    )
    data = TransactionListResponse.from_page(page, limit)
    return success_response(data.model_dump(), request)


@router.post("/add-money")
async def add_money(
    body: AddMoneyRequest, current_user: CurrentUser, db: Db, services: Svc, request: Request
) -> ApiResponse:
    tx = await services.engine.add_money(db, str(current_user.id), body.amount)
    return success_response(TransactionResponse.from_domain(tx).model_dump(), request)


@router.post("/receive")
async def receive(
    body: ReceiveRequest, current_user: CurrentUser, db: Db, services: Svc, request: Request
) -> ApiResponse:
    tx = await services.engine.receive_money(db, str(current_user.id), body.amount, body.asset)
    return success_response(TransactionResponse.from_domain(tx).model_dump(), request)


@router.post("/send", dependencies=[Depends(_transfer_limit)])
async def send(
    body: SendRequest, current_user: CurrentUser, db: Db, services: Svc, request: Request
) -> ApiResponse:
    sent, received = await services.engine.send_money(
        db, str(current_user.id), body.recipient, body.amount, body.asset, body.pin
    )
    data = TransferResponse(
        sent=TransactionResponse.from_domain(sent),
        received=TransactionResponse.from_domain(received),
    )
    return success_response(data.model_dump(), request)


@router.post("/buy")
async def buy(
    body: BuyRequest, current_user: CurrentUser, db: Db, services: Svc, request: Request
) -> ApiResponse:
    tx = await services.engine.buy_asset(
        db, str(current_user.id), body.asset, body.amount, body.price
    )
    return success_response(TransactionResponse.from_domain(tx).model_dump(), request)


@router.post("/sell")
async def sell(
    body: SellRequest, current_user: CurrentUser, db: Db, services: Svc, request: Request
) -> ApiResponse:
    tx = await services.engine.sell_asset(
        db, str(current_user.id), body.asset, body.amount, body.price
    )
    return success_response(TransactionResponse.from_domain(tx).model_dump(), request)


@router.post("/swap", dependencies=[Depends(_transfer_limit)])
async def swap(
    body: SwapRequest, current_user: CurrentUser, db: Db, services: Svc, request: Request
) -> ApiResponse:
    tx = await services.engine.swap_assets(
        db, str(current_user.id), body.from_asset, body.to_asset, body.amount, body.pin
    )
    return success_response(TransactionResponse.from_domain(tx).model_dump(), request)
