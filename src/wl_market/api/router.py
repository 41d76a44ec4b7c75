"""Market quotes API (public, read-only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from src.container import Services, get_services
from src.wl_common.decimals import normalize
from src.wl_common.response import ApiResponse, success_response

router = APIRouter(prefix="/market", tags=["market"])


class QuoteResponse(BaseModel):
    symbol: str
    name: str
    price: str
    change_pct: str


@router.get("/quotes")
async def list_quotes(
    services: Annotated[Services, Depends(get_services)],
    request: Request,
    symbols: str | None = Query(None, description="Comma-separated symbols; all when omitted"),
) -> ApiResponse:
    quotes = services.oracle.list_quotes()
    if symbols:
        wanted = {s.strip().upper() for s in symbols.split(",") if s.strip()}
        quotes = [q for q in quotes if q.symbol in wanted]
    data = [
        QuoteResponse(
            symbol=q.symbol,
            name=q.name,
            price=str(normalize(q.price)),
            change_pct=str(normalize(q.change_pct)),
        ).model_dump()
        for q in quotes
    ]
    return success_response({"items": data}, request)
