"""Quote negotiation endpoints for an order"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from pydantic import BaseModel

from powdercoat.api.orders import load_order
from powdercoat.db.session import get_db
from powdercoat.schemas.quote import QuoteIn, OfferIn, RejectIn, NegotiationOut
from powdercoat.core.security import get_current_user, require_admin
from powdercoat.core.audit_decorator import audit_log
from powdercoat.core.rate_limit import check_rate_limit
from powdercoat.core.enums import UserRole, AuditAction
from powdercoat.core.response_builders import build_negotiation_response
from powdercoat.services import quotes as quote_service
from powdercoat.services.notifications import Notifier, get_notifier

router = APIRouter(prefix="/orders/{order_id}/quotes", tags=["quotes"])


class RecordQuoteOut(BaseModel):
    recorded: bool
    entry: Optional[NegotiationOut] = None


def ensure_negotiating_party(order, current_user) -> None:
    if current_user.role == UserRole.ADMIN:
        return
    if current_user.role == UserRole.CLIENT and order.user_id == int(current_user.id):
        return
    raise HTTPException(status_code=403, detail="Only the admin or the ordering client can negotiate")


@router.get("/", response_model=List[NegotiationOut])
async def list_quotes(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    order = await load_order(db, order_id, current_user)
    ensure_negotiating_party(order, current_user)
    
    entries = await quote_service.list_negotiations(db, order_id)
    return [build_negotiation_response(e, order) for e in entries]


@router.post("/", response_model=RecordQuoteOut)
@audit_log(AuditAction.RECORD_QUOTE)
async def record_quote(
    order_id: int,
    payload: QuoteIn,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    
    order = await load_order(db, order_id, current_user)
    entry = await quote_service.record_quote(
        db, order, current_user, payload.quoted_price, notes=payload.notes, status=payload.status,
    )
    
    if entry is None:
        return RecordQuoteOut(recorded=False)
    return RecordQuoteOut(recorded=True, entry=build_negotiation_response(entry, order))


@router.post("/counter", response_model=NegotiationOut)
@audit_log(AuditAction.COUNTER_OFFER)
async def counter_offer(
    order_id: int,
    payload: OfferIn,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    
    order = await load_order(db, order_id, current_user)
    ensure_negotiating_party(order, current_user)
    entry = await quote_service.counter_offer(db, order, current_user, payload.quoted_price, notes=payload.notes)
    
    return build_negotiation_response(entry, order)


@router.post("/accept", response_model=NegotiationOut)
@audit_log(AuditAction.ACCEPT_OFFER)
async def accept_offer(
    order_id: int,
    payload: OfferIn,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    
    order = await load_order(db, order_id, current_user)
    ensure_negotiating_party(order, current_user)
    entry = await quote_service.accept_offer(db, order, current_user, payload.quoted_price, notifier)
    
    return build_negotiation_response(entry, order)


@router.post("/reject", response_model=NegotiationOut)
@audit_log(AuditAction.REJECT_OFFER)
async def reject_offer(
    order_id: int,
    payload: RejectIn,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    
    order = await load_order(db, order_id, current_user)
    ensure_negotiating_party(order, current_user)
    entry = await quote_service.reject_offer(db, order, current_user, notes=payload.notes)
    
    return build_negotiation_response(entry, order)
