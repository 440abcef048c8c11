from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional, List

from powdercoat.db.session import get_db
from powdercoat.models.order import Order
from powdercoat.schemas.order import (
    OrderCreate, OrderUpdate, OrderOut, OrderDetailOut, StatusChange, StatusHistoryOut, OrderStats,
)
from powdercoat.schemas.team import AssignmentsIn
from powdercoat.core.security import get_current_user, require_admin, require_client, require_team_member
from powdercoat.core.audit_decorator import audit_log
from powdercoat.core.rate_limit import check_rate_limit
from powdercoat.core.auth_utils import check_not_found, check_order_access, filter_orders_by_user
from powdercoat.core.enums import OrderStatus, OrderPriority, AuditAction
from powdercoat.core.response_builders import (
    build_order_response_list, build_order_detail_response, build_status_history_response,
)
from powdercoat.services import orders as order_service
from powdercoat.services import lifecycle
from powdercoat.services.assignments import list_assignment_ids, set_assignments
from powdercoat.services.notifications import Notifier, get_notifier
from powdercoat.utils.idempotency import get_idempotent, set_idempotent

router = APIRouter(prefix="/orders", tags=["orders"])


async def load_order(db: AsyncSession, order_id: int, current_user) -> Order:
    order = await order_service.get_order(db, order_id)
    check_not_found(order, "Order", order_id)
    await check_order_access(db, order, current_user)
    return order


async def order_detail(db: AsyncSession, order_id: int) -> OrderDetailOut:
    order = await order_service.get_order(db, order_id)
    return build_order_detail_response(order, await list_assignment_ids(db, order_id))


@router.post("/", response_model=OrderDetailOut)
@audit_log(AuditAction.CREATE_ORDER)
async def create_order(
    payload: OrderCreate,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_client)
):
    await check_rate_limit(int(current_user.id))
    
    if idempotency_key:
        prev = await get_idempotent(str(current_user.id), idempotency_key)
        if prev:
            return prev
    
    order = await order_service.submit_order(db, current_user, payload)
    
    out = build_order_detail_response(order, [])
    if idempotency_key:
        await set_idempotent(str(current_user.id), idempotency_key, out.model_dump(mode="json"))
    return out


@router.get("/", response_model=List[OrderOut])
async def list_orders(
    status: Optional[OrderStatus] = Query(None),
    priority: Optional[OrderPriority] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    q = filter_orders_by_user(select(Order), current_user)
    
    if status:
        q = q.where(Order.status == status)
    if priority:
        q = q.where(Order.priority == priority)
    
    q = q.order_by(Order.submitted_date.desc(), Order.id.desc()).limit(limit).offset(offset)
    res = await db.execute(q)
    orders = res.scalars().unique().all()
    
    return build_order_response_list(orders)


@router.get("/stats", response_model=OrderStats)
async def get_order_stats(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    return await order_service.order_stats(db)


@router.get("/{order_id}", response_model=OrderDetailOut)
async def get_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await load_order(db, order_id, current_user)
    return await order_detail(db, order_id)


@router.put("/{order_id}", response_model=OrderDetailOut)
@audit_log(AuditAction.UPDATE_ORDER)
async def update_order(
    order_id: int,
    payload: OrderUpdate,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    current_user=Depends(require_admin)
):
    """Admin save: fields, status, quote and team in one call"""
    await check_rate_limit(int(current_user.id))
    
    order = await load_order(db, order_id, current_user)
    await order_service.update_order(db, order, current_user, payload, notifier)
    
    return await order_detail(db, order_id)


@router.post("/{order_id}/status", response_model=OrderDetailOut)
@audit_log(AuditAction.SET_STATUS)
async def change_status(
    order_id: int,
    payload: StatusChange,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    
    order = await load_order(db, order_id, current_user)
    await lifecycle.set_status(db, order, payload.status, current_user, notifier, notes=payload.notes)
    
    return await order_detail(db, order_id)


@router.get("/{order_id}/history", response_model=List[StatusHistoryOut])
async def get_status_history(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await load_order(db, order_id, current_user)
    entries = await order_service.status_history(db, order_id)
    return [build_status_history_response(e) for e in entries]


@router.put("/{order_id}/assignments", response_model=OrderDetailOut)
@audit_log(AuditAction.SET_ASSIGNMENTS)
async def update_assignments(
    order_id: int,
    payload: AssignmentsIn,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    
    await load_order(db, order_id, current_user)
    await set_assignments(db, order_id, payload.team_member_ids)
    
    return await order_detail(db, order_id)


@router.post("/{order_id}/advance", response_model=OrderDetailOut)
@audit_log(AuditAction.ADVANCE_STAGE)
async def advance_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    current_user=Depends(require_team_member)
):
    await check_rate_limit(int(current_user.id))
    
    order = await load_order(db, order_id, current_user)
    await lifecycle.advance_stage(db, order, current_user, notifier)
    
    return await order_detail(db, order_id)


@router.post("/{order_id}/complete", response_model=OrderDetailOut)
@audit_log(AuditAction.COMPLETE_ORDER)
async def complete_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    current_user=Depends(require_team_member)
):
    await check_rate_limit(int(current_user.id))
    
    order = await load_order(db, order_id, current_user)
    await lifecycle.complete_order(db, order, current_user, notifier)
    
    return await order_detail(db, order_id)
