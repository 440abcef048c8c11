import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from powdercoat.core.enums import OrderStatus, UserRole, NotificationType, NotificationPriority
from powdercoat.core.errors import OrderValidationError, PermissionDeniedError
from powdercoat.core.redis import publish_change
from powdercoat.models.base import utcnow
from powdercoat.models.order import Order, OrderCustomization, OrderFile
from powdercoat.models.status_history import OrderStatusHistory
from powdercoat.models.user import User
from powdercoat.schemas.order import OrderCreate, OrderUpdate
from powdercoat.services.assignments import ensure_members_exist, set_assignments
from powdercoat.services.lifecycle import set_status
from powdercoat.services.notifications import Notifier, notify_admins
from powdercoat.services.quotes import record_quote, validate_price

logger = logging.getLogger(__name__)


async def generate_order_number(db: AsyncSession, now: Optional[datetime] = None) -> str:
    """ORD-YYYYMMDD-NNNN, drawn until unused."""
    now = now or utcnow()
    while True:
        candidate = f"ORD-{now:%Y%m%d}-{secrets.randbelow(10000):04d}"
        res = await db.execute(select(Order.id).where(Order.order_number == candidate))
        if res.scalars().first() is None:
            return candidate


def validate_submission(payload: OrderCreate) -> None:
    missing = [
        name for name in ("project_name", "description")
        if not (getattr(payload, name) or "").strip()
    ]
    if not payload.customization.color.strip():
        missing.append("color")
    if missing:
        raise OrderValidationError(f"Missing required fields: {', '.join(missing)}")
    if payload.quantity <= 0:
        raise OrderValidationError("Quantity must be a positive number")


async def submit_order(db: AsyncSession, principal: User, payload: OrderCreate) -> Order:
    if principal.role != UserRole.CLIENT:
        raise PermissionDeniedError("Only clients can submit orders")
    validate_submission(payload)

    order = Order(
        user_id=int(principal.id),
        order_number=await generate_order_number(db),
        project_name=payload.project_name.strip(),
        description=payload.description.strip(),
        quantity=payload.quantity,
        dimensions=payload.dimensions,
        additional_notes=payload.additional_notes,
        priority=payload.priority,
        status=OrderStatus.PENDING_QUOTE,
        progress=0,
        progress_held=False,
        submitted_date=utcnow(),
    )
    order.customization = OrderCustomization(
        finish=payload.customization.finish,
        texture=payload.customization.texture,
        color=payload.customization.color.strip(),
        custom_notes=payload.customization.custom_notes,
    )
    order.files = [
        OrderFile(file_name=f.file_name, file_size=f.file_size, file_url=f.file_url)
        for f in payload.files
    ]
    db.add(order)
    await db.flush()

    await notify_admins(
        db,
        "New Order Received",
        f"A new order {order.order_number} has been submitted and requires attention.",
        NotificationType.ORDER,
        order_id=order.id,
        priority=NotificationPriority.HIGH,
    )
    await db.commit()

    logger.info(f"Order {order.order_number} submitted by user {principal.id}")
    await publish_change("orders", "INSERT", order.id)
    return await get_order(db, order.id)


async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
    res = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.customization), selectinload(Order.files))
        .execution_options(populate_existing=True)
    )
    return res.scalars().first()


@dataclass
class AdminSave:
    status_changed: bool = False
    quote_entry_id: Optional[int] = None
    team_member_ids: Optional[List[int]] = field(default=None)


async def update_order(
    db: AsyncSession,
    order: Order,
    principal: User,
    payload: OrderUpdate,
    notifier: Notifier,
) -> AdminSave:
    """Admin save of the order detail screen.

    Field edits are persisted even when the quote is unchanged; the quote goes
    through the ledger rules and the status through the state machine. Team
    member ids are checked before anything is written.
    """
    if payload.quoted_price is not None:
        validate_price(payload.quoted_price)
    if payload.team_member_ids is not None:
        await ensure_members_exist(db, payload.team_member_ids)

    result = AdminSave()
    data = payload.model_dump(exclude_unset=True)

    for name in ("priority", "estimated_completion", "additional_notes"):
        if name in data:
            setattr(order, name, data[name])
    db.add(order)

    if payload.quoted_price is not None:
        entry = await record_quote(db, order, principal, payload.quoted_price)
        result.quote_entry_id = entry.id if entry else None

    if payload.status is not None:
        result.status_changed = await set_status(
            db, order, payload.status, principal, notifier, notes=payload.status_notes,
        )
    else:
        await db.commit()

    if payload.team_member_ids is not None:
        result.team_member_ids = await set_assignments(db, order.id, payload.team_member_ids)

    if not result.status_changed:
        await publish_change("orders", "UPDATE", order.id)
    return result


async def status_history(db: AsyncSession, order_id: int) -> List[OrderStatusHistory]:
    res = await db.execute(
        select(OrderStatusHistory)
        .where(OrderStatusHistory.order_id == order_id)
        .order_by(OrderStatusHistory.created_at.desc(), OrderStatusHistory.id.desc())
    )
    return list(res.scalars().all())


async def order_stats(db: AsyncSession, now: Optional[datetime] = None) -> Dict:
    now = now or utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    res = await db.execute(select(Order.status, func.count(Order.id)).group_by(Order.status))
    by_status = {str(status): count for status, count in res.all()}

    res = await db.execute(
        select(Order.quoted_price, Order.submitted_date).where(
            Order.quote_approved.is_(True),
            Order.quoted_price.is_not(None),
        )
    )
    revenue = 0.0
    for price, submitted in res.all():
        if submitted.tzinfo is None:
            submitted = submitted.replace(tzinfo=month_start.tzinfo)
        if submitted >= month_start:
            revenue += float(price)

    return {
        "total_orders": sum(by_status.values()),
        "pending_quote": by_status.get(str(OrderStatus.PENDING_QUOTE), 0),
        "by_status": by_status,
        "monthly_revenue": revenue,
    }
