"""Quote negotiation ledger.

The ledger is append-only; ``Order.quoted_price`` mirrors the price of the
latest entry for display but the ledger rows are the history.
"""
import logging
import math
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from powdercoat.core.enums import (
    NegotiationStatus, OrderStatus, UserRole, NotificationType, NotificationPriority,
)
from powdercoat.core.errors import OrderValidationError
from powdercoat.core.metrics import quote_entries
from powdercoat.core.redis import publish_change
from powdercoat.models.order import Order
from powdercoat.models.quote import QuoteNegotiation
from powdercoat.models.user import User
from powdercoat.services.notifications import Notifier, notify_user, notify_admins, format_price, order_link

logger = logging.getLogger(__name__)

ROLE_NAMES = {
    UserRole.ADMIN: "admin",
    UserRole.CLIENT: "client",
    UserRole.TEAM_MEMBER: "team member",
}


# offers that can still be accepted
OPEN_STATUSES = (NegotiationStatus.PENDING, NegotiationStatus.COUNTERED)


def validate_price(price) -> float:
    try:
        value = float(price)
    except (TypeError, ValueError):
        raise OrderValidationError("Please enter a valid price")
    if not math.isfinite(value) or value <= 0:
        raise OrderValidationError("Please enter a valid price")
    return value


def _parse_status(status) -> NegotiationStatus:
    try:
        return NegotiationStatus(status)
    except ValueError:
        raise OrderValidationError(f"Invalid negotiation status '{status}'")


def author_role_of(entry: QuoteNegotiation, order: Order) -> UserRole:
    """Stored author role, or the owner comparison for rows that predate it."""
    if entry.author_role is not None:
        return UserRole(entry.author_role)
    if entry.quoted_by == order.user_id:
        return UserRole.CLIENT
    return UserRole.ADMIN


async def has_ledger_entries(db: AsyncSession, order_id: int) -> bool:
    res = await db.execute(
        select(QuoteNegotiation.id).where(QuoteNegotiation.order_id == order_id).limit(1)
    )
    return res.scalars().first() is not None


async def latest_entry(db: AsyncSession, order_id: int) -> Optional[QuoteNegotiation]:
    res = await db.execute(
        select(QuoteNegotiation)
        .where(QuoteNegotiation.order_id == order_id)
        .order_by(QuoteNegotiation.created_at.desc(), QuoteNegotiation.id.desc())
        .limit(1)
    )
    return res.scalars().first()


async def list_negotiations(db: AsyncSession, order_id: int) -> List[QuoteNegotiation]:
    res = await db.execute(
        select(QuoteNegotiation)
        .where(QuoteNegotiation.order_id == order_id)
        .order_by(QuoteNegotiation.created_at, QuoteNegotiation.id)
    )
    return list(res.scalars().all())


def _append(
    db: AsyncSession,
    order: Order,
    principal: User,
    price: float,
    notes: Optional[str],
    status: NegotiationStatus,
) -> QuoteNegotiation:
    entry = QuoteNegotiation(
        order_id=order.id,
        quoted_by=int(principal.id),
        author_role=principal.role,
        quoted_price=price,
        notes=notes,
        status=status,
    )
    db.add(entry)
    order.quoted_price = price
    db.add(order)
    quote_entries.labels(status=str(status), author_role=str(principal.role)).inc()
    return entry


def _is_owner(order: Order, principal: User) -> bool:
    return int(principal.id) == order.user_id


async def record_quote(
    db: AsyncSession,
    order: Order,
    principal: User,
    price,
    notes: Optional[str] = None,
    status=NegotiationStatus.PENDING,
) -> Optional[QuoteNegotiation]:
    """Append a quote when it is the first one or the price changed.

    Returns the new ledger row, or None when the save is a no-op for the
    ledger.
    """
    price = validate_price(price)
    status = _parse_status(status)

    previous = order.quoted_price
    changed = previous is None or price != previous

    if not changed and await has_ledger_entries(db, order.id):
        return None

    if notes is None:
        role = ROLE_NAMES.get(principal.role, "admin")
        if previous is not None and changed:
            notes = f"{role.capitalize()} updated quote from {format_price(previous)} to {format_price(price)}"
        else:
            notes = f"Initial quote from {role}"

    entry = _append(db, order, principal, price, notes, status)

    if changed:
        await notify_user(
            db, order.user_id,
            "Quote Received",
            f"Your order {order.order_number} has received a quote of {format_price(price)}",
            NotificationType.QUOTE,
            order_id=order.id,
            link=order_link(order.id),
        )

    await db.commit()
    logger.info(f"Quote {format_price(price)} recorded for order {order.order_number}")
    await publish_change("quote_negotiations", "INSERT", order.id)
    return entry


async def counter_offer(
    db: AsyncSession,
    order: Order,
    principal: User,
    price,
    notes: Optional[str] = None,
) -> QuoteNegotiation:
    price = validate_price(price)
    from_client = _is_owner(order, principal)
    if notes is None:
        notes = f"Counter-offer from {'client' if from_client else ROLE_NAMES.get(principal.role, 'admin')}"

    entry = _append(db, order, principal, price, notes, NegotiationStatus.COUNTERED)

    if from_client:
        await notify_admins(
            db,
            "Counter-Offer Received",
            f"The client sent a counter-offer of {format_price(price)} for order {order.order_number}",
            NotificationType.QUOTE,
            order_id=order.id,
            priority=NotificationPriority.HIGH,
        )
    else:
        await notify_user(
            db, order.user_id,
            "Counter-Offer Received",
            f"Admin sent a counter-offer of {format_price(price)} for order {order.order_number}",
            NotificationType.QUOTE,
            order_id=order.id,
            link=order_link(order.id),
        )

    await db.commit()
    await publish_change("quote_negotiations", "INSERT", order.id)
    return entry


async def accept_offer(
    db: AsyncSession,
    order: Order,
    principal: User,
    price,
    notifier: Notifier,
) -> QuoteNegotiation:
    """Append an ``accepted`` row on top of the offer being accepted.

    Only the latest open offer from the other party can be accepted, at its
    own price. Earlier rows are left untouched, so an acceptance always
    duplicates the price of the offer it answers.
    """
    from powdercoat.services.lifecycle import set_status

    price = validate_price(price)
    from_client = _is_owner(order, principal)

    offer = await latest_entry(db, order.id)
    if offer is None or offer.status not in OPEN_STATUSES:
        raise OrderValidationError(f"Order {order.order_number} has no open offer to accept")
    if (author_role_of(offer, order) == UserRole.CLIENT) == from_client:
        raise OrderValidationError("You cannot accept your own offer")
    if price != offer.quoted_price:
        raise OrderValidationError(
            f"Accepted price {format_price(price)} does not match the offer of {format_price(offer.quoted_price)}"
        )

    notes = "Client accepted quote" if from_client else "Admin accepted client offer"

    entry = _append(db, order, principal, price, notes, NegotiationStatus.ACCEPTED)

    if from_client:
        order.quote_approved = True
        await notify_admins(
            db,
            "Quote Approved by Client",
            f"The client has approved the quote for order {order.order_number}. "
            "The order is now queued for production.",
            NotificationType.QUOTE,
            order_id=order.id,
            priority=NotificationPriority.HIGH,
        )

    await db.commit()
    await publish_change("quote_negotiations", "INSERT", order.id)

    if from_client and order.status == OrderStatus.PENDING_QUOTE:
        await set_status(db, order, OrderStatus.QUEUED, principal, notifier, notes="Quote approved by client")
    return entry


async def reject_offer(
    db: AsyncSession,
    order: Order,
    principal: User,
    notes: Optional[str] = None,
) -> QuoteNegotiation:
    if order.quoted_price is None:
        raise OrderValidationError(f"Order {order.order_number} has no quote to reject")

    from_client = _is_owner(order, principal)
    if notes is None:
        notes = f"{'Client' if from_client else 'Admin'} rejected the offer"

    entry = _append(db, order, principal, order.quoted_price, notes, NegotiationStatus.REJECTED)

    if from_client:
        order.quote_approved = False
        await notify_admins(
            db,
            "Quote Rejected by Client",
            f"The client rejected the quote of {format_price(order.quoted_price)} for order {order.order_number}",
            NotificationType.QUOTE,
            order_id=order.id,
            priority=NotificationPriority.HIGH,
        )
    else:
        await notify_user(
            db, order.user_id,
            "Offer Rejected",
            f"Your offer of {format_price(order.quoted_price)} for order {order.order_number} was rejected",
            NotificationType.QUOTE,
            order_id=order.id,
            link=order_link(order.id),
        )

    await db.commit()
    await publish_change("quote_negotiations", "INSERT", order.id)
    return entry
