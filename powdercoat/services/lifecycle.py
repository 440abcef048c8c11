"""Order status state machine.

Statuses are either pipeline stages, each carrying a canonical progress
percentage, or exception stages (``delayed``) that keep whatever progress
the order had.  Transitions are deliberately unguarded: any status may follow
any other, and ``completed`` is terminal only because nothing moves an order
out of it.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from powdercoat.core.enums import OrderStatus, UserRole, NotificationType, NotificationPriority, Availability
from powdercoat.core.errors import OrderValidationError, PermissionDeniedError
from powdercoat.core.metrics import status_transitions
from powdercoat.core.redis import publish_change
from powdercoat.models.base import utcnow
from powdercoat.models.order import Order
from powdercoat.models.status_history import OrderStatusHistory
from powdercoat.models.team import TeamMember, OrderTeamAssignment
from powdercoat.models.user import User
from powdercoat.services.assignments import set_assignments, replace_assignment
from powdercoat.services.notifications import Notifier, notify_user, notify_admins, status_message, order_link

logger = logging.getLogger(__name__)

PROGRESS_BY_STATUS = {
    OrderStatus.PENDING_QUOTE: 0,
    OrderStatus.QUEUED: 10,
    OrderStatus.SAND_BLASTING: 25,
    OrderStatus.COATING: 50,
    OrderStatus.CURING: 70,
    OrderStatus.QUALITY_CHECK: 85,
    OrderStatus.COMPLETED: 100,
}

NEXT_STAGE = {
    OrderStatus.PENDING_QUOTE: OrderStatus.QUEUED,
    OrderStatus.QUEUED: OrderStatus.SAND_BLASTING,
    OrderStatus.SAND_BLASTING: OrderStatus.COATING,
    OrderStatus.COATING: OrderStatus.CURING,
    OrderStatus.CURING: OrderStatus.QUALITY_CHECK,
    OrderStatus.QUALITY_CHECK: OrderStatus.COMPLETED,
}

# department that must sign off a stage before it can be advanced
STAGE_DEPARTMENTS = {
    OrderStatus.SAND_BLASTING: "Sand Blasting",
    OrderStatus.COATING: "Coating",
    OrderStatus.CURING: "Curing",
    OrderStatus.QUALITY_CHECK: "Quality Control",
}


@dataclass(frozen=True)
class PipelineStage:
    status: OrderStatus
    progress: int


@dataclass(frozen=True)
class ExceptionStage:
    status: str


Stage = Union[PipelineStage, ExceptionStage]


def stage_of(status) -> Stage:
    progress = PROGRESS_BY_STATUS.get(status)
    if progress is None:
        return ExceptionStage(status=str(status))
    return PipelineStage(status=OrderStatus(status), progress=progress)


def derive_progress(status, previous: int) -> int:
    stage = stage_of(status)
    if isinstance(stage, PipelineStage):
        return stage.progress
    return previous


def parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise OrderValidationError(f"Invalid status '{value}'")


async def set_status(
    db: AsyncSession,
    order: Order,
    new_status,
    principal: User,
    notifier: Notifier,
    notes: Optional[str] = None,
) -> bool:
    """Move ``order`` to ``new_status``.

    Returns False when the status is unchanged, in which case nothing is
    recorded and nobody is notified.  Pending changes already made to
    ``order`` by the caller are committed either way.
    """
    new_status = parse_status(new_status)
    previous = order.status

    if previous == new_status:
        await db.commit()
        return False

    stage = stage_of(new_status)
    if isinstance(stage, PipelineStage):
        order.progress = stage.progress
        order.progress_held = False
    else:
        order.progress_held = True

    order.status = new_status
    if new_status == OrderStatus.COMPLETED and order.completed_date is None:
        order.completed_date = utcnow()

    db.add(OrderStatusHistory(
        order_id=order.id,
        status=new_status,
        changed_by=int(principal.id),
        notes=notes,
    ))

    title, message, priority = status_message(order.order_number, new_status)
    await notify_user(
        db, order.user_id, title, message, NotificationType.STATUS,
        order_id=order.id, priority=priority, link=order_link(order.id),
    )

    if principal.role == UserRole.TEAM_MEMBER and new_status == OrderStatus.COMPLETED:
        member = await _team_profile(db, principal)
        name = member.name if member else "Unknown"
        await notify_admins(
            db,
            "Order Completed by Team Member",
            f"Team member {name} has marked order {order.order_number} as completed.",
            NotificationType.TASK,
            order_id=order.id,
            priority=NotificationPriority.HIGH,
        )

    db.add(order)
    await db.commit()

    status_transitions.labels(from_status=str(previous), to_status=str(new_status)).inc()
    logger.info(f"Order {order.order_number} moved from {previous} to {new_status} by user {principal.id}")

    notifier.notify_status_change(order.user_id, order.id, order.order_number, str(new_status))
    await publish_change("orders", "UPDATE", order.id)
    return True


async def _team_profile(db: AsyncSession, principal: User) -> Optional[TeamMember]:
    res = await db.execute(select(TeamMember).where(TeamMember.user_id == int(principal.id)))
    return res.scalars().first()


async def _assigned_profile(db: AsyncSession, order: Order, principal: User) -> TeamMember:
    member = await _team_profile(db, principal)
    if member is None:
        raise PermissionDeniedError("No team member profile is linked to this account")

    res = await db.execute(
        select(OrderTeamAssignment.id).where(
            OrderTeamAssignment.order_id == order.id,
            OrderTeamAssignment.team_member_id == member.id,
        )
    )
    if res.scalars().first() is None:
        raise PermissionDeniedError(f"Order {order.order_number} is not assigned to you")
    return member


async def complete_order(db: AsyncSession, order: Order, principal: User, notifier: Notifier) -> bool:
    await _assigned_profile(db, order, principal)
    return await set_status(db, order, OrderStatus.COMPLETED, principal, notifier)


async def find_member_for_stage(db: AsyncSession, status: OrderStatus) -> Optional[TeamMember]:
    department = STAGE_DEPARTMENTS.get(status)
    if department is None:
        return None

    res = await db.execute(
        select(TeamMember)
        .where(TeamMember.department == department, TeamMember.availability == Availability.AVAILABLE)
        .order_by(TeamMember.id)
        .limit(1)
    )
    member = res.scalars().first()
    if member is not None:
        return member

    res = await db.execute(
        select(TeamMember).where(TeamMember.department == department).order_by(TeamMember.id).limit(1)
    )
    return res.scalars().first()


async def advance_stage(db: AsyncSession, order: Order, principal: User, notifier: Notifier) -> OrderStatus:
    """Finish the current stage and hand the order to the next department."""
    member = await _assigned_profile(db, order, principal)

    next_status = NEXT_STAGE.get(order.status)
    if next_status is None:
        raise OrderValidationError(f"Order {order.order_number} cannot be advanced from {order.status}")

    required = STAGE_DEPARTMENTS.get(order.status)
    if required and member.department != required:
        raise PermissionDeniedError(f"Only {required} team members can complete this stage")

    await set_status(db, order, next_status, principal, notifier)

    if next_status == OrderStatus.COMPLETED:
        await set_assignments(db, order.id, [])
    else:
        successor = await find_member_for_stage(db, next_status)
        if successor is not None:
            await replace_assignment(db, order.id, member.id, successor.id)

    return next_status
