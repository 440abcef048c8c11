import logging
from typing import Iterable, List

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from powdercoat.core.errors import NotFoundError
from powdercoat.core.redis import publish_change
from powdercoat.models.team import TeamMember, OrderTeamAssignment

logger = logging.getLogger(__name__)


async def list_assignment_ids(db: AsyncSession, order_id: int) -> List[int]:
    res = await db.execute(
        select(OrderTeamAssignment.team_member_id)
        .where(OrderTeamAssignment.order_id == order_id)
        .order_by(OrderTeamAssignment.id)
    )
    return list(res.scalars().all())


async def ensure_members_exist(db: AsyncSession, member_ids: Iterable[int]) -> List[int]:
    """De-duplicated ids, or NotFoundError naming the ones with no team member."""
    wanted = list(dict.fromkeys(int(m) for m in member_ids))
    if wanted:
        res = await db.execute(select(TeamMember.id).where(TeamMember.id.in_(wanted)))
        missing = set(wanted) - set(res.scalars().all())
        if missing:
            raise NotFoundError(f"Team member(s) not found: {sorted(missing)}")
    return wanted


async def set_assignments(db: AsyncSession, order_id: int, member_ids: Iterable[int]) -> List[int]:
    """Replace the set of members assigned to an order.

    Only the difference is written, removals and additions in one commit, so
    members kept across the save are never momentarily unassigned.
    """
    wanted = await ensure_members_exist(db, member_ids)

    current = set(await list_assignment_ids(db, order_id))
    removed = current - set(wanted)
    added = [m for m in wanted if m not in current]

    if removed:
        await db.execute(
            delete(OrderTeamAssignment).where(
                OrderTeamAssignment.order_id == order_id,
                OrderTeamAssignment.team_member_id.in_(removed),
            )
        )
    for member_id in added:
        db.add(OrderTeamAssignment(order_id=order_id, team_member_id=member_id))

    await db.commit()

    if removed or added:
        logger.info(f"Order {order_id} assignments: +{added} -{sorted(removed)}")
        await publish_change("order_team_assignments", "UPDATE", order_id)
    return wanted


async def replace_assignment(db: AsyncSession, order_id: int, old_member_id: int, new_member_id: int) -> List[int]:
    current = await list_assignment_ids(db, order_id)
    updated = [m for m in current if m != old_member_id]
    if new_member_id not in updated:
        updated.append(new_member_id)
    return await set_assignments(db, order_id, updated)
