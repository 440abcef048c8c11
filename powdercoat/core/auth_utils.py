"""Authentication and authorization utilities"""
from fastapi import HTTPException
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from powdercoat.core.enums import UserRole
from powdercoat.models.order import Order
from powdercoat.models.team import TeamMember, OrderTeamAssignment


async def get_team_profile(db: AsyncSession, current_user) -> Optional[TeamMember]:
    res = await db.execute(select(TeamMember).where(TeamMember.user_id == int(current_user.id)))
    return res.scalars().first()


async def is_assigned(db: AsyncSession, order_id: int, current_user) -> bool:
    res = await db.execute(
        select(OrderTeamAssignment.id)
        .join(TeamMember, TeamMember.id == OrderTeamAssignment.team_member_id)
        .where(
            OrderTeamAssignment.order_id == order_id,
            TeamMember.user_id == int(current_user.id),
        )
        .limit(1)
    )
    return res.scalars().first() is not None


def filter_orders_by_user(query, current_user):

    if current_user.role == UserRole.CLIENT:
        return query.where(Order.user_id == int(current_user.id))
    if current_user.role == UserRole.TEAM_MEMBER:
        return (
            query.join(OrderTeamAssignment, OrderTeamAssignment.order_id == Order.id)
            .join(TeamMember, TeamMember.id == OrderTeamAssignment.team_member_id)
            .where(TeamMember.user_id == int(current_user.id))
        )
    return query


async def check_order_access(db: AsyncSession, order: Order, current_user) -> None:

    if current_user.role == UserRole.ADMIN:
        return
    if current_user.role == UserRole.CLIENT and order.user_id == int(current_user.id):
        return
    if current_user.role == UserRole.TEAM_MEMBER and await is_assigned(db, order.id, current_user):
        return
    raise HTTPException(
        status_code=403,
        detail="Forbidden: You can only access your own Orders"
    )


def check_not_found(item, resource_name: str = "Resource", resource_id: Optional[int] = None) -> None:

    if not item:
        if resource_id:
            raise HTTPException(
                status_code=404,
                detail=f"{resource_name} with id {resource_id} not found"
            )
        raise HTTPException(status_code=404, detail=f"{resource_name} not found")
