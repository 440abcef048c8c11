from fastapi import APIRouter, Depends, Query
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List

from powdercoat.db.session import get_db
from powdercoat.models.notification import Notification
from powdercoat.schemas.notification import NotificationOut
from powdercoat.core.security import get_current_user
from powdercoat.core.auth_utils import check_not_found

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationOut])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    q = select(Notification).where(Notification.user_id == int(current_user.id))
    if unread_only:
        q = q.where(Notification.is_read.is_(False))
    q = q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    res = await db.execute(q)
    return res.scalars().all()


@router.post("/read-all")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    res = await db.execute(
        update(Notification)
        .where(Notification.user_id == int(current_user.id), Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return {"updated": res.rowcount}


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    res = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == int(current_user.id),
        )
    )
    notification = res.scalars().first()
    check_not_found(notification, "Notification", notification_id)
    
    notification.is_read = True
    db.add(notification)
    await db.commit()
    return notification
