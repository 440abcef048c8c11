import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.future import select
from powdercoat.core.config import settings
from powdercoat.models.user import User
from powdercoat.services.email import send_email
from powdercoat.services.notifications import status_email_content

logger = logging.getLogger(__name__)


async def resolve_user_email(user_id: int) -> Optional[str]:
    engine_worker = create_async_engine(settings.DATABASE_URL, future=True, echo=False)
    AsyncSessionWorker = sessionmaker(engine_worker, class_=AsyncSession, expire_on_commit=False)
    try:
        async with AsyncSessionWorker() as db:
            res = await db.execute(select(User.email).where(User.id == user_id))
            return res.scalars().first()
    finally:
        await engine_worker.dispose()


async def send_order_notification_async(
    user_id: int,
    order_id: int,
    order_number: str,
    new_status: str,
    user_email: Optional[str] = None,
) -> bool:
    """Background task emailing a client about a status change"""
    try:
        email_to = user_email or await resolve_user_email(user_id)
        if not email_to:
            logger.info(f"No email found for user {user_id}, skipping notification for order {order_number}")
            return False

        subject, html = status_email_content(order_number, new_status)
        return await send_email(email_to, subject, html)
    except Exception as e:
        logger.error(f"Email notification failed for order {order_id}: {e}")
        return False
