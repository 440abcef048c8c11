"""In-app notifications, email templates and the status email notifier."""
import logging
from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from powdercoat.core.config import settings
from powdercoat.core.enums import OrderStatus, UserRole, NotificationType, NotificationPriority
from powdercoat.core.metrics import notifications_created
from powdercoat.models.notification import Notification
from powdercoat.models.user import User

logger = logging.getLogger(__name__)


def format_price(price: float) -> str:
    text = f"{price:,.2f}"
    if text.endswith(".00"):
        text = text[:-3]
    return f"{settings.CURRENCY_SYMBOL}{text}"


def status_label(status) -> str:
    try:
        return OrderStatus(status).label
    except ValueError:
        return str(status)


def order_link(order_id: int) -> str:
    return f"/client/orders/{order_id}"


def status_message(order_number: str, status) -> Tuple[str, str, NotificationPriority]:
    """Title, body and priority of the in-app message sent on a status change."""
    if status == OrderStatus.COMPLETED:
        return (
            "Order Completed! 🎉",
            f"Great news! Your order {order_number} has been completed and is ready for pickup/delivery.",
            NotificationPriority.HIGH,
        )
    if status == OrderStatus.DELAYED:
        return (
            "Order Delayed",
            f"We apologize, but your order {order_number} has been delayed. "
            "We will update you as soon as possible.",
            NotificationPriority.HIGH,
        )
    if status == OrderStatus.PENDING_QUOTE:
        return (
            "Quote Pending",
            f"Your order {order_number} is awaiting a quote. You will be notified once it is ready.",
            NotificationPriority.MEDIUM,
        )
    return (
        "Order Status Updated",
        f"Your order {order_number} status has been updated to: {status_label(status)}",
        NotificationPriority.MEDIUM,
    )


def status_email_content(order_number: str, status) -> Tuple[str, str]:
    if status == OrderStatus.COMPLETED:
        return (
            f"🎉 Order {order_number} Completed!",
            f"""
            <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
              <h1 style="color: #22c55e;">Great News! Your Order is Complete</h1>
              <p>Your order <strong>{order_number}</strong> has been completed and is ready for pickup/delivery.</p>
              <p>Thank you for choosing our services!</p>
            </div>
            """,
        )
    if status == OrderStatus.DELAYED:
        return (
            f"⚠️ Order {order_number} Delayed",
            f"""
            <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
              <h1 style="color: #ef4444;">Order Update: Delay Notice</h1>
              <p>We apologize, but your order <strong>{order_number}</strong> has been delayed.</p>
              <p>We will update you as soon as possible with more information.</p>
            </div>
            """,
        )
    return (
        f"📦 Order {order_number} Status Update",
        f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
          <h1 style="color: #3b82f6;">Order Status Update</h1>
          <p>Your order <strong>{order_number}</strong> status has been updated.</p>
          <p><strong>New Status:</strong> {status_label(status)}</p>
          <p>You can log in to your account to view more details about your order.</p>
        </div>
        """,
    )


async def notify_user(
    db: AsyncSession,
    user_id: int,
    title: str,
    message: str,
    type: NotificationType,
    order_id: Optional[int] = None,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
    link: Optional[str] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        order_id=order_id,
        title=title,
        message=message,
        type=type,
        priority=priority,
        link=link,
        is_read=False,
    )
    db.add(notification)
    notifications_created.labels(type=str(type)).inc()
    return notification


async def notify_admins(
    db: AsyncSession,
    title: str,
    message: str,
    type: NotificationType,
    order_id: Optional[int] = None,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
) -> int:
    res = await db.execute(select(User.id).where(User.role == UserRole.ADMIN))
    admin_ids = res.scalars().all()
    for admin_id in admin_ids:
        await notify_user(
            db, admin_id, title, message, type,
            order_id=order_id, priority=priority, link=f"/admin/orders/{order_id}" if order_id else None,
        )
    return len(admin_ids)


class Notifier:
    """Hands status emails to the worker queue. Never raises."""

    def notify_status_change(
        self,
        user_id: int,
        order_id: int,
        order_number: str,
        new_status: str,
        user_email: Optional[str] = None,
    ) -> None:
        from powdercoat.services.tasks import send_order_notification

        try:
            send_order_notification.delay(user_id, order_id, order_number, str(new_status), user_email)
        except Exception as e:
            logger.error(f"Failed to queue email notification for order {order_number}: {e}")


def get_notifier() -> Notifier:
    return Notifier()
