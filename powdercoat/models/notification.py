from sqlalchemy import Column, String, Text, Boolean, ForeignKey
from powdercoat.models.base import BaseModel, enum_column
from powdercoat.core.enums import NotificationType, NotificationPriority


class Notification(BaseModel):
    __tablename__ = "notifications"

    user_id = Column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(enum_column(NotificationType), nullable=False)
    priority = Column(enum_column(NotificationPriority), default=NotificationPriority.MEDIUM, nullable=False)
    link = Column(String(255), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
