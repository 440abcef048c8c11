from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from powdercoat.core.enums import NotificationType, NotificationPriority


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: Optional[int] = None
    title: str
    message: str
    type: NotificationType
    priority: NotificationPriority
    link: Optional[str] = None
    is_read: bool
    created_at: datetime
