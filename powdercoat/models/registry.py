"""Imports every model so Base.metadata is complete before create_all."""
from powdercoat.models.base import Base
from powdercoat.models.user import User
from powdercoat.models.audit import Audit
from powdercoat.models.order import Order, OrderCustomization, OrderFile
from powdercoat.models.quote import QuoteNegotiation
from powdercoat.models.status_history import OrderStatusHistory
from powdercoat.models.team import TeamMember, OrderTeamAssignment
from powdercoat.models.notification import Notification

__all__ = [
    "Base",
    "User",
    "Audit",
    "Order",
    "OrderCustomization",
    "OrderFile",
    "QuoteNegotiation",
    "OrderStatusHistory",
    "TeamMember",
    "OrderTeamAssignment",
    "Notification",
]
