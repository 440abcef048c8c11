from sqlalchemy import Column, Text, ForeignKey
from powdercoat.models.base import AppendOnlyModel, enum_column
from powdercoat.core.enums import OrderStatus


class OrderStatusHistory(AppendOnlyModel):
    __tablename__ = "order_status_history"

    order_id = Column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(enum_column(OrderStatus), nullable=False)
    changed_by = Column(ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)

    @property
    def changed_at(self):
        return self.created_at
