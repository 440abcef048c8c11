from sqlalchemy import Column, String, Float, Integer, Boolean, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from powdercoat.models.base import BaseModel, enum_column, utcnow
from powdercoat.core.enums import OrderStatus, OrderPriority, FinishType, TextureType


class Order(BaseModel):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_orders_quantity_positive"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_orders_progress_range"),
    )

    user_id = Column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    owner = relationship("User", backref="orders")

    order_number = Column(String(32), unique=True, nullable=False, index=True)
    project_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    dimensions = Column(String(255), nullable=True)
    additional_notes = Column(Text, nullable=True)

    status = Column(enum_column(OrderStatus), default=OrderStatus.PENDING_QUOTE, nullable=False, index=True)
    priority = Column(enum_column(OrderPriority), default=OrderPriority.MEDIUM, nullable=False)
    progress = Column(Integer, default=0, nullable=False)
    # set while an exception stage keeps the last pipeline progress
    progress_held = Column(Boolean, default=False, nullable=False)

    quoted_price = Column(Float, nullable=True)
    quote_approved = Column(Boolean, nullable=True)

    submitted_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    estimated_completion = Column(DateTime(timezone=True), nullable=True)
    completed_date = Column(DateTime(timezone=True), nullable=True)

    customization = relationship(
        "OrderCustomization", uselist=False, back_populates="order", lazy="selectin"
    )
    files = relationship("OrderFile", back_populates="order", lazy="selectin")


class OrderCustomization(BaseModel):
    __tablename__ = "order_customizations"

    order_id = Column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)
    order = relationship("Order", back_populates="customization")

    finish = Column(enum_column(FinishType), nullable=False)
    texture = Column(enum_column(TextureType), nullable=False)
    color = Column(String(64), nullable=False)
    custom_notes = Column(Text, nullable=True)


class OrderFile(BaseModel):
    __tablename__ = "order_files"

    order_id = Column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    order = relationship("Order", back_populates="files")

    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    file_url = Column(String(1024), nullable=False)
