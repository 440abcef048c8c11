from sqlalchemy import Column, Float, Text, ForeignKey
from powdercoat.models.base import AppendOnlyModel, enum_column
from powdercoat.core.enums import NegotiationStatus, UserRole


class QuoteNegotiation(AppendOnlyModel):
    """One offer in a price negotiation. Rows are never updated or deleted."""

    __tablename__ = "quote_negotiations"

    order_id = Column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    quoted_by = Column(ForeignKey("users.id"), nullable=False)
    # nullable for rows written before the role was recorded
    author_role = Column(enum_column(UserRole), nullable=True)
    quoted_price = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(enum_column(NegotiationStatus), default=NegotiationStatus.PENDING, nullable=False)
