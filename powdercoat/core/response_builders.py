from typing import List
from powdercoat.models.order import Order
from powdercoat.models.quote import QuoteNegotiation
from powdercoat.models.status_history import OrderStatusHistory
from powdercoat.schemas.order import (
    OrderOut, OrderDetailOut, CustomizationOut, OrderFileOut, StatusHistoryOut,
)
from powdercoat.schemas.quote import NegotiationOut
from powdercoat.services.quotes import author_role_of


def _order_fields(order: Order) -> dict:
    return dict(
        id=order.id,
        user_id=order.user_id,
        order_number=order.order_number,
        project_name=order.project_name,
        description=order.description,
        quantity=order.quantity,
        dimensions=order.dimensions,
        additional_notes=order.additional_notes,
        status=order.status,
        priority=order.priority,
        progress=order.progress,
        progress_held=order.progress_held,
        quoted_price=order.quoted_price,
        quote_approved=order.quote_approved,
        submitted_date=order.submitted_date,
        estimated_completion=order.estimated_completion,
        completed_date=order.completed_date,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def build_order_response(order: Order) -> OrderOut:
    return OrderOut(**_order_fields(order))


def build_order_detail_response(order: Order, team_member_ids: List[int]) -> OrderDetailOut:
    customization = None
    if order.customization is not None:
        customization = CustomizationOut(
            finish=order.customization.finish,
            texture=order.customization.texture,
            color=order.customization.color,
            custom_notes=order.customization.custom_notes,
        )
    return OrderDetailOut(
        **_order_fields(order),
        customization=customization,
        files=[
            OrderFileOut(id=f.id, file_name=f.file_name, file_size=f.file_size, file_url=f.file_url)
            for f in order.files
        ],
        team_member_ids=team_member_ids,
    )


def build_order_response_list(orders: list) -> list:
    return [build_order_response(order) for order in orders]


def build_negotiation_response(entry: QuoteNegotiation, order: Order) -> NegotiationOut:
    return NegotiationOut(
        id=entry.id,
        order_id=entry.order_id,
        quoted_by=entry.quoted_by,
        author_role=author_role_of(entry, order),
        quoted_price=entry.quoted_price,
        notes=entry.notes,
        status=entry.status,
        created_at=entry.created_at,
    )


def build_status_history_response(entry: OrderStatusHistory) -> StatusHistoryOut:
    return StatusHistoryOut(
        id=entry.id,
        status=entry.status,
        changed_by=entry.changed_by,
        notes=entry.notes,
        changed_at=entry.changed_at,
    )
