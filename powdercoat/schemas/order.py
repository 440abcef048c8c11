from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from powdercoat.core.enums import OrderStatus, OrderPriority, FinishType, TextureType


class CustomizationIn(BaseModel):
    finish: FinishType
    texture: TextureType
    color: str = Field(min_length=1, max_length=64)
    custom_notes: Optional[str] = None


class OrderFileIn(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    file_size: int = Field(ge=0)
    file_url: str = Field(min_length=1, max_length=1024)


class OrderCreate(BaseModel):
    project_name: str
    description: str
    quantity: int
    dimensions: Optional[str] = None
    additional_notes: Optional[str] = None
    priority: OrderPriority = OrderPriority.MEDIUM
    customization: CustomizationIn
    files: List[OrderFileIn] = []


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    priority: Optional[OrderPriority] = None
    estimated_completion: Optional[datetime] = None
    additional_notes: Optional[str] = None
    quoted_price: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    status_notes: Optional[str] = None
    team_member_ids: Optional[List[int]] = None


class StatusChange(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None


class CustomizationOut(BaseModel):
    finish: FinishType
    texture: TextureType
    color: str
    custom_notes: Optional[str] = None


class OrderFileOut(BaseModel):
    id: int
    file_name: str
    file_size: int
    file_url: str


class OrderOut(BaseModel):
    id: int
    user_id: int
    order_number: str
    project_name: str
    description: str
    quantity: int
    dimensions: Optional[str] = None
    additional_notes: Optional[str] = None
    status: OrderStatus
    priority: OrderPriority
    progress: int
    progress_held: bool
    quoted_price: Optional[float] = None
    quote_approved: Optional[bool] = None
    submitted_date: datetime
    estimated_completion: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class OrderDetailOut(OrderOut):
    customization: Optional[CustomizationOut] = None
    files: List[OrderFileOut] = []
    team_member_ids: List[int] = []


class StatusHistoryOut(BaseModel):
    id: int
    status: OrderStatus
    changed_by: Optional[int] = None
    notes: Optional[str] = None
    changed_at: datetime


class OrderStats(BaseModel):
    total_orders: int
    pending_quote: int
    by_status: Dict[str, int]
    monthly_revenue: float
