from pydantic import BaseModel
from datetime import datetime
from typing import Any, List, Optional, Union

from marketplace.domain.models import OrderStatus


class CreateOrderRequest(BaseModel):
    product_id: str
    quantity: int
    shipping_address: Any = None


class CheckoutRequest(BaseModel):
    items: List[CreateOrderRequest]


class TransitionStatusRequest(BaseModel):
    status: OrderStatus
    fulfillment_details: Optional[dict] = None
    reason: Optional[str] = None


class ApproveRejectRequest(BaseModel):
    status: OrderStatus
    reason: Optional[str] = None


class ConfirmOrderRequest(BaseModel):
    fulfillment_details: Optional[dict] = None


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    buyer_id: str
    product_id: str
    seller_id: str
    industry: str
    quantity: int
    shipping_address: Any
    status: OrderStatus
    fulfillment_details: Optional[dict] = None
    admin_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, order):
        return cls(
            id=order.id,
            buyer_id=order.buyer_id,
            product_id=order.product_id,
            seller_id=order.seller_id,
            industry=order.industry,
            quantity=order.quantity,
            shipping_address=order.shipping_address,
            status=order.status,
            fulfillment_details=order.fulfillment_details,
            admin_notes=order.admin_notes,
            cancellation_reason=order.cancellation_reason,
            created_at=order.created_at,
            updated_at=order.updated_at
        )


class TransitionErrorDetail(BaseModel):
    message: str
    current_status: OrderStatus
    target_status: OrderStatus
    role: str


class ErrorResponse(BaseModel):
    detail: Union[TransitionErrorDetail, str]
