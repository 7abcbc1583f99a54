from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel


class OrderStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Role(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"
    SUB_ADMIN = "sub_admin"

    @classmethod
    def _missing_(cls, value):
        # the user directory still hands out the older spellings
        aliases = {"customer": cls.BUYER, "sub-admin": cls.SUB_ADMIN}
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


class Actor(BaseModel):
    """Value Object: the caller, resolved through the user directory"""
    id: str
    role: Role
    industry: Optional[str] = None
    is_banned: bool = False


class Product(BaseModel):
    """Value Object: product from the catalog"""
    id: str
    seller_id: str
    industry: str
    approval_status: str

    @property
    def is_approved(self) -> bool:
        return self.approval_status == "approved"


class Order(BaseModel):
    """Domain Entity: order"""
    id: str
    buyer_id: str
    product_id: str
    seller_id: str
    industry: str
    quantity: int
    shipping_address: Any
    status: OrderStatus
    fulfillment_details: dict | None = None
    admin_notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    def is_owned_by_buyer(self, actor_id: str) -> bool:
        return self.buyer_id == actor_id

    def is_owned_by_seller(self, actor_id: str) -> bool:
        return self.seller_id == actor_id


class OrderFilters(BaseModel):
    """Caller-supplied filters, applied after the visibility scope"""
    status: OrderStatus | None = None
    seller_id: str | None = None
    buyer_id: str | None = None
    limit: int = 50
    offset: int = 0
