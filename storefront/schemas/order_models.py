"""Order request/response models."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .io_models import EMAIL_RE, CamelModel, ProductOut
from ..utils.security import sanitize_input


class OrderItemOut(CamelModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: float
    product: Optional[ProductOut] = None


class OrderOut(CamelModel):
    id: int
    session_id: Optional[str] = None
    status: str
    total_amount: float
    currency: str
    customer_email: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_address: str
    billing_address: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemOut] = Field(default_factory=list)


class CreateOrderIn(CamelModel):
    customer_email: str
    shipping_address: str = Field(min_length=1)
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    billing_address: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None

    @field_validator("customer_email", "shipping_address", "customer_name", "customer_phone",
                     "billing_address", mode="before")
    @classmethod
    def _clean(cls, v):
        return sanitize_input(v)

    @field_validator("customer_email")
    @classmethod
    def _valid_email(cls, v: str) -> str:
        if not EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v


class UpdateOrderIn(CamelModel):
    status: Optional[str] = None
    payment_intent_id: Optional[str] = None
