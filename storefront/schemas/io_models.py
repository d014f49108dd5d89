"""Pydantic models for catalog, cart and contact API I/O.

Field names are snake_case in Python and camelCase on the wire.
"""
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..utils.security import sanitize_input

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CategoryOut(CamelModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None


class ProductOut(CamelModel):
    id: int
    name: str
    description: str
    price: float
    category_id: Optional[int] = None
    image_url: str
    image_urls: List[str] = Field(default_factory=list)
    sku: str
    stock_quantity: int
    weight: Optional[str] = None
    materials: List[str] = Field(default_factory=list)
    gemstones: List[str] = Field(default_factory=list)
    care_instructions: Optional[str] = None
    is_active: bool
    is_featured: bool
    created_at: Optional[datetime] = None
    category: Optional[CategoryOut] = None


class CartItemOut(CamelModel):
    id: int
    session_id: str
    product_id: int
    quantity: int
    added_at: Optional[datetime] = None
    product: Optional[ProductOut] = None


class AddToCartIn(CamelModel):
    product_id: int
    quantity: int = 1


class UpdateCartIn(CamelModel):
    quantity: int


class ContactIn(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    email: str
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=5000)
    phone: Optional[str] = None
    is_consultation: bool = False
    preferred_date: Optional[datetime] = None

    @field_validator("name", "email", "subject", "message", "phone", mode="before")
    @classmethod
    def _clean(cls, v):
        return sanitize_input(v)

    @field_validator("email")
    @classmethod
    def _valid_email(cls, v: str) -> str:
        if not EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v


class ContactOut(CamelModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    is_consultation: bool
    preferred_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ChatIn(CamelModel):
    message: Optional[str] = None
    prompt: Optional[str] = None
    context: Optional[Dict[str, Any]] = None
    type: str = "text"

    def text(self) -> str:
        return sanitize_input(self.message or self.prompt or "")


class AnalyticsEventIn(CamelModel):
    event: str = Field(min_length=1, max_length=100)
    data: Dict[str, Any] = Field(default_factory=dict)


class ShopperContext(CamelModel):
    """Browsing state sent by the storefront widgets; numeric strings are coerced."""
    cart_items: int = Field(default=0, ge=0)
    time_on_page: float = Field(default=0, ge=0)
    interaction_pattern: Optional[str] = None
    crystal_preferences: List[str] = Field(default_factory=list)


class ViewingBehavior(CamelModel):
    time_viewing: float = Field(default=0, ge=0)
    interactions: List[Any] = Field(default_factory=list)


class ContextualIn(CamelModel):
    context: ShopperContext = Field(default_factory=ShopperContext)


class ProductInsightsIn(CamelModel):
    product_id: Any = None
    user_behavior: ViewingBehavior = Field(default_factory=ViewingBehavior)


class BehaviorAnalysisIn(CamelModel):
    product_id: Any = None
    context: ShopperContext = Field(default_factory=ShopperContext)
    session_data: Dict[str, Any] = Field(default_factory=dict)


class ShoppingTriggerIn(CamelModel):
    trigger: Dict[str, Any] = Field(default_factory=dict)
    product_id: Any = None
    user_context: ShopperContext = Field(default_factory=ShopperContext)


class RecommendationsIn(CamelModel):
    product_id: Any = None
    user_id: Optional[str] = None


class SupportIn(CamelModel):
    message: str = Field(min_length=1, max_length=2000)
    context: Optional[Dict[str, Any]] = None

    @field_validator("message", mode="before")
    @classmethod
    def _clean(cls, v):
        return sanitize_input(v)
