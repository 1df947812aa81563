from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from .order_status import OrderStatus

# Variants and products

class VariantOption(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    value: str = Field(max_length=100)

class VariantIn(BaseModel):
    title: str
    sku: Optional[str] = None
    price: Optional[Decimal] = None
    inventory_quantity: int = 0
    position: int = 0
    options: Optional[list[VariantOption]] = None

    @field_validator("options", mode="before")
    @classmethod
    def _non_list_options_are_empty(cls, value):
        # Non-list option payloads are tolerated and stored as no options
        if value is not None and not isinstance(value, (list, tuple)):
            return None
        return value

class VariantRead(BaseModel):
    id: int
    product_id: int
    title: str
    sku: Optional[str] = None
    price: Optional[Decimal] = None
    inventory_quantity: int = 0
    position: int = 0
    options: list[VariantOption] = []

class ProductCreate(BaseModel):
    title: str
    slug: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[Decimal] = None
    images: Optional[list[dict]] = None
    variants: list[VariantIn] = []

class VariantReplace(BaseModel):
    variants: list[VariantIn]

class ProductRead(BaseModel):
    id: int
    supplier_id: str
    title: str
    slug: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[Decimal] = None
    images: Optional[list[dict]] = None
    variants: list[VariantRead] = []
    variant_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# Orders

class OrderItemCreate(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    quantity: int = Field(gt=0)

class OrderCreate(BaseModel):
    items: list[OrderItemCreate]
    shipping_address: dict
    billing_address: Optional[dict] = None
    notes: Optional[str] = None
    # Accepted for the checkout contract; no gateway integration acts on it
    payment_method: Literal["cod", "online"] = "cod"

class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    internal_notes: Optional[str] = None
    # Administrative override of the transition table
    force: bool = False

class OrderCancel(BaseModel):
    reason: Optional[str] = None

class OrderRefund(BaseModel):
    reason: str
    refund_amount: Optional[Decimal] = None
    refund_method: Optional[str] = None

class OrderItemRead(BaseModel):
    id: int
    product_id: int
    variant_id: Optional[int] = None
    quantity: int
    price: Decimal
    total: Decimal
    # Read-side display fields, joined at query time
    product: Optional[dict] = None
    variant: Optional[dict] = None

class OrderRead(BaseModel):
    id: int
    order_number: str
    customer_id: str
    status: OrderStatus
    currency: str
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    total_amount: Decimal
    shipping_address: dict
    billing_address: Optional[dict] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemRead] = []

class OrderList(BaseModel):
    orders: list[OrderRead]
    total: int

class OrderSummary(BaseModel):
    total_orders: int = 0
    pending_orders: int = 0
    completed_orders: int = 0
    cancelled_orders: int = 0
    total_revenue: Decimal = Decimal("0.00")

# Reviews

class ReviewCreate(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    order_id: Optional[int] = None
    # Range is enforced by the service so bad ratings answer 400
    rating: int
    title: Optional[str] = None
    content: Optional[str] = None
    pros: Optional[list[str]] = None
    cons: Optional[list[str]] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

class ReviewUpdate(BaseModel):
    rating: Optional[int] = None
    title: Optional[str] = None
    content: Optional[str] = None
    pros: Optional[list[str]] = None
    cons: Optional[list[str]] = None

class ReviewResponseCreate(BaseModel):
    content: str = Field(min_length=1)

class HelpfulVoteCreate(BaseModel):
    is_helpful: bool = True

class HelpfulVoteResult(BaseModel):
    review_id: int
    helpful_count: int
    # The caller's vote after the toggle; None when it was removed
    vote: Optional[bool] = None

class ReviewRead(BaseModel):
    id: int
    product_id: int
    variant_id: Optional[int] = None
    customer_id: str
    customer_name: Optional[str] = None
    order_id: Optional[int] = None
    rating: int
    title: Optional[str] = None
    content: Optional[str] = None
    pros: Optional[list[str]] = None
    cons: Optional[list[str]] = None
    is_verified_purchase: bool
    is_approved: bool
    is_featured: bool
    helpful_count: int
    response_content: Optional[str] = None
    responded_by: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ReviewSummaryRead(BaseModel):
    average_rating: float
    total_reviews: int
    rating_distribution: dict[int, int]
    recommended_percentage: float

class ProductReviewsPage(BaseModel):
    reviews: list[ReviewRead]
    summary: ReviewSummaryRead
    total: int

class CustomerReviewsPage(BaseModel):
    reviews: list[ReviewRead]
    total: int

# Wishlists

class WishlistAdd(BaseModel):
    product_id: int

class WishlistRead(BaseModel):
    id: int
    user_id: str
    product_id: int
    created_at: datetime
    product: Optional[dict] = None

class WishlistToggle(BaseModel):
    added: bool
    message: str

class WishlistCheck(BaseModel):
    is_in_wishlist: bool

class WishlistCount(BaseModel):
    count: int
