"""Order pricing.

Resolves an authoritative unit price for every requested line and derives
subtotal, tax, flat-rate shipping and total. All money is Decimal and every
stored amount is quantized to the currency's minor unit, so
``total_amount == subtotal + tax_amount + shipping_amount`` holds exactly.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from commerce.core_settings import Settings
from commerce.domain.models import Product, ProductVariant

from .errors import InvalidRequest, NotFound

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class RequestedItem:
    product_id: int
    quantity: int
    variant_id: Optional[int] = None


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    variant_id: Optional[int]
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class PricedOrder:
    customer_id: str
    currency: str
    lines: tuple
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    total_amount: Decimal


def price_line(product_id: int, variant_id: Optional[int], quantity: int, unit_price) -> PricedLine:
    if quantity is None or quantity <= 0:
        raise InvalidRequest(f"Quantity for product {product_id} must be positive")
    if unit_price is None or Decimal(str(unit_price)) <= 0:
        raise InvalidRequest(f"Product {product_id} has no price configured")
    unit_price = to_money(unit_price)
    return PricedLine(
        product_id=product_id,
        variant_id=variant_id,
        quantity=quantity,
        unit_price=unit_price,
        line_total=unit_price * quantity,
    )


def compute_totals(lines: Sequence[PricedLine], tax_rate: Decimal, shipping_amount: Decimal):
    """Return (subtotal, tax_amount, shipping_amount, total_amount)."""
    subtotal = sum((line.line_total for line in lines), Decimal("0.00"))
    tax_amount = to_money(subtotal * Decimal(str(tax_rate)))
    shipping_amount = to_money(shipping_amount)
    return subtotal, tax_amount, shipping_amount, subtotal + tax_amount + shipping_amount


class PricingCalculator:
    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def resolve_unit_price(self, item: RequestedItem) -> Optional[Decimal]:
        product = self.db.get(Product, item.product_id)
        if product is None:
            raise NotFound(f"Product with ID {item.product_id} not found")

        if item.variant_id is not None:
            variant = self.db.get(ProductVariant, item.variant_id)
            if variant is None or variant.product_id != product.id:
                raise NotFound(f"Product variant with ID {item.variant_id} not found")
            return variant.price

        first_variant = self.db.execute(
            select(ProductVariant)
            .where(ProductVariant.product_id == product.id)
            .order_by(ProductVariant.position, ProductVariant.id)
            .limit(1)
        ).scalar_one_or_none()
        if first_variant is not None and first_variant.price is not None:
            return first_variant.price
        return product.base_price

    def price_order(self, customer_id: str, items: Iterable[RequestedItem]) -> PricedOrder:
        items = list(items)
        if not items:
            raise InvalidRequest("Order must contain at least one item")

        lines = tuple(
            price_line(item.product_id, item.variant_id, item.quantity, self.resolve_unit_price(item))
            for item in items
        )
        subtotal, tax_amount, shipping_amount, total_amount = compute_totals(
            lines, self.settings.TAX_RATE, self.settings.SHIPPING_FLAT_AMOUNT
        )
        return PricedOrder(
            customer_id=customer_id,
            currency=self.settings.CURRENCY,
            lines=lines,
            subtotal=subtotal,
            tax_amount=tax_amount,
            shipping_amount=shipping_amount,
            total_amount=total_amount,
        )
