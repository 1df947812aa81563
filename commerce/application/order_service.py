import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from commerce.core_settings import Settings, get_settings
from commerce.domain.models import Order, OrderItem, Product, ProductVariant
from shared.core import get_logger

from . import order_status
from .errors import Forbidden, NotFound, StorageFailure
from .order_status import OrderStatus
from .pricing import PricingCalculator, RequestedItem
from .schemas import OrderCancel, OrderCreate, OrderRefund, OrderStatusUpdate

logger = get_logger(__name__)

ORDER_COLUMNS = (
    "id", "order_number", "customer_id", "status", "currency",
    "subtotal", "tax_amount", "shipping_amount", "total_amount",
    "shipping_address", "billing_address", "notes", "internal_notes",
    "shipped_at", "delivered_at", "created_at", "updated_at",
)


class OrderService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.pricing = PricingCalculator(db, self.settings)

    @staticmethod
    def _generate_order_number() -> str:
        """Generate an order number in format ORD-YYYYMMDD-XXXXXXXX"""
        return f"ORD-{datetime.utcnow():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"

    def _commit(self, action: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}", exc_info=True)
            raise StorageFailure(f"Failed to {action}") from e

    def get(self, order_id: int) -> Optional[Order]:
        return self.db.get(Order, order_id)

    def get_owned(self, order_id: int, customer_id: str) -> Order:
        # Other customers' orders are reported as missing
        order = self.get(order_id)
        if order is None or order.customer_id != customer_id:
            raise NotFound("Order not found")
        return order

    def create(self, customer_id: str, data: OrderCreate) -> dict:
        priced = self.pricing.price_order(
            customer_id,
            [
                RequestedItem(product_id=i.product_id, variant_id=i.variant_id, quantity=i.quantity)
                for i in data.items
            ],
        )

        order = Order(
            order_number=self._generate_order_number(),
            customer_id=customer_id,
            status=OrderStatus.PENDING.value,
            currency=priced.currency,
            subtotal=priced.subtotal,
            tax_amount=priced.tax_amount,
            shipping_amount=priced.shipping_amount,
            total_amount=priced.total_amount,
            shipping_address=data.shipping_address,
            billing_address=data.billing_address or data.shipping_address,
            notes=data.notes,
        )

        # Header and items form one unit of work; a failure rolls both back
        try:
            self.db.add(order)
            self.db.flush()
            for line in priced.lines:
                self.db.add(OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    quantity=line.quantity,
                    price=line.unit_price,
                    total=line.line_total,
                ))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Order creation failed; header rolled back",
                exc_info=True,
                extra={'extra_fields': {'customer_id': customer_id}}
            )
            raise StorageFailure("Failed to create order") from e

        self.db.refresh(order)
        logger.info(
            f"Order {order.order_number} created",
            extra={
                'extra_fields': {
                    'customer_id': customer_id,
                    'items': len(priced.lines),
                    'total_amount': str(priced.total_amount),
                    'payment_method': data.payment_method,
                }
            }
        )
        return self.serialize(order, enrich=True)

    def list_for_customer(self, customer_id: str, page: int = 1, limit: int = 10) -> Tuple[List[dict], int]:
        total = self.db.scalar(
            select(func.count(Order.id)).where(Order.customer_id == customer_id)
        )
        orders = self.db.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return [self.serialize(order) for order in orders], total

    def get_with_items(self, order_id: int, customer_id: str) -> dict:
        return self.serialize(self.get_owned(order_id, customer_id), enrich=True)

    def get_by_order_number(self, order_number: str, customer_id: str) -> dict:
        order = self.db.execute(
            select(Order).where(Order.order_number == order_number)
        ).scalar_one_or_none()
        if order is None:
            raise NotFound("Order not found")
        if order.customer_id != customer_id:
            raise Forbidden("You are not authorized to view this order")
        return self.serialize(order, enrich=True)

    def summary(self, customer_id: Optional[str] = None) -> dict:
        query = select(Order.status, Order.total_amount)
        if customer_id:
            query = query.where(Order.customer_id == customer_id)
        rows = self.db.execute(query).all()

        summary = {
            "total_orders": len(rows),
            "pending_orders": 0,
            "completed_orders": 0,
            "cancelled_orders": 0,
            "total_revenue": Decimal("0.00"),
        }
        for status, total_amount in rows:
            if status == OrderStatus.PENDING.value:
                summary["pending_orders"] += 1
            elif status == OrderStatus.DELIVERED.value:
                summary["completed_orders"] += 1
                summary["total_revenue"] += Decimal(str(total_amount))
            elif status in (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value):
                summary["cancelled_orders"] += 1
        return summary

    def update_status(self, order_id: int, data: OrderStatusUpdate) -> dict:
        order = self.get(order_id)
        if order is None:
            raise NotFound("Order not found")
        order_status.set_status(order, data.status, notes=data.internal_notes, force=data.force)
        self._commit("update order status")
        return self.serialize(order)

    def cancel(self, order_id: int, customer_id: str, data: OrderCancel) -> dict:
        order = self.get_owned(order_id, customer_id)
        order_status.cancel(order, data.reason)
        self._commit("cancel order")
        return self.serialize(order)

    def refund(self, order_id: int, customer_id: str, data: OrderRefund) -> dict:
        order = self.get_owned(order_id, customer_id)
        order_status.refund(order, data.reason, data.refund_amount, data.refund_method)
        self._commit("refund order")
        return self.serialize(order)

    def serialize(self, order: Order, enrich: bool = False) -> dict:
        order_dict = {column: getattr(order, column) for column in ORDER_COLUMNS}
        items = [
            {
                "id": item.id,
                "product_id": item.product_id,
                "variant_id": item.variant_id,
                "quantity": item.quantity,
                "price": item.price,
                "total": item.total,
            }
            for item in order.items
        ]
        if enrich and items:
            self._attach_display_fields(items)
        order_dict["items"] = items
        return order_dict

    def _attach_display_fields(self, items: List[dict]) -> None:
        """Join product title/images and variant title/price/sku onto each item."""
        product_ids = {item["product_id"] for item in items}
        products = {
            p.id: {"id": p.id, "title": p.title, "images": p.images or []}
            for p in self.db.execute(select(Product).where(Product.id.in_(product_ids))).scalars()
        }

        variant_ids = {item["variant_id"] for item in items if item["variant_id"]}
        variants = {}
        if variant_ids:
            variants = {
                v.id: {"id": v.id, "title": v.title, "price": v.price, "sku": v.sku}
                for v in self.db.execute(
                    select(ProductVariant).where(ProductVariant.id.in_(variant_ids))
                ).scalars()
            }

        for item in items:
            item["product"] = products.get(item["product_id"])
            item["variant"] = variants.get(item["variant_id"])
