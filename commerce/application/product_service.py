from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from commerce.auth import CurrentUser
from commerce.domain.models import Product, ProductVariant
from shared.core import get_logger

from .errors import Forbidden, NotFound, StorageFailure
from .schemas import ProductCreate, VariantIn
from .variant_options import normalize_for_storage, normalize_many

logger = get_logger(__name__)

VARIANT_FIELDS = {
    column.key for column in ProductVariant.__table__.columns
} - {"id", "product_id", "created_at"}


def _variant_row(variant: VariantIn) -> ProductVariant:
    stored = normalize_for_storage(variant)
    return ProductVariant(**{key: value for key, value in stored.items() if key in VARIANT_FIELDS})


class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    def read(self, product: Product) -> dict:
        variants = normalize_many(product.variants)
        return {
            "id": product.id,
            "supplier_id": product.supplier_id,
            "title": product.title,
            "slug": product.slug,
            "description": product.description,
            "base_price": product.base_price,
            "images": product.images,
            "variants": variants,
            "variant_count": len(variants),
            "created_at": product.created_at,
            "updated_at": product.updated_at,
        }

    def create(self, supplier_id: str, data: ProductCreate) -> dict:
        product = Product(
            supplier_id=supplier_id,
            title=data.title,
            slug=data.slug,
            description=data.description,
            base_price=data.base_price,
            images=data.images,
            variants=[_variant_row(variant) for variant in data.variants],
        )
        try:
            self.db.add(product)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to create product", exc_info=True)
            raise StorageFailure("Failed to create product") from e

        self.db.refresh(product)
        logger.info(
            f"Product {product.id} created",
            extra={'extra_fields': {'supplier_id': supplier_id, 'variants': len(data.variants)}}
        )
        return self.read(product)

    def list_variants(self, product_id: int) -> List[dict]:
        return normalize_many(self.get(product_id).variants)

    def replace_variants(self, product_id: int, user: CurrentUser, variants: List[VariantIn]) -> List[dict]:
        """Replace the product's whole variant set (delete-then-insert, one transaction)."""
        product = self.get(product_id)
        if not user.is_admin and product.supplier_id != user.id:
            raise Forbidden("Product does not belong to this supplier")

        # Every variant is validated before the old set is touched
        rows = [_variant_row(variant) for variant in variants]
        try:
            product.variants.clear()
            self.db.flush()
            product.variants.extend(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to replace variants of product {product_id}", exc_info=True)
            raise StorageFailure("Failed to replace product variants") from e

        self.db.refresh(product)
        logger.info(
            f"Replaced variants of product {product_id}",
            extra={'extra_fields': {'variants': len(rows)}}
        )
        return normalize_many(product.variants)
