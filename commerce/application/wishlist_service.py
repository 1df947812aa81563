from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from commerce.domain.models import Product, WishlistEntry
from shared.core import get_logger

from .errors import InvalidRequest, NotFound, StorageFailure

logger = get_logger(__name__)


class WishlistService:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str):
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise InvalidRequest("Product already in wishlist") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}", exc_info=True)
            raise StorageFailure(f"Failed to {action}") from e

    def _entry(self, user_id: str, product_id: int):
        return self.db.execute(
            select(WishlistEntry).where(
                WishlistEntry.user_id == user_id,
                WishlistEntry.product_id == product_id,
            )
        ).scalar_one_or_none()

    def list(self, user_id: str) -> List[dict]:
        entries = self.db.execute(
            select(WishlistEntry)
            .options(selectinload(WishlistEntry.product).selectinload(Product.variants))
            .where(WishlistEntry.user_id == user_id)
            .order_by(WishlistEntry.created_at.desc(), WishlistEntry.id.desc())
        ).scalars().all()
        return [
            {
                "id": entry.id,
                "user_id": entry.user_id,
                "product_id": entry.product_id,
                "created_at": entry.created_at,
                "product": {
                    "id": entry.product.id,
                    "title": entry.product.title,
                    "slug": entry.product.slug,
                    "base_price": entry.product.base_price,
                    "images": entry.product.images or [],
                    "variants": [
                        {"id": v.id, "title": v.title, "price": v.price}
                        for v in entry.product.variants
                    ],
                },
            }
            for entry in entries
        ]

    def add(self, user_id: str, product_id: int) -> WishlistEntry:
        if self.db.get(Product, product_id) is None:
            raise NotFound("Product not found")
        if self._entry(user_id, product_id) is not None:
            raise InvalidRequest("Product already in wishlist")

        entry = WishlistEntry(user_id=user_id, product_id=product_id)
        self.db.add(entry)
        self._commit("add to wishlist")
        self.db.refresh(entry)
        return entry

    def remove(self, user_id: str, product_id: int) -> None:
        self.db.execute(
            delete(WishlistEntry).where(
                WishlistEntry.user_id == user_id,
                WishlistEntry.product_id == product_id,
            )
        )
        self._commit("remove from wishlist")

    def contains(self, user_id: str, product_id: int) -> bool:
        return self._entry(user_id, product_id) is not None

    def count(self, user_id: str) -> int:
        return self.db.scalar(
            select(func.count(WishlistEntry.id)).where(WishlistEntry.user_id == user_id)
        )

    def toggle(self, user_id: str, product_id: int) -> dict:
        if self.contains(user_id, product_id):
            self.remove(user_id, product_id)
            return {"added": False, "message": "Product removed from wishlist"}
        self.add(user_id, product_id)
        return {"added": True, "message": "Product added to wishlist"}
