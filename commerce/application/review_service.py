from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from commerce.auth import CurrentUser
from commerce.domain.models import Order, OrderItem, Product, ProductReview, ProductVariant, ReviewHelpfulVote
from commerce.infrastructure.cache import SummaryCache, get_summary_cache
from shared.core import get_logger

from .errors import Forbidden, InvalidRequest, NotFound, StorageFailure
from .review_summary import count_helpful, summarize
from .schemas import ReviewCreate, ReviewUpdate

logger = get_logger(__name__)

SORT_ORDERS = {
    "newest": (ProductReview.created_at.desc(), ProductReview.id.desc()),
    "oldest": (ProductReview.created_at.asc(), ProductReview.id.asc()),
    "rating_high": (ProductReview.rating.desc(), ProductReview.created_at.desc()),
    "rating_low": (ProductReview.rating.asc(), ProductReview.created_at.desc()),
    "helpful": (ProductReview.helpful_count.desc(), ProductReview.created_at.desc()),
}


def _validate_rating(rating: Optional[int]) -> None:
    if rating is None or rating < 1 or rating > 5:
        raise InvalidRequest("Rating must be between 1 and 5")


class ReviewService:
    def __init__(self, db: Session, cache: Optional[SummaryCache] = None):
        self.db = db
        self.cache = cache or get_summary_cache()

    def _commit(self, action: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}", exc_info=True)
            raise StorageFailure(f"Failed to {action}") from e

    def _get_review(self, review_id: int) -> ProductReview:
        review = self.db.get(ProductReview, review_id)
        if review is None:
            raise NotFound("Review not found")
        return review

    def _get_owned(self, review_id: int, customer_id: str, action: str) -> ProductReview:
        review = self._get_review(review_id)
        if review.customer_id != customer_id:
            raise Forbidden(f"You can only {action} your own reviews")
        return review

    def _is_verified_purchase(self, customer_id: str, product_id: int, order_id: Optional[int]) -> bool:
        if order_id is None:
            return False
        match = self.db.execute(
            select(OrderItem.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                OrderItem.order_id == order_id,
                OrderItem.product_id == product_id,
                Order.customer_id == customer_id,
            )
            .limit(1)
        ).first()
        return match is not None

    def create(self, user: CurrentUser, data: ReviewCreate) -> ProductReview:
        _validate_rating(data.rating)
        if self.db.get(Product, data.product_id) is None:
            raise NotFound("Product not found")
        if data.variant_id is not None:
            variant = self.db.get(ProductVariant, data.variant_id)
            if variant is None or variant.product_id != data.product_id:
                raise NotFound("Product variant not found")
        if data.order_id is not None:
            # Other customers' orders are reported as missing
            order = self.db.get(Order, data.order_id)
            if order is None or order.customer_id != user.id:
                raise NotFound("Order not found")

        existing = self.db.execute(
            select(ProductReview.id).where(
                ProductReview.customer_id == user.id,
                ProductReview.product_id == data.product_id,
                ProductReview.variant_id.is_(None)
                if data.variant_id is None
                else ProductReview.variant_id == data.variant_id,
            )
        ).first()
        if existing is not None:
            raise InvalidRequest("You have already reviewed this product")

        review = ProductReview(
            product_id=data.product_id,
            variant_id=data.variant_id,
            customer_id=user.id,
            customer_name=data.customer_name or user.name,
            customer_email=data.customer_email or user.email,
            order_id=data.order_id,
            rating=data.rating,
            title=data.title,
            content=data.content,
            pros=data.pros,
            cons=data.cons,
            is_verified_purchase=self._is_verified_purchase(user.id, data.product_id, data.order_id),
            # Auto-approved until moderation exists
            is_approved=True,
            is_featured=False,
            helpful_count=0,
        )
        self.db.add(review)
        self._commit("create review")
        self.db.refresh(review)
        self.cache.invalidate(review.product_id)
        logger.info(
            f"Review {review.id} created",
            extra={'extra_fields': {'product_id': review.product_id, 'verified': review.is_verified_purchase}}
        )
        return review

    def get(self, review_id: int) -> ProductReview:
        return self._get_review(review_id)

    def update(self, review_id: int, customer_id: str, data: ReviewUpdate) -> ProductReview:
        review = self._get_owned(review_id, customer_id, "update")
        changes = data.model_dump(exclude_unset=True)
        if "rating" in changes:
            _validate_rating(changes["rating"])
        for key, value in changes.items():
            setattr(review, key, value)
        review.updated_at = datetime.utcnow()
        self._commit("update review")
        self.db.refresh(review)
        self.cache.invalidate(review.product_id)
        return review

    def delete(self, review_id: int, customer_id: str) -> None:
        review = self._get_owned(review_id, customer_id, "delete")
        product_id = review.product_id
        self.db.delete(review)
        self._commit("delete review")
        self.cache.invalidate(product_id)

    def respond(self, review_id: int, user: CurrentUser, content: str) -> ProductReview:
        review = self._get_review(review_id)
        if not user.is_admin:
            product = self.db.get(Product, review.product_id)
            if product is None or product.supplier_id != user.id:
                raise Forbidden("Only the product's seller can respond to this review")

        now = datetime.utcnow()
        review.response_content = content
        review.responded_by = "admin" if user.is_admin else "seller"
        review.responded_at = now
        review.updated_at = now
        self._commit("add review response")
        self.db.refresh(review)
        return review

    def list_for_product(
        self,
        product_id: int,
        rating: Optional[int] = None,
        is_verified_purchase: Optional[bool] = None,
        has_pros_cons: bool = False,
        sort_by: str = "newest",
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[ProductReview], dict, int]:
        query = select(ProductReview).where(
            ProductReview.product_id == product_id,
            ProductReview.is_approved.is_(True),
        )
        if rating is not None:
            query = query.where(ProductReview.rating == rating)
        if is_verified_purchase is not None:
            query = query.where(ProductReview.is_verified_purchase.is_(is_verified_purchase))
        if has_pros_cons:
            query = query.where(ProductReview.pros.is_not(None), ProductReview.cons.is_not(None))

        total = self.db.scalar(select(func.count()).select_from(query.subquery()))
        reviews = self.db.execute(
            query.order_by(*SORT_ORDERS.get(sort_by, SORT_ORDERS["newest"]))
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return reviews, self.summary(product_id), total

    def list_for_customer(self, customer_id: str, page: int = 1, limit: int = 10) -> Tuple[List[ProductReview], int]:
        query = select(ProductReview).where(ProductReview.customer_id == customer_id)
        total = self.db.scalar(select(func.count()).select_from(query.subquery()))
        reviews = self.db.execute(
            query.order_by(ProductReview.created_at.desc(), ProductReview.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return reviews, total

    def summary(self, product_id: int) -> dict:
        cached = self.cache.get(product_id)
        if cached is not None:
            return cached

        ratings = self.db.execute(
            select(ProductReview.rating).where(
                ProductReview.product_id == product_id,
                ProductReview.is_approved.is_(True),
            )
        ).scalars().all()
        summary = summarize(ratings).to_dict()
        self.cache.set(product_id, summary)
        return summary

    def vote_helpful(self, review_id: int, customer_id: str, is_helpful: bool) -> dict:
        """Toggle the caller's helpful vote.

        A repeated identical vote removes it, a different vote replaces it.
        """
        review = self._get_review(review_id)
        product_id = review.product_id
        vote = self.db.execute(
            select(ReviewHelpfulVote).where(
                ReviewHelpfulVote.review_id == review_id,
                ReviewHelpfulVote.customer_id == customer_id,
            )
        ).scalar_one_or_none()

        if vote is None:
            self.db.add(ReviewHelpfulVote(review_id=review_id, customer_id=customer_id, is_helpful=is_helpful))
            current_vote = is_helpful
        elif vote.is_helpful == is_helpful:
            self.db.delete(vote)
            current_vote = None
        else:
            vote.is_helpful = is_helpful
            current_vote = is_helpful
        self._commit("record helpful vote")

        helpful_count = self._recount_helpful(review)
        self.cache.invalidate(product_id)
        return {"review_id": review_id, "helpful_count": helpful_count, "vote": current_vote}

    def _recount_helpful(self, review: ProductReview) -> int:
        """Recompute and store helpful_count, returning the recomputed value.

        Best effort: the vote itself is already committed, so a failed write
        is logged and the freshly counted value is still returned.
        """
        review_id = review.id
        helpful_count = review.helpful_count
        try:
            votes = self.db.execute(
                select(ReviewHelpfulVote).where(ReviewHelpfulVote.review_id == review_id)
            ).scalars().all()
            helpful_count = count_helpful(votes)
            review.helpful_count = helpful_count
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Failed to update helpful count for review {review_id}", exc_info=True)
        return helpful_count
