from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from commerce.auth import CurrentUser, get_current_user, require_roles
from commerce.infrastructure.db import get_db
from commerce.application.review_service import ReviewService
from commerce.application.schemas import (
    CustomerReviewsPage,
    HelpfulVoteCreate,
    HelpfulVoteResult,
    ProductReviewsPage,
    ReviewCreate,
    ReviewRead,
    ReviewResponseCreate,
    ReviewUpdate,
)

router = APIRouter(prefix="/reviews", tags=["reviews"])

SortBy = Literal["newest", "oldest", "rating_high", "rating_low", "helpful"]

@router.post("/", response_model=ReviewRead, status_code=201)
def create_review(
    payload: ReviewCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return ReviewService(db).create(user, payload)

@router.get("/me", response_model=CustomerReviewsPage)
def my_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    reviews, total = ReviewService(db).list_for_customer(user.id, page, limit)
    return {"reviews": reviews, "total": total}

@router.get("/product/{product_id}", response_model=ProductReviewsPage)
def product_reviews(
    product_id: int,
    rating: Optional[int] = Query(None, ge=1, le=5),
    is_verified_purchase: Optional[bool] = None,
    has_pros_cons: bool = False,
    sort_by: SortBy = "newest",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    reviews, summary, total = ReviewService(db).list_for_product(
        product_id,
        rating=rating,
        is_verified_purchase=is_verified_purchase,
        has_pros_cons=has_pros_cons,
        sort_by=sort_by,
        page=page,
        limit=limit,
    )
    return {"reviews": reviews, "summary": summary, "total": total}

@router.get("/{review_id}", response_model=ReviewRead)
def get_review(review_id: int, db: Session = Depends(get_db)):
    return ReviewService(db).get(review_id)

@router.put("/{review_id}", response_model=ReviewRead)
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return ReviewService(db).update(review_id, user.id, payload)

@router.delete("/{review_id}", status_code=204)
def delete_review(review_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    ReviewService(db).delete(review_id, user.id)
    return None

@router.post("/{review_id}/respond", response_model=ReviewRead)
def respond_to_review(
    review_id: int,
    payload: ReviewResponseCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    require_roles(user, "supplier", "admin")
    return ReviewService(db).respond(review_id, user, payload.content)

@router.post("/{review_id}/vote-helpful", response_model=HelpfulVoteResult)
def vote_helpful(
    review_id: int,
    payload: HelpfulVoteCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return ReviewService(db).vote_helpful(review_id, user.id, payload.is_helpful)
