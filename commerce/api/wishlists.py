from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from commerce.auth import CurrentUser, get_current_user
from commerce.infrastructure.db import get_db
from commerce.application.wishlist_service import WishlistService
from commerce.application.schemas import (
    WishlistAdd,
    WishlistCheck,
    WishlistCount,
    WishlistRead,
    WishlistToggle,
)

router = APIRouter(prefix="/wishlists", tags=["wishlists"])

@router.get("/", response_model=list[WishlistRead])
def list_wishlist(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return WishlistService(db).list(user.id)

@router.post("/", response_model=WishlistRead, status_code=201)
def add_to_wishlist(
    payload: WishlistAdd,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    entry = WishlistService(db).add(user.id, payload.product_id)
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "product_id": entry.product_id,
        "created_at": entry.created_at,
    }

@router.get("/count", response_model=WishlistCount)
def wishlist_count(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return {"count": WishlistService(db).count(user.id)}

@router.get("/check/{product_id}", response_model=WishlistCheck)
def check_wishlist(product_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return {"is_in_wishlist": WishlistService(db).contains(user.id, product_id)}

@router.post("/toggle/{product_id}", response_model=WishlistToggle)
def toggle_wishlist(product_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return WishlistService(db).toggle(user.id, product_id)

@router.delete("/{product_id}", status_code=204)
def remove_from_wishlist(product_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    WishlistService(db).remove(user.id, product_id)
    return None
