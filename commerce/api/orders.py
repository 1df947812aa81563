from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from commerce.auth import CurrentUser, get_current_user, require_roles
from commerce.infrastructure.db import get_db
from commerce.application.order_service import OrderService
from commerce.application.schemas import (
    OrderCancel,
    OrderCreate,
    OrderList,
    OrderRead,
    OrderRefund,
    OrderStatusUpdate,
    OrderSummary,
)

router = APIRouter(prefix="/orders", tags=["orders"])

@router.post("/", response_model=OrderRead, status_code=201)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return OrderService(db).create(user.id, payload)

@router.get("/", response_model=OrderList)
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """List the caller's orders, newest first (without display enrichment)."""
    orders, total = OrderService(db).list_for_customer(user.id, page, limit)
    return {"orders": orders, "total": total}

@router.get("/summary/stats", response_model=OrderSummary)
def order_summary(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return OrderService(db).summary(user.id)

@router.get("/confirmation/{order_number}", response_model=OrderRead)
def get_order_by_number(
    order_number: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return OrderService(db).get_by_order_number(order_number, user.id)

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return OrderService(db).get_with_items(order_id, user.id)

@router.put("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    require_roles(user, "admin")
    return OrderService(db).update_status(order_id, payload)

@router.post("/{order_id}/cancel", response_model=OrderRead)
def cancel_order(
    order_id: int,
    payload: OrderCancel,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return OrderService(db).cancel(order_id, user.id, payload)

@router.post("/{order_id}/refund", response_model=OrderRead)
def refund_order(
    order_id: int,
    payload: OrderRefund,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return OrderService(db).refund(order_id, user.id, payload)
