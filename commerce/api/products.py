from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from commerce.auth import CurrentUser, get_current_user, require_roles
from commerce.infrastructure.db import get_db
from commerce.application.product_service import ProductService
from commerce.application.schemas import ProductCreate, ProductRead, VariantRead, VariantReplace

router = APIRouter(prefix="/products", tags=["products"])

@router.post("/", response_model=ProductRead, status_code=201)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    require_roles(user, "supplier", "admin")
    return ProductService(db).create(user.id, payload)

@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    service = ProductService(db)
    return service.read(service.get(product_id))

@router.get("/{product_id}/variants", response_model=list[VariantRead])
def list_variants(product_id: int, db: Session = Depends(get_db)):
    return ProductService(db).list_variants(product_id)

@router.put("/{product_id}/variants", response_model=list[VariantRead])
def replace_variants(
    product_id: int,
    payload: VariantReplace,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    require_roles(user, "supplier", "admin")
    return ProductService(db).replace_variants(product_id, user, payload.variants)
