"""Product catalogue endpoints"""
from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from database import get_session, transaction
from models import Product, ActivityAction
from schemas import ProductCreate, ProductUpdate, ProductResponse, Identity
from dependencies import require_capability, get_audit_trail
from errors import NotFoundError, ValidationError
from permissions import RECORDS_READ, RECORDS_WRITE
from services.audit import AuditTrail
from typing import List

router = APIRouter(prefix="/api/products", tags=["Products"])

REQUIRED_FIELDS = ("name", "category", "status")


@router.get("", response_model=List[ProductResponse])
def list_products(
    identity: Identity = Depends(require_capability(RECORDS_READ)),
    session: Session = Depends(get_session)
):
    return session.exec(
        select(Product).order_by(Product.created_at.desc(), Product.id.desc()).limit(200)
    ).all()


@router.post("", response_model=ProductResponse)
def create_product(
    product_data: ProductCreate,
    identity: Identity = Depends(require_capability(RECORDS_WRITE)),
    session: Session = Depends(get_session),
    audit: AuditTrail = Depends(get_audit_trail)
):
    values = product_data.model_dump()
    values["status"] = values.get("status") or "Active"
    if values.get("price") is None:
        values["price"] = 0

    new_product = Product(**values)
    with transaction(session):
        session.add(new_product)
    session.refresh(new_product)

    audit.record(identity.id, ActivityAction.CREATE, "product", new_product.id, {"name": new_product.name})

    return new_product


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    identity: Identity = Depends(require_capability(RECORDS_WRITE)),
    session: Session = Depends(get_session),
    audit: AuditTrail = Depends(get_audit_trail)
):
    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")

    changes = product_data.model_dump(exclude_unset=True)
    for key in REQUIRED_FIELDS:
        if key in changes and not changes[key]:
            raise ValidationError(f"{key} cannot be empty")

    with transaction(session):
        for key, value in changes.items():
            setattr(product, key, value)
        session.add(product)
    session.refresh(product)

    audit.record(identity.id, ActivityAction.UPDATE, "product", product.id, {"new_data": changes})

    return product
