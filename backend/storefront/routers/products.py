import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from storefront.database import get_db
from storefront.dependencies import Services, get_services, require_admin
from storefront.errors import INTERNAL_ERROR, missing_fields_error
from storefront.models import Category, Product, ProductTag
from storefront.schemas import (
    MessageResponse,
    ProductCreateForm,
    ProductUpdateForm,
    ProductWithCategory,
)
from storefront.services.image_storage import ImageValidationError
from storefront.services.sanitizer import strip_markup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])
admin_router = APIRouter(
    prefix="/admin/products",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)

RELATED_LIMIT = 4


def _product_query(db: Session):
    return db.query(Product).options(
        joinedload(Product.category),
        selectinload(Product.tag_links),
    )


def newest_first(query):
    return query.order_by(Product.created_at.desc(), Product.id)


def _get_product_or_404(db: Session, product_id: str) -> Product:
    product = _product_query(db).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# ============== Public ==============

@router.get("", response_model=list[ProductWithCategory])
def list_products(db: Session = Depends(get_db)):
    """All products, newest first, with their category."""
    return newest_first(_product_query(db)).all()


@router.get("/{product_id}", response_model=ProductWithCategory)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return _get_product_or_404(db, product_id)


@router.get("/{product_id}/related", response_model=list[ProductWithCategory])
def related_products(product_id: str, db: Session = Depends(get_db)):
    """Up to 4 other products in the same category or sharing a tag."""
    anchor = _get_product_or_404(db, product_id)

    shares_tag = select(ProductTag.product_id).where(ProductTag.tag.in_(anchor.tags))
    query = _product_query(db).filter(
        Product.id != anchor.id,
        or_(
            Product.category_id == anchor.category_id,
            Product.id.in_(shares_tag),
        ),
    )
    return newest_first(query).limit(RELATED_LIMIT).all()


# ============== Admin ==============

def _validated(schema, raw: dict):
    values = {key: value for key, value in raw.items() if value is not None}
    try:
        return schema.model_validate(values)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


def product_create_form(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None, alias="categoryId"),
    in_stock: Optional[str] = Form(None, alias="inStock"),
    default_quantity: Optional[str] = Form(None, alias="defaultQuantity"),
    tags: Optional[str] = Form(None),
) -> ProductCreateForm:
    return _validated(ProductCreateForm, {
        "name": name,
        "description": description,
        "price": price,
        "category_id": category_id,
        "in_stock": in_stock,
        "default_quantity": default_quantity,
        "tags": tags,
    })


def product_update_form(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None, alias="categoryId"),
    in_stock: Optional[str] = Form(None, alias="inStock"),
    default_quantity: Optional[str] = Form(None, alias="defaultQuantity"),
    tags: Optional[str] = Form(None),
) -> ProductUpdateForm:
    return _validated(ProductUpdateForm, {
        "name": name,
        "description": description,
        "price": price,
        "category_id": category_id,
        "in_stock": in_stock,
        "default_quantity": default_quantity,
        "tags": tags,
    })


def _clean(changes: dict) -> dict:
    """Strip markup from admin free text."""
    if "name" in changes:
        changes["name"] = strip_markup(changes["name"])
        if not changes["name"]:
            raise missing_fields_error(["name"])
    if "description" in changes:
        changes["description"] = strip_markup(changes["description"]) or None
    if "tags" in changes:
        changes["tags"] = [t for t in (strip_markup(tag) for tag in changes["tags"]) if t]
    return changes


def _require_category(db: Session, category_id: str):
    if not db.query(Category.id).filter(Category.id == category_id).first():
        raise HTTPException(status_code=404, detail="Category not found")


def _store_image(services: Services, image: Optional[UploadFile]) -> Optional[str]:
    """Save an uploaded image, or return None when no file was sent."""
    if image is None or not image.filename:
        return None
    content = image.file.read()
    try:
        return services.images.save(image.filename, image.content_type, content)
    except ImageValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error storing product image: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@admin_router.post("", status_code=201, response_model=ProductWithCategory)
def create_product(
    form: ProductCreateForm = Depends(product_create_form),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Create a product from multipart form fields with an optional image."""
    data = _clean(form.model_dump())
    _require_category(db, data["category_id"])

    data["image"] = _store_image(services, image)
    tags = data.pop("tags")
    product = Product(**data)
    product.tags = tags

    try:
        db.add(product)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error creating product: {e}")
        services.images.discard(data["image"])
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    logger.info(f"Created product {product.id} ({product.name})")
    return _get_product_or_404(db, product.id)


@admin_router.patch("/{product_id}", response_model=ProductWithCategory)
def update_product(
    product_id: str,
    form: ProductUpdateForm = Depends(product_update_form),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Update the given fields; a new image replaces (and removes) the old one."""
    product = _get_product_or_404(db, product_id)

    changes = _clean(form.model_dump(exclude_unset=True))
    if "category_id" in changes:
        _require_category(db, changes["category_id"])

    new_image = _store_image(services, image)
    old_image = product.image
    if new_image:
        changes["image"] = new_image

    for field, value in changes.items():
        setattr(product, field, value)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error updating product {product_id}: {e}")
        services.images.discard(new_image)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    if new_image and old_image:
        services.images.discard(old_image)

    return _get_product_or_404(db, product_id)


@admin_router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Delete a product and its stored image."""
    product = _get_product_or_404(db, product_id)
    image = product.image

    try:
        db.delete(product)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error deleting product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    services.images.discard(image)

    logger.info(f"Deleted product {product_id}")
    return MessageResponse(message="Product deleted")
