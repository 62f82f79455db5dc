import logging
import re

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from storefront.database import get_db
from storefront.dependencies import Services, get_services, require_admin
from storefront.errors import INTERNAL_ERROR, missing_fields_error
from storefront.models import Category, Product
from storefront.schemas import (
    Category as CategorySchema,
    CategoryCreate,
    CategoryUpdate,
    CategoryWithProducts,
    MessageResponse,
)
from storefront.services.sanitizer import sanitize_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])
admin_router = APIRouter(
    prefix="/admin/categories",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)

FREE_TEXT_FIELDS = ["name", "description"]


def slugify(value: str) -> str:
    """'Gift Hampers & Kits' -> 'gift-hampers-kits'"""
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def _with_products(query):
    return query.options(
        selectinload(Category.products).selectinload(Product.tag_links)
    )


def _get_category_or_404(db: Session, category_id: str) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("", response_model=list[CategoryWithProducts])
def list_categories(db: Session = Depends(get_db)):
    """All categories with their products."""
    return _with_products(db.query(Category)).order_by(Category.name, Category.id).all()


@router.get("/{category_id}", response_model=CategoryWithProducts)
def get_category(category_id: str, db: Session = Depends(get_db)):
    category = _with_products(db.query(Category)).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@admin_router.post("", status_code=201, response_model=CategorySchema)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    """Create a category. The id is derived from the name when not given."""
    data = sanitize_fields(payload.model_dump(), FREE_TEXT_FIELDS)
    if not data["name"]:
        raise missing_fields_error(["name"])

    category_id = slugify(data.pop("id") or data["name"])
    if not category_id:
        raise HTTPException(status_code=400, detail="Category id must contain letters or digits")

    if db.query(Category).filter(Category.id == category_id).first():
        raise HTTPException(status_code=400, detail=f"Category '{category_id}' already exists")

    category = Category(id=category_id, **data)
    try:
        db.add(category)
        db.commit()
        db.refresh(category)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error creating category: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    logger.info(f"Created category {category.id}")
    return category


@admin_router.patch("/{category_id}", response_model=CategorySchema)
def update_category(category_id: str, payload: CategoryUpdate, db: Session = Depends(get_db)):
    category = _get_category_or_404(db, category_id)

    changes = sanitize_fields(payload.model_dump(exclude_unset=True), FREE_TEXT_FIELDS)
    if "name" in changes and not changes["name"]:
        raise missing_fields_error(["name"])
    if changes.get("icon") is None:
        changes.pop("icon", None)

    for field, value in changes.items():
        setattr(category, field, value)

    try:
        db.commit()
        db.refresh(category)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error updating category {category_id}: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    return category


@admin_router.delete("/{category_id}", response_model=MessageResponse)
def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Delete a category together with all of its products."""
    category = _get_category_or_404(db, category_id)
    images = [product.image for product in category.products if product.image]
    product_count = len(category.products)

    try:
        db.delete(category)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error deleting category {category_id}: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    for image in images:
        services.images.discard(image)

    logger.info(f"Deleted category {category_id} and {product_count} products")
    return MessageResponse(message="Category deleted")
