from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models import Category, Product
from storefront.routers.products import _product_query, newest_first
from storefront.schemas import ProductWithCategory

router = APIRouter(prefix="/search", tags=["search"])

SEARCH_LIMIT = 10


@router.get("", response_model=list[ProductWithCategory])
def search_products(q: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Case-insensitive match on product name, description or category name."""
    term = (q or "").strip().lower()
    if not term:
        return []

    query = _product_query(db).join(Category, Product.category_id == Category.id).filter(
        or_(
            func.lower(Product.name).contains(term, autoescape=True),
            func.lower(Product.description).contains(term, autoescape=True),
            func.lower(Category.name).contains(term, autoescape=True),
        )
    )
    return newest_first(query).limit(SEARCH_LIMIT).all()
