"""Database seeding - default catalogue for a fresh install."""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.models import Category, Product

logger = logging.getLogger(__name__)


DEFAULT_CATEGORIES = [
    {"id": "corporate", "name": "Corporate Gifting", "description": "Professional gifts for your business needs", "icon": "Briefcase"},
    {"id": "personalized", "name": "Personalised Gifting", "description": "Custom gifts with your personal touch", "icon": "Heart"},
    {"id": "hampers", "name": "Gift Hampers & Kits", "description": "Curated gift sets for every occasion", "icon": "Gift"},
    {"id": "apparel", "name": "Apparel & Wearables", "description": "Quality branded clothing and accessories", "icon": "Shirt"},
    {"id": "drinkware", "name": "Drinkware", "description": "Premium mugs, bottles and tumblers", "icon": "Coffee"},
    {"id": "office", "name": "Office & Utility", "description": "Practical gifts for the workplace", "icon": "FolderOpen"},
    {"id": "premium", "name": "Premium Gifts", "description": "Luxurious corporate gifts", "icon": "Award"},
    {"id": "eco", "name": "Eco-Friendly Gifts", "description": "Sustainable and environmentally conscious gifts", "icon": "Leaf"},
]

DEFAULT_PRODUCTS = [
    {"name": "Executive Leather Notebook Set", "category_id": "corporate", "tags": ["Bulk Order", "Customizable"],
     "description": "Premium leather-bound notebook with pen, perfect for corporate gifting",
     "image": "https://images.unsplash.com/photo-1740664651822-3a02ec12c121"},
    {"name": "Luxury Gift Hamper", "category_id": "hampers", "tags": ["Customizable", "Premium"],
     "description": "Curated selection of premium items in elegant packaging",
     "image": "https://images.unsplash.com/photo-1617394391227-4cb6cba53b12"},
    {"name": "Premium Gift Box Collection", "category_id": "premium", "tags": ["Bulk Order", "Customizable"],
     "description": "Elegant gift box with personalized branding options",
     "image": "https://images.unsplash.com/photo-1760804876166-aae5861ec7c1"},
    {"name": "Branded Corporate Drinkware Set", "category_id": "drinkware", "tags": ["Bulk Order", "Customizable"],
     "description": "High-quality mugs and tumblers with custom branding",
     "image": "https://images.unsplash.com/photo-1767023442932-ec95b9a13e71"},
    {"name": "Eco-Friendly Product Set", "category_id": "eco", "tags": ["Eco-Friendly", "Customizable"],
     "description": "Sustainable gifts made from recycled materials",
     "image": "https://images.unsplash.com/photo-1633878353628-5fc8b983325c"},
    {"name": "Office Desk Organizer Kit", "category_id": "office", "tags": ["Bulk Order"],
     "description": "Premium desk accessories for the modern workspace",
     "image": "https://images.unsplash.com/photo-1713775285581-706ebc919e7b"},
    {"name": "Personalized Welcome Kit", "category_id": "personalized", "tags": ["Customizable", "Bulk Order"],
     "description": "Custom welcome packages for new employees or clients",
     "image": "https://images.unsplash.com/photo-1759563874745-47e35c0a9572"},
    {"name": "Corporate Apparel Bundle", "category_id": "apparel", "tags": ["Bulk Order", "Customizable"],
     "description": "Branded t-shirts, polo shirts and accessories",
     "image": "https://images.unsplash.com/photo-1496180470114-6ef490f3ff22"},
    {"name": "Stainless Steel Water Bottle", "category_id": "drinkware", "tags": ["Eco-Friendly", "Bulk Order"],
     "description": "Double-walled insulated bottle, keeps drinks hot/cold for 24h",
     "image": "https://images.unsplash.com/photo-1602143407151-0111419500be"},
]


def seed_catalog(db: Session) -> dict | None:
    """Insert the default catalogue when no categories exist yet."""
    if db.query(Category).count() > 0:
        return None

    for cat_data in DEFAULT_CATEGORIES:
        db.add(Category(**cat_data))

    for product_data in DEFAULT_PRODUCTS:
        data = dict(product_data)
        tags = data.pop("tags")
        product = Product(price=Decimal("0"), **data)
        product.tags = tags
        db.add(product)

    db.commit()
    return {"categories": len(DEFAULT_CATEGORIES), "products": len(DEFAULT_PRODUCTS)}


if __name__ == "__main__":
    from storefront.config import get_settings
    from storefront.database import build_engine, init_db

    logging.basicConfig(level=logging.INFO)
    init_db(build_engine(get_settings().database_url), seed=True)
