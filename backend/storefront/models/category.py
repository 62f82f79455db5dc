from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from storefront.database import Base
from storefront.models.base import utcnow


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(100), primary_key=True)  # Slug, e.g. 'corporate', 'drinkware'
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(50), nullable=False, default="Gift")  # Icon identifier (e.g. 'Briefcase', 'Coffee')
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Deleting a category deletes its products
    products = relationship(
        "Product",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="[Product.created_at.desc(), Product.id]",
    )
