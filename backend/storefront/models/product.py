from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, Numeric, Text
from sqlalchemy.orm import relationship
from storefront.database import Base
from storefront.models.base import new_id, utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    image = Column(String(500), nullable=True)  # Hosted URL or legacy '/uploads/...' path
    category_id = Column(
        String(100),
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    in_stock = Column(Boolean, nullable=False, default=True)
    default_quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    category = relationship("Category", back_populates="products")
    tag_links = relationship(
        "ProductTag",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductTag.tag",
    )

    @property
    def tags(self) -> list[str]:
        return [link.tag for link in self.tag_links]

    @tags.setter
    def tags(self, values) -> None:
        wanted = []
        for value in values or []:
            if value and value not in wanted:
                wanted.append(value)
        current = {link.tag: link for link in self.tag_links}
        self.tag_links = [current.get(tag) or ProductTag(tag=tag) for tag in wanted]


class ProductTag(Base):
    """One tag on a product; tags are matched as a set."""
    __tablename__ = "product_tags"

    product_id = Column(
        String(32),
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag = Column(String(100), primary_key=True, index=True)

    product = relationship("Product", back_populates="tag_links")
