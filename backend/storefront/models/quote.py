from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from storefront.database import Base
from storefront.models.base import new_id, utcnow


class QuoteRequest(Base):
    __tablename__ = "quote_requests"

    id = Column(String(32), primary_key=True, default=new_id)
    full_name = Column(String(200), nullable=False)
    company_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    additional_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    items = relationship(
        "QuoteItem",
        back_populates="quote_request",
        cascade="all, delete-orphan",
        order_by="QuoteItem.id",
    )


class QuoteItem(Base):
    """A quoted line. product_id is a plain reference so past quotes survive product edits and deletes."""
    __tablename__ = "quote_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quote_request_id = Column(
        String(32),
        ForeignKey("quote_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(String(32), nullable=False)
    product_name = Column(String(255), nullable=False)  # Snapshot at submission time
    quantity = Column(Integer, nullable=False, default=1)

    quote_request = relationship("QuoteRequest", back_populates="items")
