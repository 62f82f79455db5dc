from sqlalchemy import Column, String, DateTime, Text
from storefront.database import Base
from storefront.models.base import new_id, utcnow


class Lead(Base):
    """Contact form submission. Never updated after creation."""
    __tablename__ = "leads"

    id = Column(String(32), primary_key=True, default=new_id)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
