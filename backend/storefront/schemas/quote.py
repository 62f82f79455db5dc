from datetime import datetime
from pydantic import EmailStr, Field, field_validator

from storefront.schemas.common import CamelModel
from storefront.schemas.product import _parse_quantity
from storefront.schemas.validators import normalize_phone


class QuoteItemCreate(CamelModel):
    """A requested line. Any client-supplied name is ignored."""
    id: str = Field(min_length=1)
    quantity: int = 1

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("quantity", mode="before")
    @classmethod
    def fallback_quantity(cls, value):
        return _parse_quantity(value)


class QuoteCreate(CamelModel):
    full_name: str = Field(min_length=1, max_length=200)
    company_name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: str = Field(min_length=1)
    additional_notes: str | None = Field(default=None, max_length=5000)
    items: list[QuoteItemCreate] = Field(min_length=1)

    @field_validator("phone", mode="before")
    @classmethod
    def check_phone(cls, value):
        if isinstance(value, str) and not value.strip():
            return value
        return normalize_phone(value)


class QuoteItem(CamelModel):
    id: int
    product_id: str
    product_name: str
    quantity: int


class QuoteRequest(CamelModel):
    id: str
    full_name: str
    company_name: str
    email: str
    phone: str
    additional_notes: str | None = None
    created_at: datetime
    items: list[QuoteItem] = []
