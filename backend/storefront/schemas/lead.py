from datetime import datetime
from pydantic import EmailStr, Field, field_validator

from storefront.schemas.common import CamelModel
from storefront.schemas.validators import normalize_phone


class LeadCreate(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = None
    subject: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1, max_length=5000)

    @field_validator("phone", mode="before")
    @classmethod
    def check_phone(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return normalize_phone(value)


class Lead(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    subject: str
    message: str
    created_at: datetime
