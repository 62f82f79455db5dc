from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True


class CreatedResponse(BaseModel):
    message: str
    id: str


class MessageResponse(BaseModel):
    message: str
