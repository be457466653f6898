"""Shared schema configuration."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Schema whose JSON keys are camelCase; snake_case is accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageResponse(CamelModel):
    """Generic acknowledgement."""

    success: bool = True
    message: str


class UserSummary(CamelModel):
    """Denormalized view of a related user."""

    id: int
    name: str
    email: str
    designation: str | None = None
    department: str | None = None
