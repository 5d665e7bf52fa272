"""User model definitions."""
from pydantic import BaseModel, EmailStr, Field


class User(BaseModel):
    """Internal user from the user directory."""

    id: str = Field(alias="_id", serialization_alias="id")
    email: EmailStr
    name: str = ""

    model_config = {"populate_by_name": True}

