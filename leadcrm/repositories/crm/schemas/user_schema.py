"""Pydantic schemas for users."""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from leadcrm.services.leads.statuses import Role


class UserCreate(BaseModel):
    """Payload required to create a user."""

    user_id: Optional[str] = None
    user_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=80)]
    password: Annotated[str, StringConstraints(min_length=1, max_length=72)]
    email: Optional[Annotated[str, StringConstraints(max_length=160)]] = None
    mobile: Optional[Annotated[str, StringConstraints(max_length=20)]] = None
    role: Role = Role.USER


class UserResponse(BaseModel):
    """Response model for a stored user; never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    user_name: str
    email: Optional[str] = None
    mobile: Optional[str] = None
    role: str
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
