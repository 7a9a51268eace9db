# This project was developed with assistance from AI tools.
"""Caller identity schema."""

from intake_db.enums import UserRole
from pydantic import BaseModel, ConfigDict


class UserContext(BaseModel):
    """Injected by the identity dependency into every request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str = ""
    name: str = ""
