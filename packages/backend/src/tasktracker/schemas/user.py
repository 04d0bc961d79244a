"""Pydantic schemas for users, login and registration."""

import uuid
from typing import Optional

from pydantic import BaseModel, Field

from tasktracker.schemas.base import CamelModel


class UserIdentity(CamelModel):
    """The resolved, presentable identity — never carries the password hash."""
    id: uuid.UUID
    name: str
    email: str
    avatar_url: Optional[str] = None

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in self.name.split() if part).upper()


class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=255)
    name: str = Field(..., max_length=100)
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str
