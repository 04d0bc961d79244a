"""User service — accounts, credentials and profile edits.

Learn: Validation lives here rather than in pydantic constraints so that
the routes can answer with a field-level 400 ({"detail", "field"}) the
dashboard shows inline, instead of FastAPI's generic 422 list.
"""

import re
import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.password import MIN_PASSWORD_LENGTH, hash_password, verify_password
from tasktracker.db.models import User
from tasktracker.errors import EmailTakenError, FieldValidationError

logger = structlog.get_logger()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ─── Field validation ───────────────────────────────────


def clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise FieldValidationError("name", "Name is required")
    if len(name) > 100:
        raise FieldValidationError("name", "Name must be at most 100 characters")
    return name


def clean_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not _EMAIL_RE.match(email) or len(email) > 255:
        raise FieldValidationError("email", "Enter a valid email address")
    return email


def check_password(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise FieldValidationError(
            "password",
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    return password


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Read ────────────────────────────────────────────

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalars().first()

    # ─── Register / login ───────────────────────────────

    async def create_user(self, name: str, email: str, password: str) -> User:
        """Create an account.

        Raises:
            FieldValidationError: if a field is missing or malformed
            EmailTakenError: if the email is already registered
        """
        name = clean_name(name)
        email = clean_email(email)
        check_password(password)

        if await self.get_user_by_email(email):
            raise EmailTakenError(email)

        user = User(name=name, email=email, password_hash=hash_password(password))
        self.db.add(user)
        await self._commit_unique_email(email)
        logger.info("users.registered", user_id=str(user.id))
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user if email and password match, else None."""
        user = await self.get_user_by_email(email or "")
        if not user or not verify_password(password or "", user.password_hash):
            return None
        return user

    # ─── Profile ────────────────────────────────────────

    async def update_profile(
        self,
        user_id: uuid.UUID,
        name: str,
        email: str,
        password: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Optional[User]:
        """Apply a profile edit.

        A blank password leaves the stored hash untouched; avatar_url is
        only replaced when a new upload was stored.

        Raises:
            FieldValidationError: if a field is missing or malformed
            EmailTakenError: if another account already uses the email
        """
        name = clean_name(name)
        email = clean_email(email)
        if password:
            check_password(password)

        user = await self.get_user(user_id)
        if not user:
            return None

        if email != user.email:
            other = await self.get_user_by_email(email)
            if other and other.id != user.id:
                raise EmailTakenError(email)

        user.name = name
        user.email = email
        if password:
            user.password_hash = hash_password(password)
        if avatar_url:
            user.avatar_url = avatar_url

        await self._commit_unique_email(email)
        logger.info(
            "users.profile_updated",
            user_id=str(user_id),
            password_changed=bool(password),
            avatar_changed=bool(avatar_url),
        )
        return user

    async def _commit_unique_email(self, email: str) -> None:
        """Commit, turning a lost race on the unique email index into EmailTakenError."""
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise EmailTakenError(email)
