"""Profile API — edit name, email, password and avatar.

Learn: The body is multipart so an avatar file can ride along. The
password field is write-only: omitted or blank means "keep the current
one". Fields are validated before the avatar is written to disk, and a
new upload is removed again if the edit is then rejected. A replaced
avatar file is deleted once the new one is saved.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.dependencies import require_identity
from tasktracker.db.engine import get_db
from tasktracker.errors import EmailTakenError
from tasktracker.schemas.user import UserIdentity
from tasktracker.services.avatar_store import delete_avatar, save_avatar
from tasktracker.services.user_service import (
    UserService,
    check_password,
    clean_email,
    clean_name,
)

router = APIRouter(prefix="/profile")


@router.put("", response_model=UserIdentity)
async def update_profile(
    name: str = Form(""),
    email: str = Form(""),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    identity: UserIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    clean_name(name)
    clean_email(email)
    if password:
        check_password(password)

    avatar_url = None
    if avatar is not None and avatar.filename:
        avatar_url = await save_avatar(avatar)

    try:
        user = await UserService(db).update_profile(
            identity.id,
            name=name,
            email=email,
            password=password or None,
            avatar_url=avatar_url,
        )
    except EmailTakenError:
        await delete_avatar(avatar_url)
        raise HTTPException(status_code=409, detail="Email already registered")
    except Exception:
        await delete_avatar(avatar_url)
        raise

    if not user:
        # Deleted between session resolution and this write.
        await delete_avatar(avatar_url)
        raise HTTPException(status_code=401, detail="Authentication required")

    if avatar_url and identity.avatar_url != avatar_url:
        await delete_avatar(identity.avatar_url)
    return user
