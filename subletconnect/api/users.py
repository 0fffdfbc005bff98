"""
SubletConnect: Users API

Account CRUD, lookup by identity-provider subject, and profile pictures.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.config import get_settings
from subletconnect.database import get_db
from subletconnect.errors import UserNotFound
from subletconnect.models.account import Account
from subletconnect.schemas.account import AccountCreate, AccountResponse, AccountUpdate
from subletconnect.schemas.common import StatusMessage
from subletconnect.schemas.listing import ImageUploadResponse
from subletconnect.services.account_service import AccountService
from subletconnect.utils.storage import image_object_path, upload_file, validate_image

logger = structlog.get_logger("subletconnect.api.users")

router = APIRouter()


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def create_user(
    payload: AccountCreate,
    db: AsyncSession = Depends(get_db),
) -> Account:
    return await AccountService(db).create(payload)


@router.get(
    "/identity/{identity_ref}",
    response_model=AccountResponse,
    summary="Get an account by identity-provider subject",
)
async def get_user_by_identity(
    identity_ref: str,
    db: AsyncSession = Depends(get_db),
) -> Account:
    account = await AccountService(db).get_by_identity(identity_ref)
    if account is None:
        raise UserNotFound(f"No account linked to identity {identity_ref}.")
    return account


@router.get(
    "/{user_id}",
    response_model=AccountResponse,
    summary="Get an account",
)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Account:
    return await AccountService(db).get_or_raise(user_id)


@router.patch(
    "/{user_id}",
    response_model=AccountResponse,
    summary="Update an account",
)
async def update_user(
    user_id: uuid.UUID,
    payload: AccountUpdate,
    db: AsyncSession = Depends(get_db),
) -> Account:
    """Partial update; switching to ``looking`` is refused while the account
    still owns listings."""
    return await AccountService(db).update(user_id, payload)


@router.delete(
    "/{user_id}",
    response_model=StatusMessage,
    summary="Delete an account and everything it owns",
)
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> StatusMessage:
    await AccountService(db).delete(user_id)
    return StatusMessage(message=f"User {user_id} deleted")


@router.post(
    "/{user_id}/picture",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a profile picture",
)
async def upload_profile_picture(
    user_id: uuid.UUID,
    image: UploadFile = File(..., description="JPEG, PNG, GIF or WebP"),
    db: AsyncSession = Depends(get_db),
) -> ImageUploadResponse:
    """Store the image in GCS and make it the account's profile picture."""
    log = logger.bind(user_id=str(user_id))
    service = AccountService(db)
    account = await service.get_or_raise(user_id)

    file_bytes = await image.read()
    content_type = validate_image(
        file_bytes, image.content_type, get_settings().PROFILE_IMAGE_MAX_MB
    )
    path = image_object_path("profiles", user_id, content_type)
    url = upload_file(path, file_bytes, content_type=content_type)
    log.info("profile_picture_uploaded", gcs_path=path, size=len(file_bytes))

    account.profile_picture = url
    await db.flush()
    return ImageUploadResponse(url=url, images=[url])
