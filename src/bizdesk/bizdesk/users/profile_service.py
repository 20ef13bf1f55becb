from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Optional

from PIL import Image

from ..common.datetime_utils import now_local
from ..core.constants import MAX_PROFILE_PICTURE_BYTES, PROFILE_PICTURE_PREFIX
from ..core.exceptions import NotFoundError, ValidationError
from ..storage.base import FileStorage, UploadedFile
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


def _extension(filename: str, image_format: Optional[str]) -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[1].lower()
    return (image_format or "png").lower()


class ProfileService:
    """Use case: a user's profile picture."""

    def __init__(self, users: UserRepository, storage: FileStorage):
        self._users = users
        self._storage = storage

    def _get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def upload_profile_picture(
        self,
        *,
        user_id: int,
        upload: UploadedFile,
        now: Optional[datetime] = None,
    ) -> User:
        user = self._get_user(user_id)

        if not (upload.content_type or "").startswith("image/"):
            raise ValidationError("File must be an image")
        data = upload.stream.read(MAX_PROFILE_PICTURE_BYTES + 1)
        if len(data) > MAX_PROFILE_PICTURE_BYTES:
            raise ValidationError("File size must be less than 5MB")

        try:
            with Image.open(io.BytesIO(data)) as img:
                image_format = img.format
                img.verify()
        except (OSError, SyntaxError, ValueError):
            raise ValidationError("File must be an image")

        timestamp = int((now or now_local()).timestamp() * 1000)
        path = f"{PROFILE_PICTURE_PREFIX}/{user.user_id}-{timestamp}.{_extension(upload.filename, image_format)}"
        stored = self._storage.save(path, io.BytesIO(data), upload.content_type)

        if user.profile_picture_path:
            self._delete_stored(user.profile_picture_path)

        self._users.update_fields(
            user.user_id, {"profile_picture_url": stored.url, "profile_picture_path": stored.path}
        )
        logger.info("Profile picture uploaded for user %s (%s bytes)", user.user_id, stored.size)
        return self._get_user(user.user_id)

    def _delete_stored(self, path: str) -> Optional[str]:
        try:
            self._storage.delete(path)
        except (OSError, ValidationError) as e:
            logger.warning("Could not delete profile picture %s: %s", path, e)
            return str(e)
        return None

    def delete_profile_picture(self, *, user_id: int) -> dict:
        """Remove the picture; storage failures are reported, the record is cleared regardless."""
        user = self._get_user(user_id)
        error = self._delete_stored(user.profile_picture_path) if user.profile_picture_path else None
        self._users.update_fields(user.user_id, {"profile_picture_url": None, "profile_picture_path": None})
        if error:
            return {"success": False, "error": error}
        return {"success": True}
