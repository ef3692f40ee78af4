"""Pre-signed upload URLs and the media moderation queue.

File bytes never pass through the API: clients PUT directly to object storage
and store the returned public URL on their post or profile.
"""
import logging
import os
import re
import secrets
import time

from sqlalchemy.orm import Session

from digital_house.models.media import MediaFile, MediaModule, MediaStatus
from digital_house.services import storage_service
from digital_house.utils.errors import NotFound, NotPending, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png"}
ALLOWED_VIDEO_TYPES = {"video/mp4"}
IMAGE_MAX_BYTES = 5 * 1024 * 1024
VIDEO_MAX_BYTES = 15 * 1024 * 1024

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def infer_file_kind(mime: str) -> str:
    mime = mime.strip().lower()
    if mime in ALLOWED_IMAGE_TYPES:
        return "image"
    if mime in ALLOWED_VIDEO_TYPES:
        return "video"
    raise ValidationError("Invalid fileType: images (jpg, jpeg, png) or videos (mp4) only")


def unique_file_name(original_name: str) -> str:
    ext = os.path.splitext(original_name)[1].lower() or ".bin"
    return f"{int(time.time() * 1000):x}_{secrets.token_hex(4)}{ext}"


def media_key(module: MediaModule, user_id: int, file_name: str) -> str:
    safe_name = _UNSAFE_NAME_CHARS.sub("_", os.path.basename(file_name))
    if module == MediaModule.profile:
        return storage_service.build_key("profile", str(user_id), safe_name)
    return storage_service.build_key("posts", module.value, safe_name)


def generate_upload_url(
    db: Session, user_id: int, file_name: str, file_type: str, file_size: int, module: MediaModule
) -> dict:
    mime = file_type.strip().lower()
    kind = infer_file_kind(mime)
    if kind == "image" and file_size > IMAGE_MAX_BYTES:
        raise ValidationError("Image size exceeds 5 MB")
    if kind == "video" and file_size > VIDEO_MAX_BYTES:
        raise ValidationError("Video size exceeds 15 MB")

    key = media_key(module, user_id, unique_file_name(file_name))
    upload_url = storage_service.get_presigned_put_url(key, mime)
    public_url = storage_service.get_cdn_public_url(key)

    media = MediaFile(
        user_id=user_id,
        module=module.value,
        file_url=public_url,
        file_type=kind,
        status=MediaStatus.PENDING.value,
    )
    db.add(media)
    db.commit()
    db.refresh(media)
    logger.info("Upload URL issued for user_id=%s module=%s media_id=%s", user_id, module.value, media.id)
    return {"upload_url": upload_url, "public_url": public_url, "key": key, "media_file_id": media.id}


def list_pending_media(db: Session) -> list[dict]:
    rows = (
        db.query(MediaFile)
        .filter(MediaFile.status == MediaStatus.PENDING.value)
        .order_by(MediaFile.created_at.desc(), MediaFile.id.desc())
        .all()
    )
    return [
        {
            "id": row.id,
            "user_id": row.user_id,
            "module": row.module,
            "file_url": row.file_url,
            "file_type": row.file_type,
            "created_at": row.created_at,
        }
        for row in rows
    ]


def _set_status(db: Session, media_id: int, new_status: MediaStatus) -> MediaFile:
    media = db.get(MediaFile, media_id)
    if not media:
        raise NotFound("Media not found")
    if media.status != MediaStatus.PENDING.value:
        raise NotPending("Media is not pending")
    media.status = new_status.value
    db.commit()
    db.refresh(media)
    logger.info("Media id=%s marked %s", media_id, new_status.value)
    return media


def approve_media(db: Session, media_id: int) -> MediaFile:
    return _set_status(db, media_id, MediaStatus.APPROVED)


def reject_media(db: Session, media_id: int) -> MediaFile:
    return _set_status(db, media_id, MediaStatus.REJECTED)
