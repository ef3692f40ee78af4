"""S3-compatible object storage (Cloudflare R2) for member media.

The bucket stays private: clients upload with pre-signed PUT URLs and read
through pre-signed GET URLs. Credentials never leave the server.
"""
import logging
from functools import lru_cache
from urllib.parse import unquote, urlsplit

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from digital_house.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "digital-house"
UPLOAD_URL_EXPIRES_SECONDS = 900
SIGNED_GET_EXPIRES_SECONDS = 3600


class StorageNotConfigured(RuntimeError):
    pass


@lru_cache(maxsize=1)
def get_client():
    if not (settings.R2_ACCESS_KEY_ID and settings.R2_SECRET_ACCESS_KEY):
        raise StorageNotConfigured("R2 credentials not configured (R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY)")
    endpoint = settings.R2_ENDPOINT
    if not endpoint:
        if not settings.R2_ACCOUNT_ID:
            raise StorageNotConfigured("R2_ACCOUNT_ID or R2_ENDPOINT must be set")
        endpoint = f"https://{settings.R2_ACCOUNT_ID}.r2.cloudflarestorage.com"

    session = boto3.session.Session()
    return session.client(
        "s3",
        region_name="auto",
        endpoint_url=endpoint,
        aws_access_key_id=settings.R2_ACCESS_KEY_ID,
        aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )


def _bucket() -> str:
    if not settings.R2_BUCKET_NAME:
        raise StorageNotConfigured("R2_BUCKET_NAME not set")
    return settings.R2_BUCKET_NAME


def _join_path(*segments: str) -> str:
    cleaned = [str(segment).strip("/") for segment in segments if segment and str(segment).strip("/")]
    return "/".join(cleaned)


def build_key(*segments: str) -> str:
    return _join_path(KEY_PREFIX, *segments)


def get_presigned_put_url(key: str, content_type: str, expires_in: int = UPLOAD_URL_EXPIRES_SECONDS) -> str:
    return get_client().generate_presigned_url(
        "put_object",
        Params={"Bucket": _bucket(), "Key": key, "ContentType": content_type},
        ExpiresIn=expires_in,
    )


def get_presigned_get_url(key: str, expires_in: int = SIGNED_GET_EXPIRES_SECONDS) -> str:
    return get_client().generate_presigned_url(
        "get_object",
        Params={"Bucket": _bucket(), "Key": key},
        ExpiresIn=expires_in,
    )


def get_cdn_public_url(key: str) -> str:
    if not settings.R2_CDN_PUBLIC_URL:
        raise StorageNotConfigured("R2_CDN_PUBLIC_URL not set")
    return f"{settings.R2_CDN_PUBLIC_URL.rstrip('/')}/{key.lstrip('/')}"


def _decode(path: str) -> str:
    return unquote(path) if "%" in path else path


def extract_key(url: str) -> str | None:
    """Object key for a stored CDN URL, bare key or path; ``None`` for foreign URLs."""
    value = url.strip()
    cdn_base = (settings.R2_CDN_PUBLIC_URL or "").rstrip("/")
    if cdn_base and value.startswith(cdn_base):
        path = value[len(cdn_base):].split("?")[0].lstrip("/")
        return _decode(path) if path else None

    bare = value.lstrip("/")
    if bare.startswith(f"{KEY_PREFIX}/"):
        return _decode(bare)

    parts = urlsplit(value)
    if parts.scheme in ("http", "https"):
        path = parts.path.lstrip("/")
        if path.startswith(f"{KEY_PREFIX}/"):
            return _decode(path)
    return None


def to_signed_url_if_r2(url: str | None) -> str | None:
    """Turn a stored bucket URL into a signed GET URL; other URLs pass through unchanged."""
    if not url or not url.strip():
        return None
    key = extract_key(url)
    if not key:
        return url.strip()
    try:
        return get_presigned_get_url(key)
    except (StorageNotConfigured, BotoCoreError, ClientError) as exc:
        logger.warning("Signed GET failed for key=%s; returning stored URL: %s", key, exc)
        return url.strip()
