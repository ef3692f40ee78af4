import hmac
import logging
import re

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from digital_house.config import settings
from digital_house.database import get_db
from digital_house.models.user import User
from digital_house.services.auth_service import ACCESS_TOKEN_TYPE, ADMIN_TOKEN_TYPE, decode_token
from digital_house.utils.errors import Forbidden, ServiceError, Unauthorized

logger = logging.getLogger(__name__)

API_KEY_ADMIN_ID = "admin-api-key"
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f\ufeff]")
_NON_HEX = re.compile(r"[^a-fA-F0-9]")


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(settings.optional_bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not credentials or not credentials.credentials:
        raise Unauthorized("Unauthorized")
    payload = decode_token(credentials.credentials, ACCESS_TOKEN_TYPE)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token payload")

    user = db.get(User, user_id)
    if not user:
        raise Unauthorized("User not found")
    if not user.is_approved:
        raise Forbidden("Account not approved")
    return user


def normalize_key(value: str) -> str:
    """Strip line endings, BOM and other control characters pasted along with a key."""
    return _CONTROL_CHARS.sub("", str(value)).strip()


def normalize_hex_key(value: str) -> str:
    """For 64-char hex keys, compare on hex characters only."""
    hex_only = _NON_HEX.sub("", value)
    return hex_only.lower() if len(hex_only) == 64 else ""


def admin_key_matches(candidate: str, expected: str) -> bool:
    candidate = normalize_key(candidate)
    expected = normalize_key(expected)
    if not candidate or not expected:
        return False
    if hmac.compare_digest(candidate.encode(), expected.encode()):
        return True
    candidate_hex = normalize_hex_key(candidate)
    expected_hex = normalize_hex_key(expected)
    return bool(candidate_hex and expected_hex) and hmac.compare_digest(candidate_hex, expected_hex)


def get_current_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(settings.optional_bearer_scheme),
) -> str:
    """Admin identity from an admin JWT, falling back to the shared ADMIN_API_KEY."""
    bearer = credentials.credentials if credentials else None
    if bearer:
        try:
            return decode_token(bearer, ADMIN_TOKEN_TYPE)["sub"]
        except Unauthorized:
            pass

    expected = settings.ADMIN_API_KEY
    if not expected:
        raise ServiceError(
            "Admin API key not configured. Set ADMIN_API_KEY in .env",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    header_key = normalize_key(request.headers.get("x-admin-key") or "")
    key = header_key or bearer
    if key and admin_key_matches(key, expected):
        return API_KEY_ADMIN_ID

    logger.warning(
        "Admin auth rejected: header present=%s received length=%s expected length=%s",
        bool(header_key or bearer),
        len(normalize_key(key)) if key else 0,
        len(normalize_key(expected)),
    )
    raise Unauthorized("Unauthorized. Use header X-Admin-Key: <your key> or Authorization: Bearer <your key>")
