from datetime import datetime, timedelta

from jose import JWTError, jwt

from digital_house.config import settings
from digital_house.utils.errors import Unauthorized

ACCESS_TOKEN_TYPE = "access"
ADMIN_TOKEN_TYPE = "admin"


def _encode(claims: dict, expires_minutes: int) -> str:
    payload = dict(claims)
    payload["exp"] = datetime.utcnow() + timedelta(minutes=expires_minutes)
    payload["iat"] = datetime.utcnow()
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.ALGORITHM)


def create_access_token(user_id: int) -> str:
    return _encode(
        {"sub": str(user_id), "type": ACCESS_TOKEN_TYPE},
        settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def create_admin_token(email: str) -> str:
    return _encode(
        {"sub": email, "type": ADMIN_TOKEN_TYPE},
        settings.ADMIN_TOKEN_EXPIRE_MINUTES,
    )


def decode_token(token: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")
    if payload.get("type") != expected_type or not payload.get("sub"):
        raise Unauthorized("Invalid token payload")
    return payload
