"""One-time email codes for member login.

Codes are 6 digits, stored only as a peppered hash bound to the member's
email, valid for ``OTP_EXPIRES_MINUTES`` and usable once. Only the most
recently issued row for a user is ever consulted; issuing a new row marks
any older unused rows as used so at most one code is valid at a time.
"""
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from digital_house.config import settings
from digital_house.models.otp import Otp
from digital_house.models.user import User
from digital_house.services import email_services
from digital_house.utils.errors import (
    NotFound,
    OtpAlreadyUsed,
    OtpDeliveryError,
    OtpExpired,
    OtpInvalid,
    OtpNotFound,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtpIssueResult:
    sent: bool
    message: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_otp() -> str:
    return str(100000 + secrets.randbelow(900000))


def hash_email_otp(email: str, otp: str) -> str:
    material = f"{settings.OTP_HASH_PEPPER}:{normalize_email(email)}:{otp}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def latest_otp(db: Session, user_id: int) -> Otp | None:
    return db.query(Otp).filter(Otp.user_id == user_id).order_by(Otp.id.desc()).first()


def create_and_send_otp(db: Session, user: User) -> OtpIssueResult:
    email = normalize_email(user.email)
    now = datetime.utcnow()

    last = latest_otp(db, user.id)
    if last and (now - last.created_at).total_seconds() < settings.OTP_RESEND_COOLDOWN_SECONDS:
        logger.info("OTP cooldown active for user_id=%s; not sending", user.id)
        return OtpIssueResult(sent=False, message="OTP recently sent. Please wait before requesting again.")

    code = generate_otp()
    db.execute(
        update(Otp)
        .where(Otp.user_id == user.id, Otp.is_used.is_(False))
        .values(is_used=True)
    )
    record = Otp(
        user_id=user.id,
        otp_hash=hash_email_otp(email, code),
        expires_at=now + timedelta(minutes=settings.OTP_EXPIRES_MINUTES),
        is_used=False,
        created_at=now,
    )
    db.add(record)
    db.flush()

    if settings.LOG_OTP_FOR_DEV:
        logger.warning("[dev] OTP for %s is %s", email, code)

    try:
        email_services.send_otp_email(email, code, settings.OTP_EXPIRES_MINUTES)
    except Exception as exc:
        # Nothing is persisted, so the member can retry without waiting out the cooldown.
        db.rollback()
        logger.error("Failed to send OTP email to %s: %s", email, exc)
        raise OtpDeliveryError() from exc

    db.commit()
    logger.info("OTP issued for user_id=%s otp_id=%s", user.id, record.id)
    return OtpIssueResult(sent=True, message="OTP sent to your email.")


def verify_otp_for_user(db: Session, user_id: int, email: str, otp: str) -> User:
    record = latest_otp(db, user_id)
    if not record:
        raise OtpNotFound()
    if record.is_used:
        raise OtpAlreadyUsed()
    if record.expires_at < datetime.utcnow():
        raise OtpExpired()

    expected_hash = hash_email_otp(email, otp)
    if not hmac.compare_digest(expected_hash, record.otp_hash):
        raise OtpInvalid()

    claimed = db.execute(
        update(Otp)
        .where(Otp.id == record.id, Otp.is_used.is_(False))
        .values(is_used=True)
    )
    if claimed.rowcount != 1:
        db.rollback()
        raise OtpAlreadyUsed()

    user = db.get(User, user_id)
    if not user:
        db.rollback()
        raise NotFound("User not found.")

    db.commit()
    db.refresh(record)
    return user
