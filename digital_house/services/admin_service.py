import hmac
import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from digital_house.config import settings
from digital_house.models.admin_verification import AdminVerification
from digital_house.models.media import MediaFile, MediaStatus
from digital_house.models.post import Post, PostReport, ReportStatus
from digital_house.models.user import User, UserStatus
from digital_house.models.user_profile import PendingProfileUpdate, ReviewStatus
from digital_house.services import email_services
from digital_house.services.auth_service import create_admin_token
from digital_house.utils.errors import NotFound, NotPending, Unauthorized, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_REJECT_REMARKS = "Rejected by admin"


def admin_login(email: str, password: str) -> dict:
    email = email.strip().lower()
    expected = settings.admin_accounts.get(email)
    if expected is None or not hmac.compare_digest(expected.encode(), password.encode()):
        logger.warning("Rejected admin login for %s", email)
        raise Unauthorized("Invalid credentials")
    return {"access_token": create_admin_token(email), "token_type": "bearer", "email": email}


def list_pending_users(db: Session) -> list[User]:
    return (
        db.query(User)
        .filter(User.status == UserStatus.PENDING.value)
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )


def list_users(db: Session, page: int, limit: int, status: str | None = None) -> dict:
    query = db.query(User)
    if status:
        normalized = status.strip().upper()
        if normalized not in UserStatus.__members__:
            raise ValidationError(f"Unknown status: {status}")
        query = query.filter(User.status == normalized)
    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {"users": users, "page": page, "limit": limit, "total": total}


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_verification_history(db: Session, user_id: int) -> list[AdminVerification]:
    return (
        db.query(AdminVerification)
        .filter(AdminVerification.user_id == user_id)
        .order_by(AdminVerification.verified_at.desc(), AdminVerification.id.desc())
        .all()
    )


def _decide(db: Session, user_id: int, decision: UserStatus, verified_by: str, remarks: str | None) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found.")
    if user.status != UserStatus.PENDING.value:
        raise NotPending("User is not pending approval.")

    now = datetime.utcnow()
    user.status = decision.value
    db.add(
        AdminVerification(
            user_id=user.id,
            decision=decision.value,
            verified_by=verified_by,
            verified_at=now,
            remarks=remarks,
            created_at=now,
        )
    )
    db.commit()
    db.refresh(user)
    logger.info("User id=%s %s by %s", user.id, decision.value.lower(), verified_by)
    return user


def approve_user(db: Session, user_id: int, verified_by: str, remarks: str | None = None) -> User:
    remarks = remarks.strip() if remarks and remarks.strip() else None
    user = _decide(db, user_id, UserStatus.APPROVED, verified_by, remarks)
    try:
        email_services.send_approval_email(user.email, user.full_name, remarks)
    except Exception:
        logger.exception("Failed to send approval email to %s", user.email)
    return user


def reject_user(db: Session, user_id: int, verified_by: str, remarks: str) -> User:
    cleaned = (remarks or "").strip()
    user = _decide(db, user_id, UserStatus.REJECTED, verified_by, cleaned or DEFAULT_REJECT_REMARKS)
    try:
        email_services.send_rejection_email(user.email, user.full_name, cleaned or None)
    except Exception:
        logger.exception("Failed to send rejection email to %s", user.email)
    return user


def get_dashboard_stats(db: Session) -> dict:
    by_status = dict(db.query(User.status, func.count(User.id)).group_by(User.status).all())
    return {
        "users": {
            "total": sum(by_status.values()),
            **{status.value.lower(): by_status.get(status.value, 0) for status in UserStatus},
        },
        "pending_profile_updates": db.query(PendingProfileUpdate)
        .filter(PendingProfileUpdate.status == ReviewStatus.PENDING.value)
        .count(),
        "pending_media": db.query(MediaFile).filter(MediaFile.status == MediaStatus.PENDING.value).count(),
        "pending_reports": db.query(PostReport).filter(PostReport.status == ReportStatus.PENDING.value).count(),
        "total_posts": db.query(Post).count(),
    }
