"""Admin review queue for staged matrimony/business edits.

Approval is the only path by which restricted-section data reaches the live
profile, and it replaces the live section wholesale with the staged data.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from digital_house.models.user import User
from digital_house.models.user_profile import PendingProfileUpdate, ReviewStatus
from digital_house.services.profile_sections import SECTION_ALLOWED_KEYS, normalize_json_column
from digital_house.services.profile_service import get_or_create_profile
from digital_house.utils.errors import NotFound, NotPending

logger = logging.getLogger(__name__)

DEFAULT_REJECT_REMARKS = "Rejected by admin"


def _section_name(update: PendingProfileUpdate) -> str:
    return update.section.lower()


def list_pending_profile_updates(db: Session) -> list[dict]:
    """PENDING rows, oldest submission first, with each user's current approved data."""
    rows = (
        db.query(PendingProfileUpdate, User)
        .join(User, User.id == PendingProfileUpdate.user_id)
        .filter(PendingProfileUpdate.status == ReviewStatus.PENDING.value)
        .order_by(PendingProfileUpdate.submitted_at.asc(), PendingProfileUpdate.id.asc())
        .all()
    )
    items = []
    for update, user in rows:
        section = _section_name(update)
        allowed_keys = SECTION_ALLOWED_KEYS[section]
        live = getattr(user.profile, section, None) if user.profile else None
        items.append(
            {
                "id": update.id,
                "user_id": update.user_id,
                "section": update.section,
                "data": normalize_json_column(update.data, allowed_keys) or {},
                "current_data": normalize_json_column(live, allowed_keys),
                "status": update.status,
                "submitted_at": update.submitted_at,
                "user": {
                    "id": user.id,
                    "full_name": user.full_name,
                    "email": user.email,
                    "community": user.community,
                    "status": user.status,
                },
            }
        )
    return items


def _get_pending(db: Session, update_id: int) -> PendingProfileUpdate:
    update = db.get(PendingProfileUpdate, update_id)
    if not update:
        raise NotFound("Pending update not found")
    if update.status != ReviewStatus.PENDING.value:
        raise NotPending("Update is not pending")
    return update


def approve_profile_update(
    db: Session, update_id: int, admin_id: str, remarks: str | None = None
) -> PendingProfileUpdate:
    update = _get_pending(db, update_id)
    section = _section_name(update)

    profile = get_or_create_profile(db, update.user_id)
    staged = update.data if isinstance(update.data, dict) else normalize_json_column(update.data)
    setattr(profile, section, dict(staged or {}))

    update.status = ReviewStatus.APPROVED.value
    update.reviewed_at = datetime.utcnow()
    update.reviewed_by = admin_id
    update.admin_remarks = remarks.strip() if remarks and remarks.strip() else None
    db.commit()
    db.refresh(update)
    logger.info("Profile update id=%s (%s) approved by %s", update.id, update.section, admin_id)
    return update


def reject_profile_update(db: Session, update_id: int, admin_id: str, remarks: str) -> PendingProfileUpdate:
    update = _get_pending(db, update_id)

    # Staged data stays on the row for audit; it is never copied to the profile.
    update.status = ReviewStatus.REJECTED.value
    update.reviewed_at = datetime.utcnow()
    update.reviewed_by = admin_id
    update.admin_remarks = (remarks or "").strip() or DEFAULT_REJECT_REMARKS
    db.commit()
    db.refresh(update)
    logger.info("Profile update id=%s (%s) rejected by %s", update.id, update.section, admin_id)
    return update
