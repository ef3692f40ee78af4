import logging
import os
import time
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from digital_house.models.post import JobStatus, Post, PostLike, PostType, SavedPost
from digital_house.models.user import User, UserStatus
from digital_house.models.user_profile import PendingProfileUpdate, ReviewStatus, UserProfile
from digital_house.schemas.profile import ActivityTab, ProfileUpdate
from digital_house.services import storage_service
from digital_house.services.profile_sections import (
    IMMEDIATE_SECTIONS,
    JSON_SECTIONS,
    RESTRICTED_SECTIONS,
    SECTION_ALLOWED_KEYS,
    compute_completion,
    merge_section,
    normalize_json_column,
)
from digital_house.utils.errors import Conflict, NotFound, ValidationError

logger = logging.getLogger(__name__)

HOROSCOPE_ALLOWED_TYPES = {"application/pdf", "image/jpeg", "image/png"}
HOROSCOPE_MAX_BYTES = 10 * 1024 * 1024

# Non-restricted User columns editable through PUT /profile/me.
PROFILE_FIELD_MAP = {
    "profile_image": "profile_photo",
    "city": "city",
    "district": "district",
    "education": "education",
    "job_title": "job_title",
    "company_name": "company",
    "work_location": "work_location",
    "skills": "skills",
}

POST_TYPE_LABELS = {
    PostType.ANNOUNCEMENT.value: "Announcement",
    PostType.JOB.value: "Job",
    PostType.MARKETPLACE.value: "Marketplace",
    PostType.MATRIMONY.value: "Matrimony",
    PostType.ACHIEVEMENT.value: "Achievement",
    PostType.MEETUP.value: "Meetup",
    PostType.HELP_REQUEST.value: "Help Request",
    PostType.ENTERTAINMENT.value: "Entertainment",
}


def mask_mobile(mobile: str | None) -> str:
    """9876543210 -> XXXXXX3210"""
    if not mobile or not mobile.strip():
        return "-"
    value = mobile.strip()
    if len(value) <= 4:
        return "XXXX"
    return "XXXXXX" + value[-4:]


def mask_email(email: str | None) -> str:
    """gopal@gmail.com -> go****@gmail.com"""
    if not email or "@" not in email:
        return "-"
    local, _, domain = email.partition("@")
    if len(local) <= 2:
        return f"****@{domain}"
    return f"{local[:2]}****@{domain}"


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def get_or_create_profile(db: Session, user_id: int) -> UserProfile:
    profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    if profile:
        return profile
    profile = UserProfile(user_id=user_id)
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        # Created concurrently by another request.
        db.rollback()
        return db.query(UserProfile).filter(UserProfile.user_id == user_id).one()
    db.refresh(profile)
    return profile


def load_sections(profile: UserProfile | None) -> dict[str, dict | None]:
    return {
        name: normalize_json_column(getattr(profile, name, None), SECTION_ALLOWED_KEYS[name])
        for name in JSON_SECTIONS
    }


def basic_section(user: User) -> dict:
    return {
        "full_name": user.full_name,
        "date_of_birth": user.dob.isoformat() if user.dob else None,
        "email": user.email,
        "mobile": user.mobile,
        "gender": user.gender,
        "native_district": None,
        "role": user.community_role,
    }


def _review_chip(db: Session, user_id: int, section: str) -> dict | None:
    latest = (
        db.query(PendingProfileUpdate)
        .filter(PendingProfileUpdate.user_id == user_id, PendingProfileUpdate.section == section)
        .order_by(PendingProfileUpdate.submitted_at.desc(), PendingProfileUpdate.id.desc())
        .all()
    )
    if not latest:
        return None
    if any(row.status == ReviewStatus.PENDING.value for row in latest):
        return {"status": ReviewStatus.PENDING.value, "admin_remarks": None}
    last = latest[0]
    if last.status == ReviewStatus.REJECTED.value:
        return {"status": last.status, "admin_remarks": last.admin_remarks}
    return {"status": last.status, "admin_remarks": None}


def get_profile(db: Session, user_id: int) -> dict:
    user = _get_user(db, user_id)
    profile = get_or_create_profile(db, user_id)
    sections = load_sections(profile)
    basic = basic_section(user)
    completion = compute_completion(basic, sections)
    stats = get_profile_stats(db, user_id)

    return {
        "id": user.id,
        "name": user.full_name,
        "profile_image": user.profile_photo,
        "verified": user.status == UserStatus.APPROVED.value,
        "member_since": str(user.created_at.year) if user.created_at else "-",
        "personal_info": {
            "masked_mobile": mask_mobile(user.mobile),
            "masked_email": mask_email(user.email),
            "gender": user.gender,
            "dob": user.dob.isoformat() if user.dob else None,
            "blood_group": user.blood_group,
            "city": user.city,
            "district": user.district,
        },
        "professional_info": {
            "education": user.education,
            "job_title": user.job_title or user.occupation,
            "company_name": user.company,
            "work_location": user.work_location or user.location,
            "skills": user.skills,
        },
        "stats": {
            "total_posts": stats["total_posts"],
            "jobs_posted": stats["jobs_posted"],
            "marketplace_items": stats["marketplace_listings"],
            "help_requests": stats["helping_hand_requests"],
        },
        "completion_percentage": completion.percentage,
        "show_matrimony": completion.show_matrimony,
        "show_business": completion.show_business,
        "sections": {"basic": basic, **sections},
        "pending_matrimony": _review_chip(db, user_id, "MATRIMONY"),
        "pending_business": _review_chip(db, user_id, "BUSINESS"),
    }


def update_profile(db: Session, user_id: int, update: ProfileUpdate) -> dict:
    """Apply non-restricted field edits immediately. Account status is left unchanged."""
    user = _get_user(db, user_id)
    changes = update.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(user, PROFILE_FIELD_MAP[field], value or None)
    if changes:
        db.commit()
    return get_profile(db, user_id)


def get_profile_stats(db: Session, user_id: int) -> dict:
    base = db.query(Post).filter(Post.user_id == user_id)
    return {
        "total_posts": base.count(),
        "jobs_posted": base.filter(Post.post_type == PostType.JOB.value).count(),
        "marketplace_listings": base.filter(Post.post_type == PostType.MARKETPLACE.value).count(),
        "helping_hand_requests": base.filter(Post.post_type == PostType.HELP_REQUEST.value).count(),
        "joined_communities": 0,
    }


def _activity_item(post: Post) -> dict:
    closed = post.post_type == PostType.JOB.value and post.job_status == JobStatus.CLOSED.value
    return {
        "post_id": post.id,
        "title": post.title,
        "post_type": POST_TYPE_LABELS.get(post.post_type, post.post_type),
        "created_at": post.created_at,
        "status": "Closed" if closed else "Active",
    }


def get_profile_activity(db: Session, user_id: int, tab: ActivityTab, page: int, limit: int) -> dict:
    if tab == ActivityTab.my:
        query = db.query(Post).filter(Post.user_id == user_id)
    elif tab == ActivityTab.saved:
        query = db.query(Post).join(SavedPost, SavedPost.post_id == Post.id).filter(SavedPost.user_id == user_id)
    else:
        query = db.query(Post).join(PostLike, PostLike.post_id == Post.id).filter(PostLike.user_id == user_id)

    total = query.count()
    posts = query.order_by(Post.created_at.desc(), Post.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "items": [_activity_item(post) for post in posts],
        "page": page,
        "limit": limit,
        "total": total,
    }


def _check_scalars(payload: dict) -> None:
    for key, value in payload.items():
        if isinstance(value, (dict, list)):
            raise ValidationError(f"Field '{key}' must be a single value")


def _update_basic(db: Session, user: User, payload: dict) -> None:
    if "full_name" in payload:
        full_name = str(payload["full_name"] or "").strip()
        if not full_name:
            raise ValidationError("full_name cannot be empty")
        user.full_name = full_name[:120]
    if "date_of_birth" in payload:
        raw = payload["date_of_birth"]
        if raw:
            try:
                user.dob = date.fromisoformat(str(raw)[:10])
            except ValueError:
                raise ValidationError("date_of_birth must be YYYY-MM-DD")
        else:
            user.dob = None
    if "mobile" in payload:
        mobile = str(payload["mobile"]).strip() if payload["mobile"] is not None else None
        mobile = mobile or None
        if mobile and len(mobile) > 20:
            raise ValidationError("mobile must be at most 20 characters")
        if mobile and db.query(User).filter(User.mobile == mobile, User.id != user.id).first():
            raise ValidationError("An account with this mobile number already exists.")
        user.mobile = mobile
    if "gender" in payload:
        gender = payload["gender"]
        user.gender = str(gender).strip() or None if gender is not None else None

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("An account with this mobile number already exists.")


def _update_immediate_section(db: Session, user_id: int, section: str, payload: dict) -> None:
    profile = get_or_create_profile(db, user_id)
    cleaned = merge_section(getattr(profile, section), payload, SECTION_ALLOWED_KEYS[section])
    setattr(profile, section, cleaned)
    db.commit()


def stage_restricted_update(db: Session, user_id: int, section: str, payload: dict) -> PendingProfileUpdate:
    """Merge an edit into the user's open PENDING row for ``section`` or open a new one.

    The live profile section is not touched; it only changes on approval.
    The partial unique index on (user_id, section) for PENDING rows turns a
    concurrent first submission into an IntegrityError, retried once as a merge.
    """
    allowed_keys = SECTION_ALLOWED_KEYS[section]
    section_key = section.upper()

    for attempt in range(2):
        pending = (
            db.query(PendingProfileUpdate)
            .filter(
                PendingProfileUpdate.user_id == user_id,
                PendingProfileUpdate.section == section_key,
                PendingProfileUpdate.status == ReviewStatus.PENDING.value,
            )
            .first()
        )
        now = datetime.utcnow()
        cleaned = merge_section(pending.data if pending else None, payload, allowed_keys)
        if pending:
            pending.data = cleaned
            pending.status = ReviewStatus.PENDING.value
            pending.submitted_at = now
        else:
            pending = PendingProfileUpdate(
                user_id=user_id,
                section=section_key,
                data=cleaned,
                status=ReviewStatus.PENDING.value,
                submitted_at=now,
            )
            db.add(pending)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt:
                raise Conflict("Another update for this section is being saved. Please retry.")
            continue
        db.refresh(pending)
        logger.info("Staged %s update id=%s for user_id=%s", section_key, pending.id, user_id)
        return pending


def update_profile_section(db: Session, user_id: int, section: str, payload: dict) -> dict:
    """Apply one section edit.

    basic edits User columns; community/personal/family merge into the live
    profile; matrimony/business are staged for admin approval.
    """
    user = _get_user(db, user_id)
    if not isinstance(payload, dict):
        raise ValidationError("Section payload must be an object")
    _check_scalars(payload)

    if section == "basic":
        _update_basic(db, user, payload)
    elif section in IMMEDIATE_SECTIONS:
        _update_immediate_section(db, user_id, section, payload)
    elif section in RESTRICTED_SECTIONS:
        stage_restricted_update(db, user_id, section, payload)
    else:
        raise ValidationError(f"Unknown profile section: {section}")
    return get_profile(db, user_id)


def get_horoscope_upload_url(user_id: int, file_name: str, file_type: str, file_size: int) -> dict:
    mime = file_type.strip().lower()
    if mime not in HOROSCOPE_ALLOWED_TYPES:
        raise ValidationError("Horoscope must be PDF or image (jpeg, png)")
    if file_size > HOROSCOPE_MAX_BYTES:
        raise ValidationError("Horoscope file must be 10 MB or smaller")

    extension = os.path.splitext(file_name)[1].lower() or (".pdf" if "pdf" in mime else ".jpg")
    key = storage_service.build_key("profile", str(user_id), "horoscope", f"{int(time.time() * 1000)}{extension}")
    return {
        "upload_url": storage_service.get_presigned_put_url(key, mime),
        "public_url": storage_service.get_cdn_public_url(key),
    }
