import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from digital_house.models.notification import Message, Notification
from digital_house.models.post import Comment, JobStatus, Post, PostLike, PostType
from digital_house.models.user import User
from digital_house.services import storage_service
from digital_house.services.post_service import approved_user_ids_in_community, author_payload
from digital_house.utils.errors import NotFound

logger = logging.getLogger(__name__)

HIGHLIGHT_LIMIT = 10


def _empty_counts() -> dict:
    return {
        "total_posts": 0,
        "open_jobs": 0,
        "marketplace_items": 0,
        "matrimony_profiles": 0,
        "helping_hand_requests": 0,
        "community_updates": 0,
    }


def get_quick_action_counts(db: Session, user_id: int) -> dict:
    """Module counters over posts by approved members of the viewer's community."""
    author_ids = approved_user_ids_in_community(db, user_id)
    if not author_ids:
        return _empty_counts()

    base = db.query(Post).filter(Post.user_id.in_(author_ids))
    return {
        "total_posts": base.count(),
        "open_jobs": base.filter(Post.post_type == PostType.JOB.value, Post.job_status == JobStatus.OPEN.value).count(),
        "marketplace_items": base.filter(Post.post_type == PostType.MARKETPLACE.value).count(),
        "matrimony_profiles": base.filter(Post.post_type == PostType.MATRIMONY.value).count(),
        "helping_hand_requests": base.filter(Post.post_type == PostType.HELP_REQUEST.value).count(),
        "community_updates": base.filter(Post.post_type == PostType.ANNOUNCEMENT.value).count(),
    }


def get_summary(db: Session, user_id: int) -> dict:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    unread_notifications = (
        db.query(Notification).filter(Notification.user_id == user_id, Notification.read_at.is_(None)).count()
    )
    unread_messages = (
        db.query(Message).filter(Message.recipient_id == user_id, Message.read_at.is_(None)).count()
    )
    user_info = author_payload(user)
    user_info.pop("id")
    return {
        "user": user_info,
        "quick_action_counts": get_quick_action_counts(db, user_id),
        "unread_notifications_count": unread_notifications,
        "unread_messages_count": unread_messages,
    }


def _counts_by_post(db: Session, model, post_ids: list[int]) -> dict[int, int]:
    if not post_ids:
        return {}
    rows = db.query(model.post_id, func.count(model.id)).filter(model.post_id.in_(post_ids)).group_by(model.post_id)
    return dict(rows.all())


def get_feed(db: Session, page: int, limit: int, user_id: int) -> dict:
    """Newest-first posts by approved members of the viewer's community."""
    author_ids = approved_user_ids_in_community(db, user_id)
    if not author_ids:
        return {"items": [], "page": page, "limit": limit, "total": 0}

    query = db.query(Post).filter(Post.user_id.in_(author_ids))
    total = query.count()
    posts = query.order_by(Post.created_at.desc(), Post.id.desc()).offset((page - 1) * limit).limit(limit).all()

    post_ids = [post.id for post in posts]
    likes = _counts_by_post(db, PostLike, post_ids)
    comments = _counts_by_post(db, Comment, post_ids)

    items = [
        {
            "post_id": post.id,
            "post_type": post.post_type,
            "title": post.title,
            "description": post.description,
            "media_url": storage_service.to_signed_url_if_r2(post.media_url),
            "created_at": post.created_at,
            "author": author_payload(post.author),
            "counts": {"likes": likes.get(post.id, 0), "comments": comments.get(post.id, 0)},
        }
        for post in posts
    ]
    return {"items": items, "page": page, "limit": limit, "total": total}


def _highlight_item(post: Post) -> dict:
    return {
        "post_id": post.id,
        "post_type": post.post_type,
        "title": post.title,
        "description": post.description,
        "media_url": storage_service.to_signed_url_if_r2(post.media_url),
        "created_at": post.created_at,
        "pinned": post.pinned,
        "urgent": post.urgent,
        "meetup_at": post.meetup_at,
    }


def get_highlights(db: Session, user_id: int) -> dict:
    author_ids = approved_user_ids_in_community(db, user_id)
    if not author_ids:
        return {"pinned_announcements": [], "upcoming_meetups": [], "urgent_help_requests": []}

    base = db.query(Post).filter(Post.user_id.in_(author_ids))
    pinned = (
        base.filter(Post.post_type == PostType.ANNOUNCEMENT.value, Post.pinned.is_(True))
        .order_by(Post.created_at.desc())
        .limit(HIGHLIGHT_LIMIT)
        .all()
    )
    meetups = (
        base.filter(Post.post_type == PostType.MEETUP.value, Post.meetup_at >= datetime.utcnow())
        .order_by(Post.meetup_at.asc())
        .limit(HIGHLIGHT_LIMIT)
        .all()
    )
    urgent = (
        base.filter(Post.post_type == PostType.HELP_REQUEST.value, Post.urgent.is_(True))
        .order_by(Post.created_at.desc())
        .limit(HIGHLIGHT_LIMIT)
        .all()
    )
    return {
        "pinned_announcements": [_highlight_item(post) for post in pinned],
        "upcoming_meetups": [_highlight_item(post) for post in meetups],
        "urgent_help_requests": [_highlight_item(post) for post in urgent],
    }
