"""Community posts: visibility, likes, comments, saves and reports.

A post is only visible to members whose ``community`` equals the author's
(members without a community share one bucket). Out-of-community posts are
reported as missing rather than forbidden so their existence does not leak.
Like/save/report uniqueness is enforced by unique constraints; the
application-level existence checks only choose the response.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from digital_house.models.notification import Notification
from digital_house.models.post import Comment, Post, PostLike, PostReport, SavedPost
from digital_house.models.user import User, UserStatus
from digital_house.schemas.post import PostCreate, PostUpdate
from digital_house.services import storage_service
from digital_house.utils.errors import Conflict, Forbidden, NotFound, ValidationError

logger = logging.getLogger(__name__)

TITLE_SNIPPET_LENGTH = 50


def author_payload(user: User | None, signed: bool = True) -> dict:
    if not user:
        return {"id": None, "name": "Unknown", "profile_image": None, "verified": False}
    image = user.profile_photo
    if signed:
        image = storage_service.to_signed_url_if_r2(image) or image
    return {
        "id": user.id,
        "name": user.full_name,
        "profile_image": image,
        "verified": user.is_approved,
    }


def _title_snippet(title: str) -> str:
    if len(title) > TITLE_SNIPPET_LENGTH:
        return title[:TITLE_SNIPPET_LENGTH] + "…"
    return title


def same_community(author: User, viewer: User) -> bool:
    return author.community == viewer.community


def ensure_community_visible(db: Session, post: Post, viewer_id: int) -> None:
    author = db.get(User, post.user_id)
    viewer = db.get(User, viewer_id)
    if not author or not viewer:
        raise NotFound("User not found")
    if not same_community(author, viewer):
        raise NotFound("Post not found")


def _get_post(db: Session, post_id: int) -> Post:
    post = db.get(Post, post_id)
    if not post:
        raise NotFound("Post not found")
    return post


def get_visible_post(db: Session, viewer_id: int, post_id: int) -> Post:
    post = _get_post(db, post_id)
    ensure_community_visible(db, post, viewer_id)
    return post


def _get_own_post(db: Session, user_id: int, post_id: int) -> Post:
    post = _get_post(db, post_id)
    if post.user_id != user_id:
        raise Forbidden("Forbidden")
    return post


def like_count(db: Session, post_id: int) -> int:
    return db.query(PostLike).filter(PostLike.post_id == post_id).count()


def comment_count(db: Session, post_id: int) -> int:
    return db.query(Comment).filter(Comment.post_id == post_id).count()


def _post_detail(db: Session, post: Post, viewer_id: int) -> dict:
    liked_by_me = (
        db.query(PostLike).filter(PostLike.post_id == post.id, PostLike.user_id == viewer_id).first() is not None
    )
    return {
        "id": post.id,
        "user_id": post.user_id,
        "post_type": post.post_type,
        "title": post.title,
        "description": post.description,
        "media_url": storage_service.to_signed_url_if_r2(post.media_url),
        "pinned": post.pinned,
        "urgent": post.urgent,
        "meetup_at": post.meetup_at,
        "job_status": post.job_status,
        "created_at": post.created_at,
        "updated_at": post.updated_at,
        "author": author_payload(post.author),
        "like_count": like_count(db, post.id),
        "comment_count": comment_count(db, post.id),
        "liked_by_me": liked_by_me,
    }


def create_post(db: Session, user_id: int, body: PostCreate) -> dict:
    post = Post(
        user_id=user_id,
        post_type=body.post_type.value,
        title=body.title,
        description=body.description or None,
        media_url=str(body.media_url) if body.media_url else None,
        pinned=body.pinned,
        urgent=body.urgent,
        meetup_at=body.meetup_at,
        job_status=body.job_status.value if body.job_status else None,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("Post id=%s (%s) created by user_id=%s", post.id, post.post_type, user_id)
    return _post_detail(db, post, user_id)


def update_post(db: Session, user_id: int, post_id: int, body: PostUpdate) -> dict:
    post = _get_own_post(db, user_id, post_id)
    changes = body.model_dump(exclude_unset=True)

    if "title" in changes:
        if not changes["title"]:
            raise ValidationError("title cannot be empty")
        post.title = changes["title"]
    if "description" in changes:
        post.description = changes["description"] or None
    if "media_url" in changes:
        post.media_url = str(changes["media_url"]) if changes["media_url"] else None
    for flag in ("pinned", "urgent"):
        if changes.get(flag) is not None:
            setattr(post, flag, changes[flag])
    if "meetup_at" in changes:
        post.meetup_at = changes["meetup_at"]
    if "job_status" in changes:
        post.job_status = changes["job_status"].value if changes["job_status"] else None

    db.commit()
    db.refresh(post)
    return get_post(db, user_id, post_id)


def delete_post(db: Session, user_id: int, post_id: int) -> None:
    post = _get_own_post(db, user_id, post_id)
    db.delete(post)
    db.commit()
    logger.info("Post id=%s deleted by user_id=%s", post_id, user_id)


def get_post(db: Session, user_id: int, post_id: int) -> dict:
    post = get_visible_post(db, user_id, post_id)
    return _post_detail(db, post, user_id)


def _notify(db: Session, user_id: int, title: str, body: str) -> None:
    db.add(Notification(user_id=user_id, title=title, body=body))


def like_post(db: Session, user_id: int, post_id: int) -> dict:
    """Toggle the viewer's like; the returned count reflects the change just made."""
    post = get_visible_post(db, user_id, post_id)

    existing = db.query(PostLike).filter(PostLike.post_id == post_id, PostLike.user_id == user_id).first()
    if existing:
        db.delete(existing)
        db.commit()
        return {"liked": False, "like_count": like_count(db, post_id)}

    db.add(PostLike(post_id=post_id, user_id=user_id))
    if post.user_id != user_id:
        liker = db.get(User, user_id)
        name = liker.full_name if liker else "Someone"
        _notify(db, post.user_id, "New like", f'{name} liked your post "{_title_snippet(post.title)}"')
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request recorded the same like first.
        db.rollback()
    return {"liked": True, "like_count": like_count(db, post_id)}


def toggle_saved_post(db: Session, user_id: int, post_id: int) -> dict:
    get_visible_post(db, user_id, post_id)

    existing = db.query(SavedPost).filter(SavedPost.post_id == post_id, SavedPost.user_id == user_id).first()
    if existing:
        db.delete(existing)
        db.commit()
        return {"saved": False}

    db.add(SavedPost(post_id=post_id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
    return {"saved": True}


def _comment_payload(comment: Comment, author: User | None) -> dict:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "user_id": comment.user_id,
        "body": comment.body,
        "created_at": comment.created_at,
        "author": author_payload(author),
    }


def add_comment(db: Session, user_id: int, post_id: int, body: str) -> dict:
    post = get_visible_post(db, user_id, post_id)
    author = db.get(User, user_id)

    comment = Comment(post_id=post_id, user_id=user_id, body=body.strip())
    db.add(comment)
    if post.user_id != user_id and author:
        _notify(
            db,
            post.user_id,
            "New comment",
            f'{author.full_name} commented on your post "{_title_snippet(post.title)}"',
        )
    db.commit()
    db.refresh(comment)
    return _comment_payload(comment, author)


def get_comments(db: Session, post_id: int, page: int, limit: int, viewer_id: int) -> dict:
    get_visible_post(db, viewer_id, post_id)

    query = db.query(Comment).filter(Comment.post_id == post_id)
    total = query.count()
    comments = (
        query.order_by(Comment.created_at.asc(), Comment.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "items": [_comment_payload(comment, comment.author) for comment in comments],
        "page": page,
        "limit": limit,
        "total": total,
    }


def report_post(db: Session, user_id: int, post_id: int, reason: str) -> dict:
    get_visible_post(db, user_id, post_id)

    existing = (
        db.query(PostReport).filter(PostReport.post_id == post_id, PostReport.reporter_id == user_id).first()
    )
    if existing:
        raise Conflict("You have already reported this post")

    report = PostReport(post_id=post_id, reporter_id=user_id, reason=reason.strip())
    db.add(report)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("You have already reported this post")
    db.refresh(report)
    logger.info("Post id=%s reported by user_id=%s (report id=%s)", post_id, user_id, report.id)
    return {"id": report.id}


def approved_user_ids_in_community(db: Session, user_id: int) -> list[int]:
    viewer = db.get(User, user_id)
    if not viewer:
        return []
    query = db.query(User.id).filter(User.status == UserStatus.APPROVED.value)
    if viewer.community is None:
        query = query.filter(User.community.is_(None))
    else:
        query = query.filter(User.community == viewer.community)
    return [row_id for (row_id,) in query.all()]
