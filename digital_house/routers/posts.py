from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from digital_house.database import get_db
from digital_house.models.user import User
from digital_house.schemas.post import CommentCreate, PostCreate, PostUpdate, ReportCreate
from digital_house.services import post_service
from digital_house.services.auth_middleware import get_current_user
from digital_house.utils.response import create_response, handle_exception

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.post("")
def create_post(body: PostCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        post = post_service.create_post(db, current_user.id, body)
        return create_response(data=post, status_code=status.HTTP_201_CREATED)
    except Exception as exc:
        return handle_exception(exc)


@router.get("/{post_id}")
def get_post(post_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return create_response(data=post_service.get_post(db, current_user.id, post_id))
    except Exception as exc:
        return handle_exception(exc)


@router.put("/{post_id}")
def update_post(
    post_id: int,
    body: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return create_response(data=post_service.update_post(db, current_user.id, post_id, body))
    except Exception as exc:
        return handle_exception(exc)


@router.delete("/{post_id}")
def delete_post(post_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        post_service.delete_post(db, current_user.id, post_id)
        return create_response(data={"message": "Post deleted"})
    except Exception as exc:
        return handle_exception(exc)


@router.post("/{post_id}/like")
def like_post(post_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return create_response(data=post_service.like_post(db, current_user.id, post_id))
    except Exception as exc:
        return handle_exception(exc)


@router.post("/{post_id}/save")
def save_post(post_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return create_response(data=post_service.toggle_saved_post(db, current_user.id, post_id))
    except Exception as exc:
        return handle_exception(exc)


@router.post("/{post_id}/comments")
def add_comment(
    post_id: int,
    body: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        comment = post_service.add_comment(db, current_user.id, post_id, body.body)
        return create_response(data=comment, status_code=status.HTTP_201_CREATED)
    except Exception as exc:
        return handle_exception(exc)


@router.get("/{post_id}/comments")
def get_comments(
    post_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return create_response(data=post_service.get_comments(db, post_id, page, limit, current_user.id))
    except Exception as exc:
        return handle_exception(exc)


@router.post("/{post_id}/report")
def report_post(
    post_id: int,
    body: ReportCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        report = post_service.report_post(db, current_user.id, post_id, body.reason)
        return create_response(
            data={"message": "Report submitted", **report}, status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)
