from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from digital_house.database import get_db
from digital_house.models.user import User
from digital_house.services import home_service
from digital_house.services.auth_middleware import get_current_user
from digital_house.utils.response import create_response, handle_exception

router = APIRouter(prefix="/home", tags=["Home"])


@router.get("/summary")
def get_summary(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return create_response(data=home_service.get_summary(db, current_user.id))
    except Exception as exc:
        return handle_exception(exc)


@router.get("/quick-actions")
def get_quick_actions(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return create_response(data=home_service.get_quick_action_counts(db, current_user.id))
    except Exception as exc:
        return handle_exception(exc)


@router.get("/feed")
def get_feed(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return create_response(data=home_service.get_feed(db, page, limit, current_user.id))
    except Exception as exc:
        return handle_exception(exc)


@router.get("/highlights")
def get_highlights(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return create_response(data=home_service.get_highlights(db, current_user.id))
    except Exception as exc:
        return handle_exception(exc)
