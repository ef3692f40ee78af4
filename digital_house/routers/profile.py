from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from digital_house.database import get_db
from digital_house.models.user import User
from digital_house.schemas.profile import ActivityTab, HoroscopeUploadRequest, ProfileUpdate, SectionName
from digital_house.services import profile_service
from digital_house.services.auth_middleware import get_current_user
from digital_house.services.profile_sections import RESTRICTED_SECTIONS
from digital_house.utils.response import create_response, handle_exception

router = APIRouter(prefix="/profile", tags=["Profile"])

STAGED_MESSAGE = "Changes submitted for admin approval."


@router.get("/me")
@router.get("")
def get_profile(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return create_response(data=profile_service.get_profile(db, current_user.id))
    except Exception as exc:
        return handle_exception(exc)


@router.put("/me")
def update_profile(
    update: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return create_response(data=profile_service.update_profile(db, current_user.id, update))
    except Exception as exc:
        return handle_exception(exc)


def _section_update(db: Session, user_id: int, section: SectionName, payload: dict):
    profile = profile_service.update_profile_section(db, user_id, section.value, payload)
    if section.value in RESTRICTED_SECTIONS:
        return create_response(data={**profile, "message": STAGED_MESSAGE})
    return create_response(data=profile)


@router.patch("/me/sections/{section}")
def update_profile_section(
    section: SectionName,
    payload: dict = Body(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return _section_update(db, current_user.id, section, payload)
    except Exception as exc:
        return handle_exception(exc)


@router.post("/me/horoscope-upload-url")
def horoscope_upload_url(body: HoroscopeUploadRequest, current_user: User = Depends(get_current_user)):
    try:
        data = profile_service.get_horoscope_upload_url(
            current_user.id, body.file_name, body.file_type, body.file_size
        )
        return create_response(data=data)
    except Exception as exc:
        return handle_exception(exc)


@router.get("/stats")
def get_stats(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return create_response(data=profile_service.get_profile_stats(db, current_user.id))
    except Exception as exc:
        return handle_exception(exc)


@router.get("/activity")
def get_activity(
    tab: ActivityTab = ActivityTab.my,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return create_response(data=profile_service.get_profile_activity(db, current_user.id, tab, page, limit))
    except Exception as exc:
        return handle_exception(exc)


@router.put("/{section}")
def put_profile_section(
    section: SectionName,
    payload: dict = Body(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return _section_update(db, current_user.id, section, payload)
    except Exception as exc:
        return handle_exception(exc)
