from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from digital_house.database import get_db
from digital_house.schemas.admin import (
    AdminLoginRequest,
    ApproveProfileUpdateRequest,
    ApproveUserRequest,
    RejectProfileUpdateRequest,
    RejectUserRequest,
)
from digital_house.services import admin_service, media_service, profile_review_service
from digital_house.services.auth_middleware import get_current_admin
from digital_house.services.user_service import to_admin_user
from digital_house.utils.errors import NotFound
from digital_house.utils.response import create_response, handle_exception

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/login")
def login(body: AdminLoginRequest):
    try:
        return create_response(data=admin_service.admin_login(body.email, body.password))
    except Exception as exc:
        return handle_exception(exc)


@router.get("/stats")
def get_stats(db: Session = Depends(get_db), admin_id: str = Depends(get_current_admin)):
    try:
        return create_response(data=admin_service.get_dashboard_stats(db))
    except Exception as exc:
        return handle_exception(exc)


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: str | None = None,
    db: Session = Depends(get_db),
    admin_id: str = Depends(get_current_admin),
):
    try:
        result = admin_service.list_users(db, page, limit, status)
        result["users"] = [to_admin_user(user) for user in result["users"]]
        return create_response(data=result)
    except Exception as exc:
        return handle_exception(exc)


@router.get("/pending")
def list_pending(db: Session = Depends(get_db), admin_id: str = Depends(get_current_admin)):
    try:
        users = admin_service.list_pending_users(db)
        return create_response(data={"users": [to_admin_user(user) for user in users]})
    except Exception as exc:
        return handle_exception(exc)


@router.get("/users/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db), admin_id: str = Depends(get_current_admin)):
    try:
        user = admin_service.get_user_by_id(db, user_id)
        if not user:
            raise NotFound("User not found")
        history = admin_service.get_verification_history(db, user_id)
        return create_response(
            data={
                "user": to_admin_user(user),
                "verifications": [
                    {
                        "id": row.id,
                        "decision": row.decision,
                        "verified_by": row.verified_by,
                        "verified_at": row.verified_at,
                        "remarks": row.remarks,
                    }
                    for row in history
                ],
            }
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/users/{user_id}/approve")
def approve_user(
    user_id: int,
    body: ApproveUserRequest | None = None,
    db: Session = Depends(get_db),
    admin_id: str = Depends(get_current_admin),
):
    try:
        remarks = body.remarks if body else None
        admin_service.approve_user(db, user_id, admin_id, remarks)
        return create_response(data={"message": "User approved."})
    except Exception as exc:
        return handle_exception(exc)


@router.post("/users/{user_id}/reject")
def reject_user(
    user_id: int,
    body: RejectUserRequest,
    db: Session = Depends(get_db),
    admin_id: str = Depends(get_current_admin),
):
    try:
        admin_service.reject_user(db, user_id, admin_id, body.remarks)
        return create_response(data={"message": "User rejected."})
    except Exception as exc:
        return handle_exception(exc)


@router.get("/media/pending")
def list_pending_media(db: Session = Depends(get_db), admin_id: str = Depends(get_current_admin)):
    try:
        return create_response(data={"media": media_service.list_pending_media(db)})
    except Exception as exc:
        return handle_exception(exc)


@router.post("/media/{media_id}/approve")
def approve_media(media_id: int, db: Session = Depends(get_db), admin_id: str = Depends(get_current_admin)):
    try:
        media_service.approve_media(db, media_id)
        return create_response(data={"message": "Media approved."})
    except Exception as exc:
        return handle_exception(exc)


@router.post("/media/{media_id}/reject")
def reject_media(media_id: int, db: Session = Depends(get_db), admin_id: str = Depends(get_current_admin)):
    try:
        media_service.reject_media(db, media_id)
        return create_response(data={"message": "Media rejected."})
    except Exception as exc:
        return handle_exception(exc)


@router.get("/pending-updates")
def list_pending_updates(db: Session = Depends(get_db), admin_id: str = Depends(get_current_admin)):
    try:
        return create_response(data={"updates": profile_review_service.list_pending_profile_updates(db)})
    except Exception as exc:
        return handle_exception(exc)


@router.post("/approve-update")
def approve_update(
    body: ApproveProfileUpdateRequest,
    db: Session = Depends(get_db),
    admin_id: str = Depends(get_current_admin),
):
    try:
        profile_review_service.approve_profile_update(db, body.update_id, admin_id, body.remarks)
        return create_response(data={"message": "Profile update approved."})
    except Exception as exc:
        return handle_exception(exc)


@router.post("/reject-update")
def reject_update(
    body: RejectProfileUpdateRequest,
    db: Session = Depends(get_db),
    admin_id: str = Depends(get_current_admin),
):
    try:
        profile_review_service.reject_profile_update(db, body.update_id, admin_id, body.remarks)
        return create_response(data={"message": "Profile update rejected."})
    except Exception as exc:
        return handle_exception(exc)
