from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from digital_house.database import get_db
from digital_house.models.user import User
from digital_house.schemas.media import UploadUrlRequest
from digital_house.services import media_service
from digital_house.services.auth_middleware import get_current_user
from digital_house.utils.response import create_response, handle_exception

router = APIRouter(prefix="/media", tags=["Media"])


@router.post("/upload-url")
def get_upload_url(
    body: UploadUrlRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        data = media_service.generate_upload_url(
            db, current_user.id, body.file_name, body.file_type, body.file_size, body.module
        )
        return create_response(data=data, status_code=status.HTTP_201_CREATED)
    except Exception as exc:
        return handle_exception(exc)
