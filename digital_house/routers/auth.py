from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from digital_house.database import get_db
from digital_house.models.user import User, UserStatus
from digital_house.schemas.user import LoginRequest, RegisterRequest, VerifyOtpRequest
from digital_house.services import otp_service, user_service
from digital_house.services.auth_middleware import get_current_user
from digital_house.services.auth_service import create_access_token
from digital_house.utils.errors import Forbidden, NotFound
from digital_house.utils.response import create_response, handle_exception

router = APIRouter(prefix="/auth", tags=["Auth"])

REGISTERED_MESSAGE = "Your registration is under admin verification (1–2 days). You will be notified once approved."


@router.post("/register")
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    try:
        user = user_service.register(db, body)
        return create_response(
            data={"message": REGISTERED_MESSAGE, "user": user_service.to_safe_user(user)},
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/login-request")
def login_request(body: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = user_service.find_by_email(db, body.email)
        if not user:
            raise NotFound("No account found with this email. Please register first.")
        if user.status == UserStatus.PENDING.value:
            raise Forbidden(
                "Your account is under verification. You will be able to login once an admin approves (1–2 days)."
            )
        if user.status == UserStatus.REJECTED.value:
            raise Forbidden("Your account was not approved. Please contact support.")

        result = otp_service.create_and_send_otp(db, user)
        return create_response(data={"message": result.message, "sent": result.sent})
    except Exception as exc:
        return handle_exception(exc)


@router.post("/verify-otp")
def verify_otp(body: VerifyOtpRequest, db: Session = Depends(get_db)):
    try:
        user = user_service.find_by_email(db, body.email)
        if not user:
            raise NotFound("User not found.")
        user = otp_service.verify_otp_for_user(db, user.id, body.email, body.otp)
        return create_response(
            data={"access_token": create_access_token(user.id), "user": user_service.to_safe_user(user)}
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    try:
        return create_response(data={"user": user_service.to_safe_user(current_user)})
    except Exception as exc:
        return handle_exception(exc)
