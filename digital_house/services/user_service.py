from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from digital_house.models.user import User, UserStatus
from digital_house.schemas.user import RegisterRequest
from digital_house.utils.errors import ValidationError


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def register(db: Session, body: RegisterRequest) -> User:
    """One account per email; one per mobile when provided."""
    email = body.email.strip().lower()
    if find_by_email(db, email):
        raise ValidationError("An account with this email already exists.")

    mobile = _clean(body.mobile)
    if mobile and db.query(User).filter(User.mobile == mobile).first():
        raise ValidationError("An account with this mobile number already exists.")

    user = User(
        full_name=body.full_name.strip(),
        gender=_clean(body.gender),
        dob=body.dob,
        email=email,
        mobile=mobile,
        occupation=_clean(body.occupation),
        location=_clean(body.location),
        community=_clean(body.community),
        kulam=_clean(body.kulam),
        profile_photo=_clean(body.profile_photo),
        govt_id_type=_clean(body.govt_id_type),
        govt_id_file=_clean(body.govt_id_file),
        status=UserStatus.PENDING.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("An account with this email or mobile number already exists.")
    db.refresh(user)
    return user


def to_safe_user(user: User) -> dict:
    return {
        "id": user.id,
        "full_name": user.full_name,
        "email": user.email,
        "status": user.status,
        "created_at": user.created_at,
    }


def to_admin_user(user: User) -> dict:
    return {
        "id": user.id,
        "full_name": user.full_name,
        "gender": user.gender,
        "dob": user.dob,
        "email": user.email,
        "mobile": user.mobile,
        "occupation": user.occupation,
        "location": user.location,
        "community": user.community,
        "kulam": user.kulam,
        "profile_photo": user.profile_photo,
        "govt_id_type": user.govt_id_type,
        "govt_id_file": user.govt_id_file,
        "status": user.status,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }
