from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Date, DateTime, Integer, String

from digital_house.database import Base


class UserStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    # Kept for rows written while self-edits forced re-approval.
    PENDING_REVIEW = "PENDING_REVIEW"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Registration fields
    full_name = Column(String(120), nullable=False)
    gender = Column(String(20), nullable=True)
    dob = Column(Date, nullable=True)
    email = Column(String(191), unique=True, index=True, nullable=False)
    mobile = Column(String(20), unique=True, nullable=True)
    occupation = Column(String(80), nullable=True)
    location = Column(String(120), nullable=True)
    community = Column(String(80), nullable=True, index=True)
    kulam = Column(String(80), nullable=True)
    profile_photo = Column(String(500), nullable=True)
    govt_id_type = Column(String(40), nullable=True)
    govt_id_file = Column(String(500), nullable=True)

    status = Column(String(20), nullable=False, default=UserStatus.PENDING.value, index=True)

    # Profile fields editable by the member
    blood_group = Column(String(10), nullable=True)
    education = Column(String(120), nullable=True)
    job_title = Column(String(80), nullable=True)
    company = Column(String(120), nullable=True)
    work_location = Column(String(120), nullable=True)
    skills = Column(String(255), nullable=True)
    city = Column(String(80), nullable=True)
    district = Column(String(80), nullable=True)
    community_role = Column(String(80), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED.value
