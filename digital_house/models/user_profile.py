from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import backref, relationship

from digital_house.database import Base


class ProfileSection(str, Enum):
    MATRIMONY = "MATRIMONY"
    BUSINESS = "BUSINESS"


class ReviewStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class UserProfile(Base):
    """Extended profile sections. Basic info lives on User."""

    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    community = Column(JSON, nullable=True)
    personal = Column(JSON, nullable=True)
    matrimony = Column(JSON, nullable=True)
    business = Column(JSON, nullable=True)
    family = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", backref=backref("profile", uselist=False))


class PendingProfileUpdate(Base):
    """Staged edit to a restricted section, live only after admin approval."""

    __tablename__ = "pending_profile_updates"
    __table_args__ = (
        Index(
            "uq_pending_profile_update_open",
            "user_id",
            "section",
            unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    section = Column(String(20), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default=ReviewStatus.PENDING.value, index=True)
    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(191), nullable=True)
    admin_remarks = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", backref="pending_profile_updates")
