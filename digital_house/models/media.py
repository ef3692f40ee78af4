from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from digital_house.database import Base


class MediaModule(str, Enum):
    profile = "profile"
    posts = "posts"
    jobs = "jobs"
    marketplace = "marketplace"
    matrimony = "matrimony"
    help = "help"


class MediaStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class MediaFile(Base):
    __tablename__ = "media_files"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    module = Column(String(20), nullable=False)
    file_url = Column(String(500), nullable=False)
    file_type = Column(String(10), nullable=False)  # image | video
    status = Column(String(20), default=MediaStatus.PENDING.value, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
