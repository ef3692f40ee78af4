from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from digital_house.database import Base


class AdminVerification(Base):
    """Audit row written once per approve/reject decision."""

    __tablename__ = "admin_verifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    decision = Column(String(20), nullable=False)
    verified_by = Column(String(191), nullable=False)
    verified_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", backref="verifications")
