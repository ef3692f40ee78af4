from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from digital_house.database import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    sort_order = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Kulam(Base):
    __tablename__ = "kulams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    sort_order = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
