"""
SQLAlchemy ORM models for shared trips.
"""
from datetime import datetime
from sqlalchemy import Column, DateTime, ForeignKey, JSON, String
from sqlalchemy.orm import relationship

from db import Base


class SharedTripORM(Base):
    __tablename__ = "shared_trips"

    token = Column(String, primary_key=True, index=True)
    trip_id = Column(String, nullable=False, index=True)
    latest_version_id = Column(String, nullable=True)
    data = Column(JSON, nullable=False)
    view_settings = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    versions = relationship(
        "SharedTripVersionORM",
        back_populates="shared_trip",
        cascade="all, delete-orphan",
    )


class SharedTripVersionORM(Base):
    __tablename__ = "shared_trip_versions"

    id = Column(String, primary_key=True, index=True)
    token = Column(String, ForeignKey("shared_trips.token", ondelete="CASCADE"), nullable=False, index=True)
    data = Column(JSON, nullable=False)
    view_settings = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    shared_trip = relationship("SharedTripORM", back_populates="versions")
