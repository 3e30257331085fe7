from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.sql import func
from app.core.database import Base

class TrainingSession(Base):
    __tablename__ = "training_sessions"

    id = Column(Integer, primary_key=True, index=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=True)
    title = Column(String, nullable=True)
    session_date = Column(DateTime(timezone=True), nullable=False)  # UTC
    status = Column(String, default="planned", nullable=False)  # planned / completed / canceled
    location = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    # Scrimmage result; read through app.club.training_match
    match_data = Column(JSON, nullable=True)
    slug = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
