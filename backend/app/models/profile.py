from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func
from app.core.database import Base

class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    # Auth identity: club logins are stored as login@player-login.local
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    nickname = Column(String, nullable=True)
    jersey_number = Column(Integer, nullable=True)
    position = Column(String, default="forward", nullable=False)  # forward / defense / goalie

    team_role = Column(String, default="player", nullable=False)  # player / captain / assistant_captain
    app_role = Column(String, default="player", nullable=False)  # player / admin
    is_active = Column(Boolean, default=True, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
