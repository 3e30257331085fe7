from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class Game(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=True)
    opponent_team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    location = Column(String, nullable=True)
    game_date = Column(DateTime(timezone=True), nullable=False)  # UTC
    home_score = Column(Integer, default=0, nullable=False)
    away_score = Column(Integer, default=0, nullable=False)
    is_home = Column(Boolean, default=True, nullable=False)
    result = Column(String, default="pending", nullable=False)  # win / loss / draw / pending
    # JSON payload: {"version": 1, "goal_events": [...], "goalie_report": {...}}
    notes = Column(Text, nullable=True)
    slug = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    opponent_team = relationship("Team")

class GameStats(Base):
    __tablename__ = "game_stats"
    __table_args__ = (UniqueConstraint("game_id", "player_id", name="uq_game_player"),)

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    player_id = Column(String, nullable=False)  # profile id as it appears in the notes JSON
    goals = Column(Integer, default=0, nullable=False)
    assists = Column(Integer, default=0, nullable=False)
    penalty_minutes = Column(Integer, default=0, nullable=False)
    plus_minus = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
