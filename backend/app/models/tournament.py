from sqlalchemy import Column, Integer, String, DateTime, Date, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class Tournament(Base):
    __tablename__ = "tournaments"

    id = Column(Integer, primary_key=True, index=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=True)
    name = Column(String, nullable=False)
    format = Column(String, default="round_robin", nullable=False)  # cup / placement / round_robin / custom
    location = Column(String, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    slug = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    groups = relationship("TournamentGroup", back_populates="tournament", order_by="TournamentGroup.sort_order")

class TournamentGroup(Base):
    __tablename__ = "tournament_groups"

    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False)
    name = Column(String, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    tournament = relationship("Tournament", back_populates="groups")

class TournamentGroupTeam(Base):
    __tablename__ = "tournament_group_teams"
    __table_args__ = (UniqueConstraint("group_id", "team_id", name="uq_group_team"),)

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("tournament_groups.id"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    # Order teams were added in; standings ties keep it
    sort_order = Column(Integer, default=0, nullable=False)

    team = relationship("Team")

class TournamentMatch(Base):
    __tablename__ = "tournament_matches"

    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False)
    group_id = Column(Integer, ForeignKey("tournament_groups.id"), nullable=True)
    team_a_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    team_b_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    score_a = Column(Integer, default=0, nullable=False)
    score_b = Column(Integer, default=0, nullable=False)
    match_date = Column(DateTime(timezone=True), nullable=True)  # UTC
    is_completed = Column(Boolean, default=False, nullable=False)
    stage = Column(String, default="group", nullable=False)  # group / playoff
    bracket_round = Column(Integer, nullable=True)
    bracket_position = Column(Integer, nullable=True)
    bracket_label = Column(String, nullable=True)
    slug = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    team_a = relationship("Team", foreign_keys=[team_a_id])
    team_b = relationship("Team", foreign_keys=[team_b_id])
