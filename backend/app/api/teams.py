from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from app.core.database import get_db
from app.api.auth import require_admin
from app.api.throttle import admin_rate_limit
from app.models.profile import Profile
from app.models.team import Team

router = APIRouter()

class TeamCreate(BaseModel):
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    logo_url: Optional[str] = None
    is_home_club: bool = False

class TeamResponse(BaseModel):
    id: int
    name: str
    city: Optional[str]
    country: Optional[str]
    logo_url: Optional[str]
    is_home_club: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True

@router.get("/", response_model=List[TeamResponse])
async def get_teams(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """Get list of teams, home club first"""
    teams = (
        db.query(Team)
        .order_by(Team.is_home_club.desc(), Team.name)
        .offset(skip)
        .limit(limit)
        .all()
    )
    return [TeamResponse.model_validate(t) for t in teams]

@router.post("/", response_model=TeamResponse, dependencies=[Depends(admin_rate_limit)])
async def create_team(
    payload: TeamCreate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    team = Team(
        name=payload.name.strip(),
        city=payload.city,
        country=payload.country,
        logo_url=payload.logo_url,
        is_home_club=payload.is_home_club,
    )
    db.add(team)
    db.commit()
    db.refresh(team)
    return TeamResponse.model_validate(team)
