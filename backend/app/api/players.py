import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import List, Optional
from app.core.database import get_db
from app.core.security import hash_password
from app.api.auth import require_admin
from app.api.throttle import admin_rate_limit
from app.models.profile import Profile
from app.club.accounts import (
    build_technical_email,
    extract_login_from_email,
    format_player_name_with_number,
    is_technical_player_email,
    is_valid_login,
    login_to_email,
    normalize_login,
)
from app.club.slugs import slugify
from app.club.slug_registry import assign_unique_slug

logger = logging.getLogger(__name__)

router = APIRouter()

POSITIONS = ("forward", "defense", "goalie")

class PlayerCreate(BaseModel):
    first_name: str
    last_name: str
    nickname: Optional[str] = None
    jersey_number: Optional[int] = None
    position: str = "forward"
    # Both or neither: a player without a login is a roster-only entry
    login: Optional[str] = None
    password: Optional[str] = None

class PlayerResponse(BaseModel):
    id: int
    display_name: str
    first_name: str
    last_name: str
    nickname: Optional[str]
    jersey_number: Optional[int]
    position: str
    team_role: str
    login: Optional[str]
    can_sign_in: bool
    slug: Optional[str]

def _player_response(profile: Profile) -> PlayerResponse:
    return PlayerResponse(
        id=profile.id,
        display_name=format_player_name_with_number(profile),
        first_name=profile.first_name,
        last_name=profile.last_name,
        nickname=profile.nickname,
        jersey_number=profile.jersey_number,
        position=profile.position,
        team_role=profile.team_role,
        login=extract_login_from_email(profile.email),
        can_sign_in=not is_technical_player_email(profile.email) and bool(profile.password_hash),
        slug=profile.slug,
    )

@router.get("/", response_model=List[PlayerResponse])
async def get_roster(db: Session = Depends(get_db)):
    """Active, approved players ordered by jersey number"""
    players = (
        db.query(Profile)
        .filter(Profile.is_active.is_(True), Profile.is_approved.is_(True))
        .order_by(Profile.jersey_number.is_(None), Profile.jersey_number, Profile.last_name)
        .all()
    )
    return [_player_response(p) for p in players]

@router.post("/", response_model=PlayerResponse, dependencies=[Depends(admin_rate_limit)])
async def create_player(
    payload: PlayerCreate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Add a player to the roster.

    With a login the player can sign in; without one the profile gets a
    technical e-mail address and no password.
    """
    first_name = payload.first_name.strip()
    last_name = payload.last_name.strip()
    if not first_name or not last_name:
        raise HTTPException(status_code=400, detail="First name and last name are required")
    if payload.position not in POSITIONS:
        raise HTTPException(status_code=400, detail=f"position must be one of {', '.join(POSITIONS)}")

    if payload.login is not None:
        login = normalize_login(payload.login)
        if not is_valid_login(login):
            raise HTTPException(
                status_code=400,
                detail="Login must be 3-32 characters of a-z, 0-9, dot, underscore or hyphen"
            )
        if not payload.password:
            raise HTTPException(status_code=400, detail="A password is required together with a login")
        email = login_to_email(login)
        if db.query(Profile).filter(Profile.email == email).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Login already taken")
        password_hash = hash_password(payload.password)
    else:
        email = build_technical_email()
        password_hash = None

    profile = Profile(
        email=email,
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        nickname=(payload.nickname or "").strip() or None,
        jersey_number=payload.jersey_number,
        position=payload.position,
        is_active=True,
        is_approved=True,
        slug=assign_unique_slug(db, Profile, slugify(f"{first_name} {last_name}")),
    )
    db.add(profile)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("[Players] Integrity error while creating player: %s", e)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Player conflicts with an existing profile")
    db.refresh(profile)

    logger.info("[Players] Profile %s added player %s (%s)", current_user.id, profile.id, profile.slug)
    return _player_response(profile)
