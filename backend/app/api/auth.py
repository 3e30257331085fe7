import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional
from app.core.database import get_db
from app.core.security import verify_password
from app.core.jwt import create_profile_token, profile_id_from_token
from app.models.profile import Profile
from app.club.accounts import (
    identifier_to_email,
    extract_login_from_email,
    is_admin_role,
    format_player_name_with_number,
)

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer()

class LoginRequest(BaseModel):
    login: str  # club login ("marko.p") or e-mail
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

class MeResponse(BaseModel):
    id: int
    email: str
    login: Optional[str]
    display_name: str
    app_role: str
    team_role: str
    is_admin: bool

@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    db: Session = Depends(get_db)
) -> TokenResponse:
    """
    Sign in with a club login (or e-mail) and password.

    1. Map the login onto its synthetic e-mail
    2. Verify the bcrypt password hash
    3. Return backend JWT
    """
    email = identifier_to_email(payload.login)
    if email is None:
        logger.info("[Auth] Rejected malformed login %r", payload.login)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid login or password"
        )

    profile = db.query(Profile).filter(Profile.email == email).first()
    if profile is None or not profile.is_active or not verify_password(payload.password, profile.password_hash):
        logger.info("[Auth] Failed sign-in for %s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid login or password"
        )

    logger.info("[Auth] Sign-in successful for profile %s", profile.id)
    return TokenResponse(access_token=create_profile_token(profile))

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Profile:
    """
    Extract current profile from backend JWT token (sub = profile id)
    """
    profile_id = profile_id_from_token(credentials.credentials)
    if profile_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if profile is None or not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found or inactive",
        )

    return profile

def require_admin(current_user: Profile = Depends(get_current_user)) -> Profile:
    if not is_admin_role(current_user):
        logger.warning("[Auth] Profile %s denied admin access", current_user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return current_user

@router.get("/me", response_model=MeResponse)
async def get_me(current_user: Profile = Depends(get_current_user)):
    return MeResponse(
        id=current_user.id,
        email=current_user.email,
        login=extract_login_from_email(current_user.email),
        display_name=format_player_name_with_number(current_user),
        app_role=current_user.app_role,
        team_role=current_user.team_role,
        is_admin=is_admin_role(current_user),
    )
