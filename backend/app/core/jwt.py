from datetime import timedelta
from typing import Optional

from app.core.security import create_access_token, verify_token
from app.core.config import settings


def create_profile_token(profile) -> str:
    """
    Create backend JWT token for a signed-in club member.

    Args:
        profile: Profile row; its id becomes the subject claim

    Returns:
        Encoded JWT token string
    """
    claims = {
        "sub": str(profile.id),
        "email": profile.email,
        "app_role": profile.app_role,
    }
    return create_access_token(
        data=claims,
        expires_delta=timedelta(minutes=settings.JWT_EXPIRE_MIN)
    )


def profile_id_from_token(token: str) -> Optional[int]:
    """Profile id carried by a valid token, None for bad signatures, expiry or a malformed subject"""
    payload = verify_token(token)
    if payload is None:
        return None
    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        return None
    return int(subject)
