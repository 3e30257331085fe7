"""
Club logins and roles.

Players sign in with a short club login ("marko.p") rather than an e-mail.
The identity store is keyed by e-mail, so every login maps onto a synthetic
address on LOGIN_EMAIL_DOMAIN. Roster entries for people who never log in
get a random address on TECHNICAL_EMAIL_DOMAIN.
"""
import re
import uuid
from typing import Any, Optional

from app.core.config import settings

LOGIN_PATTERN = re.compile(r"^[a-z0-9._-]{3,32}$")

ADMIN_APP_ROLES = {"admin"}
ADMIN_TEAM_ROLES = {"captain", "assistant_captain"}


def normalize_login(value: str) -> str:
    return value.strip().lower()


def is_valid_login(value: str) -> bool:
    return bool(LOGIN_PATTERN.match(value))


def login_to_email(login: str) -> str:
    return f"{normalize_login(login)}@{settings.LOGIN_EMAIL_DOMAIN}"


def is_synthetic_login_email(email: str) -> bool:
    return email.endswith(f"@{settings.LOGIN_EMAIL_DOMAIN}")


def is_technical_player_email(email: str) -> bool:
    return email.endswith(f"@{settings.TECHNICAL_EMAIL_DOMAIN}")


def extract_login_from_email(email: str) -> Optional[str]:
    if not is_synthetic_login_email(email):
        return None
    return email[:email.index("@")]


def build_technical_email() -> str:
    return f"player-{uuid.uuid4()}@{settings.TECHNICAL_EMAIL_DOMAIN}"


def identifier_to_email(identifier: str) -> Optional[str]:
    """
    Map what a user typed into the login box to the stored e-mail.

    Anything containing "@" is taken as an e-mail as-is (lowercased); anything
    else must be a valid club login. Returns None for an invalid login.
    """
    value = normalize_login(identifier)
    if "@" in value:
        return value
    if not is_valid_login(value):
        return None
    return login_to_email(value)


def is_admin_role(profile: Any) -> bool:
    """Admins, captains and assistant captains may use the back office"""
    if profile is None:
        return False
    return (
        getattr(profile, "app_role", None) in ADMIN_APP_ROLES
        or getattr(profile, "team_role", None) in ADMIN_TEAM_ROLES
    )


def format_player_name(player: Any) -> str:
    base = f"{player.first_name} {player.last_name}".strip()
    nickname = (getattr(player, "nickname", None) or "").strip()
    return f"{base} ({nickname})" if nickname else base


def format_player_name_with_number(player: Any) -> str:
    number = getattr(player, "jersey_number", None)
    prefix = f"#{number} " if number is not None else ""
    return f"{prefix}{format_player_name(player)}".strip()
