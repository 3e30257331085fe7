from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./propeleri.db"
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MIN: int = 1440

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "https://propeleri.rs",
        "https://www.propeleri.rs",
        "http://localhost:3000",
    ]

    # Admin API throttling (sliding window per client address)
    RATE_LIMIT_WINDOW_MS: int = 60_000
    RATE_LIMIT_MAX: int = 10

    # Club usernames are mapped onto synthetic e-mail identities
    LOGIN_EMAIL_DOMAIN: str = "player-login.local"
    TECHNICAL_EMAIL_DOMAIN: str = "no-login.local"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
