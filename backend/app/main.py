import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api import auth, players, teams, tournaments, games, training
from app.core.config import settings
from app.core.database import engine, Base
# Seasons are only referenced by foreign keys; import so the table is registered
from app.models import season  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Propeleri API",
    description="Roster, schedule, tournaments and back office of the Propeleri hockey club",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(players.router, prefix="/api/players", tags=["players"])
app.include_router(teams.router, prefix="/api/teams", tags=["teams"])
app.include_router(tournaments.router, prefix="/api/tournaments", tags=["tournaments"])
app.include_router(games.router, prefix="/api/games", tags=["games"])
app.include_router(training.router, prefix="/api/training", tags=["training"])

@app.get("/")
async def root():
    return {"message": "Propeleri API"}

@app.get("/health")
async def health():
    return {"status": "ok"}
