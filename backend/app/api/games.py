import json
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from app.core.database import get_db
from app.api.auth import require_admin
from app.api.throttle import admin_rate_limit
from app.models.profile import Profile
from app.models.team import Team
from app.models.game import Game, GameStats
from app.club.clock import belgrade_local_input_to_utc, format_in_belgrade, to_utc_iso
from app.club.game_stats import sync_game_stats
from app.club.slugs import OPPONENT_FALLBACK, format_match_date_slug, slugify
from app.club.slug_registry import assign_unique_slug

logger = logging.getLogger(__name__)

router = APIRouter()

class GameCreate(BaseModel):
    opponent_team_id: Optional[int] = None
    tournament_id: Optional[int] = None
    season_id: Optional[int] = None
    location: Optional[str] = None
    game_date_local: str  # "YYYY-MM-DDTHH:MM", Belgrade wall clock
    is_home: bool = True

class GameNotesUpdate(BaseModel):
    notes: Optional[Dict[str, Any]] = None

class GameStatsResponse(BaseModel):
    player_id: str
    goals: int
    assists: int
    penalty_minutes: int
    plus_minus: int

    class Config:
        from_attributes = True

class GameResponse(BaseModel):
    id: int
    opponent_team_id: Optional[int]
    opponent_name: Optional[str]
    location: Optional[str]
    game_date: str
    game_date_display: str
    home_score: int
    away_score: int
    is_home: bool
    result: str
    slug: Optional[str]

class GameDetailResponse(GameResponse):
    notes: Optional[Dict[str, Any]] = None
    stats: List[GameStatsResponse] = []

def _game_response(game: Game, locale: Optional[str]) -> GameResponse:
    return GameResponse(
        id=game.id,
        opponent_team_id=game.opponent_team_id,
        opponent_name=game.opponent_team.name if game.opponent_team else None,
        location=game.location,
        game_date=to_utc_iso(game.game_date),
        game_date_display=format_in_belgrade(game.game_date, locale),
        home_score=game.home_score,
        away_score=game.away_score,
        is_home=game.is_home,
        result=game.result,
        slug=game.slug,
    )

def _get_game(db: Session, game_id: int) -> Game:
    game = db.query(Game).filter(Game.id == game_id).first()
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    return game

@router.get("/", response_model=List[GameResponse])
async def get_games(
    skip: int = 0,
    limit: int = 100,
    locale: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get list of games, newest first"""
    games = db.query(Game).order_by(Game.game_date.desc()).offset(skip).limit(limit).all()
    return [_game_response(g, locale) for g in games]

@router.get("/{game_id}", response_model=GameDetailResponse)
async def get_game(
    game_id: int,
    locale: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get game details with per-player stats"""
    game = _get_game(db, game_id)
    stats = db.query(GameStats).filter(GameStats.game_id == game_id).order_by(GameStats.id).all()

    notes = None
    if game.notes:
        try:
            notes = json.loads(game.notes)
        except ValueError:
            logger.warning("[Games] Game %s has unreadable notes", game_id)

    base = _game_response(game, locale)
    return GameDetailResponse(
        **base.model_dump(),
        notes=notes if isinstance(notes, dict) else None,
        stats=[GameStatsResponse.model_validate(s) for s in stats],
    )

@router.post("/", response_model=GameResponse, dependencies=[Depends(admin_rate_limit)])
async def create_game(
    payload: GameCreate,
    locale: Optional[str] = None,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    game_date = belgrade_local_input_to_utc(payload.game_date_local)
    if game_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="game_date_local must be a valid YYYY-MM-DDTHH:MM date-time"
        )

    opponent = db.get(Team, payload.opponent_team_id) if payload.opponent_team_id else None
    if payload.opponent_team_id and opponent is None:
        raise HTTPException(status_code=404, detail="Opponent team not found")

    opponent_part = slugify(opponent.name) if opponent else ""
    base_slug = f"{format_match_date_slug(game_date)}-{opponent_part or OPPONENT_FALLBACK}"

    game = Game(
        season_id=payload.season_id,
        tournament_id=payload.tournament_id,
        opponent_team_id=payload.opponent_team_id,
        location=payload.location,
        game_date=game_date,
        is_home=payload.is_home,
        slug=assign_unique_slug(db, Game, base_slug),
    )
    db.add(game)
    db.commit()
    db.refresh(game)
    logger.info("[Games] Profile %s created game %s (%s)", current_user.id, game.id, game.slug)
    return _game_response(game, locale)

@router.put("/{game_id}/notes", response_model=GameDetailResponse, dependencies=[Depends(admin_rate_limit)])
async def update_game_notes(
    game_id: int,
    payload: GameNotesUpdate,
    locale: Optional[str] = None,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Save goal events / goalie report and rebuild goals and assists in game_stats
    """
    game = _get_game(db, game_id)
    game.notes = json.dumps(payload.notes) if payload.notes is not None else None

    try:
        if sync_game_stats(db, game.id, game.notes) is None:
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("[Games] Failed to sync stats for game %s: %s", game_id, e)
        raise HTTPException(status_code=500, detail="Database error")

    logger.info("[Games] Profile %s updated notes of game %s", current_user.id, game_id)
    return await get_game(game_id, locale, db)
