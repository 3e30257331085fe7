import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import List, Optional
from app.core.database import get_db
from app.api.auth import require_admin
from app.api.throttle import admin_rate_limit
from app.models.profile import Profile
from app.models.team import Team
from app.models.tournament import Tournament, TournamentGroup, TournamentGroupTeam, TournamentMatch
from app.club.clock import (
    belgrade_local_input_to_utc,
    format_in_belgrade,
    to_utc_iso,
    utc_to_belgrade_local_input,
)
from app.club.slugs import STAGES, build_match_slug, build_match_url_param, parse_match_url_param, slugify
from app.club.slug_registry import SlugTakenError, assign_unique_slug, ensure_slug_available, slug_is_taken
from app.club.standings import compute_standings, group_bracket_rounds, match_winner_id

logger = logging.getLogger(__name__)

router = APIRouter()

class StandingRowResponse(BaseModel):
    team_id: int
    team_name: str
    is_home_club: bool
    played: int
    wins: int
    draws: int
    losses: int
    goals_for: int
    goals_against: int
    goal_diff: int
    points: int

class GroupStandingsResponse(BaseModel):
    group_id: int
    group_name: str
    rows: List[StandingRowResponse]

class GroupResponse(BaseModel):
    id: int
    name: str
    sort_order: int

    class Config:
        from_attributes = True

class TournamentResponse(BaseModel):
    id: int
    name: str
    format: str
    location: Optional[str]
    slug: Optional[str]
    groups: List[GroupResponse] = []

    class Config:
        from_attributes = True

class MatchCreate(BaseModel):
    team_a_id: Optional[int] = None
    team_b_id: Optional[int] = None
    group_id: Optional[int] = None
    stage: str = "group"
    match_date_local: Optional[str] = None  # "YYYY-MM-DDTHH:MM", Belgrade wall clock
    score_a: int = 0
    score_b: int = 0
    is_completed: bool = False
    bracket_round: Optional[int] = None
    bracket_position: Optional[int] = None
    bracket_label: Optional[str] = None
    slug: Optional[str] = None  # explicit slug; generated when omitted

class MatchUpdate(BaseModel):
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    is_completed: Optional[bool] = None
    match_date_local: Optional[str] = None
    slug: Optional[str] = None
    regenerate_slug: bool = False

class MatchResponse(BaseModel):
    id: int
    tournament_id: int
    group_id: Optional[int]
    team_a_id: Optional[int]
    team_b_id: Optional[int]
    score_a: int
    score_b: int
    is_completed: bool
    stage: str
    match_date: Optional[str]
    match_date_local: str
    match_date_display: str
    bracket_round: Optional[int]
    bracket_position: Optional[int]
    bracket_label: Optional[str]
    winner_team_id: Optional[int]
    slug: Optional[str]
    url_param: Optional[str]

class BracketRoundResponse(BaseModel):
    round_number: int
    label: str
    matches: List[MatchResponse]

class BracketResponse(BaseModel):
    rounds: List[BracketRoundResponse]
    unrounded: List[MatchResponse]

class SlugCheckResponse(BaseModel):
    slug: str
    available: bool

def _match_response(match: TournamentMatch, locale: Optional[str] = None) -> MatchResponse:
    return MatchResponse(
        id=match.id,
        tournament_id=match.tournament_id,
        group_id=match.group_id,
        team_a_id=match.team_a_id,
        team_b_id=match.team_b_id,
        score_a=match.score_a,
        score_b=match.score_b,
        is_completed=match.is_completed,
        stage=match.stage,
        match_date=to_utc_iso(match.match_date) if match.match_date else None,
        match_date_local=utc_to_belgrade_local_input(match.match_date),
        match_date_display=format_in_belgrade(match.match_date, locale),
        bracket_round=match.bracket_round,
        bracket_position=match.bracket_position,
        bracket_label=match.bracket_label,
        winner_team_id=match_winner_id(match),
        slug=match.slug,
        url_param=f"{match.id}--{match.slug}" if match.slug else None,
    )

def _get_tournament(db: Session, tournament_id: int) -> Tournament:
    tournament = db.query(Tournament).filter(Tournament.id == tournament_id).first()
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament

def _parse_local_date(value: Optional[str]):
    if value is None or value.strip() == "":
        return None
    resolved = belgrade_local_input_to_utc(value)
    if resolved is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="match_date_local must be a valid YYYY-MM-DDTHH:MM date-time"
        )
    return resolved

def _opponent_name(team_a: Optional[Team], team_b: Optional[Team]) -> str:
    """Name of the side the home club plays against, both names otherwise"""
    if team_a is not None and team_a.is_home_club:
        return team_b.name if team_b is not None else ""
    if team_b is not None and team_b.is_home_club:
        return team_a.name if team_a is not None else ""
    return " ".join(t.name for t in (team_a, team_b) if t is not None)

def _generated_slug(db: Session, tournament: Tournament, match: TournamentMatch) -> str:
    team_a = db.get(Team, match.team_a_id) if match.team_a_id else None
    team_b = db.get(Team, match.team_b_id) if match.team_b_id else None
    base = build_match_slug(
        match.match_date,
        _opponent_name(team_a, team_b),
        tournament.name,
        match.stage,
    )
    return assign_unique_slug(db, TournamentMatch, base, exclude_id=match.id)

def _explicit_slug(db: Session, raw: str, exclude_id: Optional[int] = None) -> str:
    slug = slugify(raw)
    if not slug:
        raise HTTPException(status_code=400, detail="Slug must contain letters or digits")
    try:
        return ensure_slug_available(db, TournamentMatch, slug, exclude_id)
    except SlugTakenError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slug already taken")

def _is_slug_conflict(error: IntegrityError) -> bool:
    # SQLite: "UNIQUE constraint failed: tournament_matches.slug";
    # PostgreSQL names the unique index on the slug column
    return "slug" in str(error.orig).lower()

def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("[Tournaments] Integrity error while saving %s: %s", what, e.orig)
        if _is_slug_conflict(e):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slug already taken")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Match references a missing team, group or tournament"
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("[Tournaments] Database error while saving %s: %s", what, e)
        raise HTTPException(status_code=500, detail="Database error")

def _check_references(db: Session, tournament: Tournament, payload: MatchCreate) -> None:
    for team_id in (payload.team_a_id, payload.team_b_id):
        if team_id is not None and db.get(Team, team_id) is None:
            raise HTTPException(status_code=400, detail=f"Team {team_id} does not exist")
    if payload.group_id is not None:
        group = db.get(TournamentGroup, payload.group_id)
        if group is None or group.tournament_id != tournament.id:
            raise HTTPException(status_code=400, detail=f"Group {payload.group_id} is not part of this tournament")

@router.get("/slugs/check", response_model=SlugCheckResponse)
async def check_slug(
    slug: str,
    exclude_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Tell the admin form whether a match slug is still free"""
    cleaned = slugify(slug)
    available = bool(cleaned) and not slug_is_taken(db, TournamentMatch, cleaned, exclude_id)
    return SlugCheckResponse(slug=cleaned, available=available)

@router.get("/matches/{param}", response_model=MatchResponse)
async def get_match(
    param: str,
    locale: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Resolve a public "{id}--{slug}" path segment, or a bare slug"""
    id_part = parse_match_url_param(param)
    if id_part.isdigit():
        match = db.query(TournamentMatch).filter(TournamentMatch.id == int(id_part)).first()
    else:
        match = db.query(TournamentMatch).filter(TournamentMatch.slug == param).first()
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return _match_response(match, locale)

@router.get("/{tournament_id}", response_model=TournamentResponse)
async def get_tournament(
    tournament_id: int,
    db: Session = Depends(get_db)
):
    return TournamentResponse.model_validate(_get_tournament(db, tournament_id))

@router.get("/{tournament_id}/standings", response_model=List[GroupStandingsResponse])
async def get_standings(
    tournament_id: int,
    group_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Standings of every group of the tournament, or of one group"""
    _get_tournament(db, tournament_id)

    query = db.query(TournamentGroup).filter(TournamentGroup.tournament_id == tournament_id)
    if group_id is not None:
        query = query.filter(TournamentGroup.id == group_id)
    groups = query.order_by(TournamentGroup.sort_order, TournamentGroup.id).all()
    if group_id is not None and not groups:
        raise HTTPException(status_code=404, detail="Group not found")

    result = []
    for group in groups:
        teams = [
            gt.team
            for gt in db.query(TournamentGroupTeam)
            .filter(TournamentGroupTeam.group_id == group.id)
            .order_by(TournamentGroupTeam.sort_order, TournamentGroupTeam.id)
            .all()
        ]
        matches = (
            db.query(TournamentMatch)
            .filter(TournamentMatch.group_id == group.id, TournamentMatch.stage == "group")
            .all()
        )
        rows = compute_standings(teams, matches)
        result.append(GroupStandingsResponse(
            group_id=group.id,
            group_name=group.name,
            rows=[StandingRowResponse(**row.to_dict()) for row in rows],
        ))
    return result

@router.get("/{tournament_id}/bracket", response_model=BracketResponse)
async def get_bracket(
    tournament_id: int,
    locale: Optional[str] = None,
    db: Session = Depends(get_db)
):
    _get_tournament(db, tournament_id)
    matches = (
        db.query(TournamentMatch)
        .filter(TournamentMatch.tournament_id == tournament_id, TournamentMatch.stage == "playoff")
        .order_by(TournamentMatch.id)
        .all()
    )
    layout = group_bracket_rounds(matches)
    return BracketResponse(
        rounds=[
            BracketRoundResponse(
                round_number=r.round_number,
                label=r.label,
                matches=[_match_response(m, locale) for m in r.matches],
            )
            for r in layout.rounds
        ],
        unrounded=[_match_response(m, locale) for m in layout.unrounded],
    )

@router.post("/{tournament_id}/matches", response_model=MatchResponse, dependencies=[Depends(admin_rate_limit)])
async def create_match(
    tournament_id: int,
    payload: MatchCreate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    tournament = _get_tournament(db, tournament_id)

    if payload.stage not in STAGES:
        raise HTTPException(status_code=400, detail=f"stage must be one of {', '.join(STAGES)}")
    if payload.score_a < 0 or payload.score_b < 0:
        raise HTTPException(status_code=400, detail="Scores cannot be negative")
    _check_references(db, tournament, payload)

    match = TournamentMatch(
        tournament_id=tournament.id,
        group_id=payload.group_id,
        team_a_id=payload.team_a_id,
        team_b_id=payload.team_b_id,
        score_a=payload.score_a,
        score_b=payload.score_b,
        is_completed=payload.is_completed,
        stage=payload.stage,
        match_date=_parse_local_date(payload.match_date_local),
        bracket_round=payload.bracket_round,
        bracket_position=payload.bracket_position,
        bracket_label=payload.bracket_label,
    )

    if payload.slug is not None:
        match.slug = _explicit_slug(db, payload.slug)
    else:
        match.slug = _generated_slug(db, tournament, match)

    db.add(match)
    _commit(db, "tournament match")
    db.refresh(match)
    logger.info("[Tournaments] Profile %s created match %s (%s)", current_user.id, match.id, match.slug)
    return _match_response(match)

@router.patch("/{tournament_id}/matches/{match_id}", response_model=MatchResponse, dependencies=[Depends(admin_rate_limit)])
async def update_match(
    tournament_id: int,
    match_id: int,
    payload: MatchUpdate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    tournament = _get_tournament(db, tournament_id)
    match = (
        db.query(TournamentMatch)
        .filter(TournamentMatch.id == match_id, TournamentMatch.tournament_id == tournament_id)
        .first()
    )
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")

    if payload.score_a is not None:
        if payload.score_a < 0:
            raise HTTPException(status_code=400, detail="Scores cannot be negative")
        match.score_a = payload.score_a
    if payload.score_b is not None:
        if payload.score_b < 0:
            raise HTTPException(status_code=400, detail="Scores cannot be negative")
        match.score_b = payload.score_b
    if payload.is_completed is not None:
        match.is_completed = payload.is_completed
    if payload.match_date_local is not None:
        match.match_date = _parse_local_date(payload.match_date_local)

    if payload.slug is not None:
        match.slug = _explicit_slug(db, payload.slug, exclude_id=match.id)
    elif payload.regenerate_slug:
        match.slug = _generated_slug(db, tournament, match)

    _commit(db, f"tournament match {match.id}")
    db.refresh(match)
    logger.info("[Tournaments] Profile %s updated match %s", current_user.id, match.id)
    return _match_response(match)

@router.get("/{tournament_id}/matches/{match_id}/url", response_model=dict)
async def get_match_url_param(
    tournament_id: int,
    match_id: int,
    db: Session = Depends(get_db)
):
    """Path segment for a match built from its current data, without saving"""
    tournament = _get_tournament(db, tournament_id)
    match = (
        db.query(TournamentMatch)
        .filter(TournamentMatch.id == match_id, TournamentMatch.tournament_id == tournament_id)
        .first()
    )
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return {
        "url_param": build_match_url_param(
            match.id,
            match.match_date,
            _opponent_name(match.team_a, match.team_b),
            tournament.name,
            match.stage,
        )
    }
