import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel
from datetime import date, timedelta
from typing import Any, Dict, List, Optional
from app.core.database import get_db
from app.api.auth import require_admin
from app.api.throttle import admin_rate_limit
from app.models.profile import Profile
from app.models.season import Season
from app.models.training import TrainingSession
from app.club.clock import (
    belgrade_local_input_to_utc,
    belgrade_local_input_to_utc_iso,
    belgrade_minute_key,
    format_in_belgrade,
    parse_instant,
    to_utc_iso,
    utc_to_belgrade_local_input,
)
from app.club.slugs import format_match_date_slug, slugify
from app.club.slug_registry import assign_unique_slug
from app.club.training_match import TrainingMatchData, parse_training_match_data, summarize_training

logger = logging.getLogger(__name__)

router = APIRouter()

SESSION_STATUSES = ("planned", "completed", "canceled")
MAX_SCHEDULE_DAYS = 366

class TrainingSessionCreate(BaseModel):
    title: Optional[str] = None
    session_date_local: str  # "YYYY-MM-DDTHH:MM", Belgrade wall clock
    location: Optional[str] = None
    status: str = "planned"

class PlayerTrainingLine(BaseModel):
    goals: int
    assists: int

class TrainingSessionResponse(BaseModel):
    id: int
    title: Optional[str]
    session_date: str
    session_date_local: str
    session_date_display: str
    status: str
    location: Optional[str]
    slug: Optional[str]
    match_data: Optional[TrainingMatchData]
    player_summary: Dict[str, PlayerTrainingLine]

class TrainingScheduleCreate(BaseModel):
    season_id: int
    start_date: date
    end_date: date
    time: str  # "HH:MM", Belgrade wall clock
    weekdays: List[int]  # ISO weekdays, 1 = Monday ... 7 = Sunday
    title: Optional[str] = None
    location: Optional[str] = None
    status: str = "planned"

class TrainingScheduleResponse(BaseModel):
    created: int
    skipped: int
    session_dates: List[str]

def _session_response(session: TrainingSession, locale: Optional[str]) -> TrainingSessionResponse:
    match_data = parse_training_match_data(session.match_data)
    return TrainingSessionResponse(
        id=session.id,
        title=session.title,
        session_date=to_utc_iso(session.session_date),
        session_date_local=utc_to_belgrade_local_input(session.session_date),
        session_date_display=format_in_belgrade(session.session_date, locale),
        status=session.status,
        location=session.location,
        slug=session.slug,
        match_data=match_data,
        player_summary={
            player_id: PlayerTrainingLine(**line)
            for player_id, line in summarize_training(match_data).items()
        },
    )

def _get_session(db: Session, session_id: int) -> TrainingSession:
    session = db.query(TrainingSession).filter(TrainingSession.id == session_id).first()
    if not session:
        raise HTTPException(status_code=404, detail="Training session not found")
    return session

@router.post("/schedule", response_model=TrainingScheduleResponse, dependencies=[Depends(admin_rate_limit)])
async def generate_training_schedule(
    payload: TrainingScheduleCreate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create a session on every chosen weekday between two dates.

    Slots that already hold a session of the season at the same Belgrade
    minute are skipped, so the generator can be re-run over the same range.
    """
    if payload.status not in SESSION_STATUSES:
        raise HTTPException(status_code=400, detail=f"status must be one of {', '.join(SESSION_STATUSES)}")
    if not payload.weekdays or any(day < 1 or day > 7 for day in payload.weekdays):
        raise HTTPException(status_code=400, detail="weekdays must list ISO weekdays between 1 and 7")
    if payload.start_date > payload.end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    if (payload.end_date - payload.start_date).days > MAX_SCHEDULE_DAYS:
        raise HTTPException(status_code=400, detail=f"A schedule may span at most {MAX_SCHEDULE_DAYS} days")
    if belgrade_local_input_to_utc(f"{payload.start_date.isoformat()}T{payload.time}") is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="time must be a valid HH:MM wall-clock time"
        )

    season = db.query(Season).filter(Season.id == payload.season_id).first()
    if not season:
        raise HTTPException(status_code=404, detail="Season not found")

    range_start = belgrade_local_input_to_utc(f"{payload.start_date.isoformat()}T00:00")
    range_end = belgrade_local_input_to_utc(f"{payload.end_date.isoformat()}T23:59") + timedelta(minutes=1)
    existing_keys = {
        belgrade_minute_key(s.session_date)
        for s in db.query(TrainingSession)
        .filter(
            TrainingSession.season_id == season.id,
            TrainingSession.session_date >= range_start,
            TrainingSession.session_date < range_end,
        )
        .all()
    }

    weekdays = set(payload.weekdays)
    title_part = slugify(payload.title) or "training"
    created: List[str] = []
    skipped = 0

    for offset in range((payload.end_date - payload.start_date).days + 1):
        day = payload.start_date + timedelta(days=offset)
        if day.isoweekday() not in weekdays:
            continue
        session_iso = belgrade_local_input_to_utc_iso(f"{day.isoformat()}T{payload.time}")
        key = belgrade_minute_key(session_iso)
        if key in existing_keys:
            skipped += 1
            continue

        session_date = parse_instant(session_iso)
        db.add(TrainingSession(
            season_id=season.id,
            title=(payload.title or "").strip() or None,
            session_date=session_date,
            location=(payload.location or "").strip() or None,
            status=payload.status,
            slug=assign_unique_slug(db, TrainingSession, f"{format_match_date_slug(session_date)}-{title_part}"),
        ))
        # Later slots of the same run must see this slug
        db.flush()
        existing_keys.add(key)
        created.append(session_iso)

    db.commit()
    logger.info(
        "[Training] Profile %s generated %d sessions for season %s (%d skipped)",
        current_user.id, len(created), season.id, skipped,
    )
    return TrainingScheduleResponse(created=len(created), skipped=skipped, session_dates=created)

@router.get("/{session_id}", response_model=TrainingSessionResponse)
async def get_training_session(
    session_id: int,
    locale: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return _session_response(_get_session(db, session_id), locale)

@router.post("/", response_model=TrainingSessionResponse, dependencies=[Depends(admin_rate_limit)])
async def create_training_session(
    payload: TrainingSessionCreate,
    locale: Optional[str] = None,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if payload.status not in SESSION_STATUSES:
        raise HTTPException(status_code=400, detail=f"status must be one of {', '.join(SESSION_STATUSES)}")

    session_date = belgrade_local_input_to_utc(payload.session_date_local)
    if session_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="session_date_local must be a valid YYYY-MM-DDTHH:MM date-time"
        )

    title_part = slugify(payload.title) or "training"
    session = TrainingSession(
        title=payload.title,
        session_date=session_date,
        location=payload.location,
        status=payload.status,
        slug=assign_unique_slug(db, TrainingSession, f"{format_match_date_slug(session_date)}-{title_part}"),
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info("[Training] Profile %s created session %s (%s)", current_user.id, session.id, session.slug)
    return _session_response(session, locale)

@router.put("/{session_id}/match", response_model=TrainingSessionResponse, dependencies=[Depends(admin_rate_limit)])
async def update_training_match(
    session_id: int,
    payload: Dict[str, Any],
    locale: Optional[str] = None,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Store a scrimmage result; malformed fields are replaced by defaults"""
    session = _get_session(db, session_id)
    match_data = parse_training_match_data(payload)
    session.match_data = match_data.model_dump() if match_data is not None else None
    db.commit()
    db.refresh(session)
    logger.info("[Training] Profile %s updated match data of session %s", current_user.id, session_id)
    return _session_response(session, locale)
