"""
Player goal/assist totals for a game, derived from the goal events stored in
`games.notes`.

Penalty minutes and plus/minus are entered separately, so rows that already
exist keep those values. A row whose four counters are all zero is removed.
"""
import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.models.game import GameStats

logger = logging.getLogger(__name__)

ASSIST_FIELDS = ("assist_1_player_id", "assist_2_player_id")


def parse_game_notes(notes_json: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode the notes payload; None when it is empty or not a JSON object"""
    if not notes_json:
        return None
    try:
        parsed = json.loads(notes_json)
    except (TypeError, ValueError) as e:
        logger.warning("[GameStats] Failed to parse game notes: %s", e)
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def goal_events_from_notes(notes: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not notes:
        return []
    events = notes.get("goal_events")
    if not isinstance(events, list):
        return []
    return [e for e in events if isinstance(e, dict)]


def _player_key(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def tally_goal_events(events: Iterable[Dict[str, Any]]) -> Tuple[Counter, Counter]:
    goals: Counter = Counter()
    assists: Counter = Counter()
    for event in events:
        scorer = _player_key(event.get("scorer_player_id"))
        if scorer:
            goals[scorer] += 1
        for assist_field in ASSIST_FIELDS:
            assistant = _player_key(event.get(assist_field))
            if assistant:
                assists[assistant] += 1
    return goals, assists


@dataclass
class StatsPlan:
    upserts: List[Dict[str, Any]] = field(default_factory=list)
    deletes: List[str] = field(default_factory=list)


def plan_game_stats(game_id: int, events: Iterable[Dict[str, Any]], existing: Iterable[Any]) -> StatsPlan:
    """Work out which game_stats rows to write and which to drop"""
    goals, assists = tally_goal_events(events)
    existing_by_player = {str(row.player_id): row for row in existing}

    # Existing players first, in their stored order, then new scorers/assistants
    player_ids = list(existing_by_player)
    for player_id in list(goals) + list(assists):
        if player_id not in player_ids:
            player_ids.append(player_id)

    plan = StatsPlan()
    for player_id in player_ids:
        row = existing_by_player.get(player_id)
        penalty_minutes = int(row.penalty_minutes or 0) if row is not None else 0
        plus_minus = int(row.plus_minus or 0) if row is not None else 0
        player_goals = goals.get(player_id, 0)
        player_assists = assists.get(player_id, 0)

        if not (player_goals or player_assists or penalty_minutes or plus_minus):
            plan.deletes.append(player_id)
            continue

        plan.upserts.append({
            "game_id": game_id,
            "player_id": player_id,
            "goals": player_goals,
            "assists": player_assists,
            "penalty_minutes": penalty_minutes,
            "plus_minus": plus_minus,
        })
    return plan


def sync_game_stats(db: Session, game_id: int, notes_json: Optional[str]) -> Optional[StatsPlan]:
    """
    Rebuild goal/assist rows of `game_stats` for one game from its notes.

    Returns the applied plan, or None when there was nothing to sync.
    """
    notes = parse_game_notes(notes_json)
    if notes is None:
        return None

    existing = db.query(GameStats).filter(GameStats.game_id == game_id).all()
    plan = plan_game_stats(game_id, goal_events_from_notes(notes), existing)
    existing_by_player = {row.player_id: row for row in existing}

    for values in plan.upserts:
        row = existing_by_player.get(values["player_id"])
        if row is None:
            db.add(GameStats(**values))
        else:
            row.goals = values["goals"]
            row.assists = values["assists"]

    if plan.deletes:
        db.query(GameStats).filter(
            GameStats.game_id == game_id,
            GameStats.player_id.in_(plan.deletes),
        ).delete(synchronize_session=False)

    db.commit()
    logger.info(
        "[GameStats] Synced game %s: %d rows written, %d removed",
        game_id, len(plan.upserts), len(plan.deletes),
    )
    return plan
