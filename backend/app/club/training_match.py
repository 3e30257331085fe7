"""
Tolerant reader for the `training_sessions.match_data` JSON column.

The column is written by several generations of the admin form, so every
field is checked on its own and replaced by a safe default when it is
malformed. Only a value that is not an object at all yields None.
"""
import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

TRAINING_TEAMS = ("team_a", "team_b")


class TrainingGoalEvent(BaseModel):
    team: Literal["team_a", "team_b"]
    scorer_player_id: str
    assist_player_id: Optional[str] = None


class TrainingMatchData(BaseModel):
    version: Literal[1] = 1
    team_a_score: int = 0
    team_b_score: int = 0
    team_a_goalie_player_id: Optional[str] = None
    team_b_goalie_player_id: Optional[str] = None
    goal_events: List[TrainingGoalEvent] = []


def _score(value: Any) -> int:
    # bool is an int subclass; a stored true/false is not a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if value < 0 or value != int(value):
        return 0
    return int(value)


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _goal_event(raw: Any) -> Optional[TrainingGoalEvent]:
    if not isinstance(raw, dict):
        return None
    team = raw.get("team")
    if team not in TRAINING_TEAMS:
        return None
    scorer = raw.get("scorer_player_id")
    if not isinstance(scorer, str):
        return None
    return TrainingGoalEvent(
        team=team,
        scorer_player_id=scorer,
        assist_player_id=_optional_str(raw.get("assist_player_id")),
    )


def parse_training_match_data(raw: Any) -> Optional[TrainingMatchData]:
    if not isinstance(raw, dict):
        return None

    raw_events = raw.get("goal_events")
    events = []
    if isinstance(raw_events, list):
        for item in raw_events:
            event = _goal_event(item)
            if event is not None:
                events.append(event)

    return TrainingMatchData(
        team_a_score=_score(raw.get("team_a_score")),
        team_b_score=_score(raw.get("team_b_score")),
        team_a_goalie_player_id=_optional_str(raw.get("team_a_goalie_player_id")),
        team_b_goalie_player_id=_optional_str(raw.get("team_b_goalie_player_id")),
        goal_events=events,
    )


def summarize_training(match_data: Optional[TrainingMatchData]) -> Dict[str, Dict[str, int]]:
    """Goals and assists per player id from a parsed training match"""
    summary: Dict[str, Dict[str, int]] = {}
    if match_data is None:
        return summary

    for event in match_data.goal_events:
        scorer = summary.setdefault(event.scorer_player_id, {"goals": 0, "assists": 0})
        scorer["goals"] += 1
        if event.assist_player_id:
            assist = summary.setdefault(event.assist_player_id, {"goals": 0, "assists": 0})
            assist["assists"] += 1
    return summary
