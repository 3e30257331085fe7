"""
Group standings and bracket layout for tournaments.

Standings are recomputed from scratch on every call from the team list and
the completed matches. Points: 3 for a win, 1 for a draw, 0 for a loss.
Sort: points, then goal difference, then goals for. Teams still tied keep
the order they were supplied in.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1


@dataclass
class StandingRow:
    team: Any
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def goal_diff(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def points(self) -> int:
        return self.wins * POINTS_FOR_WIN + self.draws * POINTS_FOR_DRAW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team.id,
            "team_name": self.team.name,
            "is_home_club": bool(getattr(self.team, "is_home_club", False)),
            "played": self.played,
            "wins": self.wins,
            "draws": self.draws,
            "losses": self.losses,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_diff": self.goal_diff,
            "points": self.points,
        }


def compute_standings(teams: Iterable[Any], matches: Iterable[Any]) -> List[StandingRow]:
    """
    Compute group standings from completed matches.

    Matches that are not completed, or whose teams are not both in `teams`,
    do not count. Nothing here raises on odd input: a duplicated team id
    keeps its first row, a match against itself counts twice on that row.
    """
    rows: Dict[Any, StandingRow] = {}
    for team in teams:
        if team.id not in rows:
            rows[team.id] = StandingRow(team=team)

    for m in matches:
        if not m.is_completed:
            continue

        row_a = rows.get(m.team_a_id)
        row_b = rows.get(m.team_b_id)
        if row_a is None or row_b is None:
            continue

        score_a = m.score_a or 0
        score_b = m.score_b or 0

        row_a.played += 1
        row_b.played += 1
        row_a.goals_for += score_a
        row_a.goals_against += score_b
        row_b.goals_for += score_b
        row_b.goals_against += score_a

        if score_a > score_b:
            row_a.wins += 1
            row_b.losses += 1
        elif score_a < score_b:
            row_b.wins += 1
            row_a.losses += 1
        else:
            row_a.draws += 1
            row_b.draws += 1

    # sorted() is stable, so rows tied on every key stay in input order
    return sorted(
        rows.values(),
        key=lambda r: (-r.points, -r.goal_diff, -r.goals_for),
    )


def match_winner_id(match: Any) -> Optional[Any]:
    """Winning team id of a completed match, None for draws or open matches"""
    if not match.is_completed:
        return None
    if match.team_a_id is None or match.team_b_id is None:
        return None
    score_a = match.score_a or 0
    score_b = match.score_b or 0
    if score_a > score_b:
        return match.team_a_id
    if score_b > score_a:
        return match.team_b_id
    return None


@dataclass
class BracketRound:
    round_number: int
    label: str
    matches: List[Any] = field(default_factory=list)


@dataclass
class BracketLayout:
    rounds: List[BracketRound] = field(default_factory=list)
    unrounded: List[Any] = field(default_factory=list)


def group_bracket_rounds(matches: Iterable[Any]) -> BracketLayout:
    """
    Group playoff matches by bracket round.

    Rounds come back in ascending order and the matches inside a round are
    sorted by bracket position (a missing position sorts as 0). A round is
    labelled with its first match's bracket_label, or "Round N".
    """
    by_round: Dict[int, List[Any]] = {}
    unrounded: List[Any] = []

    for m in matches:
        if m.bracket_round is None:
            unrounded.append(m)
        else:
            by_round.setdefault(m.bracket_round, []).append(m)

    rounds = []
    for number in sorted(by_round):
        round_matches = sorted(by_round[number], key=lambda m: m.bracket_position or 0)
        label = round_matches[0].bracket_label or f"Round {number}"
        rounds.append(BracketRound(round_number=number, label=label, matches=round_matches))

    return BracketLayout(rounds=rounds, unrounded=unrounded)
