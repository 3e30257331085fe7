import pytest

from app.club.standings import compute_standings, group_bracket_rounds, match_winner_id
from app.models.team import Team
from app.models.tournament import TournamentMatch


def team(team_id, name=None, home=False):
    return Team(id=team_id, name=name or f"Team {team_id}", is_home_club=home)


def match(a, b, score_a, score_b, completed=True, **extra):
    return TournamentMatch(
        team_a_id=a,
        team_b_id=b,
        score_a=score_a,
        score_b=score_b,
        is_completed=completed,
        **extra,
    )


def by_team(rows):
    return {row.team.id: row for row in rows}


class TestComputeStandings:

    def test_win_and_loss(self):
        rows = by_team(compute_standings([team(1), team(2)], [match(1, 2, 3, 1)]))

        a, b = rows[1], rows[2]
        assert (a.played, a.wins, a.draws, a.losses) == (1, 1, 0, 0)
        assert (a.goals_for, a.goals_against, a.goal_diff, a.points) == (3, 1, 2, 3)
        assert (b.played, b.wins, b.draws, b.losses) == (1, 0, 0, 1)
        assert (b.goals_for, b.goals_against, b.goal_diff, b.points) == (1, 3, -2, 0)

    def test_draw(self):
        rows = compute_standings([team(1), team(2)], [match(1, 2, 2, 2)])

        for row in rows:
            assert row.played == 1
            assert row.draws == 1
            assert row.points == 1
            assert row.goal_diff == 0

    def test_incomplete_match_is_ignored(self):
        rows = compute_standings([team(1), team(2)], [match(1, 2, 5, 0, completed=False)])

        for row in rows:
            assert row.to_dict()["played"] == 0
            assert row.goals_for == 0
            assert row.points == 0

    def test_ordering_by_points_then_goal_difference(self):
        teams = [team(1), team(2), team(3), team(4)]
        matches = [
            match(3, 4, 1, 0),  # team 3: 3 pts
            match(3, 1, 2, 0),  # team 3: 6 pts
            match(1, 4, 5, 0),  # team 1: 3 pts, gd +3
            match(2, 4, 2, 1),  # team 2: 3 pts, gd +1
        ]
        rows = compute_standings(teams, matches)

        assert [r.team.id for r in rows] == [3, 1, 2, 4]
        assert [r.points for r in rows] == [6, 3, 3, 0]

    def test_goals_for_breaks_goal_difference_tie(self):
        matches = [
            match(1, 3, 1, 0),
            match(2, 4, 4, 3),
        ]
        rows = compute_standings([team(1), team(2), team(3), team(4)], matches)

        assert [r.team.id for r in rows[:2]] == [2, 1]

    def test_full_tie_keeps_input_order(self):
        teams = [team(7), team(3), team(5)]
        rows = compute_standings(teams, [])

        assert [r.team.id for r in rows] == [7, 3, 5]

    def test_unresolved_team_is_skipped(self):
        rows = by_team(compute_standings([team(1), team(2)], [match(1, 99, 4, 0), match(None, 2, 1, 1)]))

        assert rows[1].played == 0
        assert rows[2].played == 0

    def test_empty_teams(self):
        assert compute_standings([], [match(1, 2, 1, 0)]) == []

    def test_duplicate_team_ids_collapse(self):
        rows = compute_standings([team(1, "First"), team(1, "Again"), team(2)], [match(1, 2, 2, 0)])

        assert len(rows) == 2
        assert rows[0].team.name == "First"
        assert rows[0].wins == 1

    def test_self_match_counts_twice(self):
        rows = compute_standings([team(1)], [match(1, 1, 2, 2)])

        assert rows[0].played == 2
        assert rows[0].draws == 2
        assert rows[0].goal_diff == 0

    def test_derived_values_follow_counters(self):
        row = compute_standings([team(1), team(2)], [match(1, 2, 3, 1)])[0]
        row.draws += 1
        row.goals_against += 4

        assert row.points == 4
        assert row.goal_diff == -2

    def test_to_dict_marks_home_club(self):
        rows = compute_standings([team(1, "Propeleri", home=True), team(2)], [])
        data = rows[0].to_dict()

        assert data["team_name"] == "Propeleri"
        assert data["is_home_club"] is True


class TestMatchWinner:

    @pytest.mark.parametrize("score_a, score_b, expected", [
        (3, 1, 1),
        (0, 2, 2),
        (2, 2, None),
    ])
    def test_winner(self, score_a, score_b, expected):
        assert match_winner_id(match(1, 2, score_a, score_b)) == expected

    def test_open_match_has_no_winner(self):
        assert match_winner_id(match(1, 2, 3, 0, completed=False)) is None

    def test_missing_team_has_no_winner(self):
        assert match_winner_id(match(1, None, 3, 0)) is None


class TestBracketRounds:

    def test_rounds_sorted_and_labelled(self):
        final = match(1, 2, 0, 0, completed=False, bracket_round=2, bracket_position=1, bracket_label="Final")
        semi_2 = match(3, 4, 1, 0, bracket_round=1, bracket_position=2)
        semi_1 = match(1, 5, 4, 2, bracket_round=1, bracket_position=1)
        third = match(5, 4, 0, 0, completed=False)

        layout = group_bracket_rounds([final, semi_2, semi_1, third])

        assert [r.round_number for r in layout.rounds] == [1, 2]
        assert layout.rounds[0].label == "Round 1"
        assert layout.rounds[0].matches == [semi_1, semi_2]
        assert layout.rounds[1].label == "Final"
        assert layout.unrounded == [third]

    def test_missing_position_sorts_first(self):
        placed = match(1, 2, 0, 0, bracket_round=1, bracket_position=1)
        unplaced = match(3, 4, 0, 0, bracket_round=1)

        layout = group_bracket_rounds([placed, unplaced])

        assert layout.rounds[0].matches == [unplaced, placed]

    def test_empty(self):
        layout = group_bracket_rounds([])
        assert layout.rounds == []
        assert layout.unrounded == []
