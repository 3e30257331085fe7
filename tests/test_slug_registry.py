import pytest

from app.club.slug_registry import (
    SlugTakenError,
    assign_unique_slug,
    ensure_slug_available,
    slug_is_taken,
)
from app.models.tournament import Tournament, TournamentMatch


@pytest.fixture
def tournament(db_session):
    t = Tournament(name="Belgrade Cup")
    db_session.add(t)
    db_session.commit()
    return t


def add_match(db, tournament, slug):
    m = TournamentMatch(tournament_id=tournament.id, slug=slug)
    db.add(m)
    db.commit()
    return m


def test_free_slug(db_session, tournament):
    assert slug_is_taken(db_session, TournamentMatch, "final") is False
    assert assign_unique_slug(db_session, TournamentMatch, "final") == "final"


def test_taken_slug_gets_counter(db_session, tournament):
    add_match(db_session, tournament, "final")
    add_match(db_session, tournament, "final-2")

    assert slug_is_taken(db_session, TournamentMatch, "final") is True
    assert assign_unique_slug(db_session, TournamentMatch, "final") == "final-3"


def test_own_row_is_excluded(db_session, tournament):
    own = add_match(db_session, tournament, "final")

    assert slug_is_taken(db_session, TournamentMatch, "final", exclude_id=own.id) is False
    assert assign_unique_slug(db_session, TournamentMatch, "final", exclude_id=own.id) == "final"


def test_empty_base(db_session, tournament):
    assert assign_unique_slug(db_session, TournamentMatch, "") == "item"


def test_explicit_slug_conflict(db_session, tournament):
    add_match(db_session, tournament, "final")

    with pytest.raises(SlugTakenError) as exc:
        ensure_slug_available(db_session, TournamentMatch, "final")
    assert exc.value.slug == "final"
    assert ensure_slug_available(db_session, TournamentMatch, "semi-final") == "semi-final"
