"""
URL slugs for matches, training sessions, albums and players.

Slugs are lowercase ASCII words joined by single hyphens. Cyrillic (Russian
and Serbian alphabets) is transliterated, Latin diacritics are dropped.
"""
import re
import unicodedata
from typing import Optional

from app.club.clock import DateInput, belgrade_date

CYRILLIC_TO_LATIN = {
    "а": "a",
    "б": "b",
    "в": "v",
    "г": "g",
    "д": "d",
    "ђ": "dj",
    "е": "e",
    "ё": "e",
    "ж": "zh",
    "з": "z",
    "и": "i",
    "й": "y",
    "ј": "j",
    "к": "k",
    "л": "l",
    "љ": "lj",
    "м": "m",
    "н": "n",
    "њ": "nj",
    "о": "o",
    "п": "p",
    "р": "r",
    "с": "s",
    "т": "t",
    "ћ": "c",
    "у": "u",
    "ф": "f",
    "х": "h",
    "ц": "c",
    "ч": "ch",
    "џ": "dz",
    "ш": "sh",
    "щ": "sch",
    "ъ": "",
    "ы": "y",
    "ь": "",
    "э": "e",
    "ю": "yu",
    "я": "ya",
    # Latin letters NFKD does not decompose
    "đ": "dj",
    "ł": "l",
    "ø": "o",
    "ß": "ss",
}

NO_DATE = "no-date"
OPPONENT_FALLBACK = "opponent"
TOURNAMENT_FALLBACK = "tournament"

STAGE_GROUP = "group"
STAGE_PLAYOFF = "playoff"
STAGES = (STAGE_GROUP, STAGE_PLAYOFF)

URL_PARAM_SEPARATOR = "--"

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def _strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def transliterate(value: str) -> str:
    return "".join(CYRILLIC_TO_LATIN.get(ch, ch) for ch in value)


def slugify(value: Optional[str]) -> str:
    """
    Normalize free text into a slug. Never fails; returns "" when nothing
    usable is left (e.g. input made only of symbols).
    """
    if not value:
        return ""
    # Accents go first; accented Cyrillic letters fall back to their base letter
    normalized = transliterate(_strip_diacritics(value.strip().lower()))
    return _NON_SLUG_CHARS.sub("-", normalized).strip("-")


def format_match_date_slug(match_date: DateInput) -> str:
    """Belgrade calendar date of the match as YYYY-MM-DD, or "no-date" """
    day = belgrade_date(match_date)
    if day is None:
        return NO_DATE
    return day.isoformat()


def stage_slug(stage: Optional[str]) -> str:
    return "group-stage" if stage == STAGE_GROUP else "playoff-stage"


def build_match_slug(
    match_date: DateInput,
    opponent_name: Optional[str],
    tournament_name: Optional[str],
    stage: Optional[str],
) -> str:
    date_part = format_match_date_slug(match_date)
    opponent_part = slugify(opponent_name) or OPPONENT_FALLBACK
    tournament_part = slugify(tournament_name) or TOURNAMENT_FALLBACK
    return f"{date_part}-{opponent_part}-{tournament_part}-{stage_slug(stage)}"


def build_match_url_param(
    match_id: int,
    match_date: DateInput,
    opponent_name: Optional[str],
    tournament_name: Optional[str],
    stage: Optional[str],
) -> str:
    slug = build_match_slug(match_date, opponent_name, tournament_name, stage)
    return f"{match_id}{URL_PARAM_SEPARATOR}{slug}"


def parse_match_url_param(value: str) -> str:
    """Id part of an "{id}--{slug}" path segment"""
    return value.split(URL_PARAM_SEPARATOR, 1)[0]
