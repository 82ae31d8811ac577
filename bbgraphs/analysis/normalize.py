"""Normalize raw MLB Stats API category payloads into dense stat lines.

The API returns one flat ``stat`` mapping per category (hitting, pitching,
fielding) and omits fields a category does not track. Everything downstream
works on ``StatLine``, where every field is numeric and absent values are 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional

HITTING = "hitting"
PITCHING = "pitching"
FIELDING = "fielding"

# API field name → StatLine attribute
API_FIELDS: dict[str, str] = {
    "gamesPlayed": "games_played",
    "gamesStarted": "games_started",
    "plateAppearances": "plate_appearances",
    "atBats": "at_bats",
    "runs": "runs",
    "hits": "hits",
    "doubles": "doubles",
    "triples": "triples",
    "homeRuns": "home_runs",
    "rbi": "rbi",
    "stolenBases": "stolen_bases",
    "caughtStealing": "caught_stealing",
    "baseOnBalls": "walks",
    "strikeOuts": "strikeouts",
    "hitByPitch": "hit_by_pitch",
    "sacFlies": "sac_flies",
    "inningsPitched": "innings_pitched",
    "earnedRuns": "earned_runs",
    "wins": "wins",
    "losses": "losses",
    "saves": "saves",
    "errors": "errors",
    "doublePlays": "double_plays",
}

# Fielding fields carried into the pitching line (used only by DER)
FIELDING_MERGE_FIELDS = ("errors", "doublePlays")


@dataclass(frozen=True)
class StatLine:
    """Dense per-category season line. ``runs`` is runs scored for hitting
    lines and runs allowed for pitching lines."""

    games_played: float = 0
    games_started: float = 0
    plate_appearances: float = 0
    at_bats: float = 0
    runs: float = 0
    hits: float = 0
    doubles: float = 0
    triples: float = 0
    home_runs: float = 0
    rbi: float = 0
    stolen_bases: float = 0
    caught_stealing: float = 0
    walks: float = 0
    strikeouts: float = 0
    hit_by_pitch: float = 0
    sac_flies: float = 0
    innings_pitched: float = 0
    earned_runs: float = 0
    wins: float = 0
    losses: float = 0
    saves: float = 0
    errors: float = 0
    double_plays: float = 0
    categories: frozenset = field(default_factory=frozenset)

    @property
    def singles(self) -> float:
        return self.hits - self.doubles - self.triples - self.home_runs

    @property
    def total_bases(self) -> float:
        return self.singles + 2 * self.doubles + 3 * self.triples + 4 * self.home_runs

    @property
    def obp_denominator(self) -> float:
        """AB + BB + HBP + SF, also used as the plate-appearance count."""
        return self.at_bats + self.walks + self.hit_by_pitch + self.sac_flies

    def as_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "categories"}


def to_number(value: Any) -> float:
    """Coerce an API value to a number. None, blanks and junk become 0.

    Numeric strings are parsed as-is, so ``"180.1"`` innings reads as 180.1.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    try:
        text = str(value).strip()
        if not text or text in ("-", "-.--", ".---"):
            return 0
        number = float(text)
    except (ValueError, TypeError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() and "." not in text else number


def normalize_category(raw: Optional[Mapping[str, Any]], category: str) -> StatLine:
    """Convert one raw category mapping into a StatLine.

    A missing or empty mapping is an all-zero line, not an error, and is
    not tagged with the category.
    """
    values: dict[str, float] = {}
    for api_name, attr in API_FIELDS.items():
        values[attr] = to_number(raw.get(api_name)) if raw else 0
    return StatLine(categories=frozenset([category]) if raw else frozenset(), **values)


def merge_fielding(pitching: StatLine, fielding: Optional[Mapping[str, Any]]) -> StatLine:
    """Pitching line augmented with ``errors`` and ``doublePlays`` from the
    fielding category when present, defaulting to 0 otherwise."""
    fielding = fielding or {}
    merged = pitching.as_dict()
    for api_name in FIELDING_MERGE_FIELDS:
        merged[API_FIELDS[api_name]] = to_number(fielding.get(api_name))
    categories = pitching.categories | {FIELDING} if fielding else pitching.categories
    return StatLine(categories=frozenset(categories), **merged)


def normalize_stats(
    stats_by_category: Optional[Mapping[str, Mapping[str, Any]]],
    primary: str,
) -> StatLine:
    """Produce the StatLine for ``primary`` from a category → raw mapping.

    Pitching lines pick up fielding errors and double plays when the fielding
    category is present.
    """
    stats_by_category = stats_by_category or {}
    line = normalize_category(stats_by_category.get(primary), primary)
    if primary == PITCHING:
        line = merge_fielding(line, stats_by_category.get(FIELDING))
    return line


def parse_stat_groups(stat_groups: Optional[list[dict]]) -> dict[str, dict]:
    """Flatten the API's ``stats`` array into {category: stat mapping}.

    Groups with no splits are skipped so an absent category stays absent.
    """
    result: dict[str, dict] = {}
    for group in stat_groups or []:
        name = (group.get("group") or {}).get("displayName")
        splits = group.get("splits") or []
        if not name or not splits:
            continue
        result[name] = splits[0].get("stat") or {}
    return result
