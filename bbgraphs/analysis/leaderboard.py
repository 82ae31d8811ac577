"""Leaderboard filter/sort engine.

The view is a pure function of the player collection and a LeaderboardConfig;
callers own the config (the page keeps one per board) and derive the next one
with ``toggle_sort`` / ``with_overrides`` instead of mutating shared state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from bbgraphs.analysis.aggregate import BATTER, PITCHER, Player, deduplicate_players

ALL_LEAGUES = "ALL"
_ALL_ALIASES = {ALL_LEAGUES, "MLB"}

# Qualification: half of the full-season rate (3.1 PA / 1 IP per team game)
FULL_SEASON_PA = 502
FULL_SEASON_IP = 162
QUALIFYING_FRACTION = 0.5
QUALIFYING_PA = FULL_SEASON_PA * QUALIFYING_FRACTION  # 251
QUALIFYING_IP = FULL_SEASON_IP * QUALIFYING_FRACTION  # 81

# Pitcher keys where lower is better
ASCENDING_PITCHER_KEYS = frozenset({"era", "whip", "fip", "hr", "bb", "l"})

DEFAULT_SORT_KEY = {BATTER: "rc", PITCHER: "fipar"}

BATTER_SORT_KEYS = (
    "rc", "rc_classic", "r", "rbi", "avg", "obp", "slg", "ops", "iso",
    "h", "doubles", "triples", "hr", "tb", "sb", "bb", "so", "g", "pa", "age",
)
PITCHER_SORT_KEYS = (
    "fipar", "ip", "era", "fip", "whip", "g", "gs", "w", "l", "sv",
    "hr", "bb", "k", "age",
)
SORT_KEYS = {BATTER: BATTER_SORT_KEYS, PITCHER: PITCHER_SORT_KEYS}


@dataclass(frozen=True)
class LeaderboardConfig:
    league: str = ALL_LEAGUES
    count: Optional[int] = 10
    qualified_only: bool = False
    max_age: Optional[int] = None
    sort_key: str = "rc"
    sort_ascending: bool = False

    def with_overrides(self, **kwargs: object) -> "LeaderboardConfig":
        return replace(self, **kwargs)

    @classmethod
    def for_role(cls, role: str, **kwargs: object) -> "LeaderboardConfig":
        """Default config for a board: the role's headline stat, its default direction."""
        key = DEFAULT_SORT_KEY[role]
        config = cls(sort_key=key, sort_ascending=default_sort_ascending(key, role))
        return config.with_overrides(**kwargs)


def default_sort_ascending(key: str, role: str) -> bool:
    """Lower-is-better stats sort ascending on first selection."""
    return role == PITCHER and key in ASCENDING_PITCHER_KEYS


def toggle_sort(config: LeaderboardConfig, key: str, role: str) -> LeaderboardConfig:
    """Same key flips the direction; a new key starts at its default direction."""
    if key not in SORT_KEYS[role]:
        raise ValueError(f"Unknown {role} sort key: {key}")
    if config.sort_key == key:
        return config.with_overrides(sort_ascending=not config.sort_ascending)
    return config.with_overrides(sort_key=key, sort_ascending=default_sort_ascending(key, role))


def is_qualified(player: Player) -> bool:
    if player.role == PITCHER:
        return player.stats.innings_pitched >= QUALIFYING_IP
    return player.stats.obp_denominator >= QUALIFYING_PA


def _league_matches(player: Player, league: str) -> bool:
    return league.upper() in _ALL_ALIASES or player.league == league.upper()


def compute_leaderboard_view(players: Iterable[Player], config: LeaderboardConfig) -> list[Player]:
    """Filtered, deduplicated, sorted and truncated board.

    Order of operations: league filter, merge traded players, age filter,
    qualification, sort (stable, so ties keep input order), top-N.
    """
    filtered = [p for p in players if _league_matches(p, config.league)]
    filtered = deduplicate_players(filtered)

    if config.max_age:
        filtered = [p for p in filtered if p.age and p.age <= config.max_age]

    if config.qualified_only:
        filtered = [p for p in filtered if is_qualified(p)]

    filtered.sort(key=lambda p: p.value(config.sort_key), reverse=not config.sort_ascending)

    if config.count is not None:
        filtered = filtered[:config.count]
    return filtered
