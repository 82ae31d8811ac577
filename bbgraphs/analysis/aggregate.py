"""Join team/player identity, standings and derived stats into entities.

Teams are kept only when they have both a standings record and league
metadata, which drops exhibition squads (All-Star teams) without error.
Players get one entity per stat category they recorded; traded players are
merged back into one entity per id when building leaderboard views.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from bbgraphs.analysis.normalize import HITTING, PITCHING, StatLine, normalize_stats
from bbgraphs.analysis.sabermetrics import batting_metrics, pitching_metrics, team_metrics

logger = logging.getLogger(__name__)

BATTER = "batter"
PITCHER = "pitcher"

ROLE_CATEGORY = {BATTER: HITTING, PITCHER: PITCHING}

LEAGUE_ABBREVIATIONS = {
    "American League": "AL",
    "National League": "NL",
}

DIVISION_ORDER = ("E", "C", "W")


class NoQualifyingEntitiesError(RuntimeError):
    """Raised when aggregation leaves nothing to render."""


@dataclass(frozen=True)
class StandingsEntry:
    wins: int = 0
    losses: int = 0
    games_back: str = "-"
    wild_card_games_back: Optional[str] = None
    wild_card_rank: Optional[int] = None
    clinch_indicator: Optional[str] = None
    league: str = ""
    division: str = ""


@dataclass(frozen=True)
class Team:
    team_id: int
    name: str
    abbreviation: str
    league: str
    division: str
    division_key: str
    wins: int
    losses: int
    games_back: str
    wild_card_games_back: Optional[str]
    wild_card_rank: Optional[int]
    clinch_indicator: Optional[str]
    hitting: StatLine
    pitching: StatLine
    metrics: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metrics", _read_only(self.metrics))

    @property
    def league_abbr(self) -> str:
        return league_abbreviation(self.league)

    @property
    def games_played(self) -> int:
        return self.wins + self.losses

    @property
    def runs_scored(self) -> float:
        return self.hitting.runs

    @property
    def runs_allowed(self) -> float:
        return self.pitching.runs


@dataclass(frozen=True)
class Player:
    player_id: int
    name: str
    role: str  # 'batter' or 'pitcher'
    position: str
    league: str  # 'AL' / 'NL'
    team_name: str
    team_abbrs: tuple[str, ...]
    age: Optional[int]
    bat_side: Optional[str]
    pitch_hand: Optional[str]
    stats: StatLine
    metrics: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metrics", _read_only(self.metrics))

    @property
    def team_label(self) -> str:
        return "/".join(self.team_abbrs)

    def value(self, key: str) -> float:
        """Sortable value for a leaderboard key (unknown keys sort as 0)."""
        if key == "age":
            return self.age or 0
        return self.metrics.get(key, 0) or 0


def _read_only(metrics: Mapping[str, float]) -> Mapping[str, float]:
    if isinstance(metrics, MappingProxyType):
        return metrics
    return MappingProxyType(dict(metrics))


def league_abbreviation(league_name: str) -> str:
    return LEAGUE_ABBREVIATIONS.get(league_name, league_name)


def division_key(division_name: str) -> str:
    """Reduce "American League East" to "E" (C, W likewise)."""
    if not division_name:
        return ""
    for word, key in (("East", "E"), ("Central", "C"), ("West", "W")):
        if word in division_name:
            return key
    return division_name


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ── Teams ──


def parse_standings(records: Optional[list[dict]]) -> dict[int, StandingsEntry]:
    """Map team id → standings entry from the API's division records."""
    standings: dict[int, StandingsEntry] = {}
    for division_record in records or []:
        league = (division_record.get("league") or {}).get("name", "")
        division = (division_record.get("division") or {}).get("name", "")
        for team_record in division_record.get("teamRecords") or []:
            team_id = (team_record.get("team") or {}).get("id")
            if team_id is None:
                continue
            standings[team_id] = StandingsEntry(
                wins=_as_int(team_record.get("wins")) or 0,
                losses=_as_int(team_record.get("losses")) or 0,
                games_back=str(team_record.get("gamesBack", "-")),
                wild_card_games_back=team_record.get("wildCardGamesBack"),
                wild_card_rank=_as_int(team_record.get("wildCardRank")),
                clinch_indicator=team_record.get("clinchIndicator"),
                league=league,
                division=division,
            )
    return standings


def build_team(team: Mapping[str, Any], standing: StandingsEntry,
               stats_by_category: Optional[Mapping[str, Mapping]]) -> Team:
    """Build one Team entity from identity, standings and raw team stats."""
    hitting = normalize_stats(stats_by_category, HITTING)
    pitching = normalize_stats(stats_by_category, PITCHING)
    division = (team.get("division") or {}).get("name") or standing.division
    return Team(
        team_id=team["id"],
        name=team.get("name", ""),
        abbreviation=team.get("abbreviation", ""),
        league=team["league"]["name"],
        division=division,
        division_key=division_key(division),
        wins=standing.wins,
        losses=standing.losses,
        games_back=standing.games_back,
        wild_card_games_back=standing.wild_card_games_back,
        wild_card_rank=standing.wild_card_rank,
        clinch_indicator=standing.clinch_indicator,
        hitting=hitting,
        pitching=pitching,
        metrics=team_metrics(standing.wins, standing.losses, hitting, pitching),
    )


def build_teams(
    teams: Iterable[Mapping[str, Any]],
    standings: Mapping[int, StandingsEntry],
    stats_by_team: Mapping[int, Mapping[str, Mapping]],
) -> list[Team]:
    """One Team per team with both a standings entry and a league.

    Raises:
        NoQualifyingEntitiesError: if no team survives the join.
    """
    result = []
    for team in teams:
        name = team.get("name", team.get("id"))
        standing = standings.get(team.get("id"))
        if standing is None:
            logger.info(f"Skipping {name} - no standings data")
            continue
        if not (team.get("league") or {}).get("name"):
            logger.info(f"Skipping {name} - no league info")
            continue
        result.append(build_team(team, standing, stats_by_team.get(team["id"])))

    if not result:
        raise NoQualifyingEntitiesError("No teams have both standings and league data")

    logger.info(f"Built {len(result)} teams")
    return result


def teams_by_league(teams: Iterable[Team]) -> dict[str, list[Team]]:
    """Group teams by league abbreviation, keeping input order."""
    grouped: dict[str, list[Team]] = {}
    for team in teams:
        grouped.setdefault(team.league_abbr, []).append(team)
    return grouped


def teams_by_division(teams: Iterable[Team]) -> dict[str, list[Team]]:
    """Group teams by division key, each division sorted by wins descending."""
    grouped: dict[str, list[Team]] = {}
    for team in teams:
        grouped.setdefault(team.division_key, []).append(team)
    for division_teams in grouped.values():
        division_teams.sort(key=lambda t: t.wins, reverse=True)
    return grouped


# ── Players ──


def build_player(
    person: Mapping[str, Any],
    position: str,
    role: str,
    team: Mapping[str, Any],
    stats_by_category: Optional[Mapping[str, Mapping]],
) -> Player:
    """Build one Player entity for a single role (batter or pitcher)."""
    stats = normalize_stats(stats_by_category, ROLE_CATEGORY[role])
    metrics = batting_metrics(stats) if role == BATTER else pitching_metrics(stats)
    return Player(
        player_id=person["id"],
        name=person.get("fullName", ""),
        role=role,
        position=position,
        league=league_abbreviation((team.get("league") or {}).get("name", "")),
        team_name=team.get("name", ""),
        team_abbrs=(team.get("abbreviation", ""),),
        age=_as_int(person.get("currentAge")),
        bat_side=(person.get("batSide") or {}).get("code"),
        pitch_hand=(person.get("pitchHand") or {}).get("code"),
        stats=stats,
        metrics=metrics,
    )


def build_players(
    team: Mapping[str, Any],
    roster: Iterable[Mapping[str, Any]],
    stats_by_player: Mapping[int, Mapping[str, Mapping]],
) -> tuple[list[Player], list[Player]]:
    """Batter and pitcher entities for one team's roster.

    ``stats_by_player`` maps player id → {category: raw stat mapping}; a
    player gets an entity for each of hitting/pitching present there.
    """
    batters: list[Player] = []
    pitchers: list[Player] = []
    for entry in roster:
        person = entry.get("person") or {}
        if person.get("id") is None:
            continue
        categories = stats_by_player.get(person["id"]) or {}
        position = (entry.get("position") or {}).get("abbreviation", "")
        if HITTING in categories:
            batters.append(build_player(person, position, BATTER, team, categories))
        if PITCHING in categories:
            pitchers.append(build_player(person, position, PITCHER, team, categories))
    return batters, pitchers


def deduplicate_players(players: Iterable[Player]) -> list[Player]:
    """Merge entries sharing a player id into one entity.

    Stats come from the first entry (the API's season line for an id already
    spans every team); team abbreviations are unioned in first-seen order.
    """
    merged: dict[int, Player] = {}
    for player in players:
        existing = merged.get(player.player_id)
        if existing is None:
            merged[player.player_id] = player
            continue
        new_abbrs = tuple(a for a in player.team_abbrs if a not in existing.team_abbrs)
        if new_abbrs:
            merged[player.player_id] = replace(existing, team_abbrs=existing.team_abbrs + new_abbrs)
    return list(merged.values())


def count_team_appearances(rosters: Iterable[Iterable[Mapping[str, Any]]]) -> dict[int, int]:
    """Player id → number of team rosters the player appears on."""
    counts: dict[int, int] = {}
    for roster in rosters:
        for entry in roster:
            player_id = (entry.get("person") or {}).get("id")
            if player_id is not None:
                counts[player_id] = counts.get(player_id, 0) + 1
    return counts
