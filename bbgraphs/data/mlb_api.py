"""Fetch teams, standings, rosters and season stats from the MLB Stats API (statsapi.mlb.com).

Every call accepts an optional shared ``httpx.AsyncClient``; without one a
short-lived client is opened for the single request. Paths are relative, so
a shared client must carry ``base_url``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from bbgraphs.analysis.normalize import parse_stat_groups

logger = logging.getLogger(__name__)

BASE_URL = "https://statsapi.mlb.com/api/v1"
DEFAULT_TIMEOUT = 30.0

MLB_SPORT_ID = 1
LEAGUE_IDS = "103,104"  # AL, NL
TEAM_STAT_GROUPS = "hitting,pitching,fielding"
PLAYER_STAT_GROUPS = "hitting,pitching"


def make_client(base_url: str = BASE_URL, timeout: float = DEFAULT_TIMEOUT,
                transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)


async def _get_json(path: str, params: Optional[dict] = None,
                    client: Optional[httpx.AsyncClient] = None) -> dict[str, Any]:
    if client is None:
        async with make_client() as own_client:
            return await _get_json(path, params, own_client)
    resp = await client.get(path, params=params)
    resp.raise_for_status()
    return resp.json()


async def get_teams(season: int, client: Optional[httpx.AsyncClient] = None) -> list[dict]:
    """All MLB teams for a season (may include exhibition squads)."""
    data = await _get_json("/teams", {"sportId": MLB_SPORT_ID, "season": season}, client)
    return data.get("teams") or []


async def get_standings(season: int, client: Optional[httpx.AsyncClient] = None) -> list[dict]:
    """Regular-season division records for both leagues."""
    data = await _get_json(
        "/standings",
        {"leagueId": LEAGUE_IDS, "season": season, "standingsTypes": "regularSeason"},
        client,
    )
    return data.get("records") or []


async def get_team_stats(team_id: int, season: int,
                         client: Optional[httpx.AsyncClient] = None) -> dict[str, dict]:
    """Season hitting/pitching/fielding stats for a team, keyed by category."""
    data = await _get_json(
        f"/teams/{team_id}/stats",
        {"stats": "season", "season": season, "group": TEAM_STAT_GROUPS},
        client,
    )
    return parse_stat_groups(data.get("stats"))


async def get_team_roster(team_id: int, season: int,
                          client: Optional[httpx.AsyncClient] = None) -> list[dict]:
    """Roster entries ({person, position, ...}) for a team's season."""
    data = await _get_json(f"/teams/{team_id}/roster", {"season": season}, client)
    return data.get("roster") or []


async def get_player_info(player_id: int,
                          client: Optional[httpx.AsyncClient] = None) -> Optional[dict]:
    """Person record with age and handedness; None if the API has no entry."""
    data = await _get_json(f"/people/{player_id}", client=client)
    people = data.get("people") or []
    return people[0] if people else None


async def get_player_stats(player_id: int, season: int,
                           client: Optional[httpx.AsyncClient] = None) -> dict[str, dict]:
    """Season hitting/pitching stats for a player, keyed by category.

    Categories the player has no split for are absent from the result.
    """
    data = await _get_json(
        f"/people/{player_id}/stats",
        {"stats": "season", "season": season, "group": PLAYER_STAT_GROUPS},
        client,
    )
    return parse_stat_groups(data.get("stats"))


async def season_has_data(season: int, client: Optional[httpx.AsyncClient] = None) -> bool:
    """True when the season has teams, standings, and at least one decided game.

    Network, HTTP and malformed-body failures are logged and count as "no data".
    """
    logger.info(f"Checking if {season} season has data...")
    try:
        teams = await get_teams(season, client)
        if not teams:
            return False
        records = await get_standings(season, client)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Season probe for {season} failed: {e}")
        return False

    for division in records:
        for team_record in division.get("teamRecords") or []:
            if (team_record.get("wins") or 0) > 0 or (team_record.get("losses") or 0) > 0:
                logger.info(f"{season} has data")
                return True
    logger.info(f"{season} has no games played")
    return False
