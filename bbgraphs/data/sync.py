"""CLI command to pull the season from the MLB Stats API and regenerate the static site."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import httpx

from bbgraphs.analysis.aggregate import (
    Player,
    Team,
    build_players,
    build_teams,
    count_team_appearances,
    parse_standings,
)
from bbgraphs.config import SiteConfig, load_config
from bbgraphs.data.mlb_api import (
    get_player_info,
    get_player_stats,
    get_standings,
    get_team_roster,
    get_team_stats,
    get_teams,
    make_client,
    season_has_data,
)
from bbgraphs.render.pages import render_index_page, render_player_stats_page, write_page
from bbgraphs.render.snapshot import build_snapshot, load_snapshot, snapshot_players, write_snapshot

logger = logging.getLogger(__name__)

# Failures that skip one team or player instead of aborting the run
FETCH_ERRORS = (httpx.HTTPError, ValueError)


class NoSeasonDataError(RuntimeError):
    """Neither the current nor the previous season has games played."""


@dataclass
class SeasonData:
    season: int
    teams: list[Team] = field(default_factory=list)
    batters: list[Player] = field(default_factory=list)
    pitchers: list[Player] = field(default_factory=list)
    appearances: dict[int, int] = field(default_factory=dict)


async def resolve_season(client: httpx.AsyncClient, current_year: Optional[int] = None) -> int:
    """Current year if it has games, else the year before."""
    year = current_year or datetime.now().year
    for season in (year, year - 1):
        if await season_has_data(season, client):
            logger.info(f"Using {season} season data")
            return season
        logger.info(f"No data for {season}")
    raise NoSeasonDataError(f"No season data for {year} or {year - 1}")


async def fetch_team_players(team: dict, season: int, client: httpx.AsyncClient,
                             roster: list[dict]) -> tuple[list[Player], list[Player]]:
    """Batters and pitchers for one roster, with age and handedness from /people."""
    enriched = []
    stats_by_player: dict[int, dict] = {}
    for entry in roster:
        person = entry.get("person") or {}
        player_id = person.get("id")
        if player_id is None:
            continue
        try:
            details = await get_player_info(player_id, client)
            stats_by_player[player_id] = await get_player_stats(player_id, season, client)
        except FETCH_ERRORS as e:
            logger.warning(f"Failed to fetch {person.get('fullName', player_id)}: {e}")
            continue
        enriched.append({**entry, "person": {**person, **(details or {})}})
    return build_players(team, enriched, stats_by_player)


async def collect_season_data(season: int, client: httpx.AsyncClient, delay: float = 0.1,
                              include_players: bool = True) -> SeasonData:
    """Fetch and aggregate everything the pages need for one season."""
    logger.info(f"Fetching teams and standings for {season}...")
    raw_teams = await get_teams(season, client)
    standings = parse_standings(await get_standings(season, client))
    logger.info(f"Found {len(raw_teams)} teams, {len(standings)} with standings")

    stats_by_team: dict[int, dict] = {}
    for team in raw_teams:
        if team.get("id") not in standings:
            continue
        try:
            stats_by_team[team["id"]] = await get_team_stats(team["id"], season, client)
        except FETCH_ERRORS as e:
            logger.warning(f"Failed to fetch stats for {team.get('name')}: {e}")
        await asyncio.sleep(delay)

    # teams whose stats failed are dropped rather than drawn as all-zero lines
    fetched = [t for t in raw_teams if t.get("id") in stats_by_team]
    data = SeasonData(season=season, teams=build_teams(fetched, standings, stats_by_team))
    if not include_players:
        return data

    kept_ids = {t.team_id for t in data.teams}
    raw_by_id = {t["id"]: t for t in raw_teams if t.get("id") in kept_ids}
    rosters: dict[int, list[dict]] = {}
    for team_id, team in raw_by_id.items():
        try:
            rosters[team_id] = await get_team_roster(team_id, season, client)
        except FETCH_ERRORS as e:
            logger.warning(f"Failed to fetch roster for {team.get('name')}: {e}")
    data.appearances = count_team_appearances(rosters.values())

    for team_id, roster in rosters.items():
        team = raw_by_id[team_id]
        logger.info(f"Loading {team.get('name')}...")
        batters, pitchers = await fetch_team_players(team, season, client, roster)
        data.batters.extend(batters)
        data.pitchers.extend(pitchers)
        await asyncio.sleep(delay)

    logger.info(f"Loaded {len(data.batters)} batting and {len(data.pitchers)} pitching lines")
    return data


def load_previous_players(data: SeasonData, path: Path) -> SeasonData:
    """Fill players from the last stats run's snapshot so a graphs-only build
    still has leaderboards. A missing snapshot, or one from another season,
    leaves the players empty."""
    snapshot = load_snapshot(path)
    if snapshot is None:
        logger.info(f"No player snapshot at {path}, leaderboards omitted")
        return data
    if snapshot.season != data.season:
        logger.warning(f"Snapshot at {path} is for {snapshot.season}, not {data.season}; leaderboards omitted")
        return data
    data.batters, data.pitchers = snapshot_players(snapshot)
    logger.info(f"Loaded {len(data.batters)} batting and {len(data.pitchers)} pitching lines from {path}")
    return data


def write_site(data: SeasonData, config: SiteConfig, graphs: bool = True, stats: bool = True,
               updated: Optional[datetime] = None) -> list[Path]:
    """Render and write the requested artifacts; returns the written paths."""
    updated = updated or datetime.now(timezone.utc)
    written = []
    if graphs:
        page = render_index_page(
            data.season, data.teams, data.batters, data.pitchers,
            leaderboard_count=config.LEADERBOARD_COUNT,
            chart_width=config.CHART_WIDTH,
            chart_height=config.CHART_HEIGHT,
            updated=updated,
        )
        written.append(write_page(config.index_path, page))
    if stats:
        page = render_player_stats_page(
            data.season, data.teams, data.batters, data.pitchers, data.appearances, updated=updated,
        )
        written.append(write_page(config.player_stats_path, page))
        snapshot = build_snapshot(data.season, data.batters, data.pitchers, updated=updated)
        written.append(write_snapshot(config.snapshot_path, snapshot))
    return written


async def run_sync(config: SiteConfig, graphs: bool = True, stats: bool = True,
                   transport: Optional[httpx.AsyncBaseTransport] = None) -> list[Path]:
    """Full pipeline: season probe → fetch → aggregate → render → write."""
    async with make_client(config.API_BASE, config.REQUEST_TIMEOUT, transport) as client:
        season = config.SEASON or await resolve_season(client)
        data = await collect_season_data(season, client, config.REQUEST_DELAY, include_players=stats)
    if not stats:
        load_previous_players(data, config.snapshot_path)
    written = write_site(data, config, graphs=graphs, stats=stats)
    logger.info(f"Site build complete for {season}: {', '.join(p.name for p in written)}")
    return written


def main(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(description="Generate the baseball graphs and player stats pages")
    parser.add_argument("--season", type=int, default=None,
                        help="Season to build (default: current year, else previous)")
    parser.add_argument("--output-dir", type=Path, default=None, help="Directory for generated files")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--stats-only", action="store_true", help="Only build player stats page and JSON")
    group.add_argument("--graphs-only", action="store_true", help="Only build the graphs/standings page")

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    config = load_config()
    overrides: dict[str, object] = {}
    if args.season:
        overrides["SEASON"] = args.season
    if args.output_dir:
        overrides["OUTPUT_DIR"] = args.output_dir
    config = config.with_overrides(**overrides)

    asyncio.run(run_sync(config, graphs=not args.stats_only, stats=not args.graphs_only))


if __name__ == "__main__":
    main()
