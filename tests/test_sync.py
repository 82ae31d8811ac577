import asyncio
import json

import httpx
import pytest

from bbgraphs.analysis.aggregate import NoQualifyingEntitiesError
from bbgraphs.config import SiteConfig
from bbgraphs.data.mlb_api import make_client
from bbgraphs.data.sync import NoSeasonDataError, collect_season_data, resolve_season, run_sync

TEAMS = [
    {"id": 111, "name": "Boston Red Sox", "abbreviation": "BOS",
     "league": {"name": "American League"}, "division": {"name": "American League East"}},
    {"id": 119, "name": "Los Angeles Dodgers", "abbreviation": "LAD",
     "league": {"name": "National League"}, "division": {"name": "National League West"}},
    {"id": 159, "name": "AL All-Stars", "abbreviation": "ALS", "league": {"name": "American League"}},
]

STANDINGS = [
    {"league": {"name": "American League"}, "division": {"name": "American League East"},
     "teamRecords": [{"team": {"id": 111}, "wins": 89, "losses": 73, "gamesBack": "-"}]},
    {"league": {"name": "National League"}, "division": {"name": "National League West"},
     "teamRecords": [{"team": {"id": 119}, "wins": 93, "losses": 69, "gamesBack": "-"}]},
]

ROSTERS = {
    111: [{"person": {"id": 1, "fullName": "Traded Guy"}, "position": {"abbreviation": "LF"}},
          {"person": {"id": 2, "fullName": "Sox Ace"}, "position": {"abbreviation": "P"}}],
    119: [{"person": {"id": 1, "fullName": "Traded Guy"}, "position": {"abbreviation": "LF"}},
          {"person": {"id": 3, "fullName": "Broken Record"}, "position": {"abbreviation": "C"}}],
}


def _group(name, stat):
    return {"group": {"displayName": name}, "splits": [{"stat": stat}]}


def handler(request):
    path = request.url.path.removeprefix("/api/v1")
    if path == "/teams":
        return httpx.Response(200, json={"teams": TEAMS})
    if path == "/standings":
        return httpx.Response(200, json={"records": STANDINGS})
    if path.endswith("/stats") and path.startswith("/teams/"):
        return httpx.Response(200, json={"stats": [
            _group("hitting", {"runs": 780, "atBats": 5500, "hits": 1420, "homeRuns": 190}),
            _group("pitching", {"runs": 690, "inningsPitched": "1440.0", "hits": 1310}),
            _group("fielding", {"errors": 75, "doublePlays": 140}),
        ]})
    if path.endswith("/roster"):
        return httpx.Response(200, json={"roster": ROSTERS[int(path.split("/")[2])]})
    if path == "/people/3":
        return httpx.Response(503, json={})
    if path.startswith("/people/") and path.endswith("/stats"):
        player_id = int(path.split("/")[2])
        if player_id == 2:
            return httpx.Response(200, json={"stats": [_group("pitching", {"inningsPitched": "170.0"})]})
        return httpx.Response(200, json={"stats": [_group("hitting", {"atBats": 450, "hits": 130})]})
    if path.startswith("/people/"):
        player_id = int(path.split("/")[2])
        return httpx.Response(200, json={"people": [{"id": player_id, "currentAge": 29,
                                                     "batSide": {"code": "L"}}]})
    return httpx.Response(404, json={})


def _config(tmp_path, **kwargs):
    return SiteConfig(OUTPUT_DIR=tmp_path, REQUEST_DELAY=0, SEASON=2025).with_overrides(**kwargs)


def test_run_sync_writes_all_artifacts(tmp_path):
    written = asyncio.run(run_sync(_config(tmp_path), transport=httpx.MockTransport(handler)))

    assert [p.name for p in written] == ["index.html", "player_stats.html", "player-stats.json"]
    snapshot = json.loads((tmp_path / "player-stats.json").read_text())
    assert snapshot["season"] == 2025
    # one batting line per team for the traded player; the failed player is skipped
    assert [b["teamAbbr"] for b in snapshot["batters"]] == ["BOS", "LAD"]
    assert [p["name"] for p in snapshot["pitchers"]] == ["Sox Ace"]

    index = (tmp_path / "index.html").read_text()
    assert "Boston Red Sox" in index
    assert "AL All-Stars" not in index
    assert "BOS/LAD" in index

    stats_page = (tmp_path / "player_stats.html").read_text()
    assert 'font-style: italic;' in stats_page


def test_graphs_only_without_snapshot_skips_leaders(tmp_path):
    written = asyncio.run(run_sync(_config(tmp_path), stats=False, transport=httpx.MockTransport(handler)))
    assert [p.name for p in written] == ["index.html"]
    assert 'id="leaders"' not in (tmp_path / "index.html").read_text()


def test_graphs_only_reuses_previous_snapshot(tmp_path):
    transport = httpx.MockTransport(handler)
    asyncio.run(run_sync(_config(tmp_path), graphs=False, transport=transport))
    assert not (tmp_path / "index.html").exists()

    def teams_only(request):
        if request.url.path.startswith("/api/v1/people/"):
            raise AssertionError("graphs-only run fetched players")
        return handler(request)

    written = asyncio.run(run_sync(_config(tmp_path), stats=False, transport=httpx.MockTransport(teams_only)))

    assert [p.name for p in written] == ["index.html"]
    index = (tmp_path / "index.html").read_text()
    assert 'id="leaders"' in index
    assert "Sox Ace" in index
    assert "BOS/LAD" in index


def test_graphs_only_ignores_snapshot_from_other_season(tmp_path):
    asyncio.run(run_sync(_config(tmp_path, SEASON=2024), graphs=False, transport=httpx.MockTransport(handler)))
    asyncio.run(run_sync(_config(tmp_path), stats=False, transport=httpx.MockTransport(handler)))
    assert 'id="leaders"' not in (tmp_path / "index.html").read_text()


def test_team_with_failed_stats_is_dropped():
    def failing_dodgers(request):
        if request.url.path == "/api/v1/teams/119/stats":
            return httpx.Response(503, json={})
        return handler(request)

    async def collect():
        async with make_client(transport=httpx.MockTransport(failing_dodgers)) as client:
            return await collect_season_data(2025, client, delay=0, include_players=False)

    data = asyncio.run(collect())

    assert [t.abbreviation for t in data.teams] == ["BOS"]
    assert data.teams[0].runs_scored == 780


def test_all_team_stats_failing_raises():
    def failing(request):
        if request.url.path.endswith("/stats"):
            return httpx.Response(503, json={})
        return handler(request)

    async def collect():
        async with make_client(transport=httpx.MockTransport(failing)) as client:
            return await collect_season_data(2025, client, delay=0, include_players=False)

    with pytest.raises(NoQualifyingEntitiesError):
        asyncio.run(collect())


def test_resolve_season_falls_back_then_raises():
    def probe(wins_by_season):
        def inner(request):
            season = int(request.url.params["season"])
            if request.url.path.endswith("/teams"):
                return httpx.Response(200, json={"teams": [{"id": 1}]})
            wins = wins_by_season.get(season, 0)
            return httpx.Response(200, json={"records": [{"teamRecords": [{"wins": wins, "losses": 0}]}]})
        return inner

    async def resolve(wins_by_season):
        async with make_client(transport=httpx.MockTransport(probe(wins_by_season))) as client:
            return await resolve_season(client, current_year=2026)

    assert asyncio.run(resolve({2026: 1})) == 2026
    assert asyncio.run(resolve({2025: 90})) == 2025
    with pytest.raises(NoSeasonDataError):
        asyncio.run(resolve({}))
