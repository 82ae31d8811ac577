"""Static HTML pages: the daily graphs/standings index and the per-team player stats page.

Pages are assembled from f-string templates; charts are embedded as plotly
divs and plotly.js is loaded once from the CDN.
"""

from __future__ import annotations

import html
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from bbgraphs.analysis.aggregate import (
    BATTER,
    DIVISION_ORDER,
    PITCHER,
    Player,
    Team,
    teams_by_division,
    teams_by_league,
)
from bbgraphs.analysis.leaderboard import ALL_LEAGUES, LeaderboardConfig, compute_leaderboard_view
from bbgraphs.analysis.sabermetrics import round_half_up
from bbgraphs.charts.scatter import CHARTS, build_league_charts, figure_html

logger = logging.getLogger(__name__)

PLOTLY_CDN = "https://cdn.plot.ly/plotly-2.35.0.min.js"
SAVANT_PLAYER_URL = "https://baseballsavant.mlb.com/savant-player/{player_id}"

LEAGUE_ORDER = ("AL", "NL")
LEAGUE_NAMES = {"AL": "American League", "NL": "National League", ALL_LEAGUES: "MLB"}
LEADERBOARD_SCOPES = (ALL_LEAGUES, "AL", "NL")

LEFT_HANDED = "*"
SWITCH_HITTER = "†"

_STYLE = """
  body { font-family: Georgia, 'Times New Roman', serif; background: #f0f0f0; color: #2f2f2f; margin: 0; padding: 20px; }
  .container { max-width: 960px; margin: 0 auto; }
  .header { background: linear-gradient(135deg, #1e3a8a 0%, #3b82f6 50%, #1e3a8a 100%); color: #fff;
            padding: 20px; border-radius: 12px; margin-bottom: 20px; text-align: center; }
  .header h1 { margin: 0; }
  .updated { font-size: 0.85rem; color: #dbeafe; }
  h2 { border-bottom: 2px solid #1e3a8a; padding-bottom: 4px; }
  table { border-collapse: collapse; width: 100%; font-size: 0.85rem; margin-bottom: 16px; }
  th, td { padding: 2px 6px; }
  th { border-bottom: 2px solid #1e3a8a; text-align: left; }
  .stat-num { text-align: right; }
  tr:hover { background: #eff6ff; }
  .chart { background: #fff; border-radius: 8px; margin-bottom: 20px; }
  .legend { font-size: 0.8rem; color: #555; }
"""

# (header, metrics key, formatter) per leaderboard / team table column
_RATE = "rate"
_INNINGS = "innings"
_TWO_PLACES = "two"

BATTER_COLUMNS = (
    ("RC", "rc", None), ("R", "r", None), ("RBI", "rbi", None),
    ("BA", "avg", _RATE), ("OBP", "obp", _RATE), ("SLG", "slg", _RATE),
    ("G", "g", None), ("PA", "pa", None), ("H", "h", None),
    ("2B", "doubles", None), ("3B", "triples", None), ("HR", "hr", None),
    ("TB", "tb", None), ("BB", "bb", None), ("SO", "so", None),
    ("SB", "sb", None), ("CS", "cs", None),
)
PITCHER_COLUMNS = (
    ("FIPAR", "fipar", None), ("IP", "ip", _INNINGS), ("ERA", "era", _TWO_PLACES),
    ("FIP", "fip", _TWO_PLACES), ("WHIP", "whip", _TWO_PLACES),
    ("G", "g", None), ("GS", "gs", None), ("W", "w", None), ("L", "l", None),
    ("SV", "sv", None), ("H", "h", None), ("R", "r", None), ("ER", "er", None),
    ("HR", "hr", None), ("BB", "bb", None), ("SO", "k", None),
)


# ── Formatting ──


def format_rate(value: float, digits: int = 3) -> str:
    """Baseball rate style: ``0.312`` → ``.312``."""
    text = f"{value:.{digits}f}"
    if text.startswith("0."):
        return text[1:]
    if text.startswith("-0."):
        return "-" + text[2:]
    return text


def format_games_back(games_back: Optional[str]) -> str:
    if games_back in (None, "", "0.0", "-"):
        return "-"
    return str(games_back)


def format_stat(value: float, style: Optional[str]) -> str:
    if style == _RATE:
        return format_rate(value)
    if style == _INNINGS:
        return f"{value:.1f}"
    if style == _TWO_PLACES:
        return f"{value:.2f}"
    return str(int(round_half_up(value)))


def handedness_symbol(player: Player) -> str:
    """``*`` for left-handed, ``†`` for switch hitters (batters only)."""
    if player.role == PITCHER:
        return LEFT_HANDED if player.pitch_hand == "L" else ""
    if player.bat_side == "L":
        return LEFT_HANDED
    if player.bat_side == "S":
        return SWITCH_HITTER
    return ""


def _page(title: str, season: int, updated: datetime, body: str, with_charts: bool = False) -> str:
    script = f'<script src="{PLOTLY_CDN}"></script>' if with_charts else ""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{html.escape(title)}</title>
{script}
<style>{_STYLE}</style>
</head>
<body>
<div class="container">
  <div class="header">
    <h1>{html.escape(title)}</h1>
    <div>{season} Season</div>
    <div class="updated">Updated {updated.strftime("%Y-%m-%d %H:%M UTC")}</div>
  </div>
{body}
</div>
</body>
</html>
"""


def _num(value: object) -> str:
    return f'<td class="stat-num">{value}</td>'


def _header_row(first: Sequence[str], columns: Sequence[tuple]) -> str:
    cells = "".join(f"<th>{h}</th>" for h in first)
    cells += "".join(f'<th class="stat-num">{header}</th>' for header, _, _ in columns)
    return f"<tr>{cells}</tr>"


def _player_name_cell(player: Player, italic: bool = False) -> str:
    url = SAVANT_PLAYER_URL.format(player_id=player.player_id)
    style = ' style="font-style: italic;"' if italic else ""
    name = html.escape(player.name) + handedness_symbol(player)
    return f'<td{style}><a href="{url}" target="_blank">{name}</a></td>'


def _stat_cells(player: Player, columns: Sequence[tuple]) -> str:
    return "".join(_num(format_stat(player.value(key), style)) for _, key, style in columns)


# ── Standings ──


def standings_row(team: Team) -> str:
    clinch = f"-{team.clinch_indicator}" if team.clinch_indicator else ""
    wc_rank = team.wild_card_rank if team.wild_card_rank else "-"
    return (
        f"<tr><td>{html.escape(team.name)}{html.escape(clinch)}</td>"
        f"{_num(team.wins)}{_num(team.losses)}"
        f"{_num(format_games_back(team.games_back))}{_num(wc_rank)}"
        f"{_num(format_rate(team.metrics['win_pct']))}"
        f"{_num(format(team.metrics['pyth_var'], '.1f'))}"
        f"{_num(int(team.runs_scored))}{_num(int(team.runs_allowed))}</tr>"
    )


def standings_html(teams: Iterable[Team]) -> str:
    """Division tables in E, C, W order, each sorted by wins."""
    divisions = teams_by_division(teams)
    parts = []
    for key in DIVISION_ORDER:
        division_teams = divisions.get(key)
        if not division_teams:
            continue
        rows = "\n".join(standings_row(t) for t in division_teams)
        parts.append(f"""<div class="division">
  <h3>{html.escape(division_teams[0].division)}</h3>
  <table class="standings-table">
    <thead><tr><th>Team</th><th class="stat-num">W</th><th class="stat-num">L</th><th class="stat-num">GB</th><th class="stat-num">WC</th><th class="stat-num">PCT</th><th class="stat-num">PythVar</th><th class="stat-num">RS</th><th class="stat-num">RA</th></tr></thead>
    <tbody>
{rows}
    </tbody>
  </table>
</div>""")
    return "\n".join(parts)


# ── Leaderboards ──


def leaderboard_html(players: Sequence[Player], config: LeaderboardConfig, role: str) -> str:
    columns = BATTER_COLUMNS if role == BATTER else PITCHER_COLUMNS
    board = compute_leaderboard_view(players, config)
    rows = "\n".join(
        f"<tr><td>{rank}</td>{_player_name_cell(p)}<td>{html.escape(p.team_label)}</td>"
        f"{_num(p.age or '')}{_stat_cells(p, columns)}</tr>"
        for rank, p in enumerate(board, start=1)
    )
    title = "Batters by Runs Created" if role == BATTER else "Pitchers by FIP Above Replacement"
    return f"""<div class="leaderboard" data-role="{role}" data-league="{config.league}" data-sort="{config.sort_key}">
  <h3>{LEAGUE_NAMES.get(config.league, config.league)} {title}</h3>
  <table>
    <thead>{_header_row(("#", "Name", "Team", "Age"), columns)}</thead>
    <tbody>
{rows}
    </tbody>
  </table>
</div>"""


def default_leaderboards_html(batters: Sequence[Player], pitchers: Sequence[Player],
                              count: int = 10) -> str:
    """Default RC and FIPAR boards for every league scope."""
    parts = []
    for scope in LEADERBOARD_SCOPES:
        parts.append(leaderboard_html(batters, LeaderboardConfig.for_role(BATTER, league=scope, count=count), BATTER))
        parts.append(leaderboard_html(pitchers, LeaderboardConfig.for_role(PITCHER, league=scope, count=count), PITCHER))
    return "\n".join(parts)


# ── Pages ──


def render_index_page(
    season: int,
    teams: Sequence[Team],
    batters: Sequence[Player],
    pitchers: Sequence[Player],
    leaderboard_count: int = 10,
    chart_width: int = 900,
    chart_height: int = 560,
    updated: Optional[datetime] = None,
) -> str:
    """Standings, the three team charts and default leaderboards, per league."""
    updated = updated or datetime.now(timezone.utc)
    by_league = teams_by_league(teams)

    sections = []
    for league in LEAGUE_ORDER:
        league_teams = by_league.get(league)
        if not league_teams:
            continue
        figures = build_league_charts(league_teams, league, season, chart_width, chart_height)
        charts = "\n".join(
            f'<div class="chart">{figure_html(figures[spec.key], div_id=f"{league.lower()}-{spec.key}")}</div>'
            for spec in CHARTS
        )
        sections.append(f"""<section id="{league.lower()}">
  <h2>{LEAGUE_NAMES[league]}</h2>
  {standings_html(league_teams)}
  <p class="legend">Clinched: z = best record, y = division, w = wild card. PythVar = wins above Pythagorean expectation.</p>
  {charts}
</section>""")

    if batters or pitchers:
        sections.append(f"""<section id="leaders">
  <h2>Leaders</h2>
  <p class="legend">{LEFT_HANDED} bats/throws left, {SWITCH_HITTER} switch hitter.</p>
  {default_leaderboards_html(batters, pitchers, leaderboard_count)}
</section>""")

    return _page("Baseball Graphs Daily", season, updated, "\n".join(sections), with_charts=True)


def team_tables_html(team: Team, batters: Sequence[Player], pitchers: Sequence[Player],
                     appearances: Mapping[int, int]) -> str:
    """Batting (by RC) and pitching (by FIPAR) tables for one team."""
    batters = sorted(batters, key=lambda p: p.value("rc"), reverse=True)
    pitchers = sorted(pitchers, key=lambda p: p.value("fipar"), reverse=True)

    def multi_team(p: Player) -> bool:
        return appearances.get(p.player_id, 0) > 1

    batting_rows = "\n".join(
        f'<tr class="data-row" data-pa="{int(p.value("pa"))}">{_player_name_cell(p, multi_team(p))}'
        f"{_num(p.age or '')}<td>{html.escape(p.position)}</td>{_stat_cells(p, BATTER_COLUMNS)}</tr>"
        for p in batters
    )
    pitching_rows = "\n".join(
        f'<tr class="data-row" data-ip="{p.value("ip")}">{_player_name_cell(p, multi_team(p))}'
        f"{_num(p.age or '')}{_stat_cells(p, PITCHER_COLUMNS)}</tr>"
        for p in pitchers
    )
    return f"""<div class="team" id="team-{team.team_id}">
  <h3>{html.escape(team.name)}</h3>
  <table class="batting">
    <thead>{_header_row(("Name", "Age", "Pos"), BATTER_COLUMNS)}</thead>
    <tbody>
{batting_rows}
    </tbody>
  </table>
  <table class="pitching">
    <thead>{_header_row(("Name", "Age"), PITCHER_COLUMNS)}</thead>
    <tbody>
{pitching_rows}
    </tbody>
  </table>
</div>"""


def render_player_stats_page(
    season: int,
    teams: Sequence[Team],
    batters: Sequence[Player],
    pitchers: Sequence[Player],
    appearances: Optional[Mapping[int, int]] = None,
    updated: Optional[datetime] = None,
) -> str:
    """Team-by-team player tables, AL then NL, teams alphabetical."""
    updated = updated or datetime.now(timezone.utc)
    appearances = appearances or {}
    by_league = teams_by_league(teams)

    sections = []
    for league in LEAGUE_ORDER:
        league_teams = sorted(by_league.get(league, []), key=lambda t: t.name)
        if not league_teams:
            continue
        tables = "\n".join(
            team_tables_html(
                team,
                [p for p in batters if p.team_name == team.name],
                [p for p in pitchers if p.team_name == team.name],
                appearances,
            )
            for team in league_teams
        )
        sections.append(f'<section id="{league.lower()}">\n  <h2>{LEAGUE_NAMES[league]}</h2>\n{tables}\n</section>')

    legend = (f'<p class="legend">{LEFT_HANDED} bats/throws left, {SWITCH_HITTER} switch hitter, '
              f"<i>italics</i> played for more than one team.</p>")
    return _page("Player Stats", season, updated, legend + "\n" + "\n".join(sections))


def write_page(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info(f"Wrote {path}")
    return path
