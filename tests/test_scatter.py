import pytest

from bbgraphs.analysis.aggregate import build_teams, parse_standings
from bbgraphs.charts.scatter import (
    CHARTS,
    PITCHING_CHART,
    RATES_CHART,
    RUNS_CHART,
    ChartFrame,
    ChartPoint,
    average_lines,
    build_league_charts,
    build_scatter_figure,
    figure_html,
    pythagorean_isobar,
    runs_points,
)


def _teams():
    raw, records, stats = [], [], {}
    for i, (abbr, runs, allowed) in enumerate((("BOS", 800, 650), ("NYY", 750, 700), ("TB", 650, 720))):
        team_id = 100 + i
        raw.append({"id": team_id, "name": abbr, "abbreviation": abbr,
                    "league": {"name": "American League"}, "division": {"name": "American League East"}})
        records.append({"team": {"id": team_id}, "wins": 90 - i * 5, "losses": 72 + i * 5})
        stats[team_id] = {
            "hitting": {"runs": runs, "atBats": 5500, "hits": 1400 - i * 20, "homeRuns": 200 - i * 10,
                        "baseOnBalls": 500},
            "pitching": {"runs": allowed, "inningsPitched": "1440.0", "hits": 1300 + i * 30,
                         "homeRuns": 170, "baseOnBalls": 480, "strikeOuts": 1400 - i * 50},
            "fielding": {"errors": 80, "doublePlays": 130},
        }
    standings = parse_standings([{"league": {"name": "American League"},
                                  "division": {"name": "American League East"},
                                  "teamRecords": records}])
    return build_teams(raw, standings, stats)


def test_isobar_range_and_step():
    points = [ChartPoint(600, 600, "A"), ChartPoint(800, 700, "B")]
    line = pythagorean_isobar(points, 0.5)
    xs = [x for x, _ in line]
    assert xs[0] == pytest.approx(550)
    assert all(b - a == pytest.approx(10) for a, b in zip(xs, xs[1:]))
    # at .500, RA == RS, so only RS within [550, 750] survives
    assert xs[-1] == pytest.approx(750)
    assert all(550 <= y <= 750 for _, y in line)


def test_isobar_empty():
    assert pythagorean_isobar([], 0.5) == []


def test_average_lines():
    vertical, horizontal = average_lines([ChartPoint(1, 2, "A"), ChartPoint(3, 6, "B")])
    assert vertical == [(2.0, 2.0), (2.0, 6.0)]
    assert horizontal == [(1.0, 4.0), (3.0, 4.0)]


def test_frame_reversed_axes():
    points = [ChartPoint(0, 0, "A"), ChartPoint(10, 10, "B")]
    frame = ChartFrame.fit(points, RUNS_CHART, 900, 560)
    low_x, low_y = frame.to_screen(0, 0)
    high_x, high_y = frame.to_screen(10, 10)
    assert high_x > low_x
    # runs allowed axis is reversed: more runs allowed plots lower
    assert high_y > low_y
    assert frame.axis_range("y")[0] > frame.axis_range("y")[1]

    pitching = ChartFrame.fit(points, PITCHING_CHART, 900, 560)
    assert pitching.to_screen(10, 0)[0] < pitching.to_screen(0, 0)[0]


def test_runs_points_use_abbreviations():
    points = runs_points(_teams())
    assert [p.label for p in points] == ["BOS", "NYY", "TB"]
    assert points[0].x == 800
    assert points[0].y == 650


def test_build_scatter_figure_annotations():
    teams = _teams()
    fig = build_scatter_figure(runs_points(teams), RUNS_CHART)
    labels = [a.text for a in fig.layout.annotations]
    assert labels == ["<b>BOS</b>", "<b>NYY</b>", "<b>TB</b>"]
    assert list(fig.layout.yaxis.range)[0] > list(fig.layout.yaxis.range)[1]
    # three isobars plus the team markers
    assert len(fig.data) == 4


def test_build_league_charts():
    figures = build_league_charts(_teams(), "AL", 2025)
    assert set(figures) == {spec.key for spec in CHARTS}
    rates = figures[RATES_CHART.key]
    assert len(rates.layout.annotations) == 3
    html = figure_html(rates, div_id="al-rates")
    assert 'id="al-rates"' in html
    assert "<html" not in html
