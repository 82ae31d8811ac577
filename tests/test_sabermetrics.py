import pytest

from bbgraphs.analysis.normalize import StatLine
from bbgraphs.analysis.sabermetrics import (
    batting_average,
    batting_metrics,
    defensive_efficiency,
    era,
    fip,
    fip_above_replacement,
    isobar_runs_allowed,
    isolated_power,
    on_base_percentage,
    pitching_metrics,
    player_fip,
    pythagorean_expected_wins,
    pythagorean_variance,
    round_half_up,
    runs_created,
    runs_created_classic,
    slugging,
    team_metrics,
    whip,
)


def test_zero_at_bats_rates_are_zero():
    s = StatLine()
    assert isolated_power(s) == 0
    assert on_base_percentage(s) == 0
    assert batting_average(s) == 0
    assert slugging(s) == 0
    assert runs_created(s) == 0
    assert runs_created_classic(s) == 0


def test_zero_innings_pitching_is_zero():
    s = StatLine(home_runs=3, walks=5, strikeouts=2)
    assert fip(s) == 0
    assert player_fip(s) == 0
    assert defensive_efficiency(s) == 0
    assert era(s) == 0
    assert whip(s) == 0


def test_der_nonpositive_denominator_is_zero():
    s = StatLine(innings_pitched=1, strikeouts=10)
    assert defensive_efficiency(s) == 0


def test_der_value():
    s = StatLine(innings_pitched=1400, hits=1300, errors=80, home_runs=180, double_plays=130, strikeouts=1350)
    expected = 1 - (1300 + 80 - 180) / (4200 + 1300 + 80 - 130 - 180 - 1350)
    assert defensive_efficiency(s) == pytest.approx(expected)


def test_pythagorean_equal_runs():
    assert pythagorean_variance(90, 72, 700, 700) == pytest.approx(90 - 81)


def test_pythagorean_no_runs_is_500_team():
    assert pythagorean_expected_wins(1, 1, 0, 0) == pytest.approx(1)
    assert pythagorean_variance(0, 0, 0, 0) == 0


def test_pythagorean_expected_wins():
    expected = (800 ** 2 / (800 ** 2 + 600 ** 2)) * 162
    assert pythagorean_expected_wins(100, 62, 800, 600) == pytest.approx(expected)


def test_fipar_example():
    assert fip_above_replacement(3.00, 180) == 60


def test_fipar_rounds_half_up():
    # (6.00 - 5.50) * 9 / 9 = 0.5
    assert fip_above_replacement(5.50, 9) == 1


def test_modern_runs_created():
    s = StatLine(at_bats=200, hits=70, home_runs=60)
    assert s.total_bases == 250
    assert on_base_percentage(s) == pytest.approx(0.350)
    assert runs_created(s) == pytest.approx(87.5)

    s = StatLine(at_bats=90, hits=25, walks=10, home_runs=0, doubles=0)
    assert on_base_percentage(s) == pytest.approx(0.35)


def test_classic_runs_created():
    s = StatLine(at_bats=500, hits=150, walks=50, doubles=30, triples=5, home_runs=25)
    tb = s.total_bases
    assert runs_created_classic(s) == pytest.approx(200 * tb / 550)


def test_fip_constant():
    s = StatLine(innings_pitched=200, home_runs=20, walks=50, hit_by_pitch=5, strikeouts=200)
    raw = (13 * 20 + 3 * 55 - 2 * 200) / 200
    assert fip(s) == pytest.approx(raw)
    assert player_fip(s) == pytest.approx(raw + 3.10)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.3125, 3) == pytest.approx(0.313)
    assert round_half_up(-0.5) == 0


def test_isobar_at_500_is_identity():
    assert isobar_runs_allowed(700, 0.5) == pytest.approx(700)
    assert isobar_runs_allowed(700, 0.6) < 700


def test_metric_bundles():
    batter = batting_metrics(StatLine(at_bats=4, hits=2, home_runs=1, walks=1))
    assert batter["avg"] == pytest.approx(0.5)
    assert batter["pa"] == 5
    assert batter["iso"] == pytest.approx(0.75)

    pitcher = pitching_metrics(StatLine(innings_pitched=9, earned_runs=3, hits=6, walks=3))
    assert pitcher["era"] == pytest.approx(3.0)
    assert pitcher["whip"] == pytest.approx(1.0)


def test_team_metrics():
    hitting = StatLine(runs=700, at_bats=5500, hits=1400, walks=500)
    pitching = StatLine(runs=700, innings_pitched=1450)
    metrics = team_metrics(81, 81, hitting, pitching)
    assert metrics["win_pct"] == pytest.approx(0.5)
    assert metrics["pyth_var"] == pytest.approx(0)
    assert metrics["rs_per_game"] == pytest.approx(700 / 162)
