"""Closed-form sabermetric formulas over normalized stat lines.

Every function is pure and returns 0 whenever its denominator would be zero,
so no NaN or infinity ever reaches the pages or the JSON snapshot.

Formulas:
  AVG   = H / AB
  SLG   = TB / AB
  OBP   = (H + BB + HBP) / (AB + BB + HBP + SF)
  ISO   = SLG - AVG
  FIP   = (13*HR + 3*(BB + HBP) - 2*K) / IP         (+3.10 for player boards)
  DER   = 1 - (H + E - HR) / (IP*3 + H + E - DP - HR - K)
  RC    = OBP * TB                                    (tag "rc")
  RC    = (H + BB) * TB / (AB + BB)                   (tag "rc_classic")
  FIPAR = round((6.00 - FIP) * IP / 9)
"""

from __future__ import annotations

import math

from bbgraphs.analysis.normalize import StatLine

FIP_CONSTANT = 3.10
REPLACEMENT_FIP = 6.00

RUNS_CREATED = "rc"
RUNS_CREATED_CLASSIC = "rc_classic"


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves toward +infinity (``round`` in Python rounds to even)."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


# ── Team record ──


def games_played(wins: float, losses: float) -> float:
    return wins + losses


def win_pct(wins: float, losses: float) -> float:
    games = wins + losses
    if games == 0:
        return 0.0
    return wins / games


def pythagorean_expected_wins(wins: float, losses: float, runs_scored: float, runs_allowed: float) -> float:
    """Wins predicted by RS^2 / (RS^2 + RA^2). A team that has neither scored
    nor allowed a run is a .500 team."""
    games = wins + losses
    if games == 0:
        return 0.0
    rs2 = runs_scored ** 2
    ra2 = runs_allowed ** 2
    if rs2 + ra2 == 0:
        return games / 2
    return (rs2 / (rs2 + ra2)) * games


def pythagorean_variance(wins: float, losses: float, runs_scored: float, runs_allowed: float) -> float:
    """Actual wins minus Pythagorean expected wins (0 before any games)."""
    if wins + losses == 0:
        return 0.0
    return wins - pythagorean_expected_wins(wins, losses, runs_scored, runs_allowed)


def isobar_runs_allowed(runs_scored: float, pct: float) -> float:
    """Runs allowed that puts ``runs_scored`` exactly at win percentage ``pct``."""
    if pct <= 0 or pct >= 1:
        return 0.0
    return runs_scored * math.sqrt((1 - pct) / pct)


# ── Batting ──


def batting_average(s: StatLine) -> float:
    if s.at_bats == 0:
        return 0.0
    return s.hits / s.at_bats


def slugging(s: StatLine) -> float:
    if s.at_bats == 0:
        return 0.0
    return s.total_bases / s.at_bats


def on_base_percentage(s: StatLine) -> float:
    denominator = s.obp_denominator
    if denominator == 0:
        return 0.0
    return (s.hits + s.walks + s.hit_by_pitch) / denominator


def ops(s: StatLine) -> float:
    return on_base_percentage(s) + slugging(s)


def isolated_power(s: StatLine) -> float:
    if s.at_bats == 0:
        return 0.0
    return slugging(s) - batting_average(s)


def runs_created(s: StatLine) -> float:
    """Modern shorthand: OBP x TB."""
    if s.obp_denominator == 0:
        return 0.0
    return on_base_percentage(s) * s.total_bases


def runs_created_classic(s: StatLine) -> float:
    """Bill James basic form: (H + BB) x TB / (AB + BB)."""
    denominator = s.at_bats + s.walks
    if denominator == 0:
        return 0.0
    return (s.hits + s.walks) * s.total_bases / denominator


# ── Pitching & defense ──


def fip(s: StatLine, constant: float = 0.0) -> float:
    """FIP without a league constant unless one is passed."""
    if s.innings_pitched == 0:
        return 0.0
    numerator = 13 * s.home_runs + 3 * (s.walks + s.hit_by_pitch) - 2 * s.strikeouts
    return numerator / s.innings_pitched + constant


def player_fip(s: StatLine) -> float:
    """Leaderboard FIP with the fixed +3.10 league constant."""
    if s.innings_pitched == 0:
        return 0.0
    return fip(s, FIP_CONSTANT)


def fip_above_replacement(fip_value: float, innings: float) -> int:
    """(6.00 - FIP) x IP / 9, rounded to the nearest run."""
    return int(round_half_up((REPLACEMENT_FIP - fip_value) * innings / 9))


def defensive_efficiency(s: StatLine) -> float:
    """Share of balls in play (excluding home runs) turned into outs."""
    if s.innings_pitched == 0:
        return 0.0
    numerator = s.hits + s.errors - s.home_runs
    denominator = (s.innings_pitched * 3) + s.hits + s.errors - s.double_plays - s.home_runs - s.strikeouts
    if denominator <= 0:
        return 0.0
    return 1 - (numerator / denominator)


def era(s: StatLine) -> float:
    if s.innings_pitched <= 0:
        return 0.0
    return s.earned_runs * 9 / s.innings_pitched


def whip(s: StatLine) -> float:
    if s.innings_pitched <= 0:
        return 0.0
    return (s.walks + s.hits) / s.innings_pitched


# ── Metric bundles ──


def batting_metrics(s: StatLine) -> dict[str, float]:
    """Leaderboard values for a batter, keyed by sort key."""
    return {
        "g": s.games_played,
        "pa": s.obp_denominator,
        "ab": s.at_bats,
        "r": s.runs,
        "h": s.hits,
        "doubles": s.doubles,
        "triples": s.triples,
        "hr": s.home_runs,
        "rbi": s.rbi,
        "tb": s.total_bases,
        "bb": s.walks,
        "so": s.strikeouts,
        "sb": s.stolen_bases,
        "cs": s.caught_stealing,
        "avg": batting_average(s),
        "obp": on_base_percentage(s),
        "slg": slugging(s),
        "ops": ops(s),
        "iso": isolated_power(s),
        RUNS_CREATED: runs_created(s),
        RUNS_CREATED_CLASSIC: runs_created_classic(s),
    }


def pitching_metrics(s: StatLine) -> dict[str, float]:
    """Leaderboard values for a pitcher, keyed by sort key."""
    fip_value = player_fip(s)
    return {
        "g": s.games_played,
        "gs": s.games_started,
        "ip": s.innings_pitched,
        "w": s.wins,
        "l": s.losses,
        "sv": s.saves,
        "h": s.hits,
        "r": s.runs,
        "er": s.earned_runs,
        "hr": s.home_runs,
        "bb": s.walks,
        "k": s.strikeouts,
        "era": era(s),
        "whip": whip(s),
        "fip": fip_value,
        "fipar": fip_above_replacement(fip_value, s.innings_pitched),
    }


def team_metrics(wins: float, losses: float, hitting: StatLine, pitching: StatLine) -> dict[str, float]:
    """Team-level values used by the standings tables and charts."""
    games = games_played(wins, losses)
    runs_scored = hitting.runs
    runs_allowed = pitching.runs
    return {
        "win_pct": win_pct(wins, losses),
        "pyth_var": pythagorean_variance(wins, losses, runs_scored, runs_allowed),
        "rs_per_game": runs_scored / games if games > 0 else 0.0,
        "ra_per_game": runs_allowed / games if games > 0 else 0.0,
        "obp": on_base_percentage(hitting),
        "iso": isolated_power(hitting),
        "fip": fip(pitching),
        "der": defensive_efficiency(pitching),
    }
