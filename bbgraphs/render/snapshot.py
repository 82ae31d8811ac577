"""JSON sidecar consumed by the leaderboard page.

Rows keep one entry per player per team (the page merges traded players
itself) and use the camelCase keys the page reads. Values are rounded the
way they are displayed: rates to 3 places, ERA/WHIP/FIP to 2, IP to 1, RC
to a whole run.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from bbgraphs.analysis.aggregate import BATTER, PITCHER, Player
from bbgraphs.analysis.normalize import HITTING, PITCHING, StatLine
from bbgraphs.analysis.sabermetrics import round_half_up

logger = logging.getLogger(__name__)


class _Row(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    player_id: int = Field(..., alias="playerId")
    team: str
    team_abbr: str = Field(..., alias="teamAbbr")
    league: str
    age: Optional[int] = None
    g: int = 0


class BatterRow(_Row):
    pa: int = 0
    ab: int = 0
    h: int = 0
    hr: int = 0
    rbi: int = 0
    r: int = 0
    sb: int = 0
    bb: int = 0
    so: int = 0
    cs: int = 0
    avg: float = 0.0
    obp: float = 0.0
    slg: float = 0.0
    ops: float = 0.0
    iso: float = 0.0
    doubles: int = 0
    triples: int = 0
    tb: int = 0
    rc: int = 0
    rc_classic: int = Field(0, alias="rcClassic")
    bat_side: Optional[str] = Field(None, alias="batSide")


class PitcherRow(_Row):
    gs: int = 0
    ip: float = 0.0
    w: int = 0
    l: int = 0  # noqa: E741
    sv: int = 0
    hr: int = 0
    k: int = 0
    bb: int = 0
    era: float = 0.0
    whip: float = 0.0
    fip: float = 0.0
    fipar: int = 0
    h: int = 0
    r: int = 0
    er: int = 0
    pitch_hand: Optional[str] = Field(None, alias="pitchHand")


class PlayerSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    season: int
    updated: str
    batters: List[BatterRow] = Field(default_factory=list)
    pitchers: List[PitcherRow] = Field(default_factory=list)


def _identity(player: Player) -> dict:
    return {
        "name": player.name,
        "playerId": player.player_id,
        "team": player.team_name,
        "teamAbbr": player.team_label,
        "league": player.league,
        "age": player.age,
    }


def batter_row(player: Player) -> BatterRow:
    m = player.metrics
    return BatterRow(
        **_identity(player),
        g=int(m["g"]),
        pa=int(m["pa"]),
        ab=int(m["ab"]),
        h=int(m["h"]),
        hr=int(m["hr"]),
        rbi=int(m["rbi"]),
        r=int(m["r"]),
        sb=int(m["sb"]),
        bb=int(m["bb"]),
        so=int(m["so"]),
        cs=int(m["cs"]),
        avg=round_half_up(m["avg"], 3),
        obp=round_half_up(m["obp"], 3),
        slg=round_half_up(m["slg"], 3),
        ops=round_half_up(m["ops"], 3),
        iso=round_half_up(m["iso"], 3),
        doubles=int(m["doubles"]),
        triples=int(m["triples"]),
        tb=int(m["tb"]),
        rc=int(round_half_up(m["rc"])),
        rcClassic=int(round_half_up(m["rc_classic"])),
        batSide=player.bat_side,
    )


def pitcher_row(player: Player) -> PitcherRow:
    m = player.metrics
    return PitcherRow(
        **_identity(player),
        g=int(m["g"]),
        gs=int(m["gs"]),
        ip=round_half_up(m["ip"], 1),
        w=int(m["w"]),
        l=int(m["l"]),
        sv=int(m["sv"]),
        hr=int(m["hr"]),
        k=int(m["k"]),
        bb=int(m["bb"]),
        era=round_half_up(m["era"], 2),
        whip=round_half_up(m["whip"], 2),
        fip=round_half_up(m["fip"], 2),
        fipar=int(m["fipar"]),
        h=int(m["h"]),
        r=int(m["r"]),
        er=int(m["er"]),
        pitchHand=player.pitch_hand,
    )


def build_snapshot(season: int, batters: Iterable[Player], pitchers: Iterable[Player],
                   updated: Optional[datetime] = None) -> PlayerSnapshot:
    updated = updated or datetime.now(timezone.utc)
    return PlayerSnapshot(
        season=season,
        updated=updated.isoformat().replace("+00:00", "Z"),
        batters=[batter_row(p) for p in batters],
        pitchers=[pitcher_row(p) for p in pitchers],
    )


def write_snapshot(path: Path, snapshot: PlayerSnapshot) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(snapshot.model_dump_json(by_alias=True, indent=2))
    logger.info(f"Wrote {path} ({len(snapshot.batters)} batters, {len(snapshot.pitchers)} pitchers)")
    return path


def load_snapshot(path: Path) -> Optional[PlayerSnapshot]:
    """Read a previously written snapshot; None when the file is absent."""
    if not path.exists():
        return None
    return PlayerSnapshot.model_validate_json(path.read_text())


# Row fields that are identity rather than leaderboard values
_IDENTITY_FIELDS = {"name", "player_id", "team", "team_abbr", "league", "age", "bat_side", "pitch_hand"}


def _row_player(row: _Row, role: str, stats: StatLine) -> Player:
    return Player(
        player_id=row.player_id,
        name=row.name,
        role=role,
        position="",
        league=row.league,
        team_name=row.team,
        team_abbrs=tuple(row.team_abbr.split("/")),
        age=row.age,
        bat_side=getattr(row, "bat_side", None),
        pitch_hand=getattr(row, "pitch_hand", None),
        stats=stats,
        metrics={k: v for k, v in row.model_dump().items() if k not in _IDENTITY_FIELDS},
    )


def snapshot_players(snapshot: PlayerSnapshot) -> Tuple[List[Player], List[Player]]:
    """Batter and pitcher entities rebuilt from snapshot rows.

    Values are the rounded display values, which is all a leaderboard shows.
    """
    batters = [
        _row_player(row, BATTER, StatLine(
            categories=frozenset([HITTING]), games_played=row.g, plate_appearances=row.pa,
            at_bats=row.ab, hits=row.h, home_runs=row.hr, walks=row.bb,
            # HBP and SF are not in the row; folding them together keeps PA intact
            hit_by_pitch=row.pa - row.ab - row.bb,
        ))
        for row in snapshot.batters
    ]
    pitchers = [
        _row_player(row, PITCHER, StatLine(
            categories=frozenset([PITCHING]), games_played=row.g, games_started=row.gs,
            innings_pitched=row.ip, hits=row.h, home_runs=row.hr, walks=row.bb,
        ))
        for row in snapshot.pitchers
    ]
    return batters, pitchers
