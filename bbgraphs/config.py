"""Runtime settings for the page generator.

Values come from the environment so the scheduled job can be pointed at a
different output directory or API host without code changes. CLI flags are
applied on top via ``with_overrides``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class SiteConfig:
    # MLB Stats API
    API_BASE: str = "https://statsapi.mlb.com/api/v1"
    REQUEST_TIMEOUT: float = 30.0
    REQUEST_DELAY: float = 0.1  # seconds between per-team requests

    # Season to build; None = probe current year, then fall back one year
    SEASON: Optional[int] = None

    # Output artifacts
    OUTPUT_DIR: Path = Path(".")
    INDEX_FILE: str = "index.html"
    PLAYER_STATS_FILE: str = "player_stats.html"
    SNAPSHOT_FILE: str = "player-stats.json"

    # Chart canvas (pixels)
    CHART_WIDTH: int = 900
    CHART_HEIGHT: int = 560

    # Default leaderboard length on the index page
    LEADERBOARD_COUNT: int = 10

    def with_overrides(self, **kwargs: object) -> "SiteConfig":
        return replace(self, **kwargs)

    @property
    def index_path(self) -> Path:
        return self.OUTPUT_DIR / self.INDEX_FILE

    @property
    def player_stats_path(self) -> Path:
        return self.OUTPUT_DIR / self.PLAYER_STATS_FILE

    @property
    def snapshot_path(self) -> Path:
        return self.OUTPUT_DIR / self.SNAPSHOT_FILE


def load_config() -> SiteConfig:
    """Build a SiteConfig from BBGRAPHS_* environment variables."""
    overrides: dict[str, object] = {}

    if os.environ.get("BBGRAPHS_API_BASE"):
        overrides["API_BASE"] = os.environ["BBGRAPHS_API_BASE"].rstrip("/")
    if os.environ.get("BBGRAPHS_OUTPUT_DIR"):
        overrides["OUTPUT_DIR"] = Path(os.environ["BBGRAPHS_OUTPUT_DIR"])
    if os.environ.get("BBGRAPHS_REQUEST_DELAY"):
        overrides["REQUEST_DELAY"] = float(os.environ["BBGRAPHS_REQUEST_DELAY"])
    if os.environ.get("BBGRAPHS_TIMEOUT"):
        overrides["REQUEST_TIMEOUT"] = float(os.environ["BBGRAPHS_TIMEOUT"])
    if os.environ.get("SEASON"):
        overrides["SEASON"] = int(os.environ["SEASON"])

    return SiteConfig().with_overrides(**overrides)
