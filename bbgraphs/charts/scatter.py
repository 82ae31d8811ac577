"""Team scatter charts: runs, batting rates, pitching & defense.

Axis ranges and margins are fixed up front so data coordinates map to known
pixel positions; that lets the label resolver place team abbreviations
before the figure is handed to plotly as annotations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
import plotly.graph_objects as go

from bbgraphs.analysis.aggregate import Team
from bbgraphs.analysis.sabermetrics import isobar_runs_allowed
from bbgraphs.charts.labels import LABEL_FONT_SIZE, LabeledPoint, resolve_placements

logger = logging.getLogger(__name__)

ISOBAR_PCTS = (0.400, 0.500, 0.600)
ISOBAR_STEP = 10
ISOBAR_MARGIN = 50

FONT_FAMILY = "Georgia, Times New Roman, serif"
LABEL_BACKGROUND = "rgba(255, 255, 255, 0.9)"
REFERENCE_LINE_COLOR = "#888"


@dataclass(frozen=True)
class ChartPoint:
    x: float
    y: float
    label: str
    extra: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ChartSpec:
    key: str
    title: str
    x_title: str
    y_title: str
    color: str
    x_reversed: bool = False
    y_reversed: bool = False
    x_format: str = ".3f"
    y_format: str = ".3f"


RUNS_CHART = ChartSpec(
    key="runs", title="Runs Scored vs Runs Allowed",
    x_title="Runs Scored", y_title="Runs Allowed", color="#ef4444",
    y_reversed=True, x_format=".0f", y_format=".0f",
)
RATES_CHART = ChartSpec(
    key="rates", title="Batting: OBP and ISO",
    x_title="On-Base Percentage (OBP)", y_title="Isolated Power (ISO)", color="#3b82f6",
)
PITCHING_CHART = ChartSpec(
    key="pitching", title="Pitching & Defense: FIP and DER",
    x_title="FIP (Fielding Independent Pitching)", y_title="DER (Defensive Efficiency Record)",
    color="#10b981", x_reversed=True, x_format=".2f",
)

CHARTS = (RUNS_CHART, RATES_CHART, PITCHING_CHART)


# ── Point sets ──


def runs_points(teams: Sequence[Team]) -> list[ChartPoint]:
    return [ChartPoint(t.runs_scored, t.runs_allowed, t.abbreviation, {"wins": t.wins}) for t in teams]


def rates_points(teams: Sequence[Team]) -> list[ChartPoint]:
    return [ChartPoint(t.metrics["obp"], t.metrics["iso"], t.abbreviation, {"rs": t.runs_scored}) for t in teams]


def pitching_points(teams: Sequence[Team]) -> list[ChartPoint]:
    return [ChartPoint(t.metrics["fip"], t.metrics["der"], t.abbreviation, {"ra": t.runs_allowed}) for t in teams]


POINT_BUILDERS = {
    RUNS_CHART.key: runs_points,
    RATES_CHART.key: rates_points,
    PITCHING_CHART.key: pitching_points,
}


def pythagorean_isobar(points: Sequence[ChartPoint], pct: float) -> list[tuple[float, float]]:
    """(RS, RA) pairs along the line of constant Pythagorean win percentage.

    RS runs from min-50 to max+50 in steps of 10; RA values outside
    [minRA-50, maxRA+50] are dropped.
    """
    if not points:
        return []
    rs = np.array([p.x for p in points], dtype=float)
    ra = np.array([p.y for p in points], dtype=float)
    lo_ra, hi_ra = ra.min() - ISOBAR_MARGIN, ra.max() + ISOBAR_MARGIN

    line = []
    for r in np.arange(rs.min() - ISOBAR_MARGIN, rs.max() + ISOBAR_MARGIN + 1e-9, ISOBAR_STEP):
        calc_ra = isobar_runs_allowed(float(r), pct)
        if lo_ra <= calc_ra <= hi_ra:
            line.append((float(r), calc_ra))
    return line


def average_lines(points: Sequence[ChartPoint]) -> tuple[list[tuple[float, float]], list[tuple[float, float]]]:
    """League-average reference lines: vertical at mean x, horizontal at mean y."""
    if not points:
        return [], []
    xs = np.array([p.x for p in points], dtype=float)
    ys = np.array([p.y for p in points], dtype=float)
    avg_x, avg_y = float(xs.mean()), float(ys.mean())
    vertical = [(avg_x, float(ys.min())), (avg_x, float(ys.max()))]
    horizontal = [(float(xs.min()), avg_y), (float(xs.max()), avg_y)]
    return vertical, horizontal


# ── Screen mapping ──


def _padded_range(values: Sequence[float], fraction: float = 0.08) -> tuple[float, float]:
    lo, hi = min(values), max(values)
    span = hi - lo
    pad = span * fraction if span > 0 else (abs(hi) * fraction or 1.0)
    return lo - pad, hi + pad


@dataclass(frozen=True)
class ChartFrame:
    """Linear data → pixel mapping for a fixed-size plot area."""

    width: int
    height: int
    x_range: tuple[float, float]
    y_range: tuple[float, float]
    x_reversed: bool = False
    y_reversed: bool = False
    margin_left: int = 70
    margin_right: int = 50
    margin_top: int = 50
    margin_bottom: int = 60

    @classmethod
    def fit(cls, points: Sequence[ChartPoint], spec: ChartSpec, width: int, height: int) -> "ChartFrame":
        xs = [p.x for p in points] or [0.0]
        ys = [p.y for p in points] or [0.0]
        return cls(width, height, _padded_range(xs), _padded_range(ys),
                   x_reversed=spec.x_reversed, y_reversed=spec.y_reversed)

    @property
    def plot_width(self) -> int:
        return self.width - self.margin_left - self.margin_right

    @property
    def plot_height(self) -> int:
        return self.height - self.margin_top - self.margin_bottom

    def to_screen(self, x: float, y: float) -> tuple[float, float]:
        x0, x1 = self.x_range
        y0, y1 = self.y_range
        fx = (x - x0) / (x1 - x0)
        fy = (y - y0) / (y1 - y0)
        if self.x_reversed:
            fx = 1 - fx
        if not self.y_reversed:
            fy = 1 - fy  # screen y grows downward
        return self.margin_left + fx * self.plot_width, self.margin_top + fy * self.plot_height

    def axis_range(self, axis: str) -> list[float]:
        lo, hi = self.x_range if axis == "x" else self.y_range
        reversed_ = self.x_reversed if axis == "x" else self.y_reversed
        return [hi, lo] if reversed_ else [lo, hi]


def labeled_points(points: Sequence[ChartPoint], frame: ChartFrame) -> list[LabeledPoint]:
    result = []
    for p in points:
        sx, sy = frame.to_screen(p.x, p.y)
        result.append(LabeledPoint(sx, sy, p.label))
    return result


# ── Figures ──

_EXTRA_LABELS = {"wins": "Wins", "rs": "Runs", "ra": "Runs Allowed"}


def hover_text(point: ChartPoint, spec: ChartSpec) -> str:
    lines = [f"<b>{point.label}</b>"]
    for key, value in point.extra.items():
        lines.append(f"{_EXTRA_LABELS.get(key, key)}: {value:g}")
    lines.append(f"{spec.x_title}: {point.x:{spec.x_format}}")
    lines.append(f"{spec.y_title}: {point.y:{spec.y_format}}")
    return "<br>".join(lines)


def _reference_trace(line: list[tuple[float, float]], name: str) -> go.Scatter:
    return go.Scatter(
        x=[pt[0] for pt in line],
        y=[pt[1] for pt in line],
        mode="lines",
        name=name,
        line=dict(color=REFERENCE_LINE_COLOR, width=2, dash="dash"),
        hoverinfo="skip",
        showlegend=False,
    )


def build_scatter_figure(
    points: Sequence[ChartPoint],
    spec: ChartSpec,
    width: int = 900,
    height: int = 560,
    subtitle: str = "",
) -> go.Figure:
    """Scatter of team points with resolved, collision-free labels."""
    frame = ChartFrame.fit(points, spec, width, height)
    fig = go.Figure()

    if spec.key == RUNS_CHART.key:
        for pct in ISOBAR_PCTS:
            line = pythagorean_isobar(points, pct)
            if line:
                fig.add_trace(_reference_trace(line, f"{pct:.3f}".lstrip("0")))
    else:
        vertical, horizontal = average_lines(points)
        if vertical:
            fig.add_trace(_reference_trace(vertical, f"Avg {spec.x_title}"))
            fig.add_trace(_reference_trace(horizontal, f"Avg {spec.y_title}"))

    fig.add_trace(go.Scatter(
        x=[p.x for p in points],
        y=[p.y for p in points],
        mode="markers",
        name="Teams",
        marker=dict(size=12, color=spec.color),
        hovertext=[hover_text(p, spec) for p in points],
        hovertemplate="%{hovertext}<extra></extra>",
        showlegend=False,
    ))

    screen_points = labeled_points(points, frame)
    for source, point, index in zip(points, screen_points, resolve_placements(screen_points)):
        if not point.label:
            continue
        placement = point.candidates[index]
        fig.add_annotation(
            x=source.x,
            y=source.y,
            xref="x",
            yref="y",
            text=f"<b>{point.label}</b>",
            showarrow=False,
            xanchor=placement.align,
            yanchor="bottom",
            xshift=placement.x_offset,
            yshift=-(placement.y_offset + 2),
            bgcolor=LABEL_BACKGROUND,
            borderpad=2,
            font=dict(size=LABEL_FONT_SIZE, color="#000", family="sans-serif"),
        )

    title = spec.title if not subtitle else f"{spec.title}<br><sup>{subtitle}</sup>"
    fig.update_layout(
        title=dict(text=title, x=0.5),
        font_family=FONT_FAMILY,
        width=width,
        height=height,
        margin=dict(l=frame.margin_left, r=frame.margin_right, t=frame.margin_top, b=frame.margin_bottom),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="#f9f9f9",
        hoverlabel=dict(font_family=FONT_FAMILY),
    )
    fig.update_xaxes(title_text=spec.x_title, range=frame.axis_range("x"), gridcolor="#e0e0e0")
    fig.update_yaxes(title_text=spec.y_title, range=frame.axis_range("y"), gridcolor="#e0e0e0")
    return fig


def build_league_charts(teams: Sequence[Team], league: str, season: int,
                        width: int = 900, height: int = 560) -> dict[str, go.Figure]:
    """All three charts for one league, keyed by chart key."""
    figures = {}
    for spec in CHARTS:
        points = POINT_BUILDERS[spec.key](teams)
        figures[spec.key] = build_scatter_figure(points, spec, width, height, subtitle=f"{league} - {season}")
    logger.info(f"Built {len(figures)} charts for {league} ({len(teams)} teams)")
    return figures


def figure_html(fig: go.Figure, div_id: Optional[str] = None) -> str:
    """Embeddable <div> for a figure; plotly.js is loaded once by the page."""
    return fig.to_html(full_html=False, include_plotlyjs=False, div_id=div_id)
