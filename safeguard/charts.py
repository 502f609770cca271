"""
Metric charts: radar of risk vectors and ranked category bars.
"""

import math
from typing import List

from matplotlib.figure import Figure

from safeguard.models import Metric
from safeguard.presentation import bar_color

RADAR_COLOR = "#6366f1"
GRID_COLOR = "#f1f5f9"
LABEL_COLOR = "#64748b"


def radar_figure(metrics: List[Metric]) -> Figure:
    """Radar chart of metric scores on a 0-1 scale ("Risk Vector Analysis")."""
    fig = Figure(figsize=(5, 4))
    ax = fig.add_subplot(projection="polar")
    ax.set_title("RISK VECTOR ANALYSIS", fontsize=9, color=LABEL_COLOR, loc="left")
    ax.set_ylim(0, 1)
    ax.set_yticks([0.25, 0.5, 0.75, 1.0], labels=["", "", "", ""])
    ax.grid(color=GRID_COLOR)

    if not metrics:
        return fig

    angles = [2 * math.pi * i / len(metrics) for i in range(len(metrics))]
    scores = [m.score for m in metrics]

    # Close the polygon
    ax.plot(angles + angles[:1], scores + scores[:1], color=RADAR_COLOR)
    ax.fill(angles + angles[:1], scores + scores[:1], color=RADAR_COLOR, alpha=0.5)
    ax.set_xticks(angles)
    ax.set_xticklabels([m.category for m in metrics], fontsize=8, color=LABEL_COLOR)
    return fig


def ranking_figure(metrics: List[Metric]) -> Figure:
    """Horizontal bars per category, colored by score ("Category Ranking")."""
    fig = Figure(figsize=(5, 4))
    ax = fig.add_subplot()
    ax.set_title("CATEGORY RANKING", fontsize=9, color=LABEL_COLOR, loc="left")
    ax.set_xlim(0, 1)
    ax.xaxis.set_visible(False)
    for side in ("top", "right", "bottom", "left"):
        ax.spines[side].set_visible(False)

    # barh draws bottom-up; reverse so the first metric is on top
    ordered = metrics[::-1]
    positions = list(range(len(ordered)))
    ax.barh(
        positions,
        [m.score for m in ordered],
        height=0.6,
        color=[bar_color(m.score) for m in ordered],
    )
    ax.set_yticks(positions)
    ax.set_yticklabels([m.category for m in ordered], fontsize=8, color=LABEL_COLOR)
    ax.tick_params(axis="y", length=0)
    fig.subplots_adjust(left=0.3)
    return fig
