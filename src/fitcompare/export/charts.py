"""
Chart export for a comparison set.

Produces one matplotlib figure as PNG or PDF bytes: the same view the
dataset page shows, for downloading or sharing offline.

Layout:
  - 5 stacked panels sharing the X-axis: power, heart rate, speed,
    cadence, elevation
  - X-axis: sample index (≈ seconds at 1 Hz recording)
  - One line per file, same colour in every panel, legend on the top panel
  - Stats table under the panels, one row per file
"""
import io
from typing import List, Optional, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.gridspec as gridspec
import matplotlib.pyplot as plt
import numpy as np

from fitcompare.analysis.samples import SampleSeries
from fitcompare.analysis.stats import AggregateStatRow

# ─── Constants ────────────────────────────────────────────────────────────────

# (Sample attribute, panel title, unit)
METRIC_PANELS = [
    ("power", "Power", "W"),
    ("heart_rate", "Heart Rate", "bpm"),
    ("speed", "Speed", "km/h"),
    ("cadence", "Cadence", "rpm"),
    ("altitude", "Elevation", "m"),
]

# Colour cycle for files; the n-th file gets the n-th colour in every panel
SERIES_COLORS = [
    "#ef4444",  # red
    "#3b82f6",  # blue
    "#10b981",  # green
    "#8b5cf6",  # purple
    "#f59e0b",  # yellow
    "#ec4899",  # pink
    "#6366f1",  # indigo
    "#14b8a6",  # teal
]

STATS_COLUMNS = [
    "File", "Avg Power", "Weighted Power", "Max Power", "Avg HR",
    "Avg Cadence", "Avg Speed", "Distance", "Ascent",
]

MEDIA_TYPES = {
    "png": "image/png",
    "pdf": "application/pdf",
}

MISSING = "n/a"


# ─── Public API ───────────────────────────────────────────────────────────────

def render_comparison(
    series: Sequence[SampleSeries],
    stats: Sequence[AggregateStatRow],
    fmt: str = "png",
    title: Optional[str] = None,
) -> Tuple[bytes, str]:
    """
    Render the comparison charts and stats table.

    Returns (file_bytes, media_type).

    Raises:
        ValueError: if ``fmt`` is not "png" or "pdf".
    """
    fmt = fmt.lower()
    if fmt not in MEDIA_TYPES:
        raise ValueError(f"Unsupported export format: {fmt!r}")

    fig = plt.figure(figsize=(12, 16))
    fig.patch.set_facecolor("white")
    gs = gridspec.GridSpec(
        len(METRIC_PANELS) + 1, 1, figure=fig, hspace=0.25,
        height_ratios=[1] * len(METRIC_PANELS) + [0.2 + 0.12 * max(len(stats), 1)],
    )

    axes = []
    for row, (attr, panel_title, unit) in enumerate(METRIC_PANELS):
        ax = fig.add_subplot(gs[row], sharex=axes[0] if axes else None)
        _style_ax(ax)
        for i, s in enumerate(series):
            values = np.array([getattr(sample, attr) for sample in s.samples], dtype=float)
            ax.plot(
                np.arange(len(values)), values,
                color=SERIES_COLORS[i % len(SERIES_COLORS)],
                linewidth=1.0, label=s.name,
            )
        ax.set_title(f"{panel_title} Comparison", fontsize=10, loc="left")
        ax.set_ylabel(unit, fontsize=9)
        if row < len(METRIC_PANELS) - 1:
            plt.setp(ax.get_xticklabels(), visible=False)
        axes.append(ax)

    axes[-1].set_xlabel("Sample", fontsize=9)
    if series:
        axes[0].legend(loc="upper right", fontsize=8)
    else:
        axes[0].text(0.5, 0.5, "No data", transform=axes[0].transAxes,
                     ha="center", va="center", color="#888888")

    ax_table = fig.add_subplot(gs[-1])
    ax_table.axis("off")
    if stats:
        table = ax_table.table(
            cellText=[stats_table_row(row) for row in stats],
            colLabels=STATS_COLUMNS,
            loc="center",
            cellLoc="center",
        )
        table.auto_set_font_size(False)
        table.set_fontsize(8)

    if title:
        fig.suptitle(title, fontsize=13, fontweight="bold", y=0.995)

    buf = io.BytesIO()
    plt.savefig(buf, format=fmt, dpi=110, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return buf.getvalue(), MEDIA_TYPES[fmt]


def stats_table_row(row: AggregateStatRow) -> List[str]:
    """Format one stats row for the table, with units."""
    return [
        row.file_name,
        _fmt(row.avg_power, "w"),
        _fmt(row.weighted_power, "w"),
        _fmt(row.max_power, "w"),
        _fmt(row.avg_heart_rate, "bpm"),
        _fmt(row.avg_cadence, "rpm"),
        _fmt(row.avg_speed, "km/h"),
        _fmt(row.distance, "km"),
        _fmt(row.ascent, "m"),
    ]


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _fmt(value, unit: str) -> str:
    if value is None:
        return MISSING
    return f"{value}{unit}"


def _style_ax(ax) -> None:
    ax.tick_params(labelsize=8)
    ax.grid(True, color="#e5e7eb", linewidth=0.6)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
