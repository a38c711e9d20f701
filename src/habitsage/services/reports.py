"""Strength report rendering."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Protocol

import matplotlib

matplotlib.use("Agg")
import matplotlib.dates as mdates
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from .strength import MAX_STRENGTH, StrengthPoint


class ReportRenderer(Protocol):
    """Protocol describing renderer behavior."""

    def render(self, figure: Figure, *, output_path: Path) -> None:  # pragma: no cover - interface
        ...


def build_strength_chart(*, history: Iterable[StrengthPoint], title: str = "Habit strength") -> Figure:
    """Create a line chart of daily strength.

    An empty history yields a placeholder figure instead of an empty axis.
    """

    points = list(history)
    fig, ax = plt.subplots(figsize=(10, 4))

    if not points:
        ax.text(0.5, 0.5, "No strength history yet", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")
        return fig

    days = [p.day for p in points]
    values = [p.strength for p in points]

    ax.plot(days, values, color="#2563EB", linewidth=2)
    ax.fill_between(days, values, color="#2563EB", alpha=0.15)
    ax.set_ylim(0, MAX_STRENGTH)
    ax.set_ylabel("Strength (%)")
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.grid(axis="y", alpha=0.3)
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%b %d"))

    latest = points[-1]
    ax.annotate(
        f"{latest.strength}%",
        xy=(latest.day, latest.strength),
        xytext=(6, 0),
        textcoords="offset points",
        va="center",
        fontweight="bold",
        color="#1F2937",
    )

    fig.autofmt_xdate()
    plt.tight_layout()
    return fig


def export_strength_png(
    *,
    history: Iterable[StrengthPoint],
    output_path: Path,
    title: str = "Habit strength",
    renderer: ReportRenderer | None = None,
) -> Path:
    """Render the strength chart to PNG and return the path."""

    fig = build_strength_chart(history=history, title=title)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if renderer is not None:
        renderer.render(fig, output_path=output_path)
    else:
        fig.savefig(output_path, bbox_inches="tight", dpi=120)
    plt.close(fig)
    return output_path


__all__ = ["ReportRenderer", "build_strength_chart", "export_strength_png"]
