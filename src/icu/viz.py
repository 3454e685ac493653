"""Plots of predicted passes.

Sky-track (polar azimuth/elevation) and elevation-versus-time plots for
pass prediction reports.
"""
from __future__ import annotations

import math
from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.dates as mdates
import matplotlib.pyplot as plt

from .geometry import ObservationAngles
from .passes import Pass

plt.rcParams.update({
    "figure.facecolor": "white",
    "axes.facecolor": "#fafafa",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "font.family": "sans-serif",
    "font.size": 10,
})

PASS_COLORS = ["#2980b9", "#e67e22", "#27ae60", "#8e44ad", "#c0392b", "#16a085"]


def plot_pass_skytrack(
    passes: list[Pass],
    title: Optional[str] = None,
    save_path: Optional[str | Path] = None,
    figsize: tuple = (7, 7),
) -> plt.Figure:
    """Plot passes on a polar sky chart.

    North is up, azimuth increases clockwise, the horizon is the outer
    ring and the zenith the centre.
    """
    fig, ax = plt.subplots(figsize=figsize, subplot_kw={"projection": "polar"})
    ax.set_theta_zero_location("N")
    ax.set_theta_direction(-1)
    ax.set_rlim(0, 90)
    ax.set_yticks([0, 30, 60, 90])
    ax.set_yticklabels(["90°", "60°", "30°", "0°"])

    if not passes:
        ax.text(0.5, 0.5, "No passes", transform=ax.transAxes,
                ha="center", va="center", fontsize=14, color="#95a5a6")

    for i, p in enumerate(passes):
        color = PASS_COLORS[i % len(PASS_COLORS)]
        theta = [math.radians(s.azimuth) for s in p.samples]
        r = [90.0 - s.elevation for s in p.samples]
        ax.plot(theta, r, color=color, linewidth=1.5,
                label=f"{p.start:%m-%d %H:%M} (max {p.max_elevation:.0f}°)")
        ax.scatter(theta[:1], r[:1], color=color, marker="^", s=30)
        ax.scatter(theta[-1:], r[-1:], color=color, marker="v", s=30)

    ax.set_title(title or "Pass sky tracks", pad=20)
    if passes:
        ax.legend(loc="upper right", bbox_to_anchor=(1.35, 1.1), fontsize=8)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_elevation_profile(
    samples: list[ObservationAngles],
    passes: Optional[list[Pass]] = None,
    min_elevation: Optional[float] = None,
    title: str = "Elevation",
    save_path: Optional[str | Path] = None,
    figsize: tuple = (14, 5),
) -> plt.Figure:
    """Plot elevation over time with passes shaded."""
    fig, ax = plt.subplots(figsize=figsize)

    ax.plot([s.time for s in samples], [s.elevation for s in samples],
            linewidth=0.8, color="#2c3e50")
    ax.axhline(0, color="#bdc3c7", linewidth=0.8)
    if min_elevation is not None:
        ax.axhline(min_elevation, color="#e74c3c", linewidth=0.8, linestyle="--")

    for p in passes or []:
        ax.axvspan(p.start, p.end, color="#2ecc71", alpha=0.25)

    ax.set_ylabel("Elevation (°)")
    ax.set_xlabel("Time (UTC)")
    ax.set_ylim(-90, 90)
    ax.set_title(title)
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%m-%d %H:%M"))
    fig.autofmt_xdate(rotation=30)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig
