"""
Bar charts for the dashboard series.

Both charts take the row lists produced by bills_db.apis.stats_api
(``[{"name": ..., "value": ...}]`` and ``[{"name": ..., "days": ...}]``)
and return PNG bytes.
"""

from __future__ import annotations

import io
from typing import Any, Dict, Iterable, Optional

import numpy as np

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from .presets import VisualStyle, DEFAULT_STYLE  # noqa: E402


def _bar_chart(
    rows: Iterable[Dict[str, Any]],
    value_key: str,
    title: str,
    ylabel: str,
    style: VisualStyle,
    outfile: Optional[str],
) -> bytes:
    rows = list(rows)
    names = [str(r.get("name", ""))[:18] for r in rows]
    values = [float(r.get(value_key) or 0) for r in rows]

    width = max(4.0, 0.6 * len(rows) + 1.5)
    fig, ax = plt.subplots(figsize=(width, 3.6), facecolor=style.background_color)
    try:
        idx = np.arange(len(rows))
        ax.bar(idx, values, color=style.bar_color)
        ax.set_xticks(idx)
        ax.set_xticklabels(names, rotation=45, ha="right")
        ax.set_ylabel(ylabel)
        ax.set_title(title)
        if not rows:
            ax.text(0.5, 0.5, "No data", transform=ax.transAxes,
                    ha="center", va="center", color=style.label_color)
        fig.tight_layout()

        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=style.dpi)
    finally:
        plt.close(fig)

    data = buf.getvalue()
    if outfile:
        with open(outfile, "wb") as f:
            f.write(data)
    return data


def rejections_chart(
    rows: Iterable[Dict[str, Any]],
    style: VisualStyle = DEFAULT_STYLE,
    outfile: Optional[str] = None,
) -> bytes:
    return _bar_chart(rows, "value", "Rejections by Policy Area", "Rejected bills", style, outfile)


def approval_time_chart(
    rows: Iterable[Dict[str, Any]],
    style: VisualStyle = DEFAULT_STYLE,
    outfile: Optional[str] = None,
) -> bytes:
    return _bar_chart(rows, "days", "Average Approval Time", "Days", style, outfile)


__all__ = ["rejections_chart", "approval_time_chart"]
