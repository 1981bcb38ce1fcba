"""Static PNG rendering of deck figures (matplotlib/seaborn) for PDF and Markdown."""
import io
from typing import List, Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import plotly.graph_objects as go  # noqa: E402
import seaborn as sns  # noqa: E402
from matplotlib.ticker import PercentFormatter  # noqa: E402

from agents.presentation.slides import FigureBlock  # noqa: E402
from config.theme import DeckTheme  # noqa: E402

_DASHES = {"dash": "--", "dot": ":", "dashdot": "-."}


def _fig_to_png(fig, dpi: int) -> bytes:
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=dpi, bbox_inches="tight")
    buffer.seek(0)
    return buffer.getvalue()


def _values(data) -> np.ndarray:
    if data is None:
        return np.array([])
    return np.asarray(data)


def _numeric(data) -> np.ndarray:
    arr = np.asarray(_values(data), dtype=float)
    return arr[~np.isnan(arr)]


def _color(value, fallback: str) -> str:
    return value if isinstance(value, str) else fallback


def _text(title) -> str:
    return (title.text or "") if title is not None else ""


def _draw_histograms(ax, traces: List[go.Histogram], theme: DeckTheme) -> None:
    arrays = [_numeric(t.x) for t in traces]
    pooled = np.concatenate([a for a in arrays if a.size]) if any(a.size for a in arrays) else np.array([])
    if pooled.size == 0:
        return
    bins = traces[0].nbinsx or 30
    edges = np.histogram_bin_edges(pooled, bins=bins)
    for i, (trace, arr) in enumerate(zip(traces, arrays)):
        if arr.size == 0:
            continue
        ax.hist(
            arr,
            bins=edges,
            density=bool(trace.histnorm),
            alpha=trace.opacity if trace.opacity is not None else 0.8,
            color=_color(trace.marker.color, theme.palette[i % len(theme.palette)]),
            label=trace.name or None,
        )


def _draw_bar(ax, trace: go.Bar, theme: DeckTheme) -> None:
    color = _color(trace.marker.color, theme.primary)
    if trace.orientation == "h":
        ax.barh([str(v) for v in _values(trace.y)], _numeric(trace.x), color=color, label=trace.name or None)
    else:
        ax.bar([str(v) for v in _values(trace.x)], _numeric(trace.y), color=color, label=trace.name or None)


def _draw_scatter(ax, trace: go.Scatter, theme: DeckTheme, index: int) -> None:
    x = np.asarray(_values(trace.x), dtype=float)
    y = np.asarray(_values(trace.y), dtype=float)
    opacity = trace.opacity if trace.opacity is not None else 1.0
    label = trace.name if trace.showlegend is not False else None
    mode = trace.mode or "markers"

    if "lines" in mode:
        ax.plot(
            x, y,
            color=_color(trace.line.color, theme.palette[index % len(theme.palette)]),
            linewidth=trace.line.width or 1.5,
            alpha=opacity,
            label=label,
        )
    else:
        ax.scatter(
            x, y,
            s=(trace.marker.size or 6) * 3,
            color=_color(trace.marker.color, theme.palette[index % len(theme.palette)]),
            alpha=trace.marker.opacity if trace.marker.opacity is not None else opacity,
            label=label,
        )


def figure_to_png(
    figure: go.Figure,
    theme: Optional[DeckTheme] = None,
    width: float = 8.0,
    height: float = 4.5,
    dpi: int = 110,
) -> bytes:
    """
    Redraw a plotly figure with matplotlib.

    Supported traces: histogram, bar, scatter (markers or lines); vertical
    line shapes become axvline. Marginal box traces are left out.
    """
    theme = theme or DeckTheme()
    layout = figure.layout

    with sns.axes_style("whitegrid"), sns.plotting_context("notebook", font_scale=0.9):
        fig, ax = plt.subplots(figsize=(width, height))
        try:
            histograms = [t for t in figure.data if t.type == "histogram"]
            if histograms:
                _draw_histograms(ax, histograms, theme)

            for i, trace in enumerate(figure.data):
                if trace.type == "bar":
                    _draw_bar(ax, trace, theme)
                elif trace.type == "scatter":
                    _draw_scatter(ax, trace, theme, i)

            for shape in layout.shapes or ():
                if shape.type == "line" and shape.x0 is not None and shape.x0 == shape.x1:
                    ax.axvline(
                        float(shape.x0),
                        color=_color(shape.line.color, theme.text),
                        linestyle=_DASHES.get(shape.line.dash, "-"),
                        linewidth=1.5,
                    )

            ax.set_title(_text(layout.title), color=theme.text, loc="left")
            ax.set_xlabel(_text(layout.xaxis.title))
            ax.set_ylabel(_text(layout.yaxis.title))
            if layout.yaxis.tickformat and layout.yaxis.tickformat.endswith("%"):
                ax.yaxis.set_major_formatter(PercentFormatter(1.0))
            if any(t.type == "bar" for t in figure.data):
                ax.tick_params(axis="x", labelrotation=20)

            _, labels = ax.get_legend_handles_labels()
            if labels:
                ax.legend(frameon=False, fontsize="small")

            fig.tight_layout()
            return _fig_to_png(fig, dpi)
        finally:
            plt.close(fig)


def block_png(block: FigureBlock, theme: Optional[DeckTheme] = None, **kwargs) -> bytes:
    """Pre-rendered chart of a figure block, or a fresh matplotlib rendering."""
    if block.static_chart:
        return block.static_chart
    return figure_to_png(block.figure, theme, **kwargs)
