# agents/eda/visualization_engine.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  Missing Data Deck - Visualization Engine                                  ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  Interactive Plotly figures for the slides:                                ║
║    ✓ Distribution plots (histograms with marginal boxplots)               ║
║    ✓ Category rates (attrition by job satisfaction)                       ║
║    ✓ Observed vs complete distributions (effect of missingness)           ║
║    ✓ Imputed vs observed distributions                                    ║
║    ✓ Missing share by driver levels                                       ║
║    ✓ Regression imputation scatter with fitted line                       ║
║    ✓ Multiple-imputation density overlays                                 ║
╚════════════════════════════════════════════════════════════════════════════╝

Every function takes plain pandas input, never mutates it, and returns a
`go.Figure` styled with the deck theme.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from functools import wraps
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from loguru import logger
from scipy.stats import gaussian_kde

from config.constants import COL_ATTRITION, COL_JOB_SATISFACTION, label_for
from config.settings import settings
from config.theme import DeckTheme, get_theme

__all__ = [
    "VisualizationEngineConfig",
    "plot_distribution",
    "plot_category_rates",
    "plot_observed_vs_complete",
    "plot_imputed_vs_observed",
    "plot_missing_rate_by",
    "plot_regression_imputation",
    "plot_imputation_densities",
]


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Configuration & Constants
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VisualizationEngineConfig:
    """Layout configuration shared by all deck figures."""
    default_height: int = 420
    nbins: int = 40
    density_grid_points: int = 200
    driver_bins: int = 5
    opacity_overlay: float = 0.55
    margin_dict: Dict[str, int] = field(default_factory=lambda: {"l": 50, "r": 20, "t": 60, "b": 50})


def _timeit(operation_name: str):
    """Decorator for operation timing."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            t_start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - t_start) * 1000
                logger.debug(f"⏱ {operation_name}: {elapsed_ms:.2f}ms")
        return wrapper
    return decorator


def _resolve(theme: Optional[DeckTheme], config: Optional[VisualizationEngineConfig]):
    return theme or get_theme(settings.DECK_THEME), config or VisualizationEngineConfig()


def _style(fig: go.Figure, theme: DeckTheme, cfg: VisualizationEngineConfig, title: str, **layout) -> go.Figure:
    fig.update_layout(
        title=title,
        template=theme.plotly_template,
        height=cfg.default_height,
        margin=cfg.margin_dict,
        font={"family": theme.font_family, "color": theme.text},
        **layout,
    )
    return fig


def _numeric(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series, errors="coerce").dropna()


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Dataset Figures
# ═══════════════════════════════════════════════════════════════════════════

@_timeit("plot_distribution")
def plot_distribution(
    df: pd.DataFrame,
    column: str,
    theme: Optional[DeckTheme] = None,
    config: Optional[VisualizationEngineConfig] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """Histogram with a marginal boxplot."""
    theme, cfg = _resolve(theme, config)
    fig = px.histogram(
        df,
        x=column,
        marginal="box",
        opacity=0.9,
        nbins=cfg.nbins,
        color_discrete_sequence=[theme.observed_color],
        labels={column: label_for(column)},
    )
    return _style(fig, theme, cfg, title or f"Distribution: {label_for(column)}", showlegend=False, bargap=0.02)


@_timeit("plot_category_rates")
def plot_category_rates(
    df: pd.DataFrame,
    category: str = COL_JOB_SATISFACTION,
    outcome: str = COL_ATTRITION,
    positive: str = "Yes",
    theme: Optional[DeckTheme] = None,
    config: Optional[VisualizationEngineConfig] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """Share of `outcome == positive` within each level of `category` (level order kept)."""
    theme, cfg = _resolve(theme, config)
    rates = (
        df.assign(_hit=(df[outcome] == positive).astype(float))
        .groupby(category, observed=False)["_hit"]
        .agg(["mean", "size"])
        .reset_index()
    )
    fig = go.Figure(
        go.Bar(
            x=rates[category].astype(str),
            y=rates["mean"],
            text=[f"{v:.0%}" for v in rates["mean"].fillna(0)],
            textposition="auto",
            marker_color=theme.palette[4 % len(theme.palette)],
            customdata=rates["size"],
            hovertemplate="%{x}: %{y:.1%} (n=%{customdata})<extra></extra>",
        )
    )
    return _style(
        fig, theme, cfg,
        title or f"{label_for(outcome)} rate by {label_for(category).lower()}",
        xaxis_title=label_for(category),
        yaxis_title=f"Share {outcome} = {positive}",
        yaxis_tickformat=".0%",
    )


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Shared Missing-Data Helpers
# ═══════════════════════════════════════════════════════════════════════════

@_timeit("plot_observed_vs_complete")
def plot_observed_vs_complete(
    complete: pd.Series,
    amputed: pd.Series,
    theme: Optional[DeckTheme] = None,
    config: Optional[VisualizationEngineConfig] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Distribution of a variable before and after missingness, with mean lines.

    A shift of the observed mean away from the complete-data mean is the bias
    a complete-case analysis inherits.
    """
    theme, cfg = _resolve(theme, config)
    full = _numeric(complete)
    observed = _numeric(amputed)

    fig = go.Figure()
    fig.add_trace(go.Histogram(
        x=full, name=f"Complete data (n={len(full)})", histnorm="probability density",
        nbinsx=cfg.nbins, marker_color=theme.palette[2 % len(theme.palette)], opacity=cfg.opacity_overlay,
    ))
    fig.add_trace(go.Histogram(
        x=observed, name=f"Observed after missingness (n={len(observed)})", histnorm="probability density",
        nbinsx=cfg.nbins, marker_color=theme.observed_color, opacity=cfg.opacity_overlay,
    ))
    fig.add_vline(x=float(full.mean()), line_dash="dash", line_color=theme.palette[2 % len(theme.palette)])
    fig.add_vline(x=float(observed.mean()), line_dash="dot", line_color=theme.observed_color)

    name = label_for(str(complete.name)) if complete.name is not None else "Value"
    return _style(
        fig, theme, cfg, title or f"{name}: complete vs observed",
        barmode="overlay", xaxis_title=name, yaxis_title="Density",
        legend={"orientation": "h", "y": -0.2},
    )


@_timeit("plot_imputed_vs_observed")
def plot_imputed_vs_observed(
    values: pd.Series,
    imputed_mask: pd.Series,
    theme: Optional[DeckTheme] = None,
    config: Optional[VisualizationEngineConfig] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """Observed values vs values filled in by an imputation method."""
    theme, cfg = _resolve(theme, config)
    mask = imputed_mask.reindex(values.index, fill_value=False).astype(bool)
    observed = _numeric(values[~mask])
    imputed = _numeric(values[mask])

    fig = go.Figure()
    fig.add_trace(go.Histogram(
        x=observed, name=f"Observed (n={len(observed)})", histnorm="probability density",
        nbinsx=cfg.nbins, marker_color=theme.observed_color, opacity=cfg.opacity_overlay,
    ))
    fig.add_trace(go.Histogram(
        x=imputed, name=f"Imputed (n={len(imputed)})", histnorm="probability density",
        nbinsx=cfg.nbins, marker_color=theme.missing_color, opacity=cfg.opacity_overlay,
    ))

    name = label_for(str(values.name)) if values.name is not None else "Value"
    return _style(
        fig, theme, cfg, title or f"{name}: observed vs imputed",
        barmode="overlay", xaxis_title=name, yaxis_title="Density",
        legend={"orientation": "h", "y": -0.2},
    )


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Mechanism & Imputation Figures
# ═══════════════════════════════════════════════════════════════════════════

@_timeit("plot_missing_rate_by")
def plot_missing_rate_by(
    df: pd.DataFrame,
    column: str,
    driver: str,
    theme: Optional[DeckTheme] = None,
    config: Optional[VisualizationEngineConfig] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """Share of missing `column` within levels (or quantile bins) of `driver`."""
    theme, cfg = _resolve(theme, config)
    driver_values = df[driver]

    if pd.api.types.is_numeric_dtype(driver_values) and driver_values.nunique() > cfg.driver_bins:
        groups = pd.qcut(driver_values, q=cfg.driver_bins, duplicates="drop")
    else:
        groups = driver_values

    rates = (
        df[column].isna().astype(float)
        .groupby(groups, observed=False)
        .mean()
    )
    fig = go.Figure(
        go.Bar(
            x=[str(i) for i in rates.index],
            y=rates.to_numpy(),
            text=[f"{v:.0%}" for v in rates.fillna(0).to_numpy()],
            textposition="auto",
            marker_color=theme.missing_color,
        )
    )
    return _style(
        fig, theme, cfg,
        title or f"Missing {label_for(column).lower()} by {label_for(driver).lower()}",
        xaxis_title=label_for(driver),
        yaxis_title="Share missing",
        yaxis_tickformat=".0%",
    )


@_timeit("plot_regression_imputation")
def plot_regression_imputation(
    df: pd.DataFrame,
    target: str,
    predictor: str,
    imputed_mask: pd.Series,
    theme: Optional[DeckTheme] = None,
    config: Optional[VisualizationEngineConfig] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """Scatter of observed and imputed points with the line fitted on observed rows."""
    theme, cfg = _resolve(theme, config)
    mask = imputed_mask.reindex(df.index, fill_value=False).astype(bool)
    observed = df.loc[~mask, [predictor, target]].dropna()
    imputed = df.loc[mask, [predictor, target]].dropna()

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=observed[predictor], y=observed[target], mode="markers", name="Observed",
        marker={"color": theme.observed_color, "size": 5, "opacity": 0.5},
    ))
    fig.add_trace(go.Scatter(
        x=imputed[predictor], y=imputed[target], mode="markers", name="Imputed",
        marker={"color": theme.missing_color, "size": 6, "opacity": 0.85},
    ))

    if len(observed) >= 2 and observed[predictor].nunique() > 1:
        slope, intercept = np.polyfit(observed[predictor].astype(float), observed[target].astype(float), 1)
        xs = np.linspace(float(df[predictor].min()), float(df[predictor].max()), 50)
        fig.add_trace(go.Scatter(
            x=xs, y=intercept + slope * xs, mode="lines", name="Fitted line",
            line={"color": theme.text, "width": 2},
        ))

    return _style(
        fig, theme, cfg, title or f"Regression imputation of {label_for(target).lower()}",
        xaxis_title=label_for(predictor), yaxis_title=label_for(target),
        legend={"orientation": "h", "y": -0.2},
    )


@_timeit("plot_imputation_densities")
def plot_imputation_densities(
    observed: pd.Series,
    imputations: Sequence[pd.Series],
    theme: Optional[DeckTheme] = None,
    config: Optional[VisualizationEngineConfig] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Kernel density of the observed values (thick) and of the imputed values
    of each completed dataset (one thin trace per imputation).
    """
    theme, cfg = _resolve(theme, config)
    obs = _numeric(observed)
    series_list: List[pd.Series] = [_numeric(s) for s in imputations]

    pooled = pd.concat([obs, *series_list]) if series_list else obs
    if pooled.nunique() < 2:
        grid = np.array([float(pooled.min()), float(pooled.max())]) if len(pooled) else np.array([0.0, 1.0])
    else:
        pad = 0.05 * float(pooled.max() - pooled.min())
        grid = np.linspace(float(pooled.min()) - pad, float(pooled.max()) + pad, cfg.density_grid_points)

    def _density(values: pd.Series) -> Optional[np.ndarray]:
        if len(values) < 2 or values.nunique() < 2:
            return None
        return gaussian_kde(values.to_numpy(dtype=float))(grid)

    fig = go.Figure()
    obs_density = _density(obs)
    if obs_density is not None:
        fig.add_trace(go.Scatter(
            x=grid, y=obs_density, mode="lines", name="Observed",
            line={"color": theme.observed_color, "width": 3},
        ))

    for i, values in enumerate(series_list, start=1):
        dens = _density(values)
        if dens is None:
            continue
        fig.add_trace(go.Scatter(
            x=grid, y=dens, mode="lines", name=f"Imputation {i}",
            line={"color": theme.missing_color, "width": 1},
            opacity=0.7,
            showlegend=(i == 1),
            legendgroup="imputed",
        ))

    name = label_for(str(observed.name)) if observed.name is not None else "Value"
    return _style(
        fig, theme, cfg, title or f"{name}: observed vs imputed densities",
        xaxis_title=name, yaxis_title="Density",
        legend={"orientation": "h", "y": -0.2},
    )
