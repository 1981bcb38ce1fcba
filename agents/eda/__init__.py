# agents/eda/__init__.py
"""
Missing Data Deck - diagnosis and plotting.

- MissingDataAnalyzer  (agents.eda.missing_data_analyzer)
- plot_*               (agents.eda.visualization_engine)
"""

from agents.eda.missing_data_analyzer import MNAR_NOTE, MissingConfig, MissingDataAnalyzer
from agents.eda.visualization_engine import (
    VisualizationEngineConfig,
    plot_category_rates,
    plot_distribution,
    plot_imputation_densities,
    plot_imputed_vs_observed,
    plot_missing_rate_by,
    plot_observed_vs_complete,
    plot_regression_imputation,
)

__all__ = [
    "MNAR_NOTE",
    "MissingConfig",
    "MissingDataAnalyzer",
    "VisualizationEngineConfig",
    "plot_category_rates",
    "plot_distribution",
    "plot_imputation_densities",
    "plot_imputed_vs_observed",
    "plot_missing_rate_by",
    "plot_observed_vs_complete",
    "plot_regression_imputation",
]
