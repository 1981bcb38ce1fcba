"""Missing Data Deck - analysis models and summary tables."""

from agents.modeling.model_summary import (
    ModelSummaryAgent,
    coefficient_table,
    compare_models,
    fit_ols,
    significance_stars,
)

__all__ = ["ModelSummaryAgent", "coefficient_table", "compare_models", "fit_ols", "significance_stars"]
