"""Missing Data Deck - deletion, single and multiple imputation."""

from agents.imputation.deletion import DeletionAgent, listwise_deletion, pairwise_statistics
from agents.imputation.multiple import MultipleImputationConfig, MultipleImputer, pool_rubin
from agents.imputation.single import (
    SingleImputationAgent,
    fit_imputation_model,
    mean_impute,
    median_impute,
    regression_impute,
)

__all__ = [
    "DeletionAgent",
    "listwise_deletion",
    "pairwise_statistics",
    "MultipleImputationConfig",
    "MultipleImputer",
    "pool_rubin",
    "SingleImputationAgent",
    "fit_imputation_model",
    "mean_impute",
    "median_impute",
    "regression_impute",
]
