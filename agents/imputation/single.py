# === MODULE DESCRIPTION ===
"""
Missing Data Deck - Single Imputation
Mean / median imputation (scikit-learn SimpleImputer) and deterministic or
stochastic regression imputation (statsmodels OLS).

Each function works on a copy and returns `(imputed_frame, mask)` where the
mask flags the cells that were filled.

Contract (AgentResult.data):
{
  "method": "mean"|"median"|"regression"|"stochastic_regression",
  "data": pd.DataFrame,
  "mask": pd.DataFrame|pd.Series,
  "n_imputed": int,
  "model": {"params": Dict[str, float], "residual_sd": float, "nobs": int}|None,
  "version": "1.0"
}
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm
from loguru import logger
from sklearn.impute import SimpleImputer

from config.settings import settings
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import DataValidationError, ImputationError

SINGLE_METHODS = ("mean", "median", "regression", "stochastic_regression")


# ───────────────────────────────────────────────────────────────────
# Mean / Median
# ───────────────────────────────────────────────────────────────────

def _simple_impute(df: pd.DataFrame, columns: Optional[Sequence[str]], strategy: str) -> Tuple[pd.DataFrame, pd.DataFrame]:
    if columns is None:
        columns = [c for c in df.columns if pd.api.types.is_numeric_dtype(df[c]) and df[c].isna().any()]
    columns = list(columns)

    unknown = [c for c in columns if c not in df.columns]
    if unknown:
        raise DataValidationError("Unknown columns", details={"unknown": unknown})
    non_numeric = [c for c in columns if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        raise ImputationError(f"{strategy} imputation needs numeric columns", details={"columns": non_numeric})
    empty = [c for c in columns if df[c].notna().sum() == 0]
    if empty:
        raise ImputationError("No observed values to impute from", details={"columns": empty})

    out = df.copy()
    mask = df[columns].isna()
    if not columns or not mask.values.any():
        return out, mask

    imputer = SimpleImputer(strategy=strategy)
    out[columns] = imputer.fit_transform(out[columns].astype(float))
    return out, mask


def mean_impute(df: pd.DataFrame, columns: Optional[Sequence[str]] = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Replace missing values with the column mean of the observed values."""
    return _simple_impute(df, columns, "mean")


def median_impute(df: pd.DataFrame, columns: Optional[Sequence[str]] = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Replace missing values with the column median of the observed values."""
    return _simple_impute(df, columns, "median")


# ───────────────────────────────────────────────────────────────────
# Regression
# ───────────────────────────────────────────────────────────────────

def fit_imputation_model(df: pd.DataFrame, target: str, predictors: Sequence[str]):
    """OLS of `target` on `predictors` over rows where all of them are observed."""
    predictors = list(predictors)
    unknown = [c for c in [target, *predictors] if c not in df.columns]
    if unknown:
        raise DataValidationError("Unknown columns", details={"unknown": unknown})
    if target in predictors:
        raise ImputationError("Target cannot be one of its own predictors", details={"target": target})

    complete = df[[target, *predictors]].dropna()
    if complete.empty:
        raise ImputationError(
            f"No observed rows to fit the imputation model for '{target}'",
            details={"predictors": predictors},
        )
    if len(complete) <= len(predictors) + 1:
        raise ImputationError(
            f"Too few observed rows ({len(complete)}) to fit the imputation model for '{target}'"
        )

    X = sm.add_constant(complete[predictors].astype(float), has_constant="add")
    return sm.OLS(complete[target].astype(float), X).fit()


def regression_impute(
    df: pd.DataFrame,
    target: str,
    predictors: Sequence[str],
    stochastic: bool = False,
    random_state: Optional[int] = None,
) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Fill missing `target` values with OLS predictions.

    With `stochastic=True` Gaussian noise with the residual standard deviation
    is added to every prediction. Rows whose predictors are missing stay missing.
    """
    predictors = list(predictors)
    fit = fit_imputation_model(df, target, predictors)

    to_fill = df[target].isna()
    fillable = to_fill & df[predictors].notna().all(axis=1)
    n_unfillable = int(to_fill.sum() - fillable.sum())
    if n_unfillable:
        logger.warning(f"{n_unfillable} row(s) of '{target}' stay missing: predictors are missing too")

    out = df.copy()
    out[target] = out[target].astype(float)
    mask = pd.Series(fillable.to_numpy(), index=df.index, name=f"{target}_imputed")

    if fillable.any():
        X_new = sm.add_constant(df.loc[fillable, predictors].astype(float), has_constant="add")
        predicted = np.asarray(fit.predict(X_new), dtype=float)
        if stochastic:
            seed = settings.RANDOM_STATE if random_state is None else random_state
            rng = np.random.default_rng(seed)
            predicted = predicted + rng.normal(0.0, np.sqrt(fit.scale), size=len(predicted))
        out.loc[fillable, target] = predicted

    return out, mask


# ───────────────────────────────────────────────────────────────────
# Agent
# ───────────────────────────────────────────────────────────────────

class SingleImputationAgent(BaseAgent):
    """Mean, median or regression imputation on a copy of the data."""

    error_type = ImputationError

    def __init__(self) -> None:
        super().__init__(name="SingleImputationAgent", description="Single imputation strategies")
        self._log = logger.bind(agent="SingleImputationAgent")

    def execute(
        self,
        data: pd.DataFrame,
        method: str = "mean",
        columns: Optional[Sequence[str]] = None,
        target: Optional[str] = None,
        predictors: Optional[Sequence[str]] = None,
        random_state: Optional[int] = None,
        **kwargs: Any,
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        if method not in SINGLE_METHODS:
            raise DataValidationError(f"Unknown imputation method '{method}'", details={"allowed": list(SINGLE_METHODS)})

        model: Optional[Dict[str, Any]] = None

        if method in ("mean", "median"):
            imputer = mean_impute if method == "mean" else median_impute
            out, mask = imputer(data, columns)
            remaining: List[str] = []
        else:
            if not target or not predictors:
                raise DataValidationError("Regression imputation needs 'target' and 'predictors'")
            out, mask = regression_impute(
                data, target, predictors,
                stochastic=(method == "stochastic_regression"),
                random_state=random_state,
            )
            fit = fit_imputation_model(data, target, predictors)
            model = {
                "params": {k: float(v) for k, v in fit.params.items()},
                "residual_sd": float(np.sqrt(fit.scale)),
                "nobs": int(fit.nobs),
            }
            remaining = [target] if out[target].isna().any() else []

        for col in remaining:
            result.add_warning(f"{int(out[col].isna().sum())} value(s) of '{col}' could not be imputed")

        n_imputed = int(np.asarray(mask).sum())
        result.data = {
            "method": method,
            "data": out,
            "mask": mask,
            "n_imputed": n_imputed,
            "model": model,
            "version": "1.0",
        }
        self._log.info(f"{method} imputation filled {n_imputed} value(s)")
        return result
