# === MODULE DESCRIPTION ===
"""
Missing Data Deck - Model Summary
Fits the analysis model and renders tidy / side-by-side coefficient tables.

Contract (AgentResult.data):
{
  "table": pd.DataFrame,            # term + one column per model, "estimate (std.error)" + stars
  "tidy": Dict[str, pd.DataFrame],  # per-model tidy tables
  "nobs": Dict[str, int],
  "stars_note": str,
  "version": "1.0"
}
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from loguru import logger
from statsmodels.regression.linear_model import RegressionResultsWrapper

from core.base_agent import AgentResult, BaseAgent
from core.exceptions import DataValidationError, ModelFitError, wrap_exceptions

TIDY_COLUMNS = ["term", "estimate", "std_error", "statistic", "p_value", "conf_low", "conf_high"]

STAR_LEVELS = ((0.001, "***"), (0.01, "**"), (0.05, "*"), (0.1, "+"))
STARS_NOTE = "+ p < 0.1, * p < 0.05, ** p < 0.01, *** p < 0.001"


@wrap_exceptions(
    to=ModelFitError,
    message="OLS fit failed",
    context_builder=lambda args, kwargs: {"formula": kwargs.get("formula", args[1] if len(args) > 1 else None)},
)
def fit_ols(df: pd.DataFrame, formula: str) -> RegressionResultsWrapper:
    """OLS via the formula API; rows with missing model variables are dropped."""
    results = smf.ols(formula, data=df, missing="drop").fit()
    logger.debug(f"OLS '{formula}' fit on {int(results.nobs)} of {len(df)} rows")
    return results


def coefficient_table(results: RegressionResultsWrapper, alpha: float = 0.05) -> pd.DataFrame:
    """Tidy coefficient table: one row per term."""
    ci = results.conf_int(alpha=alpha)
    return pd.DataFrame({
        "term": list(results.params.index),
        "estimate": results.params.to_numpy(dtype=float),
        "std_error": results.bse.to_numpy(dtype=float),
        "statistic": results.tvalues.to_numpy(dtype=float),
        "p_value": results.pvalues.to_numpy(dtype=float),
        "conf_low": ci.iloc[:, 0].to_numpy(dtype=float),
        "conf_high": ci.iloc[:, 1].to_numpy(dtype=float),
    })


def significance_stars(p_value: float) -> str:
    if p_value is None or not np.isfinite(p_value):
        return ""
    for threshold, stars in STAR_LEVELS:
        if p_value < threshold:
            return stars
    return ""


def _format_cell(row: pd.Series, digits: int) -> str:
    return (
        f"{row['estimate']:,.{digits}f}{significance_stars(row['p_value'])} "
        f"({row['std_error']:,.{digits}f})"
    )


def compare_models(
    models: Mapping[str, pd.DataFrame],
    nobs: Optional[Mapping[str, int]] = None,
    digits: int = 2,
) -> pd.DataFrame:
    """
    Side-by-side table: `estimate (std.error)` with stars per model, plus an `N` row.

    Terms keep the order of first appearance; a term a model lacks is blank.
    """
    if not models:
        raise DataValidationError("compare_models needs at least one model")

    for name, tidy in models.items():
        missing = [c for c in ("term", "estimate", "std_error", "p_value") if c not in tidy.columns]
        if missing:
            raise DataValidationError(f"Model '{name}' table lacks columns", details={"missing": missing})

    terms: List[str] = []
    for tidy in models.values():
        terms.extend(t for t in tidy["term"] if t not in terms)

    table = pd.DataFrame({"term": terms})
    for name, tidy in models.items():
        cells = {row["term"]: _format_cell(row, digits) for _, row in tidy.iterrows()}
        table[name] = [cells.get(t, "") for t in terms]

    n_row = {"term": "N"}
    for name in models:
        n = (nobs or {}).get(name)
        n_row[name] = f"{int(n):,}" if n is not None else ""
    table = pd.concat([table, pd.DataFrame([n_row])], ignore_index=True)

    return table


class ModelSummaryAgent(BaseAgent):
    """Builds the model comparison table from fitted models or tidy tables."""

    error_type = ModelFitError

    def __init__(self, digits: int = 2) -> None:
        super().__init__(name="ModelSummaryAgent", description="Model comparison tables")
        self.digits = digits
        self._log = logger.bind(agent="ModelSummaryAgent")

    def execute(
        self,
        models: Mapping[str, Union[pd.DataFrame, RegressionResultsWrapper]],
        nobs: Optional[Mapping[str, int]] = None,
        **kwargs: Any,
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        tidy: Dict[str, pd.DataFrame] = {}
        counts: Dict[str, int] = dict(nobs or {})
        for name, model in models.items():
            if isinstance(model, pd.DataFrame):
                tidy[name] = model
            else:
                tidy[name] = coefficient_table(model)
                counts.setdefault(name, int(model.nobs))

        table = compare_models(tidy, counts, digits=self.digits)

        result.data = {
            "table": table,
            "tidy": tidy,
            "nobs": counts,
            "stars_note": STARS_NOTE,
            "version": "1.0",
        }
        self._log.info(f"Model comparison table built for {len(tidy)} model(s)")
        return result
