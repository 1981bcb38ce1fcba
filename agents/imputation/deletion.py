# === MODULE DESCRIPTION ===
"""
Missing Data Deck - Deletion Strategies
Listwise (complete-case) and pairwise (available-case) deletion.

Contract (AgentResult.data):
{
  "method": "listwise"|"pairwise"|"both",
  "listwise": {"data": pd.DataFrame, "n_rows": int, "n_dropped": int, "retained_share": float},
  "pairwise": {"correlation": pd.DataFrame, "covariance": pd.DataFrame,
               "pairwise_n": pd.DataFrame, "min_eigenvalue": float, "is_psd": bool},
  "version": "1.0"
}
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from core.base_agent import AgentResult, BaseAgent
from core.exceptions import DataValidationError, ImputationError

PSD_TOLERANCE = 1e-10

DELETION_METHODS = ("listwise", "pairwise", "both")


def _check_columns(df: pd.DataFrame, columns: Optional[Sequence[str]]) -> List[str]:
    cols = list(columns) if columns is not None else list(df.columns)
    unknown = [c for c in cols if c not in df.columns]
    if unknown:
        raise DataValidationError("Unknown columns", details={"unknown": unknown})
    return cols


def listwise_deletion(df: pd.DataFrame, columns: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """Drop every row with a missing value in `columns` (all columns by default)."""
    cols = _check_columns(df, columns)
    complete = df.dropna(subset=cols).copy()
    n_rows = int(len(df))
    n_dropped = n_rows - int(len(complete))

    return {
        "data": complete,
        "n_rows": n_rows,
        "n_dropped": n_dropped,
        "retained_share": float(len(complete) / n_rows) if n_rows else 0.0,
    }


def pairwise_statistics(df: pd.DataFrame, columns: Sequence[str]) -> Dict[str, Any]:
    """
    Pairwise-complete correlation and covariance.

    Each entry uses every row where both variables are observed, so entries
    rest on different subsets; `pairwise_n` shows how many. The smallest
    eigenvalue of the correlation matrix checks positive semi-definiteness.
    """
    cols = _check_columns(df, columns)
    non_numeric = [c for c in cols if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        raise ImputationError("Pairwise statistics need numeric columns", details={"columns": non_numeric})

    sub = df[cols].astype(float)
    observed = sub.notna().astype(int)
    pairwise_n = observed.T.dot(observed)

    corr = sub.corr(method="pearson")
    cov = sub.cov()

    values = corr.to_numpy()
    if np.isnan(values).any():
        min_eig = float("nan")
    else:
        min_eig = float(np.linalg.eigvalsh(values).min())

    return {
        "correlation": corr,
        "covariance": cov,
        "pairwise_n": pairwise_n,
        "min_eigenvalue": min_eig,
        "is_psd": bool(np.isfinite(min_eig) and min_eig >= -PSD_TOLERANCE),
    }


class DeletionAgent(BaseAgent):
    """Runs listwise and/or pairwise deletion."""

    error_type = ImputationError

    def __init__(self) -> None:
        super().__init__(name="DeletionAgent", description="Listwise and pairwise deletion")
        self._log = logger.bind(agent="DeletionAgent")

    def execute(
        self,
        data: pd.DataFrame,
        columns: Optional[Sequence[str]] = None,
        method: str = "both",
        **kwargs: Any,
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        if method not in DELETION_METHODS:
            raise DataValidationError(f"Unknown deletion method '{method}'", details={"allowed": list(DELETION_METHODS)})

        cols = _check_columns(data, columns)
        payload: Dict[str, Any] = {"method": method, "version": "1.0"}

        if method in ("listwise", "both"):
            lw = listwise_deletion(data, cols)
            payload["listwise"] = lw
            self._log.info(f"Listwise deletion dropped {lw['n_dropped']}/{lw['n_rows']} rows")
            if lw["n_rows"] and lw["retained_share"] < 0.5:
                result.add_warning(f"Listwise deletion keeps only {lw['retained_share']:.0%} of rows")

        if method in ("pairwise", "both"):
            pw = pairwise_statistics(data, cols)
            payload["pairwise"] = pw
            if not pw["is_psd"]:
                result.add_warning(
                    f"Pairwise correlation matrix is not positive semi-definite "
                    f"(min eigenvalue {pw['min_eigenvalue']:.4g})"
                )

        result.data = payload
        return result
