# === MODULE DESCRIPTION ===
"""
Missing Data Deck - Missingness Amputer
Deliberately removes values from one column to simulate MCAR, MAR or MNAR.

Contract (AgentResult.data):
{
  "data": pd.DataFrame,           # amputed copy, input untouched
  "mask": pd.Series[bool],        # True where a value was removed
  "mechanism": "mcar"|"mar"|"mnar",
  "column": str,
  "driver": str|None,             # column driving MAR missingness
  "n_missing": int,               # values removed
  "missing_rate": float,          # n_missing / n_rows
  "target_rate": float,
  "version": "1.0"
}

Mechanisms:
  • mcar - every value removed independently with probability `rate`
  • mar  - P(missing) = logistic(a + s·z(driver)), `a` solved so mean P = rate
  • mnar - P(missing) = logistic(a + s·z(column)), larger values more likely missing
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from loguru import logger
from scipy.optimize import brentq
from scipy.special import expit

from config.constants import MECHANISMS
from config.settings import settings
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import AmputationError, DataValidationError


# === SECTION === CONFIG ===
@dataclass(frozen=True)
class AmputationConfig:
    """Shape of the logistic missingness model."""
    strength: float = 2.0          # slope on the standardized driver
    intercept_bound: float = 40.0  # search interval for the calibrated intercept


def _standardize(series: pd.Series) -> np.ndarray:
    if isinstance(series.dtype, pd.CategoricalDtype):
        values = series.cat.codes.astype(float).where(series.notna())
    elif pd.api.types.is_numeric_dtype(series):
        values = series.astype(float)
    else:
        raise AmputationError(
            f"Column '{series.name}' must be numeric or categorical to drive missingness",
            details={"dtype": str(series.dtype)},
        )
    std = values.std(ddof=0)
    if not np.isfinite(std) or std == 0:
        return np.zeros(len(values))
    z = (values - values.mean()) / std
    return z.fillna(0.0).to_numpy()


def calibrated_probabilities(z: np.ndarray, rate: float, strength: float = 2.0, bound: float = 40.0) -> np.ndarray:
    """
    Logistic removal probabilities whose mean equals `rate`.

    The intercept is found with Brent's method; `rate == 0` yields all zeros.
    """
    if rate <= 0:
        return np.zeros_like(z, dtype=float)

    def _gap(a: float) -> float:
        return float(expit(a + strength * z).mean() - rate)

    intercept = brentq(_gap, -bound, bound)
    return expit(intercept + strength * z)


def ampute(
    df: pd.DataFrame,
    column: str,
    mechanism: str = "mcar",
    rate: float = 0.3,
    driver: Optional[str] = None,
    random_state: Optional[int] = None,
    config: Optional[AmputationConfig] = None,
) -> Dict[str, Any]:
    """Remove values of `column` from a copy of `df` under the given mechanism."""
    cfg = config or AmputationConfig()
    mechanism = str(mechanism).lower()

    if mechanism not in MECHANISMS:
        raise AmputationError(
            f"Unknown missingness mechanism '{mechanism}'",
            details={"allowed": list(MECHANISMS)},
        )
    if not isinstance(rate, (int, float)) or not 0.0 <= float(rate) < 1.0:
        raise AmputationError("Missing rate must be in [0, 1)", details={"rate": rate})
    if column not in df.columns:
        raise DataValidationError(f"Unknown column '{column}'", details={"available": list(df.columns)})

    if mechanism == "mar":
        driver = driver or settings.MAR_DRIVER
        if driver not in df.columns:
            raise DataValidationError(f"Unknown MAR driver '{driver}'", details={"available": list(df.columns)})
        if driver == column:
            raise AmputationError("MAR driver must differ from the amputed column", details={"column": column})
    else:
        driver = None

    seed = settings.RANDOM_STATE if random_state is None else random_state
    rng = np.random.default_rng(seed)
    n = len(df)

    if mechanism == "mcar":
        probs = np.full(n, float(rate))
    elif mechanism == "mar":
        probs = calibrated_probabilities(_standardize(df[driver]), float(rate), cfg.strength, cfg.intercept_bound)
    else:
        probs = calibrated_probabilities(_standardize(df[column]), float(rate), cfg.strength, cfg.intercept_bound)

    removed = (rng.random(n) < probs) & df[column].notna().to_numpy()
    mask = pd.Series(removed, index=df.index, name=f"{column}_missing")

    out = df.copy()
    if pd.api.types.is_integer_dtype(out[column]) or pd.api.types.is_bool_dtype(out[column]):
        out[column] = out[column].astype(float)
    out.loc[mask, column] = np.nan

    n_missing = int(mask.sum())
    return {
        "data": out,
        "mask": mask,
        "mechanism": mechanism,
        "column": column,
        "driver": driver,
        "n_missing": n_missing,
        "missing_rate": float(n_missing / n) if n else 0.0,
        "target_rate": float(rate),
        "version": "1.0",
    }


# === SECTION === AGENT ===
class MissingnessAmputer(BaseAgent):
    """Injects synthetic missingness into a copy of the data."""

    error_type = AmputationError

    def __init__(self, config: Optional[AmputationConfig] = None) -> None:
        super().__init__(name="MissingnessAmputer", description="Injects MCAR/MAR/MNAR missingness")
        self.config = config or AmputationConfig()
        self._log = logger.bind(agent="MissingnessAmputer")

    def execute(
        self,
        data: pd.DataFrame,
        column: str,
        mechanism: str = "mcar",
        rate: Optional[float] = None,
        driver: Optional[str] = None,
        random_state: Optional[int] = None,
        **kwargs: Any,
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        if data is None or not isinstance(data, pd.DataFrame) or data.empty:
            raise DataValidationError("MissingnessAmputer: 'data' must be a non-empty pandas DataFrame")

        rate = settings.MISSING_RATE if rate is None else rate
        payload = ampute(data, column, mechanism, rate, driver, random_state, self.config)

        if rate > 0 and payload["n_missing"] == 0:
            result.add_warning(f"No values removed from '{column}' (rate={rate})")

        result.data = payload
        self._log.info(
            f"Amputed '{column}' under {payload['mechanism'].upper()}: "
            f"{payload['n_missing']} values ({payload['missing_rate']:.1%})"
        )
        return result
