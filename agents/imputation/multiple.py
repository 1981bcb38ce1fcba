# === MODULE DESCRIPTION ===
"""
Missing Data Deck - Multiple Imputation
Chained equations with predictive mean matching (statsmodels MICEData),
the analysis model fit on every completed dataset, and Rubin's rules.

Contract (AgentResult.data):
{
  "imputations": List[pd.DataFrame],     # m completed datasets
  "per_imputation": List[pd.DataFrame],  # tidy coefficient table per dataset
  "pooled": pd.DataFrame,                # term, estimate, std_error, statistic, df,
                                         # p_value, conf_low, conf_high,
                                         # within, between, total, riv, fmi
  "n_imputations": int,
  "formula": str,
  "nobs": int,
  "settings": {"n_burnin": int, "n_skip": int, "k_pmm": int, "random_state": int},
  "version": "1.0"
}

Pooling (m imputations, Q_i estimates, U_i squared standard errors):
  Q̄ = mean(Q_i)     Ū = mean(U_i)     B = var(Q_i, ddof=1)
  T = Ū + (1 + 1/m)·B      r = (1 + 1/m)·B / Ū      λ = (1 + 1/m)·B / T
  ν_old = (m - 1) / λ²     ν_obs = (ν_com + 1)/(ν_com + 3) · ν_com · (1 - λ)
  ν = ν_old·ν_obs / (ν_old + ν_obs)          (Barnard & Rubin, 1999)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from loguru import logger
from scipy import stats
from statsmodels.imputation.mice import MICEData

from config.constants import ANALYSIS_FORMULA
from config.settings import settings
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import DataValidationError, ImputationError, exception_context

from agents.modeling.model_summary import coefficient_table, fit_ols


# === SECTION === CONFIG ===
@dataclass(frozen=True)
class MultipleImputationConfig:
    """Fixed MICE parameters."""
    n_imputations: int = 5
    n_burnin: int = 10
    n_skip: int = 3          # chained-equation cycles between saved datasets
    k_pmm: int = 5
    alpha: float = 0.05

    @classmethod
    def from_settings(cls) -> "MultipleImputationConfig":
        return cls(
            n_imputations=settings.MI_N_IMPUTATIONS,
            n_burnin=settings.MI_N_BURNIN,
            k_pmm=settings.MI_K_PMM,
            alpha=settings.ALPHA,
        )


# === SECTION === RUBIN'S RULES ===
def pool_rubin(
    estimates: pd.DataFrame,
    variances: pd.DataFrame,
    df_complete: Optional[float] = None,
    alpha: float = 0.05,
) -> pd.DataFrame:
    """
    Pool m sets of estimates (rows = imputations, columns = terms).

    `df_complete` is the complete-data residual degrees of freedom; without it
    the large-sample degrees of freedom `ν_old` are used.
    """
    m = len(estimates)
    if m < 2:
        raise ImputationError("Rubin's rules need at least two imputations", details={"m": m})
    if list(estimates.columns) != list(variances.columns) or len(variances) != m:
        raise ImputationError("Estimates and variances must share shape and terms")

    q_bar = estimates.mean(axis=0)
    u_bar = variances.mean(axis=0)
    b = estimates.var(axis=0, ddof=1)
    inflation = (1.0 + 1.0 / m) * b
    total = u_bar + inflation

    with np.errstate(divide="ignore", invalid="ignore"):
        riv = inflation / u_bar
        lam = (inflation / total).fillna(0.0)
        nu_old = (m - 1) / lam.pow(2)
        if df_complete is not None and df_complete > 0:
            nu_obs = (df_complete + 1.0) / (df_complete + 3.0) * df_complete * (1.0 - lam)
            nu = pd.Series(
                np.where(np.isinf(nu_old), nu_obs, nu_old * nu_obs / (nu_old + nu_obs)),
                index=q_bar.index,
            )
        else:
            nu = nu_old

    se = np.sqrt(total)
    statistic = q_bar / se
    p_value = pd.Series(2.0 * stats.t.sf(np.abs(statistic), nu), index=q_bar.index)
    crit = pd.Series(stats.t.ppf(1.0 - alpha / 2.0, nu), index=q_bar.index)

    return pd.DataFrame({
        "term": list(q_bar.index),
        "estimate": q_bar.to_numpy(dtype=float),
        "std_error": se.to_numpy(dtype=float),
        "statistic": statistic.to_numpy(dtype=float),
        "df": nu.to_numpy(dtype=float),
        "p_value": p_value.to_numpy(dtype=float),
        "conf_low": (q_bar - crit * se).to_numpy(dtype=float),
        "conf_high": (q_bar + crit * se).to_numpy(dtype=float),
        "within": u_bar.to_numpy(dtype=float),
        "between": b.to_numpy(dtype=float),
        "total": total.to_numpy(dtype=float),
        "riv": riv.to_numpy(dtype=float),
        "fmi": lam.to_numpy(dtype=float),
    })


# === SECTION === MAIN CLASS ===
class MultipleImputer(BaseAgent):
    """MICE with predictive mean matching, then Rubin pooling of an OLS model."""

    error_type = ImputationError

    def __init__(self, config: Optional[MultipleImputationConfig] = None) -> None:
        super().__init__(name="MultipleImputer", description="Multiple imputation by chained equations")
        self.config = config or MultipleImputationConfig.from_settings()
        self._log = logger.bind(agent="MultipleImputer")

    def execute(
        self,
        data: pd.DataFrame,
        formula: str = ANALYSIS_FORMULA,
        n_imputations: Optional[int] = None,
        n_burnin: Optional[int] = None,
        k_pmm: Optional[int] = None,
        random_state: Optional[int] = None,
        **kwargs: Any,
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)
        cfg = self.config

        m = cfg.n_imputations if n_imputations is None else int(n_imputations)
        burnin = cfg.n_burnin if n_burnin is None else int(n_burnin)
        k = cfg.k_pmm if k_pmm is None else int(k_pmm)
        seed = settings.RANDOM_STATE if random_state is None else int(random_state)

        if m < 2:
            raise ImputationError("n_imputations must be >= 2", details={"n_imputations": m})
        frame = self._validate(data)

        imputations = self.impute(frame, m=m, n_burnin=burnin, k_pmm=k, random_state=seed)

        per_imputation: List[pd.DataFrame] = []
        est_rows, var_rows = [], []
        df_resid: List[float] = []
        for completed in imputations:
            fit = fit_ols(completed, formula)
            tidy = coefficient_table(fit, alpha=cfg.alpha)
            per_imputation.append(tidy)
            est_rows.append(fit.params)
            var_rows.append(fit.bse.pow(2))
            df_resid.append(float(fit.df_resid))

        pooled = pool_rubin(
            pd.DataFrame(est_rows).reset_index(drop=True),
            pd.DataFrame(var_rows).reset_index(drop=True),
            df_complete=float(np.mean(df_resid)),
            alpha=cfg.alpha,
        )

        result.data = {
            "imputations": imputations,
            "per_imputation": per_imputation,
            "pooled": pooled,
            "n_imputations": m,
            "formula": formula,
            "nobs": int(len(imputations[0])),
            "settings": {"n_burnin": burnin, "n_skip": cfg.n_skip, "k_pmm": k, "random_state": seed},
            "version": "1.0",
        }
        self._log.success(f"✓ Pooled '{formula}' over {m} imputations ({len(frame)} rows)")
        return result

    # === SECTION === VALIDATION ===
    @staticmethod
    def _validate(data: pd.DataFrame) -> pd.DataFrame:
        if data is None or not isinstance(data, pd.DataFrame) or data.empty:
            raise DataValidationError("MultipleImputer: 'data' must be a non-empty pandas DataFrame")

        non_numeric = [c for c in data.columns if not pd.api.types.is_numeric_dtype(data[c]) or pd.api.types.is_bool_dtype(data[c])]
        if non_numeric:
            raise ImputationError("MICE needs numeric columns only", details={"columns": non_numeric})

        all_missing = [c for c in data.columns if data[c].isna().all()]
        if all_missing:
            raise ImputationError("Columns missing in every row cannot be imputed", details={"columns": all_missing})

        bad_names = [c for c in data.columns if not str(c).isidentifier()]
        if bad_names:
            raise ImputationError("Column names must be valid identifiers for formulas", details={"columns": bad_names})

        return data.astype(float)

    # === SECTION === IMPUTATION ===
    def impute(
        self,
        frame: pd.DataFrame,
        m: int,
        n_burnin: int,
        k_pmm: int,
        random_state: int,
    ) -> List[pd.DataFrame]:
        """Return `m` completed copies of `frame` (original index restored)."""
        kept_index = frame.dropna(how="all").index
        work = frame.loc[kept_index].copy()
        work.columns = pd.Index([str(c) for c in work.columns], dtype=object)

        completed: List[pd.DataFrame] = []
        with exception_context(to=ImputationError, message="Chained-equation imputation failed"):
            imp = MICEData(work, k_pmm=k_pmm, rng=np.random.default_rng(random_state))
            imp.update_all(n_burnin)
            for i in range(m):
                if i > 0:
                    imp.update_all(self.config.n_skip)
                out = imp.data.copy()
                out.index = kept_index
                completed.append(out[list(work.columns)])

        if len(kept_index) < len(frame):
            self._log.warning(f"{len(frame) - len(kept_index)} row(s) missing in every column were dropped")

        return completed
