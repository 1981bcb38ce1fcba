# === MODULE DESCRIPTION ===
"""
Missing Data Deck - Missing Data Analyzer
Describes missingness at dataset, column and pattern level and runs the
observable checks that separate MCAR from MAR.

Contract (AgentResult.data):
{
  "summary": {
      "total_cells": int, "total_missing": int, "missing_percentage": float,
      "n_columns_with_missing": int, "n_rows_with_missing": int, "complete_rows": int
  },
  "columns": [
      {"column": str, "n_missing": int, "missing_percentage": float, "dtype": str,
       "severity": "low"|"medium"|"high"|"critical", "suggested_strategy": str}
  ],
  "patterns": {
      "table": pd.DataFrame,      # one row per distinct missingness pattern (1 = observed)
      "n_patterns": int
  },
  "mechanism_tests": {
      "alpha": float,
      "welch": [{"column", "covariate", "statistic", "p_value", "mean_missing",
                 "mean_observed", "significant"}],
      "logit": [{"column", "covariates", "llr", "p_value", "significant"}],
      "flags": [{"column", "flag": "MAR_like"|"consistent_with_MCAR", "reason"}],
      "table": pd.DataFrame,      # welch rows flattened for slides
      "note": str
  },
  "recommendations": List[str],
  "telemetry": {"elapsed_ms": float, "n_rows": int, "n_covariates": int},
  "version": "1.0"
}
"""

from __future__ import annotations

import time
import warnings
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
from loguru import logger
from scipy import stats
from statsmodels.tools.sm_exceptions import PerfectSeparationError

from config.settings import settings
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import DataValidationError


MNAR_NOTE = (
    "MNAR cannot be detected from observed data: the values that drive the "
    "missingness are exactly the ones that are missing."
)


# === SECTION === CONFIG / THRESHOLDS ===
@dataclass(frozen=True)
class MissingConfig:
    """Thresholds for severity classification and mechanism tests."""
    low_threshold_pct: float = 5.0        # <5% => low
    medium_threshold_pct: float = 20.0    # <20% => medium
    high_threshold_pct: float = 50.0      # <50% => high, else critical
    drop_column_over_pct: float = 70.0    # >70% => suggest dropping
    min_group_size: int = 2               # per group for Welch t-test
    max_patterns: int = 20                # rows kept in the patterns table


# === SECTION === MAIN CLASS ===
class MissingDataAnalyzer(BaseAgent):
    """Summarizes missing data and checks MCAR against MAR."""

    error_type = DataValidationError

    def __init__(self, config: Optional[MissingConfig] = None, alpha: Optional[float] = None) -> None:
        super().__init__(name="MissingDataAnalyzer", description="Analyzes missing data patterns")
        self.config = config or MissingConfig()
        self.alpha = settings.ALPHA if alpha is None else alpha
        self._log = logger.bind(agent="MissingDataAnalyzer")

    # === SECTION === MAIN EXECUTION ===
    def execute(self, data: pd.DataFrame, covariates: Optional[Sequence[str]] = None, **kwargs: Any) -> AgentResult:
        result = AgentResult(agent_name=self.name)
        t0 = time.perf_counter()

        if data is None or not isinstance(data, pd.DataFrame):
            raise DataValidationError("MissingDataAnalyzer: 'data' must be a pandas DataFrame")
        if data.empty:
            result.add_warning("Empty DataFrame - no missing-data analysis performed.")
            result.data = self._empty_payload(self.alpha)
            return result

        df = data.copy(deep=False)
        covariates = list(covariates) if covariates is not None else self._numeric_columns(df)
        unknown = [c for c in covariates if c not in df.columns]
        if unknown:
            raise DataValidationError("Unknown covariates", details={"unknown": unknown})

        summary = self._get_missing_summary(df)
        columns = self._analyze_missing_by_column(df)
        patterns = self._missing_patterns(df)
        mechanism_tests = self.mechanism_tests(df, [c["column"] for c in columns], covariates)
        recommendations = self._get_recommendations(columns, mechanism_tests)

        result.data = {
            "summary": summary,
            "columns": columns,
            "patterns": patterns,
            "mechanism_tests": mechanism_tests,
            "recommendations": recommendations,
            "telemetry": {
                "elapsed_ms": round((time.perf_counter() - t0) * 1000, 1),
                "n_rows": int(len(df)),
                "n_covariates": len(covariates),
            },
            "version": "1.0",
        }

        if summary["total_missing"] == 0:
            self._log.success("No missing data found!")
        else:
            self._log.info(
                f"Missing data analysis complete: {summary['total_missing']} missing values "
                f"({summary['missing_percentage']:.2f}%)"
            )

        return result

    # === SECTION === DATASET SUMMARY ===
    @staticmethod
    def _get_missing_summary(df: pd.DataFrame) -> Dict[str, Any]:
        rows, cols = int(df.shape[0]), int(df.shape[1])
        total_cells = rows * cols
        isna = df.isna()
        total_missing = int(isna.values.sum())
        row_missing_mask = isna.any(axis=1)

        return {
            "total_cells": total_cells,
            "total_missing": total_missing,
            "missing_percentage": float(total_missing / max(1, total_cells) * 100.0),
            "n_columns_with_missing": int((isna.sum(axis=0) > 0).sum()),
            "n_rows_with_missing": int(row_missing_mask.sum()),
            "complete_rows": int((~row_missing_mask).sum()),
        }

    # === SECTION === COLUMN ANALYSIS ===
    def _analyze_missing_by_column(self, df: pd.DataFrame) -> List[Dict[str, Any]]:
        cfg = self.config
        n = max(1, len(df))
        out: List[Dict[str, Any]] = []

        for col, n_missing in df.isna().sum(axis=0).items():
            n_missing = int(n_missing)
            if n_missing == 0:
                continue
            missing_pct = float(n_missing / n * 100.0)
            out.append({
                "column": str(col),
                "n_missing": n_missing,
                "missing_percentage": missing_pct,
                "dtype": str(df[col].dtype),
                "severity": self._get_severity(missing_pct, cfg),
                "suggested_strategy": self._suggest_strategy(df[col], missing_pct, cfg),
            })

        out.sort(key=lambda x: x["missing_percentage"], reverse=True)
        return out

    # === SECTION === PATTERNS ===
    def _missing_patterns(self, df: pd.DataFrame) -> Dict[str, Any]:
        """Distinct row-wise combinations of observed (1) / missing (0) values."""
        observed = df.notna().astype(int)
        counts = (
            observed.value_counts(sort=True)
            .rename("count")
            .reset_index()
        )
        counts["n_missing"] = len(df.columns) - counts[list(df.columns)].sum(axis=1)
        counts = counts.sort_values(["count", "n_missing"], ascending=[False, True]).reset_index(drop=True)

        return {
            "table": counts.head(self.config.max_patterns),
            "n_patterns": int(len(counts)),
        }

    # === SECTION === MECHANISM TESTS ===
    def mechanism_tests(
        self,
        df: pd.DataFrame,
        columns: Sequence[str],
        covariates: Sequence[str],
    ) -> Dict[str, Any]:
        """
        Welch t-tests of each covariate between rows with and without a missing
        value, plus a Logit of the missingness indicator on all covariates.
        """
        welch: List[Dict[str, Any]] = []
        logit: List[Dict[str, Any]] = []
        flags: List[Dict[str, Any]] = []

        for col in columns:
            indicator = df[col].isna()
            usable = [c for c in covariates if c != col]
            significant: List[str] = []

            for cov in usable:
                row = self._welch_test(df[cov], indicator, col, cov)
                if row is None:
                    continue
                welch.append(row)
                if row["significant"]:
                    significant.append(f"t-test on {cov} (p={row['p_value']:.3g})")

            logit_row = self._logit_test(df, indicator, col, usable)
            if logit_row is not None:
                logit.append(logit_row)
                if logit_row["significant"]:
                    significant.append(f"logistic regression (LR p={logit_row['p_value']:.3g})")

            if significant:
                flags.append({"column": col, "flag": "MAR_like", "reason": "; ".join(significant)})
            else:
                flags.append({
                    "column": col,
                    "flag": "consistent_with_MCAR",
                    "reason": f"no covariate predicts missingness at alpha={self.alpha}",
                })

        table = pd.DataFrame(
            welch,
            columns=["column", "covariate", "mean_missing", "mean_observed", "statistic", "p_value", "significant"],
        )
        return {
            "alpha": float(self.alpha),
            "welch": welch,
            "logit": logit,
            "flags": flags,
            "table": table,
            "note": MNAR_NOTE,
        }

    def _welch_test(self, covariate: pd.Series, indicator: pd.Series, col: str, cov: str) -> Optional[Dict[str, Any]]:
        if isinstance(covariate.dtype, pd.CategoricalDtype):
            values = covariate.cat.codes.astype(float).where(covariate.notna())
        else:
            values = pd.to_numeric(covariate, errors="coerce")
        missing_grp = values[indicator].dropna()
        observed_grp = values[~indicator].dropna()

        if min(len(missing_grp), len(observed_grp)) < self.config.min_group_size:
            return None
        if missing_grp.nunique() < 2 and observed_grp.nunique() < 2:
            return None

        res = stats.ttest_ind(missing_grp, observed_grp, equal_var=False)
        p_value = float(res.pvalue)
        return {
            "column": col,
            "covariate": cov,
            "mean_missing": float(missing_grp.mean()),
            "mean_observed": float(observed_grp.mean()),
            "statistic": float(res.statistic),
            "p_value": p_value,
            "significant": bool(p_value < self.alpha),
        }

    def _logit_test(
        self, df: pd.DataFrame, indicator: pd.Series, col: str, covariates: Sequence[str]
    ) -> Optional[Dict[str, Any]]:
        numeric = [c for c in covariates if pd.api.types.is_numeric_dtype(df[c])]
        if not numeric or indicator.nunique() < 2:
            return None

        X = df[numeric].astype(float)
        keep = X.notna().all(axis=1)
        X, y = X[keep], indicator[keep].astype(float)
        if y.nunique() < 2 or len(y) <= len(numeric) + 1:
            return None

        X = (X - X.mean()) / X.std(ddof=0).replace(0, 1.0)
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                fit = sm.Logit(y, sm.add_constant(X, has_constant="add")).fit(disp=0)
        except (PerfectSeparationError, np.linalg.LinAlgError, ValueError) as e:
            self._log.warning(f"Logit of missingness in '{col}' failed: {e}")
            return None

        p_value = float(fit.llr_pvalue)
        return {
            "column": col,
            "covariates": numeric,
            "llr": float(fit.llr),
            "p_value": p_value,
            "significant": bool(p_value < self.alpha),
        }

    # === SECTION === SEVERITY AND STRATEGIES ===
    @staticmethod
    def _get_severity(missing_pct: float, cfg: MissingConfig) -> str:
        if missing_pct < cfg.low_threshold_pct:
            return "low"
        elif missing_pct < cfg.medium_threshold_pct:
            return "medium"
        elif missing_pct < cfg.high_threshold_pct:
            return "high"
        return "critical"

    @staticmethod
    def _suggest_strategy(series: pd.Series, missing_pct: float, cfg: MissingConfig) -> str:
        if missing_pct >= cfg.drop_column_over_pct:
            return "consider_dropping_column"
        if pd.api.types.is_numeric_dtype(series):
            return "listwise_or_mean_imputation" if missing_pct < cfg.low_threshold_pct else "multiple_imputation"
        return "mode_or_missing_category"

    @staticmethod
    def _numeric_columns(df: pd.DataFrame) -> List[str]:
        return [c for c in df.columns if pd.api.types.is_numeric_dtype(df[c]) and not pd.api.types.is_bool_dtype(df[c])]

    # === SECTION === RECOMMENDATIONS ===
    def _get_recommendations(self, columns: List[Dict[str, Any]], tests: Dict[str, Any]) -> List[str]:
        cfg = self.config
        rec: List[str] = []

        if not columns:
            return ["✅ No missing data - no imputation step needed."]

        critical = [c["column"] for c in columns if c["severity"] == "critical"]
        high = [c["column"] for c in columns if c["severity"] == "high"]
        if critical:
            rec.append(f"🚨 {len(critical)} column(s) with ≥{cfg.high_threshold_pct:.0f}% missing: {', '.join(critical)}.")
        if high:
            rec.append(f"⚠️ {len(high)} column(s) with {cfg.medium_threshold_pct:.0f}–{cfg.high_threshold_pct:.0f}% missing: prefer multiple imputation.")

        mar_like = [f["column"] for f in tests["flags"] if f["flag"] == "MAR_like"]
        mcar_like = [f["column"] for f in tests["flags"] if f["flag"] == "consistent_with_MCAR"]
        if mar_like:
            rec.append(f"🧪 Missingness in {', '.join(mar_like)} depends on observed data (MAR-like): listwise deletion will be biased.")
        if mcar_like:
            rec.append(f"🎲 Missingness in {', '.join(mcar_like)} is consistent with MCAR: complete-case analysis stays unbiased but loses power.")
        rec.append("🕳️ " + MNAR_NOTE)

        return list(dict.fromkeys(rec))

    # === SECTION === EMPTY PAYLOAD ===
    @staticmethod
    def _empty_payload(alpha: float) -> Dict[str, Any]:
        return {
            "summary": {
                "total_cells": 0, "total_missing": 0, "missing_percentage": 0.0,
                "n_columns_with_missing": 0, "n_rows_with_missing": 0, "complete_rows": 0
            },
            "columns": [],
            "patterns": {"table": pd.DataFrame(), "n_patterns": 0},
            "mechanism_tests": {
                "alpha": float(alpha), "welch": [], "logit": [], "flags": [],
                "table": pd.DataFrame(), "note": MNAR_NOTE,
            },
            "recommendations": ["Provide data for the missing-data analysis."],
            "telemetry": {"elapsed_ms": 0.0, "n_rows": 0, "n_covariates": 0},
            "version": "1.0",
        }
