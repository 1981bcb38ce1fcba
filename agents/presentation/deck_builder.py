# === MODULE DESCRIPTION ===
"""
Missing Data Deck - Deck Builder
Runs every demonstration on a copy of the cleaned attrition frame and
interleaves the narrative slides. Steps share no state: a step that needs
the MAR data repeats the seeded amputation on its own copy.

Slide sequence:
   1 title                      10 pairwise deletion
   2 why missing data matters   11 mean imputation
   3 the attrition dataset      12 regression imputation
   4 mechanisms overview        13 multiple imputation: Rubin's rules
   5 MCAR demo                  14 multiple imputation in practice
   6 MAR demo                   15 comparing strategies
   7 MNAR demo                  16 take-aways
   8 diagnosing the mechanism   17 references
   9 listwise deletion

Any failing demonstration aborts the build with DeckBuildError.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd
from loguru import logger

from agents.eda.missing_data_analyzer import MNAR_NOTE, MissingDataAnalyzer
from agents.eda.visualization_engine import (
    plot_category_rates,
    plot_distribution,
    plot_imputation_densities,
    plot_imputed_vs_observed,
    plot_missing_rate_by,
    plot_observed_vs_complete,
    plot_regression_imputation,
)
from agents.imputation.deletion import DeletionAgent
from agents.imputation.multiple import MultipleImputer
from agents.imputation.single import SingleImputationAgent
from agents.missingness.amputer import MissingnessAmputer
from agents.modeling.model_summary import ModelSummaryAgent, coefficient_table, fit_ols
from agents.presentation.slides import (
    BulletBlock,
    CitationBlock,
    Deck,
    FigureBlock,
    MathBlock,
    Slide,
    TableBlock,
    TextBlock,
)
from config.constants import (
    ANALYSIS_COLUMNS,
    ANALYSIS_FORMULA,
    COL_MONTHLY_INCOME,
    COL_TOTAL_WORKING_YEARS,
    INCOME_PREDICTORS,
    REFERENCES,
    REQUIRED_COLUMNS,
    label_for,
)
from config.logging_config import LogContext
from config.settings import settings
from config.theme import DeckTheme, get_theme
from core.base_agent import AgentResult, BaseAgent
from core.data_loader import AttritionDataLoader, clean_attrition
from core.exceptions import DeckBuildError, MissingDeckError


# === SECTION === CONFIG ===
@dataclass(frozen=True)
class DeckConfig:
    """Parameters of the demonstrations."""
    title: str = "Missing Data"
    subtitle: str = ""
    author: str = ""
    missing_column: str = COL_MONTHLY_INCOME
    driver: str = COL_TOTAL_WORKING_YEARS
    missing_rate: float = 0.3
    n_imputations: int = 5
    random_state: int = 42
    preview_rows: int = 6

    @classmethod
    def from_settings(cls, **overrides: Any) -> "DeckConfig":
        values = dict(
            title=settings.DECK_TITLE,
            subtitle=settings.DECK_SUBTITLE,
            author=settings.DECK_AUTHOR,
            missing_column=settings.MISSING_TARGET,
            driver=settings.MAR_DRIVER,
            missing_rate=settings.MISSING_RATE,
            n_imputations=settings.MI_N_IMPUTATIONS,
            random_state=settings.RANDOM_STATE,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _money(value: float) -> str:
    return f"{value:,.0f}"


def _labelled(frame: pd.DataFrame, name: str = "variable") -> pd.DataFrame:
    """Move a matrix' row labels into a leading column (tables render without index)."""
    return frame.rename_axis(name).reset_index()


# === SECTION === MAIN CLASS ===
class DeckBuilder:
    """Assembles the missing-data deck from live demonstrations."""

    def __init__(
        self,
        config: Optional[DeckConfig] = None,
        theme: Optional[DeckTheme] = None,
        loader: Optional[AttritionDataLoader] = None,
    ) -> None:
        self.config = config or DeckConfig.from_settings()
        self.theme = theme or get_theme(settings.DECK_THEME)
        self.loader = loader or AttritionDataLoader(random_state=self.config.random_state)
        self.timings_ms: Dict[str, float] = {}
        self._log = logger.bind(agent="DeckBuilder")

    # === SECTION === BUILD ===
    def build(self, data: Optional[pd.DataFrame] = None) -> Deck:
        """Run the demonstrations and return the assembled deck; `data` is never modified."""
        t0 = time.perf_counter()
        raw = data if data is not None else self.loader.load()
        try:
            df = clean_attrition(raw)
        except MissingDeckError as e:
            raise DeckBuildError(f"Attrition data rejected: {e.message}", context={"slide": "dataset"}, cause=e) from e

        cfg = self.config
        if cfg.missing_column not in df.columns or cfg.driver not in df.columns:
            raise DeckBuildError(
                "Configured missing column or MAR driver is not in the data",
                details={"missing_column": cfg.missing_column, "driver": cfg.driver},
            )

        deck = Deck(title=cfg.title, subtitle=cfg.subtitle, author=cfg.author, theme=self.theme)
        self.timings_ms = {}

        for key, step in self._steps():
            t_step = time.perf_counter()
            try:
                with LogContext(slide=key):
                    slide = step(df.copy())
            except DeckBuildError:
                raise
            except Exception as e:
                self._log.opt(exception=e).error(f"Demonstration '{key}' failed")
                raise DeckBuildError(
                    f"Demonstration '{key}' failed: {e}",
                    context={"slide": key},
                    cause=e,
                ) from e
            deck.add_slide(slide)
            self.timings_ms[key] = round((time.perf_counter() - t_step) * 1000, 1)

        self.timings_ms["_total"] = round((time.perf_counter() - t0) * 1000, 1)
        self._log.success(f"✓ Deck assembled: {len(deck)} slides in {self.timings_ms['_total']:.0f} ms")
        return deck

    def _steps(self) -> List[Tuple[str, Callable[[pd.DataFrame], Slide]]]:
        return [
            ("title", self._title),
            ("motivation", self._motivation),
            ("dataset", self._dataset),
            ("mechanisms", self._mechanisms),
            ("mcar", self._mcar),
            ("mar", self._mar),
            ("mnar", self._mnar),
            ("diagnosis", self._diagnosis),
            ("listwise", self._listwise),
            ("pairwise", self._pairwise),
            ("mean", self._mean),
            ("regression", self._regression),
            ("rubin", self._rubin),
            ("multiple", self._multiple),
            ("comparison", self._comparison),
            ("takeaways", self._takeaways),
            ("references", self._references),
        ]

    @staticmethod
    def _run(agent: BaseAgent, **kwargs: Any) -> AgentResult:
        return agent.run(**kwargs).raise_for_status()

    def _amputed(self, mechanism: str, df: pd.DataFrame) -> Dict[str, Any]:
        cfg = self.config
        return self._run(
            MissingnessAmputer(),
            data=df,
            column=cfg.missing_column,
            mechanism=mechanism,
            rate=cfg.missing_rate,
            driver=cfg.driver if mechanism == "mar" else None,
            random_state=cfg.random_state,
        ).data

    def _mar_frame(self, df: pd.DataFrame) -> pd.DataFrame:
        """Analysis columns of `df` after the seeded MAR amputation."""
        return self._amputed("mar", df)["data"][list(ANALYSIS_COLUMNS)].copy()

    def _listwise_result(self, mar: pd.DataFrame) -> Dict[str, Any]:
        return self._run(DeletionAgent(), data=mar, columns=list(ANALYSIS_COLUMNS), method="listwise").data["listwise"]

    def _mean_result(self, mar: pd.DataFrame) -> Dict[str, Any]:
        return self._run(SingleImputationAgent(), data=mar, method="mean", columns=[self.config.missing_column]).data

    def _regression_result(self, mar: pd.DataFrame, method: str = "regression") -> Dict[str, Any]:
        cfg = self.config
        return self._run(
            SingleImputationAgent(), data=mar, method=method,
            target=cfg.missing_column, predictors=list(INCOME_PREDICTORS), random_state=cfg.random_state,
        ).data

    def _multiple_result(self, mar: pd.DataFrame) -> Dict[str, Any]:
        cfg = self.config
        return self._run(MultipleImputer(), data=mar, n_imputations=cfg.n_imputations, random_state=cfg.random_state).data

    # === SECTION === INTRODUCTION ===
    def _title(self, df: pd.DataFrame) -> Slide:
        cfg = self.config
        blocks: List[Any] = []
        if cfg.subtitle:
            blocks.append(TextBlock(cfg.subtitle))
        if cfg.author:
            blocks.append(TextBlock(cfg.author))
        return Slide(title=cfg.title, blocks=blocks, kind="title")

    def _motivation(self, df: pd.DataFrame) -> Slide:
        return Slide(
            title="Why missing data matters",
            blocks=[
                BulletBlock([
                    "Almost every real dataset has holes: skipped survey items, failed sensors, attrition.",
                    "Most software silently drops incomplete rows before fitting a model.",
                    "Dropping or naively filling values can **bias** estimates and **understate** uncertainty.",
                    "Whether a method is safe depends on *why* the values are missing.",
                ]),
                TextBlock("Rubin (1976) gave the vocabulary: MCAR, MAR and MNAR."),
            ],
            notes="Ask the audience how their tools handle NA by default.",
        )

    def _dataset(self, df: pd.DataFrame) -> Slide:
        cfg = self.config
        preview = df[list(REQUIRED_COLUMNS)].head(cfg.preview_rows)
        return Slide(
            title="The attrition dataset",
            blocks=[
                TextBlock(
                    f"{len(df):,} employees, {df.shape[1]} variables. "
                    f"We treat this complete table as the truth and remove values on purpose."
                ),
                TableBlock(preview, caption="First rows of the cleaned data", float_digits=0),
                FigureBlock(plot_distribution(df, cfg.missing_column, theme=self.theme)),
                FigureBlock(plot_category_rates(df, theme=self.theme)),
            ],
            notes=f"Source: {REFERENCES['ibm_hr']}",
        )

    def _mechanisms(self, df: pd.DataFrame) -> Slide:
        overview = pd.DataFrame({
            "mechanism": ["MCAR", "MAR", "MNAR"],
            "missingness depends on": ["nothing", "observed variables", "the missing value itself"],
            "example": [
                "a page of the questionnaire was lost",
                "senior staff skip the income question",
                "high earners hide their income",
            ],
            "complete-case analysis": ["unbiased, less power", "often biased", "biased"],
        })
        return Slide(
            title="Missingness mechanisms",
            blocks=[
                TableBlock(overview),
                MathBlock(r"\text{MCAR: } P(R \mid Y_{obs}, Y_{mis}) = P(R)"),
                MathBlock(r"\text{MAR: } P(R \mid Y_{obs}, Y_{mis}) = P(R \mid Y_{obs})"),
                MathBlock(r"\text{MNAR: } P(R \mid Y_{obs}, Y_{mis}) \text{ depends on } Y_{mis}"),
            ],
        )

    # === SECTION === MECHANISM DEMOS ===
    def _mechanism_slide(self, payload: Dict[str, Any], title: str, df: pd.DataFrame, lead: str) -> Slide:
        col = self.config.missing_column
        amputed = payload["data"]
        full_mean = float(df[col].mean())
        obs_mean = float(amputed[col].mean())

        slide = Slide(
            title=title,
            blocks=[
                TextBlock(lead),
                BulletBlock([
                    f"Removed {payload['n_missing']:,} of {len(df):,} values ({payload['missing_rate']:.1%}).",
                    f"Complete-data mean: {_money(full_mean)}; observed mean: {_money(obs_mean)} "
                    f"({(obs_mean - full_mean) / full_mean:+.1%}).",
                ]),
                FigureBlock(plot_observed_vs_complete(df[col], amputed[col], theme=self.theme)),
            ],
        )
        return slide

    def _mcar(self, df: pd.DataFrame) -> Slide:
        return self._mechanism_slide(
            self._amputed("mcar", df), "MCAR: missing completely at random", df,
            f"Every {label_for(self.config.missing_column).lower()} value has the same chance of being removed.",
        )

    def _mar(self, df: pd.DataFrame) -> Slide:
        cfg = self.config
        payload = self._amputed("mar", df)
        slide = self._mechanism_slide(
            payload, "MAR: missing at random", df,
            f"The chance of a missing {label_for(cfg.missing_column).lower()} rises with "
            f"{label_for(cfg.driver).lower()}, which we observe.",
        )
        slide.add(FigureBlock(plot_missing_rate_by(payload["data"], cfg.missing_column, cfg.driver, theme=self.theme)))
        return slide

    def _mnar(self, df: pd.DataFrame) -> Slide:
        slide = self._mechanism_slide(
            self._amputed("mnar", df), "MNAR: missing not at random", df,
            f"Higher {label_for(self.config.missing_column).lower()} values are more likely to be hidden.",
        )
        slide.notes = MNAR_NOTE
        return slide

    def _diagnosis(self, df: pd.DataFrame) -> Slide:
        col = self.config.missing_column
        covariates = [c for c in ANALYSIS_COLUMNS if c != col]
        analyzer = MissingDataAnalyzer()

        rows: List[Dict[str, str]] = []
        mar_tests: Optional[pd.DataFrame] = None
        for mechanism in ("mcar", "mar", "mnar"):
            frame = self._amputed(mechanism, df)["data"][list(ANALYSIS_COLUMNS)].copy()
            tests = self._run(analyzer, data=frame, covariates=covariates).data["mechanism_tests"]
            for flag in tests["flags"]:
                if flag["column"] == col:
                    rows.append({
                        "simulated": mechanism.upper(),
                        "verdict": flag["flag"].replace("_", " "),
                        "evidence": flag["reason"],
                    })
            if mechanism == "mar":
                mar_tests = tests["table"]

        blocks: List[Any] = [
            TextBlock("Compare rows with and without a missing value: Welch t-tests per covariate and a logistic model of the missingness indicator."),
            TableBlock(pd.DataFrame(rows, columns=["simulated", "verdict", "evidence"])),
        ]
        if mar_tests is not None and not mar_tests.empty:
            blocks.append(TableBlock(
                mar_tests[["covariate", "mean_missing", "mean_observed", "statistic", "p_value"]],
                caption="Welch tests under the simulated MAR mechanism",
            ))
        blocks.append(TextBlock(f"*{MNAR_NOTE}*"))
        return Slide(title="Diagnosing the mechanism", blocks=blocks)

    # === SECTION === DELETION ===
    def _listwise(self, df: pd.DataFrame) -> Slide:
        cfg = self.config
        lw = self._listwise_result(self._mar_frame(df))
        kept = lw["data"]

        return Slide(
            title="Listwise deletion",
            blocks=[
                BulletBlock([
                    f"Keep only complete rows: {len(kept):,} of {lw['n_rows']:,} ({lw['retained_share']:.0%}).",
                    "Unbiased under MCAR, but standard errors grow with the lost rows.",
                    f"Under MAR the kept rows under-represent high {label_for(cfg.driver).lower()}.",
                ]),
                FigureBlock(plot_observed_vs_complete(
                    df[cfg.driver], kept[cfg.driver], theme=self.theme,
                    title=f"{label_for(cfg.driver)}: all rows vs complete cases",
                )),
            ],
        )

    def _pairwise(self, df: pd.DataFrame) -> Slide:
        cfg = self.config
        cols = [cfg.missing_column, cfg.driver] + [c for c in ANALYSIS_COLUMNS if c not in (cfg.missing_column, cfg.driver)][:2]
        pw = self._run(DeletionAgent(), data=self._mar_frame(df), columns=cols, method="pairwise").data["pairwise"]

        return Slide(
            title="Pairwise deletion",
            blocks=[
                TextBlock("Each statistic uses every row where *its* variables are observed, so different cells rest on different samples."),
                TableBlock(_labelled(pw["pairwise_n"].astype(int)), caption="Rows used per pair", float_digits=0),
                TableBlock(_labelled(pw["correlation"]), caption="Pairwise correlations"),
                BulletBlock([
                    f"Smallest eigenvalue of the correlation matrix: {pw['min_eigenvalue']:.3f} "
                    f"({'positive semi-definite' if pw['is_psd'] else 'not positive semi-definite'}).",
                    "Mixing samples can yield impossible correlation matrices.",
                ]),
            ],
        )

    # === SECTION === SINGLE IMPUTATION ===
    def _mean(self, df: pd.DataFrame) -> Slide:
        cfg = self.config
        col = cfg.missing_column
        res = self._mean_result(self._mar_frame(df))
        out, mask = res["data"], res["mask"][col]

        r_true = float(df[col].corr(df[cfg.driver]))
        r_mean = float(out[col].corr(out[cfg.driver]))
        return Slide(
            title="Mean imputation",
            blocks=[
                BulletBlock([
                    f"Fill all {res['n_imputed']:,} gaps with the observed mean ({_money(float(out[col].mean()))}).",
                    f"Standard deviation: {_money(float(df[col].std()))} complete vs {_money(float(out[col].std()))} after imputation.",
                    f"Correlation with {label_for(cfg.driver).lower()}: {r_true:.2f} complete vs {r_mean:.2f}.",
                ]),
                FigureBlock(plot_imputed_vs_observed(out[col], mask, theme=self.theme)),
            ],
            notes="The spike at the mean is the visual signature of shrunken variance.",
        )

    def _regression(self, df: pd.DataFrame) -> Slide:
        cfg = self.config
        col = cfg.missing_column
        predictor = INCOME_PREDICTORS[0]
        mar = self._mar_frame(df)

        det = self._regression_result(mar)
        sto = self._regression_result(mar, method="stochastic_regression")

        params = det["model"]["params"]
        slope = params.get(predictor, float("nan"))
        return Slide(
            title="Regression imputation",
            blocks=[
                BulletBlock([
                    f"Fit {label_for(col).lower()} on {label_for(predictor).lower()} with complete rows "
                    f"(slope {slope:,.1f} per year, residual SD {_money(det['model']['residual_sd'])}).",
                    "Deterministic: imputed values sit exactly on the line, so correlations are inflated.",
                    "Stochastic: adding a residual draw restores the spread.",
                ]),
                FigureBlock(plot_regression_imputation(
                    det["data"], col, predictor, det["mask"], theme=self.theme,
                    title="Deterministic regression imputation",
                )),
                FigureBlock(plot_regression_imputation(
                    sto["data"], col, predictor, sto["mask"], theme=self.theme,
                    title="Stochastic regression imputation",
                )),
            ],
        )

    # === SECTION === MULTIPLE IMPUTATION ===
    def _rubin(self, df: pd.DataFrame) -> Slide:
        return Slide(
            title="Multiple imputation and Rubin's rules",
            blocks=[
                BulletBlock([
                    "Impute m times with draws from a predictive distribution.",
                    "Fit the analysis model on each completed dataset.",
                    "Pool estimates and variances with Rubin's rules.",
                ], ordered=True),
                MathBlock(r"\bar{Q} = \frac{1}{m}\sum_{i=1}^{m} \hat{Q}_i", caption="pooled estimate"),
                MathBlock(r"\bar{U} = \frac{1}{m}\sum_{i=1}^{m} U_i \qquad B = \frac{1}{m-1}\sum_{i=1}^{m}(\hat{Q}_i - \bar{Q})^2"),
                MathBlock(r"T = \bar{U} + \left(1 + \frac{1}{m}\right) B", caption="total variance"),
                TextBlock("The between-imputation variance B carries the uncertainty that single imputation ignores."),
            ],
        )

    def _multiple(self, df: pd.DataFrame) -> Slide:
        cfg = self.config
        col = cfg.missing_column
        mar = self._mar_frame(df)
        mi = self._multiple_result(mar)

        missing = mar[col].isna()
        imputed_values = [imp.loc[missing[missing].index, col] for imp in mi["imputations"]]
        pooled = mi["pooled"][["term", "estimate", "std_error", "df", "p_value", "fmi"]]

        return Slide(
            title="Multiple imputation in practice",
            blocks=[
                TextBlock(
                    f"Chained equations with predictive mean matching, m = {mi['n_imputations']}, "
                    f"analysis model `{mi['formula']}`."
                ),
                FigureBlock(plot_imputation_densities(mar[col].dropna(), imputed_values, theme=self.theme)),
                TableBlock(pooled, caption="Pooled coefficients (fmi = fraction of missing information)"),
            ],
            notes="Imputed densities should resemble, not copy, the observed one.",
        )

    # === SECTION === COMPARISON & WRAP-UP ===
    def _comparison(self, df: pd.DataFrame) -> Slide:
        mar = self._mar_frame(df)
        listwise = self._listwise_result(mar)["data"]
        mean = self._mean_result(mar)["data"]
        regression = self._regression_result(mar)["data"]
        mi = self._multiple_result(mar)
        models = {
            "Complete data": coefficient_table(fit_ols(df, ANALYSIS_FORMULA)),
            "Listwise": coefficient_table(fit_ols(listwise, ANALYSIS_FORMULA)),
            "Mean": coefficient_table(fit_ols(mean, ANALYSIS_FORMULA)),
            "Regression": coefficient_table(fit_ols(regression, ANALYSIS_FORMULA)),
            "Multiple imputation": mi["pooled"],
        }
        nobs = {
            "Complete data": int(len(df)),
            "Listwise": int(len(listwise)),
            "Mean": int(len(mean)),
            "Regression": int(regression[self.config.missing_column].notna().sum()),
            "Multiple imputation": int(mi["nobs"]),
        }
        summary = self._run(ModelSummaryAgent(), models=models, nobs=nobs).data

        return Slide(
            title="Comparing strategies",
            blocks=[
                TextBlock(f"Analysis model `{ANALYSIS_FORMULA}` under simulated MAR, against the complete-data benchmark."),
                TableBlock(summary["table"], caption=summary["stars_note"]),
            ],
            notes="Look at the standard errors as much as the point estimates.",
        )

    def _takeaways(self, df: pd.DataFrame) -> Slide:
        return Slide(
            title="Take-aways",
            blocks=[BulletBlock([
                "Ask why data are missing before choosing a method.",
                "Listwise deletion is fine under MCAR, wasteful and often biased otherwise.",
                "Mean imputation distorts variances and correlations; avoid it for inference.",
                "Deterministic regression imputation overstates relationships.",
                "Multiple imputation handles MAR and reports honest uncertainty.",
                "No method fixes MNAR from the data alone: use sensitivity analyses.",
            ])],
        )

    def _references(self, df: pd.DataFrame) -> Slide:
        return Slide(title="References", blocks=[CitationBlock(list(REFERENCES.values()))], kind="references")


def build_deck(data: Optional[pd.DataFrame] = None, **overrides: Any) -> Deck:
    """Build the deck with settings-derived defaults; `overrides` go to DeckConfig."""
    theme = get_theme(overrides.pop("theme")) if overrides.get("theme") else None
    return DeckBuilder(config=DeckConfig.from_settings(**overrides), theme=theme).build(data)
