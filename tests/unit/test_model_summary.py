"""
Missing Data Deck - Unit Tests for model fitting and comparison tables
"""

import pandas as pd
import pytest

from agents.modeling.model_summary import (
    STARS_NOTE,
    TIDY_COLUMNS,
    ModelSummaryAgent,
    coefficient_table,
    compare_models,
    fit_ols,
    significance_stars,
)
from core.exceptions import DataValidationError, ModelFitError


class TestSignificanceStars:

    @pytest.mark.parametrize("p, stars", [
        (0.0001, "***"),
        (0.005, "**"),
        (0.03, "*"),
        (0.07, "+"),
        (0.5, ""),
    ])
    def test_thresholds(self, p, stars):
        assert significance_stars(p) == stars


class TestFitOls:

    def test_drops_missing_rows(self, linear_df):
        fit = fit_ols(linear_df, "y ~ x")
        assert int(fit.nobs) == 56
        assert fit.params["x"] == pytest.approx(3.0, abs=0.1)

    def test_bad_formula(self, linear_df):
        with pytest.raises(ModelFitError):
            fit_ols(linear_df, "y ~ not_a_column")

    def test_coefficient_table_layout(self, linear_df):
        tidy = coefficient_table(fit_ols(linear_df, "y ~ x"))
        assert list(tidy.columns) == TIDY_COLUMNS
        assert list(tidy["term"]) == ["Intercept", "x"]
        assert (tidy["conf_low"] < tidy["conf_high"]).all()


class TestCompareModels:

    @pytest.fixture
    def tidy_tables(self):
        a = pd.DataFrame({
            "term": ["Intercept", "x"],
            "estimate": [1.234, 2.0],
            "std_error": [0.5, 0.1],
            "p_value": [0.2, 0.0001],
        })
        b = pd.DataFrame({
            "term": ["Intercept", "z"],
            "estimate": [1.0, -3.0],
            "std_error": [0.25, 1.0],
            "p_value": [0.04, 0.003],
        })
        return {"A": a, "B": b}

    def test_layout(self, tidy_tables):
        table = compare_models(tidy_tables, nobs={"A": 1470, "B": 1000})
        assert list(table.columns) == ["term", "A", "B"]
        assert list(table["term"]) == ["Intercept", "x", "z", "N"]

    def test_cells(self, tidy_tables):
        table = compare_models(tidy_tables, nobs={"A": 1470, "B": 1000}).set_index("term")
        assert table.loc["x", "A"] == "2.00*** (0.10)"
        assert table.loc["Intercept", "A"] == "1.23 (0.50)"
        assert table.loc["x", "B"] == ""
        assert table.loc["N", "A"] == "1,470"

    def test_missing_nobs_blank(self, tidy_tables):
        table = compare_models(tidy_tables).set_index("term")
        assert table.loc["N", "B"] == ""

    def test_empty(self):
        with pytest.raises(DataValidationError):
            compare_models({})

    def test_missing_columns(self):
        with pytest.raises(DataValidationError):
            compare_models({"A": pd.DataFrame({"term": ["x"]})})


class TestModelSummaryAgent:

    def test_accepts_fitted_results(self, linear_df):
        data = ModelSummaryAgent().run(models={"OLS": fit_ols(linear_df, "y ~ x")}).raise_for_status().data
        assert data["nobs"]["OLS"] == 56
        assert data["stars_note"] == STARS_NOTE
        assert data["table"].iloc[-1]["OLS"] == "56"
