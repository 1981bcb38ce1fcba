"""
Missing Data Deck - Unit Tests for the attrition loader
"""

import pandas as pd
import pytest

from config.constants import JOB_SATISFACTION_LEVELS, REQUIRED_COLUMNS
from core.data_loader import (
    AttritionDataLoader,
    clean_attrition,
    generate_attrition_sample,
    to_snake_case,
)
from core.exceptions import DataLoadError, DataValidationError


class TestToSnakeCase:
    """Tests for column renaming"""

    def test_camel_case(self):
        assert to_snake_case("TotalWorkingYears") == "total_working_years"
        assert to_snake_case("MonthlyIncome") == "monthly_income"

    def test_snake_case_unchanged(self):
        assert to_snake_case("years_at_company") == "years_at_company"


class TestCleanAttrition:
    """Tests for clean_attrition"""

    def test_relabels_and_orders_levels(self, raw_attrition):
        df = clean_attrition(raw_attrition)
        assert isinstance(df["job_satisfaction"].dtype, pd.CategoricalDtype)
        assert list(df["job_satisfaction"].cat.categories) == JOB_SATISFACTION_LEVELS
        assert df["job_satisfaction"].cat.ordered
        assert set(df["attrition"].dropna().unique()) <= {"No", "Yes"}

    def test_required_columns_present(self, raw_attrition):
        df = clean_attrition(raw_attrition)
        for col in REQUIRED_COLUMNS:
            assert col in df.columns

    def test_does_not_mutate_input(self, raw_attrition):
        before = raw_attrition.copy()
        clean_attrition(raw_attrition)
        pd.testing.assert_frame_equal(raw_attrition, before)

    def test_idempotent(self, attrition_df):
        again = clean_attrition(attrition_df)
        pd.testing.assert_frame_equal(again, attrition_df)

    def test_missing_column_raises(self, raw_attrition):
        with pytest.raises(DataValidationError):
            clean_attrition(raw_attrition.drop(columns=["MonthlyIncome"]))

    def test_unknown_level_raises(self, raw_attrition):
        bad = raw_attrition.copy()
        bad["JobSatisfaction"] = bad["JobSatisfaction"].astype(object)
        bad.loc[0, "JobSatisfaction"] = "Ecstatic"
        with pytest.raises(DataValidationError):
            clean_attrition(bad)

    def test_accepts_underscore_labels(self, raw_attrition):
        labels = {1: "Low", 2: "Medium", 3: "High", 4: "Very_High"}
        styled = raw_attrition.copy()
        styled["JobSatisfaction"] = styled["JobSatisfaction"].map(labels)
        df = clean_attrition(styled)
        expected = clean_attrition(raw_attrition)["job_satisfaction"]
        pd.testing.assert_series_equal(df["job_satisfaction"], expected)
        assert "Very High" in set(df["job_satisfaction"].dropna())

    def test_not_a_dataframe(self):
        with pytest.raises(DataValidationError):
            clean_attrition([1, 2, 3])


class TestSyntheticSample:
    """Tests for the synthetic fallback"""

    def test_invariants(self):
        raw = generate_attrition_sample(n_rows=500, random_state=3)
        assert len(raw) == 500
        assert (raw["Age"] >= 18 + raw["TotalWorkingYears"]).all()
        assert (raw["YearsAtCompany"] <= raw["TotalWorkingYears"]).all()
        assert raw["JobSatisfaction"].isin([1, 2, 3, 4]).all()

    def test_deterministic(self):
        a = generate_attrition_sample(n_rows=50, random_state=11)
        b = generate_attrition_sample(n_rows=50, random_state=11)
        pd.testing.assert_frame_equal(a, b)

    def test_income_rises_with_job_level(self):
        raw = generate_attrition_sample(n_rows=1000, random_state=5)
        means = raw.groupby("JobLevel")["MonthlyIncome"].mean()
        assert means.is_monotonic_increasing


class TestAttritionDataLoader:
    """Tests for AttritionDataLoader"""

    def test_load_csv(self, attrition_csv):
        loader = AttritionDataLoader()
        df = loader.load(attrition_csv)
        assert loader.source == "file"
        assert len(df) == 400
        assert "monthly_income" in df.columns

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(DataLoadError):
            AttritionDataLoader().load(tmp_path / "nope.csv")

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "data.xlsx"
        path.write_bytes(b"not really excel")
        with pytest.raises(DataLoadError):
            AttritionDataLoader().load(path)
