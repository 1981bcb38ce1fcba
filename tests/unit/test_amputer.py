"""
Missing Data Deck - Unit Tests for missingness amputation
"""

import numpy as np
import pandas as pd
import pytest

import agents.missingness.amputer as amputer_module
from agents.missingness.amputer import MissingnessAmputer, ampute, calibrated_probabilities
from core.exceptions import AmputationError, DataValidationError


class TestCalibratedProbabilities:
    """Tests for the logistic calibration"""

    def test_mean_matches_rate(self):
        z = np.random.default_rng(0).normal(size=2000)
        probs = calibrated_probabilities(z, 0.3)
        assert probs.mean() == pytest.approx(0.3, abs=1e-6)

    def test_monotone_in_driver(self):
        z = np.linspace(-2, 2, 50)
        probs = calibrated_probabilities(z, 0.25)
        assert np.all(np.diff(probs) > 0)

    def test_zero_rate(self):
        assert calibrated_probabilities(np.array([0.1, 0.2]), 0.0).sum() == 0


class TestAmpute:
    """Tests for ampute()"""

    @pytest.mark.parametrize("mechanism", ["mcar", "mar", "mnar"])
    def test_rate_close_to_target(self, attrition_df, mechanism):
        out = ampute(attrition_df, "monthly_income", mechanism, rate=0.3, random_state=1)
        assert out["mechanism"] == mechanism
        assert out["missing_rate"] == pytest.approx(0.3, abs=0.07)
        assert out["data"]["monthly_income"].isna().sum() == out["n_missing"]

    def test_source_not_mutated(self, attrition_df):
        before = attrition_df.copy()
        ampute(attrition_df, "monthly_income", "mar", rate=0.4, random_state=2)
        pd.testing.assert_frame_equal(attrition_df, before)

    def test_only_target_column_touched(self, attrition_df):
        out = ampute(attrition_df, "monthly_income", "mcar", rate=0.5, random_state=3)["data"]
        others = [c for c in attrition_df.columns if c != "monthly_income"]
        pd.testing.assert_frame_equal(out[others], attrition_df[others])

    def test_reproducible(self, attrition_df):
        a = ampute(attrition_df, "monthly_income", "mcar", rate=0.3, random_state=9)["mask"]
        b = ampute(attrition_df, "monthly_income", "mcar", rate=0.3, random_state=9)["mask"]
        pd.testing.assert_series_equal(a, b)

    def test_mar_depends_on_driver(self, attrition_df):
        out = ampute(attrition_df, "monthly_income", "mar", rate=0.3, driver="total_working_years", random_state=4)
        mask = out["mask"]
        driver = attrition_df["total_working_years"]
        assert driver[mask].mean() > driver[~mask].mean()
        assert out["driver"] == "total_working_years"

    def test_mnar_removes_larger_values(self, attrition_df):
        out = ampute(attrition_df, "monthly_income", "mnar", rate=0.3, random_state=5)
        mask = out["mask"]
        income = attrition_df["monthly_income"]
        assert income[mask].mean() > income[~mask].mean()

    def test_mcar_independent_of_covariates(self, attrition_df):
        big = pd.concat([attrition_df] * 10, ignore_index=True)
        mask = ampute(big, "monthly_income", "mcar", rate=0.3, random_state=6)["mask"]
        twy = big["total_working_years"]
        assert abs(twy[mask].mean() - twy[~mask].mean()) < 0.8

    def test_zero_rate_removes_nothing(self, attrition_df):
        out = ampute(attrition_df, "monthly_income", "mcar", rate=0.0)
        assert out["n_missing"] == 0

    def test_unknown_mechanism(self, attrition_df):
        with pytest.raises(AmputationError):
            ampute(attrition_df, "monthly_income", "random")

    @pytest.mark.parametrize("rate", [-0.1, 1.0, 1.5])
    def test_invalid_rate(self, attrition_df, rate):
        with pytest.raises(AmputationError):
            ampute(attrition_df, "monthly_income", "mcar", rate=rate)

    def test_unknown_column(self, attrition_df):
        with pytest.raises(DataValidationError):
            ampute(attrition_df, "salary", "mcar")

    def test_driver_equal_to_column(self, attrition_df):
        with pytest.raises(AmputationError):
            ampute(attrition_df, "monthly_income", "mar", driver="monthly_income")

    def test_mar_driver_defaults_to_setting(self, attrition_df, test_settings):
        out = ampute(attrition_df, "monthly_income", "mar", rate=0.3, random_state=4)
        assert out["driver"] == test_settings.MAR_DRIVER
        explicit = ampute(attrition_df, "monthly_income", "mar", rate=0.3, driver=test_settings.MAR_DRIVER, random_state=4)
        pd.testing.assert_series_equal(out["mask"], explicit["mask"])


class TestMissingnessAmputer:
    """Tests for the agent wrapper"""

    def test_run_success(self, attrition_df):
        result = MissingnessAmputer().run(data=attrition_df, column="monthly_income", mechanism="mar", rate=0.2, random_state=1)
        assert result.is_success()
        assert result.data["n_missing"] > 0

    def test_run_failure_is_captured(self, attrition_df):
        result = MissingnessAmputer().run(data=attrition_df, column="monthly_income", mechanism="bogus")
        assert result.is_failed()
        assert result.errors
        with pytest.raises(AmputationError):
            result.raise_for_status()

    def test_zero_removed_warns(self, attrition_df, monkeypatch):
        untouched = ampute(attrition_df, "monthly_income", "mcar", rate=0.0)
        monkeypatch.setattr(amputer_module, "ampute", lambda *args, **kwargs: untouched)
        result = MissingnessAmputer().run(data=attrition_df, column="monthly_income", mechanism="mcar", rate=0.2, random_state=0)
        assert result.data["n_missing"] == 0
        assert result.is_partial()
        assert result.warnings == ["No values removed from 'monthly_income' (rate=0.2)"]

    def test_zero_rate_does_not_warn(self, attrition_df):
        result = MissingnessAmputer().run(data=attrition_df, column="monthly_income", mechanism="mcar", rate=0.0)
        assert result.is_success()
        assert not result.warnings
