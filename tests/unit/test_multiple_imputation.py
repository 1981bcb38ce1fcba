"""
Missing Data Deck - Unit Tests for multiple imputation and Rubin's rules
"""

import numpy as np
import pandas as pd
import pytest

from agents.imputation.multiple import MultipleImputationConfig, MultipleImputer, pool_rubin
from agents.missingness.amputer import ampute
from core.exceptions import ImputationError


class TestPoolRubin:
    """Rubin's rules on hand-computed inputs"""

    @pytest.fixture
    def two_imputations(self):
        estimates = pd.DataFrame({"a": [1.0, 3.0], "b": [10.0, 10.0]})
        variances = pd.DataFrame({"a": [0.5, 1.5], "b": [4.0, 4.0]})
        return estimates, variances

    def test_point_estimate_and_variance(self, two_imputations):
        pooled = pool_rubin(*two_imputations).set_index("term")
        a = pooled.loc["a"]
        assert a["estimate"] == pytest.approx(2.0)
        assert a["within"] == pytest.approx(1.0)
        assert a["between"] == pytest.approx(2.0)
        assert a["total"] == pytest.approx(4.0)
        assert a["std_error"] == pytest.approx(2.0)
        assert a["riv"] == pytest.approx(3.0)
        assert a["fmi"] == pytest.approx(0.75)

    def test_large_sample_df(self, two_imputations):
        pooled = pool_rubin(*two_imputations).set_index("term")
        assert pooled.loc["a", "df"] == pytest.approx(1.0 / 0.75 ** 2)

    def test_barnard_rubin_df(self, two_imputations):
        pooled = pool_rubin(*two_imputations, df_complete=100.0).set_index("term")
        nu_old = 1.0 / 0.75 ** 2
        nu_obs = 101.0 / 103.0 * 100.0 * 0.25
        assert pooled.loc["a", "df"] == pytest.approx(nu_old * nu_obs / (nu_old + nu_obs))

    def test_no_between_variance(self, two_imputations):
        pooled = pool_rubin(*two_imputations, df_complete=100.0).set_index("term")
        b = pooled.loc["b"]
        assert b["between"] == 0
        assert b["fmi"] == 0
        assert b["std_error"] == pytest.approx(2.0)
        assert b["df"] == pytest.approx(101.0 / 103.0 * 100.0)

    def test_confidence_interval_contains_estimate(self, two_imputations):
        pooled = pool_rubin(*two_imputations, df_complete=50.0)
        assert (pooled["conf_low"] < pooled["estimate"]).all()
        assert (pooled["estimate"] < pooled["conf_high"]).all()
        assert pooled["p_value"].between(0, 1).all()

    def test_single_imputation_rejected(self):
        with pytest.raises(ImputationError):
            pool_rubin(pd.DataFrame({"a": [1.0]}), pd.DataFrame({"a": [1.0]}))

    def test_shape_mismatch(self, two_imputations):
        estimates, variances = two_imputations
        with pytest.raises(ImputationError):
            pool_rubin(estimates, variances[["b", "a"]])


@pytest.mark.slow
class TestMultipleImputer:
    """End-to-end MICE runs"""

    @pytest.fixture
    def mar_frame(self, analysis_df):
        return ampute(analysis_df, "monthly_income", "mar", rate=0.3, random_state=2)["data"]

    @pytest.fixture
    def imputer(self):
        return MultipleImputer(MultipleImputationConfig(n_imputations=3, n_burnin=2, n_skip=1, k_pmm=5))

    def test_produces_m_complete_datasets(self, imputer, mar_frame):
        data = imputer.run(data=mar_frame, random_state=1).raise_for_status().data
        assert data["n_imputations"] == 3
        assert len(data["imputations"]) == 3
        for completed in data["imputations"]:
            assert completed.isna().sum().sum() == 0
            assert list(completed.index) == list(mar_frame.index)

    def test_observed_values_kept(self, imputer, mar_frame):
        data = imputer.run(data=mar_frame, random_state=1).data
        observed = mar_frame["monthly_income"].notna()
        for completed in data["imputations"]:
            np.testing.assert_allclose(
                completed.loc[observed, "monthly_income"].to_numpy(),
                mar_frame.loc[observed, "monthly_income"].to_numpy(),
            )

    def test_pmm_imputes_observed_donor_values(self, imputer, mar_frame):
        data = imputer.run(data=mar_frame, random_state=1).data
        donors = set(mar_frame["monthly_income"].dropna())
        missing = mar_frame["monthly_income"].isna()
        for completed in data["imputations"]:
            assert set(completed.loc[missing, "monthly_income"]) <= donors

    def test_pooled_table(self, imputer, mar_frame):
        pooled = imputer.run(data=mar_frame, random_state=1).data["pooled"]
        assert list(pooled["term"]) == ["Intercept", "total_working_years", "age"]
        assert pooled["fmi"].between(0, 1).all()
        assert (pooled["std_error"] > 0).all()

    def test_source_not_mutated(self, imputer, mar_frame):
        before = mar_frame.copy()
        imputer.run(data=mar_frame, random_state=1)
        pd.testing.assert_frame_equal(mar_frame, before)

    def test_reproducible(self, imputer, mar_frame):
        a = imputer.run(data=mar_frame, random_state=5).data["pooled"]
        b = imputer.run(data=mar_frame, random_state=5).data["pooled"]
        pd.testing.assert_frame_equal(a, b)

    def test_same_seed_same_imputed_cells(self, imputer, mar_frame):
        frame = mar_frame.astype(float)
        first = imputer.impute(frame, m=2, n_burnin=2, k_pmm=5, random_state=5)
        np.random.seed(0)
        second = imputer.impute(frame, m=2, n_burnin=2, k_pmm=5, random_state=5)
        for a, b in zip(first, second):
            pd.testing.assert_frame_equal(a, b)


class TestMultipleImputerValidation:
    """Input validation"""

    def test_non_numeric_column(self, attrition_df):
        result = MultipleImputer().run(data=attrition_df)
        assert result.is_failed()
        with pytest.raises(ImputationError):
            result.raise_for_status()

    def test_needs_two_imputations(self, analysis_df):
        assert MultipleImputer().run(data=analysis_df, n_imputations=1).is_failed()

    def test_all_missing_column(self, analysis_df):
        df = analysis_df.copy()
        df["age"] = np.nan
        assert MultipleImputer().run(data=df).is_failed()
