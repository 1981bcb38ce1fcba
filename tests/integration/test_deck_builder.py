"""
Missing Data Deck - Integration Tests for the full deck build
"""

import pandas as pd
import pytest

from agents.presentation.deck_builder import DeckBuilder, DeckConfig, build_deck
from agents.presentation.slides import FigureBlock, TableBlock
from core.data_loader import generate_attrition_sample
from core.exceptions import DeckBuildError

EXPECTED_TITLES = [
    "Missing Data",
    "Why missing data matters",
    "The attrition dataset",
    "Missingness mechanisms",
    "MCAR: missing completely at random",
    "MAR: missing at random",
    "MNAR: missing not at random",
    "Diagnosing the mechanism",
    "Listwise deletion",
    "Pairwise deletion",
    "Mean imputation",
    "Regression imputation",
    "Multiple imputation and Rubin's rules",
    "Multiple imputation in practice",
    "Comparing strategies",
    "Take-aways",
    "References",
]


@pytest.fixture
def fast_config():
    return DeckConfig(title="Missing Data", subtitle="Attrition", n_imputations=2, random_state=11)


@pytest.fixture(scope="module")
def built():
    raw = generate_attrition_sample(n_rows=400, random_state=7)
    before = raw.copy()
    builder = DeckBuilder(config=DeckConfig(title="Missing Data", n_imputations=2, random_state=11))
    deck = builder.build(raw)
    return {"deck": deck, "builder": builder, "raw": raw, "before": before}


@pytest.mark.slow
@pytest.mark.integration
class TestDeckBuild:

    def test_slide_order(self, built):
        assert built["deck"].titles() == EXPECTED_TITLES

    def test_slide_kinds(self, built):
        slides = built["deck"].slides
        assert slides[0].kind == "title"
        assert slides[-1].kind == "references"

    def test_source_frame_unchanged(self, built):
        pd.testing.assert_frame_equal(built["raw"], built["before"])

    def test_demonstrations_carry_figures_and_tables(self, built):
        by_title = {s.title: s for s in built["deck"]}
        for title in ("MCAR: missing completely at random", "Mean imputation", "Multiple imputation in practice"):
            assert by_title[title].figures(), title
        comparison = by_title["Comparing strategies"].tables()[0].frame
        assert list(comparison.columns) == [
            "term", "Complete data", "Listwise", "Mean", "Regression", "Multiple imputation"
        ]
        assert comparison.iloc[-1]["term"] == "N"

    def test_mnar_slide_warns_about_diagnosis(self, built):
        mnar = next(s for s in built["deck"] if s.title.startswith("MNAR"))
        assert "MNAR" in mnar.notes

    def test_timings_recorded(self, built):
        timings = built["builder"].timings_ms
        assert "_total" in timings
        assert len(timings) == len(EXPECTED_TITLES) + 1

    def test_figure_blocks_are_plotly(self, built):
        blocks = [b for s in built["deck"] for b in s.blocks if isinstance(b, FigureBlock)]
        assert blocks
        assert all(hasattr(b.figure, "to_html") for b in blocks)


@pytest.mark.integration
class TestDeckBuildFailures:

    def test_unknown_missing_column(self, raw_attrition):
        config = DeckConfig(missing_column="salary", n_imputations=2)
        with pytest.raises(DeckBuildError):
            DeckBuilder(config=config).build(raw_attrition)

    def test_rejected_data(self):
        with pytest.raises(DeckBuildError) as exc_info:
            DeckBuilder(config=DeckConfig(n_imputations=2)).build(pd.DataFrame({"a": [1, 2]}))
        assert exc_info.value.context["slide"] == "dataset"

    @pytest.mark.slow
    def test_failing_demonstration_names_slide(self, raw_attrition):
        config = DeckConfig(n_imputations=1, random_state=3)
        with pytest.raises(DeckBuildError) as exc_info:
            DeckBuilder(config=config).build(raw_attrition)
        assert exc_info.value.context["slide"] == "multiple"

    def test_build_deck_overrides(self, raw_attrition):
        with pytest.raises(DeckBuildError):
            build_deck(raw_attrition, missing_column="salary")


def test_dataset_slide_preview(fast_config, attrition_df):
    slide = DeckBuilder(config=fast_config)._dataset(attrition_df)
    table = slide.tables()[0]
    assert isinstance(table, TableBlock)
    assert len(table.frame) == fast_config.preview_rows
    assert len(slide.figures()) == 2


@pytest.mark.integration
class TestIndependentSteps:

    def test_listwise_runs_alone(self, fast_config, attrition_df):
        slide = DeckBuilder(config=fast_config)._listwise(attrition_df.copy())
        assert slide.title == "Listwise deletion"
        assert slide.figures()

    def test_regression_runs_alone(self, fast_config, attrition_df):
        slide = DeckBuilder(config=fast_config)._regression(attrition_df.copy())
        assert len(slide.figures()) == 2

    def test_mar_frame_repeatable(self, fast_config, attrition_df):
        builder = DeckBuilder(config=fast_config)
        first = builder._mar_frame(attrition_df.copy())
        second = builder._mar_frame(attrition_df.copy())
        pd.testing.assert_frame_equal(first, second)
        assert first[fast_config.missing_column].isna().any()

    @pytest.mark.slow
    def test_comparison_runs_alone(self, fast_config, attrition_df):
        slide = DeckBuilder(config=fast_config)._comparison(attrition_df.copy())
        table = slide.tables()[0].frame
        assert "Multiple imputation" in table.columns
        assert table.iloc[-1]["term"] == "N"

    @pytest.mark.slow
    def test_step_order_does_not_matter(self, fast_config, attrition_df):
        builder = DeckBuilder(config=fast_config)
        alone = builder._multiple(attrition_df.copy()).tables()[0].frame
        builder._mar(attrition_df.copy())
        builder._listwise(attrition_df.copy())
        again = builder._multiple(attrition_df.copy()).tables()[0].frame
        pd.testing.assert_frame_equal(alone, again)
