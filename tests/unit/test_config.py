"""
Missing Data Deck - Unit Tests for settings, themes and package exports
"""

import pytest
from pydantic import ValidationError

import agents
from config import get_config_info, use_test_settings
from config.settings import SUPPORTED_DECK_FORMATS, Settings
from config.theme import DeckTheme, available_themes, get_theme


class TestSettings:

    def test_defaults(self, test_settings):
        assert test_settings.TEST_MODE is True
        assert test_settings.MI_N_IMPUTATIONS >= 2
        assert set(test_settings.get_deck_formats()) <= set(SUPPORTED_DECK_FORMATS)

    def test_formats_deduplicated(self):
        s = Settings(DECK_FORMATS="pdf, HTML,pdf")
        assert s.get_deck_formats() == ["pdf", "html"]

    @pytest.mark.parametrize("overrides", [
        {"DECK_FORMATS": "html,pptx"},
        {"MI_N_IMPUTATIONS": 1},
        {"MISSING_RATE": 1.0},
        {"ALPHA": 0.0},
        {"LOG_LEVEL": "LOUD"},
        {"MAR_DRIVER": "monthly_income", "MISSING_TARGET": "monthly_income"},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_use_test_settings(self, test_settings):
        original = test_settings.DECK_TITLE
        try:
            use_test_settings(DECK_TITLE="Other")
            assert test_settings.DECK_TITLE == "Other"
        finally:
            use_test_settings(DECK_TITLE=original)

        with pytest.raises(AttributeError):
            use_test_settings(NOT_A_SETTING=1)

    def test_only_used_switches_declared(self):
        assert "DEBUG" not in Settings.model_fields
        assert "is_production" not in Settings.model_computed_fields
        assert not hasattr(Settings(DEBUG=True), "DEBUG")

    def test_config_info(self):
        info = get_config_info()
        assert info["formats"]
        assert "n_imputations" in info


class TestTheme:

    def test_presets(self):
        assert "violet" in available_themes()
        theme = get_theme("ocean")
        assert theme.name == "ocean"
        assert theme.primary == "#0ea5e9"

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            get_theme("neon")

    def test_invalid_override_ignored(self):
        theme = get_theme("violet", overrides={"primary": "red", "secondary": "#123456"})
        assert theme.primary == DeckTheme().primary
        assert theme.secondary == "#123456"

    def test_css_vars(self):
        css = DeckTheme().css_vars()
        assert css["--deck-primary"] == DeckTheme().primary
        assert all(k.startswith("--deck-") for k in css)


class TestAgentExports:

    def test_lazy_resolution(self):
        from agents.imputation.multiple import pool_rubin

        assert agents.pool_rubin is pool_rubin
        assert "DeckBuilder" in dir(agents)

    def test_unknown_attribute(self):
        with pytest.raises(AttributeError):
            agents.NotAnAgent

    def test_list_agents(self):
        assert set(agents.list_agents("imputation")) == {
            "DeletionAgent", "SingleImputationAgent", "MultipleImputer", "pool_rubin"
        }
        assert len(agents.list_agents()) == len(agents.__all__)
