"""
Missing Data Deck - Unit Tests for the agent framework and exception helpers
"""

import json

import pandas as pd
import pytest

from core.base_agent import AgentResult, BaseAgent
from core.exceptions import (
    DataLoadError,
    ErrorCode,
    ImputationError,
    MissingDeckError,
    RenderError,
    exception_context,
    handle_exception,
    wrap_exceptions,
)


class _EchoAgent(BaseAgent):
    error_type = ImputationError

    def __init__(self):
        super().__init__(name="EchoAgent")

    def execute(self, value=None, **kwargs) -> AgentResult:
        if value is None:
            raise ValueError("value is required")
        if value == "deck":
            raise DataLoadError("no file")
        result = AgentResult(agent_name=self.name)
        result.data = {"value": value}
        if value == "warn":
            result.add_warning("suspicious value")
        return result


class TestExceptions:

    def test_default_codes(self):
        assert ImputationError("x").error_code is ErrorCode.IMPUTATION
        assert RenderError("x", error_code=ErrorCode.CONFIG).error_code is ErrorCode.CONFIG

    def test_str_and_dict(self):
        err = DataLoadError("File not found", details={"path": "a.csv"}, context={"step": "load"})
        text = str(err)
        assert text.startswith("data_load_error: File not found")
        assert "a.csv" in text
        payload = err.to_dict()["error"]
        assert payload["type"] == "DataLoadError"
        assert payload["details"] == {"path": "a.csv"}

    def test_from_exc(self):
        original = DataLoadError("kept")
        assert MissingDeckError.from_exc(original) is original
        wrapped = ImputationError.from_exc(KeyError("k"), context={"agent": "A"})
        assert isinstance(wrapped, ImputationError)
        assert isinstance(wrapped.cause, KeyError)

    def test_wrap_exceptions(self):
        @wrap_exceptions(to=RenderError, message="render failed", log=False)
        def boom():
            raise OSError("disk full")

        with pytest.raises(RenderError) as exc_info:
            boom()
        assert exc_info.value.details["original_error"] == "disk full"
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_exception_context_passes_deck_errors(self):
        with pytest.raises(DataLoadError):
            with exception_context(to=RenderError, log=False):
                raise DataLoadError("already typed")

    def test_handle_exception(self):
        assert handle_exception(DataLoadError("nope"), "Deck build").startswith("❌ Error: nope")
        assert "Unexpected error" in handle_exception(ValueError("x"))


class TestBaseAgent:

    def test_success(self):
        result = _EchoAgent().run(value=3)
        assert result.is_success()
        assert result.raise_for_status() is result
        assert result.data["value"] == 3
        assert result.execution_time >= 0

    def test_partial_is_not_raised(self):
        result = _EchoAgent().run(value="warn")
        assert result.is_partial()
        assert result.raise_for_status() is result

    def test_foreign_exception_typed_by_agent(self):
        result = _EchoAgent().run()
        assert result.is_failed()
        assert result.errors == ["ValueError: value is required"]
        with pytest.raises(ImputationError):
            result.raise_for_status()

    def test_deck_exception_kept(self):
        with pytest.raises(DataLoadError):
            _EchoAgent().run(value="deck").raise_for_status()

    def test_last_result(self):
        agent = _EchoAgent()
        result = agent.run(value=1)
        assert agent.get_last_result() is result

    def test_to_json_handles_frames(self):
        result = AgentResult(agent_name="X", data={"frame": pd.DataFrame({"a": [1]})})
        payload = json.loads(result.to_json())
        assert payload["agent_name"] == "X"
