# core/base_agent.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  Missing Data Deck - Base Agent                                            ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Abstract Base Agent Class                                             ║
║  ✓ Lifecycle Hooks (validate → before → execute → after)                 ║
║  ✓ Uniform Error Capture into AgentResult                                ║
║  ✓ Typed Re-raise via raise_for_status()                                 ║
║  ✓ Safe JSON Serialization                                               ║
╚════════════════════════════════════════════════════════════════════════════╝

Every demonstration in the deck (amputation, diagnosis, deletion, single and
multiple imputation, model tables) is an agent. `run()` never raises: errors
are captured into the result. Callers that must fail loudly call
`result.raise_for_status()`, which re-raises the agent's typed exception.

Usage:
```python
    from core.base_agent import BaseAgent, AgentResult
    from core.exceptions import ImputationError

    class MeanAgent(BaseAgent):
        error_type = ImputationError

        def __init__(self):
            super().__init__(name="mean_imputer", description="Mean imputation")

        def execute(self, data, **kwargs) -> AgentResult:
            result = AgentResult(agent_name=self.name)
            result.data = {"imputed": data.fillna(data.mean())}
            return result

    payload = MeanAgent().run(data=df).raise_for_status().data
```

Dependencies:
    • loguru
    • pydantic
"""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Type
from uuid import uuid4

import numpy as np
import pandas as pd
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from core.exceptions import MissingDeckError

__all__ = [
    "BaseAgent",
    "AgentResult",
    "AgentStatus",
]


AgentStatus = Literal["success", "failed", "partial"]


# ═══════════════════════════════════════════════════════════════════════════
# Agent Result
# ═══════════════════════════════════════════════════════════════════════════

class AgentResult(BaseModel):
    """
    📊 **Agent Execution Result**

    Attributes:
        agent_name: Name of the agent
        status: Execution status (success/failed/partial)
        execution_time: Duration in seconds
        trace_id: Unique trace identifier
        data: Result payload (frames, figures, tables)
        metadata: Additional metadata
        errors: Error messages
        warnings: Warning messages
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    agent_name: str
    status: AgentStatus = Field(default="success")

    # Timing
    execution_time: float = Field(default=0.0)
    timestamp: datetime = Field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    # Tracing
    trace_id: str = Field(default_factory=lambda: uuid4().hex)

    # Payload
    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    _exception: Optional[MissingDeckError] = PrivateAttr(default=None)

    # ───────────────────────────────────────────────────────────────────
    # Status Checks
    # ───────────────────────────────────────────────────────────────────

    def is_success(self) -> bool:
        return self.status == "success"

    def is_failed(self) -> bool:
        return self.status == "failed"

    def is_partial(self) -> bool:
        return self.status == "partial"

    # ───────────────────────────────────────────────────────────────────
    # Mutations
    # ───────────────────────────────────────────────────────────────────

    def add_error(self, error: str) -> None:
        """Add error and mark as failed."""
        self.errors.append(error)
        self.status = "failed"

    def add_warning(self, warning: str) -> None:
        """Add warning and mark as partial if success."""
        self.warnings.append(warning)
        if self.status == "success":
            self.status = "partial"

    def attach_exception(self, exc: MissingDeckError) -> None:
        self._exception = exc

    # ───────────────────────────────────────────────────────────────────
    # Failure Propagation
    # ───────────────────────────────────────────────────────────────────

    def raise_for_status(self) -> "AgentResult":
        """
        🚨 **Raise on Failure**

        Re-raises the captured typed exception of a failed result.
        Successful and partial results are returned unchanged (for chaining).
        """
        if not self.is_failed():
            return self

        if self._exception is not None:
            raise self._exception

        raise MissingDeckError(
            f"Agent '{self.agent_name}' failed",
            details={"errors": list(self.errors)},
        )

    # ───────────────────────────────────────────────────────────────────
    # Serialization
    # ───────────────────────────────────────────────────────────────────

    def to_json(self) -> str:
        """
        Convert to JSON string.

        Handles: numpy, pandas, datetime objects; plotly objects are reduced to their type name.
        """
        def _safe_default(obj: Any) -> Any:
            if isinstance(obj, np.integer):
                return int(obj)
            if isinstance(obj, np.floating):
                return float(obj)
            if isinstance(obj, np.bool_):
                return bool(obj)
            if isinstance(obj, np.ndarray):
                return obj.tolist()
            if isinstance(obj, pd.Timestamp):
                return obj.isoformat()
            if isinstance(obj, pd.Series):
                return obj.tolist()
            if isinstance(obj, pd.DataFrame):
                return json.loads(obj.to_json(orient="records"))
            if isinstance(obj, datetime):
                return obj.isoformat()
            if hasattr(obj, "to_plotly_json"):
                return {"plotly": type(obj).__name__}
            return str(obj)

        return json.dumps(self.model_dump(), default=_safe_default, ensure_ascii=False)


# ═══════════════════════════════════════════════════════════════════════════
# Base Agent
# ═══════════════════════════════════════════════════════════════════════════

class BaseAgent(ABC):
    """
    🤖 **Base Agent Class**

    Lifecycle:
```
        run() → validate_input()
              → before_execute()
              → execute()
              → measure time
              → after_execute()
              → return AgentResult
```

    Subclasses set `error_type` to the exception raised by
    `AgentResult.raise_for_status()` when a non-deck exception escapes
    `execute()`.
    """

    error_type: Type[MissingDeckError] = MissingDeckError

    def __init__(self, name: str, description: str = "", version: str = "1.0"):
        self.name = name
        self.description = description
        self.version = version

        self.logger = logger.bind(agent=name, component="agent", version=version)

        self._result: Optional[AgentResult] = None

    # ───────────────────────────────────────────────────────────────────
    # Abstract Methods
    # ───────────────────────────────────────────────────────────────────

    @abstractmethod
    def execute(self, **kwargs) -> AgentResult:
        """Execute agent logic."""
        raise NotImplementedError

    # ───────────────────────────────────────────────────────────────────
    # Lifecycle Hooks
    # ───────────────────────────────────────────────────────────────────

    def validate_input(self, **kwargs) -> bool:
        """Override to add custom validation; raise on invalid input."""
        return True

    def before_execute(self, **kwargs) -> None:
        self.logger.debug(f"[{self.name}] Starting execution")

    def after_execute(self, result: AgentResult) -> None:
        self.logger.info(
            f"[{self.name}] Execution completed: "
            f"status={result.status}, time={result.execution_time:.3f}s"
        )

    # ───────────────────────────────────────────────────────────────────
    # Main Execution
    # ───────────────────────────────────────────────────────────────────

    def run(self, **kwargs) -> AgentResult:
        """
        🚀 **Execute Agent**

        Returns an AgentResult always, even on failure.

        Example:
```python
            result = agent.run(data=df)
            if result.is_failed():
                print(result.errors)
```
        """
        start_perf = time.perf_counter()
        started_at = datetime.now()

        try:
            self.validate_input(**kwargs)
            self.before_execute(**kwargs)

            result = self.execute(**kwargs)

            if not isinstance(result, AgentResult):
                raise TypeError(
                    f"Invalid result type returned by {self.name}: "
                    f"expected AgentResult, got {type(result).__name__}"
                )

            result.execution_time = time.perf_counter() - start_perf
            result.started_at = started_at
            result.finished_at = datetime.now()

            self._result = result
            self.after_execute(result)
            return result

        except Exception as e:
            self.logger.opt(exception=e).error(f"[{self.name}] Execution failed: {e}")

            failed = AgentResult(
                agent_name=self.name,
                status="failed",
                execution_time=time.perf_counter() - start_perf,
                started_at=started_at,
                finished_at=datetime.now(),
            )
            failed.add_error(f"{type(e).__name__}: {e}")
            failed.attach_exception(
                self.error_type.from_exc(e, context={"agent": self.name})
            )

            self._result = failed
            self.after_execute(failed)
            return failed

    # ───────────────────────────────────────────────────────────────────
    # Utilities
    # ───────────────────────────────────────────────────────────────────

    def get_last_result(self) -> Optional[AgentResult]:
        return self._result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', version='{self.version}')"
