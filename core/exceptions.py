# core/exceptions.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  Missing Data Deck - Exceptions                                            ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Centralized Exception Hierarchy                                       ║
║  ✓ Error Code & Severity System                                          ║
║  ✓ Context & Details Tracking                                            ║
║  ✓ Decorator & Context Manager                                           ║
║  ✓ Safe Execution Wrappers                                               ║
╚════════════════════════════════════════════════════════════════════════════╝

Architecture:
```
    MissingDeckError (Base)
    ├── ErrorCode (taxonomy)
    ├── ErrorSeverity (info/warning/error/critical)
    └── Context & Details

    Specific Exceptions:
    ├── DataLoadError
    ├── DataValidationError
    ├── AmputationError
    ├── ImputationError
    ├── ModelFitError
    ├── DeckBuildError
    ├── RenderError
    └── ConfigurationError

    Helpers:
    ├── handle_exception()
    ├── wrap_exceptions() decorator
    └── exception_context() manager
```

Every build-time failure surfaces as one of these types; the CLI maps them
to a non-zero exit code.

Usage:
```python
    from core.exceptions import ImputationError, exception_context

    with exception_context(to=ImputationError, message="MICE failed"):
        imputer.update_all(10)
```

Dependencies:
    • loguru
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from functools import wraps
from typing import Any, Callable, Dict, Iterator, Optional, Type

from loguru import logger

__all__ = [
    # Enums
    "ErrorCode",
    "ErrorSeverity",
    # Base Exception
    "MissingDeckError",
    # Specific Exceptions
    "DataLoadError",
    "DataValidationError",
    "AmputationError",
    "ImputationError",
    "ModelFitError",
    "DeckBuildError",
    "RenderError",
    "ConfigurationError",
    # Helpers
    "handle_exception",
    "wrap_exceptions",
    "exception_context",
]


# ═══════════════════════════════════════════════════════════════════════════
# Error Taxonomy
# ═══════════════════════════════════════════════════════════════════════════

class ErrorSeverity(str, Enum):
    """🚨 **Error Severity Levels**"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCode(str, Enum):
    """🏷️ **Error Code Taxonomy**"""
    UNKNOWN = "unknown_error"
    DATA_LOAD = "data_load_error"
    DATA_VALIDATION = "data_validation_error"
    AMPUTATION = "amputation_error"
    IMPUTATION = "imputation_error"
    MODEL_FIT = "model_fit_error"
    DECK_BUILD = "deck_build_error"
    RENDER = "render_error"
    CONFIG = "configuration_error"


# ═══════════════════════════════════════════════════════════════════════════
# Base Exception
# ═══════════════════════════════════════════════════════════════════════════

class MissingDeckError(Exception):
    """
    🎯 **Base Missing Data Deck Exception**

    Carries an error code, severity, free-form details, execution context
    and the original cause when wrapping another exception.

    Subclasses declare their own `default_code`; an explicit `error_code`
    argument always wins.

    Usage:
```python
        raise MissingDeckError(
            "Operation failed",
            details={"column": "monthly_income"},
            severity=ErrorSeverity.ERROR,
        )
```
    """

    default_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        error_code: Optional[ErrorCode] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}
        self.error_code: ErrorCode = error_code or self.default_code
        self.severity: ErrorSeverity = severity
        self.context: Dict[str, Any] = context or {}
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"{self.error_code.value}: {self.message}"]

        if self.details:
            parts.append(f"Details: {self.details}")

        if self.context:
            parts.append(f"Context: {self.context}")

        if self.cause:
            parts.append(f"Cause: {type(self.cause).__name__}: {self.cause}")

        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "type": type(self).__name__,
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details,
                "context": self.context,
                "severity": self.severity.value,
                "cause": str(self.cause) if self.cause else None,
            }
        }

    @classmethod
    def from_exc(
        cls,
        exc: BaseException,
        *,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR
    ) -> "MissingDeckError":
        """Wrap an arbitrary exception; deck exceptions are returned unchanged."""
        if isinstance(exc, MissingDeckError):
            return exc

        return cls(
            message or str(exc) or "An unexpected error occurred",
            details=details,
            severity=severity,
            context=context,
            cause=exc,
        )


# ═══════════════════════════════════════════════════════════════════════════
# Specific Exception Classes
# ═══════════════════════════════════════════════════════════════════════════

class DataLoadError(MissingDeckError):
    """❌ Dataset could not be read."""
    default_code = ErrorCode.DATA_LOAD


class DataValidationError(MissingDeckError):
    """⚠️ Dataset or argument failed validation."""
    default_code = ErrorCode.DATA_VALIDATION


class AmputationError(MissingDeckError):
    """🕳️ Missingness injection failed."""
    default_code = ErrorCode.AMPUTATION


class ImputationError(MissingDeckError):
    """🩹 Imputation failed."""
    default_code = ErrorCode.IMPUTATION


class ModelFitError(MissingDeckError):
    """📐 Analysis model could not be fit."""
    default_code = ErrorCode.MODEL_FIT


class DeckBuildError(MissingDeckError):
    """🎞️ A demonstration failed while assembling the deck."""
    default_code = ErrorCode.DECK_BUILD


class RenderError(MissingDeckError):
    """📄 Deck could not be rendered."""
    default_code = ErrorCode.RENDER


class ConfigurationError(MissingDeckError):
    """⚙️ Configuration error."""
    default_code = ErrorCode.CONFIG


# ═══════════════════════════════════════════════════════════════════════════
# Helper Functions
# ═══════════════════════════════════════════════════════════════════════════

def handle_exception(e: Exception, context: str = "") -> str:
    """
    📝 **Format Exception for Display**

    Example:
```python
        try:
            build()
        except Exception as e:
            print(handle_exception(e, "Deck build"))
```
    """
    if isinstance(e, MissingDeckError):
        msg = f"❌ Error: {e.message}"
        if context:
            msg += f"\nContext: {context}"
        if e.details:
            msg += f"\nDetails: {e.details}"
        return msg

    msg = f"❌ Unexpected error: {e}"
    if context:
        msg += f"\nContext: {context}"
    return msg


def _wrap(
    exc: Exception,
    to: Type[MissingDeckError],
    message: str,
    error_code: Optional[ErrorCode],
    severity: ErrorSeverity,
    context: Optional[Dict[str, Any]],
    log: bool,
) -> MissingDeckError:
    wrapped = to(
        message,
        details={"original_error": str(exc)},
        error_code=error_code,
        severity=severity,
        context=context,
        cause=exc,
    )
    if log:
        logger.opt(exception=exc).error(str(wrapped))
    return wrapped


def wrap_exceptions(
    *,
    to: Type[MissingDeckError],
    message: str,
    error_code: Optional[ErrorCode] = None,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    context_builder: Optional[Callable[[tuple, dict], Dict[str, Any]]] = None,
    log: bool = True
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    🎁 **Exception Wrapping Decorator**

    Example:
```python
        @wrap_exceptions(to=ModelFitError, message="OLS fit failed")
        def fit_ols(df, formula):
            ...
```
    """
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except MissingDeckError:
                raise
            except Exception as e:
                ctx = context_builder(args, kwargs) if context_builder else None
                raise _wrap(e, to, message, error_code, severity, ctx, log) from e

        return wrapper
    return decorator


@contextmanager
def exception_context(
    *,
    to: Type[MissingDeckError] = MissingDeckError,
    message: str = "Operation failed",
    error_code: Optional[ErrorCode] = None,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    context: Optional[Dict[str, Any]] = None,
    log: bool = True
) -> Iterator[None]:
    """
    🔒 **Exception Context Manager**

    Example:
```python
        with exception_context(to=RenderError, message="PDF build failed"):
            doc.build(story)
```
    """
    try:
        yield
    except MissingDeckError:
        raise
    except Exception as e:
        raise _wrap(e, to, message, error_code, severity, context, log) from e
