# config/logging_config.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  Missing Data Deck - Logging Configuration                                 ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Structured Logging (JSON + Human-Readable)                            ║
║  ✓ Multiple Sinks (Console, Files, JSONL)                                ║
║  ✓ Stdlib Interception (matplotlib, statsmodels, PIL)                    ║
║  ✓ Per-Build File Sinks                                                  ║
║  ✓ Dynamic Log Level Control                                             ║
╚════════════════════════════════════════════════════════════════════════════╝

Logging Flow:
```
    Application Code
         ├─→ loguru.logger
         ├─→ stdlib logging → InterceptHandler → loguru
         └─→ warnings → loguru

    Sinks:
    ├── Console (stdout, colorized)
    ├── app.log (all logs, rotated)
    ├── errors.log (ERROR+ only)
    └── app.jsonl (structured JSON, optional)

    Per-Build Sinks:
    └── build-{id}.log
```

Usage:
```python
    from config.logging_config import setup_logging, get_logger, log_execution_time

    setup_logging(log_level="INFO")
    log = get_logger(__name__, component="deck")

    @log_execution_time
    def build():
        log.info("Building deck")
```

Dependencies:
    • loguru
"""

from __future__ import annotations

import logging
import sys
import time
import warnings
from contextvars import ContextVar
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger

from config.settings import settings

__all__ = [
    "setup_logging",
    "get_logger",
    "set_run_context",
    "log_execution_time",
    "LogContext",
    "add_run_file_sinks",
    "remove_run_file_sinks",
    "set_log_level",
]


# ═══════════════════════════════════════════════════════════════════════════
# Context Variables
# ═══════════════════════════════════════════════════════════════════════════

_ctx_run_id: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


def set_run_context(run_id: Optional[str]) -> None:
    """Tag every subsequent record with the current build id."""
    _ctx_run_id.set(run_id)


# ═══════════════════════════════════════════════════════════════════════════
# Stdlib Logging Interception
# ═══════════════════════════════════════════════════════════════════════════

class InterceptHandler(logging.Handler):
    """
    🔌 **Stdlib Logging Interceptor**

    Routes standard library logging (matplotlib, statsmodels, PIL) to loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _patch_record(record: Dict[str, Any]) -> None:
    extra = record["extra"]
    extra.setdefault("run_id", _ctx_run_id.get() or "-")


# ═══════════════════════════════════════════════════════════════════════════
# Log Formats
# ═══════════════════════════════════════════════════════════════════════════

LOG_FORMAT_HUMAN = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "run=<blue>{extra[run_id]}</blue> | "
    "<level>{message}</level>"
)

LOG_FORMAT_COMPACT = "{time:HH:mm:ss} | {level: <8} | {message}"

_NOISY_LIBRARIES = ("matplotlib", "matplotlib.font_manager", "PIL", "statsmodels", "fontTools")

_INITIALIZED_FLAG = False
_SINK_IDS: List[int] = []
_RUN_SINKS: Dict[str, List[int]] = {}


# ═══════════════════════════════════════════════════════════════════════════
# Main Setup
# ═══════════════════════════════════════════════════════════════════════════

def setup_logging(
    app_name: Optional[str] = None,
    log_level: Optional[str] = None,
    *,
    enable_json: Optional[bool] = None,
    console_compact: Optional[bool] = None,
    logs_path: Optional[Union[str, Path]] = None,
    reset_existing: bool = False
) -> None:
    """
    🔧 **Setup Centralized Logging**

    Idempotent: subsequent calls are no-ops unless `reset_existing=True`.
    File sinks are skipped in TEST_MODE.
    """
    global _INITIALIZED_FLAG

    if _INITIALIZED_FLAG and not reset_existing:
        return

    app_name = app_name or settings.APP_NAME
    log_level = (log_level or settings.LOG_LEVEL).upper()
    logs_dir = Path(logs_path or settings.LOGS_PATH).resolve()
    enable_json = settings.LOG_JSON_ENABLED if enable_json is None else enable_json
    console_compact = settings.LOG_CONSOLE_COMPACT if console_compact is None else console_compact

    logger.remove()
    _SINK_IDS.clear()
    logger.configure(patcher=_patch_record)

    _SINK_IDS.append(
        logger.add(
            sys.stderr,
            format=LOG_FORMAT_COMPACT if console_compact else LOG_FORMAT_HUMAN,
            level=log_level,
            colorize=True,
            backtrace=(log_level == "DEBUG"),
            diagnose=False,
        )
    )

    if not settings.TEST_MODE:
        logs_dir.mkdir(parents=True, exist_ok=True)

        _SINK_IDS.append(
            logger.add(
                logs_dir / "app.log",
                format=LOG_FORMAT_HUMAN,
                level=log_level,
                rotation=settings.LOG_ROTATION,
                retention=settings.LOG_RETENTION,
                compression="zip",
                encoding="utf-8",
            )
        )

        _SINK_IDS.append(
            logger.add(
                logs_dir / "errors.log",
                format=LOG_FORMAT_HUMAN,
                level="ERROR",
                rotation=settings.LOG_ROTATION,
                retention="90 days",
                compression="zip",
                encoding="utf-8",
            )
        )

        if enable_json:
            _SINK_IDS.append(
                logger.add(
                    logs_dir / "app.jsonl",
                    serialize=True,
                    level=log_level,
                    rotation=settings.LOG_ROTATION,
                    retention=settings.LOG_RETENTION,
                    encoding="utf-8",
                )
            )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for lib in _NOISY_LIBRARIES:
        lib_logger = logging.getLogger(lib)
        lib_logger.handlers = [InterceptHandler()]
        lib_logger.setLevel(logging.WARNING)
        lib_logger.propagate = False

    warnings.simplefilter("default")
    logging.captureWarnings(True)

    logger.debug(
        f"✓ Logging initialized: app={app_name}, level={log_level}, "
        f"json={enable_json}, logs_dir={logs_dir}"
    )

    _INITIALIZED_FLAG = True


# ═══════════════════════════════════════════════════════════════════════════
# Per-Build Sinks
# ═══════════════════════════════════════════════════════════════════════════

def add_run_file_sinks(run_id: str, run_dir: Path) -> List[int]:
    """
    📁 **Add Per-Build File Sink**

    Writes every record tagged with `run_id` to `run_dir/build-{run_id}.log`.
    """
    run_dir.mkdir(parents=True, exist_ok=True)

    sink_id = logger.add(
        run_dir / f"build-{run_id}.log",
        format=LOG_FORMAT_HUMAN,
        level=settings.LOG_LEVEL,
        encoding="utf-8",
        filter=lambda record: record["extra"].get("run_id") == run_id,
    )

    _RUN_SINKS[run_id] = [sink_id]
    return [sink_id]


def remove_run_file_sinks(run_id: str) -> None:
    for sink_id in _RUN_SINKS.pop(run_id, []):
        try:
            logger.remove(sink_id)
        except ValueError:
            pass


# ═══════════════════════════════════════════════════════════════════════════
# Utilities
# ═══════════════════════════════════════════════════════════════════════════

def get_logger(name: Optional[str] = None, **binds: Any):
    """
    📝 **Get Bound Logger**

    Example:
```python
        log = get_logger(__name__, component="renderer")
        log.info("Rendering HTML deck")
```
    """
    lgr = logger

    if name:
        lgr = lgr.bind(name=name)

    if binds:
        lgr = lgr.bind(**binds)

    return lgr


class LogContext:
    """
    📦 **Log Context Manager**

    Temporarily attaches key/values to every record emitted inside the block.

    Example:
```python
        with LogContext(slide="mcar"):
            log.info("Amputing monthly_income")
```
    """

    def __init__(self, **kwargs: Any):
        self._ctx = kwargs
        self._cm = None

    def __enter__(self):
        self._cm = logger.contextualize(**self._ctx)
        self._cm.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(f"Exception in context {self._ctx}: {exc_val!r}")
        self._cm.__exit__(exc_type, exc_val, exc_tb)
        return False


def set_log_level(level: str) -> None:
    """Change log level at runtime by rebuilding the sinks."""
    setup_logging(log_level=level, reset_existing=True)


def log_execution_time(func: Callable) -> Callable:
    """
    ⏱️ **Log Execution Time Decorator**

    Logs start, duration and failures; exceptions are re-raised.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        logger.debug(f"▶️  Starting {func.__name__}")

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            duration = time.perf_counter() - start
            logger.error(f"✗ Failed {func.__name__} after {duration:.3f}s: {e}")
            raise

        duration = time.perf_counter() - start
        logger.info(f"✓ Completed {func.__name__} in {duration:.3f}s")
        return result

    return wrapper


# ═══════════════════════════════════════════════════════════════════════════
# Auto-Initialization
# ═══════════════════════════════════════════════════════════════════════════

if not settings.TEST_MODE:
    setup_logging()
