# config/settings.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  Missing Data Deck - Settings                                              ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Pydantic v2 Settings                                                  ║
║  ✓ Environment Variable Support (.env)                                   ║
║  ✓ Type Safety & Validation                                              ║
║  ✓ Auto-Creation of Directories                                          ║
║  ✓ Deck / Imputation Parameters                                          ║
╚════════════════════════════════════════════════════════════════════════════╝

Architecture:
```
    Settings
    ├── Application (name, version, environment)
    ├── Logging (level, format, rotation)
    ├── Paths (data, samples, output, logs)
    ├── Dataset (source file, synthetic sample size)
    ├── Missing Data (rate, MAR driver, alpha)
    ├── Multiple Imputation (m, burn-in, PMM donors)
    └── Deck (title, author, theme, formats, CDN)
```

Usage:
```python
    from config.settings import settings

    print(settings.DECK_TITLE)
    print(settings.MI_N_IMPUTATIONS)
    formats = settings.get_deck_formats()   # ["html", "pdf", "markdown"]
```

Environment Variables:
    Every field can be overridden, e.g.:
      • MI_N_IMPUTATIONS=20
      • ATTRITION_DATA_FILE=/data/WA_Fn-UseC_-HR-Employee-Attrition.csv
      • DECK_FORMATS=html,pdf

Dependencies:
    • pydantic
    • pydantic-settings
    • python-dotenv
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ═══════════════════════════════════════════════════════════════════════════
# Module Metadata
# ═══════════════════════════════════════════════════════════════════════════

__version__ = "1.0"

__all__ = ["Settings", "settings", "get_settings", "SUPPORTED_DECK_FORMATS"]


load_dotenv()

# Project root directory
ROOT_DIR = Path(__file__).resolve().parent.parent

SUPPORTED_DECK_FORMATS = ("html", "pdf", "markdown")


# ═══════════════════════════════════════════════════════════════════════════
# Settings Class
# ═══════════════════════════════════════════════════════════════════════════

class Settings(BaseSettings):
    """
    🔧 **Central Configuration**

    Type-safe configuration for the deck build. Values come from (in order
    of precedence) environment variables, the `.env` file and the defaults
    below.
    """

    # ───────────────────────────────────────────────────────────────────
    # Application
    # ───────────────────────────────────────────────────────────────────

    APP_NAME: str = "Missing Data Deck"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    LOG_JSON_ENABLED: bool = False
    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "30 days"
    LOG_CONSOLE_COMPACT: bool = True

    TEST_MODE: bool = False

    # ───────────────────────────────────────────────────────────────────
    # Paths
    # ───────────────────────────────────────────────────────────────────

    BASE_PATH: Path = ROOT_DIR
    DATA_PATH: Path = ROOT_DIR / "data"
    SAMPLES_PATH: Path = ROOT_DIR / "data" / "samples"
    OUTPUT_PATH: Path = ROOT_DIR / "output"
    LOGS_PATH: Path = ROOT_DIR / "logs"

    # ───────────────────────────────────────────────────────────────────
    # Dataset
    # ───────────────────────────────────────────────────────────────────

    ATTRITION_DATA_FILE: Optional[Path] = None
    SAMPLE_N_ROWS: int = 1470
    RANDOM_STATE: int = 42

    # ───────────────────────────────────────────────────────────────────
    # Missing Data Demonstrations
    # ───────────────────────────────────────────────────────────────────

    MISSING_RATE: float = 0.3
    MISSING_TARGET: str = "monthly_income"
    MAR_DRIVER: str = "total_working_years"
    ALPHA: float = 0.05

    # ───────────────────────────────────────────────────────────────────
    # Multiple Imputation
    # ───────────────────────────────────────────────────────────────────

    MI_N_IMPUTATIONS: int = 5
    MI_N_BURNIN: int = 10
    MI_K_PMM: int = 5

    # ───────────────────────────────────────────────────────────────────
    # Deck
    # ───────────────────────────────────────────────────────────────────

    DECK_TITLE: str = "Missing Data"
    DECK_SUBTITLE: str = "Mechanisms, deletion and imputation strategies"
    DECK_AUTHOR: str = "Data Science Methods Seminar"
    DECK_THEME: str = "violet"
    DECK_FORMATS: str = "html,pdf,markdown"
    DECK_FILE_STEM: str = "missing_data"

    REVEAL_JS_CDN: str = "https://cdn.jsdelivr.net/npm/reveal.js@5.1.0"
    PLOTLY_JS_MODE: Literal["cdn", "inline"] = "cdn"

    # ───────────────────────────────────────────────────────────────────
    # Pydantic Configuration
    # ───────────────────────────────────────────────────────────────────

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # ───────────────────────────────────────────────────────────────────
    # Computed Fields
    # ───────────────────────────────────────────────────────────────────

    @computed_field
    @property
    def sample_file(self) -> Path:
        """Bundled attrition sample location."""
        return self.SAMPLES_PATH / "attrition.csv"

    # ───────────────────────────────────────────────────────────────────
    # Field Validators
    # ───────────────────────────────────────────────────────────────────

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        normalized = (v or "").upper()

        if normalized not in allowed:
            raise ValueError(
                f"Invalid LOG_LEVEL '{v}'. "
                f"Allowed: {', '.join(sorted(allowed))}"
            )

        return normalized

    @field_validator("DATA_PATH", "SAMPLES_PATH", "OUTPUT_PATH", "LOGS_PATH", mode="before")
    @classmethod
    def ensure_directories(cls, v: Path | str) -> Path:
        """Ensure directories exist."""
        path = Path(v).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("MISSING_RATE")
    @classmethod
    def validate_missing_rate(cls, v: float) -> float:
        if not 0.0 <= v < 1.0:
            raise ValueError("MISSING_RATE must be in range [0.0, 1.0)")
        return v

    @field_validator("ALPHA")
    @classmethod
    def validate_alpha(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError("ALPHA must be in range (0.0, 1.0)")
        return v

    @field_validator("MI_N_IMPUTATIONS")
    @classmethod
    def validate_n_imputations(cls, v: int) -> int:
        """Rubin's rules need at least two completed datasets."""
        if v < 2:
            raise ValueError("MI_N_IMPUTATIONS must be >= 2")
        return v

    @field_validator("MI_N_BURNIN", "MI_K_PMM", "SAMPLE_N_ROWS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be a positive integer")
        return v

    # ───────────────────────────────────────────────────────────────────
    # Model Validators
    # ───────────────────────────────────────────────────────────────────

    @model_validator(mode="after")
    def validate_configuration(self) -> "Settings":
        """Validate complete configuration."""
        unknown = [f for f in self._split_formats(self.DECK_FORMATS) if f not in SUPPORTED_DECK_FORMATS]
        if unknown:
            raise ValueError(
                f"Unsupported DECK_FORMATS: {', '.join(unknown)}. "
                f"Supported: {', '.join(SUPPORTED_DECK_FORMATS)}"
            )

        if self.MAR_DRIVER == self.MISSING_TARGET:
            raise ValueError("MAR_DRIVER must differ from MISSING_TARGET")

        return self

    # ───────────────────────────────────────────────────────────────────
    # Helper Methods
    # ───────────────────────────────────────────────────────────────────

    @staticmethod
    def _split_formats(raw: str) -> List[str]:
        return [f.strip().lower() for f in (raw or "").split(",") if f.strip()]

    def get_deck_formats(self) -> List[str]:
        """
        🎞️ **Get Deck Formats**

        Parse DECK_FORMATS into an ordered, de-duplicated list.
        """
        seen: List[str] = []
        for fmt in self._split_formats(self.DECK_FORMATS):
            if fmt not in seen:
                seen.append(fmt)
        return seen


# ═══════════════════════════════════════════════════════════════════════════
# Global Instance
# ═══════════════════════════════════════════════════════════════════════════

settings = Settings()


def get_settings() -> Settings:
    """Return the global settings instance."""
    return settings
