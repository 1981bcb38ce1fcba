# core/data_loader.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  Missing Data Deck - Attrition Data Loader                                 ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ CSV / Parquet Loading (compressed CSV included)                       ║
║  ✓ IBM HR Analytics and modeldata Column Styles                          ║
║  ✓ Light Relabelling (snake_case, ordered categoricals)                  ║
║  ✓ Bundled Sample + Deterministic Synthetic Fallback                     ║
╚════════════════════════════════════════════════════════════════════════════╝

Source Resolution:
```
    AttritionDataLoader.load(path)
    ├── explicit path                      (must exist)
    ├── settings.ATTRITION_DATA_FILE       (must exist)
    ├── data/samples/attrition.csv         (if present)
    └── generate_attrition_sample()        (seeded, 1,470 rows)
```

Usage:
```python
    from core.data_loader import load_attrition

    df = load_attrition()
    df["job_satisfaction"].cat.categories
    # Index(['Low', 'Medium', 'High', 'Very High'], dtype='object')
```

Dependencies:
    • pandas
    • numpy
    • pyarrow (Parquet only)
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal, Optional, Tuple, Union

import numpy as np
import pandas as pd
from loguru import logger

from config.constants import (
    ATTRITION_CODES,
    ATTRITION_LEVELS,
    COL_ATTRITION,
    COL_JOB_SATISFACTION,
    JOB_SATISFACTION_CODES,
    JOB_SATISFACTION_LEVELS,
    REQUIRED_COLUMNS,
)
from config.settings import settings
from core.exceptions import DataLoadError, DataValidationError, exception_context

__all__ = [
    "AttritionDataLoader",
    "clean_attrition",
    "generate_attrition_sample",
    "load_attrition",
    "to_snake_case",
]


# ═══════════════════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════════════════

COMPRESSION_MAP = {
    ".gz": "gzip",
    ".bz2": "bz2",
    ".zip": "zip",
    ".xz": "xz",
}

DataSource = Literal["file", "sample", "synthetic"]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

_NUMERIC_COLUMNS: Tuple[str, ...] = tuple(
    c for c in REQUIRED_COLUMNS if c not in (COL_ATTRITION, COL_JOB_SATISFACTION)
)


# ═══════════════════════════════════════════════════════════════════════════
# Cleaning
# ═══════════════════════════════════════════════════════════════════════════

def to_snake_case(name: str) -> str:
    """`TotalWorkingYears` → `total_working_years`; snake_case input is unchanged."""
    name = str(name).strip().replace(" ", "_").replace("-", "_")
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _relabel(series: pd.Series, codes: dict, levels: list, column: str) -> pd.Series:
    def _lookup(value):
        if pd.isna(value):
            return np.nan
        key = value.strip() if isinstance(value, str) else value
        try:
            return codes[key]
        except (KeyError, TypeError):
            raise DataValidationError(
                f"Unexpected value in '{column}'",
                details={"value": repr(value), "allowed": levels},
            ) from None

    relabelled = series.map(_lookup)
    return pd.Series(
        pd.Categorical(relabelled, categories=levels, ordered=True),
        index=series.index,
        name=column,
    )


def clean_attrition(df: pd.DataFrame) -> pd.DataFrame:
    """
    Light relabelling of a raw attrition table.

    Works on a copy: columns → snake_case, `job_satisfaction` → ordered
    {Low, Medium, High, Very High}, `attrition` → ordered {No, Yes},
    numeric columns coerced to numbers.
    """
    if not isinstance(df, pd.DataFrame):
        raise DataValidationError("Attrition data must be a pandas DataFrame")

    out = df.copy()
    out.columns = [to_snake_case(c) for c in out.columns]

    missing = [c for c in REQUIRED_COLUMNS if c not in out.columns]
    if missing:
        raise DataValidationError(
            "Attrition data is missing required columns",
            details={"missing": missing, "available": list(out.columns)},
        )

    out[COL_JOB_SATISFACTION] = _relabel(
        out[COL_JOB_SATISFACTION], JOB_SATISFACTION_CODES, JOB_SATISFACTION_LEVELS, COL_JOB_SATISFACTION
    )
    out[COL_ATTRITION] = _relabel(
        out[COL_ATTRITION], ATTRITION_CODES, ATTRITION_LEVELS, COL_ATTRITION
    )

    for col in _NUMERIC_COLUMNS:
        with exception_context(
            to=DataValidationError,
            message=f"Column '{col}' is not numeric",
            context={"column": col},
        ):
            out[col] = pd.to_numeric(out[col])

    return out.reset_index(drop=True)


# ═══════════════════════════════════════════════════════════════════════════
# Synthetic Sample
# ═══════════════════════════════════════════════════════════════════════════

def generate_attrition_sample(n_rows: int = 1470, random_state: Optional[int] = None) -> pd.DataFrame:
    """
    🧪 **Deterministic Synthetic Attrition Sample**

    Raw IBM HR Analytics style table (CamelCase columns, satisfaction coded
    1–4, attrition Yes/No). Guarantees:
      • Age ≥ 18 + TotalWorkingYears
      • YearsAtCompany ≤ TotalWorkingYears
      • MonthlyIncome increasing with JobLevel and experience
      • Attrition more likely for low satisfaction, low income, short tenure
    """
    if n_rows < 1:
        raise DataValidationError("n_rows must be positive", details={"n_rows": n_rows})

    seed = settings.RANDOM_STATE if random_state is None else random_state
    rng = np.random.default_rng(seed)

    age = np.clip(np.round(rng.normal(37, 9, n_rows)), 18, 60).astype(int)
    max_experience = age - 18
    total_working_years = np.clip(
        np.round(rng.normal(max_experience * 0.6, 3.0)), 0, max_experience
    ).astype(int)
    years_at_company = np.floor(total_working_years * rng.beta(2.0, 3.0, n_rows)).astype(int)

    job_level = np.clip(
        1 + np.floor(total_working_years / 7 + rng.normal(0, 0.7, n_rows)), 1, 5
    ).astype(int)

    monthly_income = np.clip(
        np.round(1000 + 3200 * job_level + 60 * total_working_years + rng.normal(0, 900, n_rows)),
        1009,
        None,
    ).astype(int)

    job_satisfaction = rng.choice([1, 2, 3, 4], size=n_rows, p=[0.20, 0.19, 0.30, 0.31])

    logit = (
        -1.6
        - 0.35 * (job_satisfaction - 2.5)
        - 0.00015 * (monthly_income - 6500)
        - 0.07 * (years_at_company - 7)
    )
    p_leave = 1.0 / (1.0 + np.exp(-logit))
    attrition = np.where(rng.random(n_rows) < p_leave, "Yes", "No")

    department = rng.choice(
        ["Research & Development", "Sales", "Human Resources"], size=n_rows, p=[0.65, 0.30, 0.05]
    )

    return pd.DataFrame({
        "EmployeeNumber": np.arange(1, n_rows + 1),
        "Age": age,
        "Attrition": attrition,
        "Department": department,
        "JobLevel": job_level,
        "JobSatisfaction": job_satisfaction,
        "MonthlyIncome": monthly_income,
        "TotalWorkingYears": total_working_years,
        "YearsAtCompany": years_at_company,
    })


# ═══════════════════════════════════════════════════════════════════════════
# Loader
# ═══════════════════════════════════════════════════════════════════════════

class AttritionDataLoader:
    """
    📦 **Attrition Data Loader**

    Loads the dataset once and returns the cleaned frame. `source` records
    where the last load came from ("file", "sample" or "synthetic").
    """

    def __init__(self, n_rows: Optional[int] = None, random_state: Optional[int] = None):
        self.n_rows = n_rows or settings.SAMPLE_N_ROWS
        self.random_state = settings.RANDOM_STATE if random_state is None else random_state
        self.source: Optional[DataSource] = None
        self.source_path: Optional[Path] = None
        self.logger = logger.bind(component="AttritionDataLoader")

    def load(self, path: Optional[Union[str, Path]] = None) -> pd.DataFrame:
        """
        📂 **Load Attrition Data**

        Raises:
            DataLoadError: explicit/configured file missing or unreadable
            DataValidationError: required columns or levels invalid
        """
        explicit = path or settings.ATTRITION_DATA_FILE

        if explicit:
            file_path = Path(explicit).expanduser()
            if not file_path.exists():
                raise DataLoadError(f"File not found: {file_path}", details={"path": str(file_path)})
            raw = self.read_file(file_path)
            self.source, self.source_path = "file", file_path

        elif settings.sample_file.exists():
            raw = self.read_file(settings.sample_file)
            self.source, self.source_path = "sample", settings.sample_file

        else:
            self.logger.info(
                f"No attrition file configured; generating synthetic sample "
                f"(n={self.n_rows}, seed={self.random_state})"
            )
            raw = generate_attrition_sample(self.n_rows, self.random_state)
            self.source, self.source_path = "synthetic", None

        df = clean_attrition(raw)
        self.logger.success(f"✓ Attrition data ready: {len(df)} rows × {len(df.columns)} columns ({self.source})")
        return df

    def read_file(self, path: Path) -> pd.DataFrame:
        """Read CSV (optionally compressed) or Parquet."""
        suffixes = [s.lower() for s in path.suffixes]
        compression = COMPRESSION_MAP.get(suffixes[-1]) if suffixes else None
        base = suffixes[-2] if compression and len(suffixes) >= 2 else (suffixes[-1] if suffixes else "")

        self.logger.info(f"Loading data from {path} (type: {base or '?'}, compression: {compression or 'none'})")

        with exception_context(to=DataLoadError, message=f"Failed to read {path}", context={"path": str(path)}):
            if base == ".parquet":
                return pd.read_parquet(path)
            if base in (".csv", ".txt") or compression:
                try:
                    return pd.read_csv(path, compression=compression, low_memory=False)
                except UnicodeDecodeError:
                    self.logger.warning("Failed with utf-8, trying latin-1")
                    return pd.read_csv(path, compression=compression, encoding="latin-1", low_memory=False)

        raise DataLoadError(
            f"Unsupported file type: {base or path.name}",
            details={"supported": [".csv", ".csv.gz", ".parquet"]},
        )


def load_attrition(path: Optional[Union[str, Path]] = None) -> pd.DataFrame:
    """Convenience wrapper around `AttritionDataLoader().load(path)`."""
    return AttritionDataLoader().load(path)
