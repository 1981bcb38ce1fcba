# config/constants.py
"""
Missing Data Deck - dataset constants and bibliography.

Column names refer to the cleaned (snake_case) attrition table.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

# ═══════════════════════════════════════════════════════════════════════════
# Attrition Dataset
# ═══════════════════════════════════════════════════════════════════════════

COL_AGE = "age"
COL_ATTRITION = "attrition"
COL_JOB_LEVEL = "job_level"
COL_JOB_SATISFACTION = "job_satisfaction"
COL_MONTHLY_INCOME = "monthly_income"
COL_TOTAL_WORKING_YEARS = "total_working_years"
COL_YEARS_AT_COMPANY = "years_at_company"

REQUIRED_COLUMNS: Tuple[str, ...] = (
    COL_AGE,
    COL_ATTRITION,
    COL_JOB_LEVEL,
    COL_JOB_SATISFACTION,
    COL_MONTHLY_INCOME,
    COL_TOTAL_WORKING_YEARS,
    COL_YEARS_AT_COMPANY,
)

# Numeric variables used by the imputation demonstrations
ANALYSIS_COLUMNS: Tuple[str, ...] = (
    COL_MONTHLY_INCOME,
    COL_TOTAL_WORKING_YEARS,
    COL_JOB_LEVEL,
    COL_AGE,
    COL_YEARS_AT_COMPANY,
)

# Analysis model shared by every strategy comparison
ANALYSIS_FORMULA = f"{COL_MONTHLY_INCOME} ~ {COL_TOTAL_WORKING_YEARS} + {COL_AGE}"

# Predictor for regression imputation of monthly income (single predictor keeps
# the fitted line drawable on the slide)
INCOME_PREDICTORS: Tuple[str, ...] = (COL_TOTAL_WORKING_YEARS,)

# Ordered levels as shown on the slides
JOB_SATISFACTION_LEVELS: List[str] = ["Low", "Medium", "High", "Very High"]
ATTRITION_LEVELS: List[str] = ["No", "Yes"]

# Raw encodings accepted by the loader (IBM HR CSV codes and R modeldata labels)
JOB_SATISFACTION_CODES: Dict[object, str] = {
    1: "Low",
    2: "Medium",
    3: "High",
    4: "Very High",
    "1": "Low",
    "2": "Medium",
    "3": "High",
    "4": "Very High",
    "Low": "Low",
    "Medium": "Medium",
    "High": "High",
    "Very_High": "Very High",
    "Very High": "Very High",
    "VeryHigh": "Very High",
}

ATTRITION_CODES: Dict[object, str] = {
    "No": "No",
    "Yes": "Yes",
    "no": "No",
    "yes": "Yes",
    0: "No",
    1: "Yes",
    False: "No",
    True: "Yes",
}

# Readable axis labels
COLUMN_LABELS: Dict[str, str] = {
    COL_AGE: "Age",
    COL_ATTRITION: "Attrition",
    COL_JOB_LEVEL: "Job level",
    COL_JOB_SATISFACTION: "Job satisfaction",
    COL_MONTHLY_INCOME: "Monthly income",
    COL_TOTAL_WORKING_YEARS: "Total working years",
    COL_YEARS_AT_COMPANY: "Years at company",
}

MECHANISMS: Tuple[str, ...] = ("mcar", "mar", "mnar")


def label_for(column: str) -> str:
    """Human readable label for a column name."""
    return COLUMN_LABELS.get(column, column.replace("_", " ").capitalize())


# ═══════════════════════════════════════════════════════════════════════════
# References
# ═══════════════════════════════════════════════════════════════════════════

REFERENCES: Dict[str, str] = {
    "rubin1976": "Rubin, D. B. (1976). Inference and missing data. Biometrika, 63(3), 581–592.",
    "rubin1987": "Rubin, D. B. (1987). Multiple Imputation for Nonresponse in Surveys. Wiley.",
    "little2019": "Little, R. J. A., & Rubin, D. B. (2019). Statistical Analysis with Missing Data (3rd ed.). Wiley.",
    "schafer2002": "Schafer, J. L., & Graham, J. W. (2002). Missing data: Our view of the state of the art. Psychological Methods, 7(2), 147–177.",
    "vanbuuren2018": "van Buuren, S. (2018). Flexible Imputation of Missing Data (2nd ed.). CRC Press.",
    "enders2010": "Enders, C. K. (2010). Applied Missing Data Analysis. Guilford Press.",
    "barnard1999": "Barnard, J., & Rubin, D. B. (1999). Small-sample degrees of freedom with multiple imputation. Biometrika, 86(4), 948–955.",
    "ibm_hr": "IBM HR Analytics Employee Attrition & Performance (fictional data set created by IBM data scientists).",
}
