"""Missing Data Deck - missingness simulation."""

from agents.missingness.amputer import AmputationConfig, MissingnessAmputer, ampute, calibrated_probabilities

__all__ = ["AmputationConfig", "MissingnessAmputer", "ampute", "calibrated_probabilities"]
