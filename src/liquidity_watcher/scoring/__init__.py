"""Pool safety classification and scoring."""

from .safety import classify_safety
from .score import ScoringConfig, calculate_score

__all__ = ["classify_safety", "calculate_score", "ScoringConfig"]
