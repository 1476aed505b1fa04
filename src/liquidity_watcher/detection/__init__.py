"""Opportunity detection and the refresh pipeline."""

from .engine import RefreshPipeline
from .opportunities import Opportunity, OpportunityConfig, OpportunityDetector

__all__ = [
    "RefreshPipeline",
    "Opportunity",
    "OpportunityConfig",
    "OpportunityDetector",
]
