# Application Stats Package
from .metrics_calculator import (
    EnrichedReview,
    MetricsCalculator,
    ProgressSummary,
    SessionTally,
)

__all__ = ["MetricsCalculator", "EnrichedReview", "ProgressSummary", "SessionTally"]
