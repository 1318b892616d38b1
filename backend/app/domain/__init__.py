"""Domain models representing extracted slips and bet pairs."""

from .models import (
    ExtractedLeg,
    ExtractedSlip,
    NewBet,
    PairMetrics,
    PairResolution,
    PairStatistics,
    ReportSummary,
)

__all__ = [
    "ExtractedLeg",
    "ExtractedSlip",
    "NewBet",
    "PairMetrics",
    "PairResolution",
    "PairStatistics",
    "ReportSummary",
]
