"""
Core data models for the Streamer Brand-Fit Evaluator.
"""

from .schemas import (
    SCHEMA_VERSION,
    Social,
    Streamer,
    TwitchStreamer,
    CachedStreamer,
    TargetAudience,
    AdContent,
    CompanyProfile,
    AnalysisRecord,
    HistoryEntry,
)

__all__ = [
    "SCHEMA_VERSION",
    "Social",
    "Streamer",
    "TwitchStreamer",
    "CachedStreamer",
    "TargetAudience",
    "AdContent",
    "CompanyProfile",
    "AnalysisRecord",
    "HistoryEntry",
]
