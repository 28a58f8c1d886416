from .base import Agent, AgentResult, Orchestrator
from .errors import (
    EvaluationError, ValidationError, NotFoundError, BusyError,
    UpstreamError, AnalysisFailedError, StorageError,
)
from .gateway import AnalysisGateway, BrandFitAnalysis, CandidateAnalysis
from .twitch import TwitchDataClient

__all__ = [
    "Agent", "AgentResult", "Orchestrator",
    "EvaluationError", "ValidationError", "NotFoundError", "BusyError",
    "UpstreamError", "AnalysisFailedError", "StorageError",
    "AnalysisGateway", "BrandFitAnalysis", "CandidateAnalysis",
    "TwitchDataClient",
]
