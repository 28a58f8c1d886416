"""
Exception hierarchy for the evaluation pipeline.

The API layer maps each class to one HTTP status; everything else propagates.
"""


class EvaluationError(Exception):
    """Base class for every failure the pipeline surfaces to callers."""
    status_code = 500


class ValidationError(EvaluationError):
    """Bad input, rejected before any network call."""
    status_code = 400


class NotFoundError(EvaluationError):
    status_code = 404


class BusyError(EvaluationError):
    """The same entity is already being evaluated."""
    status_code = 409


class UpstreamError(EvaluationError):
    """Non-2xx or unreachable Twitch data / discovery service."""


class AnalysisFailedError(EvaluationError):
    """LLM call failed or returned a reply of the wrong shape."""


class StorageError(EvaluationError):
    """A store transaction failed and was rolled back."""
