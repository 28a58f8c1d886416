"""
Dashboard / history ordering.
"""

from typing import Callable, Dict, List

from agents.errors import ValidationError
from agents.scorer import relevance_on_ten
from models.schemas import Streamer

SORT_KEYS = ("relevance", "brandFit", "reach", "followers")


def combined_score(streamer: Streamer) -> float:
    """Mean of reach and brand fit, both on the 0–10 band."""
    return ((streamer.ai_score or 0.0) + relevance_on_ten(streamer.relevance_score)) / 2


_SORTERS: Dict[str, Callable[[Streamer], float]] = {
    "relevance": combined_score,
    "brandFit": lambda s: s.relevance_score or 0.0,
    "reach": lambda s: s.ai_score or 0.0,
    "followers": lambda s: s.followers,
}


def sort_streamers(streamers: List[Streamer], key: str = "relevance") -> List[Streamer]:
    """Descending by `key`; returns a new list."""
    if key not in _SORTERS:
        raise ValidationError(f"Invalid sort key '{key}'. Expected one of: {', '.join(SORT_KEYS)}")
    return sorted(streamers, key=_SORTERS[key], reverse=True)
