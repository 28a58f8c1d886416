"""
Display helpers shared by the API responses and the CLI report.
"""

from typing import Optional


def format_number(value: Optional[int]) -> str:
    if not value:
        return "0"
    return f"{value:,}"


def format_score(score: Optional[float]) -> str:
    if score is None:
        return "N/A"
    return f"{score:.1f}"


def score_color(score: Optional[float]) -> str:
    """Badge colour for a 0–10 reach score."""
    if score is None:
        return "gray"
    if score >= 8:
        return "green"
    if score >= 6:
        return "blue"
    if score >= 4:
        return "yellow"
    return "red"


def relevance_color(relevance: Optional[float]) -> str:
    """Badge colour for a 0–1 brand-fit score."""
    if relevance is None:
        return "gray"
    if relevance >= 0.7:
        return "green"
    if relevance >= 0.5:
        return "yellow"
    return "red"
