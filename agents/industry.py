"""
Industry → keyword table used for topic matching.
"""

from typing import Dict, List

INDUSTRY_KEYWORDS: Dict[str, List[str]] = {
    "gaming": ["game", "gaming", "esports", "streamer", "player"],
    "technology": ["tech", "technology", "software", "hardware", "digital"],
    "fashion": ["fashion", "style", "clothing", "beauty", "lifestyle"],
    "food": ["food", "cooking", "restaurant", "beverage", "cuisine"],
    "entertainment": ["entertainment", "media", "film", "music", "show"],
    "sports": ["sports", "athlete", "fitness", "workout", "competition"],
    "other": [],
}


def get_industry_keywords(industry: str) -> List[str]:
    """Keywords for an industry (case-insensitive); unknown industries have none."""
    return list(INDUSTRY_KEYWORDS.get((industry or "").strip().lower(), []))
