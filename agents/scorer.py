"""
Streamer Scoring
-----------------
Local, deterministic scores for a streamer:

  Reach     = 5 + min(followers / 1M, 3) + min(0.2·|tags|, 1) + min(0.2·|socials|, 1)
  Relevance = 5 + Σ brand-match bonuses      (company profile present)
            = 5 + engagement + diversity + follower bonus   (no profile)

Both land on [0, 10], rounded half-up to one decimal. Relevance is stored on
[0, 1]; `scale_relevance` does the conversion.

Input:  Streamer (+ optional CompanyProfile)
Output: float scores
"""

import math
import logging
from typing import Iterable, List, Optional

from agents.industry import get_industry_keywords
from models.schemas import CompanyProfile, Streamer

logger = logging.getLogger(__name__)

SCORE_MIN = 0.0
SCORE_MAX = 10.0
BASE_SCORE = 5.0

# Brand-match bonuses
INDUSTRY_BONUS = 2.0
AGE_RANGE_BONUS = 1.0
INTEREST_BONUS = 1.5
DEMOGRAPHIC_BONUS = 1.5
TONE_BONUS = 1.0
KEYWORD_BONUS = 0.5
KEYWORD_BONUS_CAP = 1.5
ENGAGEMENT_BONUS = 1.0


# ─── Helpers ─────────────────────────────────────────────────────────────────


def round_score(score: float) -> float:
    """Clamp to [0, 10] and round half-up to one decimal."""
    clamped = max(SCORE_MIN, min(SCORE_MAX, score))
    return math.floor(clamped * 10 + 0.5) / 10


def contains(haystack: str, needle: str) -> bool:
    """Case-insensitive substring test. Empty needles never match."""
    if not needle or not haystack:
        return False
    return needle.lower() in haystack.lower()


def any_tag_contains(tags: Iterable[str], needle: str) -> bool:
    return any(contains(tag, needle) for tag in tags)


def matching_terms(terms: Iterable[str], tags: List[str]) -> List[str]:
    """Terms that appear (as substrings) in at least one tag."""
    return [term for term in terms if any_tag_contains(tags, term)]


def scale_relevance(score_on_ten: float) -> float:
    """Convert a 0–10 relevance score to the stored 0–1 scale."""
    return round(max(SCORE_MIN, min(SCORE_MAX, score_on_ten)) / SCORE_MAX, 2)


def relevance_on_ten(relevance: Optional[float]) -> float:
    """Stored relevance is 0–1; legacy records above 1 are already on 0–10."""
    if relevance is None:
        return 0.0
    if relevance <= 1.0:
        return relevance * SCORE_MAX
    return min(relevance, SCORE_MAX)


# ─── Reach ───────────────────────────────────────────────────────────────────


def reach_score(streamer: Streamer) -> float:
    """Popularity-derived score, independent of any company."""
    score = BASE_SCORE
    score += min(max(streamer.followers, 0) / 1_000_000, 3.0)
    score += min(len(streamer.tags) * 0.2, 1.0)
    score += min(len(streamer.socials) * 0.2, 1.0)
    return round_score(score)


# ─── Relevance ───────────────────────────────────────────────────────────────


def fallback_score(streamer: Streamer) -> float:
    """Relevance heuristic used when the user has no company profile."""
    score = BASE_SCORE

    # Engagement (0–2)
    if contains(streamer.description, "high"):
        score += 2.0
    elif contains(streamer.description, "medium"):
        score += 1.0

    # Tag diversity (0–1)
    score += min(len(streamer.tags) * 0.25, 1.0)

    # Follower bonus (0–1)
    score += min(max(streamer.followers, 0) / 1_000_000, 1.0)

    return round_score(score)


def relevance_score(streamer: Streamer, company: Optional[CompanyProfile]) -> float:
    """Brand-fit score on [0, 10]. Callers rescale with `scale_relevance`."""
    if company is None:
        return fallback_score(streamer)

    tags = streamer.tags
    audience = company.target_audience
    ad = company.ad_content
    score = BASE_SCORE

    industry_keywords = get_industry_keywords(company.industry)
    if any(any_tag_contains(tags, kw) for kw in industry_keywords):
        score += INDUSTRY_BONUS

    if any_tag_contains(tags, audience.age_range):
        score += AGE_RANGE_BONUS

    if matching_terms(audience.interests, tags):
        score += INTEREST_BONUS

    if matching_terms(audience.demographics, tags):
        score += DEMOGRAPHIC_BONUS

    if contains(streamer.description, ad.tone):
        score += TONE_BONUS

    keyword_hits = len(matching_terms(ad.keywords, tags))
    score += min(keyword_hits * KEYWORD_BONUS, KEYWORD_BONUS_CAP)

    if contains(streamer.description, "high"):
        score += ENGAGEMENT_BONUS

    return round_score(score)


def score_streamer(streamer: Streamer, company: Optional[CompanyProfile]) -> Streamer:
    """Fill `ai_score` and the 0–1 `relevance_score` from the local calculators."""
    streamer.ai_score = reach_score(streamer)
    streamer.relevance_score = scale_relevance(relevance_score(streamer, company))
    logger.debug(
        f"Scored {streamer.id}: reach={streamer.ai_score} relevance={streamer.relevance_score}"
    )
    return streamer
