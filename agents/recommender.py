"""
Recommendation Text Generator
------------------------------
Builds the plain-English `aiSummary` / `aiRecommendation` pair locally by
concatenating clauses for whichever brand matches hold. Deterministic: the
same streamer and profile always produce the same text.

Input:  Streamer, Optional[CompanyProfile]
Output: RecommendationText
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from agents.scorer import any_tag_contains, contains, matching_terms
from models.schemas import CompanyProfile, Streamer

logger = logging.getLogger(__name__)

LARGE_FOLLOWING = 1_000_000
SOLID_FOLLOWING = 100_000


@dataclass
class RecommendationText:
    ai_summary: str
    ai_recommendation: str


def _plural(items: List[str], singular: str, plural: str) -> str:
    return plural if len(items) > 1 else singular


def build_summary(streamer: Streamer) -> str:
    followers_m = streamer.followers / 1_000_000
    content = ", ".join(streamer.categories) if streamer.categories else "content"
    return f"{streamer.name} is a {content} creator with {followers_m:.1f}M followers."


def generic_recommendation(streamer: Streamer) -> str:
    """Streamer-only description used when there is no company profile."""
    if streamer.categories:
        text = f"{', '.join(streamer.categories)} content creator "
    else:
        text = "Content creator "

    if streamer.followers > LARGE_FOLLOWING:
        text += "with a large following. "
    elif streamer.followers > SOLID_FOLLOWING:
        text += "with a solid following. "

    if streamer.socials:
        text += f"Strong social media presence across {len(streamer.socials)} platforms. "
    if streamer.tags:
        text += f"Focuses on {', '.join(streamer.tags[:3])}."
    return text.strip()


def _platform_strategy(streamer: Streamer) -> str:
    if streamer.followers > LARGE_FOLLOWING:
        strategy = "Offers major brand exposure"
    elif streamer.followers > SOLID_FOLLOWING:
        strategy = "Provides focused brand reach"
    else:
        strategy = "Offers niche audience targeting"

    if streamer.socials:
        names = ", ".join(s.platform_name for s in streamer.socials if s.platform_name)
        strategy += f" across {len(streamer.socials)} platforms"
        if names:
            strategy += f" ({names})"
    return strategy + ". "


def _verdict(interest_match: bool, industry_match: bool) -> str:
    if interest_match and industry_match:
        return "Highly recommended partnership opportunity"
    if interest_match:
        return "Strong potential for audience alignment"
    if industry_match:
        return "Good fit for industry-specific campaigns"
    return "Consider for audience expansion"


def company_recommendation(streamer: Streamer, company: CompanyProfile) -> str:
    tags = streamer.tags
    audience = company.target_audience
    ad = company.ad_content

    interests = matching_terms(audience.interests, tags)
    demographics = matching_terms(audience.demographics, tags)
    keywords = [
        kw for kw in ad.keywords
        if any_tag_contains(tags, kw) or contains(streamer.description, kw)
    ]
    industry_match = any(contains(category, company.industry) for category in streamer.categories)

    text = f"For {company.name} ({company.industry}): "

    # Audience
    if interests:
        areas = _plural(interests, "", " areas")
        text += f"Strong audience alignment in {', '.join(interests)}{areas}. "
    if demographics:
        noun = _plural(demographics, "demographic", "demographics")
        text += f"Appeals to your target {' and '.join(demographics)} {noun}. "
    if any_tag_contains(tags, audience.age_range):
        text += f"Content particularly resonates with {audience.age_range} age group. "

    # Industry
    if industry_match:
        text += (
            f"Direct {company.industry} industry alignment offers authentic "
            "brand integration opportunities. "
        )
    elif streamer.categories:
        text += (
            f"While not directly in {company.industry}, their "
            f"{'/'.join(streamer.categories)} content could provide fresh exposure. "
        )

    # Tone + themes
    if contains(streamer.description, ad.tone):
        text += f"Content style naturally matches your {ad.tone} brand tone. "
    if keywords:
        text += f"Aligns with your key themes: {', '.join(keywords)}. "

    text += _platform_strategy(streamer)

    if streamer.sponsors:
        text += (
            f"Current brand collaborations with {', '.join(streamer.sponsors)} "
            "demonstrate sponsorship experience. "
        )

    text += f"Overall: {_verdict(bool(interests), industry_match)}."
    return text


def generate_recommendation(
    streamer: Streamer,
    company: Optional[CompanyProfile],
) -> RecommendationText:
    summary = build_summary(streamer)
    if company is None:
        recommendation = generic_recommendation(streamer)
    else:
        recommendation = company_recommendation(streamer, company)
    return RecommendationText(ai_summary=summary, ai_recommendation=recommendation)
