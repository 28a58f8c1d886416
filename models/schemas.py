"""
Core data models / schemas for the Streamer Brand-Fit Evaluator.

Every record is normalized on the way in (`from_dict`) so that business logic
never has to null-check optional fields, and serialized in the camelCase
document form on the way out (`to_dict`).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime

SCHEMA_VERSION = 2


# ---------------------------------------------------------------------------
# Normalization helpers
# ---------------------------------------------------------------------------

def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if v is not None and str(v) != ""]


def _non_negative_int(value: Any) -> int:
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return 0
    return max(number, 0)


def _float_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _sponsor_names(value: Any) -> List[str]:
    """Sponsors were once stored as {name, logo} objects; keep only names."""
    if not isinstance(value, (list, tuple)):
        return []
    names = []
    for sponsor in value:
        if isinstance(sponsor, dict):
            sponsor = sponsor.get("name")
        if sponsor:
            names.append(str(sponsor))
    return names


# ---------------------------------------------------------------------------
# Streamers
# ---------------------------------------------------------------------------

@dataclass
class Social:
    link: str
    platform_name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Social":
        return cls(
            link=_str(data.get("link")),
            platform_name=_str(data.get("platformName") or data.get("website")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"link": self.link, "platformName": self.platform_name}


def _socials(value: Any) -> List[Social]:
    if not isinstance(value, (list, tuple)):
        return []
    return [Social.from_dict(s) for s in value if isinstance(s, dict)]


@dataclass
class Streamer:
    id: str
    name: str = ""
    image: str = ""
    description: str = ""
    tags: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    sponsors: List[str] = field(default_factory=list)
    socials: List[Social] = field(default_factory=list)
    followers: int = 0
    # derived fields
    ai_score: Optional[float] = None            # reach, 0–10
    ai_summary: str = ""
    ai_recommendation: str = ""
    relevance_score: Optional[float] = None     # brand fit, 0–1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Streamer":
        return cls(
            id=_str(data.get("id") or data.get("username")).lower(),
            name=_str(data.get("name") or data.get("displayName")),
            image=_str(data.get("image") or data.get("profileImageUrl")),
            description=_str(data.get("description")),
            tags=_str_list(data.get("tags")),
            categories=_str_list(data.get("categories")),
            sponsors=_sponsor_names(data.get("sponsors")),
            socials=_socials(data.get("socials")),
            followers=_non_negative_int(data.get("followers")),
            ai_score=_float_or_none(data.get("aiScore")),
            ai_summary=_str(data.get("aiSummary")),
            ai_recommendation=_str(data.get("aiRecommendation")),
            relevance_score=_float_or_none(data.get("relevanceScore")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image": self.image,
            "description": self.description,
            "tags": list(self.tags),
            "categories": list(self.categories),
            "sponsors": list(self.sponsors),
            "socials": [s.to_dict() for s in self.socials],
            "followers": self.followers,
            "aiScore": self.ai_score,
            "aiSummary": self.ai_summary,
            "aiRecommendation": self.ai_recommendation,
            "relevanceScore": self.relevance_score,
        }

    def with_analysis(self, analysis: "AnalysisRecord") -> "Streamer":
        self.ai_score = analysis.ai_score if analysis.ai_score is not None else self.ai_score
        self.relevance_score = analysis.relevance_score
        self.ai_summary = analysis.ai_summary
        self.ai_recommendation = analysis.ai_recommendation
        return self


@dataclass
class TwitchStreamer:
    """Raw record as returned by the Twitch data service."""
    name: str
    image: str = ""
    followers: int = 0
    description: str = ""
    socials: List[Social] = field(default_factory=list)
    panel_elements: List[str] = field(default_factory=list)
    panel_image_urls: List[str] = field(default_factory=list)
    panel_link_urls: List[str] = field(default_factory=list)
    address: Optional[str] = None
    country_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TwitchStreamer":
        return cls(
            name=_str(data.get("name") or data.get("displayName")),
            image=_str(data.get("image") or data.get("profileImageUrl")),
            followers=_non_negative_int(data.get("followers")),
            description=_str(data.get("description")),
            socials=_socials(data.get("socials")),
            panel_elements=_str_list(data.get("panelElements")),
            panel_image_urls=_str_list(data.get("panelImageURLs")),
            panel_link_urls=_str_list(data.get("panelLinkUrls")),
            address=data.get("address"),
            country_code=data.get("countryCode"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "image": self.image,
            "followers": self.followers,
            "description": self.description,
            "socials": [s.to_dict() for s in self.socials],
            "panelElements": list(self.panel_elements),
            "panelImageURLs": list(self.panel_image_urls),
            "panelLinkUrls": list(self.panel_link_urls),
        }
        if self.address:
            data["address"] = self.address
        if self.country_code:
            data["countryCode"] = self.country_code
        return data


@dataclass
class CachedStreamer:
    """Global raw-data cache entry, shared by every user."""
    id: str
    username: str
    name: str = ""
    image: str = ""
    followers: int = 0
    description: str = ""
    language: str = "en"
    created_at: str = ""
    last_streamed_at: str = ""
    average_viewers: int = 0
    peak_viewers: int = 0
    stream_title: str = ""
    game_name: str = ""
    tags: List[str] = field(default_factory=list)
    sponsors: List[str] = field(default_factory=list)
    socials: List[Social] = field(default_factory=list)
    panel_elements: List[str] = field(default_factory=list)
    panel_image_urls: List[str] = field(default_factory=list)
    panel_link_urls: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CachedStreamer":
        ident = _str(data.get("id") or data.get("username")).lower()
        return cls(
            id=ident,
            username=_str(data.get("username") or ident).lower(),
            name=_str(data.get("name") or data.get("displayName")),
            image=_str(data.get("image") or data.get("profileImageUrl")),
            followers=_non_negative_int(data.get("followers")),
            description=_str(data.get("description")),
            language=_str(data.get("language") or "en"),
            created_at=_str(data.get("createdAt")),
            last_streamed_at=_str(data.get("lastStreamedAt")),
            average_viewers=_non_negative_int(data.get("averageViewers")),
            peak_viewers=_non_negative_int(data.get("peakViewers")),
            stream_title=_str(data.get("streamTitle")),
            game_name=_str(data.get("game_name") or data.get("streamGame")),
            tags=_str_list(data.get("tags")),
            sponsors=_sponsor_names(data.get("sponsors")),
            socials=_socials(data.get("socials")),
            panel_elements=_str_list(data.get("panelElements")),
            panel_image_urls=_str_list(data.get("panelImageURLs")),
            panel_link_urls=_str_list(data.get("panelLinkUrls")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemaVersion": SCHEMA_VERSION,
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "image": self.image,
            "followers": self.followers,
            "description": self.description,
            "language": self.language,
            "createdAt": self.created_at,
            "lastStreamedAt": self.last_streamed_at,
            "averageViewers": self.average_viewers,
            "peakViewers": self.peak_viewers,
            "streamTitle": self.stream_title,
            "game_name": self.game_name,
            "tags": list(self.tags),
            "sponsors": list(self.sponsors),
            "socials": [s.to_dict() for s in self.socials],
            "panelElements": list(self.panel_elements),
            "panelImageURLs": list(self.panel_image_urls),
            "panelLinkUrls": list(self.panel_link_urls),
        }


# ---------------------------------------------------------------------------
# Company profile
# ---------------------------------------------------------------------------

@dataclass
class TargetAudience:
    age_range: str = ""
    interests: List[str] = field(default_factory=list)
    demographics: List[str] = field(default_factory=list)


@dataclass
class AdContent:
    description: str = ""
    tone: str = ""
    keywords: List[str] = field(default_factory=list)


@dataclass
class CompanyProfile:
    name: str = ""
    description: str = ""
    industry: str = ""
    target_audience: TargetAudience = field(default_factory=TargetAudience)
    ad_content: AdContent = field(default_factory=AdContent)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CompanyProfile":
        data = data or {}
        audience = data.get("targetAudience") or {}
        ad = data.get("adContent") or {}
        return cls(
            name=_str(data.get("name")),
            description=_str(data.get("description")),
            industry=_str(data.get("industry")),
            target_audience=TargetAudience(
                age_range=_str(audience.get("ageRange")),
                interests=_str_list(audience.get("interests")),
                demographics=_str_list(audience.get("demographics")),
            ),
            ad_content=AdContent(
                description=_str(ad.get("description")),
                tone=_str(ad.get("tone")),
                keywords=_str_list(ad.get("keywords")),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "industry": self.industry,
            "targetAudience": {
                "ageRange": self.target_audience.age_range,
                "interests": list(self.target_audience.interests),
                "demographics": list(self.target_audience.demographics),
            },
            "adContent": {
                "description": self.ad_content.description,
                "tone": self.ad_content.tone,
                "keywords": list(self.ad_content.keywords),
            },
        }


# ---------------------------------------------------------------------------
# Per-user analysis + history
# ---------------------------------------------------------------------------

@dataclass
class AnalysisRecord:
    user_id: str
    streamer_id: str
    ai_score: Optional[float] = None
    relevance_score: Optional[float] = None
    ai_summary: str = ""
    ai_recommendation: str = ""
    updated_at: Optional[datetime] = None

    @classmethod
    def from_streamer(cls, user_id: str, streamer: Streamer) -> "AnalysisRecord":
        return cls(
            user_id=user_id,
            streamer_id=streamer.id,
            ai_score=streamer.ai_score,
            relevance_score=streamer.relevance_score,
            ai_summary=streamer.ai_summary,
            ai_recommendation=streamer.ai_recommendation,
            updated_at=datetime.utcnow(),
        )

    @property
    def is_complete(self) -> bool:
        return self.ai_score is not None and bool(self.ai_summary) and bool(self.ai_recommendation)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "streamerId": self.streamer_id,
            "aiScore": self.ai_score,
            "relevanceScore": self.relevance_score,
            "aiSummary": self.ai_summary,
            "aiRecommendation": self.ai_recommendation,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class HistoryEntry:
    streamer_id: str
    name: str = ""
    image: str = ""
    followers: int = 0
    ai_score: Optional[float] = None
    relevance_score: Optional[float] = None
    last_analyzed: Optional[datetime] = None
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    sponsors: List[str] = field(default_factory=list)

    @classmethod
    def from_streamer(cls, streamer: Streamer) -> "HistoryEntry":
        return cls(
            streamer_id=streamer.id,
            name=streamer.name,
            image=streamer.image,
            followers=streamer.followers,
            ai_score=streamer.ai_score,
            relevance_score=streamer.relevance_score,
            last_analyzed=datetime.utcnow(),
            categories=list(streamer.categories),
            tags=list(streamer.tags),
            sponsors=list(streamer.sponsors),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        last = data.get("lastAnalyzed")
        if isinstance(last, str) and last:
            try:
                last = datetime.fromisoformat(last)
            except ValueError:
                last = None
        elif not isinstance(last, datetime):
            last = None
        return cls(
            streamer_id=_str(data.get("streamerId") or data.get("id")).lower(),
            name=_str(data.get("name") or data.get("displayName")),
            image=_str(data.get("image") or data.get("profileImageUrl")),
            followers=_non_negative_int(data.get("followers")),
            ai_score=_float_or_none(data.get("aiScore")),
            relevance_score=_float_or_none(data.get("relevanceScore")),
            last_analyzed=last,
            categories=_str_list(data.get("categories")),
            tags=_str_list(data.get("tags")),
            sponsors=_sponsor_names(data.get("sponsors")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemaVersion": SCHEMA_VERSION,
            "streamerId": self.streamer_id,
            "name": self.name,
            "image": self.image,
            "followers": self.followers,
            "aiScore": self.ai_score,
            "relevanceScore": self.relevance_score,
            "lastAnalyzed": self.last_analyzed.isoformat() if self.last_analyzed else None,
            "categories": list(self.categories),
            "tags": list(self.tags),
            "sponsors": list(self.sponsors),
        }
