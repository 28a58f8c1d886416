"""
Pydantic schemas for API request/response validation.

Field names follow the camelCase document form the dashboard consumes.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime

from models.schemas import CompanyProfile, HistoryEntry, Streamer


# ─── Request Schemas ─────────────────────────────────────────────────────────

class EvaluateRequest(BaseModel):
    username: str = Field(..., description="Twitch username or channel URL")


class RecomputeRequest(BaseModel):
    useLlm: bool = True


class BrandFitRequest(BaseModel):
    streamer: Dict[str, Any]
    company: Dict[str, Any]


class CandidateRequest(BaseModel):
    username: str
    probability: Optional[float] = None


class AnalyzeStreamersRequest(BaseModel):
    streamers: List[CandidateRequest]


class TargetAudienceModel(BaseModel):
    ageRange: str = ""
    interests: List[str] = []
    demographics: List[str] = []


class AdContentModel(BaseModel):
    description: str = ""
    tone: str = ""
    keywords: List[str] = []


class CompanyProfileModel(BaseModel):
    name: str = ""
    description: str = ""
    industry: str = ""
    targetAudience: TargetAudienceModel = Field(default_factory=TargetAudienceModel)
    adContent: AdContentModel = Field(default_factory=AdContentModel)

    @classmethod
    def from_profile(cls, profile: CompanyProfile) -> "CompanyProfileModel":
        return cls(**profile.to_dict())

    def to_profile(self) -> CompanyProfile:
        return CompanyProfile.from_dict(self.model_dump())


# ─── Response Schemas ────────────────────────────────────────────────────────

class SocialResponse(BaseModel):
    link: str
    platformName: str


class StreamerResponse(BaseModel):
    id: str
    name: str
    image: str
    description: str
    tags: List[str]
    categories: List[str]
    sponsors: List[str]
    socials: List[SocialResponse]
    followers: int
    aiScore: Optional[float] = None
    aiSummary: str = ""
    aiRecommendation: str = ""
    relevanceScore: Optional[float] = None

    @classmethod
    def from_streamer(cls, streamer: Streamer) -> "StreamerResponse":
        return cls(**streamer.to_dict())


class HistoryEntryResponse(BaseModel):
    streamerId: str
    name: str
    image: str
    followers: int
    aiScore: Optional[float] = None
    relevanceScore: Optional[float] = None
    lastAnalyzed: Optional[datetime] = None
    categories: List[str]
    tags: List[str]
    sponsors: List[str]

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "HistoryEntryResponse":
        data = entry.to_dict()
        data.pop("schemaVersion", None)
        data["lastAnalyzed"] = entry.last_analyzed
        return cls(**data)


class BrandFitResponse(BaseModel):
    aiSummary: str
    aiRecommendation: str
    relevanceScore: float


class CandidateAnalysisResponse(BaseModel):
    username: str
    aiSummary: str
    aiRecommendation: str
    relevanceScore: float


class AnalysesResponse(BaseModel):
    analyses: List[CandidateAnalysisResponse]


class CompanyProfileSaved(BaseModel):
    profile: CompanyProfileModel
    invalidatedAnalyses: int


class MigrationResponse(BaseModel):
    success: bool
    updatedCount: int


class RecomputeMissingResponse(MigrationResponse):
    batches: int


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    message: str
