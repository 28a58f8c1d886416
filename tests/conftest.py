"""
Shared fixtures: in-memory store, stub LLM gateway and stub Twitch client.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agents.errors import AnalysisFailedError
from agents.evaluator import BusyRegistry, EvaluationOrchestrator
from agents.gateway import BrandFitAnalysis, CandidateAnalysis
from db.database import init_db
from db.repository import DocumentStore
from models.schemas import CompanyProfile


RAW_CAEDREL = {
    "name": "Caedrel",
    "image": "https://cdn.example/caedrel.png",
    "followers": 1_000_000,
    "description": "League of Legends co-streams with high engagement",
    "socials": [
        {"link": "https://twitter.com/caedrel", "platformName": "Twitter"},
        {"link": "https://youtube.com/caedrel", "platformName": "YouTube"},
    ],
    "panelElements": ["Sponsored by Displate\nUse code CAEDREL", "Schedule\nDaily"],
    "panelImageURLs": [],
    "panelLinkUrls": [],
    "countryCode": "GB",
}


class StubGateway:
    """Counts calls; `fail_*` flags make the next call raise like a bad LLM reply."""

    def __init__(self, relevance=0.8):
        self.relevance = relevance
        self.brand_fit_calls = 0
        self.streamer_calls = 0
        self.candidate_calls = []
        self.fail_brand_fit = False
        self.fail_streamer = False

    def analyze_streamer(self, twitch_data):
        self.streamer_calls += 1
        if self.fail_streamer:
            raise AnalysisFailedError("Analysis failed: could not parse analysis response")
        return {
            "id": twitch_data.get("name", "").lower(),
            "name": twitch_data.get("name"),
            "description": twitch_data.get("description"),
            "tags": ["gaming", "fps", "GB"],
            "categories": ["Gaming"],
            "sponsors": ["Displate"],
            "aiSummary": "Streamer summary",
            "aiScore": 9.9,
            "aiRecommendation": "Streamer recommendation",
            "followers": twitch_data.get("followers"),
            "image": twitch_data.get("image", ""),
        }

    def analyze_brand_fit(self, streamer, company):
        self.brand_fit_calls += 1
        if self.fail_brand_fit:
            raise AnalysisFailedError("Analysis failed: could not parse analysis response")
        return BrandFitAnalysis(
            ai_summary=f"{streamer.name} for {company.name}",
            ai_recommendation="Partner up",
            relevance_score=self.relevance,
        )

    def analyze_candidates(self, candidates):
        self.candidate_calls.append(candidates)
        return [
            CandidateAnalysis(
                username=c["username"],
                ai_summary="Candidate summary",
                ai_recommendation="Candidate recommendation",
                relevance_score=0.5,
            )
            for c in candidates
        ]


class StubTwitch:
    def __init__(self, records=None, candidates=None):
        self.records = records if records is not None else {"caedrel": dict(RAW_CAEDREL)}
        self.candidates = candidates if candidates is not None else []
        self.fetch_calls = []

    def fetch_streamer(self, username):
        self.fetch_calls.append(username)
        return dict(self.records[username])

    def search_candidates(self, user_id):
        return self.candidates


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def store(session_factory):
    return DocumentStore(session_factory)


@pytest.fixture
def gateway():
    return StubGateway()


@pytest.fixture
def twitch():
    return StubTwitch()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def orchestrator(store, gateway, twitch, sleeps):
    return EvaluationOrchestrator(
        store=store,
        gateway=gateway,
        twitch=twitch,
        busy=BusyRegistry(),
        sleep=sleeps.append,
    )


@pytest.fixture
def company():
    return CompanyProfile.from_dict({
        "name": "Displate",
        "description": "Metal posters",
        "industry": "gaming",
        "targetAudience": {"ageRange": "18-34", "interests": ["fps"], "demographics": ["GB"]},
        "adContent": {"description": "Posters", "tone": "playful", "keywords": ["gaming", "art"]},
    })
