"""
FastAPI Route Handlers
Streamer Brand-Fit Evaluator
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.concurrency import run_in_threadpool

from api.schemas import (
    AnalysesResponse, AnalyzeStreamersRequest, BrandFitRequest, BrandFitResponse,
    CandidateAnalysisResponse, CompanyProfileModel, CompanyProfileSaved,
    ErrorResponse, EvaluateRequest, HealthResponse, HistoryEntryResponse, MigrationResponse,
    RecomputeMissingResponse, RecomputeRequest, StreamerResponse,
)
from agents.errors import ValidationError
from config.settings import settings
from db import migrations
from models.schemas import CompanyProfile, Streamer
from utils.pipeline import Services, build_services
from utils.ranking import sort_streamers

logger = logging.getLogger(__name__)

router = APIRouter(responses={
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Not found"},
    409: {"model": ErrorResponse, "description": "Already being evaluated"},
    500: {"model": ErrorResponse, "description": "Analysis, upstream or storage failure"},
})

_services: Optional[Services] = None
_services_lock = threading.Lock()


def get_services() -> Services:
    """Process-wide services; tests swap this out via dependency_overrides."""
    global _services
    if _services is None:
        with _services_lock:
            if _services is None:
                _services = build_services()
    return _services


# ─── Health ──────────────────────────────────────────────────────────────────

@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    return HealthResponse(
        status="ok",
        version=settings.APP_VERSION,
        timestamp=datetime.utcnow(),
    )


# ─── Stateless analysis proxies ──────────────────────────────────────────────

@router.post("/analyze-brand-fit", response_model=BrandFitResponse, tags=["Analysis"])
async def analyze_brand_fit(request: BrandFitRequest, services: Services = Depends(get_services)):
    streamer = Streamer.from_dict(request.streamer)
    company = CompanyProfile.from_dict(request.company)
    fit = await run_in_threadpool(services.gateway.analyze_brand_fit, streamer, company)
    return BrandFitResponse(**fit.to_dict())


@router.post("/analyze-streamer", tags=["Analysis"])
async def analyze_streamer(
    twitch_data: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
):
    """Raw Twitch record in, Streamer-shaped analysis out."""
    return await run_in_threadpool(services.gateway.analyze_streamer, twitch_data)


@router.post("/analyze-streamers", response_model=AnalysesResponse, tags=["Analysis"])
async def analyze_streamers(request: AnalyzeStreamersRequest, services: Services = Depends(get_services)):
    candidates = [c.model_dump() for c in request.streamers]
    analyses = await run_in_threadpool(services.gateway.analyze_candidates, candidates)
    return AnalysesResponse(analyses=[CandidateAnalysisResponse(**a.to_dict()) for a in analyses])


@router.get("/fetch-twitch-data", tags=["Twitch"])
async def fetch_twitch_data(username: Optional[str] = None, services: Services = Depends(get_services)):
    if not username:
        raise ValidationError("Username is required")
    return await run_in_threadpool(services.twitch.fetch_streamer, username)


@router.get("/streamerSearch/{user_id}", tags=["Twitch"])
async def streamer_search(user_id: str, services: Services = Depends(get_services)):
    return await run_in_threadpool(services.twitch.search_candidates, user_id)


# ─── Migrations ──────────────────────────────────────────────────────────────

def _run_migration(services: Services, migration) -> MigrationResponse:
    return MigrationResponse(**migration(session_factory=services.store.session_factory))


@router.post("/migrate-display-name", response_model=MigrationResponse, tags=["Migrations"])
async def migrate_display_name(services: Services = Depends(get_services)):
    return await run_in_threadpool(_run_migration, services, migrations.migrate_display_name)


@router.post("/migrate-game-and-sponsors", response_model=MigrationResponse, tags=["Migrations"])
async def migrate_game_and_sponsors(services: Services = Depends(get_services)):
    return await run_in_threadpool(_run_migration, services, migrations.migrate_game_and_sponsors)


@router.post("/migrate-image-field", response_model=MigrationResponse, tags=["Migrations"])
async def migrate_image_field(services: Services = Depends(get_services)):
    return await run_in_threadpool(_run_migration, services, migrations.migrate_image_field)


@router.post("/migrate-remove-views", response_model=MigrationResponse, tags=["Migrations"])
async def migrate_remove_views(services: Services = Depends(get_services)):
    return await run_in_threadpool(_run_migration, services, migrations.remove_views)


# ─── Company profile ─────────────────────────────────────────────────────────

@router.get("/users/{uid}/company-profile", response_model=CompanyProfileModel, tags=["Company"])
async def get_company_profile(uid: str, services: Services = Depends(get_services)):
    profile = await run_in_threadpool(services.store.ensure_company_profile, uid)
    return CompanyProfileModel.from_profile(profile)


@router.put("/users/{uid}/company-profile", response_model=CompanyProfileSaved, tags=["Company"])
async def save_company_profile(
    uid: str,
    request: CompanyProfileModel,
    services: Services = Depends(get_services),
):
    """Overwrite the profile; cached brand-fit analyses for this user are dropped."""
    profile = request.to_profile()
    dropped = await run_in_threadpool(services.store.save_company_profile, uid, profile)
    return CompanyProfileSaved(profile=CompanyProfileModel.from_profile(profile), invalidatedAnalyses=dropped)


# ─── Evaluation ──────────────────────────────────────────────────────────────

@router.post("/users/{uid}/evaluate", response_model=StreamerResponse, tags=["Evaluation"])
async def evaluate_streamer(uid: str, request: EvaluateRequest, services: Services = Depends(get_services)):
    """
    Resolve a username (cache → Twitch), analyze, score and persist.
    Returns 409 while the same streamer is already being evaluated for this user.
    """
    orchestrator = services.orchestrator()
    streamer = await run_in_threadpool(orchestrator.evaluate, uid, request.username)
    return StreamerResponse.from_streamer(streamer)


@router.post(
    "/users/{uid}/streamers/{streamer_id}/recompute",
    response_model=StreamerResponse,
    tags=["Evaluation"],
)
async def recompute_streamer(
    uid: str,
    streamer_id: str,
    request: Optional[RecomputeRequest] = None,
    services: Services = Depends(get_services),
):
    use_llm = request.useLlm if request is not None else True
    orchestrator = services.orchestrator()
    streamer = await run_in_threadpool(orchestrator.recompute, uid, streamer_id, use_llm)
    return StreamerResponse.from_streamer(streamer)


@router.post("/users/{uid}/recompute-missing", response_model=RecomputeMissingResponse, tags=["Evaluation"])
async def recompute_missing(uid: str, services: Services = Depends(get_services)):
    orchestrator = services.orchestrator()
    return RecomputeMissingResponse(**await run_in_threadpool(orchestrator.recompute_missing, uid))


@router.get("/users/{uid}/find-streamers", response_model=AnalysesResponse, tags=["Evaluation"])
async def find_streamers(uid: str, services: Services = Depends(get_services)):
    orchestrator = services.orchestrator()
    analyses = await run_in_threadpool(orchestrator.discover, uid)
    return AnalysesResponse(analyses=[CandidateAnalysisResponse(**a.to_dict()) for a in analyses])


# ─── Dashboard / history ─────────────────────────────────────────────────────

@router.get("/users/{uid}/streamers", response_model=List[StreamerResponse], tags=["Dashboard"])
async def list_streamers(uid: str, sort: str = "relevance", services: Services = Depends(get_services)):
    streamers = await run_in_threadpool(services.orchestrator().dashboard, uid)
    return [StreamerResponse.from_streamer(s) for s in sort_streamers(streamers, sort)]


@router.get("/users/{uid}/history", response_model=List[HistoryEntryResponse], tags=["Dashboard"])
async def list_history(uid: str, sort: Optional[str] = None, services: Services = Depends(get_services)):
    """Most recently analyzed first, unless a sort key is given."""
    entries = await run_in_threadpool(services.store.list_history, uid)
    if sort:
        by_id = {e.streamer_id: e for e in entries}
        ranked = sort_streamers(
            [
                Streamer(
                    id=e.streamer_id,
                    followers=e.followers,
                    ai_score=e.ai_score,
                    relevance_score=e.relevance_score,
                )
                for e in entries
            ],
            sort,
        )
        entries = [by_id[s.id] for s in ranked]
    return [HistoryEntryResponse.from_entry(e) for e in entries]
