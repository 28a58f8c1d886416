"""
Evaluation Orchestrator
------------------------
Turns a Twitch username into a scored, persisted Streamer for one user.

Resolution order:
  1. per-user analysis + cached raw record   → reuse, no LLM call
  2. cached raw record only                  → LLM streamer analysis
  3. nothing cached                          → Twitch fetch + LLM analysis,
                                               raw record cached
Then brand fit (LLM when a company profile exists and the streamer was not
served from cache), reach score (always local), and one atomic write.

State:  IDLE → FETCHING_DATA → ANALYZING → DONE   (IDLE again on error)

Stages run on the shared Agent / Orchestrator base, one EvaluationContext
flowing through them.
"""

import logging
import re
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urlparse

from agents.base import Agent, Orchestrator
from agents.errors import BusyError, NotFoundError, UpstreamError, ValidationError
from agents.gateway import AnalysisGateway, CandidateAnalysis
from agents.mapper import (
    cached_from_streamer, merge_analysis, streamer_from_cached,
    streamer_from_twitch, twitch_payload_from_cached,
)
from agents.recommender import generate_recommendation
from agents.scorer import reach_score, relevance_score, scale_relevance
from agents.twitch import TwitchDataClient
from config.settings import settings
from db.repository import DocumentStore
from models.schemas import CachedStreamer, CompanyProfile, Streamer, TwitchStreamer

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{4,25}$")
URL_USERNAME_RE = re.compile(r"twitch\.tv/([A-Za-z0-9_]{4,25})", re.I)


class EvaluationState(str, Enum):
    IDLE = "idle"
    FETCHING_DATA = "fetching_data"
    ANALYZING = "analyzing"
    DONE = "done"


# ─── Username parsing ────────────────────────────────────────────────────────


def validate_twitch_username(username: str) -> Optional[str]:
    if not username or not USERNAME_RE.match(username):
        return None
    return username.lower()


def extract_twitch_username(value: str) -> Optional[str]:
    """Accepts `name`, `twitch.tv/name` or a full channel URL."""
    value = (value or "").strip()
    if "twitch.tv/" not in value.lower():
        return validate_twitch_username(value)

    url = value if "://" in value else f"https://{value}"
    segments = [s for s in urlparse(url).path.split("/") if s]
    if segments:
        return validate_twitch_username(segments[0])
    match = URL_USERNAME_RE.search(value)
    return match.group(1).lower() if match else None


# ─── Busy flags ──────────────────────────────────────────────────────────────


class BusyRegistry:
    """Rejects a second concurrent run for the same (user, streamer)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._busy = set()

    def is_busy(self, key: Tuple[str, str]) -> bool:
        with self._lock:
            return key in self._busy

    @contextmanager
    def hold(self, key: Tuple[str, str]) -> Iterator[None]:
        with self._lock:
            if key in self._busy:
                raise BusyError(f"'{key[1]}' is already being evaluated")
            self._busy.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._busy.discard(key)


# ─── Context ─────────────────────────────────────────────────────────────────


@dataclass
class EvaluationContext:
    user_id: str
    username: str
    company: Optional[CompanyProfile] = None
    streamer: Optional[Streamer] = None
    analysis_payload: Optional[Dict[str, Any]] = None   # raw record awaiting LLM analysis
    raw: Optional[TwitchStreamer] = None                # set when fetched from Twitch
    cached: Optional[CachedStreamer] = None             # raw record to write back
    source: str = ""
    fresh: bool = False
    recompute: bool = False
    use_llm: bool = True


# ─── Stages ──────────────────────────────────────────────────────────────────


class ResolveStreamerAgent(Agent):
    stage = EvaluationState.FETCHING_DATA

    def __init__(self, store: DocumentStore, twitch: TwitchDataClient):
        super().__init__(name="ResolveStreamer")
        self.store = store
        self.twitch = twitch

    def run(self, ctx: EvaluationContext) -> EvaluationContext:
        analysis = self.store.get_analysis(ctx.user_id, ctx.username)
        cached = self.store.get_cached_streamer(ctx.username)

        if analysis is not None and cached is not None:
            ctx.streamer = streamer_from_cached(cached).with_analysis(analysis)
            ctx.source = "analysis_cache"
        elif cached is not None:
            ctx.streamer = streamer_from_cached(cached)
            ctx.analysis_payload = twitch_payload_from_cached(cached)
            ctx.source = "raw_cache"
            ctx.fresh = True
        else:
            ctx.raw = TwitchStreamer.from_dict(self.twitch.fetch_streamer(ctx.username))
            ctx.streamer = streamer_from_twitch(ctx.raw, ctx.username)
            ctx.analysis_payload = ctx.raw.to_dict()
            ctx.source = "twitch"
            ctx.fresh = True

        self.logger.info(f"Resolved '{ctx.username}' from {ctx.source}")
        return ctx


class StreamerAnalysisAgent(Agent):
    stage = EvaluationState.ANALYZING

    def __init__(self, gateway: AnalysisGateway):
        super().__init__(name="StreamerAnalysis")
        self.gateway = gateway

    def run(self, ctx: EvaluationContext) -> EvaluationContext:
        if ctx.analysis_payload is None:
            return ctx
        analysis = self.gateway.analyze_streamer(ctx.analysis_payload)
        ctx.streamer = merge_analysis(ctx.streamer, analysis, ctx.username)
        if ctx.raw is not None:
            ctx.cached = cached_from_streamer(ctx.streamer, ctx.raw)
        return ctx


class BrandFitAgent(Agent):
    stage = EvaluationState.ANALYZING

    def __init__(self, gateway: AnalysisGateway):
        super().__init__(name="BrandFit")
        self.gateway = gateway

    def _local(self, ctx: EvaluationContext) -> None:
        text = generate_recommendation(ctx.streamer, ctx.company)
        ctx.streamer.relevance_score = scale_relevance(relevance_score(ctx.streamer, ctx.company))
        ctx.streamer.ai_summary = text.ai_summary
        ctx.streamer.ai_recommendation = text.ai_recommendation

    def run(self, ctx: EvaluationContext) -> EvaluationContext:
        streamer = ctx.streamer
        if ctx.recompute and (not ctx.use_llm or ctx.company is None):
            self._local(ctx)
            return ctx
        if ctx.company is None:
            if streamer.relevance_score is None:
                streamer.relevance_score = scale_relevance(relevance_score(streamer, None))
            return ctx
        if not (ctx.fresh or ctx.recompute or streamer.relevance_score is None):
            self.logger.info(f"Reusing cached brand fit for '{ctx.username}'")
            return ctx

        fit = self.gateway.analyze_brand_fit(streamer, ctx.company)
        streamer.relevance_score = fit.relevance_score
        streamer.ai_summary = fit.ai_summary
        streamer.ai_recommendation = fit.ai_recommendation
        return ctx


class ReachScoreAgent(Agent):
    def __init__(self):
        super().__init__(name="ReachScore")

    def run(self, ctx: EvaluationContext) -> EvaluationContext:
        ctx.streamer.ai_score = reach_score(ctx.streamer)
        return ctx


class PersistAgent(Agent):
    def __init__(self, store: DocumentStore):
        super().__init__(name="Persist")
        self.store = store

    def run(self, ctx: EvaluationContext) -> EvaluationContext:
        self.store.commit_evaluation(ctx.user_id, ctx.streamer, ctx.cached)
        return ctx


# ─── Orchestrator ────────────────────────────────────────────────────────────


class EvaluationOrchestrator:
    """
    One evaluation session. `evaluation` always holds the last committed
    result; a failed run leaves it untouched.
    """

    def __init__(
        self,
        store: DocumentStore,
        gateway: AnalysisGateway,
        twitch: TwitchDataClient,
        busy: Optional[BusyRegistry] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.gateway = gateway
        self.twitch = twitch
        self.busy = busy or BusyRegistry()
        self.sleep = sleep
        self.state = EvaluationState.IDLE
        self.evaluation: Optional[Streamer] = None
        self.error: Optional[str] = None

    def _company(self, user_id: str) -> Optional[CompanyProfile]:
        """The user's profile, or None until it has a name and industry."""
        company = self.store.get_company_profile(user_id)
        if company is None or not company.name.strip() or not company.industry.strip():
            return None
        return company

    def _set_state(self, state: EvaluationState) -> None:
        if state != self.state:
            logger.debug(f"Evaluation state {self.state.value} → {state.value}")
        self.state = state

    def _run(self, ctx: EvaluationContext, agents: List[Agent]) -> Streamer:
        self.error = None
        pipeline = Orchestrator(agents=agents, stop_on_failure=True, on_stage=self._set_state)
        result = pipeline.execute(ctx)
        if not result.success:
            self.error = result.error
            self._set_state(EvaluationState.IDLE)
            result.raise_for_failure()

        self.evaluation = ctx.streamer
        self._set_state(EvaluationState.DONE)
        logger.info(pipeline.summary())
        return ctx.streamer

    def evaluate(self, user_id: str, value: str) -> Streamer:
        username = extract_twitch_username(value)
        if username is None:
            raise ValidationError(
                "Please enter a valid Twitch username "
                "(4-25 characters, letters, numbers, and underscores only)"
            )

        with self.busy.hold((user_id, username)):
            ctx = EvaluationContext(
                user_id=user_id,
                username=username,
                company=self._company(user_id),
            )
            return self._run(ctx, [
                ResolveStreamerAgent(self.store, self.twitch),
                StreamerAnalysisAgent(self.gateway),
                BrandFitAgent(self.gateway),
                ReachScoreAgent(),
                PersistAgent(self.store),
            ])

    def load_streamer(self, user_id: str, streamer_id: str) -> Streamer:
        """An already-evaluated streamer: cached raw data + this user's analysis."""
        cached = self.store.get_cached_streamer(streamer_id)
        if cached is None:
            raise NotFoundError(f"Streamer '{streamer_id}' has not been evaluated yet")
        streamer = streamer_from_cached(cached)
        analysis = self.store.get_analysis(user_id, streamer_id)
        if analysis is not None:
            streamer.with_analysis(analysis)
        return streamer

    def recompute(self, user_id: str, streamer_id: str, use_llm: bool = True) -> Streamer:
        streamer_id = streamer_id.lower()
        with self.busy.hold((user_id, streamer_id)):
            ctx = EvaluationContext(
                user_id=user_id,
                username=streamer_id,
                company=self._company(user_id),
                streamer=self.load_streamer(user_id, streamer_id),
                source="recompute",
                recompute=True,
                use_llm=use_llm,
            )
            return self._run(ctx, [
                BrandFitAgent(self.gateway),
                ReachScoreAgent(),
                PersistAgent(self.store),
            ])

    def dashboard(self, user_id: str) -> List[Streamer]:
        """Evaluated streamers; relevance missing from the store is scored locally, not saved."""
        company = self._company(user_id)
        streamers = self.store.list_evaluated(user_id)
        for streamer in streamers:
            if streamer.relevance_score is None:
                streamer.relevance_score = scale_relevance(relevance_score(streamer, company))
        return streamers

    def recompute_missing(self, user_id: str) -> Dict[str, Any]:
        """Fill missing scores and texts locally, written in spaced-out chunks."""
        company = self._company(user_id)
        pending = []
        for streamer in self.store.list_evaluated(user_id):
            missing_text = not streamer.ai_summary or not streamer.ai_recommendation
            if streamer.ai_score is not None and streamer.relevance_score is not None and not missing_text:
                continue
            streamer.ai_score = reach_score(streamer)
            if missing_text:
                text = generate_recommendation(streamer, company)
                streamer.ai_summary = text.ai_summary
                streamer.ai_recommendation = text.ai_recommendation
            if streamer.relevance_score is None:
                streamer.relevance_score = scale_relevance(relevance_score(streamer, company))
            pending.append(streamer)

        size = max(settings.BATCH_WRITE_SIZE, 1)
        chunks = [pending[i:i + size] for i in range(0, len(pending), size)]
        updated = 0
        for i, chunk in enumerate(chunks):
            if i > 0:
                self.sleep(settings.BATCH_WRITE_DELAY_SECONDS)
            updated += self.store.commit_analyses(user_id, chunk)
            logger.info(f"Recomputed chunk {i + 1}/{len(chunks)} ({len(chunk)} streamers)")

        return {"success": True, "updatedCount": updated, "batches": len(chunks)}

    def discover(self, user_id: str) -> List[CandidateAnalysis]:
        """Top new candidates from the discovery service, analyzed in one LLM call."""
        data = self.twitch.search_candidates(user_id)
        if not isinstance(data, list):
            raise UpstreamError("Invalid response format from discovery service")
        if not data:
            raise NotFoundError("No streamers found. Please try again later.")

        seen = self.store.history_ids(user_id)
        fresh = []
        for item in data:
            if not isinstance(item, dict) or not item.get("username"):
                raise UpstreamError("Invalid streamer data received")
            if str(item["username"]).lower() not in seen:
                fresh.append(item)
        if not fresh:
            raise NotFoundError("All suggested streamers have already been analyzed. Please try again.")

        top = [
            {"username": item["username"], "probability": item.get("probability")}
            for item in fresh[:settings.MAX_CANDIDATES]
        ]
        return self.gateway.analyze_candidates(top)
