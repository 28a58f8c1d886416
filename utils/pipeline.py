"""
Service wiring — builds the store, clients and orchestrator from settings.

Architecture:
  TwitchDataClient ─┐
  AnalysisGateway ──┼─→ EvaluationOrchestrator ─→ DocumentStore (SQLAlchemy)
  BusyRegistry ─────┘
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from agents.evaluator import BusyRegistry, EvaluationOrchestrator
from agents.gateway import AnalysisGateway
from agents.twitch import TwitchDataClient
from db.database import SessionLocal
from db.repository import DocumentStore
from models.schemas import Streamer
from utils.formatting import format_number, format_score, relevance_color, score_color
from utils.ranking import sort_streamers

logger = logging.getLogger(__name__)


@dataclass
class Services:
    store: DocumentStore
    gateway: AnalysisGateway
    twitch: TwitchDataClient
    busy: BusyRegistry

    def orchestrator(self) -> EvaluationOrchestrator:
        """A fresh evaluation session sharing this process's busy flags."""
        return EvaluationOrchestrator(
            store=self.store,
            gateway=self.gateway,
            twitch=self.twitch,
            busy=self.busy,
        )


def build_services(session_factory: Optional[sessionmaker] = None) -> Services:
    return Services(
        store=DocumentStore(session_factory or SessionLocal),
        gateway=AnalysisGateway(),
        twitch=TwitchDataClient(),
        busy=BusyRegistry(),
    )


def evaluate_usernames(
    services: Services,
    user_id: str,
    usernames: List[str],
    sort: str = "relevance",
) -> List[Streamer]:
    """
    Evaluate several usernames in sequence for one user. Failures are
    logged and skipped so one bad username does not sink the batch.
    """
    results: List[Streamer] = []
    for username in usernames:
        orchestrator = services.orchestrator()
        try:
            results.append(orchestrator.evaluate(user_id, username))
        except Exception as e:
            logger.error(f"❌ Evaluation of '{username}' failed: {e}")
    return sort_streamers(results, sort)


def report_rows(streamers: List[Streamer]) -> List[Dict[str, Any]]:
    """Flat rows for the CLI report."""
    return [
        {
            "rank": i,
            "streamer": s.name or s.id,
            "followers": format_number(s.followers),
            "reach": format_score(s.ai_score),
            "reach_color": score_color(s.ai_score),
            "brand_fit": format_score(s.relevance_score * 10 if s.relevance_score is not None else None),
            "brand_fit_color": relevance_color(s.relevance_score),
            "summary": s.ai_summary,
        }
        for i, s in enumerate(streamers, 1)
    ]
