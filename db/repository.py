"""
Document store over the ORM tables.

Every read normalizes through the dataclasses in `models.schemas`, so callers
always get fully-defaulted records. Every multi-document write goes through a
single transaction: it either commits whole or raises StorageError.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Generator, Iterable, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from agents.errors import StorageError, ValidationError
from db.database import SessionLocal, get_db
from db.models import (
    CompanyProfileDocument, HistoryDocument, StreamerAnalysis, StreamerDocument
)
from models.schemas import (
    AnalysisRecord, CachedStreamer, CompanyProfile, HistoryEntry, Streamer
)

logger = logging.getLogger(__name__)


class DocumentStore:
    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        try:
            with get_db(self.session_factory) as db:
                yield db
        except SQLAlchemyError as e:
            logger.error(f"Store transaction failed: {e}")
            raise StorageError("Store operation failed") from e

    # ─── Global streamer cache ───────────────────────────────────────────

    def get_cached_streamer(self, streamer_id: str) -> Optional[CachedStreamer]:
        with self.transaction() as db:
            doc = db.get(StreamerDocument, streamer_id.lower())
            if doc is None:
                return None
            return CachedStreamer.from_dict({"id": doc.streamer_id, **(doc.data or {})})

    def _put_cached_streamer(self, db: Session, record: CachedStreamer) -> None:
        doc = db.get(StreamerDocument, record.id)
        if doc is None:
            db.add(StreamerDocument(streamer_id=record.id, data=record.to_dict()))
        else:
            doc.data = record.to_dict()

    def save_cached_streamer(self, record: CachedStreamer) -> None:
        with self.transaction() as db:
            self._put_cached_streamer(db, record)

    # ─── Company profile ─────────────────────────────────────────────────

    def get_company_profile(self, user_id: str) -> Optional[CompanyProfile]:
        with self.transaction() as db:
            doc = db.get(CompanyProfileDocument, user_id)
            return CompanyProfile.from_dict(doc.data) if doc is not None else None

    def ensure_company_profile(self, user_id: str) -> CompanyProfile:
        """Read the profile, creating an empty one on first visit."""
        with self.transaction() as db:
            doc = db.get(CompanyProfileDocument, user_id)
            if doc is None:
                profile = CompanyProfile()
                db.add(CompanyProfileDocument(user_id=user_id, data=profile.to_dict()))
                logger.info(f"Created empty company profile for user {user_id}")
                return profile
            return CompanyProfile.from_dict(doc.data)

    def save_company_profile(self, user_id: str, profile: CompanyProfile) -> int:
        """
        Overwrite the profile and drop the user's cached analyses, which were
        scored against the old one. Returns the number of analyses dropped.
        """
        if not profile.name.strip() or not profile.industry.strip():
            raise ValidationError("Please fill in company name and industry")

        with self.transaction() as db:
            doc = db.get(CompanyProfileDocument, user_id)
            if doc is None:
                db.add(CompanyProfileDocument(user_id=user_id, data=profile.to_dict()))
            else:
                doc.data = profile.to_dict()
            dropped = (
                db.query(StreamerAnalysis)
                .filter(StreamerAnalysis.user_id == user_id)
                .delete(synchronize_session=False)
            )
        logger.info(f"Saved company profile for user {user_id}; invalidated {dropped} analyses")
        return dropped

    # ─── Analyses + history ──────────────────────────────────────────────

    @staticmethod
    def _to_record(row: StreamerAnalysis) -> AnalysisRecord:
        return AnalysisRecord(
            user_id=row.user_id,
            streamer_id=row.streamer_id,
            ai_score=row.ai_score,
            relevance_score=row.relevance_score,
            ai_summary=row.ai_summary or "",
            ai_recommendation=row.ai_recommendation or "",
            updated_at=row.updated_at,
        )

    def get_analysis(self, user_id: str, streamer_id: str) -> Optional[AnalysisRecord]:
        with self.transaction() as db:
            row = db.get(StreamerAnalysis, (user_id, streamer_id.lower()))
            return self._to_record(row) if row is not None else None

    def list_analyses(self, user_id: str) -> List[AnalysisRecord]:
        with self.transaction() as db:
            rows = db.query(StreamerAnalysis).filter(StreamerAnalysis.user_id == user_id).all()
            return [self._to_record(r) for r in rows]

    def _put_analysis(self, db: Session, record: AnalysisRecord) -> None:
        row = db.get(StreamerAnalysis, (record.user_id, record.streamer_id))
        if row is None:
            row = StreamerAnalysis(user_id=record.user_id, streamer_id=record.streamer_id)
            db.add(row)
        row.ai_score = record.ai_score
        row.relevance_score = record.relevance_score
        row.ai_summary = record.ai_summary or None
        row.ai_recommendation = record.ai_recommendation or None
        row.updated_at = record.updated_at or datetime.utcnow()

    def _put_history(self, db: Session, user_id: str, entry: HistoryEntry) -> None:
        row = db.get(HistoryDocument, (user_id, entry.streamer_id))
        if row is None:
            row = HistoryDocument(user_id=user_id, streamer_id=entry.streamer_id)
            db.add(row)
        row.data = entry.to_dict()
        row.last_analyzed = entry.last_analyzed or datetime.utcnow()

    def commit_evaluation(
        self,
        user_id: str,
        streamer: Streamer,
        cached: Optional[CachedStreamer] = None,
    ) -> AnalysisRecord:
        """Analysis record, history entry and (optionally) raw cache in one write."""
        record = AnalysisRecord.from_streamer(user_id, streamer)
        with self.transaction() as db:
            if cached is not None:
                self._put_cached_streamer(db, cached)
            self._put_analysis(db, record)
            self._put_history(db, user_id, HistoryEntry.from_streamer(streamer))
        return record

    def commit_analyses(self, user_id: str, streamers: Iterable[Streamer]) -> int:
        """Write a chunk of analyses + history entries in one transaction."""
        count = 0
        with self.transaction() as db:
            for streamer in streamers:
                self._put_analysis(db, AnalysisRecord.from_streamer(user_id, streamer))
                self._put_history(db, user_id, HistoryEntry.from_streamer(streamer))
                count += 1
        return count

    def list_history(self, user_id: str) -> List[HistoryEntry]:
        with self.transaction() as db:
            rows = (
                db.query(HistoryDocument)
                .filter(HistoryDocument.user_id == user_id)
                .order_by(HistoryDocument.last_analyzed.desc())
                .all()
            )
            return [
                HistoryEntry.from_dict({"streamerId": r.streamer_id, **(r.data or {})})
                for r in rows
            ]

    def history_ids(self, user_id: str) -> Set[str]:
        with self.transaction() as db:
            rows = db.query(HistoryDocument.streamer_id).filter(HistoryDocument.user_id == user_id).all()
            return {r[0].lower() for r in rows}

    def list_evaluated(self, user_id: str) -> List[Streamer]:
        """Every streamer in the user's history, merged with its cached data and analysis.

        Relevance only comes from the analysis record: history keeps the score
        computed against whatever profile was current at the time.
        """
        analyses: Dict[str, AnalysisRecord] = {a.streamer_id: a for a in self.list_analyses(user_id)}
        streamers = []
        for entry in self.list_history(user_id):
            cached = self.get_cached_streamer(entry.streamer_id)
            base = {
                "id": entry.streamer_id,
                "name": entry.name,
                "image": entry.image,
                "followers": entry.followers,
                "categories": entry.categories,
                "tags": entry.tags,
                "sponsors": entry.sponsors,
                "aiScore": entry.ai_score,
            }
            if cached is not None:
                base["description"] = cached.description
                base["socials"] = [s.to_dict() for s in cached.socials]
            streamer = Streamer.from_dict(base)
            analysis = analyses.get(entry.streamer_id)
            if analysis is not None:
                streamer.with_analysis(analysis)
            streamers.append(streamer)
        return streamers
