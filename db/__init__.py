from .database import init_db, get_db, make_engine, engine, SessionLocal
from .models import (
    Base, StreamerDocument, CompanyProfileDocument, StreamerAnalysis, HistoryDocument
)
from .repository import DocumentStore

__all__ = [
    "init_db", "get_db", "make_engine", "engine", "SessionLocal",
    "Base", "StreamerDocument", "CompanyProfileDocument", "StreamerAnalysis",
    "HistoryDocument", "DocumentStore",
]
