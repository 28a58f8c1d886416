"""
Legacy field migrations.

Each migration walks a document table, rewrites the documents that still
carry an old field shape, and commits in chunks of BATCH_WRITE_SIZE with a
fixed pause between chunks. Returns {"success": True, "updatedCount": n}.
"""

import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional

from sqlalchemy.orm import sessionmaker

from config.settings import settings
from db.database import SessionLocal
from db.models import HistoryDocument, StreamerDocument

logger = logging.getLogger(__name__)

Rewrite = Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]


def _migrate(
    tables: Iterable,
    rewrite: Rewrite,
    label: str,
    session_factory: sessionmaker = SessionLocal,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    size = max(settings.BATCH_WRITE_SIZE, 1)
    updated = 0
    pending = 0
    chunks = 0

    db = session_factory()
    try:
        for table in tables:
            for doc in db.query(table).all():
                new_data = rewrite(dict(doc.data or {}))
                if new_data is None:
                    continue
                # Reassign so the JSON column is flagged dirty.
                doc.data = new_data
                updated += 1
                pending += 1
                if pending >= size:
                    db.commit()
                    chunks += 1
                    pending = 0
                    sleep(settings.BATCH_WRITE_DELAY_SECONDS)
        if pending:
            db.commit()
            chunks += 1
    except Exception:
        db.rollback()
        logger.error(f"❌ Migration '{label}' failed after {updated} updates")
        raise
    finally:
        db.close()

    logger.info(f"✅ Migration '{label}' completed. Updated {updated} documents in {chunks} chunks.")
    return {"success": True, "updatedCount": updated}


# ─── Rewrites ────────────────────────────────────────────────────────────────


def _image_field(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if "profileImageUrl" not in data:
        return None
    legacy = data.pop("profileImageUrl")
    if legacy and not data.get("image"):
        data["image"] = legacy
    return data


def _game_and_sponsors(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    changed = False
    if "streamGame" in data:
        data["game_name"] = data.pop("streamGame")
        changed = True
    sponsors = data.get("sponsors")
    if isinstance(sponsors, list) and any(isinstance(s, dict) for s in sponsors):
        data["sponsors"] = [
            s.get("name", "") if isinstance(s, dict) else s for s in sponsors
        ]
        changed = True
    return data if changed else None


def _display_name(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if "displayName" not in data:
        return None
    data["name"] = data.pop("displayName")
    return data


def _views(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if "views" not in data:
        return None
    data.pop("views")
    return data


# ─── Public migrations ───────────────────────────────────────────────────────


def migrate_image_field(session_factory: sessionmaker = SessionLocal, sleep=time.sleep) -> Dict[str, Any]:
    """profileImageUrl → image on cached streamers."""
    return _migrate([StreamerDocument], _image_field, "image-field", session_factory, sleep)


def migrate_game_and_sponsors(session_factory: sessionmaker = SessionLocal, sleep=time.sleep) -> Dict[str, Any]:
    """streamGame → game_name, sponsor objects → sponsor names."""
    return _migrate([StreamerDocument], _game_and_sponsors, "game-and-sponsors", session_factory, sleep)


def migrate_display_name(session_factory: sessionmaker = SessionLocal, sleep=time.sleep) -> Dict[str, Any]:
    """displayName → name on cached streamers and history entries."""
    return _migrate(
        [StreamerDocument, HistoryDocument], _display_name, "display-name", session_factory, sleep
    )


def remove_views(session_factory: sessionmaker = SessionLocal, sleep=time.sleep) -> Dict[str, Any]:
    return _migrate(
        [StreamerDocument, HistoryDocument], _views, "remove-views", session_factory, sleep
    )


MIGRATIONS = {
    "image-field": migrate_image_field,
    "game-and-sponsors": migrate_game_and_sponsors,
    "display-name": migrate_display_name,
    "remove-views": remove_views,
}
