"""
Streamer Data Mapper — converts third-party and cached records into Streamers.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from models.schemas import CachedStreamer, Streamer, TwitchStreamer

SPONSOR_MARKERS = ("sponsor", "partner")


def sponsors_from_panels(panel_elements: List[str]) -> List[str]:
    """First line of every panel that mentions a sponsor or partner."""
    names = []
    for panel in panel_elements:
        if any(marker in panel.lower() for marker in SPONSOR_MARKERS):
            names.append(panel.split("\n")[0].strip() or "Sponsor")
    return names


def streamer_from_cached(record: CachedStreamer) -> Streamer:
    return Streamer(
        id=record.id,
        name=record.name,
        image=record.image,
        description=record.description,
        tags=list(record.tags),
        categories=[record.game_name] if record.game_name else [],
        sponsors=list(record.sponsors),
        socials=list(record.socials),
        followers=record.followers,
    )


def streamer_from_twitch(raw: TwitchStreamer, username: Optional[str] = None) -> Streamer:
    """Local mapping of a raw record; the base that LLM analysis is overlaid on."""
    tags = [s.platform_name for s in raw.socials if s.platform_name]
    if raw.country_code:
        tags.append(raw.country_code)
    return Streamer(
        id=(username or raw.name).lower(),
        name=raw.name,
        image=raw.image,
        description=raw.description,
        tags=tags,
        categories=[],
        sponsors=sponsors_from_panels(raw.panel_elements),
        socials=list(raw.socials),
        followers=raw.followers,
    )


def merge_analysis(base: Streamer, analysis: Dict[str, Any], username: str) -> Streamer:
    """Overlay an LLM streamer analysis on a base record.

    The cache key, follower count and image always come from the raw record.
    """
    merged = {**base.to_dict(), **{k: v for k, v in analysis.items() if v is not None}}
    merged["id"] = username
    merged["followers"] = base.followers
    if base.image:
        merged["image"] = base.image
    return Streamer.from_dict(merged)


def cached_from_streamer(streamer: Streamer, raw: TwitchStreamer) -> CachedStreamer:
    now = datetime.utcnow().isoformat()
    return CachedStreamer(
        id=streamer.id,
        username=streamer.id,
        name=streamer.name,
        image=streamer.image,
        followers=streamer.followers,
        description=streamer.description,
        language="en",
        created_at=now,
        last_streamed_at=now,
        game_name=streamer.categories[0] if streamer.categories else "",
        tags=list(streamer.tags),
        sponsors=list(streamer.sponsors),
        socials=list(streamer.socials),
        panel_elements=list(raw.panel_elements),
        panel_image_urls=list(raw.panel_image_urls),
        panel_link_urls=list(raw.panel_link_urls),
    )


def twitch_payload_from_cached(record: CachedStreamer) -> Dict[str, Any]:
    """Rebuild the raw-record payload the streamer analysis prompt expects."""
    return TwitchStreamer(
        name=record.name,
        image=record.image,
        followers=record.followers,
        description=record.description,
        socials=list(record.socials),
        panel_elements=list(record.panel_elements),
        panel_image_urls=list(record.panel_image_urls),
        panel_link_urls=list(record.panel_link_urls),
    ).to_dict()
