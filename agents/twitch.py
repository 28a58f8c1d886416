"""
Twitch Data Client
-------------------
Fetches raw streamer records and discovery candidates from the third-party
Twitch data service.

When a record arrives without social links, they are recovered from the
streamer's panel HTML (first match per platform).
"""

import logging
import re
from typing import Any, Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from agents.errors import UpstreamError
from config.settings import settings

logger = logging.getLogger(__name__)

SOCIAL_PATTERNS = [
    (re.compile(r"twitter\.com/([^\"'\s<>]+)", re.I), "Twitter"),
    (re.compile(r"instagram\.com/([^\"'\s<>]+)", re.I), "Instagram"),
    (re.compile(r"youtube\.com/([^\"'\s<>]+)", re.I), "YouTube"),
    (re.compile(r"discord\.gg/([^\"'\s<>]+)", re.I), "Discord"),
    (re.compile(r"patreon\.com/([^\"'\s<>]+)", re.I), "Patreon"),
]


def _panel_fragments(panel: str) -> List[str]:
    """Link targets plus visible text of one panel element."""
    soup = BeautifulSoup(panel, "html.parser")
    hrefs = [a.get("href", "") for a in soup.find_all("a")]
    return [h for h in hrefs if h] + [soup.get_text(" ")]


def extract_social_links(panel_elements: List[str]) -> List[Dict[str, str]]:
    socials: List[Dict[str, str]] = []
    seen = set()
    for panel in panel_elements:
        for fragment in _panel_fragments(panel):
            for pattern, platform in SOCIAL_PATTERNS:
                if platform in seen:
                    continue
                match = pattern.search(fragment)
                if not match:
                    continue
                link = match.group(0)
                socials.append({
                    "link": link if link.startswith("http") else f"https://{link}",
                    "platformName": platform,
                })
                seen.add(platform)
    return socials


class TwitchDataClient:
    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": settings.USER_AGENT})

    def _get(self, url: str, **kwargs) -> requests.Response:
        try:
            resp = self.session.get(url, timeout=settings.REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise UpstreamError(f"Failed to reach {url}") from e
        if not resp.ok:
            logger.error(f"{url} returned {resp.status_code}: {resp.text[:300]}")
            raise UpstreamError(f"Upstream error: {resp.status_code} {resp.reason or ''}".strip())
        return resp

    def fetch_streamer(self, username: str) -> Dict[str, Any]:
        """Raw record for one username, with socials filled from panels if missing."""
        resp = self._get(f"{settings.TWITCH_DATA_URL.rstrip('/')}/streamer/{username}")
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError("Twitch data service returned invalid JSON") from e
        if not isinstance(data, dict):
            raise UpstreamError("Twitch data service returned an unexpected payload")

        if not data.get("socials"):
            data["socials"] = extract_social_links(data.get("panelElements") or [])
            logger.debug(f"Recovered {len(data['socials'])} social links for {username} from panels")
        return data

    def search_candidates(self, user_id: str) -> Any:
        """Discovery candidates for a user, passed through as returned."""
        resp = self._get(
            f"{settings.STREAMER_SEARCH_URL.rstrip('/')}/streamerSearch/{user_id}",
            headers={
                "Accept": "application/json",
                "ngrok-skip-browser-warning": "true",
            },
        )
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError("Discovery service returned invalid JSON") from e
