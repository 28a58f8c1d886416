"""
External Analysis Gateway
--------------------------
Sends streamer / company data to the LLM messages endpoint and normalizes the
JSON reply into the same shape the local calculators produce.

Three request shapes:
  - analyze_brand_fit(streamer, company)  → BrandFitAnalysis (relevance 0–1)
  - analyze_candidates([{username, probability}])  → List[CandidateAnalysis]
  - analyze_streamer(raw_twitch_record)  → Streamer-shaped dict

Any failure (transport, non-2xx, unparseable JSON, missing fields) raises
AnalysisFailedError. Nothing is retried and nothing is persisted here.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from agents.errors import AnalysisFailedError, ValidationError
from config.settings import settings
from models.schemas import CompanyProfile, Streamer

logger = logging.getLogger(__name__)


# ─── Prompts ─────────────────────────────────────────────────────────────────

BRAND_FIT_PROMPT = """You are a brand partnership analyst specializing in influencer marketing and Twitch streaming. Analyze this streamer's fit for the company and provide a detailed brand partnership analysis.

Streamer Data:
{streamer}

Company Profile:
{company}

Provide a JSON response with three fields:
1. "aiSummary": A concise one-sentence overview of the streamer's key metrics and content focus
2. "aiRecommendation": A brief analysis of around 120 words covering audience alignment, content synergy, partnership potential, risk factors and ROI potential based on reach and engagement
3. "brandFitScore": A score from 0 to 10 (one decimal place allowed) representing how well this streamer fits the brand, considering audience match, content alignment, engagement and reach, brand safety and tone match. Base it on expert analysis, not a simple algorithm.

Do not use bullet points; write continuous, natural prose.

Return ONLY the JSON object with these three fields, no other text. Each field is a STRING except brandFitScore, which is a NUMBER."""

CANDIDATES_PROMPT = """You are a brand partnership analyst specializing in Twitch streaming and influencer marketing. Analyze the following Twitch streamers for potential brand partnerships.

For each streamer provide:
1. A concise summary of their potential value as a brand partner
2. Specific partnership recommendations and campaign ideas
3. A relevance score from 0 to 1 (up to 2 decimal places) for their overall brand partnership potential

Streamers:
{streamers}

Respond in this JSON format:
{{"analyses": [{{"username": "streamer1", "aiSummary": "...", "aiRecommendation": "...", "relevanceScore": 0.85}}]}}

Consider audience engagement and demographics, content style and brand safety, partnership history, potential ROI and reach, and unique niches.

Return ONLY the JSON object with no additional text. Do not include newlines or double quotes inside field values; use single quotes."""

STREAMER_PROMPT = """Analyze this Twitch streamer data and provide an evaluation. Return ONLY a JSON object (no other text) with these fields:

{{
  "id": string,
  "name": string,
  "description": string,
  "tags": string[],
  "categories": string[],
  "sponsors": string[],
  "aiSummary": string,
  "aiScore": number (0-10),
  "aiRecommendation": string,
  "followers": number,
  "socials": [{{"link": string, "platformName": string}}]
}}

Streamer data:
{twitch}

Focus on brand collaborations and audience engagement. Extract categories and tags from their content. If no sponsors are detected, return an empty array for sponsors."""


# ─── Results ─────────────────────────────────────────────────────────────────


@dataclass
class BrandFitAnalysis:
    ai_summary: str
    ai_recommendation: str
    relevance_score: float          # 0–1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aiSummary": self.ai_summary,
            "aiRecommendation": self.ai_recommendation,
            "relevanceScore": self.relevance_score,
        }


@dataclass
class CandidateAnalysis:
    username: str
    ai_summary: str
    ai_recommendation: str
    relevance_score: float          # 0–1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "aiSummary": self.ai_summary,
            "aiRecommendation": self.ai_recommendation,
            "relevanceScore": self.relevance_score,
        }


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ─── Gateway ─────────────────────────────────────────────────────────────────


class AnalysisGateway:
    """Thin client for the LLM messages endpoint."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "anthropic-version": settings.LLM_API_VERSION,
        })

    def _complete(self, prompt: str, max_tokens: Optional[int] = None) -> Any:
        """Send one prompt and return the reply text parsed as JSON."""
        body = {
            "model": settings.LLM_MODEL,
            "max_tokens": max_tokens or settings.LLM_MAX_TOKENS,
            "messages": [{"role": "user", "content": prompt}],
        }
        try:
            resp = self.session.post(
                settings.LLM_API_URL,
                json=body,
                headers={"x-api-key": settings.LLM_API_KEY},
                timeout=settings.REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error(f"LLM request failed: {e}")
            raise AnalysisFailedError("Analysis failed: LLM service unreachable") from e

        if not resp.ok:
            logger.error(f"LLM API error {resp.status_code}: {resp.text[:500]}")
            raise AnalysisFailedError(f"Analysis failed: LLM returned HTTP {resp.status_code}")

        try:
            text = resp.json()["content"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AnalysisFailedError("Analysis failed: unexpected LLM response envelope") from e

        try:
            return json.loads(text.strip())
        except (json.JSONDecodeError, AttributeError) as e:
            logger.error(f"LLM did not return valid JSON. Raw response:\n{str(text)[:500]}")
            raise AnalysisFailedError("Analysis failed: could not parse analysis response") from e

    def analyze_brand_fit(self, streamer: Streamer, company: CompanyProfile) -> BrandFitAnalysis:
        prompt = BRAND_FIT_PROMPT.format(
            streamer=json.dumps(streamer.to_dict(), indent=2),
            company=json.dumps(company.to_dict(), indent=2),
        )
        logger.info(f"Requesting brand-fit analysis for {streamer.id} / {company.name}")
        reply = self._complete(prompt)

        if not isinstance(reply, dict):
            raise AnalysisFailedError("Analysis failed: brand-fit reply is not an object")
        summary = reply.get("aiSummary")
        recommendation = reply.get("aiRecommendation")
        score = _number(reply.get("brandFitScore"))
        if not summary or not recommendation or score is None:
            raise AnalysisFailedError("Analysis failed: brand-fit reply is missing required fields")

        return BrandFitAnalysis(
            ai_summary=str(summary),
            ai_recommendation=str(recommendation),
            relevance_score=round(_clamp(score, 0.0, 10.0) / 10.0, 3),
        )

    def analyze_candidates(self, candidates: List[Dict[str, Any]]) -> List[CandidateAnalysis]:
        if not candidates:
            raise ValidationError("At least one streamer is required")
        if len(candidates) > settings.MAX_CANDIDATES:
            raise ValidationError(f"At most {settings.MAX_CANDIDATES} streamers can be analyzed at once")

        lines = "\n".join(
            f"Streamer {i}: {c.get('username')}\nInitial Match Score: {c.get('probability')}"
            for i, c in enumerate(candidates, 1)
        )
        logger.info(f"Requesting candidate analysis for {len(candidates)} streamers")
        reply = self._complete(CANDIDATES_PROMPT.format(streamers=lines), max_tokens=999)

        analyses = reply.get("analyses") if isinstance(reply, dict) else None
        if not isinstance(analyses, list):
            raise AnalysisFailedError("Analysis failed: invalid analysis format")

        results = []
        for item in analyses:
            if not isinstance(item, dict):
                continue
            score = _number(item.get("relevanceScore"))
            results.append(CandidateAnalysis(
                username=str(item.get("username") or ""),
                ai_summary=str(item.get("aiSummary") or ""),
                ai_recommendation=str(item.get("aiRecommendation") or ""),
                relevance_score=_clamp(score, 0.0, 1.0) if score is not None else 0.0,
            ))
        return results

    def analyze_streamer(self, twitch_data: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(f"Requesting streamer analysis for {twitch_data.get('name')}")
        reply = self._complete(
            STREAMER_PROMPT.format(twitch=json.dumps(twitch_data, indent=2)),
            max_tokens=999,
        )
        if not isinstance(reply, dict):
            raise AnalysisFailedError("Analysis failed: streamer reply is not an object")
        return {**reply, "image": twitch_data.get("image", "")}
