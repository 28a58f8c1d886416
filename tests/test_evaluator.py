"""
Evaluation orchestrator: resolution order, caching, failure handling,
recompute, batch recompute and discovery.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from agents.errors import AnalysisFailedError, BusyError, NotFoundError, UpstreamError, ValidationError
from agents.evaluator import EvaluationState, extract_twitch_username
from agents.scorer import reach_score
from config.settings import settings
from models.schemas import CompanyProfile, Streamer


# ─── Username parsing ────────────────────────────────────────────────────────

class TestUsernameParsing:
    @pytest.mark.parametrize("value,expected", [
        ("Caedrel", "caedrel"),
        ("  caedrel ", "caedrel"),
        ("twitch.tv/Caedrel", "caedrel"),
        ("https://www.twitch.tv/caedrel/videos", "caedrel"),
        ("https://www.twitch.tv/caedrel", "caedrel"),
        ("abc", None),
        ("bad-name", None),
        ("x" * 26, None),
        ("", None),
    ])
    def test_extract(self, value, expected):
        assert extract_twitch_username(value) == expected

    def test_invalid_username_rejected_before_network(self, orchestrator, twitch):
        with pytest.raises(ValidationError):
            orchestrator.evaluate("u1", "no!")
        assert twitch.fetch_calls == []
        assert orchestrator.state == EvaluationState.IDLE


# ─── Evaluate ────────────────────────────────────────────────────────────────

class TestEvaluate:
    def test_fresh_evaluation_without_company(self, orchestrator, store, gateway, twitch):
        streamer = orchestrator.evaluate("u1", "Caedrel")

        assert twitch.fetch_calls == ["caedrel"]
        assert gateway.streamer_calls == 1
        assert gateway.brand_fit_calls == 0
        assert orchestrator.state == EvaluationState.DONE
        assert orchestrator.evaluation is streamer

        # reach is always local, never the LLM's number
        assert streamer.ai_score == reach_score(streamer)
        assert streamer.ai_score != 9.9

        cached = store.get_cached_streamer("caedrel")
        assert cached is not None
        assert cached.game_name == "Gaming"
        assert store.get_analysis("u1", "caedrel").ai_score == streamer.ai_score
        assert store.history_ids("u1") == {"caedrel"}

    def test_brand_fit_called_when_company_exists(self, orchestrator, store, gateway, company):
        store.save_company_profile("u1", company)
        streamer = orchestrator.evaluate("u1", "caedrel")
        assert gateway.brand_fit_calls == 1
        assert streamer.relevance_score == 0.8
        assert streamer.ai_summary == "Caedrel for Displate"

    def test_empty_profile_treated_as_missing(self, orchestrator, store, gateway):
        store.ensure_company_profile("u1")
        orchestrator.evaluate("u1", "caedrel")
        assert gateway.brand_fit_calls == 0

    def test_cached_analysis_skips_gateway(self, orchestrator, store, gateway, twitch, company):
        store.save_company_profile("u1", company)
        first = orchestrator.evaluate("u1", "caedrel")
        second = orchestrator.evaluate("u1", "caedrel")

        assert gateway.streamer_calls == 1
        assert gateway.brand_fit_calls == 1
        assert twitch.fetch_calls == ["caedrel"]
        assert second.relevance_score == first.relevance_score
        assert second.ai_summary == first.ai_summary

    def test_raw_cache_shared_between_users(self, orchestrator, gateway, twitch):
        orchestrator.evaluate("u1", "caedrel")
        orchestrator.evaluate("u2", "caedrel")
        assert twitch.fetch_calls == ["caedrel"]
        assert gateway.streamer_calls == 2

    def test_profile_save_invalidates_analyses(self, orchestrator, store, gateway, company):
        orchestrator.evaluate("u1", "caedrel")
        assert store.save_company_profile("u1", company) == 1
        assert store.get_analysis("u1", "caedrel") is None

        orchestrator.evaluate("u1", "caedrel")
        assert gateway.streamer_calls == 2
        assert gateway.brand_fit_calls == 1

    def test_malformed_reply_keeps_previous_evaluation(self, orchestrator, store, gateway, company):
        store.save_company_profile("u1", company)
        first = orchestrator.evaluate("u1", "caedrel")
        before = store.get_analysis("u1", "caedrel")

        gateway.fail_brand_fit = True
        with pytest.raises(AnalysisFailedError):
            orchestrator.recompute("u1", "caedrel")

        assert orchestrator.evaluation is first
        assert orchestrator.state == EvaluationState.IDLE
        assert "could not parse" in orchestrator.error
        assert store.get_analysis("u1", "caedrel") == before

    def test_failed_fresh_evaluation_writes_nothing(self, orchestrator, store, gateway):
        gateway.fail_streamer = True
        with pytest.raises(AnalysisFailedError):
            orchestrator.evaluate("u1", "caedrel")

        assert store.get_cached_streamer("caedrel") is None
        assert store.get_analysis("u1", "caedrel") is None
        assert store.list_history("u1") == []
        assert orchestrator.evaluation is None

    def test_busy_entity_rejected(self, orchestrator):
        with orchestrator.busy.hold(("u1", "caedrel")):
            with pytest.raises(BusyError):
                orchestrator.evaluate("u1", "caedrel")
        assert not orchestrator.busy.is_busy(("u1", "caedrel"))

    def test_other_entities_not_blocked(self, orchestrator):
        with orchestrator.busy.hold(("u1", "someone_else")):
            assert orchestrator.evaluate("u1", "caedrel").id == "caedrel"


# ─── Recompute ───────────────────────────────────────────────────────────────

class TestRecompute:
    def test_unknown_streamer(self, orchestrator):
        with pytest.raises(NotFoundError):
            orchestrator.recompute("u1", "nobody_here")

    def test_llm_recompute_calls_gateway_again(self, orchestrator, store, gateway, company):
        store.save_company_profile("u1", company)
        orchestrator.evaluate("u1", "caedrel")
        gateway.relevance = 0.3

        streamer = orchestrator.recompute("u1", "caedrel")
        assert gateway.brand_fit_calls == 2
        assert streamer.relevance_score == 0.3
        assert store.get_analysis("u1", "caedrel").relevance_score == 0.3

    def test_local_recompute(self, orchestrator, store, gateway, company):
        store.save_company_profile("u1", company)
        orchestrator.evaluate("u1", "caedrel")

        streamer = orchestrator.recompute("u1", "caedrel", use_llm=False)
        assert gateway.brand_fit_calls == 1
        assert 0.0 <= streamer.relevance_score <= 1.0
        assert streamer.ai_recommendation.startswith("For Displate (gaming): ")

    def test_recompute_without_company_is_local(self, orchestrator, gateway):
        orchestrator.evaluate("u1", "caedrel")
        streamer = orchestrator.recompute("u1", "caedrel")
        assert gateway.brand_fit_calls == 0
        assert streamer.relevance_score is not None


# ─── Profile change ──────────────────────────────────────────────────────────

class TestProfileChange:
    @pytest.fixture
    def food_company(self):
        return CompanyProfile.from_dict({"name": "Acme", "industry": "food"})

    def test_dashboard_drops_scores_from_previous_profile(self, orchestrator, store, company, food_company):
        store.save_company_profile("u1", company)
        orchestrator.evaluate("u1", "caedrel")
        store.save_company_profile("u1", food_company)

        [stored] = store.list_evaluated("u1")
        assert stored.relevance_score is None

        # base 5 + "high" in the description; nothing else matches food
        [shown] = orchestrator.dashboard("u1")
        assert shown.relevance_score == 0.6
        assert store.get_analysis("u1", "caedrel") is None

    def test_recompute_missing_scores_against_current_profile(self, orchestrator, store, company, food_company):
        store.save_company_profile("u1", company)
        orchestrator.evaluate("u1", "caedrel")
        store.save_company_profile("u1", food_company)

        result = orchestrator.recompute_missing("u1")

        assert result["updatedCount"] == 1
        record = store.get_analysis("u1", "caedrel")
        assert record.relevance_score == 0.6
        assert record.ai_recommendation.startswith("For Acme (food): ")

    def test_dashboard_keeps_stored_analysis(self, orchestrator, store, company):
        store.save_company_profile("u1", company)
        orchestrator.evaluate("u1", "caedrel")
        assert orchestrator.dashboard("u1")[0].relevance_score == 0.8


# ─── Batch recompute ─────────────────────────────────────────────────────────

class TestRecomputeMissing:
    def test_fills_missing_fields_in_chunks(self, orchestrator, store, sleeps, monkeypatch):
        monkeypatch.setattr(settings, "BATCH_WRITE_SIZE", 2)
        for name in ("alpha_one", "bravo_two", "charlie_three"):
            store.commit_evaluation("u1", Streamer(id=name, name=name, followers=1000))
        store.commit_evaluation("u1", Streamer(
            id="complete_one", ai_score=6.0, relevance_score=0.5, ai_summary="S", ai_recommendation="R",
        ))

        result = orchestrator.recompute_missing("u1")

        assert result == {"success": True, "updatedCount": 3, "batches": 2}
        assert sleeps == [settings.BATCH_WRITE_DELAY_SECONDS]
        record = store.get_analysis("u1", "alpha_one")
        assert record.is_complete
        assert store.get_analysis("u1", "complete_one").ai_summary == "S"
        assert store.get_analysis("u1", "complete_one").relevance_score == 0.5

    def test_nothing_missing(self, orchestrator, sleeps):
        assert orchestrator.recompute_missing("u1") == {"success": True, "updatedCount": 0, "batches": 0}
        assert sleeps == []


# ─── Discovery ───────────────────────────────────────────────────────────────

class TestDiscover:
    def test_skips_history_and_takes_top_three(self, orchestrator, twitch, gateway):
        orchestrator.evaluate("u1", "caedrel")
        twitch.candidates = [
            {"username": "Caedrel", "probability": 0.99},
            {"username": "alpha_one", "probability": 0.9},
            {"username": "bravo_two", "probability": 0.8},
            {"username": "charlie_three", "probability": 0.7},
            {"username": "delta_four", "probability": 0.6},
        ]
        analyses = orchestrator.discover("u1")

        sent = gateway.candidate_calls[0]
        assert [c["username"] for c in sent] == ["alpha_one", "bravo_two", "charlie_three"]
        assert [a.username for a in analyses] == ["alpha_one", "bravo_two", "charlie_three"]

    def test_empty_list(self, orchestrator, twitch):
        twitch.candidates = []
        with pytest.raises(NotFoundError):
            orchestrator.discover("u1")

    def test_non_list(self, orchestrator, twitch):
        twitch.candidates = {"error": "down"}
        with pytest.raises(UpstreamError):
            orchestrator.discover("u1")

    def test_all_already_analyzed(self, orchestrator, twitch):
        orchestrator.evaluate("u1", "caedrel")
        twitch.candidates = [{"username": "caedrel", "probability": 0.9}]
        with pytest.raises(NotFoundError):
            orchestrator.discover("u1")
