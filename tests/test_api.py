"""
HTTP layer: routes, status mapping and the {"message": ...} error body.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from agents.evaluator import BusyRegistry
from api.main import app
from api import routes
from api.routes import get_services
from utils.pipeline import Services


@pytest.fixture
def services(store, gateway, twitch):
    return Services(store=store, gateway=gateway, twitch=twitch, busy=BusyRegistry())


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


PROFILE = {
    "name": "Displate",
    "description": "Metal posters",
    "industry": "gaming",
    "targetAudience": {"ageRange": "18-34", "interests": ["fps"], "demographics": ["GB"]},
    "adContent": {"description": "Posters", "tone": "playful", "keywords": ["gaming"]},
}


class TestSystem:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_wrong_method(self, client):
        resp = client.get("/api/users/u1/evaluate")
        assert resp.status_code == 405
        assert resp.json() == {"message": "Method not allowed"}

    def test_error_body_documented(self, client):
        schema = client.get("/openapi.json").json()
        assert "ErrorResponse" in schema["components"]["schemas"]
        evaluate = schema["paths"]["/api/users/{uid}/evaluate"]["post"]
        assert "409" in evaluate["responses"]

    def test_cors_origins_from_settings(self, client):
        resp = client.get("/api/health", headers={"Origin": "https://brand.example"})
        assert resp.headers["access-control-allow-origin"] in ("*", "https://brand.example")

    def test_services_built_once_under_concurrency(self, monkeypatch):
        built = []

        def slow_build():
            time.sleep(0.05)
            built.append(object())
            return built[-1]

        monkeypatch.setattr(routes, "_services", None)
        monkeypatch.setattr(routes, "build_services", slow_build)
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: routes.get_services(), range(8)))

        assert len(built) == 1
        assert all(r is built[0] for r in results)


class TestCompanyProfile:
    def test_empty_profile_on_first_visit(self, client):
        resp = client.get("/api/users/u1/company-profile")
        assert resp.status_code == 200
        assert resp.json()["targetAudience"]["interests"] == []

    def test_save_requires_name_and_industry(self, client):
        resp = client.put("/api/users/u1/company-profile", json={"name": "Acme"})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Please fill in company name and industry"}

    def test_save_and_read_back(self, client):
        resp = client.put("/api/users/u1/company-profile", json=PROFILE)
        assert resp.status_code == 200
        assert resp.json()["invalidatedAnalyses"] == 0
        assert client.get("/api/users/u1/company-profile").json() == PROFILE


class TestEvaluation:
    def test_evaluate(self, client, gateway):
        client.put("/api/users/u1/company-profile", json=PROFILE)
        resp = client.post("/api/users/u1/evaluate", json={"username": "https://twitch.tv/Caedrel"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == "caedrel"
        assert body["relevanceScore"] == 0.8
        assert 0 <= body["aiScore"] <= 10
        assert gateway.brand_fit_calls == 1

    def test_invalid_username(self, client):
        resp = client.post("/api/users/u1/evaluate", json={"username": "x!"})
        assert resp.status_code == 400
        assert "valid Twitch username" in resp.json()["message"]

    def test_missing_body_field(self, client):
        resp = client.post("/api/users/u1/evaluate", json={})
        assert resp.status_code == 400
        assert "username" in resp.json()["message"]

    def test_busy(self, client, services):
        with services.busy.hold(("u1", "caedrel")):
            resp = client.post("/api/users/u1/evaluate", json={"username": "caedrel"})
        assert resp.status_code == 409

    def test_analysis_failure_is_500(self, client, gateway):
        gateway.fail_streamer = True
        resp = client.post("/api/users/u1/evaluate", json={"username": "caedrel"})
        assert resp.status_code == 500
        assert resp.json()["message"].startswith("Analysis failed")

    def test_recompute_unknown_is_404(self, client):
        resp = client.post("/api/users/u1/streamers/nobody_here/recompute", json={"useLlm": False})
        assert resp.status_code == 404

    def test_recompute_local(self, client, gateway):
        client.put("/api/users/u1/company-profile", json=PROFILE)
        client.post("/api/users/u1/evaluate", json={"username": "caedrel"})
        resp = client.post("/api/users/u1/streamers/caedrel/recompute", json={"useLlm": False})
        assert resp.status_code == 200
        assert gateway.brand_fit_calls == 1

    def test_recompute_missing(self, client):
        client.post("/api/users/u1/evaluate", json={"username": "caedrel"})
        resp = client.post("/api/users/u1/recompute-missing")
        assert resp.status_code == 200
        assert resp.json()["success"] is True


class TestDashboard:
    def test_streamers_sorted(self, client):
        client.post("/api/users/u1/evaluate", json={"username": "caedrel"})
        resp = client.get("/api/users/u1/streamers", params={"sort": "followers"})
        assert resp.status_code == 200
        assert [s["id"] for s in resp.json()] == ["caedrel"]

    def test_streamers_rescored_after_profile_change(self, client):
        client.put("/api/users/u1/company-profile", json=PROFILE)
        client.post("/api/users/u1/evaluate", json={"username": "caedrel"})
        client.put("/api/users/u1/company-profile", json={"name": "Acme", "industry": "food"})

        [streamer] = client.get("/api/users/u1/streamers").json()
        assert streamer["relevanceScore"] == 0.6

    def test_invalid_sort(self, client):
        resp = client.get("/api/users/u1/streamers", params={"sort": "views"})
        assert resp.status_code == 400

    def test_history(self, client):
        client.post("/api/users/u1/evaluate", json={"username": "caedrel"})
        entries = client.get("/api/users/u1/history").json()
        assert entries[0]["streamerId"] == "caedrel"
        assert entries[0]["lastAnalyzed"] is not None

    def test_find_streamers(self, client, twitch):
        twitch.candidates = [{"username": "alpha_one", "probability": 0.9}]
        resp = client.get("/api/users/u1/find-streamers")
        assert resp.status_code == 200
        assert resp.json()["analyses"][0]["username"] == "alpha_one"

    def test_find_streamers_nothing_new(self, client, twitch):
        twitch.candidates = []
        resp = client.get("/api/users/u1/find-streamers")
        assert resp.status_code == 404


class TestProxies:
    def test_fetch_twitch_data_requires_username(self, client):
        resp = client.get("/api/fetch-twitch-data")
        assert resp.status_code == 400
        assert resp.json() == {"message": "Username is required"}

    def test_fetch_twitch_data(self, client):
        resp = client.get("/api/fetch-twitch-data", params={"username": "caedrel"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "Caedrel"

    def test_analyze_brand_fit(self, client):
        resp = client.post("/api/analyze-brand-fit", json={
            "streamer": {"id": "caedrel", "name": "Caedrel"},
            "company": PROFILE,
        })
        assert resp.status_code == 200
        assert resp.json()["relevanceScore"] == 0.8

    def test_migration_endpoint(self, client):
        resp = client.post("/api/migrate-remove-views")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "updatedCount": 0}
