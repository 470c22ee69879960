"""
HTTP contract tests for the FastAPI app.
"""

from unittest.mock import MagicMock

import pytest

from review_router.application import GenerationResult, GenerationService
from review_router.domain import UpstreamError, ValidationError
from review_router.web.app import app, get_generation_service


# ---------------------------------------------------------------------------
# /config
# ---------------------------------------------------------------------------


class TestConfigEndpoint:
    def test_get_returns_defaults_when_store_empty(self, client):
        response = client.get("/config")
        assert response.status_code == 200
        data = response.json()
        assert data["labels"] == {"beginner": "初級", "intermediate": "中級", "advanced": "上級"}
        assert all(tier == {"links": [], "nextIndex": 0} for tier in data["tiers"].values())
        assert data["updatedAt"] is None

    def test_get_returns_defaults_when_store_unavailable(self, client, store):
        store.fail_reads = True
        response = client.get("/config")
        assert response.status_code == 200
        assert response.json()["tiers"]["advanced"]["links"] == []

    def test_get_has_cors_headers(self, client):
        response = client.get("/config")
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET,POST,OPTIONS"

    def test_post_saves_and_returns_config(self, client, store):
        response = client.post("/config", json={"tiers": {"beginner": {"links": []}}})
        assert response.status_code == 200
        assert response.json()["tiers"]["beginner"]["nextIndex"] == 0
        assert response.json()["updatedAt"]
        assert store.stored_config() == response.json()

    def test_post_negative_pointer_saves_as_zero(self, client, store):
        response = client.post("/config", json={"tiers": {"beginner": {"links": ["a", "b", "c"], "nextIndex": -1}}})
        assert response.status_code == 200
        assert response.json()["tiers"]["beginner"]["nextIndex"] == 0
        assert store.stored_config()["tiers"]["beginner"]["nextIndex"] == 0

    def test_post_empty_body_rejected(self, client):
        response = client.post("/config", content=b"")
        assert response.status_code == 400
        assert response.json() == {"message": "リクエストボディが空です。"}

    def test_post_malformed_json_rejected(self, client):
        response = client.post("/config", content=b"{oops", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json() == {"message": "JSON形式が正しくありません。"}

    def test_post_non_object_rejected(self, client):
        response = client.post("/config", json=["not", "an", "object"])
        assert response.status_code == 400
        assert response.json() == {"message": "設定が見つかりません。"}

    def test_post_write_failure_is_500(self, client, store):
        store.fail_writes = True
        response = client.post("/config", json={"labels": {"beginner": "x"}})
        assert response.status_code == 500
        assert "message" in response.json()

    def test_unsupported_method_is_405(self, client):
        response = client.delete("/config")
        assert response.status_code == 405
        assert response.json() == {"message": "許可されていないHTTPメソッドです。"}
        assert "GET" in response.headers["allow"]

    def test_options_preflight(self, client):
        response = client.options("/config")
        assert response.status_code == 204
        assert response.headers["access-control-allow-headers"] == "Content-Type"


# ---------------------------------------------------------------------------
# /distribute
# ---------------------------------------------------------------------------


class TestDistributeEndpoint:
    def test_round_robin_over_http(self, client, store):
        store.put_config({"tiers": {"beginner": {"links": ["a", "b", "c"], "nextIndex": 2}}})

        first = client.post("/distribute", json={"tier": "beginner"})
        assert first.status_code == 200
        assert first.json() == {"url": "c", "tier": "beginner", "label": "初級"}
        assert store.stored_config()["tiers"]["beginner"]["nextIndex"] == 0

        second = client.post("/distribute", json={"tier": "Beginner"})
        assert second.json()["url"] == "a"

    def test_missing_tier_is_400(self, client):
        response = client.post("/distribute", json={})
        assert response.status_code == 400
        assert response.json() == {"message": "tierパラメータを指定してください。"}

    def test_unsupported_tier_is_404(self, client):
        response = client.post("/distribute", json={"tier": "expert"})
        assert response.status_code == 404
        assert response.json() == {"message": "expertはサポートされていません。"}

    def test_empty_links_is_404(self, client):
        response = client.post("/distribute", json={"tier": "advanced"})
        assert response.status_code == 404
        assert response.json() == {"message": "上級のリンクが設定されていません。"}

    def test_malformed_body_is_400(self, client):
        response = client.post("/distribute", content=b"tier=beginner")
        assert response.status_code == 400

    def test_get_not_allowed(self, client):
        response = client.get("/distribute")
        assert response.status_code == 405
        assert response.headers["access-control-allow-methods"] == "POST,OPTIONS"

    def test_api_prefix_alias(self, client, store):
        store.put_config({"tiers": {"intermediate": {"links": ["x"]}}})
        response = client.post("/api/distribute", json={"tier": "intermediate"})
        assert response.status_code == 200
        assert response.json()["url"] == "x"


# ---------------------------------------------------------------------------
# /generate
# ---------------------------------------------------------------------------


@pytest.fixture
def generation_service():
    service = MagicMock(spec=GenerationService)
    app.dependency_overrides[get_generation_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_generation_service, None)


class TestGenerateEndpoint:
    def test_returns_generated_text(self, client, generation_service):
        generation_service.generate.return_value = GenerationResult(
            text="Great coffee.", maps_link="https://maps", gas_url="https://gas", prompt="P"
        )

        response = client.post("/generate?model=gemini-x", json={"promptKey": "page2", "tier": "advanced"})

        assert response.status_code == 200
        assert response.json() == {
            "text": "Great coffee.",
            "mapsLink": "https://maps",
            "aiSettings": {"mapsLink": "https://maps", "gasUrl": "https://gas", "prompt": "P"},
        }
        generation_service.generate.assert_called_once_with(prompt_key="page2", tier="advanced", model="gemini-x")

    def test_body_is_optional(self, client, generation_service):
        generation_service.generate.return_value = GenerationResult(text="t", maps_link="", gas_url="g", prompt="")
        response = client.post("/generate")
        assert response.status_code == 200
        generation_service.generate.assert_called_once_with(prompt_key=None, tier=None, model=None)

    def test_odd_field_types_are_ignored(self, client, generation_service):
        generation_service.generate.return_value = GenerationResult(text="t", maps_link="", gas_url="g", prompt="")
        client.post("/generate", json={"promptKey": 5, "tier": "  "})
        generation_service.generate.assert_called_once_with(prompt_key=None, tier=None, model=None)

    def test_validation_error_is_400(self, client, generation_service):
        generation_service.generate.side_effect = ValidationError("Gemini APIキーが設定されていません。")
        response = client.post("/generate", json={})
        assert response.status_code == 400
        assert response.json() == {"message": "Gemini APIキーが設定されていません。"}

    @pytest.mark.parametrize("status_code", [500, 502])
    def test_upstream_errors_keep_status(self, client, generation_service, status_code):
        generation_service.generate.side_effect = UpstreamError("upstream failed", status_code=status_code)
        response = client.post("/generate", json={})
        assert response.status_code == status_code
        assert response.json() == {"message": "upstream failed"}

    def test_missing_settings_without_override(self, client):
        response = client.post("/generate", json={"promptKey": "page1"})
        assert response.status_code == 400
        assert response.json() == {"message": "Gemini APIキーが設定されていません。"}


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
