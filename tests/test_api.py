"""
End-to-end tests for the HTTP surface with mocked page and model upstreams.
"""
import pytest
from fastapi.testclient import TestClient

from research_web.config import Settings
from research_web.main import create_app


@pytest.fixture
def client(analyzer):
    return TestClient(create_app(analyzer=analyzer))


@pytest.fixture
def client_for(upstream_factory, analyzer_factory):
    """TestClient plus its Upstream, built from Upstream(...) kwargs"""

    def build(**kwargs):
        upstream = upstream_factory(**kwargs)
        return TestClient(create_app(analyzer=analyzer_factory(upstream))), upstream

    return build


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"ok": True}


def test_security_headers(client):
    res = client.get("/health")
    assert res.headers["x-content-type-options"] == "nosniff"
    assert res.headers["x-frame-options"] == "DENY"
    assert "default-src 'self'" in res.headers["content-security-policy"]


def test_analyze_fresh_then_cached(client, upstream, sample_report):
    first = client.post("/analyze", json={"url": "example.com"})
    second = client.post("/analyze", json={"url": "example.com"})

    assert first.status_code == 200
    assert first.json() == {"cached": False, "data": sample_report}
    assert second.status_code == 200
    assert second.json() == {"cached": True, "data": first.json()["data"]}
    assert upstream.page_calls == 1
    assert upstream.model_calls == 1


def test_analyze_localhost_not_allowed(client, upstream):
    res = client.post("/analyze", json={"url": "localhost"})
    assert res.status_code == 400
    assert res.json() == {"error": "URL not allowed"}
    assert upstream.page_calls == 0


@pytest.mark.parametrize("body", [{"url": ""}, {"url": "   "}, {}, {"url": "exa mple.com"}, {"url": 42}])
def test_analyze_invalid_url(client, body):
    res = client.post("/analyze", json=body)
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid URL"}


def test_analyze_unreadable_body(client):
    res = client.post("/analyze", content=b"not json", headers={"content-type": "application/json"})
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid URL"}


def test_analyze_malformed_model_output(client_for):
    client, _ = client_for(content="I could not analyze this page.")

    res = client.post("/analyze", json={"url": "example.com"})
    assert res.status_code == 500
    assert res.json()["error"].startswith("Malformed model output")


def test_analyze_model_api_error(client_for):
    client, _ = client_for(model_status=401)

    res = client.post("/analyze", json={"url": "example.com"})
    assert res.status_code == 500
    assert res.json()["error"].startswith("Model API error: 401 Unauthorized")


def test_analyze_upstream_fetch_error(client_for):
    client, upstream = client_for(page_status=403)

    res = client.post("/analyze", json={"url": "example.com"})
    assert res.status_code == 500
    assert res.json() == {"error": "Upstream fetch failed: 403 Forbidden"}
    assert upstream.model_calls == 0


def test_static_spa_fallback(tmp_path, analyzer):
    (tmp_path / "index.html").write_text("<html>app shell</html>")
    settings = Settings(api_key="test-key", static_dir=tmp_path)
    client = TestClient(create_app(settings, analyzer=analyzer))

    assert "app shell" in client.get("/").text
    assert "app shell" in client.get("/reports/123").text
    assert client.get("/health").json() == {"ok": True}
