"""
Offline fixtures: every HTTP boundary is an httpx.MockTransport, so no test
touches the network or a real model API.
"""
import asyncio
import copy
import json

import httpx
import pytest

from research_web.analyzer import SiteAnalyzer
from research_web.cache import TTLCache
from research_web.fetcher import PageFetcher
from research_web.llm import ModelClient

SAMPLE_HTML = (
    "<html lang='en'><head><title>Example Domain</title>"
    "<meta name='description' content='An example site'></head>"
    "<body><h1>Example Domain</h1></body></html>"
)

SAMPLE_REPORT = {
    "site": {
        "url": "https://example.com/",
        "title": "Example Domain",
        "description": "An example site",
        "language": "en",
        "frameworks": [],
        "libraries": [],
        "cms": None,
        "runtime": None,
        "hosting": None,
        "cdn": None,
        "analytics": [],
        "tag_managers": [],
        "seo": {
            "meta_title": "Example Domain",
            "meta_description": "An example site",
            "h1": "Example Domain",
            "canonical": None,
            "schema_org": [],
        },
        "performance": {
            "page_weight_kb": 1.0,
            "image_optimization": "none",
            "lazy_loading": False,
            "script_count": 0.0,
            "notable_third_parties": [],
        },
        "ads": {"has_ads": False, "ad_networks": [], "placements": []},
        "monetization": {"models": [], "subscriptions": False, "affiliate": False, "ecommerce": False},
        "privacy_security": {"cookie_banner": False, "gdpr_ccpa_mentions": [], "security_headers": []},
        "audience": {"target_segments": ["developers"], "regions": []},
        "competitors": [],
        "traffic_estimate": {"confidence": "low", "monthly_visits_range": "unknown"},
        "contact": {"emails": [], "phones": [], "socials": []},
        "key_features": ["Placeholder page"],
        "summary": "A placeholder domain used for documentation.",
        "recommendations": ["Add real content"],
    }
}


def completion_body(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class Upstream:
    """Counts calls and serves canned page and model responses."""

    def __init__(self, html=SAMPLE_HTML, content=None, page_status=200, model_status=200, delay=0.0):
        self.html = html
        self.content = json.dumps(SAMPLE_REPORT) if content is None else content
        self.page_status = page_status
        self.model_status = model_status
        self.delay = delay
        self.page_calls = 0
        self.model_calls = 0
        self.model_requests = []

    async def page(self, request: httpx.Request) -> httpx.Response:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.page_calls += 1
        return httpx.Response(self.page_status, text=self.html, headers={"content-type": "text/html"})

    async def model(self, request: httpx.Request) -> httpx.Response:
        self.model_calls += 1
        self.model_requests.append(request)
        if self.model_status != 200:
            return httpx.Response(self.model_status, text="upstream exploded")
        return httpx.Response(200, json=completion_body(self.content))


def make_analyzer(upstream: Upstream, *, cache=None, coalesce=True, fetch_timeout_s=15.0) -> SiteAnalyzer:
    fetcher = PageFetcher(
        httpx.AsyncClient(transport=httpx.MockTransport(upstream.page)),
        timeout_s=fetch_timeout_s,
    )
    model = ModelClient(
        api_key="test-key",
        base_url="https://llm.test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(upstream.model)),
    )
    return SiteAnalyzer(fetcher, model, cache if cache is not None else TTLCache(), coalesce=coalesce)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def sample_report():
    """A complete, already-normalized site report"""
    return copy.deepcopy(SAMPLE_REPORT)


@pytest.fixture
def completion():
    """Builds a chat-completions response body around a content string"""
    return completion_body


@pytest.fixture
def upstream_factory():
    """Upstream(...) with canned page/model responses and call counters"""
    return Upstream


@pytest.fixture
def analyzer_factory():
    """make_analyzer(upstream, cache=..., coalesce=...)"""
    return make_analyzer


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def analyzer(upstream):
    return make_analyzer(upstream)
