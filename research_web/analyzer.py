from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from .cache import TTLCache
from .errors import AnalysisError
from .fetcher import PageFetcher
from .llm import ModelClient
from .models import normalize_report
from .prompt import build_prompt
from .urls import validate_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisOutcome:
    cached: bool
    data: Any


class SiteAnalyzer:
    """Runs validate -> cache -> fetch -> prompt -> model -> cache for one URL.

    Concurrent cache misses for the same URL share a single in-flight
    computation unless ``coalesce`` is False.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        model: ModelClient,
        cache: TTLCache,
        *,
        coalesce: bool = True,
    ):
        self.fetcher = fetcher
        self.model = model
        self.cache = cache
        self.coalesce = coalesce
        self._inflight: dict[str, asyncio.Future] = {}

    async def analyze(self, raw_url: str) -> AnalysisOutcome:
        url = validate_url((raw_url or "").strip())

        cached = self.cache.get(url)
        if cached is not None:
            logger.debug("cache hit for %s", url)
            return AnalysisOutcome(cached=True, data=cached)

        if not self.coalesce:
            return AnalysisOutcome(cached=False, data=await self._compute(url))

        task = self._inflight.get(url)
        if task is None:
            task = asyncio.ensure_future(self._compute(url))
            self._inflight[url] = task
            task.add_done_callback(lambda t: self._forget(url, t))
        else:
            logger.debug("joining in-flight analysis of %s", url)
        # the shared task outlives any single waiter
        data = await asyncio.shield(task)
        return AnalysisOutcome(cached=False, data=data)

    def _forget(self, url: str, task: asyncio.Future) -> None:
        if self._inflight.get(url) is task:
            del self._inflight[url]
        # marks a failure as retrieved even when every waiter has gone
        if not task.cancelled():
            task.exception()

    async def _compute(self, url: str) -> Any:
        try:
            logger.debug("cache miss for %s, fetching", url)
            html = await self.fetcher.fetch(url)

            prompt = build_prompt(url, html)
            logger.debug("calling model for %s (%d chars of html)", url, len(html))
            raw = await self.model.complete_json(prompt)
        except AnalysisError as e:
            logger.warning("analysis of %s failed: %s", url, e.message, exc_info=e.__cause__)
            raise

        report = normalize_report(raw)
        self.cache.set(url, report)
        logger.info("analyzed %s", url)
        return report

    async def aclose(self) -> None:
        await self.fetcher.aclose()
        await self.model.aclose()
