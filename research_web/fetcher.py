from __future__ import annotations

import asyncio
import logging

import httpx

from .errors import FetchError

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_S = 15.0
# ~800KB; keeps the prompt within what the model endpoint accepts.
MAX_HTML_LENGTH = 800_000

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36 RESEARCH-WEB/1.0"
)
ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


def clip_content(text: str, max_length: int = MAX_HTML_LENGTH) -> str:
    return text[:max_length] if len(text) > max_length else text


class PageFetcher:
    """Retrieves a single page body under a hard wall-clock budget."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout_s: float = FETCH_TIMEOUT_S,
        max_length: int = MAX_HTML_LENGTH,
    ):
        self._client = client
        self.timeout_s = timeout_s
        self.max_length = max_length

    async def _get(self, url: str) -> httpx.Response:
        return await self._client.get(
            url,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT, "Accept": ACCEPT},
        )

    async def fetch(self, url: str) -> str:
        try:
            # wait_for cancels the request task on expiry, which aborts the transfer.
            res = await asyncio.wait_for(self._get(url), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            raise FetchError(f"Upstream fetch timed out after {self.timeout_s:g}s") from None
        except httpx.HTTPError as e:
            raise FetchError(f"Upstream fetch failed: {str(e) or type(e).__name__}") from e

        if not res.is_success:
            raise FetchError(f"Upstream fetch failed: {res.status_code} {res.reason_phrase}")

        html = res.text
        if len(html) > self.max_length:
            logger.info("clipping %s from %d to %d chars", url, len(html), self.max_length)
        return clip_content(html, self.max_length)

    async def aclose(self) -> None:
        await self._client.aclose()
