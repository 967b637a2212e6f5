"""
fetcher.py — The HTTP primitive the pipeline talks to the platform through.

A thin wrapper around httpx.AsyncClient that applies the run's headers and
timeout and folds every transport failure (non-2xx status, timeout,
connection error) into UpstreamFetchError.  asyncio.CancelledError is not
an httpx error and passes straight through, so cancelling the caller's
task stops the run at the next await.
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from yt_caption_pipeline.config import PipelineSettings
from yt_caption_pipeline.errors import UpstreamFetchError


def build_client(settings: PipelineSettings, **kwargs: Any) -> httpx.AsyncClient:
    """Create an AsyncClient with the run's headers and timeout applied."""
    headers = {
        "User-Agent": settings.user_agent,
        "Accept-Language": settings.accept_language,
    }
    return httpx.AsyncClient(
        headers=headers,
        timeout=httpx.Timeout(settings.timeout_secs),
        follow_redirects=True,
        **kwargs,
    )


class HttpFetcher:
    """
    GET and POST helpers bound to one AsyncClient.

    The client is owned by the caller; the fetcher never closes it.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def get_text(self, url: str, params: Mapping[str, str] | None = None) -> str:
        """Fetch a URL and return the decoded body."""
        response = await self._send("GET", url, params=params)
        return response.text

    async def post_json(
        self,
        url: str,
        payload: Mapping[str, Any],
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """POST a JSON body and return the decoded JSON response."""
        response = await self._send("POST", url, params=params, json=dict(payload))
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamFetchError(url, reason="response is not JSON") from exc

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise UpstreamFetchError(url, reason="timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamFetchError(
                url,
                reason=f"HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(url, reason=f"{type(exc).__name__}: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise UpstreamFetchError(url, reason=f"invalid URL: {exc}") from exc
        return response
