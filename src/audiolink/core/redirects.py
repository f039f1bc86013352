from __future__ import annotations

import asyncio
import logging

import aiohttp

from audiolink.core.config import FetchSettings
from audiolink.core.models import FetchFailure, FetchState, FollowResult
from audiolink.core.url_guard import SafeUrlGuard
from audiolink.core.utils import is_html_content_type, resolve_location

logger = logging.getLogger(__name__)


def _blocked(url: str, failure: FetchFailure, hops: int, status: int | None = None) -> FollowResult:
    return FollowResult(state=FetchState.BLOCKED, url=url, failure=failure, status=status, hops=hops)


def _failed(url: str, failure: FetchFailure, hops: int, status: int | None = None) -> FollowResult:
    return FollowResult(state=FetchState.FAILED, url=url, failure=failure, status=status, hops=hops)


class RedirectFollower:
    """Walk a redirect chain by hand, re-checking the guard before every request.

    One deadline covers the whole walk, not each hop. On expiry whatever is in
    flight (DNS, connect, body read) is cancelled and the result is
    ``TIMED_OUT``. ``follow`` never raises for network or content problems;
    the terminal state and reason are carried in the returned ``FollowResult``.
    """

    def __init__(
        self,
        *,
        settings: FetchSettings,
        session: aiohttp.ClientSession,
        guard: SafeUrlGuard,
    ) -> None:
        self._settings = settings
        self._session = session
        self._guard = guard

    async def follow(self, start_url: str) -> FollowResult:
        try:
            return await asyncio.wait_for(self._walk(start_url), timeout=self._settings.timeout_seconds)
        except asyncio.TimeoutError:
            return FollowResult(state=FetchState.TIMED_OUT, url=start_url, failure=FetchFailure.TIMEOUT)

    async def _walk(self, start_url: str) -> FollowResult:
        current_url = start_url
        visited: set[str] = set()
        hops = 0
        headers = self._settings.request_headers()

        while hops <= self._settings.max_redirects:
            failure = await self._guard.check(current_url)
            if failure is not None:
                logger.debug("Hop %d blocked: %s (%s)", hops, current_url, failure.value)
                return _blocked(current_url, failure, hops)

            try:
                async with self._session.get(current_url, headers=headers, allow_redirects=False) as resp:
                    status = int(resp.status)
                    location = resp.headers.get("Location")

                    if 300 <= status < 400 and location:
                        next_url = resolve_location(current_url, location)
                        if next_url in visited:
                            logger.debug("Redirect loop at %s -> %s", current_url, next_url)
                            return _blocked(next_url, FetchFailure.REDIRECT_LOOP, hops, status)
                        visited.add(current_url)
                        logger.debug("Hop %d: %s -> %s (%d)", hops, current_url, next_url, status)
                        current_url = next_url
                        hops += 1
                        continue

                    if not 200 <= status < 300:
                        return _failed(current_url, FetchFailure.UPSTREAM_FAILURE, hops, status)

                    # The transport may have ended up somewhere the guard never saw.
                    effective_url = str(resp.url)
                    failure = await self._guard.check(effective_url)
                    if failure is not None:
                        return _blocked(effective_url, failure, hops, status)

                    content_type = resp.headers.get("Content-Type", "")
                    if not is_html_content_type(content_type):
                        logger.debug("Not HTML (%r): %s", content_type, effective_url)
                        return _failed(effective_url, FetchFailure.NON_HTML_CONTENT, hops, status)

                    html = await self._read_body(resp)
                    return FollowResult(
                        state=FetchState.DONE,
                        url=effective_url,
                        status=status,
                        html=html,
                        hops=hops,
                    )
            except (aiohttp.ClientError, OSError, ValueError) as e:
                logger.debug("Request failed for %s: %s", current_url, e)
                return _failed(current_url, FetchFailure.UPSTREAM_FAILURE, hops)

        return _failed(current_url, FetchFailure.REDIRECT_LIMIT_EXCEEDED, hops)

    async def _read_body(self, resp: aiohttp.ClientResponse) -> str:
        limit = max(1, int(self._settings.max_body_bytes))
        buf = bytearray()
        async for chunk in resp.content.iter_chunked(64 * 1024):
            if not chunk:
                continue
            buf.extend(chunk)
            if len(buf) >= limit:
                # The head is what we need; stop reading large pages.
                del buf[limit:]
                break

        charset = resp.charset or "utf-8"
        try:
            return bytes(buf).decode(charset, errors="replace")
        except LookupError:
            return bytes(buf).decode("utf-8", errors="replace")
