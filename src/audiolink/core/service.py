from __future__ import annotations

import logging
from types import TracebackType

import aiohttp
from aiohttp.abc import AbstractResolver

from audiolink.core.config import FetchSettings
from audiolink.core.metadata import extract
from audiolink.core.models import FetchState, Metadata
from audiolink.core.redirects import RedirectFollower
from audiolink.core.resolver import GuardedResolver, HostnameResolver
from audiolink.core.url_guard import SafeUrlGuard
from audiolink.core.utils import is_http_url

logger = logging.getLogger(__name__)


class LinkMetadataService:
    """Fetch link previews for URLs recovered from untrusted input.

    ``fetch_metadata`` never raises: anything that stops a preview (unsafe
    host, loop, timeout, non-HTML, upstream error) yields ``None``.

    Use as an async context manager to share one connection pool across calls;
    without it each call opens and closes its own session. A context-managed
    service is tied to the event loop it was entered on; the per-call mode can
    be reused across loops.
    """

    def __init__(
        self,
        settings: FetchSettings | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        resolver: AbstractResolver | None = None,
    ) -> None:
        self._settings = settings or FetchSettings()
        self._session = session
        self._owns_session = session is None
        self._dns = resolver
        self._resolver = HostnameResolver(resolver)

    async def __aenter__(self) -> LinkMetadataService:
        if self._session is None:
            self._session = self._new_session()
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _new_session(self) -> aiohttp.ClientSession:
        # The connector re-checks the addresses it actually connects to, and must
        # not reuse DNS answers between hops.
        connector = aiohttp.TCPConnector(resolver=GuardedResolver(self._dns), use_dns_cache=False)
        return aiohttp.ClientSession(connector=connector, timeout=aiohttp.ClientTimeout(total=None))

    async def fetch_metadata(self, url: str) -> Metadata | None:
        candidate = url.strip() if isinstance(url, str) else ""
        if not is_http_url(candidate):
            return None

        try:
            if self._session is not None:
                return await self._fetch(candidate, self._session)
            async with self._new_session() as session:
                return await self._fetch(candidate, session)
        except Exception as e:
            logger.warning("Unable to fetch metadata for %s: %s", candidate, e)
            return None

    async def _fetch(self, url: str, session: aiohttp.ClientSession) -> Metadata | None:
        guard = SafeUrlGuard(settings=self._settings, resolver=self._resolver)
        follower = RedirectFollower(settings=self._settings, session=session, guard=guard)
        result = await follower.follow(url)

        if result.state is FetchState.TIMED_OUT:
            logger.warning("Metadata fetch timed out for %s", url)
            return None
        if not result.ok:
            logger.info(
                "No metadata for %s: %s (%s, status=%s, hops=%d)",
                url,
                result.state.value,
                result.failure.value if result.failure else "unknown",
                result.status,
                result.hops,
            )
            return None

        return extract(result.html or "", result.url)


async def fetch_metadata(url: str, *, settings: FetchSettings | None = None) -> Metadata | None:
    async with LinkMetadataService(settings) as service:
        return await service.fetch_metadata(url)
