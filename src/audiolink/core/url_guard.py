from __future__ import annotations

import logging
from urllib.parse import urlparse

from audiolink.core.addresses import classify, is_fetchable
from audiolink.core.config import FetchSettings
from audiolink.core.models import FetchFailure
from audiolink.core.resolver import HostnameResolver
from audiolink.core.utils import HTTP_SCHEMES, normalize_hostname

logger = logging.getLogger(__name__)


class SafeUrlGuard:
    """Decide whether a URL may be fetched right now.

    Every call resolves the host again; callers re-check each redirect target
    and the final response URL so a rebinding DNS answer between hops is seen.
    """

    def __init__(self, *, settings: FetchSettings, resolver: HostnameResolver) -> None:
        self._blocked_hosts = frozenset(normalize_hostname(h) for h in settings.blocked_hostnames)
        self._resolver = resolver

    async def check(self, url: str) -> FetchFailure | None:
        try:
            parsed = urlparse((url or "").strip())
            raw_host = parsed.hostname
        except ValueError:
            return FetchFailure.INVALID_URL
        if parsed.scheme.lower() not in HTTP_SCHEMES:
            return FetchFailure.INVALID_URL

        host = normalize_hostname(raw_host)
        if not host:
            return FetchFailure.INVALID_URL
        if host in self._blocked_hosts:
            logger.debug("Blocked hostname %s", host)
            return FetchFailure.UNSAFE_ADDRESS

        addresses = await self._resolver.resolve(host)
        if not addresses:
            logger.debug("No addresses for %s", host)
            return FetchFailure.UNSAFE_ADDRESS

        for resolved in addresses:
            rng = classify(resolved.address)
            if not is_fetchable(rng):
                logger.debug("%s resolves to %s (%s)", host, resolved.address, rng.value)
                return FetchFailure.UNSAFE_ADDRESS
        return None

    async def is_safe(self, url: str) -> bool:
        return await self.check(url) is None
