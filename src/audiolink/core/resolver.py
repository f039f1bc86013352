from __future__ import annotations

import logging
import socket
from typing import Any

import aiohttp
from aiohttp.abc import AbstractResolver

from audiolink.core.addresses import is_blocked_address, parse_address
from audiolink.core.models import ResolvedAddress

logger = logging.getLogger(__name__)


class HostnameResolver:
    """Resolve a hostname to every address it advertises (A and AAAA).

    Literal IPs are returned as-is without touching DNS. Lookups go through an
    aiohttp resolver so the same backend can be shared with the connector.
    Results are never cached. Without an injected backend a fresh
    ``ThreadedResolver`` is built per lookup, so one instance works across
    event loops.
    """

    def __init__(self, resolver: AbstractResolver | None = None) -> None:
        self._resolver = resolver

    def _backend(self) -> AbstractResolver:
        # ThreadedResolver binds to the loop running when it is built.
        if self._resolver is None:
            return aiohttp.ThreadedResolver()
        return self._resolver

    async def resolve(self, hostname: str) -> set[ResolvedAddress]:
        literal = parse_address(hostname)
        if literal is not None:
            family = socket.AF_INET6 if literal.version == 6 else socket.AF_INET
            return {ResolvedAddress(address=str(literal), family=family)}

        try:
            infos = await self._backend().resolve(hostname, 0, family=socket.AF_UNSPEC)
        except (OSError, ValueError) as e:
            # ValueError covers hostnames the idna codec refuses.
            logger.debug("DNS lookup failed for %s: %s", hostname, e)
            return set()

        return {
            ResolvedAddress(address=str(info["host"]), family=int(info.get("family", 0)))
            for info in infos or []
            if info.get("host")
        }


class GuardedResolver(AbstractResolver):
    """Connector-side resolver that refuses hosts with any non-public address.

    The URL guard checks a host before each request, but the connector does its
    own lookup afterwards. Plugging this into ``aiohttp.TCPConnector`` makes the
    address actually connected to pass the same classification.
    """

    def __init__(self, inner: AbstractResolver | None = None) -> None:
        self._inner = inner if inner is not None else aiohttp.ThreadedResolver()

    async def resolve(
        self,
        host: str,
        port: int = 0,
        family: socket.AddressFamily = socket.AF_INET,
    ) -> list[dict[str, Any]]:
        infos = await self._inner.resolve(host, port, family=family)
        for info in infos:
            addr = str(info.get("host") or "")
            if is_blocked_address(addr):
                logger.warning("Refusing connection to %s: resolved to non-public address %s", host, addr)
                raise OSError(f"Host {host} resolved to disallowed address {addr}")
        return list(infos)

    async def close(self) -> None:
        await self._inner.close()
