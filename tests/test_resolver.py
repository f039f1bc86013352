from __future__ import annotations

import asyncio
import socket

import aiohttp
import pytest

from audiolink.core.models import ResolvedAddress
from audiolink.core.resolver import GuardedResolver, HostnameResolver


@pytest.mark.asyncio
async def test_literal_ip_skips_dns(make_resolver) -> None:
    backend = make_resolver({})
    r = HostnameResolver(backend)
    assert await r.resolve("93.184.216.34") == {ResolvedAddress("93.184.216.34", socket.AF_INET)}
    assert await r.resolve("::1") == {ResolvedAddress("::1", socket.AF_INET6)}
    assert backend.calls == []


@pytest.mark.asyncio
async def test_returns_every_advertised_address(make_resolver) -> None:
    backend = make_resolver({"example.com": ["93.184.216.34", "2606:2800:220:1:248:1893:25c8:1946"]})
    addrs = await HostnameResolver(backend).resolve("example.com")
    assert {a.address for a in addrs} == {"93.184.216.34", "2606:2800:220:1:248:1893:25c8:1946"}
    assert {a.family for a in addrs} == {socket.AF_INET, socket.AF_INET6}


@pytest.mark.asyncio
async def test_lookup_failure_yields_empty_set(make_resolver) -> None:
    assert await HostnameResolver(make_resolver({})).resolve("nope.invalid") == set()


@pytest.mark.asyncio
async def test_hostname_the_idna_codec_rejects_yields_empty_set() -> None:
    # A 64-character label cannot be IDNA-encoded; getaddrinfo raises UnicodeError.
    assert await HostnameResolver().resolve("\u00e4" * 64 + ".com") == set()


@pytest.mark.asyncio
async def test_backend_value_error_yields_empty_set(make_resolver) -> None:
    class Unencodable(make_resolver):
        async def resolve(self, host, port=0, family=socket.AF_INET):
            raise UnicodeError("label too long")

    assert await HostnameResolver(Unencodable({})).resolve("bad.example") == set()


def test_default_backend_is_built_per_event_loop(make_resolver, monkeypatch: pytest.MonkeyPatch) -> None:
    loops = []

    class Recording(make_resolver):
        def __init__(self) -> None:
            super().__init__({"example.com": "93.184.216.34"})
            loops.append(asyncio.get_running_loop())

    monkeypatch.setattr(aiohttp, "ThreadedResolver", Recording)
    r = HostnameResolver()
    first = asyncio.run(r.resolve("example.com"))
    second = asyncio.run(r.resolve("example.com"))

    assert first == second == {ResolvedAddress("93.184.216.34", socket.AF_INET)}
    assert len(loops) == 2
    assert loops[0] is not loops[1]


@pytest.mark.asyncio
async def test_guarded_resolver_refuses_private_answers(make_resolver) -> None:
    guarded = GuardedResolver(make_resolver({"evil.test": ["93.184.216.34", "10.0.0.7"]}))
    with pytest.raises(OSError, match="10.0.0.7"):
        await guarded.resolve("evil.test", 443)


@pytest.mark.asyncio
async def test_guarded_resolver_passes_public_answers(make_resolver) -> None:
    guarded = GuardedResolver(make_resolver({"example.com": "93.184.216.34"}))
    infos = await guarded.resolve("example.com", 443)
    assert [i["host"] for i in infos] == ["93.184.216.34"]
    assert infos[0]["port"] == 443
