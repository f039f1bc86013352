from __future__ import annotations

import asyncio
import socket
from typing import Any, Callable

import pytest
from aiohttp.abc import AbstractResolver


def _family(address: str) -> int:
    return socket.AF_INET6 if ":" in address else socket.AF_INET


class StaticResolver(AbstractResolver):
    """DNS stand-in: each hostname maps to a fixed answer, or a list of answers
    handed out one per lookup (the last one repeats)."""

    def __init__(self, table: dict[str, Any], *, delay: float = 0.0) -> None:
        self._table = table
        self._delay = delay
        self.calls: list[str] = []

    async def resolve(
        self,
        host: str,
        port: int = 0,
        family: socket.AddressFamily = socket.AF_INET,
    ) -> list[dict[str, Any]]:
        self.calls.append(host)
        if self._delay:
            await asyncio.sleep(self._delay)
        answer = self._table.get(host)
        if answer is None:
            raise OSError(f"Name or service not known: {host}")
        if isinstance(answer, list) and answer and isinstance(answer[0], list):
            idx = min(self.calls.count(host) - 1, len(answer) - 1)
            answer = answer[idx]
        if isinstance(answer, str):
            answer = [answer]
        return [
            {"hostname": host, "host": a, "port": port, "family": _family(a), "proto": 0, "flags": 0}
            for a in answer
        ]

    async def close(self) -> None:
        return None


@pytest.fixture()
def make_resolver() -> Callable[..., StaticResolver]:
    return StaticResolver


@pytest.fixture()
def public_resolver() -> StaticResolver:
    return StaticResolver(
        {
            "example.com": "93.184.216.34",
            "www.example.com": "93.184.216.34",
            "cdn.example.net": "151.101.1.69",
        }
    )
