from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class AddressRange(str, Enum):
    UNICAST_GLOBAL = "unicast-global"  # IPv4
    GLOBAL = "global"  # IPv6
    LOOPBACK = "loopback"
    LINK_LOCAL = "link-local"
    UNIQUE_LOCAL = "unique-local"
    RESERVED = "reserved"
    BROADCAST = "broadcast"
    CARRIER_GRADE_NAT = "carrier-grade-nat"
    UNSPECIFIED = "unspecified"
    MULTICAST = "multicast"


FETCHABLE_RANGES = frozenset({AddressRange.UNICAST_GLOBAL, AddressRange.GLOBAL})


class FetchState(str, Enum):
    DONE = "done"
    BLOCKED = "blocked"
    TIMED_OUT = "timed-out"
    FAILED = "failed"


class FetchFailure(str, Enum):
    INVALID_URL = "invalid-url"
    UNSAFE_ADDRESS = "unsafe-address"
    REDIRECT_LOOP = "redirect-loop"
    REDIRECT_LIMIT_EXCEEDED = "redirect-limit-exceeded"
    NON_HTML_CONTENT = "non-html-content"
    UPSTREAM_FAILURE = "upstream-failure"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class ResolvedAddress:
    address: str
    family: int


@dataclass(frozen=True)
class FollowResult:
    state: FetchState
    url: str
    failure: FetchFailure | None = None
    status: int | None = None
    html: str | None = None
    hops: int = 0

    @property
    def ok(self) -> bool:
        return self.state is FetchState.DONE and self.html is not None


@dataclass(frozen=True)
class Metadata:
    url: str
    title: str | None = None
    description: str | None = None
    image: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"url": self.url}
        if self.title:
            out["title"] = self.title
        if self.description:
            out["description"] = self.description
        if self.image:
            out["image"] = self.image
        return out
