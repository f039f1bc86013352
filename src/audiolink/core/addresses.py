from __future__ import annotations

import ipaddress

from audiolink.core.models import FETCHABLE_RANGES, AddressRange

_IPV4_TABLE: tuple[tuple[ipaddress.IPv4Network, AddressRange], ...] = (
    (ipaddress.IPv4Network("0.0.0.0/8"), AddressRange.UNSPECIFIED),
    (ipaddress.IPv4Network("255.255.255.255/32"), AddressRange.BROADCAST),
    (ipaddress.IPv4Network("224.0.0.0/4"), AddressRange.MULTICAST),
    (ipaddress.IPv4Network("169.254.0.0/16"), AddressRange.LINK_LOCAL),
    (ipaddress.IPv4Network("127.0.0.0/8"), AddressRange.LOOPBACK),
    (ipaddress.IPv4Network("100.64.0.0/10"), AddressRange.CARRIER_GRADE_NAT),
    (ipaddress.IPv4Network("10.0.0.0/8"), AddressRange.UNIQUE_LOCAL),
    (ipaddress.IPv4Network("172.16.0.0/12"), AddressRange.UNIQUE_LOCAL),
    (ipaddress.IPv4Network("192.168.0.0/16"), AddressRange.UNIQUE_LOCAL),
)

_IPV6_TABLE: tuple[tuple[ipaddress.IPv6Network, AddressRange], ...] = (
    (ipaddress.IPv6Network("::/128"), AddressRange.UNSPECIFIED),
    (ipaddress.IPv6Network("::1/128"), AddressRange.LOOPBACK),
    (ipaddress.IPv6Network("ff00::/8"), AddressRange.MULTICAST),
    (ipaddress.IPv6Network("fe80::/10"), AddressRange.LINK_LOCAL),
    (ipaddress.IPv6Network("fc00::/7"), AddressRange.UNIQUE_LOCAL),
    # Prefixes that carry an IPv4 address inside the IPv6 one.
    (ipaddress.IPv6Network("::/96"), AddressRange.RESERVED),
    (ipaddress.IPv6Network("::ffff:0:0:0/96"), AddressRange.RESERVED),
    (ipaddress.IPv6Network("64:ff9b::/96"), AddressRange.RESERVED),
    (ipaddress.IPv6Network("2002::/16"), AddressRange.RESERVED),
)


def parse_address(address: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    text = (address or "").strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]
    # Zone ids (fe80::1%eth0) do not change the range.
    text = text.split("%", 1)[0]
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def classify(address: str) -> AddressRange:
    """Classify a textual IP address.

    Never raises. Unparseable input is ``RESERVED``. IPv4-mapped IPv6
    addresses (``::ffff:10.0.0.1``) are classified as the IPv4 address they
    wrap.
    """

    addr = parse_address(address)
    if addr is None:
        return AddressRange.RESERVED

    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        addr = addr.ipv4_mapped

    if isinstance(addr, ipaddress.IPv4Address):
        for net4, rng in _IPV4_TABLE:
            if addr in net4:
                return rng
        return AddressRange.UNICAST_GLOBAL if addr.is_global else AddressRange.RESERVED

    for net6, rng in _IPV6_TABLE:
        if addr in net6:
            return rng
    return AddressRange.GLOBAL if addr.is_global else AddressRange.RESERVED


def is_fetchable(rng: AddressRange) -> bool:
    return rng in FETCHABLE_RANGES


def is_blocked_address(address: str) -> bool:
    return not is_fetchable(classify(address))
