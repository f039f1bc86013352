from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from audiolink.core.config import AppConfig
from audiolink.core.logging_config import configure_logging
from audiolink.core.models import Metadata
from audiolink.core.service import LinkMetadataService


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="audiolink-preview",
        description="Fetch link preview metadata (title, description, image) for public http(s) URLs.",
    )
    p.add_argument("urls", nargs="+", metavar="URL")
    p.add_argument("--config", type=Path, default=None, help="Path to config.json")
    p.add_argument("--timeout-ms", type=int, default=None)
    p.add_argument("--max-redirects", type=int, default=None)
    p.add_argument("-v", "--verbose", action="store_true", help="Log every redirect hop")
    return p.parse_args(argv)


async def _run(config: AppConfig, urls: list[str]) -> list[Metadata | None]:
    async with LinkMetadataService(config.fetch) as service:
        return list(await asyncio.gather(*(service.fetch_metadata(u) for u in urls)))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = AppConfig.load(args.config)

    overrides: dict[str, int] = {}
    if args.timeout_ms is not None:
        overrides["timeout_ms"] = args.timeout_ms
    if args.max_redirects is not None:
        overrides["max_redirects"] = args.max_redirects
    if overrides:
        config = replace(config, fetch=replace(config.fetch, **overrides))

    configure_logging(config, level=logging.DEBUG if args.verbose else logging.WARNING)

    results = asyncio.run(_run(config, args.urls))
    for meta in results:
        sys.stdout.write(json.dumps(meta.to_dict() if meta is not None else None) + "\n")
    return 0 if all(r is not None for r in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
