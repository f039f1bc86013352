from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "AudioLink/1.0 (+https://github.com/ggerganov/ggwave)"
DEFAULT_ACCEPT = "text/html,application/xhtml+xml"


@dataclass(frozen=True)
class FetchSettings:
    timeout_ms: int = 5000
    max_redirects: int = 5
    user_agent: str = DEFAULT_USER_AGENT
    accept: str = DEFAULT_ACCEPT
    blocked_hostnames: tuple[str, ...] = ("localhost",)
    max_body_bytes: int = 2_000_000

    @property
    def timeout_seconds(self) -> float:
        return max(0.0, self.timeout_ms / 1000.0)

    def request_headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent, "Accept": self.accept}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> FetchSettings:
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in (raw or {}).items() if k in known}
        if "blocked_hostnames" in values:
            values["blocked_hostnames"] = tuple(str(h).strip().lower() for h in values["blocked_hostnames"])
        return cls(**values)


def _default_app_dir() -> Path:
    override = os.environ.get("AUDIOLINK_HOME", "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".audiolink"


@dataclass(frozen=True)
class AppPaths:
    app_dir: Path = field(default_factory=_default_app_dir)

    @property
    def config_path(self) -> Path:
        return self.app_dir / "config.json"

    @property
    def log_path(self) -> Path:
        return self.app_dir / "audiolink.log"


@dataclass(frozen=True)
class AppConfig:
    paths: AppPaths = field(default_factory=AppPaths)
    fetch: FetchSettings = field(default_factory=FetchSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> AppConfig:
        paths = AppPaths(app_dir=path.parent) if path is not None else AppPaths()
        config_path = path or paths.config_path
        if not config_path.exists():
            return cls(paths=paths)
        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable config %s: %s", config_path, e)
            return cls(paths=paths)
        if not isinstance(raw, dict):
            return cls(paths=paths)
        return cls(paths=paths, fetch=FetchSettings.from_dict(raw.get("fetch") or {}))

    def save(self) -> None:
        self.paths.app_dir.mkdir(parents=True, exist_ok=True)
        fetch = asdict(self.fetch)
        fetch["blocked_hostnames"] = list(self.fetch.blocked_hostnames)
        self.paths.config_path.write_text(json.dumps({"fetch": fetch}, indent=2), encoding="utf-8")
