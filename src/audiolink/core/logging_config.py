from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from audiolink.core.config import AppConfig


def configure_logging(config: AppConfig, level: int = logging.INFO) -> None:
    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    config.paths.app_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        config.paths.log_path,
        maxBytes=2_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(fmt)

    console = logging.StreamHandler()
    console.setFormatter(fmt)

    root.handlers.clear()
    root.addHandler(file_handler)
    root.addHandler(console)

    # aiohttp's access/client loggers are noisy at INFO for one-shot fetches.
    if level > logging.DEBUG:
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
