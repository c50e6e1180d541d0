"""
Logging configuration.

The packaged YAML config (`src/colleaguematch/config/logging.yaml`) is applied with
`dictConfig`, then the level is overridden from settings (`COLLEAGUEMATCH_LOG_LEVEL`).
"""

from __future__ import annotations

import copy
import logging.config

from colleaguematch.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> None:
    """Configure the Python logging system based on packaged YAML config + settings."""
    config = copy.deepcopy(get_logging_config())

    level = (level or get_settings().app.log_level).upper()
    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    logging.config.dictConfig(config)
