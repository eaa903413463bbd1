"""
Runtime settings and logging setup.

Settings come from environment variables so the CLI and library share
one source:

    PROPERTY_TAX_LOG_LEVEL   logging level name (default WARNING)
    PROPERTY_TAX_OUTPUT_DIR  directory for exported reports (default reports)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "property_tax"

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    log_level: str = "WARNING"
    output_dir: str = "reports"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        level = env.get("PROPERTY_TAX_LOG_LEVEL", cls.log_level).strip().upper()
        if level not in _LEVELS:
            raise ValueError(
                f"Invalid PROPERTY_TAX_LOG_LEVEL: {level!r} "
                f"(expected one of {', '.join(_LEVELS)})"
            )
        return cls(
            log_level=level,
            output_dir=env.get("PROPERTY_TAX_OUTPUT_DIR", "").strip()
            or cls.output_dir,
        )


def configure_logging(
    level: str = "WARNING", console: Optional[Console] = None
) -> logging.Logger:
    """
    Attach a rich handler to the package logger, replacing any previous one.

    Records stop propagating to the root logger so a host application
    with its own handlers does not print them twice.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
