"""
Logging configuration — central setup for the CLI entrypoint.

``LogSettings.resolve`` turns the global CLI flags and the environment
into levels; ``setup_logging`` installs the handlers once at startup.
Every module that does ``logger = logging.getLogger(__name__)``
inherits this config.

Console level precedence:
    --debug  >  --verbose  >  --quiet  >  PARSERCTL_LOG_LEVEL  >  WARNING

PARSERCTL_LOG_FILE adds a file handler, at PARSERCTL_LOG_FILE_LEVEL or
the console level.

Pipeline progress and diagnostics are user output (``click.echo``),
not log records; logging carries the debugging trail underneath.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping

_FMT_CONSOLE = "parserctl: %(levelname)s: %(message)s"

_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LogSettings:
    """Resolved logging levels and destinations for one CLI run."""

    console_level: int = logging.WARNING
    log_file: str | None = None
    file_level: int = logging.WARNING

    @classmethod
    def resolve(
        cls,
        *,
        verbose: bool = False,
        quiet: bool = False,
        debug: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> LogSettings:
        env = os.environ if env is None else env

        if debug:
            level = logging.DEBUG
        elif verbose:
            level = logging.INFO
        elif quiet:
            level = logging.ERROR
        else:
            level = _parse_level(env.get("PARSERCTL_LOG_LEVEL"))

        file_level = env.get("PARSERCTL_LOG_FILE_LEVEL")
        return cls(
            console_level=level,
            log_file=env.get("PARSERCTL_LOG_FILE") or None,
            file_level=_parse_level(file_level) if file_level else level,
        )

    @property
    def debug(self) -> bool:
        return self.console_level <= logging.DEBUG


def setup_logging(settings: LogSettings) -> None:
    """Replace the root logger's handlers according to ``settings``."""
    if settings.debug:
        formatter = logging.Formatter(_FMT_DEBUG, datefmt=_DATEFMT_DEBUG)
    else:
        formatter = logging.Formatter(_FMT_CONSOLE)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(settings.console_level)
    console.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = settings.console_level

    if settings.log_file:
        fh = logging.FileHandler(settings.log_file, encoding="utf-8")
        fh.setLevel(settings.file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)
        root_level = min(root_level, settings.file_level)

    root.setLevel(root_level)

    # asyncio logs transport and slow-callback details at DEBUG/INFO
    logging.getLogger("asyncio").setLevel(
        logging.NOTSET if settings.debug else logging.WARNING
    )


def _parse_level(level: str | None) -> int:
    """Convert a level name to its numeric constant, WARNING if unknown."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
