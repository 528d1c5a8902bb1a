"""caff configuration, read from the environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import structlog

ENV_CAFFEINATE = "CAFF_CAFFEINATE"
ENV_LOG = "CAFF_LOG"
ENV_QUIET = "CAFF_QUIET"

DEFAULT_CAFFEINATE = "caffeinate"

TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
FALSE_WORDS = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True)
class Config:
    """Runtime settings."""

    caffeinate: str = DEFAULT_CAFFEINATE
    log: Path | None = None  # None = no logging
    quiet: bool = False  # quiet unless the invocation says otherwise


# === Config Loading ===


def _parse_bool(name: str, value: str) -> bool:
    """Parse a boolean setting. Raises ValueError on anything unrecognized."""
    word = value.strip().lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise ValueError(f"{name} must be a boolean (1/0, true/false, yes/no, on/off), got '{value}'")


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from environment variables. Raises ValueError on bad values."""
    env = os.environ if environ is None else environ

    caffeinate = env.get(ENV_CAFFEINATE, "").strip() or DEFAULT_CAFFEINATE

    log_path = env.get(ENV_LOG, "").strip()
    log = Path(log_path).expanduser() if log_path else None

    quiet = _parse_bool(ENV_QUIET, env[ENV_QUIET]) if ENV_QUIET in env else False

    return Config(caffeinate=caffeinate, log=log, quiet=quiet)


# === Logging ===

_logger: structlog.BoundLogger | None = None


def configure_logging(config: Config) -> None:
    """Configure logging based on config settings. Call once at startup."""
    global _logger
    if config.log is None:
        _logger = None
        return

    config.log.parent.mkdir(parents=True, exist_ok=True)

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso", key="ts"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        logger_factory=structlog.WriteLoggerFactory(file=config.log.open("a")),
        cache_logger_on_first_use=False,
    )
    _logger = structlog.get_logger().bind(pid=os.getpid())


def log_event(event: str, **kwargs) -> None:
    """Log an event. No-op if logging not configured."""
    if _logger is None:
        return
    _logger.info(event, **kwargs)
