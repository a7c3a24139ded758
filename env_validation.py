"""Environment variable validation and report settings."""

import logging
import os
from dataclasses import dataclass
from typing import FrozenSet

logger = logging.getLogger(__name__)

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class ConfigurationError(Exception):
    """Raised when report environment variables are missing or invalid."""
    pass


@dataclass(frozen=True)
class ReportSettings:
    excluded_user_ids: FrozenSet[str]
    case_insensitive_lookup: bool
    batch_workers: int
    log_level: str


def validate_environment() -> None:
    """Validate report environment variables.

    Raises ConfigurationError if validation fails.
    """
    defaults = {
        "REPORT_BATCH_WORKERS": "4",
        "REPORT_LOG_LEVEL": "INFO",
    }

    # Apply defaults before validation so dependent modules see consistent values.
    for var, value in defaults.items():
        if not os.getenv(var):
            os.environ[var] = value
            logger.info("Environment variable %s not set; using default '%s'", var, value)

    workers = os.getenv("REPORT_BATCH_WORKERS", "")
    try:
        if int(workers) < 1:
            raise ValueError(workers)
    except ValueError:
        raise ConfigurationError(f"REPORT_BATCH_WORKERS must be a positive integer: {workers}")

    level = os.getenv("REPORT_LOG_LEVEL", "").upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(f"Invalid REPORT_LOG_LEVEL: {level}")

    optional_vars = {
        "REPORT_EXCLUDED_USER_IDS": "Comma-separated user ids excluded from submissions",
        "REPORT_CASE_INSENSITIVE_LOOKUP": "Match performance/curve rows ignoring case",
    }
    for var, description in optional_vars.items():
        if not os.getenv(var):
            logger.debug("Optional environment variable not set: %s (%s)", var, description)


def get_env_bool(name: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on", "enabled"}


def get_env_list(name: str) -> FrozenSet[str]:
    raw = os.getenv(name) or ""
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def get_report_settings() -> ReportSettings:
    validate_environment()
    return ReportSettings(
        excluded_user_ids=get_env_list("REPORT_EXCLUDED_USER_IDS"),
        case_insensitive_lookup=get_env_bool("REPORT_CASE_INSENSITIVE_LOOKUP"),
        batch_workers=int(os.environ["REPORT_BATCH_WORKERS"]),
        log_level=os.environ["REPORT_LOG_LEVEL"].upper(),
    )
