from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

# PRTime (microseconds since the Unix epoch) for 2000-01-01T00:00Z and 2031-01-01T00:00Z.
OLDEST_LEGAL_DATE_US = 946_684_800_000_000
MOST_FUTURE_LEGAL_DATE_US = 1_924_992_000_000_000


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None else v


@dataclass
class Settings:
    # Writing
    batch_limit: int = 1000

    # Search index
    high_traffic_frecency: int = 10_000
    max_frecency: int = 1_000_000
    frecency_digits: int = 7

    # Visit key window
    oldest_legal_date_us: int = OLDEST_LEGAL_DATE_US
    most_future_legal_date_us: int = MOST_FUTURE_LEGAL_DATE_US

    # Logging / UX
    log_level: str = "INFO"
    no_color: bool = False

    @staticmethod
    def from_env() -> "Settings":
        s = Settings()
        s.batch_limit = _env_int("PLACESKV_BATCH_LIMIT", s.batch_limit)
        s.high_traffic_frecency = _env_int("PLACESKV_HIGH_TRAFFIC_FRECENCY", s.high_traffic_frecency)
        s.max_frecency = _env_int("PLACESKV_MAX_FRECENCY", s.max_frecency)
        s.frecency_digits = _env_int("PLACESKV_FRECENCY_DIGITS", s.frecency_digits)
        s.oldest_legal_date_us = _env_int("PLACESKV_OLDEST_LEGAL_DATE_US", s.oldest_legal_date_us)
        s.most_future_legal_date_us = _env_int("PLACESKV_MOST_FUTURE_LEGAL_DATE_US", s.most_future_legal_date_us)

        s.log_level = _env_str("PLACESKV_LOG_LEVEL", s.log_level)
        s.no_color = _env_bool("PLACESKV_NO_COLOR", s.no_color)
        return s

    @staticmethod
    def from_file(path: Path) -> "Settings":
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        s = Settings.from_env()
        for k, v in data.items():
            if hasattr(s, k):
                setattr(s, k, v)
        return s


def load_settings(config_path: Optional[str]) -> Settings:
    if config_path:
        return Settings.from_file(Path(config_path))
    return Settings.from_env()
