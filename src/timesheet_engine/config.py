"""Configuration management for the time and pay engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    engine_version: str
    host: str
    port: int
    debug: bool
    log_level: str
    timezone: str
    currency_symbol: str
    csv_delimiter: str
    date_format: str
    time_format: str

    @property
    def HOST(self) -> str:
        """Alias for host."""
        return self.host

    @property
    def PORT(self) -> int:
        """Alias for port."""
        return self.port

    @property
    def DEBUG(self) -> bool:
        """Alias for debug."""
        return self.debug

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        delimiter = os.getenv("CSV_DELIMITER", ",")
        if len(delimiter) != 1:
            raise ValueError(f"CSV_DELIMITER must be a single character, got {delimiter!r}")

        return cls(
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            timezone=os.getenv("TIMEZONE", "Europe/London"),
            currency_symbol=os.getenv("CURRENCY_SYMBOL", "£"),
            csv_delimiter=delimiter,
            date_format=os.getenv("DATE_FORMAT", "%d/%m/%Y"),
            time_format=os.getenv("TIME_FORMAT", "%H:%M:%S"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging for the entry points."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
