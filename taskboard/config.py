"""Taskboard Configuration Settings."""

import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # Database
    DATABASE_URL: Optional[str] = None

    # Application
    APP_NAME: str = "Taskboard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

    # Board housekeeping
    ARCHIVE_DONE_AFTER_DAYS: int = Field(default=1, description="Days after completion before a DONE task is archived; <= 0 disables")

    @property
    def log_level_value(self) -> int:
        """Return the numeric logging level, defaulting to INFO for unknown names."""

        level = logging.getLevelName(self.LOG_LEVEL.strip().upper())
        return level if isinstance(level, int) else logging.INFO

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()

HANDLER_NAME = "taskboard"


def configure_logging(config: Optional[Settings] = None) -> None:
    """Attach a stream handler to the ``taskboard`` logger tree."""
    config = config or settings
    logger = logging.getLogger("taskboard")
    logger.setLevel(logging.DEBUG if config.DEBUG else config.log_level_value)
    handler = next((h for h in logger.handlers if h.name == HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler.set_name(HANDLER_NAME)
        logger.addHandler(handler)
    handler.setFormatter(logging.Formatter(config.LOG_FORMAT))
