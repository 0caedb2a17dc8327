"""Application configuration for TaskTeller."""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "taskteller"


@dataclass
class AppConfig:
    """Configuration for storage, ownership and the local calendar."""
    data_dir: str = str(Path.home() / ".local" / "share" / "taskteller")
    timezone: Optional[str] = None  # IANA name; None means system local time
    owner_id: str = "local-user"
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """Create config from dictionary."""
        return cls(**{k: v for k, v in data.items() if hasattr(cls, k)})

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            k: v for k, v in self.__dict__.items()
            if not k.startswith('_')
        }

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppConfig":
        """Load configuration from file, then apply environment overrides."""
        config = cls()

        config_path = config_path or CONFIG_DIR / "config.json"
        if config_path.exists():
            try:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)
                for key, value in file_config.items():
                    if hasattr(config, key):
                        setattr(config, key, value)
                logger.info(f"Loaded app config from {config_path}")
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}")

        config.data_dir = os.getenv("TASKTELLER_DATA_DIR", config.data_dir)
        config.timezone = os.getenv("TASKTELLER_TIMEZONE", config.timezone)
        config.owner_id = os.getenv("TASKTELLER_OWNER", config.owner_id)
        config.log_level = os.getenv("TASKTELLER_LOG_LEVEL", config.log_level)

        return config

    def get_tzinfo(self) -> Optional[ZoneInfo]:
        """Timezone used as the local calendar, or None for system local time."""
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {self.timezone!r}, using system local time")
            return None


def current_time(config: Optional[AppConfig] = None) -> datetime:
    """The current instant on the configured local calendar.

    Naive local time when no timezone is configured.
    """
    config = config or AppConfig.load()
    tz = config.get_tzinfo()
    return datetime.now(tz) if tz else datetime.now()
