"""Configuration - alarm daemon settings"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
load_dotenv(override=True)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Daemon settings"""

    # Storage
    data_dir: Path = field(default_factory=lambda: Path.home() / ".unmute" / "data")

    # Backend selection: auto / native / legacy
    backend: str = "auto"

    # Device timezone (IANA id); None means the system zone
    local_timezone: Optional[str] = None

    # Legacy notification queue cap and the point where users are warned
    notification_limit: int = 64
    limit_warning_threshold: int = 60

    # Answers given by the in-process permission prompts
    native_authorized: bool = True
    notifications_authorized: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables"""
        backend = os.getenv("UNMUTE_BACKEND", "auto").strip().lower() or "auto"
        if backend not in ("auto", "native", "legacy"):
            backend = "auto"

        return cls(
            # Storage
            data_dir=Path(os.getenv(
                "UNMUTE_DATA_DIR", str(Path.home() / ".unmute" / "data")
            )),

            # Backend
            backend=backend,
            local_timezone=os.getenv("UNMUTE_LOCAL_TIMEZONE") or None,

            # Limits
            notification_limit=int(os.getenv("UNMUTE_NOTIFICATION_LIMIT", "64")),
            limit_warning_threshold=int(os.getenv("UNMUTE_LIMIT_WARNING_THRESHOLD", "60")),

            # Permissions
            native_authorized=_env_flag("UNMUTE_NATIVE_AUTHORIZED", True),
            notifications_authorized=_env_flag("UNMUTE_NOTIFICATIONS_AUTHORIZED", True),

            # Logging
            log_level=os.getenv("UNMUTE_LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("UNMUTE_LOG_FILE") or None,
        )


# Global settings instance
settings = Settings.from_env()
