"""
Console process settings.

Centralizes runtime knobs for the console, with defaults that can be
overridden from environment variables or the command line.
"""
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Dict, Any
import os

FRONTENDS = ("tk", "tui")


@dataclass(frozen=True)
class ConsoleSettings:
    """Configuration for a console session."""

    # Frontend: "tk" runs on the worker pool, "tui" on the event loop
    frontend: str = "tk"

    # Delay before re-polling while operations are in flight
    poll_interval: float = 0.1

    # Per-request timeout for the HTTP client
    request_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False
    log_dir: Optional[str] = None

    # Explicit node config file; searched for when unset
    config_path: Optional[str] = None

    def __post_init__(self):
        if self.frontend not in FRONTENDS:
            raise ValueError(f"frontend must be one of {', '.join(FRONTENDS)}")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

    @classmethod
    def from_env(cls) -> 'ConsoleSettings':
        """Create settings from environment variables."""
        return cls(
            frontend=os.getenv("LDK_CONSOLE_FRONTEND", "tk"),
            poll_interval=float(os.getenv("LDK_CONSOLE_POLL_INTERVAL", "0.1")),
            request_timeout=float(os.getenv("LDK_CONSOLE_REQUEST_TIMEOUT", "30.0")),
            log_level=os.getenv("LDK_CONSOLE_LOG_LEVEL", "INFO"),
            json_logs=os.getenv("LDK_CONSOLE_JSON_LOGS", "false").lower() == "true",
            log_dir=os.getenv("LDK_CONSOLE_LOG_DIR") or None,
            config_path=os.getenv("LDK_CONSOLE_CONFIG") or None,
        )

    def with_overrides(self, **overrides) -> 'ConsoleSettings':
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @property
    def log_file(self) -> Optional[Path]:
        if not self.log_dir:
            return None
        return Path(self.log_dir) / "ldk_console.log"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "frontend": self.frontend,
            "poll_interval": self.poll_interval,
            "request_timeout": self.request_timeout,
            "log_level": self.log_level,
            "json_logs": self.json_logs,
            "log_dir": self.log_dir,
            "config_path": self.config_path,
        }
