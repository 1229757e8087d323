"""Configuration for the bmk bookmark manager."""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from bmk.bookmarks_store import get_default_bookmarks_path

TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


@dataclass
class Config:
    """Main configuration for bmk."""
    bookmarks_path: Path = field(default_factory=get_default_bookmarks_path)
    launch_timeout: float = 5.0  # Seconds to wait for the browser
    quit_on_launch: bool = False  # Leave the TUI after a successful launch
    log_file: Optional[Path] = None  # None = logging disabled
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        path_str = os.environ.get("BMK_BOOKMARKS_FILE")
        log_str = os.environ.get("BMK_LOG_FILE")

        return cls(
            bookmarks_path=Path(path_str).expanduser() if path_str else get_default_bookmarks_path(),
            launch_timeout=float(os.environ.get("BMK_LAUNCH_TIMEOUT", "5.0")),
            quit_on_launch=_env_flag("BMK_QUIT_ON_LAUNCH"),
            log_file=Path(log_str).expanduser() if log_str else None,
            log_level=os.environ.get("BMK_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(config: Config) -> None:
    """Route the ``bmk`` logger to the configured file, or nowhere.

    The terminal belongs to curses, so records never go to stderr.
    """
    root = logging.getLogger("bmk")
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if config.log_file is None:
        root.addHandler(logging.NullHandler())
        return

    config.log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(config.log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.log_level, logging.INFO))


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance.

    Returns:
        Config loaded from environment
    """
    global _config

    if _config is None:
        _config = Config.from_env()

    return _config
