# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   to all other modules.
#
# CLASSES:
# --------
# - ServerConfig (dataclass)
#     url: str              (default "https://127.0.0.1")
#     username: str         (default "prtgadmin")
#     passhash: str         (default "")
#     timeout_seconds: float (default 30.0)
#
# - RetryConfig (dataclass)
#     retry_count: int           (default 1)
#     retry_delay_seconds: float (default 3.0)
#
# - StreamConfig (dataclass)
#     page_size: int                   (default 500)
#     log_poll_interval_seconds: float (default 1.0)
#
# - ProgressConfig (dataclass)
#     enabled: bool         (default True)
#
# - AppConfig (dataclass)
#     server, retry, stream, progress
#
# FUNCTION:
# ---------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# USAGE:
# ------
#   from prtg_stream.config import get_config
#   config = get_config()
#   print(config.server.url)
#   print(config.stream.page_size)
#
# ==============================================

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass
class ServerConfig:
    """Connection settings for the PRTG server."""
    url: str = "https://127.0.0.1"
    username: str = "prtgadmin"
    passhash: str = ""
    timeout_seconds: float = 30.0


@dataclass
class RetryConfig:
    """
    Retry settings for requests that fail in transit.

    Each successive attempt waits an additional multiple of
    retry_delay_seconds (3s, 6s, 9s, ...).
    """
    retry_count: int = 1
    retry_delay_seconds: float = 3.0


@dataclass
class StreamConfig:
    """Paging and polling settings."""
    page_size: int = 500
    log_poll_interval_seconds: float = 1.0


@dataclass
class ProgressConfig:
    """Whether pipelines render progress at all."""
    enabled: bool = True


@dataclass
class AppConfig:
    """Main application configuration."""
    server: ServerConfig = field(default_factory=ServerConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)
    progress: ProgressConfig = field(default_factory=ProgressConfig)


# Singleton instance
_config_instance: Optional[AppConfig] = None


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    server_config = ServerConfig(
        url=os.getenv("PRTG_SERVER", "https://127.0.0.1"),
        username=os.getenv("PRTG_USERNAME", "prtgadmin"),
        passhash=os.getenv("PRTG_PASSHASH", ""),
        timeout_seconds=float(os.getenv("PRTG_TIMEOUT_SECONDS", "30"))
    )

    retry_config = RetryConfig(
        retry_count=int(os.getenv("PRTG_RETRY_COUNT", "1")),
        retry_delay_seconds=float(os.getenv("PRTG_RETRY_DELAY_SECONDS", "3"))
    )

    stream_config = StreamConfig(
        page_size=int(os.getenv("PRTG_PAGE_SIZE", "500")),
        log_poll_interval_seconds=float(os.getenv("PRTG_LOG_POLL_INTERVAL_SECONDS", "1.0"))
    )

    progress_config = ProgressConfig(
        enabled=_env_bool("PRTG_PROGRESS", True)
    )

    _config_instance = AppConfig(
        server=server_config,
        retry=retry_config,
        stream=stream_config,
        progress=progress_config
    )

    return _config_instance


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None
