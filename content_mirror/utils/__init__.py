"""Shared utilities for configuration, logging, and retries"""

from content_mirror.utils.config_loader import ConfigLoader
from content_mirror.utils.logging_config import configure_logging, get_logger
from content_mirror.utils.retry import exponential_backoff_retry

__all__ = ["ConfigLoader", "configure_logging", "exponential_backoff_retry", "get_logger"]
