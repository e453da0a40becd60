"""Utility modules for toonkit.

- **errors** -- Exception hierarchy rooted at ToonkitError; callers handle
  "not found", "layout changed" and "try later" by type.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **concurrency** -- semaphore-throttled ``gather`` for bounded fan-out.
- **text** -- whitespace collapsing, abbreviated count parsing, season
  extraction and JSONP unwrapping shared by the platform adapters.
"""

# -- Exception hierarchy ----------------------------------------------------
from toonkit.utils.errors import (
    ConfigurationError,
    HttpStatusError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitedError,
    ToonkitError,
    UnauthenticatedError,
)

# -- Structured logging ----------------------------------------------------
from toonkit.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "HttpStatusError",
    "NetworkError",
    "NotFoundError",
    "ParseError",
    "RateLimitedError",
    "ToonkitError",
    "UnauthenticatedError",
    "configure_logging",
    "get_logger",
]
