"""Client settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# ClientSettings reads configuration from, in priority order:
#
#   1. Keyword arguments passed to ClientSettings(...)
#   2. Environment variables with the TOONKIT_ prefix,
#      e.g. TOONKIT_SESSION_TOKEN=abc123
#   3. A .env file in the working directory
#   4. The defaults declared below
#
# Field ``session_token`` maps to env var ``TOONKIT_SESSION_TOKEN``,
# ``max_attempts`` to ``TOONKIT_MAX_ATTEMPTS`` and so on.
#
# An empty session token means "anonymous": every read-only operation
# still works, and session-only operations raise UnauthenticatedError.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/121.0.0.0 Safari/537.36"
)


class ClientSettings(BaseSettings):
    """Settings for one :class:`~toonkit.client.Client`.

    Range constraints are validated at construction; an invalid value
    raises ``pydantic.ValidationError``.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOONKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Endpoint ===
    base_url: str = ""  # Overrides the platform's default host when set
    user_agent: str = _DEFAULT_USER_AGENT
    request_timeout: float = Field(default=30.0, gt=0)

    # === Session ===
    session_token: str = ""

    # === Rate-limit etiquette ===
    max_concurrent_requests: int = Field(default=4, ge=1)
    min_request_interval: float = Field(default=0.5, ge=0)  # seconds between request starts

    # === Retry policy ===
    max_attempts: int = Field(default=5, ge=1)  # total attempts, first one included
    backoff_base: float = Field(default=1.0, ge=0)
    backoff_max: float = Field(default=60.0, ge=0)

    # === Logging ===
    app_env: str = "development"  # "production" switches to JSON output
    log_level: str = "INFO"
    configure_logs: bool = False  # apply log_level / app_env when a Client is built

    @property
    def has_session(self) -> bool:
        return bool(self.session_token)
