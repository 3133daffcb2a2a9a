# loyalty_auth/config/settings.py
import re

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_RE = re.compile(r"^(\d+)([smhdw])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60, "w": 7 * 24 * 60 * 60}
DEFAULT_DURATION_SECONDS = 3600
MIN_SECRET_LENGTH = 32


def parse_duration(value: str) -> int:
    """Convert a lifetime such as ``"24h"`` or ``"7d"`` into seconds.

    Anything that does not match ``<number><unit>`` falls back to one hour.
    """
    match = _DURATION_RE.match((value or "").strip())
    if not match:
        return DEFAULT_DURATION_SECONDS
    return int(match.group(1)) * _UNIT_SECONDS[match.group(2)]


class Settings(BaseSettings):
    # PostgreSQL in production
    database_url: str | None = None

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    api_prefix: str = "/api"
    cors_origin: str | None = None

    jwt_secret: str | None = None
    jwt_refresh_secret: str | None = None
    jwt_expiry: str = "24h"
    jwt_refresh_expiry: str = "7d"
    jwt_issuer: str = "gudcity-loyalty-platform"
    jwt_audience: str = "gudcity-users"

    rate_limit_max_requests: int = 60
    rate_limit_window_seconds: int = 60

    strict_refresh_rotation: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url", "jwt_secret", "jwt_refresh_secret", "cors_origin", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            v = v.strip().strip('"').strip("'")
            return v or None
        return v

    @field_validator("api_prefix")
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = f"/{v}"
        return v

    @property
    def access_token_seconds(self) -> int:
        return parse_duration(self.jwt_expiry)

    @property
    def refresh_token_seconds(self) -> int:
        return parse_duration(self.jwt_refresh_expiry)

    @property
    def refresh_secret(self) -> str | None:
        return self.jwt_refresh_secret or self.jwt_secret

    def missing_settings(self) -> list[str]:
        missing = []
        if not self.database_url:
            missing.append("DATABASE_URL")
        if not self.jwt_secret:
            missing.append("JWT_SECRET")
        return missing

    def weak_secrets(self) -> list[str]:
        weak = []
        if self.jwt_secret and len(self.jwt_secret) < MIN_SECRET_LENGTH:
            weak.append("JWT_SECRET")
        if self.jwt_refresh_secret and len(self.jwt_refresh_secret) < MIN_SECRET_LENGTH:
            weak.append("JWT_REFRESH_SECRET")
        return weak

    @property
    def is_configured(self) -> bool:
        return not self.missing_settings()
