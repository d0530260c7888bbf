import os

from pydantic import BaseModel, PositiveInt, ValidationError

from hostrelay.exceptions import ConfigurationException


class RateLimitSettings(BaseModel):
    limit: PositiveInt = 100
    window_ms: PositiveInt = 60000


class ConfigManager:
    ALLOWED_HOSTS_KEY = "ALLOWED_HOSTS"
    CLIENT_IP_ALLOWLIST_KEY = "CLIENT_IP_ALLOWLIST"
    CORS_ALLOWED_ORIGINS_KEY = "CORS_ALLOWED_ORIGINS"

    DEFAULT_RATE_LIMIT = 100
    DEFAULT_RATE_WINDOW_MS = 60000
    DEFAULT_PROXY_CLIENT_TIMEOUT_SECS = 60

    def get(self, key, default=None):
        # Read on every call so allowlist changes apply without a restart.
        return os.environ.get(key, default)

    @property
    def proxy_client_timeout_secs(self) -> float:
        value = self.get("PROXY_CLIENT_TIMEOUT_SECS", self.DEFAULT_PROXY_CLIENT_TIMEOUT_SECS)
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationException(f"Invalid PROXY_CLIENT_TIMEOUT_SECS: {value!r}") from e

    def rate_limit_settings(self) -> RateLimitSettings:
        try:
            return RateLimitSettings.model_validate({
                "limit": self.get("RATE_LIMIT", self.DEFAULT_RATE_LIMIT),
                "window_ms": self.get("RATE_WINDOW_MS", self.DEFAULT_RATE_WINDOW_MS),
            })
        except ValidationError as e:
            raise ConfigurationException(f"Invalid rate limit settings: {e}") from e
