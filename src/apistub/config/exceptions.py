"""Configuration errors."""

from apistub.errors import ApiStubError


class ConfigError(ApiStubError):
    """Raised when the config file, an environment override, or log settings are invalid."""


__all__ = ["ConfigError"]
