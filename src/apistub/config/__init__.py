"""Configuration management for apistub."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import ApiStubConfig, LoggingSettings, RegistrySettings, TextSettings
from .resolver import (
    ENV_PREFIX,
    env_overrides_from,
    flatten_for_env,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.apistub/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # apistub configuration file
    # Sections: registry (capability groups), text (YAML emission), logging.
    """
)


class ConfigManager:
    """Read and write the apistub config file and resolve layered settings."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the expanded path of the config file."""
        return self._config_path

    def load(
        self,
        *,
        overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = False,
    ) -> ApiStubConfig:
        """Load configuration from disk and the environment.

        Args:
            overrides: Highest-precedence values; keys may use dotted paths.
            include_env: Whether ``APISTUB__`` variables participate.
            ensure_file: Create the file with defaults when it is missing.

        Returns:
            ApiStubConfig: Resolved configuration.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        return resolve_with_precedence(
            file_overrides=self._read_file(),
            env_overrides=env_overrides_from(self._env) if include_env else None,
            overrides=overrides,
        )

    def save(self, config: ApiStubConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to the config file, replacing its contents."""
        if isinstance(config, ApiStubConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Write the default settings unless the config file already exists."""
        if not self._config_path.exists():
            self._write_file(ApiStubConfig().model_dump(mode="python"))
        return self._config_path

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{self._config_path}: invalid YAML: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"{self._config_path}: cannot be read: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError(f"{self._config_path}: top level must be a mapping.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )


__all__ = [
    "ApiStubConfig",
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "LoggingSettings",
    "RegistrySettings",
    "TextSettings",
    "env_overrides_from",
    "flatten_for_env",
    "resolve_with_precedence",
]
