"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import ApiStubConfig

ENV_PREFIX = "APISTUB__"


def resolve_with_precedence(
    *,
    defaults: Optional[ApiStubConfig] = None,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ApiStubConfig:
    """Merge configuration sources: defaults < file < environment < explicit overrides.

    Args:
        defaults: Baseline configuration; model defaults when omitted.
        file_overrides: Nested mapping loaded from the configuration file.
        env_overrides: Nested mapping derived from ``APISTUB__`` variables.
        overrides: Caller-supplied values; keys may use dotted paths.

    Returns:
        ApiStubConfig: Validated configuration.

    Raises:
        ConfigError: If a source is malformed or the merged values are invalid.
    """
    merged = (defaults or ApiStubConfig()).model_dump(mode="python")
    for name, source in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("override", overrides),
    ):
        if source is None:
            continue
        merged = _deep_merge(merged, _expand_dotted(source, source_name=name))

    try:
        return ApiStubConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def env_overrides_from(env: Mapping[str, str]) -> Dict[str, Any]:
    """Return nested overrides for every ``APISTUB__SECTION__KEY`` variable.

    Values are parsed as YAML scalars so ``true`` and ``120`` keep their types;
    values that fail to parse are kept as plain strings.
    """
    result: Dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        _assign(result, path, value, source_name="environment")
    return result


def flatten_for_env(config: ApiStubConfig) -> Dict[str, str]:
    """Flatten the config into ``APISTUB__SECTION__KEY`` environment variable mappings."""
    flat: Dict[str, str] = {}

    def _walk(prefix: List[str], value: Any) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _walk(prefix + [str(key)], child)
            return
        env_key = ENV_PREFIX + "__".join(part.upper() for part in prefix)
        if isinstance(value, list):
            flat[env_key] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif isinstance(value, bool):
            flat[env_key] = "true" if value else "false"
        else:
            flat[env_key] = "null" if value is None else str(value)

    _walk([], config.model_dump(mode="python"))
    return flat


def _expand_dotted(source: Mapping[str, Any], *, source_name: str) -> Dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    result: Dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = _expand_dotted(value, source_name=source_name)
        _assign(result, key.split("."), value, source_name=source_name)
    return result


def _assign(target: Dict[str, Any], path: List[str], value: Any, *, source_name: str) -> None:
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} "
                "conflicts with existing value."
            )
        node = child
    leaf = path[-1]
    if isinstance(value, dict) and isinstance(node.get(leaf), dict):
        node[leaf] = _deep_merge(node[leaf], value)
    else:
        node[leaf] = value


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        if isinstance(value, MappingABC) and isinstance(merged.get(key), MappingABC):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["ENV_PREFIX", "resolve_with_precedence", "env_overrides_from", "flatten_for_env"]
