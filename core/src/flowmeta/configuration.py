from __future__ import annotations

import os
import re
from collections.abc import Mapping
from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from flowmeta.contracts import RunConfig

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ConfigError(ValueError):
    pass


def load_yaml(path: str | Path) -> dict[str, Any]:
    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"YAML root must be a mapping: {path}")
    return payload


def load_run_config(path: str | Path, *, profile: str | None = None) -> RunConfig:
    payload = load_yaml(path)
    source = str(Path(path).absolute())
    config_files = list(payload.get("config_files") or [])
    if source not in {str(Path(item).absolute()) for item in config_files}:
        config_files.insert(0, source)
    payload["config_files"] = config_files
    return load_run_config_dict(payload, profile=profile)


def load_run_config_dict(payload: Mapping[str, Any], *, profile: str | None = None) -> RunConfig:
    try:
        return RunConfig.model_validate(select_profile(resolve_env_vars(dict(payload)), profile))
    except ValidationError as exc:
        raise ConfigError(_format_validation_error("config", exc)) from exc


def resolve_env_vars(payload: Any) -> Any:
    return _resolve_env_vars(payload, path="$")


def _resolve_env_vars(payload: Any, *, path: str) -> Any:
    if isinstance(payload, Mapping):
        return {
            str(key): _resolve_env_vars(value, path=f"{path}.{key}")
            for key, value in payload.items()
        }
    if isinstance(payload, list):
        return [
            _resolve_env_vars(value, path=f"{path}[{index}]") for index, value in enumerate(payload)
        ]
    if isinstance(payload, str):
        return _substitute_env(payload, path=path)
    return payload


def _substitute_env(value: str, *, path: str) -> str:
    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        env_value = os.environ.get(key)
        if env_value is None:
            raise ConfigError(f"Missing environment variable '{key}' at {path}")
        return env_value

    return _ENV_VAR_PATTERN.sub(replace, value)


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = deepcopy(dict(base))
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def select_profile(payload: Mapping[str, Any], profile: str | None) -> dict[str, Any]:
    """
    Apply a named profile from the `profiles` section on top of the base payload.

    The `profiles` section itself is removed; the selected name is written to `run.profile`.
    """
    base = {key: value for key, value in payload.items() if key != "profiles"}
    if profile is None:
        return base
    profiles = payload.get("profiles") or {}
    if not isinstance(profiles, Mapping) or profile not in profiles:
        raise ConfigError(f"Unknown profile '{profile}'")
    merged = deep_merge(base, profiles[profile] or {})
    run_section = dict(merged.get("run") or {})
    run_section["profile"] = profile
    merged["run"] = run_section
    return merged


def dump_yaml(path: str | Path, payload: Any) -> None:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(payload, handle, sort_keys=False)


def _format_validation_error(prefix: str, exc: ValidationError) -> str:
    details: list[str] = []
    for error in exc.errors(include_url=False):
        loc = ".".join(str(part) for part in error["loc"])
        details.append(f"{prefix}.{loc}: {error['msg']}")
    return "; ".join(details)
