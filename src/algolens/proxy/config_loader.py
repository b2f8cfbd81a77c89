from __future__ import annotations

import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Callable

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

from .config import ProxyConfig

CONFIG_FILE_ENV = "ALGOLENS_CONFIG_FILE"
ENV_PREFIX = "ALGOLENS_"
API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_CONFIG_PATH = Path("configs/algolens.toml")

# Fields that never come from the TOML file
_RUNTIME_ONLY = {"openai_api_key", "config_file_path"}

_SECTION_MAP: dict[str, list[str]] = {
    "server": ["host", "port"],
    "upstream": ["upstream_url", "model", "max_tokens", "upstream_timeout_ms"],
    "limits": ["max_image_bytes", "validate_image"],
    "logging": ["request_log_path", "max_log_bytes", "log_level"],
}


def _field_types() -> dict[str, Any]:
    return {f.name: f.type for f in fields(ProxyConfig)}


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _coerce_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("boolean is not an integer setting")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return int(str(value))


def _coerce_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


# dataclass field annotations are strings under postponed evaluation
_CASTERS: dict[str, Callable[[Any], Any]] = {
    "bool": _coerce_bool,
    "int": _coerce_int,
    "str": _coerce_str,
}


def _coerce_value(field_type: Any, value: Any) -> Any:
    caster = _CASTERS.get(str(field_type))
    if caster:
        return caster(value)
    return value


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        data = tomllib.load(fh)

    out: dict[str, Any] = {}
    for section, keys in _SECTION_MAP.items():
        section_values = data.get(section, {})
        if not isinstance(section_values, dict):
            continue
        for key in keys:
            if key in section_values:
                out[key] = section_values[key]
    return out


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    env = os.environ

    def env_bool(name: str, current: bool) -> bool:
        val = env.get(name)
        if val is None:
            return current
        return val.lower() in {"1", "true", "yes", "on"}

    def env_int(name: str, current: int) -> int:
        val = env.get(name)
        if val is None:
            return current
        try:
            return int(val)
        except ValueError:
            return current

    def env_str(name: str, current: str) -> str:
        val = env.get(name)
        if val is None:
            return current
        return val

    overrides = {
        "host": env_str("ALGOLENS_HOST", config["host"]),
        "port": env_int("ALGOLENS_PORT", config["port"]),
        "upstream_url": env_str("ALGOLENS_UPSTREAM_URL", config["upstream_url"]),
        "model": env_str("ALGOLENS_MODEL", config["model"]),
        "max_tokens": env_int("ALGOLENS_MAX_TOKENS", config["max_tokens"]),
        "upstream_timeout_ms": env_int(
            "ALGOLENS_UPSTREAM_TIMEOUT_MS", config["upstream_timeout_ms"]
        ),
        "max_image_bytes": env_int(
            "ALGOLENS_MAX_IMAGE_BYTES", config["max_image_bytes"]
        ),
        "validate_image": env_bool("ALGOLENS_VALIDATE_IMAGE", config["validate_image"]),
        "request_log_path": env_str(
            "ALGOLENS_REQUEST_LOG_PATH", config["request_log_path"]
        ),
        "max_log_bytes": env_int("ALGOLENS_MAX_LOG_BYTES", config["max_log_bytes"]),
        "log_level": env_str("ALGOLENS_LOG_LEVEL", config["log_level"]),
    }
    config.update(overrides)
    return config


def _default_config_dict() -> dict[str, Any]:
    data = asdict(ProxyConfig())
    for key in _RUNTIME_ONLY:
        data.pop(key, None)
    return data


def _normalize(config: dict[str, Any]) -> dict[str, Any]:
    field_types = _field_types()
    normalized = {}
    for key, default_value in _default_config_dict().items():
        value = config.get(key, default_value)
        try:
            normalized[key] = _coerce_value(field_types.get(key), value)
        except (TypeError, ValueError):
            normalized[key] = default_value
    normalized["log_level"] = str(normalized["log_level"]).upper() or "INFO"
    if normalized["max_image_bytes"] < 0:
        normalized["max_image_bytes"] = 0
    return normalized


def _config_path() -> Path:
    return Path(os.environ.get(CONFIG_FILE_ENV) or DEFAULT_CONFIG_PATH).expanduser()


def load_file_config() -> dict[str, Any]:
    """Defaults merged with the TOML file, without environment overrides."""
    base = _default_config_dict()
    base.update(_read_config_file(_config_path()))
    return _normalize(base)


def load_proxy_config() -> ProxyConfig:
    candidate = _config_path()
    file_values = _read_config_file(candidate)
    normalized = _normalize(file_values)
    normalized = _apply_env_overrides(normalized)
    normalized = _normalize(normalized)
    cfg = ProxyConfig(**normalized)
    cfg.openai_api_key = os.environ.get(API_KEY_ENV) or None
    cfg.config_file_path = str(candidate) if candidate.exists() else None
    return cfg


def list_env_overrides() -> dict[str, str]:
    return {
        key: value
        for key, value in os.environ.items()
        if key.startswith(ENV_PREFIX) and key != CONFIG_FILE_ENV
    }
