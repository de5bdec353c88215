"""Global configuration — XDG paths, YAML config file, env vars, defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from stardash.pipeline.models import ChannelEndpoint


class ConfigError(ValueError):
    """Raised for an unreadable config file or an invalid setting."""


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "stardash"
    return Path.home() / ".config" / "stardash"


def _default_endpoint() -> str:
    return ChannelEndpoint.default().address


# Environment overrides: variable → (field, converter)
_ENV_OVERRIDES = {
    "STARDASH_ENDPOINT": ("endpoint", str),
    "STARDASH_RETRY_DELAY": ("retry_delay", float),
    "STARDASH_HISTORY_SIZE": ("history_size", int),
}

# Expected YAML value type per key; ints are accepted where a float is expected
_FIELD_TYPES = {
    "endpoint": str,
    "retry_delay": float,
    "backoff": float,
    "max_retry_delay": float,
    "connect_timeout": float,
    "read_size": int,
    "history_size": int,
    "max_line_bytes": int,
    "retry_on_peer_close": bool,
    "verbose": bool,
}
_NULLABLE = {"max_line_bytes"}


def _coerce(key: str, value: object) -> object:
    expected = _FIELD_TYPES[key]
    if value is None and key in _NULLABLE:
        return None
    # bool is an int subclass and is only valid for flag keys
    if expected is not bool and isinstance(value, bool):
        value_ok = False
    elif expected is float:
        value_ok = isinstance(value, (int, float))
    else:
        value_ok = isinstance(value, expected)
    if not value_ok:
        raise ConfigError(
            f"{key} must be {expected.__name__}, got {type(value).__name__} {value!r}"
        )
    return float(value) if expected is float else value


@dataclass
class StarDashConfig:
    """Application-wide configuration."""

    config_dir: Path = field(default_factory=_default_config_dir)
    endpoint: str = field(default_factory=_default_endpoint)
    retry_delay: float = 2.0
    backoff: float = 1.0  # 1.0 keeps the delay fixed
    max_retry_delay: float = 30.0
    connect_timeout: float = 2.0
    read_size: int = 4096
    history_size: int = 100
    max_line_bytes: int | None = None
    retry_on_peer_close: bool = False
    verbose: bool = False

    @classmethod
    def load(cls, path: str | Path | None = None) -> StarDashConfig:
        """Load config: defaults, then the YAML file, then environment variables.

        ``path`` selects an explicit YAML file; otherwise ``config.yaml`` in
        the XDG config dir is read when present.
        """
        config = cls()

        config_path = Path(path) if path else config.config_dir / "config.yaml"
        if path or config_path.is_file():
            config.apply(_read_yaml(config_path))

        for var, (name, convert) in _ENV_OVERRIDES.items():
            raw = os.environ.get(var)
            if not raw:
                continue
            try:
                setattr(config, name, convert(raw))
            except ValueError as exc:
                raise ConfigError(f"Invalid {var}={raw!r}: {exc}") from exc

        config.validate()
        return config

    def apply(self, data: dict) -> None:
        """Overlay settings from a mapping, rejecting unknown keys and wrong types."""
        known = {f.name for f in fields(self)} - {"config_dir"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        for key, value in data.items():
            setattr(self, key, _coerce(key, value))

    def validate(self) -> None:
        if not self.endpoint:
            raise ConfigError("endpoint must not be empty")
        if self.retry_delay <= 0:
            raise ConfigError("retry_delay must be positive")
        if self.backoff < 1.0:
            raise ConfigError("backoff must be >= 1.0")
        if self.history_size < 1:
            raise ConfigError("history_size must be at least 1")
        if self.max_line_bytes is not None and self.max_line_bytes < 1:
            raise ConfigError("max_line_bytes must be positive or null")


def _read_yaml(path: Path) -> dict:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config YAML must be a mapping")
    return data
