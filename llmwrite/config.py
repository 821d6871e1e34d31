"""Settings loading and persistence for llmwrite (settings.yml)."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence
from urllib.parse import urlsplit

import yaml

from .errors import ConfigError
from .logging import get_logger

DEFAULT_MODEL = "text-davinci-003"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_SETTINGS_PATH = Path("~/.llmwrite/settings.yml")

ENV_API_KEY_KEYS = ("LLMWRITE_API_KEY", "OPENAI_API_KEY")
ENV_ORGANIZATION_KEYS = ("LLMWRITE_ORGANIZATION", "OPENAI_ORGANIZATION")
ENV_MODEL_KEYS = ("LLMWRITE_MODEL",)

logger = get_logger("config")


@dataclass(frozen=True)
class Configuration:
    """Completion settings; a snapshot is read-only for the duration of a command."""

    api_key: str = ""
    organization_id: str = ""
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    temperature: Optional[float] = None
    top_p: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def redacted(self) -> Dict[str, Any]:
        """Return a printable mapping with the API key masked."""
        data = self.to_dict()
        if self.api_key:
            data["api_key"] = f"{self.api_key[:3]}...{self.api_key[-4:]}"
        return data


DEFAULTS = Configuration()


class SettingsStore(Protocol):
    """Load/save capability consumed by the orchestrator."""

    def load(self) -> Configuration: ...

    def save(self, config: Configuration) -> None: ...


def resolve_configuration(data: Mapping[str, Any] | None) -> Configuration:
    """Resolve a raw mapping against the defaults table."""
    data = data or {}
    model = _as_str(data.get("model"))
    return Configuration(
        api_key=_as_str(data.get("api_key")) or DEFAULTS.api_key,
        organization_id=_as_str(data.get("organization_id")) or DEFAULTS.organization_id,
        model=model.strip() if model and model.strip() else DEFAULTS.model,
        base_url=_as_base_url(data.get("base_url")),
        temperature=_as_float(data.get("temperature")),
        top_p=_as_float(data.get("top_p")),
    )


def update_configuration(config: Configuration, changes: Mapping[str, Any]) -> Configuration:
    """Return a copy of ``config`` with ``changes`` applied and re-validated."""
    known = {item.name for item in fields(Configuration)}
    unknown = sorted(set(changes) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")
    merged = config.to_dict()
    merged.update(changes)
    return resolve_configuration(merged)


class YamlSettingsStore:
    """Persists settings to a YAML file, with environment variables taking priority."""

    def __init__(
        self,
        path: Path | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.path = (path or DEFAULT_SETTINGS_PATH).expanduser()
        self._environ = environ if environ is not None else os.environ

    def load(self) -> Configuration:
        data = self._read() if self.path.exists() else {}
        data = dict(data)
        for key, env_keys in (
            ("api_key", ENV_API_KEY_KEYS),
            ("organization_id", ENV_ORGANIZATION_KEYS),
            ("model", ENV_MODEL_KEYS),
        ):
            value = self._first_env_value(env_keys)
            if value:
                data[key] = value
        return resolve_configuration(data)

    def save(self, config: Configuration) -> None:
        payload = {key: value for key, value in config.to_dict().items() if value is not None}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            yaml.safe_dump(payload, sort_keys=True, default_flow_style=False),
            encoding="utf-8",
        )
        logger.debug("Saved settings to %s", self.path)

    def _read(self) -> Dict[str, Any]:
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        try:
            loaded = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {self.path.name}: {exc}") from exc
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"{self.path.name} must contain a mapping at the root")
        return loaded

    def _first_env_value(self, keys: Sequence[str]) -> str | None:
        for key in keys:
            value = self._environ.get(key, "").strip()
            if value:
                return value
        return None


class MemorySettingsStore:
    """Keeps settings in memory; used by tests and embedded hosts."""

    def __init__(self, config: Configuration | None = None, **values: Any) -> None:
        base = config or DEFAULTS
        self._config = update_configuration(base, values) if values else base

    def load(self) -> Configuration:
        return self._config

    def save(self, config: Configuration) -> None:
        self._config = replace(config)


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_base_url(value: Any) -> str:
    text = (_as_str(value) or "").strip().rstrip("/")
    if not text:
        return DEFAULTS.base_url
    parts = urlsplit(text)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigError(f"base_url must be an http(s) URL, got {text!r}")
    return text


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


__all__ = [
    "DEFAULTS",
    "DEFAULT_BASE_URL",
    "DEFAULT_MODEL",
    "DEFAULT_SETTINGS_PATH",
    "Configuration",
    "ConfigError",
    "MemorySettingsStore",
    "SettingsStore",
    "YamlSettingsStore",
    "resolve_configuration",
    "update_configuration",
]
