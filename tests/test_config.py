"""Tests for llmwrite.config."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from llmwrite.config import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    Configuration,
    MemorySettingsStore,
    YamlSettingsStore,
    resolve_configuration,
    update_configuration,
)
from llmwrite.errors import ConfigError


def test_load_returns_defaults_when_missing(tmp_path: Path) -> None:
    store = YamlSettingsStore(tmp_path / "settings.yml", environ={})

    config = store.load()

    assert config == Configuration()
    assert config.model == DEFAULT_MODEL == "text-davinci-003"
    assert config.base_url == DEFAULT_BASE_URL
    assert config.temperature is None


def test_load_merges_file_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.yml"
    path.write_text(
        """
api_key: "sk-abc"
organization_id: "org-xyz"
temperature: 0.4
base_url: "http://localhost:8080/v1/"
""",
        encoding="utf-8",
    )

    config = YamlSettingsStore(path, environ={}).load()

    assert config.api_key == "sk-abc"
    assert config.organization_id == "org-xyz"
    assert config.model == DEFAULT_MODEL
    assert config.temperature == pytest.approx(0.4)
    assert config.top_p is None
    assert config.base_url == "http://localhost:8080/v1"


@pytest.mark.parametrize("model", ["", "   ", None, ["list"], True])
def test_unusable_model_falls_back_to_default(model) -> None:
    assert resolve_configuration({"model": model}).model == DEFAULT_MODEL


def test_environment_overrides_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.yml"
    path.write_text("api_key: from-file\nmodel: text-ada-001\n", encoding="utf-8")
    environ = {"OPENAI_API_KEY": "from-env", "LLMWRITE_ORGANIZATION": "org-env"}

    config = YamlSettingsStore(path, environ=environ).load()

    assert config.api_key == "from-env"
    assert config.organization_id == "org-env"
    assert config.model == "text-ada-001"


def test_save_round_trips_through_yaml(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.yml"
    store = YamlSettingsStore(path, environ={})

    store.save(Configuration(api_key="sk-saved", model="davinci-002", top_p=0.8))

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert data["api_key"] == "sk-saved"
    assert "temperature" not in data
    assert store.load() == Configuration(api_key="sk-saved", model="davinci-002", top_p=0.8)


def test_invalid_yaml_raises_config_error(tmp_path: Path) -> None:
    path = tmp_path / "settings.yml"
    path.write_text("api_key: [unterminated\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        YamlSettingsStore(path, environ={}).load()


def test_non_mapping_root_raises_config_error(tmp_path: Path) -> None:
    path = tmp_path / "settings.yml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        YamlSettingsStore(path, environ={}).load()


def test_update_configuration_validates_keys() -> None:
    updated = update_configuration(Configuration(), {"temperature": "0.25", "model": ""})

    assert updated.temperature == pytest.approx(0.25)
    assert updated.model == DEFAULT_MODEL
    with pytest.raises(ConfigError, match="colour"):
        update_configuration(Configuration(), {"colour": "blue"})


def test_redacted_masks_api_key() -> None:
    data = Configuration(api_key="sk-1234567890abcd").redacted()

    assert data["api_key"] == "sk-...abcd"
    assert "1234567890" not in str(data)


def test_memory_store_accepts_keyword_settings() -> None:
    store = MemorySettingsStore(model="text-babbage-001")

    assert store.load().model == "text-babbage-001"
    store.save(Configuration(model="ada"))
    assert store.load().model == "ada"


@pytest.mark.parametrize("base_url", ["api.openai.com/v1", "ftp://example.com/v1", "http://"])
def test_base_url_requires_http_scheme(base_url: str) -> None:
    with pytest.raises(ConfigError, match="base_url"):
        update_configuration(Configuration(), {"base_url": base_url})


def test_blank_base_url_uses_default() -> None:
    assert resolve_configuration({"base_url": "  "}).base_url == DEFAULT_BASE_URL
