"""Tests for YAML config loading and API key resolution."""

from __future__ import annotations

import pytest

from careeros.core.config import CareerConfig, config_from_dict, load_config, load_raw_config
from careeros.providers import create_provider, resolve_api_key


def test_explicit_config_file_is_loaded(tmp_path):
    path = tmp_path / "career.yaml"
    path.write_text(
        "api_key: secret\n"
        "models:\n  full: big-model\n  fast: quick-model\n"
        "chat:\n  retry_attempts: 5\n  max_chain_turns: 6\n"
        "storage:\n  profile_dir: /tmp/profiles\n"
        "search_grounding:\n  enabled: true\n"
    )

    config = load_config(str(path))

    assert config.api_key == "secret"
    assert (config.model, config.fast_model) == ("big-model", "quick-model")
    assert config.image_model == CareerConfig().image_model
    assert (config.retry_attempts, config.max_chain_turns) == (5, 6)
    assert config.search_grounding is True
    assert str(config.profile_path) == "/tmp/profiles"


def test_local_config_is_deep_merged_over_defaults(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "config.yaml").write_text("models:\n  full: base-full\n  fast: base-fast\ntemperature: 0.2\n")
    (config_dir / "config.local.yaml").write_text("api_key: local-key\nmodels:\n  fast: local-fast\n")
    monkeypatch.chdir(tmp_path)

    raw = load_raw_config("config/config.local.yaml")

    assert raw["models"] == {"full": "base-full", "fast": "local-fast"}
    assert raw["api_key"] == "local-key"
    assert raw["temperature"] == 0.2


def test_missing_config_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_non_mapping_config_is_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_raw_config(str(path))


def test_empty_dict_yields_defaults():
    assert config_from_dict({}) == CareerConfig()


@pytest.mark.parametrize(
    "raw,expected",
    [
        ({}, True),
        ({"search_grounding": {}}, True),
        ({"search_grounding": {"enabled": False}}, False),
        ({"search_grounding": False}, False),
    ],
)
def test_search_grounding_is_on_unless_disabled(raw, expected):
    config = config_from_dict(raw)
    assert config.search_grounding is expected
    assert create_provider("gemini", "key", "m", search_grounding=config.search_grounding).search_grounding is expected


def test_provider_factory_grounds_by_default():
    assert create_provider("gemini", "key", "m").search_grounding is True


def test_api_key_resolution(monkeypatch):
    assert resolve_api_key("gemini", "literal") == "literal"

    monkeypatch.setenv("MY_KEY", "from-placeholder")
    assert resolve_api_key("gemini", "${MY_KEY}") == "from-placeholder"

    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    assert resolve_api_key("gemini", "literal") == "from-env"


def test_unresolved_key_raises():
    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        resolve_api_key("gemini", "${UNSET_CAREEROS_KEY}")


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError, match="Unsupported provider"):
        create_provider("openai", "key", "gpt")
