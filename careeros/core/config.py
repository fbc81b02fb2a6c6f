"""Configuration loading for CareerOS."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = "config/config.local.yaml"


@dataclass
class CareerConfig:
    """Model and runtime settings for one deployment."""

    api_key: str = ""
    provider: str = "gemini"
    model: str = "gemini-3-pro-preview"  # full-capability variant
    fast_model: str = "gemini-3-flash-preview"
    image_model: str = "gemini-2.5-flash-image"
    live_model: str = "gemini-2.5-flash-native-audio-preview-09-2025"
    max_tokens: int = 8192
    temperature: float = 0.7
    search_grounding: bool = True
    retry_attempts: int = 3
    max_chain_turns: int = 12
    profile_dir: str = "~/.careeros"

    @property
    def profile_path(self) -> Path:
        return Path(self.profile_dir).expanduser()


def load_raw_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict:
    """Load raw configuration dictionary from YAML file.

    Priority order:
    1. config.local.yaml (user's local config with secrets)
    2. config.yaml (template/defaults)
    """
    repo_root = Path(__file__).resolve().parents[2]

    def _resolve(candidate: str) -> Path:
        path = Path(candidate)
        if path.exists():
            return path
        alt = repo_root / candidate
        if alt.exists():
            return alt
        return path

    def _load_yaml(path: Path) -> dict:
        if not path.exists():
            return {}
        with open(path) as f:
            data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Config file must be a mapping: {path}")
            return data

    def _deep_merge(base: dict, override: dict) -> dict:
        merged = dict(base)
        for key, value in override.items():
            base_value = merged.get(key)
            if isinstance(base_value, dict) and isinstance(value, dict):
                merged[key] = _deep_merge(base_value, value)
            else:
                merged[key] = value
        return merged

    target = _resolve(config_path)
    is_local_default = Path(config_path).name == "config.local.yaml"

    # Default behavior: load config.yaml first, then overlay config.local.yaml.
    if is_local_default:
        base = _load_yaml(_resolve("config/config.yaml"))
        local = _load_yaml(target)
        merged = _deep_merge(base, local)
        if not merged:
            raise FileNotFoundError(f"Config file not found: {config_path} (also missing fallback config/config.yaml)")
        return merged

    data = _load_yaml(target)
    if not data:
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return data


def config_from_dict(data: Dict[str, Any]) -> CareerConfig:
    defaults = CareerConfig()
    models = data.get("models") or {}
    chat = data.get("chat") or {}
    storage = data.get("storage") or {}
    grounding = data.get("search_grounding")
    if isinstance(grounding, dict):
        grounding = grounding.get("enabled", defaults.search_grounding)
    elif grounding is None:
        grounding = defaults.search_grounding

    return CareerConfig(
        api_key=str(data.get("api_key", "") or ""),
        provider=data.get("provider", defaults.provider),
        model=models.get("full", defaults.model),
        fast_model=models.get("fast", defaults.fast_model),
        image_model=models.get("image", defaults.image_model),
        live_model=models.get("live", defaults.live_model),
        max_tokens=int(data.get("max_tokens", defaults.max_tokens)),
        temperature=float(data.get("temperature", defaults.temperature)),
        search_grounding=bool(grounding),
        retry_attempts=int(chat.get("retry_attempts", defaults.retry_attempts)),
        max_chain_turns=int(chat.get("max_chain_turns", defaults.max_chain_turns)),
        profile_dir=storage.get("profile_dir", defaults.profile_dir),
    )


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> CareerConfig:
    """Load CareerOS configuration from YAML file."""
    return config_from_dict(load_raw_config(config_path))
