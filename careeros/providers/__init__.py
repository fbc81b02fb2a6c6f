"""Provider factory and defaults."""

from __future__ import annotations

import os
from typing import Any, Dict

from .base import ChatProvider
from .gemini import DEFAULT_IMAGE_MODEL, GeminiProvider

PROVIDER_DEFAULTS: Dict[str, Dict[str, str]] = {
    "gemini": {"api_base": "", "env_key": "GEMINI_API_KEY"},
}


def create_provider(
    provider: str,
    api_key: str,
    model: str,
    api_base: str = "",
    **kwargs: Any,
) -> ChatProvider:
    provider_name = (provider or "gemini").lower()
    if provider_name not in PROVIDER_DEFAULTS:
        raise ValueError(f"Unsupported provider: {provider_name}")

    api_key = resolve_api_key(provider_name, api_key)
    return GeminiProvider(
        api_key=api_key,
        model=model,
        api_base=api_base,
        search_grounding=bool(kwargs.get("search_grounding", True)),
        image_model=kwargs.get("image_model") or DEFAULT_IMAGE_MODEL,
    )


def resolve_api_key(provider: str, api_key: str) -> str:
    defaults = PROVIDER_DEFAULTS.get(provider, {})
    env_key = defaults.get("env_key", "")
    api_key = api_key or ""

    if env_key:
        env_value = os.environ.get(env_key, "")
        if env_value:
            return env_value

    if api_key and not api_key.startswith("${"):
        return api_key

    if api_key.startswith("${") and api_key.endswith("}"):
        env_var = api_key[2:-1]
        resolved = os.environ.get(env_var, "")
        if resolved:
            return resolved

    if env_key:
        raise ValueError(f"{env_key} not set. Please set the env var or add api_key to config/config.local.yaml")

    raise ValueError("API key not set. Please set the env var or add api_key to config/config.local.yaml")


__all__ = [
    "ChatProvider",
    "GeminiProvider",
    "PROVIDER_DEFAULTS",
    "create_provider",
    "resolve_api_key",
]
