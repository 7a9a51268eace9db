# This project was developed with assistance from AI tools.
"""Thin OpenAI-compatible LLM client.

Wraps the openai Python SDK with configurable base_url so it works
against any OpenAI-compatible endpoint (OpenAI, OpenRouter, vLLM, etc.).
"""

import logging
from typing import Any

from openai import AsyncOpenAI

from .config import get_model_config

logger = logging.getLogger(__name__)

# Per-tier client cache (avoids re-creating HTTP connections)
_clients: dict[str, AsyncOpenAI] = {}


def _get_client(tier: str) -> AsyncOpenAI:
    """Return a cached AsyncOpenAI client for the given model tier.

    Retries are disabled: a classification is a single-shot call and the
    caller decides what a failure means.
    """
    if tier not in _clients:
        model_cfg = get_model_config(tier)
        _clients[tier] = AsyncOpenAI(
            base_url=model_cfg["endpoint"],
            api_key=model_cfg.get("api_key", "not-needed"),
            max_retries=0,
        )
    return _clients[tier]


def clear_client_cache() -> None:
    """Clear cached clients (useful after config reload)."""
    _clients.clear()


async def get_completion(
    messages: list[dict[str, Any]],
    tier: str = "vision",
    **kwargs: Any,
) -> str:
    """Get a non-streaming completion from the specified model tier."""
    client = _get_client(tier)
    model_cfg = get_model_config(tier)

    params = dict(model_cfg.get("parameters") or {})
    params.update(kwargs)

    response = await client.chat.completions.create(
        model=model_cfg["model_name"],
        messages=messages,
        **params,
    )
    return response.choices[0].message.content or ""
