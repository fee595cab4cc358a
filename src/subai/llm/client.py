"""Async LLM client via LiteLLM, plus provider availability checks."""

from __future__ import annotations

import os

from subai.core.config import LLMConfig

_PLACEHOLDER_MARKERS = ("your_", "demo_key", "changeme")
_MIN_KEY_LENGTH = 20


def _extract_ollama_model(model: str) -> str | None:
    """Extract the Ollama model name from a LiteLLM model string.

    Returns None if the model is not served by Ollama.
    E.g. "ollama_chat/qwen3:8b" -> "qwen3:8b"
    """
    for prefix in ("ollama_chat/", "ollama/"):
        if model.startswith(prefix):
            return model[len(prefix) :]
    return None


def is_placeholder_key(key: str | None) -> bool:
    """True for missing, obviously fake, or truncated API keys."""
    if not key:
        return True
    lowered = key.lower()
    if any(marker in lowered for marker in _PLACEHOLDER_MARKERS):
        return True
    return len(key) < _MIN_KEY_LENGTH


def has_provider(config: LLMConfig, model: str) -> bool:
    """Check whether ``model`` can be called with the configured credentials.

    Local Ollama models need no key. An explicit ``api_key`` counts unless it
    is a placeholder. Otherwise LiteLLM decides from the environment
    (OPENAI_API_KEY, GEMINI_API_KEY, ...).
    """
    if _extract_ollama_model(model) is not None:
        return True
    if config.api_key is not None:
        return not is_placeholder_key(config.api_key)

    try:
        from litellm import validate_environment
    except ImportError:
        return False

    try:
        env = validate_environment(model=model)
    except Exception:
        return False
    if not env.get("keys_in_environment", False):
        return False

    # A placeholder OPENAI_API_KEY copied from .env.example is still "present"
    if "/" not in model or model.startswith("openai/"):
        return not is_placeholder_key(os.environ.get("OPENAI_API_KEY"))
    return True


async def complete(
    messages: list[dict[str, str]],
    config: LLMConfig,
    model: str,
    **kwargs: object,
) -> str:
    """Send an async chat completion request via LiteLLM.

    Args:
        messages: Chat messages in OpenAI format.
        config: LLM configuration (credentials, sampling).
        model: LiteLLM model string for this call.
        **kwargs: Additional kwargs passed to litellm.acompletion
            (e.g. max_tokens, reasoning_effort).

    Returns:
        The assistant's response text ("" if the provider returned none).
    """
    try:
        from litellm import acompletion
    except ImportError:
        raise ImportError("LiteLLM is not installed. Install with: pip install litellm")

    params: dict = {
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
    }
    params.update(kwargs)

    response = await acompletion(
        model=model,
        messages=messages,
        api_key=config.api_key,
        api_base=config.api_base,
        drop_params=True,
        **params,
    )
    return response.choices[0].message.content or ""
