"""Best-effort discovery of what a provider/model supports.

Cloud and OpenAI-compatible providers use static tables. Ollama is asked via
``POST /api/show``; any failure falls back to defaults and never raises.
Vision detection for local models is a heuristic on model families and names.
"""

import logging
from typing import Optional

import httpx

from mise_recipes.app.schemas.extraction import ModelCapabilities, ProviderKind
from mise_recipes.app.services.ai.providers.endpoints import strip_trailing_slashes

logger = logging.getLogger(__name__)

INTROSPECTION_TIMEOUT_SECONDS = 5.0

DEFAULT_CAPABILITIES = ModelCapabilities(
    supports_temperature=True,
    supports_max_tokens=True,
    supports_vision=False,
    supports_structured_output=True,
    max_temperature=2.0,
)

_STATIC_CAPABILITIES = {
    ProviderKind.OPENAI: DEFAULT_CAPABILITIES.model_copy(update={"supports_vision": True}),
    # Ollama limits output with num_predict, not max_tokens; vision depends on the model.
    ProviderKind.OLLAMA: DEFAULT_CAPABILITIES.model_copy(update={"supports_max_tokens": False}),
    ProviderKind.LM_STUDIO: DEFAULT_CAPABILITIES,
    ProviderKind.GENERIC_OPENAI: DEFAULT_CAPABILITIES.model_copy(
        update={"supports_structured_output": False}
    ),
}

VISION_NAME_MARKERS = ("llava", "vision")
VISION_FAMILY_MARKERS = ("clip",)


def static_capabilities(provider: ProviderKind) -> ModelCapabilities:
    return _STATIC_CAPABILITIES.get(provider, DEFAULT_CAPABILITIES).model_copy()


def looks_like_vision_model(model: str, families: Optional[list] = None) -> bool:
    lowered = (model or "").lower()
    if any(marker in lowered for marker in VISION_NAME_MARKERS):
        return True
    return any(
        isinstance(family, str) and family.lower() in VISION_FAMILY_MARKERS for family in families or []
    )


async def query_ollama_capabilities(
    endpoint: str, model: str, timeout: float = INTROSPECTION_TIMEOUT_SECONDS
) -> ModelCapabilities:
    fallback = DEFAULT_CAPABILITIES.model_copy(update={"supports_max_tokens": False})
    base_url = strip_trailing_slashes(endpoint)
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(f"{base_url}/api/show", json={"name": model})
        if response.status_code >= 400:
            logger.debug("Ollama /api/show request failed with status %s", response.status_code)
            return fallback
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.debug("Failed to query Ollama capabilities for %s: %s", model, exc)
        return fallback

    details = data.get("details") if isinstance(data, dict) else None
    families = (details or {}).get("families") or []
    has_vision = looks_like_vision_model(model, families)
    logger.debug("Ollama model %s families=%s vision=%s", model, families, has_vision)
    return ModelCapabilities(
        supports_temperature=True,
        supports_max_tokens=False,
        supports_vision=has_vision,
        supports_structured_output=True,
        max_temperature=2.0,
    )


async def probe_capabilities(
    provider: ProviderKind,
    endpoint: Optional[str] = None,
    model: Optional[str] = None,
    timeout: float = INTROSPECTION_TIMEOUT_SECONDS,
) -> ModelCapabilities:
    if provider == ProviderKind.OLLAMA and endpoint and model:
        return await query_ollama_capabilities(endpoint, model, timeout=timeout)
    return static_capabilities(provider)
