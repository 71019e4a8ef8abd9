"""Model listing for the admin UI. Every function returns ``[]`` on failure."""

import logging
from typing import List, Optional

import httpx

from mise_recipes.app.schemas.extraction import AvailableModel, ProviderKind
from mise_recipes.app.services.ai.providers.endpoints import (
    OPENAI_BASE_URL,
    strip_api_version,
    strip_trailing_slashes,
)

logger = logging.getLogger(__name__)

LOCAL_LISTING_TIMEOUT_SECONDS = 5.0
CLOUD_LISTING_TIMEOUT_SECONDS = 10.0

NON_CHAT_MARKERS = ("embedding", "whisper", "tts", "dall-e", "davinci", "babbage", "curie", "ada")

PERPLEXITY_MODELS = [
    AvailableModel(id="sonar", name="Sonar", supports_vision=False),
    AvailableModel(id="sonar-pro", name="Sonar Pro", supports_vision=False),
    AvailableModel(id="sonar-reasoning", name="Sonar Reasoning", supports_vision=False),
    AvailableModel(id="sonar-reasoning-pro", name="Sonar Reasoning Pro", supports_vision=False),
    AvailableModel(id="sonar-deep-research", name="Sonar Deep Research", supports_vision=False),
]


def is_chat_model(model_id: str) -> bool:
    lowered = model_id.lower()
    return not lowered.startswith("ft:") and not any(marker in lowered for marker in NON_CHAT_MARKERS)


def _auth_headers(api_key: Optional[str]) -> dict:
    return {"Authorization": f"Bearer {api_key}"} if api_key else {}


async def _get_json(url: str, headers: dict, timeout: float) -> Optional[dict]:
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url, headers=headers)
        if response.status_code >= 400:
            logger.debug("GET %s failed with status %s", url, response.status_code)
            return None
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.debug("GET %s failed: %s", url, exc)
        return None
    return data if isinstance(data, dict) else None


def _model_ids(data: Optional[dict]) -> List[str]:
    models = (data or {}).get("data") or []
    return [m["id"] for m in models if isinstance(m, dict) and isinstance(m.get("id"), str)]


async def list_ollama_models(endpoint: str, timeout: float = LOCAL_LISTING_TIMEOUT_SECONDS) -> List[str]:
    data = await _get_json(f"{strip_trailing_slashes(endpoint)}/api/tags", {}, timeout)
    models = (data or {}).get("models") or []
    return [m["name"] for m in models if isinstance(m, dict) and isinstance(m.get("name"), str)]


async def list_openai_models(
    api_key: str, timeout: float = CLOUD_LISTING_TIMEOUT_SECONDS
) -> List[AvailableModel]:
    data = await _get_json(f"{OPENAI_BASE_URL}/models", _auth_headers(api_key), timeout)
    chat_models = [
        AvailableModel(
            id=model_id,
            name=model_id,
            supports_vision="vision" in model_id or "gpt-4" in model_id or "gpt-5" in model_id,
        )
        for model_id in _model_ids(data)
        if is_chat_model(model_id)
    ]
    chat_models.sort(key=lambda m: m.id)
    logger.debug("OpenAI models listed: %d", len(chat_models))
    return chat_models


async def list_openai_compatible_models(
    endpoint: str, api_key: Optional[str] = None, timeout: float = LOCAL_LISTING_TIMEOUT_SECONDS
) -> List[AvailableModel]:
    url = f"{strip_api_version(endpoint)}/v1/models"
    data = await _get_json(url, _auth_headers(api_key), timeout)
    result = [
        AvailableModel(
            id=model_id,
            name=model_id,
            supports_vision="vision" in model_id.lower() or "llava" in model_id.lower(),
        )
        for model_id in _model_ids(data)
        if is_chat_model(model_id)
    ]
    logger.debug("OpenAI-compatible models listed: %d from %s", len(result), endpoint)
    return result


async def list_models(
    provider: ProviderKind,
    endpoint: Optional[str] = None,
    api_key: Optional[str] = None,
    local_timeout: float = LOCAL_LISTING_TIMEOUT_SECONDS,
    cloud_timeout: float = CLOUD_LISTING_TIMEOUT_SECONDS,
) -> List[AvailableModel]:
    if provider == ProviderKind.OPENAI:
        if not api_key:
            logger.debug("Cannot list OpenAI models without API key")
            return []
        return await list_openai_models(api_key, timeout=cloud_timeout)

    if provider == ProviderKind.OLLAMA:
        if not endpoint:
            logger.debug("Cannot list Ollama models without endpoint")
            return []
        names = await list_ollama_models(endpoint, timeout=local_timeout)
        return [
            AvailableModel(
                id=name,
                name=name,
                supports_vision=any(m in name.lower() for m in ("llava", "vision", "bakllava")),
            )
            for name in names
        ]

    if provider in (ProviderKind.LM_STUDIO, ProviderKind.GENERIC_OPENAI):
        if not endpoint:
            logger.debug("Cannot list models without endpoint")
            return []
        return await list_openai_compatible_models(endpoint, api_key, timeout=local_timeout)

    if provider == ProviderKind.PERPLEXITY:
        # No listing endpoint; known models only.
        return [m.model_copy() for m in PERPLEXITY_MODELS]

    logger.debug("Unknown provider for model listing: %s", provider)
    return []


async def list_transcription_models(
    provider: str,
    endpoint: Optional[str] = None,
    api_key: Optional[str] = None,
    local_timeout: float = LOCAL_LISTING_TIMEOUT_SECONDS,
    cloud_timeout: float = CLOUD_LISTING_TIMEOUT_SECONDS,
) -> List[AvailableModel]:
    """Whisper-style models for the external transcription collaborator's settings page."""
    if provider == ProviderKind.OPENAI.value:
        if not api_key:
            return []
        data = await _get_json(f"{OPENAI_BASE_URL}/models", _auth_headers(api_key), cloud_timeout)
        ids = sorted(i for i in _model_ids(data) if "whisper" in i.lower())
        return [AvailableModel(id=i, name=i, supports_vision=False) for i in ids]

    if provider == ProviderKind.GENERIC_OPENAI.value:
        if not endpoint:
            return []
        data = await _get_json(
            f"{strip_api_version(endpoint)}/v1/models", _auth_headers(api_key), local_timeout
        )
        ids = _model_ids(data)
        # Fall back to every model when none is obviously a transcription model.
        whisper_ids = [i for i in ids if "whisper" in i.lower()] or ids
        return [AvailableModel(id=i, name=i, supports_vision=False) for i in whisper_ids]

    return []
