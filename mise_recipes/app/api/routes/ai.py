from typing import List, Optional

from fastapi import APIRouter, Depends

from mise_recipes.app.api.deps import get_extraction_config
from mise_recipes.app.schemas.extraction import AvailableModel, ExtractionConfig, ModelCapabilities, ProviderKind
from mise_recipes.app.services.ai.providers.capabilities import probe_capabilities
from mise_recipes.app.services.ai.providers.listing import list_models, list_transcription_models

router = APIRouter(prefix="/ai", tags=["ai"])


@router.get("/models", response_model=List[AvailableModel])
async def get_models(
    provider: ProviderKind,
    endpoint: Optional[str] = None,
    api_key: Optional[str] = None,
    config: ExtractionConfig = Depends(get_extraction_config),
) -> List[AvailableModel]:
    return await list_models(
        provider,
        endpoint=endpoint,
        api_key=api_key,
        local_timeout=config.introspection_timeout_seconds,
        cloud_timeout=config.cloud_listing_timeout_seconds,
    )


@router.get("/transcription-models", response_model=List[AvailableModel])
async def get_transcription_models(
    provider: str,
    endpoint: Optional[str] = None,
    api_key: Optional[str] = None,
    config: ExtractionConfig = Depends(get_extraction_config),
) -> List[AvailableModel]:
    return await list_transcription_models(
        provider,
        endpoint=endpoint,
        api_key=api_key,
        local_timeout=config.introspection_timeout_seconds,
        cloud_timeout=config.cloud_listing_timeout_seconds,
    )


@router.get("/capabilities", response_model=ModelCapabilities)
async def get_capabilities(
    provider: Optional[ProviderKind] = None,
    endpoint: Optional[str] = None,
    model: Optional[str] = None,
    config: ExtractionConfig = Depends(get_extraction_config),
) -> ModelCapabilities:
    """Capabilities of the given model, defaulting to the configured provider."""
    active = config.provider
    if provider is None and active is not None:
        provider, endpoint, model = active.provider, endpoint or active.endpoint, model or active.model
    return await probe_capabilities(
        provider or ProviderKind.OPENAI,
        endpoint=endpoint,
        model=model,
        timeout=config.introspection_timeout_seconds,
    )
