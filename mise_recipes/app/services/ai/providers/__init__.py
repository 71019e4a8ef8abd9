"""AI provider registry, capability probing and model listing."""

from mise_recipes.app.services.ai.providers.capabilities import probe_capabilities, static_capabilities
from mise_recipes.app.services.ai.providers.endpoints import normalize_compatible_endpoint
from mise_recipes.app.services.ai.providers.listing import list_models, list_transcription_models
from mise_recipes.app.services.ai.providers.models import ModelHandle
from mise_recipes.app.services.ai.providers.registry import (
    PROVIDER_FACTORIES,
    ModelConfig,
    ModelFactory,
    create_models_from_config,
    get_generation_settings,
)

__all__ = [
    "PROVIDER_FACTORIES",
    "ModelConfig",
    "ModelFactory",
    "ModelHandle",
    "create_models_from_config",
    "get_generation_settings",
    "list_models",
    "list_transcription_models",
    "normalize_compatible_endpoint",
    "probe_capabilities",
    "static_capabilities",
]
