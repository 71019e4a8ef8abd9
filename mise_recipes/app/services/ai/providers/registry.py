"""Provider registry: ``ProviderConfig`` -> text and vision model handles.

Each provider kind maps to one ``ModelFactory``. Adding a provider means adding
a factory and registering it in ``PROVIDER_FACTORIES``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from mise_recipes.app.core.errors import ConfigurationError, UnknownProviderError
from mise_recipes.app.schemas.extraction import (
    GenerationSettings,
    ModelCapabilities,
    ProviderConfig,
    ProviderKind,
)
from mise_recipes.app.services.ai.providers.capabilities import static_capabilities
from mise_recipes.app.services.ai.providers.endpoints import (
    OPENAI_BASE_URL,
    PERPLEXITY_BASE_URL,
    normalize_compatible_endpoint,
    strip_trailing_slashes,
)
from mise_recipes.app.services.ai.providers.models import (
    ChatCompletionsModel,
    ModelHandle,
    OllamaChatModel,
)

logger = logging.getLogger(__name__)


class ModelConfig(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    model: ModelHandle
    vision_model: ModelHandle
    provider_name: str


class ModelFactory(ABC):
    provider_name: str

    @abstractmethod
    def create(self, config: ProviderConfig) -> ModelConfig:  # pragma: no cover - interface
        raise NotImplementedError

    def _pair(self, config: ProviderConfig, build) -> ModelConfig:
        return ModelConfig(
            model=build(config.model),
            vision_model=build(config.vision_model or config.model),
            provider_name=self.provider_name,
        )


class CloudChatFactory(ModelFactory):
    """OpenAI: fixed base URL, API key required."""

    provider_name = "OpenAI"

    def create(self, config: ProviderConfig) -> ModelConfig:
        if not config.api_key:
            raise ConfigurationError("API Key is required for OpenAI provider")
        return self._pair(
            config,
            lambda model: ChatCompletionsModel(
                ProviderKind.OPENAI, model, OPENAI_BASE_URL, api_key=config.api_key
            ),
        )


class CloudSearchFactory(ModelFactory):
    """Perplexity: search-grounded chat completions, API key required."""

    provider_name = "Perplexity"

    def create(self, config: ProviderConfig) -> ModelConfig:
        if not config.api_key:
            raise ConfigurationError("API Key is required for Perplexity provider")
        return self._pair(
            config,
            lambda model: ChatCompletionsModel(
                ProviderKind.PERPLEXITY, model, PERPLEXITY_BASE_URL, api_key=config.api_key
            ),
        )


class OllamaFactory(ModelFactory):
    provider_name = "Ollama"

    def create(self, config: ProviderConfig) -> ModelConfig:
        if not config.endpoint:
            raise ConfigurationError("Endpoint is required for Ollama provider")
        base_url = strip_trailing_slashes(config.endpoint)
        return self._pair(
            config, lambda model: OllamaChatModel(ProviderKind.OLLAMA, model, base_url)
        )


class LocalCompatibleFactory(ModelFactory):
    """OpenAI-compatible servers (LM Studio, vLLM, llama.cpp, ...) reached at ``{endpoint}/v1``."""

    def __init__(self, kind: ProviderKind, provider_name: str):
        self.kind = kind
        self.provider_name = provider_name

    def create(self, config: ProviderConfig) -> ModelConfig:
        if not config.endpoint:
            raise ConfigurationError(f"Endpoint is required for {self.provider_name} provider")
        base_url = normalize_compatible_endpoint(config.endpoint)
        # The recipe schema is always sent; the capability table only reports support.
        return self._pair(
            config,
            lambda model: ChatCompletionsModel(
                self.kind,
                model,
                base_url,
                api_key=config.api_key,
            ),
        )


PROVIDER_FACTORIES: Dict[ProviderKind, ModelFactory] = {
    ProviderKind.OPENAI: CloudChatFactory(),
    ProviderKind.PERPLEXITY: CloudSearchFactory(),
    ProviderKind.OLLAMA: OllamaFactory(),
    ProviderKind.LM_STUDIO: LocalCompatibleFactory(ProviderKind.LM_STUDIO, "LM Studio"),
    ProviderKind.GENERIC_OPENAI: LocalCompatibleFactory(ProviderKind.GENERIC_OPENAI, "Generic OpenAI"),
}


def create_models_from_config(
    config: ProviderConfig, factories: Optional[Mapping[ProviderKind, ModelFactory]] = None
) -> ModelConfig:
    """Build text + vision handles. No network I/O happens here."""
    factories = PROVIDER_FACTORIES if factories is None else factories
    factory = factories.get(config.provider)
    if factory is None:
        raise UnknownProviderError(f"Unknown AI provider: {config.provider}")
    logger.debug(
        "Creating AI models provider=%s model=%s vision_model=%s",
        config.provider.value,
        config.model,
        config.vision_model,
    )
    return factory.create(config)


def get_generation_settings(
    config: ProviderConfig, capabilities: Optional[ModelCapabilities] = None
) -> GenerationSettings:
    """Configured temperature / token limit, minus what the provider cannot accept."""
    capabilities = capabilities or static_capabilities(config.provider)
    temperature = config.generation.temperature
    max_tokens = config.generation.max_output_tokens
    if not capabilities.supports_temperature:
        temperature = None
    elif temperature is not None:
        temperature = max(0.0, min(temperature, capabilities.max_temperature))
    # Ollama handles translate the limit into num_predict.
    if not capabilities.supports_max_tokens and config.provider != ProviderKind.OLLAMA:
        max_tokens = None
    return GenerationSettings(temperature=temperature, max_output_tokens=max_tokens)
