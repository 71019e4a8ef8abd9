import pytest

from mise_recipes.app.core.errors import ConfigurationError, UnknownProviderError
from mise_recipes.app.schemas.extraction import (
    GenerationSettings,
    ModelCapabilities,
    ProviderConfig,
    ProviderKind,
)
from mise_recipes.app.services.ai.providers.endpoints import normalize_compatible_endpoint, strip_api_version
from mise_recipes.app.services.ai.providers.models import ChatCompletionsModel, OllamaChatModel
from mise_recipes.app.services.ai.providers.registry import (
    PROVIDER_FACTORIES,
    create_models_from_config,
    get_generation_settings,
)


def _config(provider, **kwargs):
    return ProviderConfig(provider=provider, model=kwargs.pop("model", "test-model"), **kwargs)


def test_openai_requires_api_key():
    with pytest.raises(ConfigurationError):
        create_models_from_config(_config(ProviderKind.OPENAI))


def test_perplexity_requires_api_key():
    with pytest.raises(ConfigurationError):
        create_models_from_config(_config(ProviderKind.PERPLEXITY, model="sonar"))


@pytest.mark.parametrize("provider", [ProviderKind.OLLAMA, ProviderKind.LM_STUDIO, ProviderKind.GENERIC_OPENAI])
def test_local_providers_require_endpoint(provider):
    with pytest.raises(ConfigurationError):
        create_models_from_config(_config(provider))


def test_unknown_provider_is_a_hard_fault():
    with pytest.raises(UnknownProviderError) as exc_info:
        create_models_from_config(_config(ProviderKind.OPENAI, api_key="sk"), factories={})
    assert isinstance(exc_info.value, KeyError)


def test_every_provider_kind_has_a_factory():
    assert set(PROVIDER_FACTORIES) == set(ProviderKind)


def test_openai_handles_default_vision_to_text_model():
    models = create_models_from_config(_config(ProviderKind.OPENAI, model="gpt-4o-mini", api_key="sk"))
    assert models.provider_name == "OpenAI"
    assert isinstance(models.model, ChatCompletionsModel)
    assert models.model.url == "https://api.openai.com/v1/chat/completions"
    assert models.vision_model.model == "gpt-4o-mini"


def test_vision_model_override():
    models = create_models_from_config(
        _config(ProviderKind.OPENAI, model="gpt-4o-mini", vision_model="gpt-4o", api_key="sk")
    )
    assert models.model.model == "gpt-4o-mini"
    assert models.vision_model.model == "gpt-4o"


def test_lm_studio_endpoint_is_normalized():
    models = create_models_from_config(_config(ProviderKind.LM_STUDIO, endpoint="http://localhost:1234//"))
    assert models.provider_name == "LM Studio"
    assert models.model.base_url == "http://localhost:1234/v1"
    assert models.model.url == "http://localhost:1234/v1/chat/completions"
    assert models.model.api_key is None


def test_generic_openai_always_sends_recipe_schema():
    models = create_models_from_config(
        _config(ProviderKind.GENERIC_OPENAI, endpoint="http://vllm:8000/v1", api_key="local-key")
    )
    payload = models.model.build_payload("prompt", None, [], {"type": "object"}, "recipe", GenerationSettings())
    assert payload["response_format"]["type"] == "json_schema"
    assert payload["response_format"]["json_schema"]["schema"] == {"type": "object"}
    assert models.model.headers()["Authorization"] == "Bearer local-key"


def test_ollama_handle_uses_native_chat_api():
    models = create_models_from_config(_config(ProviderKind.OLLAMA, endpoint="http://localhost:11434/"))
    assert isinstance(models.model, OllamaChatModel)
    assert models.model.url == "http://localhost:11434/api/chat"

    payload = models.model.build_payload(
        "prompt",
        "system",
        [],
        {"type": "object"},
        "recipe",
        GenerationSettings(temperature=0.2, max_output_tokens=2048),
    )
    assert payload["format"] == {"type": "object"}
    assert payload["stream"] is False
    assert payload["options"] == {"temperature": 0.2, "num_predict": 2048}
    assert payload["messages"][0] == {"role": "system", "content": "system"}


@pytest.mark.parametrize(
    "endpoint",
    ["http://localhost:1234", "http://localhost:1234/", "http://localhost:1234/v1", "http://localhost:1234/v1///"],
)
def test_endpoint_normalization_is_idempotent(endpoint):
    once = normalize_compatible_endpoint(endpoint)
    assert once == "http://localhost:1234/v1"
    assert normalize_compatible_endpoint(once) == once


def test_strip_api_version():
    assert strip_api_version("http://localhost:1234/v1/") == "http://localhost:1234"
    assert strip_api_version("http://localhost:1234") == "http://localhost:1234"


def test_generation_settings_clamp_temperature():
    config = _config(
        ProviderKind.OPENAI,
        api_key="sk",
        generation=GenerationSettings(temperature=3.5, max_output_tokens=1000),
    )
    settings = get_generation_settings(config)
    assert settings.temperature == 2.0
    assert settings.max_output_tokens == 1000

    capped = get_generation_settings(config, ModelCapabilities(max_temperature=1.0))
    assert capped.temperature == 1.0


def test_generation_settings_drop_unsupported_fields():
    config = _config(
        ProviderKind.LM_STUDIO,
        endpoint="http://localhost:1234",
        generation=GenerationSettings(temperature=0.5, max_output_tokens=500),
    )
    settings = get_generation_settings(
        config, ModelCapabilities(supports_temperature=False, supports_max_tokens=False)
    )
    assert settings.temperature is None
    assert settings.max_output_tokens is None


def test_ollama_keeps_token_limit_for_num_predict():
    config = _config(
        ProviderKind.OLLAMA,
        endpoint="http://localhost:11434",
        generation=GenerationSettings(max_output_tokens=4096),
    )
    assert get_generation_settings(config).max_output_tokens == 4096
