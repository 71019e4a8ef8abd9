import httpx
import pytest
from helpers import FakeResponse

from mise_recipes.app.schemas.extraction import ProviderKind
from mise_recipes.app.services.ai.providers.listing import (
    is_chat_model,
    list_models,
    list_ollama_models,
    list_transcription_models,
)

OPENAI_MODELS = {
    "data": [
        {"id": "gpt-4o"},
        {"id": "text-embedding-3-small"},
        {"id": "whisper-1"},
        {"id": "ft:gpt-4o-mini:acme"},
        {"id": "gpt-3.5-turbo"},
        {"id": "dall-e-3"},
        {"id": "tts-1"},
        {"id": "babbage-002"},
    ]
}


def test_chat_model_filter():
    assert is_chat_model("gpt-4o")
    assert not is_chat_model("text-embedding-ada-002")
    assert not is_chat_model("ft:gpt-3.5-turbo:org")
    assert not is_chat_model("tts-1-hd")


@pytest.mark.asyncio
async def test_openai_listing_filters_and_sorts(fake_http):
    fake_http.handler = lambda method, url, payload: FakeResponse(OPENAI_MODELS)

    models = await list_models(ProviderKind.OPENAI, api_key="sk-test")

    assert [m.id for m in models] == ["gpt-3.5-turbo", "gpt-4o"]
    assert models[1].supports_vision is True
    assert models[0].supports_vision is False
    assert fake_http.calls[0][:2] == ("GET", "https://api.openai.com/v1/models")
    assert fake_http.clients[0]["timeout"] == 10.0


@pytest.mark.asyncio
async def test_openai_listing_without_key_returns_empty(fake_http):
    assert await list_models(ProviderKind.OPENAI) == []
    assert fake_http.calls == []


@pytest.mark.asyncio
async def test_compatible_listing_strips_version_suffix(fake_http):
    fake_http.handler = lambda method, url, payload: FakeResponse(
        {"data": [{"id": "qwen2.5-7b-instruct"}, {"id": "nomic-embedding-text"}]}
    )

    models = await list_models(ProviderKind.LM_STUDIO, endpoint="http://localhost:1234/v1/")

    assert [m.id for m in models] == ["qwen2.5-7b-instruct"]
    assert fake_http.calls[0][1] == "http://localhost:1234/v1/models"


@pytest.mark.asyncio
async def test_ollama_listing(fake_http):
    fake_http.handler = lambda method, url, payload: FakeResponse(
        {"models": [{"name": "llama3:8b"}, {"name": "llava:13b"}]}
    )

    assert await list_ollama_models("http://localhost:11434/") == ["llama3:8b", "llava:13b"]
    models = await list_models(ProviderKind.OLLAMA, endpoint="http://localhost:11434")

    assert [(m.id, m.supports_vision) for m in models] == [("llama3:8b", False), ("llava:13b", True)]
    assert fake_http.calls[0][1] == "http://localhost:11434/api/tags"


@pytest.mark.asyncio
async def test_perplexity_listing_is_static(fake_http):
    models = await list_models(ProviderKind.PERPLEXITY, api_key="pplx")
    assert [m.id for m in models] == [
        "sonar",
        "sonar-pro",
        "sonar-reasoning",
        "sonar-reasoning-pro",
        "sonar-deep-research",
    ]
    assert fake_http.calls == []


@pytest.mark.asyncio
async def test_listing_failures_return_empty(fake_http):
    fake_http.handler = lambda method, url, payload: httpx.ConnectError("refused")
    assert await list_models(ProviderKind.OLLAMA, endpoint="http://localhost:11434") == []

    fake_http.handler = lambda method, url, payload: FakeResponse({"error": "unauthorized"}, status_code=401)
    assert await list_models(ProviderKind.OPENAI, api_key="bad") == []


@pytest.mark.asyncio
async def test_transcription_listing(fake_http):
    fake_http.handler = lambda method, url, payload: FakeResponse(OPENAI_MODELS)
    openai = await list_transcription_models("openai", api_key="sk-test")
    assert [m.id for m in openai] == ["whisper-1"]

    fake_http.handler = lambda method, url, payload: FakeResponse({"data": [{"id": "parakeet"}, {"id": "canary"}]})
    generic = await list_transcription_models("generic-openai", endpoint="http://asr:9000")
    assert [m.id for m in generic] == ["parakeet", "canary"]

    assert await list_transcription_models("ollama", endpoint="http://localhost:11434") == []
