from typing import Any, Callable, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from mise_recipes.app.api.deps import get_content_fetcher, get_extraction_config
from mise_recipes.app.core.config import (
    DEFAULT_CONTENT_INDICATORS,
    DEFAULT_SCHEMA_INDICATORS,
    DEFAULT_VIDEO_URL_PATTERNS,
)
from mise_recipes.app.main import create_app
from mise_recipes.app.schemas.extraction import (
    ContentIndicators,
    ExtractionConfig,
    ProviderConfig,
    ProviderKind,
)
from mise_recipes.app.services.parser.units import DEFAULT_UNITS


class FakeHttp:
    """Records every request made through ``httpx.AsyncClient`` and answers via ``handler``."""

    def __init__(self):
        self.calls: List[Tuple[str, str, Any]] = []
        self.clients: List[dict] = []
        self.handler: Optional[Callable[[str, str, Any], Any]] = None

    def respond(self, method: str, url: str, payload: Any):
        self.calls.append((method, url, payload))
        if self.handler is None:
            raise AssertionError(f"Unexpected HTTP call: {method} {url}")
        result = self.handler(method, url, payload)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def fake_http(monkeypatch):
    recorder = FakeHttp()

    class FakeAsyncClient:
        def __init__(self, *args, **kwargs):
            recorder.clients.append(kwargs)

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def post(self, url, json=None, headers=None, **kwargs):
            return recorder.respond("POST", url, json)

        async def get(self, url, headers=None, **kwargs):
            return recorder.respond("GET", url, None)

    monkeypatch.setattr(httpx, "AsyncClient", FakeAsyncClient)
    return recorder


@pytest.fixture
def extraction_config() -> ExtractionConfig:
    return ExtractionConfig(
        ai_enabled=True,
        video_parsing_enabled=False,
        always_use_ai=False,
        provider=ProviderConfig(provider=ProviderKind.OPENAI, model="gpt-4o-mini", api_key="sk-test"),
        indicators=ContentIndicators(
            schema_indicators=DEFAULT_SCHEMA_INDICATORS,
            content_indicators=DEFAULT_CONTENT_INDICATORS,
        ),
        video_url_patterns=DEFAULT_VIDEO_URL_PATTERNS,
        units=DEFAULT_UNITS,
    )


@pytest.fixture
def disabled_config(extraction_config) -> ExtractionConfig:
    return extraction_config.model_copy(update={"ai_enabled": False})


@pytest.fixture
def page_store():
    """URL -> HTML served by the fake fetcher used by the API fixtures."""
    return {}


@pytest.fixture
def app(disabled_config, page_store):
    app = create_app()

    async def fake_fetch(url: str):
        return page_store.get(url)

    app.dependency_overrides[get_extraction_config] = lambda: disabled_config
    app.dependency_overrides[get_content_fetcher] = lambda: fake_fetch
    return app


@pytest.fixture
def client(app):
    return TestClient(app)
