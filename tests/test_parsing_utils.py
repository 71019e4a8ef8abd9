import httpx
import pytest
from helpers import FakeResponse

from mise_recipes.app.core.config import Settings, build_extraction_config
from mise_recipes.app.schemas.extraction import ProviderKind, UnitDefinition
from mise_recipes.app.schemas.recipe import MeasurementSystem
from mise_recipes.app.services.ai.helpers import extract_image_candidates, extract_sanitized_body
from mise_recipes.app.services.parser.fetch import decode_html, fetch_html, is_private_host
from mise_recipes.app.services.parser.ingredients import parse_ingredient, parse_ingredients
from mise_recipes.app.services.parser.units import detect_measurement_system
from mise_recipes.app.services.parser.utils import (
    coerce_keywords,
    parse_iso8601_duration,
    parse_minutes,
    parse_quantity,
    parse_servings,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2", 2.0),
        ("0.5", 0.5),
        ("1/2", 0.5),
        ("1 1/2", 1.5),
        ("1½", 1.5),
        ("¾", 0.75),
        ("1-2", 1.0),
        ("1,5", 1.5),
    ],
)
def test_parse_quantity(raw, expected):
    assert parse_quantity(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "abc", "1/0"])
def test_parse_quantity_rejects_garbage(raw):
    assert parse_quantity(raw) is None


@pytest.mark.parametrize(
    "line, quantity, unit_id, description",
    [
        ("1 1/2 cups flour, sifted", 1.5, "cup", "flour, sifted"),
        ("200g flour", 200.0, "gram", "flour"),
        ("2 eggs", 2.0, None, "eggs"),
        ("1 T sugar", 1.0, "tablespoon", "sugar"),
        ("1 t salt", 1.0, "teaspoon", "salt"),
        ("a pinch of salt", None, "pinch", "salt"),
        ("Salt to taste", None, None, "Salt to taste"),
    ],
)
def test_parse_ingredient(line, quantity, unit_id, description):
    parsed = parse_ingredient(line)
    assert parsed.quantity == quantity
    assert parsed.unit_id == unit_id
    assert parsed.description == description


def test_parse_ingredients_skips_blanks_and_honours_custom_units():
    units = [UnitDefinition(id="handful", aliases=["handful", "handfuls"])]

    parsed = parse_ingredients(["2 handfuls spinach", "   ", "3 cups rice"], units)

    assert [(p.quantity, p.unit_id, p.description) for p in parsed] == [
        (2.0, "handful", "spinach"),
        (3.0, None, "cups rice"),
    ]


def test_detect_measurement_system():
    assert detect_measurement_system(["1 cup sugar", "8 oz chocolate", "2 eggs"]) == MeasurementSystem.US
    assert detect_measurement_system(["200 g flour", "Bake at 180°C"]) == MeasurementSystem.METRIC
    assert detect_measurement_system(["2 eggs"]) == MeasurementSystem.METRIC
    assert detect_measurement_system([]) == MeasurementSystem.METRIC
    assert detect_measurement_system(["Bake at 350°F", "a cup of love"]) == MeasurementSystem.US


def test_durations_and_servings():
    assert parse_iso8601_duration("PT1H30M") == 90
    assert parse_iso8601_duration("P1DT2H") == 1560
    assert parse_iso8601_duration("PT45S") == 1
    assert parse_iso8601_duration("PT10S") is None
    assert parse_iso8601_duration("soon") is None
    assert parse_minutes("1 hr 15 mins") == 75
    assert parse_minutes(20) == 20
    assert parse_minutes(True) is None
    assert parse_servings(["24", "24 biscuits"]) == 24
    assert parse_servings("Serves 4-6") == 4
    assert coerce_keywords("quick, Vegan, vegan") == ["quick", "Vegan"]


def test_sanitized_body_drops_boilerplate():
    html = """
    <html><head><style>body{}</style></head><body>
      <header>Site header</header>
      <nav>Menu</nav>
      <article><h1>Soup</h1><p>Chop   the onions.</p></article>
      <script>track()</script>
      <footer>Copyright</footer>
    </body></html>
    """
    assert extract_sanitized_body(html) == "Soup\nChop the onions."


def test_image_candidates_order_and_filtering():
    html = """
    <html><head>
      <meta property="og:image" content="https://cdn.example.com/dish.jpg">
      <meta name="twitter:image" content="https://cdn.example.com/dish.jpg">
      <script type="application/ld+json">
        {"@graph": [{"@type": "Recipe", "image": ["https://cdn.example.com/ld.jpg"]}]}
      </script>
    </head><body>
      <img src="/relative.jpg">
      <img src="https://cdn.example.com/logo.png">
      <img src="https://cdn.example.com/badge.svg">
      <img data-src="https://cdn.example.com/lazy.jpg" src="data:image/gif;base64,R0lGOD">
    </body></html>
    """
    assert extract_image_candidates(html) == [
        "https://cdn.example.com/dish.jpg",
        "https://cdn.example.com/ld.jpg",
        "https://cdn.example.com/lazy.jpg",
    ]


def test_image_candidates_are_capped():
    html = "".join(f'<img src="https://cdn.example.com/{i}.jpg">' for i in range(15))
    assert len(extract_image_candidates(html)) == 10


def test_decode_html():
    assert decode_html(b"<html><body>Hello</body></html>", "text/html") == "<html><body>Hello</body></html>"
    assert decode_html("<p>café</p>".encode("latin-1"), "text/html; charset=iso-8859-1") == "<p>café</p>"
    assert decode_html(b"plain words without markup", "text/plain") is None
    assert decode_html(b"<p>" + bytes(range(1, 32)) * 20 + b"</p>", "text/html") is None
    assert decode_html(b"", "text/html") is None


def test_private_hosts():
    assert is_private_host("127.0.0.1")
    assert is_private_host("10.0.0.5:8080")
    assert is_private_host("LOCALHOST")
    assert not is_private_host("example.com")
    assert not is_private_host("8.8.8.8")


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["http://127.0.0.1/admin", "http://localhost:8000/", "ftp://example.com/x", "nonsense"])
async def test_fetch_refuses_bad_targets(fake_http, url):
    assert await fetch_html(url) is None
    assert fake_http.clients == []


@pytest.mark.asyncio
async def test_fetch_returns_html(fake_http):
    fake_http.handler = lambda method, url, body: FakeResponse(
        "<html><body><h1>Stew</h1></body></html>", content_type="text/html; charset=utf-8"
    )

    html = await fetch_html("https://example.com/stew", user_agent="TestAgent/1.0", cookies="consent=yes")

    assert html == "<html><body><h1>Stew</h1></body></html>"
    client_kwargs = fake_http.clients[0]
    assert client_kwargs["follow_redirects"] is True
    assert client_kwargs["headers"]["User-Agent"] == "TestAgent/1.0"
    assert client_kwargs["headers"]["Cookie"] == "consent=yes"


@pytest.mark.asyncio
async def test_fetch_retries_once_when_blocked(fake_http):
    responses = [
        FakeResponse("denied", status_code=403, content_type="text/html"),
        FakeResponse("<html><p>ok</p></html>", content_type="text/html"),
    ]
    fake_http.handler = lambda method, url, body: responses.pop(0)

    assert await fetch_html("https://example.com/blocked") == "<html><p>ok</p></html>"
    assert len(fake_http.calls) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        FakeResponse("missing", status_code=404, content_type="text/html"),
        FakeResponse("%PDF-1.7", content_type="application/pdf"),
        httpx.ConnectError("refused"),
    ],
)
async def test_fetch_failures_yield_none(fake_http, response):
    fake_http.handler = lambda method, url, body: response
    assert await fetch_html("https://example.com/page") is None


def test_build_extraction_config_from_settings():
    settings = Settings(
        _env_file=None,
        AI_ENABLED=True,
        AI_PROVIDER="ollama",
        AI_MODEL="llama3.1",
        AI_ENDPOINT="http://ollama:11434",
        AI_TEMPERATURE=0.2,
        AI_GENERATION_TIMEOUT_SECONDS=45,
        PARSER_ACCEPT_SINGLE_SYSTEM=True,
    )

    config = build_extraction_config(settings)

    assert config.ai_enabled is True
    assert config.provider.provider == ProviderKind.OLLAMA
    assert config.provider.endpoint == "http://ollama:11434"
    assert config.provider.generation.temperature == 0.2
    assert config.generation_timeout_seconds == 45
    assert config.accept_single_system_structured is True
    assert config.video_url_patterns
    assert any(u.id == "gram" for u in config.units)
