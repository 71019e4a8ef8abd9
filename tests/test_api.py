import json
from io import BytesIO

from fastapi import FastAPI
from PIL import Image

from mise_recipes.app.main import app, create_app

URL = "https://example.com/recipes/shortbread"

DUAL_JSONLD = {
    "@context": "https://schema.org",
    "@type": "Recipe",
    "name": "Shortbread",
    "recipeIngredient": {
        "metric": ["225 g butter", "110 g sugar", "335 g flour"],
        "us": ["1 cup butter", "1/2 cup sugar", "2 2/3 cups flour"],
    },
    "recipeInstructions": {
        "metric": ["Cream butter and sugar.", "Bake at 160°C."],
        "us": ["Cream butter and sugar.", "Bake at 325°F."],
    },
}


def _png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (4, 4), color=(200, 120, 40)).save(buf, format="PNG")
    return buf.getvalue()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_parse_url_with_structured_data(client, page_store):
    page_store[URL] = (
        f'<html><head><script type="application/ld+json">{json.dumps(DUAL_JSONLD)}</script></head>'
        "<body><h1>Shortbread</h1></body></html>"
    )

    resp = client.post("/recipes/parse-url", json={"url": URL})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["parser_strategy"] == "jsonld"
    assert body["used_ai"] is False
    assert body["recipe"]["name"] == "Shortbread"
    assert len(body["recipe"]["recipe_ingredients"]) == 6
    assert body["recipe"]["steps"][0] == {"step": "Cream butter and sugar.", "system_used": "metric", "order": 0}


def test_parse_url_failure_is_reported_in_body(client):
    resp = client.post("/recipes/parse-url", json={"url": "https://example.com/missing"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["error_code"] == "fetch_failed"
    assert body["recipe"] is None


def test_parse_url_force_ai_with_ai_disabled(client, page_store):
    page_store[URL] = "<p>Ingredients</p><p>Instructions</p>"

    resp = client.post("/recipes/parse-url", json={"url": URL, "force_ai": True})

    assert resp.json()["error_code"] == "ai_disabled"


def test_validation_error_shape(client):
    resp = client.post("/recipes/parse-url", json={"allergies": "not-a-list"})

    assert resp.status_code == 422
    body = resp.json()
    assert body["error_code"] == "validation_error"
    assert body["message"] == "Invalid request payload."
    assert body["request_id"]
    fields = {d["field"] for d in body["details"]}
    assert "body.url" in fields


def test_parse_images_rejects_non_images(client):
    resp = client.post(
        "/recipes/parse-images",
        files=[("images", ("notes.png", b"definitely not a png", "image/png"))],
    )
    assert resp.status_code == 400


def test_parse_images_rejects_too_many_files(client):
    png = _png_bytes()
    files = [("images", (f"page{i}.png", png, "image/png")) for i in range(9)]

    resp = client.post("/recipes/parse-images", files=files)

    assert resp.status_code == 400
    assert "Too many images" in resp.json()["detail"]


def test_parse_images_with_ai_disabled(client):
    resp = client.post(
        "/recipes/parse-images",
        files=[("images", ("card.png", _png_bytes(), "image/png"))],
        data={"allergies": ["eggs"]},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["error_code"] == "ai_disabled"


def test_list_models_static_provider(client, fake_http):
    resp = client.get("/ai/models", params={"provider": "perplexity", "api_key": "pplx"})

    assert resp.status_code == 200
    assert [m["id"] for m in resp.json()] == [
        "sonar",
        "sonar-pro",
        "sonar-reasoning",
        "sonar-reasoning-pro",
        "sonar-deep-research",
    ]
    assert fake_http.calls == []


def test_list_models_unknown_provider(client):
    resp = client.get("/ai/models", params={"provider": "skynet"})
    assert resp.status_code == 422
    assert resp.json()["error_code"] == "validation_error"


def test_capabilities(client, fake_http):
    generic = client.get("/ai/capabilities", params={"provider": "generic-openai"}).json()
    assert generic["supports_structured_output"] is False
    assert generic["supports_vision"] is False

    configured = client.get("/ai/capabilities").json()
    assert configured["supports_vision"] is True
    assert fake_http.calls == []


def test_app_module_builds_application():
    assert isinstance(create_app(), FastAPI)
    assert "/health" in {route.path for route in app.routes}
