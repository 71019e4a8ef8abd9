"""Shared fakes and payload builders for the test suite."""

import json
from typing import Any

import httpx


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, content_type: str = "application/json"):
        self._payload = payload
        self.status_code = status_code
        self.headers = {"content-type": content_type}
        if isinstance(payload, str):
            self.text = payload
        else:
            self.text = json.dumps(payload)
        self.content = self.text.encode("utf-8")

    def raise_for_status(self):
        if self.status_code >= 400:
            request = httpx.Request("POST", "http://fake")
            raise httpx.HTTPStatusError(
                f"status {self.status_code}",
                request=request,
                response=httpx.Response(self.status_code, request=request),
            )
        return None

    def json(self):
        if isinstance(self._payload, str):
            return json.loads(self._payload)
        return self._payload


def chat_completion(content: str, prompt_tokens: int = 120, completion_tokens: int = 80) -> dict:
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


def dual_recipe_payload(**overrides) -> dict:
    payload = {
        "name": "Pancakes",
        "description": "Fluffy weekend pancakes.",
        "image": [],
        "recipeYield": "4 servings",
        "prepTime": "PT10M",
        "cookTime": "PT15M",
        "totalTime": None,
        "recipeIngredient": {
            "metric": ["200 g flour", "250 ml milk", "2 eggs"],
            "us": ["1 2/3 cups flour", "1 cup milk", "2 eggs"],
        },
        "recipeInstructions": {
            "metric": ["Whisk everything.", "Fry in a pan at 180°C."],
            "us": ["Whisk everything.", "Fry in a pan at 350°F.", "Serve warm."],
        },
        "keywords": ["gluten"],
    }
    payload.update(overrides)
    return payload


