"""Structured-output JSON schema requested from every provider."""

_DUAL_STRING_ARRAYS = {
    "type": "object",
    "properties": {
        "metric": {"type": "array", "items": {"type": "string"}},
        "us": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["metric", "us"],
    "additionalProperties": False,
}

_NULLABLE_STRING = {"type": ["string", "null"]}

RECIPE_EXTRACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": _NULLABLE_STRING,
        "recipeYield": _NULLABLE_STRING,
        "prepTime": _NULLABLE_STRING,
        "cookTime": _NULLABLE_STRING,
        "totalTime": _NULLABLE_STRING,
        "image": {"type": "array", "items": {"type": "string"}},
        "recipeIngredient": _DUAL_STRING_ARRAYS,
        "recipeInstructions": _DUAL_STRING_ARRAYS,
        "keywords": {"type": "array", "items": {"type": "string"}},
    },
    "required": [
        "name",
        "description",
        "recipeYield",
        "prepTime",
        "cookTime",
        "totalTime",
        "image",
        "recipeIngredient",
        "recipeInstructions",
        "keywords",
    ],
    "additionalProperties": False,
}

RECIPE_EXTRACTION_SCHEMA_NAME = "recipe_extraction"
