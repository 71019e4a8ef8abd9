"""Prompt templates and builders for AI recipe extraction."""

from mise_recipes.app.services.ai.prompts.builder import (
    MAX_PROMPT_CONTENT_CHARS,
    build_image_extraction_prompt,
    build_recipe_extraction_prompt,
    build_video_extraction_prompt,
)
from mise_recipes.app.services.ai.prompts.fragments import build_allergy_instruction

__all__ = [
    "MAX_PROMPT_CONTENT_CHARS",
    "build_allergy_instruction",
    "build_image_extraction_prompt",
    "build_recipe_extraction_prompt",
    "build_video_extraction_prompt",
]
