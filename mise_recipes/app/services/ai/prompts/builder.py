"""Prompt construction for the three extraction modalities.

All builders are pure: the same arguments always yield the same string.
"""

from typing import Optional, Sequence

from mise_recipes.app.schemas.recipe import VideoMetadata
from mise_recipes.app.services.ai.prompts.fragments import build_allergy_instruction
from mise_recipes.app.services.ai.prompts.templates import RECIPE_EXTRACTION_TEMPLATE

MAX_PROMPT_CONTENT_CHARS = 50_000

_WEBPAGE_INTRO = "You will receive the contents of a webpage or video transcript"
_IMAGE_INTRO = (
    "You will receive images of a recipe (such as photos of a cookbook, printed recipe, or recipe card)"
)


def build_recipe_extraction_prompt(
    content: str,
    url: Optional[str] = None,
    allergies: Optional[Sequence[str]] = None,
    strict_allergy_detection: bool = True,
    additional_context: Optional[str] = None,
) -> str:
    """Prompt for sanitised webpage text, truncated to ``MAX_PROMPT_CONTENT_CHARS``."""
    parts = [
        RECIPE_EXTRACTION_TEMPLATE,
        build_allergy_instruction(allergies, strict=strict_allergy_detection),
    ]
    if url:
        parts.append(f"URL: {url}")
    parts.append(f"WEBPAGE TEXT:\n{(content or '')[:MAX_PROMPT_CONTENT_CHARS]}")
    if additional_context:
        parts.append(additional_context)
    return "\n".join(parts)


def build_image_extraction_prompt(allergies: Optional[Sequence[str]] = None) -> str:
    image_prompt = RECIPE_EXTRACTION_TEMPLATE.replace(_WEBPAGE_INTRO, _IMAGE_INTRO).replace(
        "reads website data", "reads recipe images"
    )
    allergy_instruction = build_allergy_instruction(allergies, strict=False)
    return (
        f"{image_prompt}{allergy_instruction}\n\n"
        "Analyze the provided images and extract the complete recipe data. If multiple images are "
        "provided, they represent different pages/parts of the same recipe - combine them into a "
        "single complete recipe."
    )


def format_duration(seconds: int) -> str:
    seconds = max(int(seconds or 0), 0)
    return f"{seconds // 60}:{seconds % 60:02d}"


def build_video_extraction_prompt(
    transcript: str,
    metadata: VideoMetadata,
    allergies: Optional[Sequence[str]] = None,
) -> str:
    parts = [
        RECIPE_EXTRACTION_TEMPLATE,
        build_allergy_instruction(allergies, strict=False),
        "",
        f"SOURCE: Video transcript ({metadata.title})",
        f"URL: {metadata.url}",
        f"TITLE: {metadata.title}",
        f"DESCRIPTION: {metadata.description or 'No description provided'}",
        f"DURATION: {format_duration(metadata.duration)}",
    ]
    if metadata.uploader:
        parts.append(f"UPLOADER: {metadata.uploader}")
    parts.extend(
        [
            "",
            "VIDEO TRANSCRIPT:",
            transcript,
            "",
            "NOTE: This is a video transcript, not webpage text. Extract the recipe from the spoken "
            "content. If amounts are not specified, estimate typical quantities for the dish type.",
        ]
    )
    return "\n".join(parts)
