import logging
from typing import Optional, Sequence

from mise_recipes.app.schemas.extraction import ExtractionConfig
from mise_recipes.app.schemas.recipe import VideoMetadata
from mise_recipes.app.schemas.results import AIResult
from mise_recipes.app.services.ai.engine import run_extraction
from mise_recipes.app.services.ai.helpers import extract_image_candidates, extract_sanitized_body
from mise_recipes.app.services.ai.prompts import (
    build_recipe_extraction_prompt,
    build_video_extraction_prompt,
)
from mise_recipes.app.services.ai.prompts.templates import SYSTEM_PROMPT_TEXT
from mise_recipes.app.services.interfaces import IngredientParser
from mise_recipes.app.services.parser.ingredients import parse_ingredients

logger = logging.getLogger(__name__)


async def extract_recipe_with_ai(
    html: str,
    config: ExtractionConfig,
    url: Optional[str] = None,
    allergies: Optional[Sequence[str]] = None,
    ingredient_parser: IngredientParser = parse_ingredients,
) -> AIResult:
    """Extract a dual-system recipe from raw page HTML."""
    logger.info("Starting AI recipe extraction for %s", url)
    return await run_extraction(
        config,
        lambda: build_recipe_extraction_prompt(extract_sanitized_body(html), url=url, allergies=allergies),
        SYSTEM_PROMPT_TEXT,
        url=url,
        image_candidates=lambda: extract_image_candidates(html),
        ingredient_parser=ingredient_parser,
    )


async def extract_recipe_from_transcript(
    transcript: str,
    metadata: VideoMetadata,
    config: ExtractionConfig,
    allergies: Optional[Sequence[str]] = None,
    ingredient_parser: IngredientParser = parse_ingredients,
) -> AIResult:
    """Extract a recipe from a video transcript supplied by a video processor."""
    logger.info("Starting AI transcript extraction for %s", metadata.url)
    return await run_extraction(
        config,
        lambda: build_video_extraction_prompt(transcript, metadata, allergies=allergies),
        SYSTEM_PROMPT_TEXT,
        url=metadata.url,
        ingredient_parser=ingredient_parser,
    )
