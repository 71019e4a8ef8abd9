"""Strategy selection for recipe imports.

Order: video platform check, page fetch, recipe-likelihood check, then JSON-LD,
microdata and finally AI. Structured parsing is nearly free, so AI is only used
when it fails or when AI-only mode is requested.
"""

import logging
import re
from typing import Awaitable, Callable, List, Optional, Sequence

from mise_recipes.app.core.errors import AIErrorKind
from mise_recipes.app.schemas.extraction import ContentIndicators, ExtractionConfig
from mise_recipes.app.schemas.recipe import (
    ImageInput,
    MeasurementSystem,
    RecipeExtractionOutput,
)
from mise_recipes.app.schemas.results import AIResult, ParseRecipeResult
from mise_recipes.app.services.ai.image_recipe_parser import extract_recipe_from_images
from mise_recipes.app.services.ai.recipe_parser import extract_recipe_with_ai
from mise_recipes.app.services.interfaces import ContentFetcher, IngredientParser, VideoProcessor
from mise_recipes.app.services.parser.fetch import fetch_html
from mise_recipes.app.services.parser.ingredients import parse_ingredients
from mise_recipes.app.services.parser.jsonld import extract_recipe_from_jsonld
from mise_recipes.app.services.parser.microdata import extract_recipe_from_microdata
from mise_recipes.app.services.parser.normalize import build_normalized_recipe

logger = logging.getLogger(__name__)

AIExtractor = Callable[..., Awaitable[AIResult]]

VIDEO_DISABLED_MESSAGE = "Video recipe parsing is not enabled."
VIDEO_UNAVAILABLE_MESSAGE = "Video recipe processing is not available."
FETCH_FAILED_MESSAGE = "Cannot fetch recipe page."
NOT_A_RECIPE_MESSAGE = "Page does not appear to contain a recipe."
AI_ONLY_DISABLED_MESSAGE = "AI-only import requested but AI is not enabled."
PARSE_FAILED_MESSAGE = "Cannot parse recipe."
AI_FALLBACK_WARNING = "AI fallback used; please verify ingredients."
SINGLE_SYSTEM_WARNING = "Only one measurement system found in structured data."


def is_video_url(url: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        try:
            if re.search(pattern, url, re.I):
                return True
        except re.error as exc:
            logger.warning("Invalid video URL pattern %r: %s", pattern, exc)
    return False


def is_page_likely_recipe(html: str, indicators: ContentIndicators) -> bool:
    """Best-effort: one schema indicator, or at least two content indicators."""
    lowered = (html or "").lower()
    has_schema = any(i.lower() in lowered for i in indicators.schema_indicators if i)
    content_hits = sum(1 for i in indicators.content_indicators if i and i.lower() in lowered)
    return has_schema or content_hits >= 2


def is_usable(output: Optional[RecipeExtractionOutput], config: ExtractionConfig) -> bool:
    if output is None:
        return False
    if output.is_usable():
        return True
    if config.accept_single_system_structured:
        return output.has_complete_system(MeasurementSystem.METRIC) or output.has_complete_system(
            MeasurementSystem.US
        )
    return False


def _failure(error_code: str, message: str, warnings: Optional[List[str]] = None, **kwargs) -> ParseRecipeResult:
    return ParseRecipeResult(
        success=False, error_code=error_code, error_message=message, warnings=warnings or [], **kwargs
    )


async def _parse_video(
    url: str,
    config: ExtractionConfig,
    recipe_id: Optional[str],
    allergies: Optional[Sequence[str]],
    video_processor: Optional[VideoProcessor],
) -> ParseRecipeResult:
    if not config.video_parsing_enabled:
        logger.info("Video URL %s rejected: video parsing disabled", url)
        return _failure("video_disabled", VIDEO_DISABLED_MESSAGE)
    if video_processor is None:
        logger.warning("Video URL %s received but no video processor is configured", url)
        return _failure("video_unavailable", VIDEO_UNAVAILABLE_MESSAGE)
    try:
        recipe = await video_processor.process(url, recipe_id, allergies)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Video processing failed for %s", url)
        return _failure("video_failed", str(exc) or "Video processing failed.", parser_strategy="video", used_ai=True)
    return ParseRecipeResult(success=True, recipe=recipe, used_ai=True, parser_strategy="video")


def _structured_success(
    output: RecipeExtractionOutput,
    strategy: str,
    url: str,
    config: ExtractionConfig,
    ingredient_parser: IngredientParser,
    warnings: List[str],
) -> ParseRecipeResult:
    if not output.is_usable():
        warnings.append(SINGLE_SYSTEM_WARNING)
    recipe = build_normalized_recipe(output, url=url, ingredient_parser=ingredient_parser, units=config.units)
    logger.info(
        "Parsed %s with %s (ingredients=%d, steps=%d)",
        url,
        strategy,
        len(recipe.recipe_ingredients),
        len(recipe.steps),
    )
    return ParseRecipeResult(success=True, recipe=recipe, used_ai=False, parser_strategy=strategy, warnings=warnings)


async def parse_recipe_from_url(
    url: str,
    config: ExtractionConfig,
    *,
    recipe_id: Optional[str] = None,
    allergies: Optional[Sequence[str]] = None,
    force_ai: Optional[bool] = None,
    fetcher: Optional[ContentFetcher] = None,
    video_processor: Optional[VideoProcessor] = None,
    ingredient_parser: Optional[IngredientParser] = None,
    ai_extractor: Optional[AIExtractor] = None,
) -> ParseRecipeResult:
    fetcher = fetcher or fetch_html
    ingredient_parser = ingredient_parser or parse_ingredients
    ai_extractor = ai_extractor or extract_recipe_with_ai
    warnings: List[str] = []

    if is_video_url(url, config.video_url_patterns):
        return await _parse_video(url, config, recipe_id, allergies, video_processor)

    try:
        html = await fetcher(url)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Fetcher raised for %s: %s", url, exc)
        html = None
    if not html:
        return _failure("fetch_failed", FETCH_FAILED_MESSAGE)

    if not is_page_likely_recipe(html, config.indicators):
        logger.info("Page %s does not look like a recipe", url)
        return _failure("not_a_recipe", NOT_A_RECIPE_MESSAGE)

    use_ai_only = force_ai if force_ai is not None else config.always_use_ai
    if use_ai_only:
        logger.info("AI-only mode enabled for %s, skipping structured parsers", url)
        if not config.ai_enabled:
            return _failure("ai_disabled", AI_ONLY_DISABLED_MESSAGE)
        result = await ai_extractor(
            html, config, url=url, allergies=allergies, ingredient_parser=ingredient_parser
        )
        if result.ok:
            return ParseRecipeResult(
                success=True, recipe=result.value, used_ai=True, parser_strategy="ai_only", usage=result.usage
            )
        return _failure(
            "parse_failed",
            f"AI extraction failed: {result.message}",
            [f"ai_error:{result.error_kind.value}"],
            used_ai=True,
            parser_strategy="ai_only",
        )

    jsonld = extract_recipe_from_jsonld(url, html, config.units)
    if is_usable(jsonld, config):
        return _structured_success(jsonld, "jsonld", url, config, ingredient_parser, warnings)
    if jsonld is not None:
        warnings.append("JSON-LD recipe incomplete for one or both measurement systems.")

    microdata = extract_recipe_from_microdata(url, html, config.units)
    if is_usable(microdata, config):
        return _structured_success(microdata, "microdata", url, config, ingredient_parser, warnings)
    if microdata is not None:
        warnings.append("Microdata recipe incomplete for one or both measurement systems.")

    if config.ai_enabled:
        logger.info("Falling back to AI extraction for %s", url)
        result = await ai_extractor(
            html, config, url=url, allergies=allergies, ingredient_parser=ingredient_parser
        )
        if result.ok:
            return ParseRecipeResult(
                success=True,
                recipe=result.value,
                used_ai=True,
                parser_strategy="ai",
                warnings=warnings + [AI_FALLBACK_WARNING],
                usage=result.usage,
            )
        logger.warning("AI fallback extraction failed for %s: %s (%s)", url, result.message, result.error_kind.value)
        warnings.append(f"ai_error:{result.error_kind.value}")
        return _failure("parse_failed", PARSE_FAILED_MESSAGE, warnings, used_ai=True, parser_strategy="ai")

    logger.error("All extraction methods failed for %s", url)
    return _failure("parse_failed", PARSE_FAILED_MESSAGE, warnings)


async def parse_recipe_from_images(
    files: Sequence[ImageInput],
    config: ExtractionConfig,
    allergies: Optional[Sequence[str]] = None,
    ingredient_parser: Optional[IngredientParser] = None,
) -> ParseRecipeResult:
    result = await extract_recipe_from_images(
        files, config, allergies=allergies, ingredient_parser=ingredient_parser or parse_ingredients
    )
    if result.ok:
        return ParseRecipeResult(
            success=True, recipe=result.value, used_ai=True, parser_strategy="ai", usage=result.usage
        )
    error_codes = {AIErrorKind.AI_DISABLED: "ai_disabled", AIErrorKind.INVALID_INPUT: "invalid_input"}
    return _failure(
        error_codes.get(result.error_kind, "parse_failed"),
        result.message,
        [f"ai_error:{result.error_kind.value}"],
        used_ai=result.error_kind not in error_codes,
        parser_strategy="ai",
    )
