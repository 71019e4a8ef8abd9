"""Core algorithm shared by the text, transcript and image extraction entry points.

``run_extraction`` never raises for runtime faults: provider, transport and
payload problems come back as an ``AIFailure``. An unknown provider kind is a
configuration bug and propagates.
"""

import logging
from typing import Callable, Optional, Sequence

from mise_recipes.app.core.errors import (
    AIErrorKind,
    ConfigurationError,
    UnknownProviderError,
    classify_provider_error,
    error_message,
)
from mise_recipes.app.schemas.extraction import ExtractionConfig
from mise_recipes.app.schemas.recipe import (
    ImageInput,
    MeasurementSystem,
    RecipeExtractionOutput,
)
from mise_recipes.app.schemas.results import AIFailure, AIResult, ai_failure, ai_success
from mise_recipes.app.services.ai.providers.registry import (
    create_models_from_config,
    get_generation_settings,
)
from mise_recipes.app.services.ai.schema import RECIPE_EXTRACTION_SCHEMA, RECIPE_EXTRACTION_SCHEMA_NAME
from mise_recipes.app.services.interfaces import IngredientParser
from mise_recipes.app.services.parser.ingredients import parse_ingredients
from mise_recipes.app.services.parser.normalize import (
    build_ingredients,
    build_steps,
    normalize_recipe_from_json,
)

logger = logging.getLogger(__name__)

_METRIC = MeasurementSystem.METRIC
_US = MeasurementSystem.US


def ai_disabled_failure(config: ExtractionConfig) -> Optional[AIFailure]:
    if config.ai_enabled:
        return None
    logger.info("AI features are disabled, skipping extraction")
    return ai_failure(error_message(AIErrorKind.AI_DISABLED), AIErrorKind.AI_DISABLED)


async def run_extraction(
    config: ExtractionConfig,
    build_prompt: Callable[[], str],
    system_prompt: str,
    *,
    url: Optional[str] = None,
    images: Optional[Sequence[ImageInput]] = None,
    use_vision_model: bool = False,
    image_candidates: Optional[Callable[[], Sequence[str]]] = None,
    ingredient_parser: IngredientParser = parse_ingredients,
) -> AIResult:
    disabled = ai_disabled_failure(config)
    if disabled is not None:
        return disabled

    try:
        if config.provider is None:
            raise ConfigurationError("No AI provider configured")
        models = create_models_from_config(config.provider)
        model = models.vision_model if use_vision_model else models.model
        settings = get_generation_settings(config.provider)
        prompt = build_prompt()

        logger.debug(
            "Sending prompt to AI provider %s (url=%s, prompt_chars=%d, images=%d)",
            models.provider_name,
            url,
            len(prompt),
            len(images or []),
        )
        result = await model.generate_object(
            prompt,
            RECIPE_EXTRACTION_SCHEMA,
            schema_name=RECIPE_EXTRACTION_SCHEMA_NAME,
            system=system_prompt,
            images=images,
            settings=settings,
            timeout=config.generation_timeout_seconds,
        )

        if not result.output:
            logger.error("Empty or null response from AI provider (url=%s)", url)
            return ai_failure(error_message(AIErrorKind.EMPTY_RESPONSE), AIErrorKind.EMPTY_RESPONSE)

        extracted = RecipeExtractionOutput.model_validate(result.output)
        logger.debug(
            "AI response received: name=%s ingredients metric=%d us=%d, steps metric=%d us=%d",
            extracted.name[:50],
            len(extracted.recipe_ingredient.metric),
            len(extracted.recipe_ingredient.us),
            len(extracted.recipe_instructions.metric),
            len(extracted.recipe_instructions.us),
        )
        if not extracted.name.strip() or not extracted.is_usable():
            logger.error("Invalid recipe data - missing required fields (url=%s)", url)
            return ai_failure(error_message(AIErrorKind.VALIDATION_ERROR), AIErrorKind.VALIDATION_ERROR)

        if image_candidates is not None:
            page_images = list(image_candidates())
            merged = page_images + [img for img in extracted.image if img not in page_images]
            extracted = extracted.model_copy(update={"image": merged})

        recipe = normalize_recipe_from_json(
            extracted, _METRIC, ingredient_parser, config.units, url=url
        )
        recipe.recipe_ingredients.extend(
            build_ingredients(extracted.recipe_ingredient.us, _US, ingredient_parser, config.units)
        )
        recipe.steps.extend(build_steps(extracted.recipe_instructions.us, _US))

        logger.info(
            "AI recipe extraction completed: name=%s ingredients=%d steps=%d tokens=%d",
            recipe.name[:50],
            len(recipe.recipe_ingredients),
            len(recipe.steps),
            result.usage.total_tokens,
        )
        return ai_success(recipe, result.usage)
    except UnknownProviderError:
        raise
    except Exception as exc:  # noqa: BLE001
        kind = classify_provider_error(exc)
        logger.error("Failed to extract recipe with AI (url=%s, kind=%s): %s", url, kind.value, exc)
        return ai_failure(error_message(kind, str(exc)), kind)
