import logging
from typing import Optional, Sequence

from mise_recipes.app.core.errors import AIErrorKind
from mise_recipes.app.schemas.extraction import ExtractionConfig
from mise_recipes.app.schemas.recipe import ImageInput
from mise_recipes.app.schemas.results import AIResult, ai_failure
from mise_recipes.app.services.ai.engine import ai_disabled_failure, run_extraction
from mise_recipes.app.services.ai.prompts import build_image_extraction_prompt
from mise_recipes.app.services.ai.prompts.templates import SYSTEM_PROMPT_IMAGE
from mise_recipes.app.services.interfaces import IngredientParser
from mise_recipes.app.services.parser.ingredients import parse_ingredients

logger = logging.getLogger(__name__)


async def extract_recipe_from_images(
    files: Sequence[ImageInput],
    config: ExtractionConfig,
    allergies: Optional[Sequence[str]] = None,
    ingredient_parser: IngredientParser = parse_ingredients,
) -> AIResult:
    """Extract one recipe from a set of photos (pages of the same recipe), using the vision model."""
    disabled = ai_disabled_failure(config)
    if disabled is not None:
        return disabled
    if not files:
        return ai_failure("No images provided", AIErrorKind.INVALID_INPUT)

    logger.info("Starting AI image recipe extraction: %d image(s)", len(files))
    return await run_extraction(
        config,
        lambda: build_image_extraction_prompt(allergies),
        SYSTEM_PROMPT_IMAGE,
        images=list(files),
        use_vision_model=True,
        ingredient_parser=ingredient_parser,
    )
