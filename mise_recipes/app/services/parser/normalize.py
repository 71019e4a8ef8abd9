"""Dual-system extraction output -> ``NormalizedRecipe``.

The unified ingredient and step lists hold every metric entry first, then every
US entry. ``order`` restarts at zero for each system and is contiguous.
"""

import logging
from typing import List, Optional, Sequence

from mise_recipes.app.schemas.extraction import UnitDefinition
from mise_recipes.app.schemas.recipe import (
    MeasurementSystem,
    NormalizedRecipe,
    RecipeExtractionOutput,
    RecipeIngredient,
    RecipeStep,
)
from mise_recipes.app.services.interfaces import IngredientParser
from mise_recipes.app.services.parser.ingredients import parse_ingredients
from mise_recipes.app.services.parser.units import DEFAULT_UNITS
from mise_recipes.app.services.parser.utils import (
    clean_text,
    coerce_keywords,
    parse_minutes,
    parse_servings,
)

logger = logging.getLogger(__name__)

SYSTEM_ORDER = (MeasurementSystem.METRIC, MeasurementSystem.US)


def build_ingredients(
    lines: Sequence[str],
    system: MeasurementSystem,
    ingredient_parser: IngredientParser = parse_ingredients,
    units: Optional[Sequence[UnitDefinition]] = None,
) -> List[RecipeIngredient]:
    parsed = ingredient_parser(list(lines), list(units or DEFAULT_UNITS))
    ingredients: List[RecipeIngredient] = []
    for item in parsed:
        name = clean_text(item.description)
        if not name:
            continue
        ingredients.append(
            RecipeIngredient(
                ingredient_name=name,
                amount=item.quantity,
                unit=item.unit_id,
                system_used=system,
                order=len(ingredients),
            )
        )
    return ingredients


def build_steps(lines: Sequence[str], system: MeasurementSystem) -> List[RecipeStep]:
    steps: List[RecipeStep] = []
    for line in lines:
        text = clean_text(line)
        if text:
            steps.append(RecipeStep(step=text, system_used=system, order=len(steps)))
    return steps


def normalize_recipe_from_json(
    output: RecipeExtractionOutput,
    system: MeasurementSystem = MeasurementSystem.METRIC,
    ingredient_parser: IngredientParser = parse_ingredients,
    units: Optional[Sequence[UnitDefinition]] = None,
    url: Optional[str] = None,
) -> NormalizedRecipe:
    """Normalize a single measurement system of ``output``."""
    total = parse_minutes(output.total_time)
    prep = parse_minutes(output.prep_time)
    cook = parse_minutes(output.cook_time)
    if total is None and (prep or cook):
        total = (prep or 0) + (cook or 0)

    return NormalizedRecipe(
        name=clean_text(output.name),
        description=clean_text(output.description) or None,
        url=url,
        image=output.image[0] if output.image else None,
        servings=parse_servings(output.recipe_yield),
        prep_minutes=prep,
        cook_minutes=cook,
        total_minutes=total,
        system_used=system,
        recipe_ingredients=build_ingredients(
            output.recipe_ingredient.get(system), system, ingredient_parser, units
        ),
        steps=build_steps(output.recipe_instructions.get(system), system),
        tags=coerce_keywords(output.keywords),
    )


def build_normalized_recipe(
    output: RecipeExtractionOutput,
    url: Optional[str] = None,
    ingredient_parser: IngredientParser = parse_ingredients,
    units: Optional[Sequence[UnitDefinition]] = None,
) -> NormalizedRecipe:
    """Normalize the first populated system, then append the other system's entries."""
    present = [s for s in SYSTEM_ORDER if output.has_complete_system(s)] or [MeasurementSystem.METRIC]
    primary = present[0]
    recipe = normalize_recipe_from_json(output, primary, ingredient_parser, units, url=url)

    for system in present[1:]:
        recipe.recipe_ingredients.extend(
            build_ingredients(output.recipe_ingredient.get(system), system, ingredient_parser, units)
        )
        recipe.steps.extend(build_steps(output.recipe_instructions.get(system), system))

    logger.debug(
        "Normalized recipe '%s': systems=%s ingredients=%d steps=%d",
        recipe.name[:50],
        [s.value for s in present],
        len(recipe.recipe_ingredients),
        len(recipe.steps),
    )
    return recipe
