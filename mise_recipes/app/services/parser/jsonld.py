"""Schema.org JSON-LD recipe extraction."""

import json
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup

from mise_recipes.app.schemas.extraction import UnitDefinition
from mise_recipes.app.schemas.recipe import DualSystemList, MeasurementSystem, RecipeExtractionOutput
from mise_recipes.app.services.parser.units import detect_measurement_system
from mise_recipes.app.services.parser.utils import (
    clean_text,
    coerce_keywords,
    extract_images,
    extract_instruction_text,
    extract_text_list,
)

logger = logging.getLogger(__name__)


def is_dual_system(value: Any) -> bool:
    return isinstance(value, dict) and ("metric" in value or "us" in value)


def build_dual_lists(
    ingredients_raw: Any,
    instructions_raw: Any,
    extract_ingredients: Callable[[Any], List[str]] = extract_text_list,
    extract_steps: Callable[[Any], List[str]] = extract_instruction_text,
    units: Optional[Sequence[UnitDefinition]] = None,
) -> tuple:
    """Read ingredient/instruction values into ``DualSystemList`` pairs.

    ``{metric: [...], us: [...]}`` objects map directly. Flat lists are assigned
    to a single system by unit vote; the other system stays empty.
    """
    if is_dual_system(ingredients_raw) or is_dual_system(instructions_raw):
        ingredients = _dual_from(ingredients_raw, extract_ingredients)
        instructions = _dual_from(instructions_raw, extract_steps)
        return ingredients, instructions

    flat_ingredients = extract_ingredients(ingredients_raw)
    flat_steps = extract_steps(instructions_raw)
    system = detect_measurement_system(flat_ingredients + flat_steps, units)
    logger.debug(
        "Flat structured lists classified as %s (ingredients=%d, steps=%d)",
        system.value,
        len(flat_ingredients),
        len(flat_steps),
    )
    if system == MeasurementSystem.US:
        return DualSystemList(us=flat_ingredients), DualSystemList(us=flat_steps)
    return DualSystemList(metric=flat_ingredients), DualSystemList(metric=flat_steps)


def _dual_from(value: Any, extract: Callable[[Any], List[str]]) -> DualSystemList:
    if is_dual_system(value):
        return DualSystemList(metric=extract(value.get("metric")), us=extract(value.get("us")))
    # A flat list next to a dual-system sibling is treated as metric.
    return DualSystemList(metric=extract(value))


def _iter_candidates(data: Any) -> Iterable[dict]:
    if isinstance(data, list):
        for item in data:
            yield from _iter_candidates(item)
    elif isinstance(data, dict):
        graph = data.get("@graph")
        if isinstance(graph, list):
            yield from _iter_candidates(graph)
        yield data


def _is_recipe(obj: dict) -> bool:
    obj_type = obj.get("@type")
    types = [obj_type] if isinstance(obj_type, str) else obj_type or []
    return isinstance(types, list) and any(str(t).lower() == "recipe" for t in types)


def _first_text(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    cleaned = clean_text(value) if isinstance(value, str) else ""
    return cleaned or None


def collect_keywords(obj: dict) -> List[str]:
    all_keywords: List[Any] = []
    for key in ("keywords", "recipeCategory", "recipeCuisine"):
        value = obj.get(key)
        if not value:
            continue
        if isinstance(value, list):
            all_keywords.extend(value)
        else:
            all_keywords.append(value)
    return coerce_keywords(all_keywords)


def recipe_from_object(
    obj: dict, units: Optional[Sequence[UnitDefinition]] = None
) -> Optional[RecipeExtractionOutput]:
    title = clean_text(obj.get("name") or "")
    if not title:
        logger.warning("JSON-LD recipe candidate missing name")
        return None

    ingredients, instructions = build_dual_lists(
        obj.get("recipeIngredient") or obj.get("ingredients"),
        obj.get("recipeInstructions"),
        units=units,
    )
    logger.info(
        "JSON-LD recipe '%s': ingredients metric=%d us=%d, steps metric=%d us=%d",
        title[:50],
        len(ingredients.metric),
        len(ingredients.us),
        len(instructions.metric),
        len(instructions.us),
    )
    return RecipeExtractionOutput(
        name=title,
        description=clean_text(obj.get("description") or "") or None,
        image=extract_images(obj.get("image")),
        recipe_yield=_first_text(obj.get("recipeYield")),
        prep_time=_first_text(obj.get("prepTime")),
        cook_time=_first_text(obj.get("cookTime")),
        total_time=_first_text(obj.get("totalTime")),
        recipe_ingredient=ingredients,
        recipe_instructions=instructions,
        keywords=collect_keywords(obj),
    )


def extract_recipe_from_jsonld(
    url: str, html: str, units: Optional[Sequence[UnitDefinition]] = None
) -> Optional[RecipeExtractionOutput]:
    """First Recipe-typed JSON-LD object in ``html``, or None. Never raises."""
    try:
        return _extract(url, html, units)
    except Exception as exc:  # noqa: BLE001
        logger.warning("JSON-LD extraction failed for %s: %s", url, exc)
        return None


def _extract(
    url: str, html: str, units: Optional[Sequence[UnitDefinition]]
) -> Optional[RecipeExtractionOutput]:
    if not html:
        return None
    soup = BeautifulSoup(html, "lxml")
    scripts = soup.find_all("script", attrs={"type": "application/ld+json"})
    logger.info("Found %d JSON-LD script blocks on %s", len(scripts), url)

    for idx, script in enumerate(scripts):
        raw_json = script.string or script.get_text()
        if not raw_json or not raw_json.strip():
            logger.debug("JSON-LD block %d is empty", idx)
            continue
        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            logger.warning(
                "JSON-LD block %d failed to parse: %s (first 200 chars: %s)",
                idx,
                exc,
                raw_json[:200],
            )
            continue

        for obj in _iter_candidates(data):
            if not _is_recipe(obj):
                continue
            recipe = recipe_from_object(obj, units)
            if recipe is not None:
                return recipe
    return None
