"""Schema.org microdata (``itemscope``/``itemprop``) recipe extraction."""

import logging
import re
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from mise_recipes.app.schemas.extraction import UnitDefinition
from mise_recipes.app.schemas.recipe import RecipeExtractionOutput
from mise_recipes.app.services.parser.jsonld import build_dual_lists
from mise_recipes.app.services.parser.utils import clean_text, coerce_keywords

logger = logging.getLogger(__name__)

_RECIPE_TYPE_RE = re.compile(r"schema\.org/Recipe\b|^Recipe$", re.I)
_ANY_RECIPE_TYPE_RE = re.compile(r"Recipe", re.I)

INGREDIENT_PROPS = ("recipeIngredient", "ingredients")
INSTRUCTION_PROPS = ("recipeInstructions", "step")


def find_recipe_scope(soup: BeautifulSoup) -> Optional[Tag]:
    """First element whose ``itemtype`` is a Recipe (exact type preferred over e.g. ``RecipeStep``)."""
    exact = soup.find(attrs={"itemtype": _RECIPE_TYPE_RE})
    if exact is not None:
        return exact
    return soup.find(attrs={"itemtype": _ANY_RECIPE_TYPE_RE})


def _prop_names(el: Tag) -> List[str]:
    value = el.get("itemprop")
    if isinstance(value, list):
        return value
    return value.split() if isinstance(value, str) else []


def owned_props(scope: Tag, names: Sequence[str]) -> List[Tag]:
    """``itemprop`` elements belonging directly to ``scope``, not to a nested item."""
    wanted = {n.lower() for n in names}
    found: List[Tag] = []
    for el in scope.find_all(attrs={"itemprop": True}):
        if not any(p.lower() in wanted for p in _prop_names(el)):
            continue
        if el.find_parent(attrs={"itemtype": True}) is scope:
            found.append(el)
    return found


def prop_value(el: Tag) -> str:
    if el.name == "meta":
        return clean_text(el.get("content"))
    if el.name in {"img", "source"}:
        return clean_text(el.get("src") or el.get("content"))
    if el.name in {"a", "link"} and el.get("href") and not el.get_text(strip=True):
        return clean_text(el.get("href"))
    if el.name == "time" and el.get("datetime"):
        return clean_text(el.get("datetime"))
    if el.get("content"):
        return clean_text(el.get("content"))
    return clean_text(el.get_text(" ", strip=True))


def _first_prop(scope: Tag, *names: str) -> Optional[str]:
    for el in owned_props(scope, names):
        value = prop_value(el)
        if value:
            return value
    return None


def _instruction_texts(el: Tag) -> List[str]:
    # HowToStep items carry their text in a nested "text" prop.
    if el.get("itemtype"):
        nested = [prop_value(t) for t in owned_props(el, ("text",))]
        nested = [t for t in nested if t]
        if nested:
            return nested
    items = el.find_all("li")
    if items:
        return [t for t in (clean_text(li.get_text(" ", strip=True)) for li in items) if t]
    text = el.get_text("\n", strip=True) if not el.get("content") else el.get("content")
    return [t for t in (clean_text(line) for line in re.split(r"\n+", text or "")) if t]


def _images(scope: Tag) -> List[str]:
    images: List[str] = []
    for el in owned_props(scope, ("image",)):
        if el.get("itemtype"):
            url = _first_prop(el, "url", "contentUrl")
        else:
            url = prop_value(el)
        if url and url not in images:
            images.append(url)
    return images


def extract_recipe_from_microdata(
    url: str, html: str, units: Optional[Sequence[UnitDefinition]] = None
) -> Optional[RecipeExtractionOutput]:
    """Recipe from the first Recipe ``itemscope`` in ``html``, or None. Never raises."""
    try:
        return _extract(url, html, units)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Microdata extraction failed for %s: %s", url, exc)
        return None


def _extract(
    url: str, html: str, units: Optional[Sequence[UnitDefinition]]
) -> Optional[RecipeExtractionOutput]:
    if not html:
        return None
    soup = BeautifulSoup(html, "lxml")
    scope = find_recipe_scope(soup)
    if scope is None:
        logger.debug("No Recipe itemscope found on %s", url)
        return None

    title = _first_prop(scope, "name")
    if not title:
        logger.warning("Microdata recipe on %s missing name", url)
        return None

    ingredient_lines = [v for v in (prop_value(el) for el in owned_props(scope, INGREDIENT_PROPS)) if v]
    steps: List[str] = []
    for el in owned_props(scope, INSTRUCTION_PROPS):
        steps.extend(_instruction_texts(el))

    ingredients, instructions = build_dual_lists(
        ingredient_lines,
        steps,
        extract_ingredients=list,
        extract_steps=list,
        units=units,
    )
    keywords = [prop_value(el) for el in owned_props(scope, ("keywords", "recipeCategory", "recipeCuisine"))]

    logger.info(
        "Microdata recipe '%s': ingredients=%d, steps=%d",
        title[:50],
        len(ingredient_lines),
        len(steps),
    )
    return RecipeExtractionOutput(
        name=title,
        description=_first_prop(scope, "description"),
        image=_images(scope),
        recipe_yield=_first_prop(scope, "recipeYield", "yield"),
        prep_time=_first_prop(scope, "prepTime"),
        cook_time=_first_prop(scope, "cookTime"),
        total_time=_first_prop(scope, "totalTime"),
        recipe_ingredient=ingredients,
        recipe_instructions=instructions,
        keywords=coerce_keywords([k for k in keywords if k]),
    )
