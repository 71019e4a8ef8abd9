"""Default ingredient tokeniser: "1 1/2 cups flour, sifted" -> quantity / unit id / description."""

import logging
import re
from typing import List, Optional, Sequence

from mise_recipes.app.schemas.extraction import UnitDefinition
from mise_recipes.app.schemas.recipe import ParsedIngredient
from mise_recipes.app.services.parser.units import DEFAULT_UNITS, build_alias_index, lookup_unit
from mise_recipes.app.services.parser.utils import FRACTION_CHARS, clean_text, parse_quantity

logger = logging.getLogger(__name__)

_QTY = rf"[\d{FRACTION_CHARS}][\d\s\/\.,\-–{FRACTION_CHARS}]*?"
_QUANTITY_UNIT_RE = re.compile(rf"^\s*({_QTY})\s*([A-Za-z][A-Za-z\.]*(?:\s+oz\.?)?)\s+(.*)$")
_QUANTITY_ONLY_RE = re.compile(rf"^\s*({_QTY})\s+(.*)$")
_UNIT_ONLY_RE = re.compile(r"^\s*(?:a|an)?\s*([A-Za-z][A-Za-z\.]*)\s+of\s+(.*)$", re.I)


def _clean_description(text: str) -> str:
    cleaned = clean_text(text)
    if cleaned.lower().startswith("of "):
        cleaned = cleaned[3:]
    return cleaned


def parse_ingredient(line: str, units: Optional[Sequence[UnitDefinition]] = None) -> ParsedIngredient:
    index = build_alias_index(units or DEFAULT_UNITS)
    return _parse_line(line, index)


def _parse_line(line: str, index) -> ParsedIngredient:
    raw = clean_text(line)
    if not raw:
        return ParsedIngredient(description=raw)

    m = _QUANTITY_UNIT_RE.match(raw)
    if m:
        unit = lookup_unit(m.group(2), index)
        if unit:
            return ParsedIngredient(
                quantity=parse_quantity(m.group(1)),
                unit_id=unit.id,
                description=_clean_description(m.group(3)),
            )

    m = _QUANTITY_ONLY_RE.match(raw)
    if m:
        return ParsedIngredient(
            quantity=parse_quantity(m.group(1)),
            unit_id=None,
            description=_clean_description(m.group(2)),
        )

    # "a pinch of salt"
    m = _UNIT_ONLY_RE.match(raw)
    if m:
        unit = lookup_unit(m.group(1), index)
        if unit:
            return ParsedIngredient(quantity=None, unit_id=unit.id, description=_clean_description(m.group(2)))

    return ParsedIngredient(description=raw)


def parse_ingredients(
    lines: Sequence[str], units: Optional[Sequence[UnitDefinition]] = None
) -> List[ParsedIngredient]:
    """Tokenise every non-empty line; order is preserved."""
    index = build_alias_index(units or DEFAULT_UNITS)
    parsed: List[ParsedIngredient] = []
    for idx, line in enumerate(lines):
        if not isinstance(line, str) or not clean_text(line):
            logger.debug("Ingredient %d skipped: empty or not a string", idx)
            continue
        ingredient = _parse_line(line, index)
        logger.debug(
            "Ingredient %d: '%s' -> qty=%s unit=%s desc='%s'",
            idx,
            line[:50],
            ingredient.quantity,
            ingredient.unit_id,
            ingredient.description[:30],
        )
        parsed.append(ingredient)
    return parsed
