"""Unit table and measurement-system detection."""

import re
from typing import Dict, Iterable, List, Optional, Sequence

from mise_recipes.app.schemas.extraction import UnitDefinition
from mise_recipes.app.schemas.recipe import MeasurementSystem

_M = MeasurementSystem.METRIC
_US = MeasurementSystem.US

DEFAULT_UNITS: List[UnitDefinition] = [
    UnitDefinition(id="gram", aliases=["g", "gr", "gram", "grams", "gramme", "grammes"], system=_M),
    UnitDefinition(id="kilogram", aliases=["kg", "kilo", "kilos", "kilogram", "kilograms"], system=_M),
    UnitDefinition(id="milligram", aliases=["mg", "milligram", "milligrams"], system=_M),
    UnitDefinition(id="milliliter", aliases=["ml", "milliliter", "milliliters", "millilitre", "millilitres"], system=_M),
    UnitDefinition(id="centiliter", aliases=["cl", "centiliter", "centiliters", "centilitre", "centilitres"], system=_M),
    UnitDefinition(id="deciliter", aliases=["dl", "deciliter", "deciliters", "decilitre", "decilitres"], system=_M),
    UnitDefinition(id="liter", aliases=["l", "liter", "liters", "litre", "litres"], system=_M),
    UnitDefinition(id="centimeter", aliases=["cm", "centimeter", "centimeters", "centimetre", "centimetres"], system=_M),
    UnitDefinition(id="cup", aliases=["cup", "cups", "c"], system=_US),
    UnitDefinition(id="ounce", aliases=["oz", "ounce", "ounces"], system=_US),
    UnitDefinition(id="fluid-ounce", aliases=["fl oz", "fl. oz", "fluid ounce", "fluid ounces"], system=_US),
    UnitDefinition(id="pound", aliases=["lb", "lbs", "pound", "pounds"], system=_US),
    UnitDefinition(id="pint", aliases=["pt", "pint", "pints"], system=_US),
    UnitDefinition(id="quart", aliases=["qt", "quart", "quarts"], system=_US),
    UnitDefinition(id="gallon", aliases=["gal", "gallon", "gallons"], system=_US),
    UnitDefinition(id="inch", aliases=["in", "inch", "inches"], system=_US),
    UnitDefinition(id="tablespoon", aliases=["tbsp", "tbs", "tbl", "tablespoon", "tablespoons", "T"]),
    UnitDefinition(id="teaspoon", aliases=["tsp", "teaspoon", "teaspoons", "t"]),
    UnitDefinition(id="pinch", aliases=["pinch", "pinches"]),
    UnitDefinition(id="dash", aliases=["dash", "dashes"]),
    UnitDefinition(id="clove", aliases=["clove", "cloves"]),
    UnitDefinition(id="slice", aliases=["slice", "slices"]),
    UnitDefinition(id="piece", aliases=["piece", "pieces", "pc", "pcs"]),
    UnitDefinition(id="can", aliases=["can", "cans", "tin", "tins"]),
    UnitDefinition(id="package", aliases=["package", "packages", "pkg", "packet", "packets"]),
    UnitDefinition(id="bunch", aliases=["bunch", "bunches"]),
    UnitDefinition(id="stick", aliases=["stick", "sticks"]),
]

_TEMPERATURE_RE = {
    _M: re.compile(r"\d+\s*°?\s*C\b"),
    _US: re.compile(r"\d+\s*°?\s*F\b"),
}


def build_alias_index(units: Sequence[UnitDefinition]) -> Dict[str, UnitDefinition]:
    """Map each alias to its unit; single-letter case-sensitive aliases keep their case."""
    index: Dict[str, UnitDefinition] = {}
    for unit in units:
        for alias in [unit.id, *unit.aliases]:
            key = alias if len(alias) == 1 else alias.lower()
            index.setdefault(key, unit)
    return index


def lookup_unit(token: str, index: Dict[str, UnitDefinition]) -> Optional[UnitDefinition]:
    if not token:
        return None
    cleaned = token.strip().rstrip(".")
    if len(cleaned) == 1:
        return index.get(cleaned)
    return index.get(cleaned.lower())


def detect_measurement_system(
    lines: Iterable[str], units: Optional[Sequence[UnitDefinition]] = None
) -> MeasurementSystem:
    """Vote on the system a flat list is written in. Ties go to metric."""
    index = build_alias_index(units or DEFAULT_UNITS)
    votes = {_M: 0, _US: 0}
    for line in lines:
        if not isinstance(line, str):
            continue
        for system, pattern in _TEMPERATURE_RE.items():
            votes[system] += len(pattern.findall(line))
        # Only tokens directly after a number count, "a cup of" style prose is ignored.
        for match in re.finditer(r"[\d¼½¾⅓⅔⅛]\s*([A-Za-z][A-Za-z\.]*(?:\s+oz)?)", line):
            unit = lookup_unit(match.group(1), index)
            if unit and unit.system:
                votes[unit.system] += 1
    return _US if votes[_US] > votes[_M] else _M
