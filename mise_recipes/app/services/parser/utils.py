"""General parsing utilities shared by the structured extractors and the normalizer."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Sequence

FRACTION_MAP = {
    "¼": "1/4",
    "½": "1/2",
    "¾": "3/4",
    "⅐": "1/7",
    "⅑": "1/9",
    "⅒": "1/10",
    "⅓": "1/3",
    "⅔": "2/3",
    "⅕": "1/5",
    "⅖": "2/5",
    "⅗": "3/5",
    "⅘": "4/5",
    "⅙": "1/6",
    "⅚": "5/6",
    "⅛": "1/8",
    "⅜": "3/8",
    "⅝": "5/8",
    "⅞": "7/8",
}
FRACTION_CHARS = "".join(FRACTION_MAP.keys())


def clean_text(text: Any) -> str:
    """Normalize whitespace in text."""
    if text is None:
        return ""
    return re.sub(r"\s+", " ", str(text)).strip()


def normalize_fraction_display(qty: Optional[str]) -> Optional[str]:
    """Normalize unicode fractions, e.g. "1½" -> "1 1/2"."""
    if not qty:
        return qty
    s = re.sub(rf"(\d)([{FRACTION_CHARS}])", r"\1 \2", qty)
    for k, v in FRACTION_MAP.items():
        s = s.replace(k, v)
    return re.sub(r"\s+", " ", s).strip() or None


def parse_quantity(raw: Optional[str]) -> Optional[float]:
    """Parse "2", "0.5", "1/2", "1 1/2", "1½", "1-2" (lower bound) or "1,5" into a float."""
    if raw is None:
        return None
    value = normalize_fraction_display(clean_text(raw))
    if not value:
        return None
    value = value.replace(",", ".")
    # Ranges keep their lower bound
    value = re.split(r"\s*(?:-|–|to)\s*", value, maxsplit=1)[0].strip()

    try:
        if "/" not in value and " " not in value:
            return float(Decimal(value))
    except InvalidOperation:
        return None

    try:
        if " " in value:
            whole_part, frac_part = value.split(" ", 1)
            whole = Decimal(whole_part)
            num_str, denom_str = frac_part.split("/", 1)
            denom = Decimal(denom_str)
            if denom == 0:
                return None
            return float(whole + Decimal(num_str) / denom)
        num_str, denom_str = value.split("/", 1)
        denom = Decimal(denom_str)
        if denom == 0:
            return None
        return float(Decimal(num_str) / denom)
    except (InvalidOperation, ValueError):
        return None


def parse_iso8601_duration(duration: str) -> Optional[int]:
    """Parse a minimal ISO-8601 duration string (e.g., PT1H30M) into minutes."""
    if not duration:
        return None
    match = re.fullmatch(r"P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?", duration.strip(), flags=re.I)
    if not match or not any(match.groups()):
        return None
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    minutes = int(match.group(3) or 0)
    seconds = int(match.group(4) or 0)
    total_minutes = days * 1440 + hours * 60 + minutes + (1 if seconds >= 30 else 0)
    return total_minutes or None


def parse_minutes(value) -> Optional[int]:
    """Parse a minutes value from various formats."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        iso_minutes = parse_iso8601_duration(value)
        if iso_minutes is not None:
            return iso_minutes
        total = 0
        hours = re.search(r"(\d+)\s*(h|hr|hrs|hour|hours)\b", value, flags=re.I)
        if hours:
            total += int(hours.group(1)) * 60
        match = re.search(r"(\d+)\s*(m|min|mins|minute|minutes)\b", value, flags=re.I)
        if match:
            total += int(match.group(1))
        return total or None
    return None


def parse_servings(value) -> Optional[int]:
    """Parse servings from various formats."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, list):
        for item in value:
            parsed = parse_servings(item)
            if parsed is not None:
                return parsed
        return None
    if isinstance(value, str):
        match = re.search(r"\d+", value)
        if match:
            return int(match.group())
    return None


def extract_images(value) -> List[str]:
    """Extract image URLs from the schema.org image shapes (string, list, ImageObject)."""
    images: List[str] = []
    if isinstance(value, str):
        if value.strip():
            images.append(value.strip())
    elif isinstance(value, dict):
        url = value.get("url") or value.get("contentUrl") or value.get("@id")
        if isinstance(url, str) and url.strip():
            images.append(url.strip())
    elif isinstance(value, list):
        for item in value:
            for url in extract_images(item):
                if url not in images:
                    images.append(url)
    return images


def extract_instruction_text(instructions) -> List[str]:
    """Extract step text from strings, HowToStep dicts and nested HowToSection lists."""
    steps: List[str] = []
    if isinstance(instructions, list):
        for entry in instructions:
            steps.extend(extract_instruction_text(entry))
    elif isinstance(instructions, dict):
        nested = instructions.get("itemListElement")
        if nested:
            steps.extend(extract_instruction_text(nested))
        else:
            cleaned = clean_text(instructions.get("text") or instructions.get("description") or instructions.get("name"))
            if cleaned:
                steps.append(cleaned)
    elif isinstance(instructions, str):
        # A single string block may hold one step per line
        for line in re.split(r"\n+", instructions):
            cleaned = clean_text(line)
            if cleaned:
                steps.append(cleaned)
    return steps


def extract_text_list(value) -> List[str]:
    """Flatten a string / list of strings / list of {text|name} dicts into clean strings."""
    items: List[str] = []
    if isinstance(value, str):
        cleaned = clean_text(value)
        if cleaned:
            items.append(cleaned)
    elif isinstance(value, dict):
        cleaned = clean_text(value.get("text") or value.get("name"))
        if cleaned:
            items.append(cleaned)
    elif isinstance(value, list):
        for item in value:
            items.extend(extract_text_list(item))
    return items


def coerce_keywords(value) -> List[str]:
    """Split comma separated keyword strings/lists into unique tags (case-insensitive)."""
    if not value:
        return []

    raw_tags: List[str] = []
    if isinstance(value, str):
        raw_tags = [kw.strip() for kw in value.split(",") if kw.strip()]
    elif isinstance(value, Sequence):
        for item in value:
            if isinstance(item, str):
                raw_tags.extend([kw.strip() for kw in item.split(",") if kw.strip()])

    seen = set()
    unique_tags = []
    for tag in raw_tags:
        tag_lower = tag.lower()
        if tag_lower not in seen:
            seen.add(tag_lower)
            unique_tags.append(tag)
    return unique_tags
