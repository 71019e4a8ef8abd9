from typing import List, Optional, Sequence

SKIP_ALLERGY_DETECTION = (
    "\nALLERGY DETECTION: Skip allergy/dietary tag detection. Do not add any tags to the keywords array."
)


def _clean_allergies(allergies: Optional[Sequence[str]]) -> List[str]:
    if not allergies:
        return []
    cleaned: List[str] = []
    for allergy in allergies:
        value = allergy.strip() if isinstance(allergy, str) else ""
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def build_allergy_instruction(allergies: Optional[Sequence[str]], strict: bool = False) -> str:
    """Keyword-detection fragment appended to every extraction prompt.

    Strict mode restricts "keywords" to an exact allow-list; permissive mode only
    names the allergens to look for. Without allergens, detection is skipped.
    """
    allowed = _clean_allergies(allergies)
    if not allowed:
        return SKIP_ALLERGY_DETECTION

    joined = ", ".join(allowed)
    if strict:
        return (
            "\nALLERGY DETECTION (STRICT):\n"
            f'- The "keywords" array MUST contain ONLY items from this list: {joined}\n'
            "- Do NOT add dietary tags, cuisine tags, or descriptive tags\n"
            "- If none are present, return an empty array\n"
            "- NEVER add additional keywords\n"
        )
    return (
        "\nALLERGY DETECTION: Only detect these specific allergens/dietary tags from the "
        f"ingredients: {joined}. Do not add any other allergy tags."
    )
