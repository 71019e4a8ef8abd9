"""Narrow interfaces for the collaborators the extraction core depends on."""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, Sequence

from mise_recipes.app.schemas.extraction import UnitDefinition
from mise_recipes.app.schemas.recipe import NormalizedRecipe, ParsedIngredient

# async (url) -> html, or None when the page cannot be fetched
ContentFetcher = Callable[[str], Awaitable[Optional[str]]]

# (ingredient lines, unit table) -> tokenised ingredients, order preserved
IngredientParser = Callable[[Sequence[str], Sequence[UnitDefinition]], List[ParsedIngredient]]


class VideoProcessor(ABC):
    """Turns a video URL into a recipe. May raise; results count as AI-sourced."""

    @abstractmethod
    async def process(
        self,
        url: str,
        recipe_id: Optional[str] = None,
        allergies: Optional[Sequence[str]] = None,
    ) -> NormalizedRecipe:  # pragma: no cover - interface
        raise NotImplementedError
