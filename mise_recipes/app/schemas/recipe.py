from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MeasurementSystem(str, Enum):
    METRIC = "metric"
    US = "us"


class DualSystemList(BaseModel):
    """Parallel metric / US-customary variants of one list."""

    metric: List[str] = Field(default_factory=list)
    us: List[str] = Field(default_factory=list)

    @field_validator("metric", "us", mode="before")
    @classmethod
    def _drop_blank_entries(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            return [item for item in value if not (isinstance(item, str) and not item.strip())]
        return value

    def is_complete(self) -> bool:
        return bool(self.metric) and bool(self.us)

    def get(self, system: MeasurementSystem) -> List[str]:
        return self.metric if system == MeasurementSystem.METRIC else self.us


class RecipeExtractionOutput(BaseModel):
    """Raw dual-system recipe, as produced by a structured extractor or an AI model.

    Field names follow schema.org so the same shape can be read back from
    JSON-LD and from the structured-output schema sent to providers.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    description: Optional[str] = None
    image: List[str] = Field(default_factory=list)
    recipe_yield: Optional[str] = Field(None, alias="recipeYield")
    prep_time: Optional[str] = Field(None, alias="prepTime")
    cook_time: Optional[str] = Field(None, alias="cookTime")
    total_time: Optional[str] = Field(None, alias="totalTime")
    recipe_ingredient: DualSystemList = Field(default_factory=DualSystemList, alias="recipeIngredient")
    recipe_instructions: DualSystemList = Field(
        default_factory=DualSystemList, alias="recipeInstructions"
    )
    keywords: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _null_name_is_blank(cls, value):
        return "" if value is None else value

    def is_usable(self) -> bool:
        """Both measurement systems carry ingredients and instructions."""
        return self.recipe_ingredient.is_complete() and self.recipe_instructions.is_complete()

    def has_complete_system(self, system: MeasurementSystem) -> bool:
        return bool(self.recipe_ingredient.get(system)) and bool(self.recipe_instructions.get(system))


class RecipeIngredient(BaseModel):
    ingredient_name: str
    amount: Optional[float] = None
    unit: Optional[str] = None
    system_used: MeasurementSystem
    order: int


class RecipeStep(BaseModel):
    step: str
    system_used: MeasurementSystem
    order: int


class NormalizedRecipe(BaseModel):
    name: str
    description: Optional[str] = None
    url: Optional[str] = None
    image: Optional[str] = None
    servings: Optional[int] = None
    prep_minutes: Optional[int] = None
    cook_minutes: Optional[int] = None
    total_minutes: Optional[int] = None
    system_used: MeasurementSystem = MeasurementSystem.METRIC
    recipe_ingredients: List[RecipeIngredient] = Field(default_factory=list)
    steps: List[RecipeStep] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    def ingredients_for(self, system: MeasurementSystem) -> List[RecipeIngredient]:
        return [ing for ing in self.recipe_ingredients if ing.system_used == system]

    def steps_for(self, system: MeasurementSystem) -> List[RecipeStep]:
        return [st for st in self.steps if st.system_used == system]


class ParsedIngredient(BaseModel):
    """Tokenised ingredient line: quantity, unit id, free-text description."""

    quantity: Optional[float] = None
    unit_id: Optional[str] = None
    description: str


class ImageInput(BaseModel):
    filename: str
    mime_type: str
    data: str  # base64


class VideoMetadata(BaseModel):
    url: str
    title: str
    description: Optional[str] = None
    duration: int = 0  # seconds
    uploader: Optional[str] = None
