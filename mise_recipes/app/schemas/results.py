from typing import Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, Field

from mise_recipes.app.core.errors import AIErrorKind
from mise_recipes.app.schemas.recipe import NormalizedRecipe

T = TypeVar("T")


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


class AISuccess(BaseModel, Generic[T]):
    ok: Literal[True] = True
    value: T
    usage: TokenUsage = Field(default_factory=TokenUsage)


class AIFailure(BaseModel):
    ok: Literal[False] = False
    error_kind: AIErrorKind
    message: str


# Every AI entry point yields a recipe or a tagged failure.
AIResult = Union[AISuccess[NormalizedRecipe], AIFailure]


def ai_success(value: T, usage: Optional[TokenUsage] = None) -> AISuccess[T]:
    return AISuccess(value=value, usage=usage or TokenUsage())


def ai_failure(message: str, kind: AIErrorKind) -> AIFailure:
    return AIFailure(error_kind=kind, message=message)


class ParseRecipeResult(BaseModel):
    """Outcome of one orchestrated import."""

    success: bool
    recipe: Optional[NormalizedRecipe] = None
    used_ai: bool = False
    parser_strategy: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    usage: Optional[TokenUsage] = None
