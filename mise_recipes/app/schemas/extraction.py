from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mise_recipes.app.schemas.recipe import MeasurementSystem


class ProviderKind(str, Enum):
    OPENAI = "openai"
    PERPLEXITY = "perplexity"
    OLLAMA = "ollama"
    LM_STUDIO = "lm-studio"
    GENERIC_OPENAI = "generic-openai"


class GenerationSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None


class ProviderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: ProviderKind
    model: str
    vision_model: Optional[str] = None
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    generation: GenerationSettings = Field(default_factory=GenerationSettings)


class ModelCapabilities(BaseModel):
    supports_temperature: bool = True
    supports_max_tokens: bool = True
    supports_vision: bool = False
    supports_structured_output: bool = True
    max_temperature: float = 2.0


class AvailableModel(BaseModel):
    id: str
    name: str
    supports_vision: Optional[bool] = None


class ContentIndicators(BaseModel):
    model_config = ConfigDict(frozen=True)

    schema_indicators: List[str] = Field(default_factory=list)
    content_indicators: List[str] = Field(default_factory=list)


class UnitDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    aliases: List[str] = Field(default_factory=list)
    system: Optional[MeasurementSystem] = None


class ExtractionConfig(BaseModel):
    """Everything one extraction request needs, assembled once by the caller."""

    model_config = ConfigDict(frozen=True)

    ai_enabled: bool = False
    video_parsing_enabled: bool = False
    always_use_ai: bool = False
    provider: Optional[ProviderConfig] = None
    indicators: ContentIndicators = Field(default_factory=ContentIndicators)
    video_url_patterns: List[str] = Field(default_factory=list)
    units: List[UnitDefinition] = Field(default_factory=list)
    generation_timeout_seconds: Optional[float] = None
    introspection_timeout_seconds: float = 5.0
    cloud_listing_timeout_seconds: float = 10.0
    accept_single_system_structured: bool = False
