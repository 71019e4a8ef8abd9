import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mise_recipes.app.schemas.extraction import (
    ContentIndicators,
    ExtractionConfig,
    GenerationSettings,
    ProviderConfig,
    ProviderKind,
)
from mise_recipes.app.services.parser.units import DEFAULT_UNITS

DEFAULT_SCHEMA_INDICATORS = [
    '"@type":"recipe"',
    '"@type": "recipe"',
    '"recipeingredient"',
    "schema.org/recipe",
]

DEFAULT_CONTENT_INDICATORS = [
    "ingredients",
    "instructions",
    "directions",
    "preparation",
    "prep time",
    "cook time",
    "servings",
    "tablespoon",
    "teaspoon",
]

DEFAULT_VIDEO_URL_PATTERNS = [
    r"(?:www\.|m\.)?youtube\.com/(?:watch|shorts/|live/)",
    r"youtu\.be/",
    r"instagram\.com/(?:reel|reels|p|tv)/",
    r"tiktok\.com/",
    r"facebook\.com/.+/videos/",
    r"fb\.watch/",
    r"vimeo\.com/\d+",
]


class Settings(BaseSettings):
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    ai_enabled: bool = Field(False, alias="AI_ENABLED")
    ai_always_use: bool = Field(False, alias="AI_ALWAYS_USE")
    video_parsing_enabled: bool = Field(False, alias="VIDEO_PARSING_ENABLED")
    ai_provider: ProviderKind = Field(ProviderKind.OPENAI, alias="AI_PROVIDER")
    ai_model: str = Field("gpt-4o-mini", alias="AI_MODEL")
    ai_vision_model: Optional[str] = Field(None, alias="AI_VISION_MODEL")
    ai_endpoint: Optional[str] = Field(None, alias="AI_ENDPOINT")
    ai_api_key: Optional[str] = Field(None, alias="AI_API_KEY")
    ai_temperature: Optional[float] = Field(None, alias="AI_TEMPERATURE")
    ai_max_tokens: Optional[int] = Field(None, alias="AI_MAX_TOKENS")
    ai_generation_timeout_seconds: Optional[float] = Field(None, alias="AI_GENERATION_TIMEOUT_SECONDS")
    ai_introspection_timeout_seconds: float = Field(5.0, alias="AI_INTROSPECTION_TIMEOUT_SECONDS")
    ai_cloud_listing_timeout_seconds: float = Field(10.0, alias="AI_CLOUD_LISTING_TIMEOUT_SECONDS")
    parser_accept_single_system: bool = Field(False, alias="PARSER_ACCEPT_SINGLE_SYSTEM")
    parser_schema_indicators: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SCHEMA_INDICATORS), alias="PARSER_SCHEMA_INDICATORS"
    )
    parser_content_indicators: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CONTENT_INDICATORS), alias="PARSER_CONTENT_INDICATORS"
    )
    video_url_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_VIDEO_URL_PATTERNS), alias="VIDEO_URL_PATTERNS"
    )
    scraper_user_agent: str = Field(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_6) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
        alias="SCRAPER_USER_AGENT",
    )
    scraper_cookies: Optional[str] = Field(None, alias="SCRAPER_COOKIES")
    recipe_image_max_bytes: int = Field(10 * 1024 * 1024, alias="RECIPE_IMAGE_MAX_BYTES")
    recipe_image_max_files: int = Field(8, alias="RECIPE_IMAGE_MAX_FILES")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()
    except PermissionError:
        logger.warning("Unable to read .env; continuing with environment variables only")
        settings = Settings(_env_file=None)
    return settings


def build_provider_config(settings: Settings) -> ProviderConfig:
    return ProviderConfig(
        provider=settings.ai_provider,
        model=settings.ai_model,
        vision_model=settings.ai_vision_model,
        endpoint=settings.ai_endpoint,
        api_key=settings.ai_api_key,
        generation=GenerationSettings(
            temperature=settings.ai_temperature,
            max_output_tokens=settings.ai_max_tokens,
        ),
    )


def build_extraction_config(settings: Optional[Settings] = None) -> ExtractionConfig:
    """Snapshot admin/env settings into the immutable per-request config."""
    settings = settings or get_settings()
    return ExtractionConfig(
        ai_enabled=settings.ai_enabled,
        video_parsing_enabled=settings.video_parsing_enabled,
        always_use_ai=settings.ai_always_use,
        provider=build_provider_config(settings),
        indicators=ContentIndicators(
            schema_indicators=settings.parser_schema_indicators,
            content_indicators=settings.parser_content_indicators,
        ),
        video_url_patterns=settings.video_url_patterns,
        units=DEFAULT_UNITS,
        generation_timeout_seconds=settings.ai_generation_timeout_seconds,
        introspection_timeout_seconds=settings.ai_introspection_timeout_seconds,
        cloud_listing_timeout_seconds=settings.ai_cloud_listing_timeout_seconds,
        accept_single_system_structured=settings.parser_accept_single_system,
    )
