from functools import partial
from typing import Optional

from mise_recipes.app.core.config import build_extraction_config, get_settings
from mise_recipes.app.schemas.extraction import ExtractionConfig
from mise_recipes.app.services.interfaces import ContentFetcher, VideoProcessor
from mise_recipes.app.services.parser.fetch import fetch_html


def get_extraction_config() -> ExtractionConfig:
    return build_extraction_config(get_settings())


def get_content_fetcher() -> ContentFetcher:
    settings = get_settings()
    return partial(fetch_html, user_agent=settings.scraper_user_agent, cookies=settings.scraper_cookies)


def get_video_processor() -> Optional[VideoProcessor]:
    # No processor ships with the service; deployments override this dependency.
    return None
