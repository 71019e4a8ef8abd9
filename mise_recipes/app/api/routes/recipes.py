import base64
import logging
from io import BytesIO
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel

from mise_recipes.app.api.deps import get_content_fetcher, get_extraction_config, get_video_processor
from mise_recipes.app.core.config import get_settings
from mise_recipes.app.schemas.extraction import ExtractionConfig
from mise_recipes.app.schemas.recipe import ImageInput
from mise_recipes.app.schemas.results import ParseRecipeResult
from mise_recipes.app.services.interfaces import ContentFetcher, VideoProcessor
from mise_recipes.app.services.parser.orchestrator import parse_recipe_from_images, parse_recipe_from_url

router = APIRouter(prefix="/recipes", tags=["recipes"])
logger = logging.getLogger(__name__)


class ParseUrlRequest(BaseModel):
    url: str
    allergies: Optional[List[str]] = None
    force_ai: Optional[bool] = None


@router.post("/parse-url", response_model=ParseRecipeResult)
async def parse_url(
    payload: ParseUrlRequest,
    config: ExtractionConfig = Depends(get_extraction_config),
    fetcher: ContentFetcher = Depends(get_content_fetcher),
    video_processor: Optional[VideoProcessor] = Depends(get_video_processor),
) -> ParseRecipeResult:
    result = await parse_recipe_from_url(
        payload.url,
        config,
        allergies=payload.allergies,
        force_ai=payload.force_ai,
        fetcher=fetcher,
        video_processor=video_processor,
    )
    if not result.success:
        logger.info("parse-url failed for %s: %s", payload.url, result.error_code)
    return result


def _to_image_input(filename: str, raw: bytes) -> ImageInput:
    if not raw:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty image upload")
    try:
        with Image.open(BytesIO(raw)) as img:
            img.verify()
            image_format = img.format
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unrecognized image file") from None
    mime_type = Image.MIME.get(image_format or "", "image/jpeg")
    return ImageInput(filename=filename, mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))


@router.post("/parse-images", response_model=ParseRecipeResult)
async def parse_images(
    images: List[UploadFile] = File(...),
    allergies: Optional[List[str]] = Form(None),
    config: ExtractionConfig = Depends(get_extraction_config),
) -> ParseRecipeResult:
    settings = get_settings()
    if not images:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No images provided")
    if len(images) > settings.recipe_image_max_files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Too many images (max {settings.recipe_image_max_files})",
        )

    files: List[ImageInput] = []
    for idx, upload in enumerate(images):
        raw = await upload.read()
        if settings.recipe_image_max_bytes and len(raw) > settings.recipe_image_max_bytes:
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Image too large")
        files.append(_to_image_input(upload.filename or f"image-{idx}", raw))

    return await parse_recipe_from_images(files, config, allergies=allergies)
