"""HTML preparation for the AI path: readable body text and candidate images."""

import json
import logging
import re
from typing import List

from bs4 import BeautifulSoup

from mise_recipes.app.services.parser.utils import extract_images

logger = logging.getLogger(__name__)

MAX_IMAGE_CANDIDATES = 10
_SKIP_IMAGE_RE = re.compile(r"(\.svg(\?|$)|sprite|logo|icon|avatar|pixel|spacer|gravatar)", re.I)


def clean_soup_for_content(soup: BeautifulSoup) -> None:
    """Remove obvious boilerplate nodes before extracting candidate content."""
    for noisy in soup.find_all(["header", "footer", "nav", "aside", "form"]):
        noisy.decompose()
    for tag in soup.find_all(["script", "style", "noscript", "link", "meta", "svg", "iframe"]):
        tag.decompose()


def extract_sanitized_body(html: str) -> str:
    soup = BeautifulSoup(html or "", "lxml")
    clean_soup_for_content(soup)
    root = soup.body or soup
    lines = [re.sub(r"\s+", " ", line).strip() for line in root.get_text("\n").splitlines()]
    text = "\n".join(line for line in lines if line)
    logger.debug("Sanitised page body: %d -> %d chars", len(html or ""), len(text))
    return text


def _jsonld_images(soup: BeautifulSoup) -> List[str]:
    images: List[str] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or script.get_text() or "")
        except json.JSONDecodeError:
            continue
        stack = [data]
        while stack:
            item = stack.pop(0)
            if isinstance(item, list):
                stack.extend(item)
            elif isinstance(item, dict):
                if isinstance(item.get("@graph"), list):
                    stack.extend(item["@graph"])
                if "image" in item:
                    images.extend(extract_images(item.get("image")))
    return images


def extract_image_candidates(html: str) -> List[str]:
    """Likely dish photos: og/twitter images, JSON-LD images, then ``<img>`` tags."""
    soup = BeautifulSoup(html or "", "lxml")
    candidates: List[str] = []

    for attrs in ({"property": "og:image"}, {"name": "twitter:image"}, {"property": "twitter:image"}):
        for meta in soup.find_all("meta", attrs=attrs):
            candidates.append(meta.get("content") or "")

    candidates.extend(_jsonld_images(soup))

    for img in soup.find_all("img"):
        candidates.append(img.get("data-src") or img.get("src") or "")

    result: List[str] = []
    for url in candidates:
        url = url.strip()
        if not url.startswith(("http://", "https://")) or _SKIP_IMAGE_RE.search(url):
            continue
        if url not in result:
            result.append(url)
        if len(result) >= MAX_IMAGE_CANDIDATES:
            break
    return result
