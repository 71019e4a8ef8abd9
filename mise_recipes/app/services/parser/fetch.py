"""Default page fetcher: ``async (url) -> html | None``."""

import ipaddress
import logging
import re
from typing import Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
FETCH_TIMEOUT = httpx.Timeout(15.0, read=15.0, connect=5.0)
_HTML_TAG_RE = re.compile(r"<[a-z]+[^>]*>", re.I)


def is_private_host(host: str) -> bool:
    """Check if a host is private/localhost."""
    hostname = host.split(":")[0]
    try:
        ip = ipaddress.ip_address(hostname)
        return ip.is_private or ip.is_loopback
    except ValueError:
        return hostname.lower() in {"localhost"}


def _charset(content_type: str) -> Optional[str]:
    if "charset=" not in content_type.lower():
        return None
    try:
        return content_type.lower().split("charset=")[1].split(";")[0].strip().strip("\"'")
    except IndexError:
        return None


def decode_html(content: bytes, content_type: str) -> Optional[str]:
    """Decode the body and reject content that does not look like readable HTML."""
    encoding = _charset(content_type) or "utf-8"
    try:
        text = content.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        text = content.decode("utf-8", errors="replace")
        meta = re.search(r'<meta[^>]+charset=["\']?([^"\'>\s]+)', text, re.I)
        if meta and meta.group(1).lower() != "utf-8":
            try:
                text = content.decode(meta.group(1).lower())
            except (UnicodeDecodeError, LookupError):
                pass

    sample = text[:2000]
    if not sample:
        return None
    printable_ratio = sum(1 for c in sample if (32 <= ord(c) <= 126) or c.isspace()) / len(sample)
    control_ratio = sum(1 for c in sample if ord(c) < 32 and c not in "\n\r\t") / len(sample)
    if not _HTML_TAG_RE.search(sample) or printable_ratio <= 0.6 or control_ratio >= 0.1:
        logger.warning(
            "HTML validation failed: printable_ratio=%.2f, control_ratio=%.2f",
            printable_ratio,
            control_ratio,
        )
        return None
    return text


async def fetch_html(
    url: str, user_agent: str = DEFAULT_USER_AGENT, cookies: Optional[str] = None
) -> Optional[str]:
    """Fetch a page; any failure yields None so the caller can report "cannot fetch"."""
    parsed_url = urlparse(url)
    if parsed_url.scheme not in {"http", "https"} or not parsed_url.netloc:
        logger.warning("Refusing to fetch invalid URL %s", url)
        return None
    if is_private_host(parsed_url.hostname or ""):
        logger.warning("Refusing to fetch private or disallowed host %s", parsed_url.hostname)
        return None

    headers = {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Referer": "https://www.google.com/",
    }
    if cookies:
        headers["Cookie"] = cookies

    try:
        async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True, headers=headers) as client:
            response = await client.get(url)
            if response.status_code in {401, 403}:
                logger.info("Fetch of %s blocked (%s), retrying with relaxed Accept", url, response.status_code)
                response = await client.get(url, headers={"Accept": "*/*"})
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.warning("Failed to fetch %s (status=%s)", url, exc.response.status_code)
        return None
    except httpx.HTTPError as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        return None

    content_type = response.headers.get("content-type", "")
    if content_type and "html" not in content_type and "text/plain" not in content_type:
        logger.warning("Unsupported content type for %s: %s", url, content_type)
        return None
    return decode_html(response.content, content_type)
