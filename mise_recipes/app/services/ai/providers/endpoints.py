import re

OPENAI_BASE_URL = "https://api.openai.com/v1"
PERPLEXITY_BASE_URL = "https://api.perplexity.ai"
API_VERSION_SUFFIX = "/v1"


def strip_trailing_slashes(endpoint: str) -> str:
    return re.sub(r"/+$", "", endpoint.strip())


def normalize_compatible_endpoint(endpoint: str) -> str:
    """``http://host:1234/`` -> ``http://host:1234/v1``; already-normalized input is unchanged."""
    normalized = strip_trailing_slashes(endpoint)
    if not normalized.endswith(API_VERSION_SUFFIX):
        normalized = f"{normalized}{API_VERSION_SUFFIX}"
    return normalized


def strip_api_version(endpoint: str) -> str:
    """Base URL without the version suffix, for building ``/v1/models`` ourselves."""
    base = strip_trailing_slashes(endpoint)
    if base.endswith(API_VERSION_SUFFIX):
        base = base[: -len(API_VERSION_SUFFIX)]
    return base
