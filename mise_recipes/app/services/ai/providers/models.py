"""Model handles: callables bound to one provider + model pair.

Handles are cheap to build and perform no I/O until ``generate_object`` is
awaited. Each call opens its own ``httpx.AsyncClient``.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel

from mise_recipes.app.core.errors import InvalidResponseError, ProviderResponseError
from mise_recipes.app.schemas.extraction import GenerationSettings, ProviderKind
from mise_recipes.app.schemas.recipe import ImageInput
from mise_recipes.app.schemas.results import TokenUsage

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 10.0


def strip_invalid_control_chars(s: str) -> str:
    """Remove ASCII control chars that frequently break json.loads (except \\n, \\r, \\t)."""
    return re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F]", "", s)


def parse_json_object(raw: str) -> Dict[str, Any]:
    """Parse model content into a JSON object, tolerating fences and surrounding prose."""
    cleaned = strip_invalid_control_chars(raw).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        if cleaned.startswith("```"):
            cleaned = re.sub(r"^```[a-zA-Z0-9_-]*\s*", "", cleaned, count=1)
            cleaned = re.sub(r"\s*```$", "", cleaned, count=1).strip()
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end <= start:
            raise InvalidResponseError("Model response was not valid JSON")
        try:
            data = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as exc:
            raise InvalidResponseError(f"Model response was not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidResponseError("Model response is not a JSON object")
    return data


def build_timeout(seconds: Optional[float]) -> httpx.Timeout:
    # None disables the read/write/pool limits; connecting is always bounded.
    return httpx.Timeout(seconds, connect=CONNECT_TIMEOUT_SECONDS)


class GenerationResult(BaseModel):
    output: Optional[Dict[str, Any]] = None
    usage: TokenUsage = TokenUsage()


class ModelHandle(ABC):
    """A provider/model pair able to produce one schema-constrained JSON object."""

    def __init__(
        self,
        provider: ProviderKind,
        model: str,
        base_url: str,
        api_key: Optional[str] = None,
        supports_structured_output: bool = True,
    ):
        self.provider = provider
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.supports_structured_output = supports_structured_output

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider.value!r}, model={self.model!r})"

    @property
    @abstractmethod
    def url(self) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def build_payload(
        self,
        prompt: str,
        system: Optional[str],
        images: Sequence[ImageInput],
        schema: Dict[str, Any],
        schema_name: str,
        settings: GenerationSettings,
    ) -> Dict[str, Any]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def extract_content(self, data: Dict[str, Any]) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def extract_usage(self, data: Dict[str, Any]) -> TokenUsage:  # pragma: no cover - interface
        raise NotImplementedError

    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def generate_object(
        self,
        prompt: str,
        schema: Dict[str, Any],
        schema_name: str = "response",
        system: Optional[str] = None,
        images: Optional[Sequence[ImageInput]] = None,
        settings: Optional[GenerationSettings] = None,
        timeout: Optional[float] = None,
    ) -> GenerationResult:
        payload = self.build_payload(
            prompt,
            system,
            list(images or []),
            schema,
            schema_name,
            settings or GenerationSettings(),
        )
        logger.debug(
            "POST %s model=%s prompt_chars=%d images=%d",
            self.url,
            self.model,
            len(prompt),
            len(images or []),
        )
        async with httpx.AsyncClient(timeout=build_timeout(timeout)) as client:
            response = await client.post(self.url, json=payload, headers=self.headers())
        response.raise_for_status()
        data = response.json()

        if isinstance(data, dict) and data.get("error"):
            error_info = data["error"]
            if isinstance(error_info, dict):
                error_type = error_info.get("type") or error_info.get("code") or "unknown_error"
                error_message = error_info.get("message") or "Unknown error"
            else:
                error_type, error_message = "unknown_error", str(error_info)
            logger.error(
                "Provider %s returned error: type=%s, message=%s",
                self.provider.value,
                error_type,
                str(error_message)[:500],
            )
            raise ProviderResponseError(f"{error_type}: {error_message}", error_type=str(error_type))
        if not isinstance(data, dict):
            raise InvalidResponseError("Provider response is not a JSON object")

        usage = self.extract_usage(data)
        content = self.extract_content(data)
        if not content or not content.strip():
            return GenerationResult(output=None, usage=usage)
        logger.debug("Model raw content (truncated): %s", content[:1000])
        return GenerationResult(output=parse_json_object(content), usage=usage)


class ChatCompletionsModel(ModelHandle):
    """OpenAI chat-completions dialect (OpenAI, Perplexity, LM Studio, generic endpoints)."""

    @property
    def url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def build_payload(self, prompt, system, images, schema, schema_name, settings):
        if images:
            content: Any = [{"type": "text", "text": prompt}]
            for image in images:
                content.append(
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{image.mime_type};base64,{image.data}"},
                    }
                )
        else:
            content = prompt

        messages: List[Dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": content})

        payload: Dict[str, Any] = {"model": self.model, "messages": messages, "stream": False}
        if self.supports_structured_output:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": schema, "strict": True},
            }
        else:
            payload["response_format"] = {"type": "json_object"}
        if settings.temperature is not None:
            payload["temperature"] = settings.temperature
        if settings.max_output_tokens is not None:
            payload["max_tokens"] = settings.max_output_tokens
        return payload

    def extract_content(self, data):
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return None
        message = choices[0].get("message") or {}
        content = message.get("content")
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") for part in content if isinstance(part, dict)
            )
        return content if isinstance(content, str) else None

    def extract_usage(self, data):
        usage = data.get("usage") or {}
        input_tokens = int(usage.get("prompt_tokens") or 0)
        output_tokens = int(usage.get("completion_tokens") or 0)
        return TokenUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=int(usage.get("total_tokens") or input_tokens + output_tokens),
        )


class OllamaChatModel(ModelHandle):
    """Ollama native ``/api/chat`` dialect; limits output with ``num_predict``."""

    @property
    def url(self) -> str:
        return f"{self.base_url}/api/chat"

    def build_payload(self, prompt, system, images, schema, schema_name, settings):
        user_message: Dict[str, Any] = {"role": "user", "content": prompt}
        if images:
            user_message["images"] = [image.data for image in images]
        messages: List[Dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append(user_message)

        options: Dict[str, Any] = {}
        if settings.temperature is not None:
            options["temperature"] = settings.temperature
        if settings.max_output_tokens is not None:
            options["num_predict"] = settings.max_output_tokens

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "format": schema if self.supports_structured_output else "json",
        }
        if options:
            payload["options"] = options
        return payload

    def extract_content(self, data):
        message = data.get("message") or {}
        content = message.get("content")
        return content if isinstance(content, str) else None

    def extract_usage(self, data):
        input_tokens = int(data.get("prompt_eval_count") or 0)
        output_tokens = int(data.get("eval_count") or 0)
        return TokenUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
        )
