"""Vision-model PII detection using OpenAI (or Azure OpenAI)."""

import json
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import openai

from .base import BaseDetector
from .prompt_builder import BasePromptBuilder, DefaultPromptBuilder
from ..errors import (
    DetectionConfigError,
    DetectionRateLimitError,
    DetectionServiceError,
    MalformedResponseError,
)
from ..models.entities import NormalizedBox, PageRaster, PiiCategory, RawDetection

logger = logging.getLogger(__name__)

_LIST_KEYS = ("detections", "results", "items")


@dataclass(frozen=True)
class DetectorConfig:
    """Credentials and model selection, resolved once by the caller."""

    provider: str = "openai"
    api_key: str = ""
    model: str = "gpt-4o"
    # Azure OpenAI only
    azure_endpoint: str = ""
    api_version: str = "2024-02-15-preview"
    temperature: Optional[float] = None
    timeout: float = 120.0

    @property
    def is_configured(self) -> bool:
        if not self.api_key:
            return False
        if self.provider == "azure":
            return bool(self.azure_endpoint)
        return True


class VisionDetector(BaseDetector):
    """Detect PII bounding boxes on page images with a vision LLM.

    Clients are created on first use from ``config``, so a missing key shows
    up as a DetectionConfigError when a run starts, not at construction.
    No call is retried automatically.
    """

    def __init__(
        self,
        config: DetectorConfig,
        prompt_builder: Optional[BasePromptBuilder] = None,
        client=None,
        async_client=None,
    ):
        self.config = config
        self.prompt_builder = prompt_builder or DefaultPromptBuilder()
        self.client = client
        self.async_client = async_client

    def detect(
        self,
        page: PageRaster,
        categories: Iterable[PiiCategory],
        keywords: Sequence[str] = (),
    ) -> List[RawDetection]:
        """Detect PII on one page (sync)."""
        client = self._get_client()
        ctx = self.prompt_builder.build(page, list(categories), keywords)
        try:
            response = client.chat.completions.create(**self._request_kwargs(ctx.messages))
        except openai.OpenAIError as e:
            raise self._translate_error(e) from e
        return self._parse_response(response)

    async def detect_async(
        self,
        page: PageRaster,
        categories: Iterable[PiiCategory],
        keywords: Sequence[str] = (),
    ) -> List[RawDetection]:
        """Detect PII on one page (async)."""
        client = self._get_async_client()
        ctx = self.prompt_builder.build(page, list(categories), keywords)
        try:
            response = await client.chat.completions.create(
                **self._request_kwargs(ctx.messages)
            )
        except openai.OpenAIError as e:
            raise self._translate_error(e) from e
        return self._parse_response(response)

    def _request_kwargs(self, messages: List[dict]) -> dict:
        kwargs = dict(
            model=self.config.model,
            messages=messages,
            response_format={"type": "json_object"},
        )
        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature
        return kwargs

    def _require_credentials(self) -> None:
        if not self.config.api_key:
            raise DetectionConfigError("No API key configured for the detector")
        if self.config.provider == "azure" and not self.config.azure_endpoint:
            raise DetectionConfigError("No Azure OpenAI endpoint configured")

    def _get_client(self):
        if self.client is None:
            self._require_credentials()
            if self.config.provider == "azure":
                self.client = openai.AzureOpenAI(
                    azure_endpoint=self.config.azure_endpoint,
                    api_key=self.config.api_key,
                    api_version=self.config.api_version,
                    timeout=self.config.timeout,
                    max_retries=0,
                )
            else:
                self.client = openai.OpenAI(
                    api_key=self.config.api_key,
                    timeout=self.config.timeout,
                    max_retries=0,
                )
        return self.client

    def _get_async_client(self):
        if self.async_client is None:
            self._require_credentials()
            if self.config.provider == "azure":
                self.async_client = openai.AsyncAzureOpenAI(
                    azure_endpoint=self.config.azure_endpoint,
                    api_key=self.config.api_key,
                    api_version=self.config.api_version,
                    timeout=self.config.timeout,
                    max_retries=0,
                )
            else:
                self.async_client = openai.AsyncOpenAI(
                    api_key=self.config.api_key,
                    timeout=self.config.timeout,
                    max_retries=0,
                )
        return self.async_client

    @staticmethod
    def _translate_error(error: Exception) -> Exception:
        """Map an OpenAI SDK error onto the detection error taxonomy."""
        if isinstance(error, openai.RateLimitError):
            return DetectionRateLimitError(
                "The detection service is rate limiting requests. Try again later."
            )
        if isinstance(
            error,
            (openai.AuthenticationError, openai.PermissionDeniedError, openai.NotFoundError),
        ):
            return DetectionConfigError(f"Detector rejected the configuration: {error}")
        return DetectionServiceError(f"Detection request failed: {error}")

    def _parse_response(self, response) -> List[RawDetection]:
        """Decode the model's JSON answer into RawDetection objects."""
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise MalformedResponseError(f"Response has no message content: {e}") from e
        if not content or not isinstance(content, str):
            raise MalformedResponseError("Response content is empty")

        try:
            data = json.loads(self._strip_fences(content))
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"Response is not JSON: {e}") from e

        detections = []
        for item in self._extract_items(data):
            detection = self._decode_item(item)
            if detection is not None:
                detections.append(detection)
        return detections

    @staticmethod
    def _strip_fences(content: str) -> str:
        text = content.strip()
        if text.startswith("```"):
            text = text.split("\n", 1)[1] if "\n" in text else ""
            if text.rstrip().endswith("```"):
                text = text.rstrip()[:-3]
        return text

    @staticmethod
    def _extract_items(data) -> list:
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            for key in _LIST_KEYS:
                if isinstance(data.get(key), list):
                    return data[key]
        raise MalformedResponseError(
            f"Expected a detection list, got {type(data).__name__}"
        )

    @staticmethod
    def _decode_item(item) -> Optional[RawDetection]:
        """Coerce one detection. Bad fields degrade instead of raising."""
        if not isinstance(item, dict):
            logger.warning("Skipping non-object detection: %r", item)
            return None

        text = item.get("text")
        if text is None:
            text = ""
        elif not isinstance(text, str):
            text = str(text)

        return RawDetection(
            text=text,
            category=PiiCategory.parse(item.get("category")),
            box=NormalizedBox.from_list(item.get("box_2d")),
        )
