"""LLM service for comic page analysis across vision-capable providers"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional
import base64
import httpx
import logging

from pydantic import ValidationError as PydanticValidationError

from ..config import Settings, settings
from ..errors import (
    AnalysisParseFailure,
    MissingCredentialsError,
    ParseFailure,
    ParseFailureKind,
    UnsupportedProviderError,
    UpstreamError,
)
from ..models.analysis import AnalysisOptions, AnalysisResult
from ..models.response import ConnectionTestResult
from .response_recovery import parse_llm_response

logger = logging.getLogger(__name__)


COMIC_ANALYSIS_PROMPT = """You are a comic translation assistant. Analyze this comic page and extract ALL text in proper reading order.

For each text element, provide:
1. Reading sequence number (1, 2, 3, etc.)
2. Text type (speech_bubble, thought_bubble, narration, sound_effect, sign_text)
3. Character name (for speech/thought bubbles, "Unknown" if unclear)
4. Original English text (exact transcription)
5. Chinese translation (natural and faithful to the surrounding context)
6. Brief explanations for difficult or ambiguous words and phrases

TRANSLATION GUIDELINES:
- Read the whole page of dialogue before translating any single bubble
- Keep each character's tone, relationships and speaking style
- Resolve ambiguous words using the visual and narrative context
- Choose vocabulary that suits the comic's genre and setting
- Make the Chinese read naturally and fluently

IMPORTANT: Return ONLY valid JSON, with no text before or after it. Escape every string properly.

Use exactly this structure:
{
  "page_number": 1,
  "reading_order": [
    {
      "sequence": 1,
      "type": "speech_bubble",
      "character": "Character Name",
      "original_text": "Original English text",
      "chinese_translation": "Chinese translation",
      "explanations": [
        {
          "phrase": "difficult phrase",
          "meaning": "Chinese meaning",
          "context": "contextual explanation"
        }
      ]
    }
  ]
}

Remember:
- Western comics read left-to-right, top-to-bottom
- Follow panel flow and speech bubble placement
- Note idioms, slang and cultural references

Be thorough: include small sound effects and background signs. If the page has no text, return an empty reading_order array."""

CONNECTION_TEST_PROMPT = "Hello! Please respond with a simple JSON object containing a 'status' field set to 'success'."


class Provider(str, Enum):
    """Supported LLM backends"""
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    @classmethod
    def parse(cls, tag: Optional[str]) -> "Provider":
        """
        Map a request tag onto a provider

        Raises:
            UnsupportedProviderError: for any tag outside the enumeration
        """
        try:
            return cls((tag or "").strip().lower())
        except ValueError:
            raise UnsupportedProviderError(str(tag)) from None


def _upstream_message(response: httpx.Response) -> str:
    """Best-effort extraction of the backend's own error message"""
    try:
        data = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if data.get("message"):
            return str(data["message"])
    return response.text[:500]


class ProviderAdapter(ABC):
    """One backend: endpoint, auth scheme, request envelope and reply shape"""

    provider: Provider
    path: str

    def __init__(
        self,
        base_url: str,
        default_model: str,
        timeout: float = 120.0,
        max_tokens: int = 8000,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{self.path}"

    @abstractmethod
    def build_headers(self, api_key: str) -> Dict[str, str]:
        """Auth and content headers"""

    @abstractmethod
    def vision_payload(
        self, prompt: str, image_b64: str, mime_type: str, model: str, temperature: float
    ) -> Dict[str, Any]:
        """Request body carrying the prompt plus the page image"""

    @abstractmethod
    def text_payload(self, prompt: str, model: str, max_tokens: int) -> Dict[str, Any]:
        """Request body carrying a text-only prompt"""

    @abstractmethod
    def extract_text(self, data: Dict[str, Any]) -> str:
        """Reduce the backend reply to its raw completion text"""

    async def send_vision_prompt(
        self,
        prompt: str,
        image_b64: str,
        mime_type: str,
        model: str,
        api_key: str,
        temperature: float
    ) -> str:
        data = await self._post(self.vision_payload(prompt, image_b64, mime_type, model, temperature), api_key)
        return self._reply_text(data)

    async def send_text_prompt(self, prompt: str, model: str, api_key: str, max_tokens: int = 50) -> str:
        data = await self._post(self.text_payload(prompt, model, max_tokens), api_key)
        return self._reply_text(data)

    def _reply_text(self, data: Dict[str, Any]) -> str:
        try:
            return self.extract_text(data) or ""
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise UpstreamError(
                f"{self.provider.value} returned an unexpected response shape",
                provider=self.provider.value
            ) from e

    async def _post(self, payload: Dict[str, Any], api_key: str) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    self.endpoint,
                    headers=self.build_headers(api_key),
                    json=payload
                )
        except httpx.HTTPError as e:
            logger.error(f"{self.provider.value} request failed: {e}")
            raise UpstreamError(
                f"{self.provider.value} request failed: {e}",
                provider=self.provider.value
            ) from e

        if response.is_error:
            message = _upstream_message(response)
            logger.error(f"{self.provider.value} API error {response.status_code}: {message}")
            raise UpstreamError(
                message,
                upstream_status=response.status_code,
                provider=self.provider.value
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"{self.provider.value} returned a non-JSON reply",
                upstream_status=response.status_code,
                provider=self.provider.value
            ) from e


class OpenAICompatibleAdapter(ProviderAdapter):
    """Chat-completions envelope shared by OpenAI and OpenRouter"""

    path = "/chat/completions"
    send_max_tokens = True

    def build_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json"
        }

    def vision_payload(self, prompt, image_b64, mime_type, model, temperature):
        payload = {
            "model": model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}
                        }
                    ]
                }
            ],
            "temperature": temperature,
            "response_format": {"type": "json_object"}
        }
        if self.send_max_tokens:
            payload["max_tokens"] = self.max_tokens
        return payload

    def text_payload(self, prompt, model, max_tokens):
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens
        }

    def extract_text(self, data):
        return data["choices"][0]["message"]["content"]


class OpenRouterAdapter(OpenAICompatibleAdapter):
    provider = Provider.OPENROUTER


class OpenAIAdapter(OpenAICompatibleAdapter):
    provider = Provider.OPENAI
    # Newer OpenAI models reject max_tokens on vision requests
    send_max_tokens = False


class AnthropicAdapter(ProviderAdapter):
    """Anthropic messages API"""

    provider = Provider.ANTHROPIC
    path = "/v1/messages"

    def __init__(self, *args, api_version: str = "2023-06-01", **kwargs):
        super().__init__(*args, **kwargs)
        self.api_version = api_version

    def build_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "x-api-key": api_key,
            "Content-Type": "application/json",
            "anthropic-version": self.api_version
        }

    def vision_payload(self, prompt, image_b64, mime_type, model, temperature):
        return {
            "model": model,
            "max_tokens": self.max_tokens,
            "temperature": temperature,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": mime_type,
                                "data": image_b64
                            }
                        }
                    ]
                }
            ]
        }

    def text_payload(self, prompt, model, max_tokens):
        return {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}]
        }

    def extract_text(self, data):
        return "".join(
            block.get("text", "") for block in data["content"] if block.get("type") == "text"
        )


class AnalysisClient:
    """Analyze comic pages with a vision LLM and recover structured results"""

    def __init__(self, config: Settings = settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize analysis client

        Args:
            config: Settings holding credentials, endpoints and defaults
            transport: Optional httpx transport (used to stub the network in tests)
        """
        self.config = config
        common = {
            "timeout": config.request_timeout,
            "max_tokens": config.max_output_tokens,
            "transport": transport,
        }
        self.adapters: Dict[Provider, ProviderAdapter] = {
            Provider.OPENROUTER: OpenRouterAdapter(config.openrouter_base_url, config.default_model, **common),
            Provider.OPENAI: OpenAIAdapter(config.openai_base_url, config.openai_model, **common),
            Provider.ANTHROPIC: AnthropicAdapter(
                config.anthropic_base_url,
                config.anthropic_model,
                api_version=config.anthropic_version,
                **common
            ),
        }
        self.credentials: Dict[Provider, Optional[str]] = {
            Provider.OPENROUTER: config.openrouter_api_key,
            Provider.OPENAI: config.openai_api_key,
            Provider.ANTHROPIC: config.anthropic_api_key,
        }
        logger.info(f"AnalysisClient initialized (default provider: {config.default_provider})")

    def _adapter(self, provider: Provider) -> ProviderAdapter:
        adapter = self.adapters.get(provider)
        if adapter is None:
            raise UnsupportedProviderError(provider.value)
        return adapter

    def _api_key(self, provider: Provider, api_key: Optional[str]) -> str:
        key = api_key or self.credentials.get(provider)
        if not key:
            raise MissingCredentialsError(provider.value)
        return key

    async def analyze(self, image_bytes: bytes, options: AnalysisOptions) -> AnalysisResult:
        """
        Extract and translate the text of one comic page

        Args:
            image_bytes: Raw page image
            options: Provider, model, credentials and temperature

        Returns:
            Validated AnalysisResult

        Raises:
            UnsupportedProviderError: unknown provider tag
            MissingCredentialsError: no key supplied or configured
            UpstreamError: network failure or error reply from the backend
            AnalysisParseFailure: reply could not be recovered into a result
        """
        provider = Provider.parse(options.provider or self.config.default_provider)
        adapter = self._adapter(provider)
        api_key = self._api_key(provider, options.api_key)
        model = options.model or adapter.default_model
        temperature = options.temperature if options.temperature is not None else self.config.default_temperature

        logger.info(f"Analyzing page with {provider.value} ({model}, {len(image_bytes)} bytes)")
        image_b64 = base64.b64encode(image_bytes).decode("ascii")
        raw = await adapter.send_vision_prompt(
            COMIC_ANALYSIS_PROMPT,
            image_b64,
            options.mime_type,
            model,
            api_key,
            temperature
        )

        try:
            document = parse_llm_response(raw)
            result = AnalysisResult.model_validate(document)
        except ParseFailure as failure:
            self._log_unparsable(raw, failure.message)
            raise AnalysisParseFailure(failure, raw) from failure
        except PydanticValidationError as e:
            self._log_unparsable(raw, str(e))
            failure = ParseFailure(ParseFailureKind.INVALID_SHAPE, str(e), cause=e)
            raise AnalysisParseFailure(failure, raw) from e

        logger.info(f"Extracted {len(result.reading_order)} text elements")
        return result

    def _log_unparsable(self, raw: str, reason: str) -> None:
        logger.error(f"Failed to parse LLM response: {reason}")
        logger.error(f"Raw response (first 2000 chars): {raw[:2000]}")
        logger.error(f"Raw response length: {len(raw)}")

    async def test_connection(self, provider: str, model: str, api_key: Optional[str] = None) -> ConnectionTestResult:
        """
        Check that a provider is reachable with the given credentials

        Upstream failures are reported in the result rather than raised.

        Raises:
            UnsupportedProviderError: unknown provider tag
            MissingCredentialsError: no key supplied or configured
        """
        provider_enum = Provider.parse(provider)
        adapter = self._adapter(provider_enum)
        key = self._api_key(provider_enum, api_key)

        try:
            await adapter.send_text_prompt(CONNECTION_TEST_PROMPT, model, key)
        except UpstreamError as e:
            logger.warning(f"API test failed for {provider_enum.value}: {e.message}")
            return ConnectionTestResult(
                success=False,
                provider=provider_enum.value,
                model=model,
                status_code=e.upstream_status,
                message=f"API test failed: {e.message}"
            )

        return ConnectionTestResult(
            success=True,
            provider=provider_enum.value,
            model=model,
            message=f"Successfully connected to {provider_enum.value} with model {model}"
        )
