"""Error taxonomy shared by the services and the API layer"""
from enum import Enum
from typing import Any, Dict, Optional


class ComicTranslatorError(Exception):
    """Base class for every error the service reports to a caller"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Payload rendered by the API exception handler"""
        return {"error": self.message}


class ValidationError(ComicTranslatorError):
    """Bad or missing input"""

    status_code = 400


class UnsupportedFormatError(ValidationError):
    """Export format tag not recognised"""


class UnsupportedMediaTypeError(ValidationError):
    """Upload MIME type or image content outside the allow-list"""

    status_code = 415


class FileTooLargeError(ValidationError):
    """Upload exceeds the configured byte limit"""

    status_code = 413

    def __init__(self, size: int, limit: int):
        super().__init__(f"File too large: {size} bytes exceeds maximum of {limit} bytes")
        self.size = size
        self.limit = limit


class NotFoundError(ComicTranslatorError):
    """Session, page, stored content or cached result is absent"""

    status_code = 404

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.key:
            payload["key"] = self.key
        return payload


class UnsupportedProviderError(ComicTranslatorError):
    """Provider tag does not name a known LLM backend"""

    status_code = 400

    def __init__(self, provider: str):
        super().__init__(f"Unsupported provider: {provider}")
        self.provider = provider


class MissingCredentialsError(ComicTranslatorError):
    """No API key was supplied or configured for the provider"""

    status_code = 400

    def __init__(self, provider: str):
        super().__init__(f"{provider} API key not configured")
        self.provider = provider


class UpstreamError(ComicTranslatorError):
    """Network failure or non-success reply from the LLM backend"""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None, provider: Optional[str] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.provider = provider

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["upstream_status"] = self.upstream_status
        payload["provider"] = self.provider
        return payload


class ParseFailureKind(str, Enum):
    """Stage at which response recovery gave up"""
    NO_JSON_FOUND = "no_json_found"
    UNPARSABLE_JSON = "unparsable_json"
    INVALID_SHAPE = "invalid_shape"
    INVALID_ITEM = "invalid_item"


class ParseFailure(ComicTranslatorError):
    """Raw LLM text could not be recovered into an analysis document"""

    status_code = 502

    def __init__(
        self,
        kind: ParseFailureKind,
        detail: str,
        index: Optional[int] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail
        self.index = index
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["kind"] = self.kind.value
        if self.index is not None:
            payload["index"] = self.index
        return payload


class AnalysisParseFailure(ComicTranslatorError):
    """Recovery failure surfaced by the analysis client with the raw reply attached"""

    status_code = 502
    RAW_PREVIEW_CHARS = 2000

    def __init__(self, failure: ParseFailure, raw_response: str):
        super().__init__(f"Failed to parse LLM response ({failure.message})")
        self.failure = failure
        self.raw_response = raw_response

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update(self.failure.to_dict())
        payload["error"] = self.message
        payload["raw_response"] = self.raw_response[:self.RAW_PREVIEW_CHARS]
        payload["raw_response_length"] = len(self.raw_response)
        return payload
