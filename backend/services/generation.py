import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

import requests
from urllib3.exceptions import ReadTimeoutError

from backend.models.history import VideoMetadata
from backend.models.schemas import VideoRequest
from backend.services.prompt_enhancer import DEFAULT_ASPECT_RATIO, DEFAULT_STYLE, enhance_prompt
from backend.services.upstream_client import build_chat_payload

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Unable to generate video at this time. Please try again."
TIMEOUT_MESSAGE = "Video generation is taking longer than expected. Please try again with a simpler prompt."


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    UPSTREAM = "upstream_error"
    UPSTREAM_FORMAT = "upstream_format_error"
    TIMEOUT = "timeout_error"
    INTERNAL = "internal_error"


HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UPSTREAM: 500,
    ErrorKind.UPSTREAM_FORMAT: 500,
    ErrorKind.TIMEOUT: 408,
    ErrorKind.INTERNAL: 500,
}


class PromptValidationError(ValueError):
    pass


class GenerationDeadlineExceeded(requests.Timeout):
    """Raised when the whole upstream exchange outlives the generation timeout."""


@dataclass(frozen=True)
class VideoUrlResult:
    video_url: str
    metadata: VideoMetadata


@dataclass(frozen=True)
class VideoBytesResult:
    content: bytes
    content_type: str
    metadata: VideoMetadata

    @property
    def content_length(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class GenerationFailure:
    kind: ErrorKind
    error: str
    message: Optional[str] = None
    upstream_status: Optional[int] = None

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]


GenerationResult = Union[VideoUrlResult, VideoBytesResult, GenerationFailure]


def validate_prompt(prompt: Optional[str], limit: int) -> str:
    cleaned = (prompt or "").strip()
    if not cleaned:
        raise PromptValidationError("Prompt is required")
    if len(cleaned) > limit:
        raise PromptValidationError(f"Prompt must be less than {limit} characters")
    return cleaned


def build_metadata(request: VideoRequest) -> VideoMetadata:
    return VideoMetadata(
        prompt=request.prompt or "",
        style=request.style or DEFAULT_STYLE,
        aspect_ratio=request.aspect_ratio or DEFAULT_ASPECT_RATIO,
    )


def _extract_video_url(payload) -> Optional[str]:
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if isinstance(content, str) and content.strip():
        return content.strip()
    return None


def decode_upstream_response(
    status_code: int, content_type: str, body: bytes, request: VideoRequest
) -> GenerationResult:
    """Turn one upstream HTTP response into a generation result.

    Non-2xx statuses are upstream errors. Otherwise the content type decides:
    JSON must carry the video URL at ``choices[0].message.content`` and
    ``video/*`` bodies are returned as raw bytes. Anything else is a format error.
    """
    text = body.decode("utf-8", errors="replace")
    if not 200 <= status_code < 300:
        logger.error("Upstream request failed: %s %s", status_code, text)
        return GenerationFailure(
            kind=ErrorKind.UPSTREAM,
            error="Video generation failed",
            message=GENERIC_FAILURE_MESSAGE,
            upstream_status=status_code,
        )

    content_type = (content_type or "").lower()
    if "application/json" in content_type:
        try:
            payload = json.loads(text)
        except ValueError:
            logger.error("Upstream returned malformed JSON: %s", text)
            payload = None

        video_url = _extract_video_url(payload)
        if video_url is None:
            logger.error("Upstream JSON is missing choices[0].message.content: %s", text)
            return GenerationFailure(
                kind=ErrorKind.UPSTREAM_FORMAT,
                error="Invalid response format from video generation service",
                message="Please try again with a different prompt.",
            )
        return VideoUrlResult(video_url=video_url, metadata=build_metadata(request))

    if content_type.startswith("video/"):
        return VideoBytesResult(content=body, content_type="video/mp4", metadata=build_metadata(request))

    logger.error("Unexpected upstream content type %r: %s", content_type, text)
    return GenerationFailure(
        kind=ErrorKind.UPSTREAM_FORMAT,
        error="Unexpected response format from video generation service",
        message="Please try again.",
    )


class VideoGenerationGateway:
    """Sends one generation request upstream and normalizes the reply.

    Each call issues at most one HTTP request and never retries.
    """

    def __init__(
        self,
        session: requests.Session,
        api_url: str,
        model: str,
        timeout: float = 900,
        prompt_char_limit: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session = session
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.prompt_char_limit = prompt_char_limit
        self.clock = clock

    def generate(self, request: VideoRequest) -> GenerationResult:
        try:
            prompt = validate_prompt(request.prompt, self.prompt_char_limit)
        except PromptValidationError as exc:
            logger.warning("Rejected generation request: %s", exc)
            return GenerationFailure(kind=ErrorKind.VALIDATION, error=str(exc))

        enhanced = enhance_prompt(prompt, request.style, request.aspect_ratio, request.motion_intensity)
        logger.info("Generating video with prompt: %s", enhanced)

        deadline = self.clock() + self.timeout
        try:
            response = self.session.post(
                self.api_url,
                json=build_chat_payload(enhanced, self.model),
                timeout=self.timeout,
                stream=True,
            )
            try:
                body = self._read_body(response, deadline)
            finally:
                response.close()
            return decode_upstream_response(
                response.status_code,
                response.headers.get("content-type", ""),
                body,
                request,
            )
        except requests.Timeout:
            logger.exception("Video generation timed out after %s seconds", self.timeout)
            return GenerationFailure(kind=ErrorKind.TIMEOUT, error="Request timeout", message=TIMEOUT_MESSAGE)
        except Exception:
            logger.exception("Video generation error")
            return GenerationFailure(
                kind=ErrorKind.INTERNAL,
                error="Internal server error",
                message="An unexpected error occurred. Please try again.",
            )

    def _read_body(self, response: requests.Response, deadline: float) -> bytes:
        # The per-read socket timeout does not bound a body that keeps trickling in.
        chunks = []
        try:
            for chunk in response.iter_content(chunk_size=64 * 1024):
                if self.clock() > deadline:
                    raise GenerationDeadlineExceeded(f"Upstream response exceeded {self.timeout} seconds")
                chunks.append(chunk)
        except requests.ConnectionError as exc:
            # requests reports a read timeout while streaming as a connection error.
            if exc.args and isinstance(exc.args[0], ReadTimeoutError):
                raise GenerationDeadlineExceeded(str(exc)) from exc
            raise
        return b"".join(chunks)
