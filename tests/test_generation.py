import json

import pytest
import requests
from urllib3.exceptions import ReadTimeoutError

from backend.models.schemas import VideoRequest
from backend.services.generation import (
    ErrorKind,
    GenerationFailure,
    VideoBytesResult,
    VideoGenerationGateway,
    VideoUrlResult,
    decode_upstream_response,
)
from backend.services.prompt_enhancer import enhance_prompt
from conftest import FakeResponse, FakeSession

CHAT_REPLY = {"choices": [{"message": {"role": "assistant", "content": "https://x/video.mp4"}}]}


def make_gateway(session):
    return VideoGenerationGateway(
        session=session,
        api_url="https://upstream.example/chat/completions",
        model="replicate/google/veo-3",
        timeout=900,
        prompt_char_limit=1000,
    )


def test_decode_json_with_video_url():
    request = VideoRequest(prompt="An eagle", style="documentary")
    result = decode_upstream_response(200, "application/json; charset=utf-8", json.dumps(CHAT_REPLY).encode(), request)

    assert isinstance(result, VideoUrlResult)
    assert result.video_url == "https://x/video.mp4"
    assert result.metadata.style == "documentary"
    assert result.metadata.aspect_ratio == "16:9"
    assert result.metadata.quality == "4K Ultra HD"
    assert result.metadata.duration == "10 seconds"
    assert result.metadata.prompt == "An eagle"


@pytest.mark.parametrize(
    "body",
    [
        b'{"id": "abc"}',
        b'{"choices": []}',
        b'{"choices": [{"message": {}}]}',
        b"not json at all",
    ],
)
def test_decode_json_without_video_url_is_format_error(body):
    result = decode_upstream_response(200, "application/json", body, VideoRequest(prompt="x"))
    assert isinstance(result, GenerationFailure)
    assert result.kind is ErrorKind.UPSTREAM_FORMAT
    assert result.status_code == 500


def test_decode_video_bytes():
    result = decode_upstream_response(200, "video/mp4", b"\x00\x01mp4", VideoRequest(prompt="x", aspectRatio="1:1"))
    assert isinstance(result, VideoBytesResult)
    assert result.content == b"\x00\x01mp4"
    assert result.content_length == 5
    assert result.metadata.aspect_ratio == "1:1"
    assert result.metadata.style == "cinematic"


def test_decode_unexpected_content_type_hides_body(caplog):
    result = decode_upstream_response(200, "text/html", b"<html>oops</html>", VideoRequest(prompt="x"))
    assert isinstance(result, GenerationFailure)
    assert result.kind is ErrorKind.UPSTREAM_FORMAT
    assert "oops" not in (result.message or "") + result.error
    assert "oops" in caplog.text


def test_decode_non_2xx_is_upstream_error():
    result = decode_upstream_response(500, "application/json", b'{"detail": "boom"}', VideoRequest(prompt="x"))
    assert isinstance(result, GenerationFailure)
    assert result.kind is ErrorKind.UPSTREAM
    assert result.upstream_status == 500
    assert "boom" not in (result.message or "") + result.error


@pytest.mark.parametrize("prompt", [None, "", "    ", "a" * 1001, "  " + "b" * 1001 + "  "])
def test_invalid_prompt_never_reaches_network(prompt):
    session = FakeSession(FakeResponse.json_body(CHAT_REPLY))
    result = make_gateway(session).generate(VideoRequest(prompt=prompt))

    assert isinstance(result, GenerationFailure)
    assert result.kind is ErrorKind.VALIDATION
    assert result.status_code == 400
    assert session.calls == []


def test_prompt_at_limit_is_accepted():
    session = FakeSession(FakeResponse.json_body(CHAT_REPLY))
    result = make_gateway(session).generate(VideoRequest(prompt="a" * 1000))
    assert isinstance(result, VideoUrlResult)
    assert len(session.calls) == 1


def test_valid_request_sends_enhanced_prompt_once():
    session = FakeSession(FakeResponse.json_body(CHAT_REPLY))
    request = VideoRequest(prompt="An eagle", style="cinematic", aspectRatio="9:16", motionIntensity="low")

    result = make_gateway(session).generate(request)

    assert isinstance(result, VideoUrlResult)
    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["url"] == "https://upstream.example/chat/completions"
    assert call["timeout"] == 900
    assert call["json"]["model"] == "replicate/google/veo-3"
    assert call["json"]["messages"] == [
        {"role": "user", "content": enhance_prompt("An eagle", "cinematic", "9:16", "low")}
    ]


def test_upstream_500():
    session = FakeSession(FakeResponse(status_code=500, content=b"upstream exploded", content_type="text/plain"))
    result = make_gateway(session).generate(VideoRequest(prompt="An eagle"))
    assert isinstance(result, GenerationFailure)
    assert result.kind is ErrorKind.UPSTREAM
    assert result.upstream_status == 500
    assert result.message == "Unable to generate video at this time. Please try again."


def test_timeout_maps_to_408():
    session = FakeSession(exc=requests.ReadTimeout("read timed out"))
    result = make_gateway(session).generate(VideoRequest(prompt="An eagle"))
    assert isinstance(result, GenerationFailure)
    assert result.kind is ErrorKind.TIMEOUT
    assert result.status_code == 408
    assert result.error == "Request timeout"
    assert "simpler prompt" in result.message


def test_unexpected_exception_is_internal_error():
    session = FakeSession(exc=requests.ConnectionError("connection refused"))
    result = make_gateway(session).generate(VideoRequest(prompt="An eagle"))
    assert isinstance(result, GenerationFailure)
    assert result.kind is ErrorKind.INTERNAL
    assert "refused" not in result.message


def test_upstream_session_carries_credentials():
    from backend.config import settings
    from backend.services.upstream_client import build_chat_payload, get_upstream_session

    session = get_upstream_session()
    assert session is get_upstream_session()
    assert session.headers["Authorization"] == f"Bearer {settings.upstream_api_key}"
    assert session.headers["customerId"] == settings.upstream_customer_id
    assert build_chat_payload("hello", model="m") == {"model": "m", "messages": [{"role": "user", "content": "hello"}]}


def test_request_streams_body_and_closes_response():
    response = FakeResponse(content=b"", content_type="video/mp4", chunks=[b"part-1", b"part-2"])
    session = FakeSession(response)

    result = make_gateway(session).generate(VideoRequest(prompt="An eagle"))

    assert isinstance(result, VideoBytesResult)
    assert result.content == b"part-1part-2"
    assert session.calls[0]["stream"] is True
    assert response.closed


def test_slow_body_past_deadline_is_timeout():
    ticks = iter([0.0, 100.0, 950.0, 1000.0])
    response = FakeResponse(content_type="video/mp4", chunks=[b"a", b"b", b"c"])
    gateway = VideoGenerationGateway(
        session=FakeSession(response),
        api_url="https://upstream.example/chat/completions",
        model="replicate/google/veo-3",
        timeout=900,
        clock=lambda: next(ticks),
    )

    result = gateway.generate(VideoRequest(prompt="An eagle"))

    assert isinstance(result, GenerationFailure)
    assert result.kind is ErrorKind.TIMEOUT
    assert result.status_code == 408
    assert response.closed


def test_read_timeout_while_streaming_is_timeout():
    stalled = requests.ConnectionError(ReadTimeoutError(None, None, "Read timed out."))
    response = FakeResponse(content_type="video/mp4", chunks=[b"a", stalled])

    result = make_gateway(FakeSession(response)).generate(VideoRequest(prompt="An eagle"))

    assert isinstance(result, GenerationFailure)
    assert result.kind is ErrorKind.TIMEOUT


def test_metadata_echoes_prompt_as_submitted():
    session = FakeSession(FakeResponse.json_body(CHAT_REPLY))
    result = make_gateway(session).generate(VideoRequest(prompt="  An eagle  "))

    assert isinstance(result, VideoUrlResult)
    assert result.metadata.prompt == "  An eagle  "
    assert session.calls[0]["json"]["messages"][0]["content"].startswith("An eagle.")
