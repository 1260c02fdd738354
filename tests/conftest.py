import json
import os
import tempfile

import pytest

# Settings are read when backend.config is imported, so the environment has to
# be in place before any test module imports the application.
_RUNTIME_DIR = tempfile.mkdtemp(prefix="videogen-tests-")
os.environ.setdefault("UPSTREAM_API_KEY", "test-key-not-real")
os.environ.setdefault("UPSTREAM_CUSTOMER_ID", "tests@example.com")
os.environ["OUTPUT_LOCAL_DIR"] = os.path.join(_RUNTIME_DIR, "videos")
os.environ["HISTORY_FILE"] = os.path.join(_RUNTIME_DIR, "history.json")
os.environ["PROMPT_CHAR_LIMIT"] = "1000"

from backend.models.history import GeneratedVideoRecord, VideoMetadata  # noqa: E402
from backend.services.history_store import HistoryStore  # noqa: E402
from backend.services.storage import InMemoryStorage  # noqa: E402


class FakeResponse:
    def __init__(self, status_code=200, content=b"", content_type="application/json", chunks=None):
        self.status_code = status_code
        self.content = content
        self.headers = {"content-type": content_type} if content_type is not None else {}
        self.chunks = chunks if chunks is not None else [content]
        self.closed = False

    def iter_content(self, chunk_size=1):
        for chunk in self.chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    def close(self):
        self.closed = True

    @classmethod
    def json_body(cls, data, status_code=200):
        return cls(status_code=status_code, content=json.dumps(data).encode("utf-8"))


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def post(self, url, json=None, timeout=None, stream=False):
        self.calls.append({"url": url, "json": json, "timeout": timeout, "stream": stream})
        if self.exc is not None:
            raise self.exc
        return self.response


def make_record(index, prompt=None, style="cinematic", aspect_ratio="16:9"):
    prompt = prompt or f"Video number {index}"
    return GeneratedVideoRecord(
        id=str(index),
        prompt=prompt,
        video_url=f"https://cdn.example/video-{index}.mp4",
        metadata=VideoMetadata(
            prompt=prompt,
            style=style,
            aspect_ratio=aspect_ratio,
            generated_at="2026-10-19T08:30:15Z",
        ),
    )


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def history(storage):
    return HistoryStore(storage)
