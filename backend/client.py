import logging
from pathlib import Path
from typing import Optional

import requests

logger = logging.getLogger(__name__)


def save_binary(content: bytes, out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "wb") as f:
        f.write(content)


class VideoAPIClient:
    """Thin HTTP client for a running video generation server."""

    def __init__(self, base_url: str = "http://127.0.0.1:8000", timeout: float = 960):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def generate_video(self, request: dict, output_path: Optional[Path] = None) -> dict:
        try:
            response = requests.post(f"{self.base_url}/api/generate-video", json=request, timeout=self.timeout)
            if not response.ok:
                try:
                    error_data = response.json()
                except ValueError:
                    error_data = {}
                raise RuntimeError(error_data.get("message") or f"HTTP {response.status_code}: {response.reason}")

            content_type = response.headers.get("content-type", "")
            if "video/" in content_type:
                out_path = output_path or Path("generated-video.mp4")
                save_binary(response.content, out_path)
                return {"success": True, "videoPath": str(out_path), "message": "Video generated successfully!"}
            return response.json()
        except (requests.RequestException, RuntimeError, ValueError) as exc:
            logger.error("Video API error: %s", exc)
            return {
                "success": False,
                "error": str(exc) or "An unexpected error occurred",
                "message": "Failed to generate video. Please try again.",
            }

    def check_health(self) -> dict:
        response = requests.get(f"{self.base_url}/api/generate-video", timeout=30)
        if not response.ok:
            raise RuntimeError(f"Health check failed: {response.status_code}")
        return response.json()
