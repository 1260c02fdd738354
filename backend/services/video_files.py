import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse

import requests

from backend.models.history import GeneratedVideoRecord

logger = logging.getLogger(__name__)

LOCAL_VIDEO_PREFIX = "/videos/"
_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


class VideoDownloadError(RuntimeError):
    pass


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat() before 3.11 rejects the trailing "Z".
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def generate_video_filename(video: GeneratedVideoRecord) -> str:
    try:
        generated = _parse_timestamp(video.metadata.generated_at)
    except ValueError:
        return f"video-{video.id}.mp4"
    style = video.metadata.style.lower()
    return f"video-{style}-{generated:%Y-%m-%d}-{generated:%H-%M-%S}.mp4"


def is_valid_video_url(url: str) -> bool:
    if url.startswith(LOCAL_VIDEO_PREFIX):
        return True
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme == "blob":
        return True
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[index]}"


def format_date(value: str) -> str:
    try:
        return _parse_timestamp(value).strftime("%Y-%m-%d %H:%M")
    except (TypeError, ValueError):
        return "Unknown date"


def get_video_size(url: str, timeout: float = 30) -> int:
    try:
        response = requests.head(url, allow_redirects=True, timeout=timeout)
    except requests.RequestException:
        logger.warning("Failed to get video size for %s", url)
        return 0
    content_length = response.headers.get("content-length")
    return int(content_length) if content_length and content_length.isdigit() else 0


def local_video_path(video_url: str, output_dir: str) -> Optional[Path]:
    """Resolve a ``/videos/<name>`` URL to a file inside ``output_dir``."""
    if not video_url.startswith(LOCAL_VIDEO_PREFIX):
        return None
    name = video_url[len(LOCAL_VIDEO_PREFIX):]
    if not name or "/" in name or name in {".", ".."}:
        return None
    return Path(output_dir) / name


def save_local_video(content: bytes, video_id: str, output_dir: str) -> str:
    filename = f"{video_id}.mp4"
    local_path = Path(output_dir) / filename
    local_path.parent.mkdir(parents=True, exist_ok=True)
    local_path.write_bytes(content)
    logger.info("Video %s stored at %s", video_id, local_path)
    return f"{LOCAL_VIDEO_PREFIX}{filename}"


def fetch_video(url: str, timeout: float = 180) -> Tuple[bytes, str]:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.exception("Download failed for %s", url)
        raise VideoDownloadError("Unable to download video") from exc
    return response.content, response.headers.get("content-type") or "video/mp4"
