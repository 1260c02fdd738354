import json
import logging
import threading
from collections import Counter
from typing import List, Optional

from pydantic import ValidationError

from backend.models.history import GeneratedVideoRecord, VideoHistory, VideoStats, utc_now_iso
from backend.services.storage import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)

HISTORY_KEY = "videoHistory"
DEFAULT_CAPACITY = 20
RECENT_ACTIVITY_SIZE = 5


class HistoryStore:
    """Newest-first record of generated videos, capped at ``capacity`` entries."""

    def __init__(self, storage: KeyValueStorage, key: str = HISTORY_KEY, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.storage = storage
        self.key = key
        self.capacity = capacity
        # Serializes read-modify-write cycles from concurrent request threads.
        self._lock = threading.Lock()

    def load(self) -> VideoHistory:
        try:
            stored = self.storage.get(self.key)
        except StorageError:
            logger.exception("Failed to load video history")
            return VideoHistory()
        if not stored:
            return VideoHistory()

        try:
            parsed = json.loads(stored)
            # Older clients persisted a bare list of records.
            if isinstance(parsed, list):
                videos = self._parse_records(parsed)
                return VideoHistory(videos=videos, total_count=len(videos))
            if not isinstance(parsed, dict):
                raise ValueError("history is neither a list nor an object")
            items = parsed.get("videos") or []
            if not isinstance(items, list):
                raise ValueError("history videos is not a list")
            videos = self._parse_records(items)
            last_updated = parsed.get("lastUpdated")
            return VideoHistory(
                videos=videos,
                total_count=len(videos),
                last_updated=last_updated if isinstance(last_updated, str) else utc_now_iso(),
            )
        except (ValueError, ValidationError):
            logger.exception("Stored video history under %r is unreadable; starting empty", self.key)
            return VideoHistory()

    def list(self, query: Optional[str] = None, style: Optional[str] = None) -> List[GeneratedVideoRecord]:
        videos = self.load().videos
        if query:
            needle = query.lower()
            videos = [
                video
                for video in videos
                if needle in video.prompt.lower() or needle in video.metadata.style.lower()
            ]
        if style:
            videos = [video for video in videos if video.metadata.style == style]
        return videos

    def get(self, video_id: str) -> Optional[GeneratedVideoRecord]:
        for video in self.load().videos:
            if video.id == video_id:
                return video
        return None

    def append(self, record: GeneratedVideoRecord) -> None:
        with self._lock:
            videos = [record] + self.load().videos
            self._save(videos[: self.capacity])
        logger.info("Saved video %s to history", record.id)

    def delete_by_id(self, video_id: str) -> bool:
        with self._lock:
            videos = self.load().videos
            remaining = [video for video in videos if video.id != video_id]
            self._save(remaining)
        return len(remaining) != len(videos)

    def clear(self) -> None:
        with self._lock:
            self._save([])
        logger.info("Cleared video history")

    def stats(self) -> VideoStats:
        videos = self.load().videos
        return VideoStats(
            total_videos=len(videos),
            style_breakdown=dict(Counter(video.metadata.style for video in videos)),
            aspect_ratio_breakdown=dict(Counter(video.metadata.aspect_ratio for video in videos)),
            recent_activity=videos[:RECENT_ACTIVITY_SIZE],
        )

    def _parse_records(self, items: List[dict]) -> List[GeneratedVideoRecord]:
        records = []
        for position, item in enumerate(items):
            try:
                records.append(GeneratedVideoRecord.model_validate(item))
            except ValidationError:
                logger.warning("Skipping unreadable history entry at position %d under %r", position, self.key)
        return records

    def _save(self, videos: List[GeneratedVideoRecord]) -> None:
        history = VideoHistory(videos=videos, total_count=len(videos), last_updated=utc_now_iso())
        try:
            self.storage.set(self.key, history.model_dump_json(by_alias=True))
        except StorageError:
            logger.exception("Failed to persist video history")
