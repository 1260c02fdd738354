from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

VIDEO_DURATION = "10 seconds"
VIDEO_QUALITY = "4K Ultra HD"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoMetadata(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    # Records saved before the prompt was part of the metadata do not carry it.
    prompt: Optional[str] = None
    style: str
    aspect_ratio: str
    duration: str = VIDEO_DURATION
    quality: str = VIDEO_QUALITY
    generated_at: str = Field(default_factory=utc_now_iso)


class GeneratedVideoRecord(CamelModel):
    id: str
    prompt: str
    video_url: str
    metadata: VideoMetadata


class VideoHistory(CamelModel):
    videos: List[GeneratedVideoRecord] = Field(default_factory=list)
    total_count: int = 0
    last_updated: str = Field(default_factory=utc_now_iso)


class VideoStats(CamelModel):
    total_videos: int
    style_breakdown: Dict[str, int]
    aspect_ratio_breakdown: Dict[str, int]
    recent_activity: List[GeneratedVideoRecord]
