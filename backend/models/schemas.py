from typing import List, Optional

from pydantic import Field

from backend.models.history import CamelModel, GeneratedVideoRecord, VideoMetadata


class VideoRequest(CamelModel):
    prompt: Optional[str] = Field(default=None, description="Text prompt describing the video")
    style: Optional[str] = None
    aspect_ratio: Optional[str] = None
    motion_intensity: Optional[str] = None


class VideoGenerationResponse(CamelModel):
    success: bool = True
    video_url: str
    message: str
    metadata: VideoMetadata


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    message: Optional[str] = None


class HealthResponse(CamelModel):
    status: str
    service: str
    model: str
    max_prompt_length: int
    supported_formats: List[str]
    supported_resolutions: List[str]
    duration: str


class VideoListResponse(CamelModel):
    videos: List[GeneratedVideoRecord]
    total_count: int


class DeleteResponse(CamelModel):
    success: bool = True
    deleted: Optional[bool] = None
