import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import FileResponse

from backend.api.dependencies import get_history_store
from backend.config import settings
from backend.models.history import GeneratedVideoRecord, VideoStats
from backend.models.schemas import DeleteResponse, VideoListResponse
from backend.services.history_store import HistoryStore
from backend.services.video_files import (
    VideoDownloadError,
    fetch_video,
    generate_video_filename,
    is_valid_video_url,
    local_video_path,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/videos")


def _get_record_or_404(history: HistoryStore, video_id: str) -> GeneratedVideoRecord:
    record = history.get(video_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Video {video_id} not found")
    return record


@router.get("", response_model=VideoListResponse)
def list_videos(
    q: Optional[str] = None,
    style: Optional[str] = None,
    history: HistoryStore = Depends(get_history_store),
):
    videos = history.list(query=q, style=style)
    return VideoListResponse(videos=videos, total_count=len(videos))


@router.get("/stats", response_model=VideoStats)
def video_stats(history: HistoryStore = Depends(get_history_store)):
    return history.stats()


@router.get("/{video_id}", response_model=GeneratedVideoRecord)
def get_video(video_id: str, history: HistoryStore = Depends(get_history_store)):
    return _get_record_or_404(history, video_id)


@router.get("/{video_id}/download")
def download_video(video_id: str, history: HistoryStore = Depends(get_history_store)):
    record = _get_record_or_404(history, video_id)
    filename = generate_video_filename(record)

    local_path = local_video_path(record.video_url, settings.output_local_dir)
    if local_path is not None:
        if not local_path.is_file():
            raise HTTPException(status_code=404, detail="Video file is no longer available")
        return FileResponse(local_path, media_type="video/mp4", filename=filename)

    if not is_valid_video_url(record.video_url) or not record.video_url.startswith(("http://", "https://")):
        raise HTTPException(status_code=404, detail="Video file is no longer available")

    try:
        content, content_type = fetch_video(record.video_url)
    except VideoDownloadError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return Response(
        content=content,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/{video_id}", response_model=DeleteResponse)
def delete_video(video_id: str, history: HistoryStore = Depends(get_history_store)):
    deleted = history.delete_by_id(video_id)
    if not deleted:
        logger.info("Video %s was not in history", video_id)
    return DeleteResponse(deleted=deleted)


@router.delete("", response_model=DeleteResponse, response_model_exclude_none=True)
def clear_videos(history: HistoryStore = Depends(get_history_store)):
    history.clear()
    return DeleteResponse()
