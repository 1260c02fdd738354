import logging
import time

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from backend.api.dependencies import get_generation_gateway, get_history_store
from backend.config import settings
from backend.models.history import GeneratedVideoRecord
from backend.models.schemas import ErrorResponse, HealthResponse, VideoGenerationResponse, VideoRequest
from backend.services.generation import GenerationFailure, VideoBytesResult, VideoGenerationGateway
from backend.services.history_store import HistoryStore
from backend.services.video_files import save_local_video

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _new_video_id() -> str:
    return str(time.time_ns())


def _failure_response(failure: GenerationFailure) -> JSONResponse:
    body = ErrorResponse(error=failure.error, message=failure.message)
    return JSONResponse(
        status_code=failure.status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@router.post(
    "/generate-video",
    response_model=VideoGenerationResponse,
    responses={
        200: {"content": {"video/mp4": {}}},
        400: {"model": ErrorResponse},
        408: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def generate_video(
    payload: VideoRequest,
    gateway: VideoGenerationGateway = Depends(get_generation_gateway),
    history: HistoryStore = Depends(get_history_store),
):
    result = gateway.generate(payload)
    if isinstance(result, GenerationFailure):
        return _failure_response(result)

    video_id = _new_video_id()
    if isinstance(result, VideoBytesResult):
        try:
            video_url = save_local_video(result.content, video_id, settings.output_local_dir)
        except OSError:
            logger.exception("Failed to store video %s locally; it will not appear in history", video_id)
        else:
            history.append(
                GeneratedVideoRecord(
                    id=video_id, prompt=result.metadata.prompt, video_url=video_url, metadata=result.metadata
                )
            )
        return Response(
            content=result.content,
            media_type=result.content_type,
            headers={
                "Content-Disposition": 'attachment; filename="generated-video.mp4"',
                "Content-Length": str(result.content_length),
                "Cache-Control": "public, max-age=31536000",
            },
        )

    history.append(
        GeneratedVideoRecord(id=video_id, prompt=result.metadata.prompt, video_url=result.video_url, metadata=result.metadata)
    )
    logger.info("Video %s generated at %s", video_id, result.video_url)
    return VideoGenerationResponse(
        video_url=result.video_url,
        message="Video generated successfully!",
        metadata=result.metadata,
    )


@router.get("/generate-video", response_model=HealthResponse)
def health_check():
    return HealthResponse(
        status="healthy",
        service="Video Generation API",
        model="Veo-3 Ultra 4K",
        max_prompt_length=settings.prompt_char_limit,
        supported_formats=["MP4"],
        supported_resolutions=["4K Ultra HD"],
        duration="10 seconds",
    )
