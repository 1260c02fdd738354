from functools import lru_cache

from backend.config import settings
from backend.services.generation import VideoGenerationGateway
from backend.services.history_store import HistoryStore
from backend.services.storage import JsonFileStorage
from backend.services.upstream_client import get_upstream_session


@lru_cache(maxsize=1)
def get_history_store() -> HistoryStore:
    return HistoryStore(JsonFileStorage(settings.history_file), capacity=settings.history_max_items)


@lru_cache(maxsize=1)
def get_generation_gateway() -> VideoGenerationGateway:
    return VideoGenerationGateway(
        session=get_upstream_session(),
        api_url=settings.upstream_api_url,
        model=settings.upstream_model,
        timeout=settings.generation_timeout_seconds,
        prompt_char_limit=settings.prompt_char_limit,
    )
