import logging
from typing import Optional

import requests

from backend.config import settings

logger = logging.getLogger(__name__)

_session: Optional[requests.Session] = None


def _create_session() -> requests.Session:
    session = requests.Session()
    session.headers.update(
        {
            "Authorization": f"Bearer {settings.upstream_api_key}",
            "customerId": settings.upstream_customer_id,
            "Content-Type": "application/json",
        }
    )
    logger.info("Created upstream HTTP session for %s", settings.upstream_api_url)
    return session


def get_upstream_session() -> requests.Session:
    global _session
    if _session is None:
        _session = _create_session()
    return _session


def build_chat_payload(content: str, model: Optional[str] = None) -> dict:
    return {
        "model": model or settings.upstream_model,
        "messages": [{"role": "user", "content": content}],
    }
