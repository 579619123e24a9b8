"""
Client for the shoe details (enrichment) service.

POST {base_url}/shoes with {"shoes": [{"name", "price"}], "userId"} and
expect either {"details": "..."} or {"error": "..."} back.
"""
import asyncio
from typing import Iterable, Optional

import requests

from .errors import EnrichmentError
from .log import get_logger
from .models import Shoe

logger = get_logger(__name__)

GENERIC_ERROR = "Failed to fetch shoe details."


class EnrichmentClient:
    def __init__(self, base_url: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.strip().rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.base_url}/shoes"

    def fetch_details_sync(self, shoes: Iterable[Shoe], user_id: Optional[str]) -> str:
        """Blocking call. Returns the details text, possibly empty."""
        body = {
            "shoes": [{"name": s.name, "price": s.price} for s in shoes],
            "userId": user_id,
        }
        try:
            resp = self.session.post(self.url, json=body, timeout=self.timeout)
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Enrichment request to %s failed: %s", self.url, e)
            raise EnrichmentError(GENERIC_ERROR) from e

        if not isinstance(data, dict):
            logger.warning("Enrichment response is not an object: %r", data)
            raise EnrichmentError(GENERIC_ERROR)

        if data.get("error"):
            raise EnrichmentError(str(data["error"]))

        if "details" not in data:
            logger.warning("Enrichment response has neither details nor error (HTTP %s)", resp.status_code)
            raise EnrichmentError(GENERIC_ERROR)

        details = data["details"]
        if details is None:
            return ""
        if not isinstance(details, str):
            raise EnrichmentError(GENERIC_ERROR)
        return details

    async def fetch_details(self, shoes: Iterable[Shoe], user_id: Optional[str]) -> str:
        return await asyncio.to_thread(self.fetch_details_sync, list(shoes), user_id)
