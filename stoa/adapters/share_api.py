"""Share service client — fetches server-side shared habits and tasks.

Server share links (calendo://share/<type>/<share_id>) only carry an id;
the item itself lives in the share service. Every failure is raised as
ShareServiceError so the import flow can show a message instead.
"""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

_TIMEOUT_SECONDS = 5


class ShareServiceError(Exception):
    """Raised when the share service can't be reached or answers badly."""


class ShareApiClient:
    """Thin async client for the share service REST API."""

    def __init__(self, base_url: str, timeout: float = _TIMEOUT_SECONDS) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def get_shared_item(self, item_type: str, share_id: str) -> dict:
        """GET /shares/<type>/<share_id> → {"type": ..., "itemData": {...}}."""
        url = f"{self._base_url}/shares/{item_type}/{share_id}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(url)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise ShareServiceError(f"Failed to fetch shared item: {exc}") from exc
        except ValueError as exc:
            raise ShareServiceError("Share service returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise ShareServiceError("Share service returned an unexpected payload")
        return data

    async def record_import(self, item_type: str, share_id: str) -> None:
        """POST /shares/<type>/<share_id>/imports — import analytics."""
        url = f"{self._base_url}/shares/{item_type}/{share_id}/imports"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ShareServiceError(f"Failed to record import: {exc}") from exc
        logger.debug("Import recorded at %s", url)
