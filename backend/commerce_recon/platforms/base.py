"""Shared plumbing for platform adapters."""

import logging
from datetime import datetime
from typing import Any

import httpx

from commerce_recon.config import Settings
from commerce_recon.reconciliation_engine.errors import SyncFailure
from commerce_recon.reconciliation_engine.normalizer import SourceKind


class PlatformAdapter:
    """Fetches raw records for one platform over a time window.

    Each instance owns its own credentials and HTTP client settings; nothing
    is shared between instances. Subclasses implement _fetch().
    """

    source: SourceKind
    base_url: str = ""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self.transport = transport
        self.logger = logging.getLogger(f"recon.platforms.{self.source.value}")

    def is_configured(self) -> bool:
        return True

    def client(self, **kwargs: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.settings.http_timeout_seconds,
            transport=self.transport,
            **kwargs,
        )

    async def fetch_records(self, start: datetime, end: datetime) -> list[dict[str, Any]]:
        """Fetch every raw record created inside [start, end].

        Raises SyncFailure for missing credentials, HTTP errors, or malformed responses.
        """
        if not self.is_configured():
            raise SyncFailure(self.source.value, "credentials are not configured")

        self.logger.info("Fetching %s records from %s to %s", self.source.value, start.isoformat(), end.isoformat())
        try:
            records = await self._fetch(start, end)
        except httpx.HTTPStatusError as e:
            raise SyncFailure(
                self.source.value, f"HTTP {e.response.status_code} from {e.request.url}"
            ) from e
        except httpx.HTTPError as e:
            raise SyncFailure(self.source.value, f"{type(e).__name__}: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise SyncFailure(self.source.value, f"malformed response: {e}") from e

        self.logger.info("Fetched %d %s records", len(records), self.source.value)
        return records

    async def _fetch(self, start: datetime, end: datetime) -> list[dict[str, Any]]:
        raise NotImplementedError
