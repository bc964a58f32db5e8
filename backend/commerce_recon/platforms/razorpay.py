"""Razorpay payments adapter using skip/count offset pagination."""

from datetime import datetime
from typing import Any

import httpx

from commerce_recon.config import Settings
from commerce_recon.platforms.base import PlatformAdapter
from commerce_recon.reconciliation_engine.normalizer import SourceKind

PAGE_COUNT = 100  # Razorpay maximum


class RazorpayAdapter(PlatformAdapter):
    source = SourceKind.RAZORPAY

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(settings, transport)
        self.base_url = settings.razorpay_api_url

    def is_configured(self) -> bool:
        return bool(self.settings.razorpay_key_id and self.settings.razorpay_key_secret)

    async def _fetch(self, start: datetime, end: datetime) -> list[dict[str, Any]]:
        payments: list[dict[str, Any]] = []
        skip = 0
        auth = httpx.BasicAuth(self.settings.razorpay_key_id, self.settings.razorpay_key_secret)

        async with self.client(auth=auth) as client:
            while True:
                response = await client.get("/payments", params={
                    "from": int(start.timestamp()),
                    "to": int(end.timestamp()),
                    "count": PAGE_COUNT,
                    "skip": skip,
                })
                response.raise_for_status()

                items = response.json()["items"]
                payments.extend(items)
                if len(items) < PAGE_COUNT:
                    break
                skip += PAGE_COUNT

        return payments
