"""Shopify Admin REST adapter — orders with Link-header cursor pagination."""

from datetime import datetime
from typing import Any

import httpx

from commerce_recon.config import Settings
from commerce_recon.platforms.base import PlatformAdapter
from commerce_recon.reconciliation_engine.normalizer import SourceKind

PAGE_LIMIT = 250  # Shopify maximum


class ShopifyAdapter(PlatformAdapter):
    source = SourceKind.SHOPIFY

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(settings, transport)
        self.base_url = (
            f"https://{settings.shopify_shop_url}/admin/api/{settings.shopify_api_version}"
        )

    def is_configured(self) -> bool:
        return bool(self.settings.shopify_shop_url and self.settings.shopify_access_token)

    async def _fetch(self, start: datetime, end: datetime) -> list[dict[str, Any]]:
        orders: list[dict[str, Any]] = []
        params: dict[str, Any] = {
            "limit": PAGE_LIMIT,
            "status": "any",
            "created_at_min": start.isoformat(),
            "created_at_max": end.isoformat(),
        }
        headers = {"X-Shopify-Access-Token": self.settings.shopify_access_token}

        async with self.client(headers=headers) as client:
            page = 0
            while True:
                page += 1
                response = await client.get("/orders.json", params=params)
                response.raise_for_status()

                batch = response.json().get("orders") or []
                orders.extend(batch)
                self.logger.debug("Shopify page %d: %d orders (total %d)", page, len(batch), len(orders))

                page_info = next_page_info(response)
                if not page_info or len(batch) < PAGE_LIMIT:
                    break
                # Shopify rejects filters alongside page_info
                params = {"limit": PAGE_LIMIT, "page_info": page_info}

        return orders


def next_page_info(response: httpx.Response) -> str | None:
    """Extract the page_info cursor from a Link header's rel="next" entry."""
    next_link = response.links.get("next")
    if not next_link or not next_link.get("url"):
        return None
    return httpx.URL(next_link["url"]).params.get("page_info")
