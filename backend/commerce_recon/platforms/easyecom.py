"""Easyecom V2 adapter — JWT auth, nextUrl pagination, one re-auth retry on 401."""

from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from commerce_recon.config import Settings
from commerce_recon.platforms.base import PlatformAdapter
from commerce_recon.reconciliation_engine.errors import SyncFailure
from commerce_recon.reconciliation_engine.normalizer import SourceKind

TOKEN_ENDPOINT = "/access/token"
ORDERS_ENDPOINT = "/orders/V2/getAllOrders"
DEFAULT_TOKEN_TTL = timedelta(days=90)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class EasyecomAdapter(PlatformAdapter):
    source = SourceKind.EASYECOM

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(settings, transport)
        self.base_url = settings.easyecom_api_url
        self._token: str | None = None
        self._token_expiry: datetime | None = None

    def is_configured(self) -> bool:
        s = self.settings
        return bool(s.easyecom_api_key and s.easyecom_email and s.easyecom_password)

    async def _fetch(self, start: datetime, end: datetime) -> list[dict[str, Any]]:
        orders: list[dict[str, Any]] = []
        params: dict[str, Any] | None = {
            "start_date": start.astimezone(timezone.utc).strftime(DATE_FORMAT),
            "end_date": end.astimezone(timezone.utc).strftime(DATE_FORMAT),
        }
        url = ORDERS_ENDPOINT

        async with self.client() as client:
            while url:
                body = await self._get(client, url, params)
                data = body.get("data") or {}
                if isinstance(data, list):
                    orders.extend(data)
                    break
                orders.extend(data.get("orders") or [])
                # nextUrl already carries the cursor and filters
                url = data.get("nextUrl")
                params = None

        return orders

    async def _get(
        self, client: httpx.AsyncClient, url: str, params: dict[str, Any] | None
    ) -> dict[str, Any]:
        response = await client.get(url, params=params, headers=await self._auth_headers(client))
        if response.status_code == httpx.codes.UNAUTHORIZED:
            self.logger.warning("Easyecom returned 401, refreshing token and retrying once")
            self._token = None
            self._token_expiry = None
            response = await client.get(url, params=params, headers=await self._auth_headers(client))
        response.raise_for_status()
        return response.json()

    async def _auth_headers(self, client: httpx.AsyncClient) -> dict[str, str]:
        token = await self._valid_token(client)
        return {
            "Authorization": f"Bearer {token}",
            "x-api-key": self.settings.easyecom_api_key,
        }

    async def _valid_token(self, client: httpx.AsyncClient) -> str:
        now = datetime.now(timezone.utc)
        if self._token and self._token_expiry and now < self._token_expiry:
            return self._token

        response = await client.post(
            TOKEN_ENDPOINT,
            json={
                "email": self.settings.easyecom_email,
                "password": self.settings.easyecom_password,
                "location_key": self.settings.easyecom_location_key,
            },
            headers={"x-api-key": self.settings.easyecom_api_key},
        )
        response.raise_for_status()

        token_data = (response.json().get("data") or {}).get("token") or {}
        token = token_data.get("jwt_token")
        if not token:
            raise SyncFailure(self.source.value, "authentication response did not include a token")

        expires_in = token_data.get("expires_in")
        ttl = timedelta(seconds=expires_in) if expires_in else DEFAULT_TOKEN_TTL
        self._token = token
        self._token_expiry = now + ttl
        self.logger.info("Authenticated with Easyecom, token valid until %s", self._token_expiry.isoformat())
        return token
