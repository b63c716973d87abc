"""
HTTP Backend Client

Production client for the catalog/order/account REST service, built on
``httpx.AsyncClient``.

Endpoints used:
    GET /v1/voucher/getcode?code=...        → {"data": voucher}
    GET /v1/account/profile (Bearer token)  → profile
    GET /v1/bill/get/{id}                   → {"data": order}
    GET /v1/choice/get-choice?optionalId=   → {"choices": [...]}
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from food_cart.core.config import get_settings
from food_cart.exceptions import BackendError
from food_cart.schemas import OptionChoice, OrderDetail, UserProfile, VoucherInfo
from food_cart.services.backend.base import BaseBackendClient

logger = logging.getLogger(__name__)


class HttpBackendClient(BaseBackendClient):
    """
    REST implementation of the backend client.

    Args:
        base_url: Service root, e.g. "http://api.example.com"
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = base_url or settings.backend_base_url
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.backend_timeout,
            transport=transport,
        )
        logger.info(f"HttpBackendClient initialized ({self.base_url})")

    @property
    def provider_name(self) -> str:
        return "http"

    async def _get(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Optional[Any]:
        """GET ``path`` and return decoded JSON, or None on 404."""
        try:
            response = await self._client.get(path, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Backend request failed: GET {path} - {e}")
            raise BackendError(f"Backend unreachable: {e}") from e

        if response.status_code == 404:
            return None
        if response.is_error:
            logger.error(f"Backend error: GET {path} - HTTP {response.status_code}")
            raise BackendError(
                f"Backend returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise BackendError("Backend returned invalid JSON") from e

    @staticmethod
    def _unwrap(body: Any) -> Any:
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    async def get_voucher(self, code: str) -> Optional[VoucherInfo]:
        body = await self._get("/v1/voucher/getcode", params={"code": code})
        data = self._unwrap(body) if body else None
        if not data:
            return None
        try:
            return VoucherInfo.model_validate(data)
        except ValidationError as e:
            raise BackendError(f"Unexpected voucher document: {e}") from e

    async def get_profile(self, token: str) -> Optional[UserProfile]:
        body = await self._get(
            "/v1/account/profile",
            headers={"Authorization": f"Bearer {token}"},
        )
        data = self._unwrap(body) if body else None
        if not data:
            return None
        try:
            return UserProfile.model_validate(data)
        except ValidationError as e:
            raise BackendError(f"Unexpected profile document: {e}") from e

    async def get_order(self, order_id: str) -> Optional[OrderDetail]:
        body = await self._get(f"/v1/bill/get/{order_id}")
        data = self._unwrap(body) if body else None
        if not data:
            return None
        try:
            return OrderDetail.model_validate(data)
        except ValidationError as e:
            raise BackendError(f"Unexpected order document: {e}") from e

    async def get_choices(self, option_id: str) -> list[OptionChoice]:
        body = await self._get("/v1/choice/get-choice", params={"optionalId": option_id})
        if not body:
            return []
        if not isinstance(body, dict) or not isinstance(body.get("choices", []), list):
            raise BackendError("Unexpected choices document")
        try:
            return [OptionChoice.model_validate(c) for c in body.get("choices", [])]
        except ValidationError as e:
            raise BackendError(f"Unexpected choices document: {e}") from e

    async def health_check(self) -> bool:
        try:
            await self._client.get("/")
        except httpx.HTTPError as e:
            logger.error(f"Backend health check failed: {e}")
            return False
        return True

    async def close(self) -> None:
        await self._client.aclose()
