"""
Mock Backend Client

Serves vouchers, profiles, orders and option choices from in-memory
fixtures. Used in development mode and in tests.
"""

import asyncio
import logging
from typing import Any, Optional

from food_cart.schemas import OptionChoice, OrderDetail, UserProfile, VoucherInfo
from food_cart.services.backend.base import BaseBackendClient

logger = logging.getLogger(__name__)


class MockBackendClient(BaseBackendClient):
    """
    Mock implementation of the backend client.

    Example:
        >>> backend = MockBackendClient()
        >>> voucher = await backend.get_voucher("WELCOME10")
        >>> voucher.discount
        10000.0
    """

    DEFAULT_VOUCHERS = {
        "WELCOME10": {"_id": "v_welcome10", "code": "WELCOME10", "discount": 10000, "isActive": True},
        "EXPIRED": {"_id": "v_expired", "code": "EXPIRED", "discount": 20000, "isActive": False},
    }

    def __init__(
        self,
        vouchers: Optional[dict[str, dict[str, Any]]] = None,
        profiles: Optional[dict[str, dict[str, Any]]] = None,
        orders: Optional[dict[str, dict[str, Any]]] = None,
        choices: Optional[dict[str, list[dict[str, Any]]]] = None,
    ):
        self.vouchers = dict(self.DEFAULT_VOUCHERS if vouchers is None else vouchers)
        self.profiles = dict(profiles or {})
        self.orders = dict(orders or {})
        self.choices = dict(choices or {})

        logger.info("MockBackendClient initialized")

    @property
    def provider_name(self) -> str:
        return "mock"

    def add_order(self, order: dict[str, Any]) -> None:
        """Register an order document (e.g. one created by the mock channel)."""
        self.orders[order["_id"]] = order

    async def get_voucher(self, code: str) -> Optional[VoucherInfo]:
        await asyncio.sleep(0)
        data = self.vouchers.get(code)
        logger.debug(f"Mock: voucher {code} {'found' if data else 'not found'}")
        return VoucherInfo.model_validate(data) if data else None

    async def get_profile(self, token: str) -> Optional[UserProfile]:
        await asyncio.sleep(0)
        data = self.profiles.get(token)
        return UserProfile.model_validate(data) if data else None

    async def get_order(self, order_id: str) -> Optional[OrderDetail]:
        await asyncio.sleep(0)
        data = self.orders.get(order_id)
        return OrderDetail.model_validate(data) if data else None

    async def get_choices(self, option_id: str) -> list[OptionChoice]:
        await asyncio.sleep(0)
        return [OptionChoice.model_validate(c) for c in self.choices.get(option_id, [])]

    async def health_check(self) -> bool:
        return True
