"""
Backend Client Abstract Base Class

Interface to the remote catalog/order/account REST service consumed by
checkout (vouchers, profile), the order detail flow (bills) and option
display (choices).
"""

from abc import ABC, abstractmethod
from typing import Optional

from food_cart.schemas import OptionChoice, OrderDetail, UserProfile, VoucherInfo


class BaseBackendClient(ABC):
    """
    Abstract base class for backend clients.

    Lookups that find nothing return None; transport or server failures
    raise ``BackendError``.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g. "mock", "http")."""
        pass

    @abstractmethod
    async def get_voucher(self, code: str) -> Optional[VoucherInfo]:
        """Look up a voucher by its code."""
        pass

    @abstractmethod
    async def get_profile(self, token: str) -> Optional[UserProfile]:
        """Fetch the profile of the account owning ``token``."""
        pass

    @abstractmethod
    async def get_order(self, order_id: str) -> Optional[OrderDetail]:
        """Fetch a placed order (bill) by id."""
        pass

    @abstractmethod
    async def get_choices(self, option_id: str) -> list[OptionChoice]:
        """List the choices of a product option."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Verify connectivity to the backend."""
        pass

    async def close(self) -> None:
        return None
