"""
Order Channel Abstract Base Class

The realtime publish/subscribe channel orders are created over: the client
emits ``createBill`` and the server answers with ``billCreated``
(``{"status": "success" | "failure", "data"?, "message"?}``).
"""

from abc import ABC, abstractmethod

from food_cart.schemas import OrderSubmission, OrderSubmissionResult


class BaseOrderChannel(ABC):
    """Abstract base class for order channels."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g. "mock", "socketio")."""
        pass

    @abstractmethod
    async def submit_order(self, submission: OrderSubmission) -> OrderSubmissionResult:
        """
        Send an order and wait for the server's answer.

        Returns:
            OrderSubmissionResult: The server's verdict

        Raises:
            ChannelError: The channel is unavailable or no answer arrived in time
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass

    async def close(self) -> None:
        return None
