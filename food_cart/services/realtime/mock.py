"""
Mock Order Channel

Answers order submissions locally without a realtime server.

Behavior:
    - Randomly fails based on failure_rate (simulates server-side rejections)
    - Generates bill ids (bill_mock_xxx)
    - Optionally registers created orders with a MockBackendClient so the
      order detail flow can fetch them
"""

import asyncio
import random
import uuid
import logging
from typing import Optional

from food_cart.schemas import OrderState, OrderSubmission, OrderSubmissionResult
from food_cart.services.backend.mock import MockBackendClient
from food_cart.services.realtime.base import BaseOrderChannel

logger = logging.getLogger(__name__)


class MockOrderChannel(BaseOrderChannel):
    """
    Mock implementation of the order channel.

    Attributes:
        failure_rate: Probability of a "failure" answer (0.0-1.0)
        submissions: Every submission received, in order
    """

    REJECTION_MESSAGES = [
        "Store is closed",
        "Product is out of stock",
        "Voucher already used",
    ]

    def __init__(
        self,
        failure_rate: float = 0.0,
        backend: Optional[MockBackendClient] = None,
    ):
        self.failure_rate = failure_rate
        self.backend = backend
        self.submissions: list[OrderSubmission] = []

        logger.info(f"MockOrderChannel initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    def _should_fail(self) -> bool:
        return self.failure_rate > 0 and random.random() < self.failure_rate

    async def submit_order(self, submission: OrderSubmission) -> OrderSubmissionResult:
        await asyncio.sleep(0)
        self.submissions.append(submission)

        if self._should_fail():
            message = random.choice(self.REJECTION_MESSAGES)
            logger.debug(f"Mock: order rejected - {message}")
            return OrderSubmissionResult(status="failure", message=message)

        order_id = f"bill_mock_{uuid.uuid4().hex[:24]}"
        order = {
            "_id": order_id,
            **submission.to_wire(),
            "state": int(OrderState.PROCESSING),
        }
        if self.backend is not None:
            self.backend.add_order(self._as_order_document(order, submission))

        logger.info(f"Mock: order created - {order_id} - {submission.total_price}")
        return OrderSubmissionResult(status="success", data=order)

    @staticmethod
    def _as_order_document(order: dict, submission: OrderSubmission) -> dict:
        """Shape the order like the backend's populated bill document."""
        return {
            "_id": order["_id"],
            "fullName": submission.full_name,
            "phone_shipment": submission.phone_shipment,
            "address_shipment": submission.address_shipment,
            "isPaid": submission.is_paid,
            "total_price": submission.total_price,
            "ship": submission.ship,
            "pointDiscount": submission.point_discount,
            "state": order["state"],
            "lineItem": [
                {
                    "quantity": line.quantity,
                    "subtotal": line.subtotal,
                    "product": {
                        "_id": line.product,
                        "price": line.subtotal / line.quantity,
                        "currentPrice": line.subtotal / line.quantity,
                    },
                    "options": [
                        {
                            "option": {"_id": option.option_id},
                            "choices": {
                                "_id": option.choice_id,
                                "additionalPrice": option.additional_price,
                            },
                        }
                        for option in line.options
                    ],
                }
                for line in submission.line_items
            ],
        }

    async def health_check(self) -> bool:
        return True
