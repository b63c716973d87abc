"""
Order Status and Reorder

Linear status stepper for placed orders and the "order again" action that
puts a past order's lines back into the cart.
"""

import logging

from food_cart.exceptions import OrderNotFoundError
from food_cart.schemas import (
    OrderDetail,
    OrderStage,
    OrderState,
    OrderStatusResponse,
)
from food_cart.services.backend.base import BaseBackendClient
from food_cart.services.cart.engine import CartEngine

logger = logging.getLogger(__name__)

ORDER_STAGES: tuple[tuple[OrderState, str], ...] = (
    (OrderState.PROCESSING, "Processing"),
    (OrderState.PREPARING, "Preparing your food"),
    (OrderState.DELIVERING, "Out for delivery"),
    (OrderState.COMPLETED, "Completed"),
)


def order_progress(state: int) -> list[OrderStage]:
    """Every stage, marked completed once the order has reached it."""
    return [
        OrderStage(state=int(stage), label=label, completed=state >= stage)
        for stage, label in ORDER_STAGES
    ]


async def fetch_order(backend: BaseBackendClient, order_id: str) -> OrderDetail:
    order = await backend.get_order(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return order


def order_status(order: OrderDetail) -> OrderStatusResponse:
    return OrderStatusResponse(
        order_id=order.id,
        state=order.state,
        is_paid=order.is_paid,
        total_price=order.total_price,
        stages=order_progress(order.state),
    )


def reorder(cart: CartEngine, order: OrderDetail) -> int:
    """
    Add every line of ``order`` back to the cart at its original quantity.

    Lines are priced at the product's current price when the backend
    supplies one. All lines go through the cart's validation before any is
    added, so a malformed line leaves the cart unchanged.

    Returns:
        Number of order lines added

    Raises:
        InvalidProductError: an order line does not describe a valid product
    """
    entries = []
    for line in order.line_items:
        product = line.product
        price = product.current_price if product.current_price is not None else product.price
        entries.append((
            {
                "id": product.id,
                "name": product.name or product.id,
                "price": price,
                "picture": product.picture,
                "options": [
                    {
                        "optionId": option.option.id,
                        "choiceId": option.choices.id,
                        "addPrice": option.choices.additional_price,
                    }
                    for option in line.options
                ],
            },
            line.quantity,
        ))

    added = cart.add_many(entries)
    logger.info(f"Reordered {len(order.line_items)} line(s) from order {order.id}")
    return added
