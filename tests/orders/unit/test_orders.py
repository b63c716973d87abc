"""
Unit Tests: Order Status and Reorder

Tests for services/orders.py covering:
- order_progress() - linear stepper
- fetch_order() - missing orders
- reorder() - past order lines back into the cart, all or nothing
"""

import pytest

from food_cart.exceptions import InvalidProductError, OrderNotFoundError
from food_cart.schemas import ContactInfo, OrderDetail, OrderState
from food_cart.services.orders import fetch_order, order_progress, order_status, reorder


PAST_ORDER = {
    "_id": "bill_1",
    "isPaid": True,
    "total_price": 120000,
    "state": 2,
    "lineItem": [
        {
            "quantity": 2,
            "subtotal": 90000,
            "product": {"_id": "p1", "name": "Burger", "picture": "u", "price": 45000},
        },
        {
            "quantity": 1,
            "subtotal": 40000,
            "product": {"_id": "p3", "name": "Coffee", "price": 35000, "currentPrice": 38000},
            "options": [
                {
                    "option": {"_id": "size", "name": "Size"},
                    "choices": {"_id": "large", "name": "Large", "additionalPrice": 5000},
                }
            ],
        },
    ],
}


class TestOrderProgress:

    @pytest.mark.parametrize(
        "state, completed",
        [
            (OrderState.PROCESSING, [True, False, False, False]),
            (OrderState.PREPARING, [True, True, False, False]),
            (OrderState.DELIVERING, [True, True, True, False]),
            (OrderState.COMPLETED, [True, True, True, True]),
        ],
    )
    def test_stages_completed_up_to_state(self, state, completed):
        stages = order_progress(state)

        assert [s.completed for s in stages] == completed
        assert [s.state for s in stages] == [1, 2, 3, 4]

    def test_order_status(self):
        status = order_status(OrderDetail.model_validate(PAST_ORDER))

        assert status.order_id == "bill_1"
        assert status.is_paid is True
        assert status.stages[1].label == "Preparing your food"
        assert status.stages[1].completed is True
        assert status.stages[2].completed is False


class TestFetchOrder:

    async def test_found(self, backend):
        backend.add_order(PAST_ORDER)

        order = await fetch_order(backend, "bill_1")

        assert order.state == 2
        assert len(order.line_items) == 2

    async def test_missing(self, backend):
        with pytest.raises(OrderNotFoundError) as exc_info:
            await fetch_order(backend, "bill_404")

        assert exc_info.value.order_id == "bill_404"


class TestReorder:

    async def test_lines_added_at_current_price(self, option_cart):
        added = reorder(option_cart, OrderDetail.model_validate(PAST_ORDER))

        assert added == 2
        burger, coffee = option_cart.items
        assert (burger.product_id, burger.quantity, burger.unit_price) == ("p1", 2, 45000)
        assert (coffee.product_id, coffee.quantity, coffee.unit_price) == ("p3", 1, 38000)
        assert coffee.selected_options[0].choice_id == "large"
        assert coffee.selected_options[0].additional_price == 5000

    async def test_merges_with_existing_lines(self, option_cart, burger):
        option_cart.add_to_cart(burger, 1)

        reorder(option_cart, OrderDetail.model_validate(PAST_ORDER))

        assert option_cart.get_item("p1").quantity == 3
        assert len(option_cart) == 2

    async def test_reorder_after_checkout(self, checkout, burger):
        checkout.cart.add_to_cart(burger, 2)
        result, _ = await checkout.submit(ContactInfo(address="1 Le Loi", phone="0901234567"))
        assert checkout.cart.items == []

        order = await fetch_order(checkout.backend, result.order_id)
        reorder(checkout.cart, order)

        item = checkout.cart.items[0]
        assert (item.product_id, item.quantity, item.unit_price) == ("p1", 2, 45000)
        # The created order document carries no product name
        assert item.name == "p1"

    async def test_malformed_line_adds_nothing(self, option_cart, burger):
        option_cart.add_to_cart(burger, 1)
        document = dict(PAST_ORDER)
        document["lineItem"] = PAST_ORDER["lineItem"] + [
            {"quantity": 1, "subtotal": 0, "product": {"_id": "p9", "currentPrice": -1}}
        ]

        with pytest.raises(InvalidProductError):
            reorder(option_cart, OrderDetail.model_validate(document))

        assert [(i.product_id, i.quantity) for i in option_cart.items] == [("p1", 1)]
