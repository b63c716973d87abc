"""
Unit Tests: Order Channels

Tests for services/realtime covering:
- MockOrderChannel - success/failure answers, order registration
- SocketIOOrderChannel - createBill/billCreated exchange over a fake client
"""

import asyncio

import pytest
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from food_cart.exceptions import ChannelError
from food_cart.schemas import OrderLineItem, OrderSubmission, SelectedOption
from food_cart.services.backend.mock import MockBackendClient
from food_cart.services.realtime.mock import MockOrderChannel
from food_cart.services.realtime.socketio_channel import SocketIOOrderChannel


@pytest.fixture
def submission():
    return OrderSubmission(
        full_name="Nguyen Van A",
        address_shipment="1 Le Loi",
        phone_shipment="0901234567",
        ship=10000,
        total_price=100000,
        line_items=[
            OrderLineItem(
                product="p3",
                quantity=2,
                subtotal=70000,
                options=[SelectedOption(option_id="size", choice_id="large", additional_price=5000)],
            )
        ],
    )


class FakeSocketClient:
    """Minimal stand-in for socketio.AsyncClient."""

    def __init__(self, answer=None, fail_connect=False):
        self.handlers = {}
        self.emitted = []
        self.tasks = []
        self.connected = False
        self.answer = answer
        self.fail_connect = fail_connect

    def on(self, event, handler):
        self.handlers[event] = handler

    async def connect(self, url, transports=None):
        if self.fail_connect:
            raise SocketIOConnectionError("refused")
        self.connected = True
        await self.handlers["connect"]()

    async def emit(self, event, data):
        self.emitted.append((event, data))
        if self.answer is not None:
            self.tasks.append(
                asyncio.get_running_loop().create_task(self.handlers["billCreated"](self.answer))
            )

    async def disconnect(self):
        self.connected = False


class TestMockOrderChannel:

    async def test_success_registers_order(self, submission):
        backend = MockBackendClient()
        channel = MockOrderChannel(backend=backend)

        result = await channel.submit_order(submission)

        assert result.success is True
        assert result.order_id.startswith("bill_mock_")
        order = await backend.get_order(result.order_id)
        assert order.total_price == 100000
        assert order.line_items[0].product.id == "p3"
        assert order.line_items[0].options[0].choices.id == "large"

    async def test_failure_answer(self, submission):
        channel = MockOrderChannel(failure_rate=1.0)

        result = await channel.submit_order(submission)

        assert result.success is False
        assert result.message in MockOrderChannel.REJECTION_MESSAGES
        assert channel.submissions == [submission]


class TestSocketIOOrderChannel:

    async def test_success_round_trip(self, submission):
        fake = FakeSocketClient(answer={"status": "success", "data": {"_id": "bill_9"}})
        channel = SocketIOOrderChannel(url="http://rt.test", timeout=1.0, client=fake)

        result = await channel.submit_order(submission)

        assert result.order_id == "bill_9"
        event, payload = fake.emitted[0]
        assert event == "createBill"
        assert payload["lineItems"][0]["options"][0] == {
            "optionId": "size",
            "choiceId": "large",
            "addPrice": 5000.0,
        }
        assert payload["address_shipment"] == "1 Le Loi"
        assert "voucher" not in payload

    async def test_failure_answer_is_returned(self, submission):
        fake = FakeSocketClient(answer={"status": "failure", "message": "Store is closed"})
        channel = SocketIOOrderChannel(url="http://rt.test", timeout=1.0, client=fake)

        result = await channel.submit_order(submission)

        assert result.success is False
        assert result.message == "Store is closed"

    async def test_timeout_raises_channel_error(self, submission):
        channel = SocketIOOrderChannel(url="http://rt.test", timeout=0.05, client=FakeSocketClient())

        with pytest.raises(ChannelError, match="timed out"):
            await channel.submit_order(submission)

    async def test_connect_failure_raises_channel_error(self, submission):
        fake = FakeSocketClient(fail_connect=True)
        channel = SocketIOOrderChannel(url="http://rt.test", timeout=1.0, client=fake)

        with pytest.raises(ChannelError, match="Cannot connect"):
            await channel.submit_order(submission)

    async def test_malformed_answer_raises_channel_error(self, submission):
        fake = FakeSocketClient(answer={"unexpected": True})
        channel = SocketIOOrderChannel(url="http://rt.test", timeout=1.0, client=fake)

        with pytest.raises(ChannelError, match="Unexpected billCreated payload"):
            await channel.submit_order(submission)

    async def test_close_disconnects(self, submission):
        fake = FakeSocketClient(answer={"status": "success", "data": {"_id": "bill_9"}})
        channel = SocketIOOrderChannel(url="http://rt.test", timeout=1.0, client=fake)
        await channel.submit_order(submission)

        await channel.close()

        assert fake.connected is False
        assert await channel.health_check() is False
