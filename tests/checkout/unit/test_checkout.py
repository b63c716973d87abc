"""
Unit Tests: CheckoutOrchestrator

Tests for services/checkout.py covering:
- apply_voucher() - unknown, expired, lookup failure
- redeem_points() - clamping to the available balance
- quote() / prepare() - totals never go below zero
- submit() - ordered lines removed exactly once and only on success
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from food_cart.exceptions import (
    BackendError,
    ChannelError,
    EmptyCartError,
    InvalidPointsError,
    MissingContactError,
    OrderSubmissionError,
    VoucherExpiredError,
    VoucherNotFoundError,
)
from food_cart.schemas import ContactInfo, OrderSubmissionResult, UserProfile
from food_cart.services.checkout import POINTS_EXCEEDED_MESSAGE, CheckoutOrchestrator
from food_cart.services.realtime.base import BaseOrderChannel
from food_cart.services.realtime.mock import MockOrderChannel


class GatedOrderChannel(BaseOrderChannel):
    """Order channel that holds every submission until ``release`` is set."""

    def __init__(self):
        self.received = asyncio.Event()
        self.release = asyncio.Event()
        self.submissions = []

    @property
    def provider_name(self) -> str:
        return "gated"

    async def submit_order(self, submission):
        self.submissions.append(submission)
        self.received.set()
        await self.release.wait()
        return OrderSubmissionResult(status="success", data={"_id": "bill_gated"})

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def contact():
    return ContactInfo(full_name="Nguyen Van A", address="1 Le Loi", phone="0901234567")


@pytest.fixture
def profile():
    return UserProfile(id="user_1", fullname="Nguyen Van A", point=300)


@pytest.fixture
def filled_checkout(checkout, burger, large_coffee):
    """Checkout over a cart holding 2 burgers and 1 large coffee (125000)."""
    checkout.cart.add_to_cart(burger, 2)
    checkout.cart.add_to_cart(large_coffee, 1)
    return checkout


class TestVouchers:

    async def test_active_voucher(self, checkout):
        voucher = await checkout.apply_voucher("WELCOME10")

        assert voucher.discount == 10000

    async def test_code_is_trimmed(self, checkout):
        voucher = await checkout.apply_voucher("  WELCOME10 ")

        assert voucher.code == "WELCOME10"

    @pytest.mark.parametrize("code", ["NOPE", "", "   "])
    async def test_unknown_voucher(self, checkout, code):
        with pytest.raises(VoucherNotFoundError):
            await checkout.apply_voucher(code)

    async def test_expired_voucher(self, checkout):
        with pytest.raises(VoucherExpiredError):
            await checkout.apply_voucher("EXPIRED")

    async def test_lookup_failure_reads_as_not_found(self, checkout):
        checkout.backend.get_voucher = AsyncMock(side_effect=BackendError("down", status_code=503))

        with pytest.raises(VoucherNotFoundError):
            await checkout.apply_voucher("WELCOME10")


class TestPoints:

    def test_within_balance(self):
        redemption = CheckoutOrchestrator.redeem_points(100, 300)

        assert redemption.applied == 100
        assert redemption.error is None

    def test_clamped_to_balance(self):
        redemption = CheckoutOrchestrator.redeem_points(500, 300)

        assert redemption.applied == 300
        assert redemption.error == POINTS_EXCEEDED_MESSAGE

    def test_negative_request_rejected(self):
        with pytest.raises(InvalidPointsError):
            CheckoutOrchestrator.redeem_points(-1, 300)


class TestQuote:

    async def test_plain_quote(self, filled_checkout):
        quote = filled_checkout.quote()

        assert quote.subtotal == 125000
        assert quote.shipping_fee == 10000
        assert quote.total == 135000

    async def test_prepare_with_voucher_and_points(self, filled_checkout, profile):
        quote = await filled_checkout.prepare("WELCOME10", points=500, profile=profile)

        assert quote.voucher_discount == 10000
        assert quote.voucher_id == "v_welcome10"
        assert quote.points_discount == 300
        assert quote.points_error == POINTS_EXCEEDED_MESSAGE
        assert quote.total == 125000 + 10000 - 10000 - 300

    async def test_guest_cannot_redeem_points(self, filled_checkout):
        quote = await filled_checkout.prepare(points=100)

        assert quote.points_discount == 0
        assert quote.points_error == POINTS_EXCEEDED_MESSAGE

    async def test_total_never_negative(self, option_cart, backend, channel, burger):
        backend.vouchers["HUGE"] = {"_id": "v_huge", "code": "HUGE", "discount": 10_000_000, "isActive": True}
        checkout = CheckoutOrchestrator(option_cart, backend, channel, shipping_fee=10000)
        option_cart.add_to_cart(burger, 1)

        quote = await checkout.prepare("HUGE")

        assert quote.total == 0

    async def test_profile_lookup(self, checkout):
        assert await checkout.resolve_profile(None) is None

        profile = await checkout.resolve_profile("token-123")

        assert profile.id == "user_1"
        assert profile.point == 300


class TestSubmit:

    async def test_success_clears_cart(self, filled_checkout, contact, profile, store):
        result, quote = await filled_checkout.submit(
            contact, voucher_code="WELCOME10", points=50, profile=profile, note="no onions"
        )

        assert result.success is True
        assert result.order_id.startswith("bill_mock_")
        assert quote.total == 125000 + 10000 - 10000 - 50
        assert filled_checkout.cart.items == []
        assert json.loads(store.peek("cart")) == []

    async def test_submission_payload(self, filled_checkout, contact, profile):
        await filled_checkout.submit(contact, voucher_code="WELCOME10", profile=profile)

        wire = filled_checkout.channel.submissions[0].to_wire()

        assert wire["fullName"] == "Nguyen Van A"
        assert wire["address_shipment"] == "1 Le Loi"
        assert wire["phone_shipment"] == "0901234567"
        assert wire["ship"] == 10000
        assert wire["voucher"] == "v_welcome10"
        assert wire["account"] == "user_1"
        assert wire["isPaid"] is False
        assert [(li["product"], li["quantity"], li["subtotal"]) for li in wire["lineItems"]] == [
            ("p1", 2, 90000),
            ("p3", 1, 35000),
        ]
        assert wire["lineItems"][1]["options"] == [
            {"optionId": "size", "choiceId": "large", "addPrice": 5000.0}
        ]

    async def test_guest_payload_has_no_account(self, filled_checkout, contact):
        await filled_checkout.submit(contact)

        wire = filled_checkout.channel.submissions[0].to_wire()
        assert "account" not in wire
        assert "voucher" not in wire

    async def test_ordered_lines_removed_exactly_once(self, filled_checkout, contact):
        cart = filled_checkout.cart
        ordered = cart.items
        with patch.object(cart, "remove_ordered", wraps=cart.remove_ordered) as remove:
            await filled_checkout.submit(contact)

        remove.assert_called_once_with(ordered)

    async def test_items_added_during_submission_survive(
        self, option_cart, backend, contact, burger, fries
    ):
        channel = GatedOrderChannel()
        checkout = CheckoutOrchestrator(option_cart, backend, channel, shipping_fee=10000)
        option_cart.add_to_cart(burger, 2)

        pending = asyncio.create_task(checkout.submit(contact))
        await channel.received.wait()
        option_cart.add_to_cart(fries, 2)
        option_cart.increase_quantity("p1")
        channel.release.set()
        result, _ = await pending

        assert result.success is True
        assert [(li.product, li.quantity) for li in channel.submissions[0].line_items] == [("p1", 2)]
        assert [(i.product_id, i.quantity) for i in option_cart.items] == [("p1", 1), ("p2", 2)]

    async def test_rejection_keeps_cart(self, option_cart, backend, contact, burger):
        checkout = CheckoutOrchestrator(
            option_cart, backend, MockOrderChannel(failure_rate=1.0), shipping_fee=10000
        )
        option_cart.add_to_cart(burger, 2)

        with pytest.raises(OrderSubmissionError) as exc_info:
            await checkout.submit(contact)

        assert exc_info.value.message in MockOrderChannel.REJECTION_MESSAGES
        assert [(i.product_id, i.quantity) for i in option_cart.items] == [("p1", 2)]

    async def test_channel_error_keeps_cart(self, filled_checkout, contact):
        filled_checkout.channel.submit_order = AsyncMock(side_effect=ChannelError("timed out"))

        with pytest.raises(ChannelError):
            await filled_checkout.submit(contact)

        assert len(filled_checkout.cart) == 2

    async def test_empty_cart(self, checkout, contact):
        with pytest.raises(EmptyCartError):
            await checkout.submit(contact)

        assert checkout.channel.submissions == []

    async def test_missing_contact(self, filled_checkout):
        with pytest.raises(MissingContactError) as exc_info:
            await filled_checkout.submit(ContactInfo(full_name="A", address="1 Le Loi", phone="  "))

        assert exc_info.value.missing == ["phone"]
        assert len(filled_checkout.cart) == 2

    async def test_bad_voucher_blocks_submission(self, filled_checkout, contact):
        with pytest.raises(VoucherExpiredError):
            await filled_checkout.submit(contact, voucher_code="EXPIRED")

        assert filled_checkout.channel.submissions == []
        assert len(filled_checkout.cart) == 2
