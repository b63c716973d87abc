"""
Checkout Orchestrator

Turns the current cart into an order:
    1. Price it (subtotal + flat shipping - voucher - loyalty points)
    2. Submit it over the realtime order channel
    3. Take the ordered lines out of the cart, only once the channel reports
       success

A failed or unanswered submission leaves the cart untouched so the user can
retry.
"""

import asyncio
import logging
from typing import Optional

from food_cart.core.config import get_settings
from food_cart.exceptions import (
    BackendError,
    EmptyCartError,
    InvalidPointsError,
    MissingContactError,
    OrderSubmissionError,
    VoucherExpiredError,
    VoucherNotFoundError,
)
from food_cart.schemas import (
    CartLineItem,
    CheckoutQuote,
    ContactInfo,
    OrderLineItem,
    OrderSubmission,
    OrderSubmissionResult,
    PointsRedemption,
    UserProfile,
    VoucherInfo,
)
from food_cart.services.backend.base import BaseBackendClient
from food_cart.services.cart.engine import CartEngine
from food_cart.services.realtime.base import BaseOrderChannel

logger = logging.getLogger(__name__)

POINTS_EXCEEDED_MESSAGE = "Requested points exceed the available balance"


class CheckoutOrchestrator:
    """
    Prices and submits the cart.

    Attributes:
        cart: The session's cart engine
        backend: REST client used for voucher and profile lookups
        channel: Realtime channel orders are created over
        shipping_fee: Flat fee added to every order
    """

    def __init__(
        self,
        cart: CartEngine,
        backend: BaseBackendClient,
        channel: BaseOrderChannel,
        shipping_fee: Optional[float] = None,
    ):
        self.cart = cart
        self.backend = backend
        self.channel = channel
        self.shipping_fee = (
            shipping_fee if shipping_fee is not None else get_settings().shipping_fee
        )
        self._submit_lock = asyncio.Lock()

    # =========================================================================
    # DISCOUNTS
    # =========================================================================

    async def apply_voucher(self, code: str) -> VoucherInfo:
        """
        Look up a voucher code.

        Raises:
            VoucherNotFoundError: The code is blank, unknown, or the lookup failed
            VoucherExpiredError: The voucher exists but is inactive
        """
        code = (code or "").strip()
        if not code:
            raise VoucherNotFoundError(code)

        try:
            voucher = await self.backend.get_voucher(code)
        except BackendError as e:
            logger.warning(f"Voucher lookup failed for {code}: {e}")
            raise VoucherNotFoundError(code) from e

        if voucher is None:
            raise VoucherNotFoundError(code)
        if not voucher.is_active:
            raise VoucherExpiredError(code)

        logger.info(f"Voucher {code} applied (-{voucher.discount})")
        return voucher

    @staticmethod
    def redeem_points(requested: int, available: int) -> PointsRedemption:
        """
        Clamp a loyalty-point request to the available balance.

        One point is worth one currency unit.

        Raises:
            InvalidPointsError: ``requested`` is negative
        """
        if requested < 0:
            raise InvalidPointsError(requested)

        available = max(available, 0)
        if requested > available:
            return PointsRedemption(
                requested=requested,
                applied=available,
                available=available,
                error=POINTS_EXCEEDED_MESSAGE,
            )
        return PointsRedemption(requested=requested, applied=requested, available=available)

    async def resolve_profile(self, token: Optional[str]) -> Optional[UserProfile]:
        """Fetch the signed-in user's profile, or None for guests."""
        if not token:
            return None
        return await self.backend.get_profile(token)

    # =========================================================================
    # PRICING
    # =========================================================================

    def quote(
        self,
        voucher: Optional[VoucherInfo] = None,
        redemption: Optional[PointsRedemption] = None,
    ) -> CheckoutQuote:
        """Price the cart as it is right now. The total never goes below zero."""
        subtotal = self.cart.subtotal
        voucher_discount = voucher.discount if voucher else 0.0
        points_discount = float(redemption.applied) if redemption else 0.0
        total = subtotal + self.shipping_fee - voucher_discount - points_discount

        return CheckoutQuote(
            subtotal=subtotal,
            shipping_fee=self.shipping_fee,
            voucher_discount=voucher_discount,
            points_discount=points_discount,
            total=max(total, 0.0),
            voucher_id=voucher.id if voucher else None,
            points_error=redemption.error if redemption else None,
        )

    async def prepare(
        self,
        voucher_code: Optional[str] = None,
        points: int = 0,
        profile: Optional[UserProfile] = None,
    ) -> CheckoutQuote:
        """
        Apply an optional voucher and point redemption and price the cart.

        Guests have no point balance, so their redemption is clamped to zero.
        """
        voucher = await self.apply_voucher(voucher_code) if voucher_code else None
        redemption = self.redeem_points(points, profile.point if profile else 0)
        return self.quote(voucher, redemption)

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def build_submission(
        self,
        contact: ContactInfo,
        quote: CheckoutQuote,
        profile: Optional[UserProfile] = None,
        note: str = "",
        items: Optional[list[CartLineItem]] = None,
    ) -> OrderSubmission:
        if items is None:
            items = self.cart.items
        return OrderSubmission(
            full_name=contact.full_name,
            address_shipment=contact.address or "",
            phone_shipment=contact.phone or "",
            ship=quote.shipping_fee,
            total_price=quote.total,
            point_discount=int(quote.points_discount),
            is_paid=False,
            voucher=quote.voucher_id,
            line_items=[
                OrderLineItem(
                    product=item.product_id,
                    quantity=item.quantity,
                    subtotal=item.subtotal,
                    options=list(item.selected_options),
                )
                for item in items
            ],
            note=note or "",
            account=profile.id if profile else None,
        )

    async def submit(
        self,
        contact: ContactInfo,
        voucher_code: Optional[str] = None,
        points: int = 0,
        profile: Optional[UserProfile] = None,
        note: str = "",
    ) -> tuple[OrderSubmissionResult, CheckoutQuote]:
        """
        Place the order.

        Returns:
            The channel's answer and the quote the order was placed at

        Raises:
            EmptyCartError: Nothing to order
            MissingContactError: Address or phone is blank
            VoucherNotFoundError / VoucherExpiredError: Bad voucher code
            OrderSubmissionError: The server rejected the order
            ChannelError: The channel was unreachable or timed out
        """
        async with self._submit_lock:
            if not self.cart.items:
                raise EmptyCartError()

            missing = [
                name
                for name, value in (("address", contact.address), ("phone", contact.phone))
                if not value or not value.strip()
            ]
            if missing:
                raise MissingContactError(missing)

            quote = await self.prepare(voucher_code, points, profile)
            ordered = self.cart.items
            if not ordered:
                raise EmptyCartError()
            submission = self.build_submission(contact, quote, profile, note, ordered)

            logger.info(
                f"Submitting order: {len(submission.line_items)} line(s), "
                f"total {quote.total}"
            )
            result = await self.channel.submit_order(submission)

            if not result.success:
                logger.warning(f"Order rejected: {result.message}")
                raise OrderSubmissionError(result.message)

            self.cart.remove_ordered(ordered)
            await self.cart.flush()

            logger.info(f"Order {result.order_id} created")
            return result, quote
