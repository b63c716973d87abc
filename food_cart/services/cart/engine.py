"""
Cart Engine

Owns the authoritative list of cart line items for one app session and
keeps a durable mirror of it in a key-value store.

Every mutation builds a new tuple of (frozen) line items, swaps it in, and
hands the serialized list to the mirror writer. Mutations are synchronous
and never wait for storage; persistence failures are logged and never roll
back the in-memory state.

Identity policy:
    MergePolicy.PRODUCT          → lines keyed by product id only
    MergePolicy.PRODUCT_OPTIONS  → lines keyed by product id + options

Usage:
    engine = CartEngine(store, merge_policy=MergePolicy.PRODUCT_OPTIONS)
    await engine.load()
    engine.add_to_cart({"id": "p1", "name": "Burger", "price": 45000}, 2)
    await engine.flush()
"""

import hashlib
import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError

from food_cart.core.config import MergePolicy, Settings, get_settings
from food_cart.exceptions import InvalidProductError, InvalidQuantityError
from food_cart.schemas import (
    CartLineItem,
    CartLineItemResponse,
    CartPayload,
    CartSnapshot,
    ProductInput,
    SelectedOption,
)
from food_cart.services.cart.mirror import MirrorWriter
from food_cart.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)

ProductLike = Union[ProductInput, Mapping[str, Any]]


def options_fingerprint(options: Iterable[SelectedOption]) -> str:
    """Canonical JSON of a selected-options sequence (order preserved)."""
    return json.dumps(
        [option.model_dump(by_alias=True) for option in options],
        separators=(",", ":"),
        sort_keys=True,
    )


class CartEngine:
    """
    In-memory cart with a best-effort durable mirror.

    Attributes:
        store: Key-value store holding the mirror
        storage_key: The single key the cart is stored under
        merge_policy: Identity policy used by add_to_cart
    """

    def __init__(
        self,
        store: BaseKeyValueStore,
        storage_key: str = "cart",
        merge_policy: MergePolicy = MergePolicy.PRODUCT_OPTIONS,
    ):
        self.store = store
        self.storage_key = storage_key
        self.merge_policy = merge_policy

        self._items: tuple[CartLineItem, ...] = ()
        self._loaded = False
        self._mutated_before_load = False
        self._mirror = MirrorWriter(store, storage_key)

        logger.info(
            f"CartEngine initialized (store={store.provider_name}, "
            f"key={storage_key}, policy={merge_policy.value})"
        )

    @classmethod
    def from_settings(
        cls,
        store: BaseKeyValueStore,
        settings: Optional[Settings] = None,
    ) -> "CartEngine":
        settings = settings or get_settings()
        return cls(
            store,
            storage_key=settings.cart_storage_key,
            merge_policy=settings.cart_merge_policy,
        )

    # =========================================================================
    # LOADING
    # =========================================================================

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> list[CartLineItem]:
        """
        Read the mirror into memory.

        Missing, unreadable or malformed data leaves an empty cart. If the
        cart was mutated before loading finished, the in-memory list wins
        and is written back over the stored one.
        """
        if self._loaded:
            return self.items

        try:
            raw = await self.store.get(self.storage_key)
        except Exception:
            logger.warning(
                f"Error loading {self.storage_key} from {self.store.provider_name} store",
                exc_info=True,
            )
            raw = None

        stored = self._parse(raw)
        self._loaded = True

        if self._mutated_before_load:
            logger.info("Cart changed before load finished; keeping in-memory items")
            self._mirror.schedule(self._serialize(self._items))
        else:
            self._items = tuple(stored)

        logger.info(f"Cart loaded with {len(self._items)} line item(s)")
        return self.items

    def _parse(self, raw: Optional[str]) -> list[CartLineItem]:
        if not raw:
            return []
        try:
            return CartPayload.validate_json(raw)
        except ValidationError as e:
            logger.warning(
                f"Discarding malformed {self.storage_key} payload "
                f"({e.error_count()} error(s))"
            )
            return []

    @staticmethod
    def _serialize(items: Iterable[CartLineItem]) -> str:
        return CartPayload.dump_json(list(items), by_alias=True).decode("utf-8")

    # =========================================================================
    # IDENTITY
    # =========================================================================

    def _identity(self, product_id: str, options: Iterable[SelectedOption]) -> tuple:
        if self.merge_policy == MergePolicy.PRODUCT:
            return (product_id,)
        return (product_id, options_fingerprint(options))

    def line_key(self, item: CartLineItem) -> str:
        """
        Address of a line item for quantity and removal operations.

        The bare product id when the policy ignores options or the line has
        none; otherwise the product id and a short options digest joined by
        "~", so the key can be used as a URL path segment.
        """
        if self.merge_policy == MergePolicy.PRODUCT or not item.selected_options:
            return item.product_id
        digest = hashlib.sha1(
            options_fingerprint(item.selected_options).encode("utf-8")
        ).hexdigest()[:10]
        return f"{item.product_id}~{digest}"

    # =========================================================================
    # VALIDATION
    # =========================================================================

    @staticmethod
    def _validate_product(product: ProductLike) -> ProductInput:
        if isinstance(product, ProductInput):
            return product
        if not isinstance(product, Mapping):
            raise InvalidProductError(
                f"expected a mapping, got {type(product).__name__}"
            )

        try:
            return ProductInput.model_validate(dict(product))
        except ValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(part) for part in first["loc"]) or "product"
            product_id = product.get("id") or product.get("_id")
            raise InvalidProductError(
                f"{loc}: {first['msg']}",
                product_id=product_id if isinstance(product_id, str) else None,
            ) from e

    @staticmethod
    def _validate_quantity(quantity: Any) -> int:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidQuantityError(quantity)
        return quantity

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def _commit(self, items: Iterable[CartLineItem]) -> None:
        self._items = tuple(items)
        if not self._loaded:
            self._mutated_before_load = True
        self._mirror.schedule(self._serialize(self._items))

    def add_to_cart(self, product: ProductLike, quantity: int = 1) -> CartLineItem:
        """
        Add ``quantity`` units of ``product``.

        Merges into the line with the same identity, otherwise appends a new
        line.

        Raises:
            InvalidProductError: product data is missing or malformed
            InvalidQuantityError: quantity is not a positive integer
        """
        product = self._validate_product(product)
        quantity = self._validate_quantity(quantity)

        items = list(self._items)
        line = self._merge(items, product, quantity)

        self._commit(items)
        logger.debug(f"Added {quantity} x {product.id} (line quantity {line.quantity})")
        return line

    def add_many(self, entries: Iterable[tuple[ProductLike, int]]) -> int:
        """
        Add several ``(product, quantity)`` pairs with a single mirror write.

        Every entry is validated first; if any is invalid nothing is added.

        Returns:
            Number of entries added

        Raises:
            InvalidProductError: an entry's product data is missing or malformed
            InvalidQuantityError: an entry's quantity is not a positive integer
        """
        validated = [
            (self._validate_product(product), self._validate_quantity(quantity))
            for product, quantity in entries
        ]

        items = list(self._items)
        for product, quantity in validated:
            self._merge(items, product, quantity)

        self._commit(items)
        logger.debug(f"Added {len(validated)} product(s) in one batch")
        return len(validated)

    def _merge(self, items: list[CartLineItem], product: ProductInput, quantity: int) -> CartLineItem:
        identity = self._identity(product.id, product.options)
        for index, item in enumerate(items):
            if self._identity(item.product_id, item.selected_options) == identity:
                line = item.model_copy(update={"quantity": item.quantity + quantity})
                items[index] = line
                return line

        line = CartLineItem(
            product_id=product.id,
            name=product.name,
            unit_price=product.unit_price,
            picture_url=product.picture_url,
            quantity=quantity,
            selected_options=tuple(product.options),
        )
        items.append(line)
        return line

    def _update_line(self, line_key: str, delta: int) -> Optional[CartLineItem]:
        updated = None
        items = []
        for item in self._items:
            if updated is None and self.line_key(item) == line_key:
                if delta > 0 or item.quantity > 1:
                    item = item.model_copy(update={"quantity": item.quantity + delta})
                updated = item
            items.append(item)
        self._commit(items)
        return updated

    def increase_quantity(self, line_key: str) -> Optional[CartLineItem]:
        """Add one unit to a line. Returns the line, or None if no line matches."""
        return self._update_line(line_key, +1)

    def decrease_quantity(self, line_key: str) -> Optional[CartLineItem]:
        """
        Remove one unit from a line, never going below one.

        A line at quantity 1 is left untouched; use remove_from_cart to
        drop it.
        """
        return self._update_line(line_key, -1)

    def remove_from_cart(self, line_key: str) -> bool:
        """Drop a line regardless of its quantity. Returns True if one was removed."""
        items = [item for item in self._items if self.line_key(item) != line_key]
        removed = len(items) != len(self._items)
        self._commit(items)
        return removed

    def clear_cart(self) -> None:
        """Empty the cart."""
        self._commit(())
        logger.info("Cart cleared")

    def remove_ordered(self, ordered: Iterable[CartLineItem]) -> None:
        """
        Take the quantities of a placed order out of the cart.

        Lines are matched by line key. Whatever was added while the order was
        in flight stays: new lines are kept, and a line whose quantity grew
        keeps the difference.
        """
        taken: dict[str, int] = {}
        for item in ordered:
            key = self.line_key(item)
            taken[key] = taken.get(key, 0) + item.quantity

        items = []
        for item in self._items:
            quantity = taken.get(self.line_key(item), 0)
            if item.quantity > quantity:
                if quantity:
                    item = item.model_copy(update={"quantity": item.quantity - quantity})
                items.append(item)

        self._commit(items)
        logger.info(f"Removed ordered items; {len(items)} line item(s) left in cart")

    # =========================================================================
    # READS
    # =========================================================================

    @property
    def items(self) -> list[CartLineItem]:
        return list(self._items)

    @property
    def subtotal(self) -> float:
        return sum(item.subtotal for item in self._items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get_item(self, line_key: str) -> Optional[CartLineItem]:
        for item in self._items:
            if self.line_key(item) == line_key:
                return item
        return None

    def snapshot(self) -> CartSnapshot:
        return CartSnapshot(
            items=[
                CartLineItemResponse(
                    line_key=self.line_key(item),
                    product_id=item.product_id,
                    name=item.name,
                    unit_price=item.unit_price,
                    picture_url=item.picture_url,
                    quantity=item.quantity,
                    options=list(item.selected_options),
                    subtotal=item.subtotal,
                )
                for item in self._items
            ],
            subtotal=self.subtotal,
            item_count=self.item_count,
            line_count=len(self._items),
        )

    # =========================================================================
    # PERSISTENCE STATUS
    # =========================================================================

    @property
    def pending_writes(self) -> bool:
        return self._mirror.has_pending

    @property
    def failed_writes(self) -> int:
        return self._mirror.failed_writes

    @property
    def last_write_error(self) -> Optional[BaseException]:
        return self._mirror.last_error

    async def flush(self) -> None:
        """Wait for every scheduled mirror write to finish."""
        await self._mirror.flush()

    async def close(self) -> None:
        await self.flush()
        logger.info("CartEngine closed")
