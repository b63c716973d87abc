"""
Cart Service

Usage:
    from food_cart.services.cart import CartEngine
    from food_cart.services.storage import get_storage_service

    engine = CartEngine.from_settings(get_storage_service())
    await engine.load()

Build one engine per app session and pass it to whoever needs it.
"""

from food_cart.services.cart.engine import CartEngine, options_fingerprint
from food_cart.services.cart.mirror import MirrorWriter

__all__ = ["CartEngine", "MirrorWriter", "options_fingerprint"]
