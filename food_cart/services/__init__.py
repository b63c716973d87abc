"""
                        Services Module

Contains all business logic services with the hybrid architecture pattern.
Each external collaborator has a Mock (development) and a Real (production)
implementation.

Services:
    - storage: key-value mirror (memory, file, Redis)
    - cart: cart engine and its mirror writer
    - backend: catalog/order/account REST client
    - realtime: order-creation channel (Socket.IO)
    - checkout: pricing and order submission
    - orders: status stepper and reorder
"""

from food_cart.services.cart import CartEngine
from food_cart.services.checkout import CheckoutOrchestrator

__all__ = ["CartEngine", "CheckoutOrchestrator"]
