"""
                Food Cart

Client-side ordering core for a food-ordering app: a persisted,
key-merged shopping cart plus the checkout, order-status and reorder
flows built on top of it, with a Mock/Real service split for
storage, the REST backend and the realtime order channel.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
