"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import os

import pytest

# Force mock collaborators before any food_cart module reads the settings
os.environ["ENV_MODE"] = "development"
os.environ.pop("STORAGE_BACKEND", None)
os.environ.pop("CART_MERGE_POLICY", None)

from food_cart.core.config import MergePolicy, get_settings
from food_cart.services.backend import reset_backend_client
from food_cart.services.backend.mock import MockBackendClient
from food_cart.services.cart import CartEngine
from food_cart.services.checkout import CheckoutOrchestrator
from food_cart.services.realtime import reset_order_channel
from food_cart.services.realtime.mock import MockOrderChannel
from food_cart.services.storage import reset_storage_service
from food_cart.services.storage.mock import InMemoryKeyValueStore


@pytest.fixture(autouse=True)
def reset_factories():
    """Drop cached settings and service singletons between tests."""
    yield
    get_settings.cache_clear()
    reset_storage_service()
    reset_backend_client()
    reset_order_channel()


# ============================================================================
# PRODUCTS
# ============================================================================

@pytest.fixture
def burger():
    """Plain product without options, in the app's catalog shape."""
    return {"id": "p1", "name": "Burger", "price": 45000, "picture": "https://img/burger.png"}


@pytest.fixture
def fries():
    return {"id": "p2", "name": "Fries", "price": 25000}


@pytest.fixture
def large_coffee():
    """Product configured with a size option (surcharge already in the price)."""
    return {
        "id": "p3",
        "name": "Coffee",
        "price": 35000,
        "options": [{"optionId": "size", "choiceId": "large", "addPrice": 5000}],
    }


@pytest.fixture
def small_coffee():
    return {
        "id": "p3",
        "name": "Coffee",
        "price": 30000,
        "options": [{"optionId": "size", "choiceId": "small", "addPrice": 0}],
    }


# ============================================================================
# CART
# ============================================================================

@pytest.fixture
def store():
    """Fresh in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture(params=[MergePolicy.PRODUCT, MergePolicy.PRODUCT_OPTIONS], ids=lambda p: p.value)
def merge_policy(request):
    """Runs the test once per identity policy."""
    return request.param


@pytest.fixture
async def cart(store, merge_policy):
    """Loaded cart engine over an empty store."""
    engine = CartEngine(store, merge_policy=merge_policy)
    await engine.load()
    return engine


@pytest.fixture
async def option_cart(store):
    """Loaded cart engine that keys lines by product and options."""
    engine = CartEngine(store, merge_policy=MergePolicy.PRODUCT_OPTIONS)
    await engine.load()
    return engine


# ============================================================================
# CHECKOUT
# ============================================================================

@pytest.fixture
def backend():
    """Mock backend with one signed-in user holding 300 points."""
    return MockBackendClient(
        profiles={
            "token-123": {
                "_id": "user_1",
                "fullname": "Nguyen Van A",
                "phonenumber": "0901234567",
                "address": "1 Le Loi, District 1",
                "point": 300,
            }
        }
    )


@pytest.fixture
def channel(backend):
    return MockOrderChannel(backend=backend)


@pytest.fixture
def checkout(option_cart, backend, channel):
    return CheckoutOrchestrator(option_cart, backend, channel, shipping_fee=10000)
