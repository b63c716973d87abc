"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two modes:
    - DEVELOPMENT: Uses mock collaborators (in-memory store, mock backend,
      mock order channel). No network access needed.
    - PRODUCTION: Uses the real REST backend, the Socket.IO order channel
      and a durable storage backend (file or Redis).

The ENV_MODE variable controls which services are instantiated throughout
the application.

Usage:
    from food_cart.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Use mock services
    else:
        # Use real APIs
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with mock services
        PRODUCTION: Live environment with real integrations
        STAGING: Pre-production testing against a staging backend
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class StorageBackend(str, Enum):
    """Where the cart mirror is persisted."""
    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


class MergePolicy(str, Enum):
    """
    Identity policy used when adding a product that is already in the cart.

    Attributes:
        PRODUCT: Key by product id only; configurations collapse together
        PRODUCT_OPTIONS: Key by product id plus the selected options
    """
    PRODUCT = "product"
    PRODUCT_OPTIONS = "product_options"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Backend
        backend_base_url: Base URL of the catalog/order/account REST service
        realtime_url: URL of the realtime order-creation channel

        # Storage
        storage_backend: memory, file or redis
        cart_storage_key: The single key the cart is mirrored under

        # Business Configuration
        shipping_fee: Flat shipping fee added at checkout
        cart_merge_policy: Identity policy for add-to-cart merges
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Food Cart Service",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8002,
        description="API server port"
    )

    # ==========================================================================
    # REMOTE BACKEND (REST)
    # ==========================================================================

    backend_base_url: str = Field(
        default="http://localhost:8080",
        description="Catalog/order/account REST service base URL"
    )
    backend_timeout: float = Field(
        default=5.0,
        description="REST request timeout in seconds"
    )

    # ==========================================================================
    # REALTIME ORDER CHANNEL
    # ==========================================================================

    realtime_url: Optional[str] = Field(
        default=None,
        description="Socket.IO server URL (defaults to backend_base_url)"
    )
    order_submit_timeout: float = Field(
        default=15.0,
        description="Seconds to wait for the billCreated answer"
    )

    # ==========================================================================
    # STORAGE
    # ==========================================================================

    storage_backend: Optional[StorageBackend] = Field(
        default=None,
        description="Cart mirror backend (memory/file/redis)"
    )
    data_directory: str = Field(
        default="data",
        description="Directory for file-backed storage"
    )
    storage_lock_timeout: int = Field(
        default=10,
        description="Seconds to wait for the storage file lock"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )
    redis_namespace: str = Field(
        default="food_cart",
        description="Prefix applied to every Redis key"
    )
    cart_storage_key: str = Field(
        default="cart",
        description="Key the cart line items are mirrored under"
    )

    # ==========================================================================
    # BUSINESS CONFIGURATION
    # ==========================================================================

    cart_merge_policy: MergePolicy = Field(
        default=MergePolicy.PRODUCT_OPTIONS,
        description="How add-to-cart decides two products are the same line"
    )
    shipping_fee: float = Field(
        default=10000,
        description="Flat shipping fee"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("cart_merge_policy", mode="before")
    @classmethod
    def validate_merge_policy(cls, v: str) -> MergePolicy:
        if isinstance(v, MergePolicy):
            return v
        try:
            return MergePolicy(v.lower())
        except ValueError:
            valid = [e.value for e in MergePolicy]
            raise ValueError(f"Invalid cart_merge_policy. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def use_real_services(self) -> bool:
        """Check if real external services should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def effective_storage_backend(self) -> StorageBackend:
        """Configured storage backend, or the default for the current mode."""
        if self.storage_backend is not None:
            return self.storage_backend
        return StorageBackend.MEMORY if self.is_development else StorageBackend.FILE

    @property
    def effective_realtime_url(self) -> str:
        return self.realtime_url or self.backend_base_url

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of problems found (empty if the configuration is usable)
        """
        problems = []

        if self.use_real_services:
            if self.effective_storage_backend == StorageBackend.MEMORY:
                problems.append("STORAGE_BACKEND=memory does not survive restarts")
            if "localhost" in self.backend_base_url:
                problems.append("BACKEND_BASE_URL points at localhost")

        return problems


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once
    for the whole application lifecycle.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("socketio").setLevel(logging.WARNING)
    logging.getLogger("engineio").setLevel(logging.WARNING)

    return logging.getLogger("food_cart")
