"""
Configuration - environment-driven settings for the cart engine.

All values are read once at import time. Tests and embedding code pass
explicit values to constructors instead of mutating these.
"""

import os

# Remote API (the storefront's axios base URL)
API_URL = os.environ.get("SHOPHUB_API_URL", "https://shophub.thebigphotocontest.com/api")
STAGE_PATH = os.environ.get("SHOPHUB_STAGE_PATH", "/admin/orders/stage")

# Fixed for this deployment
CHECKOUT_CURRENCY = os.environ.get("SHOPHUB_CURRENCY", "NGN")

# Well-known storage key for the cart snapshot
CART_STORAGE_KEY = os.environ.get("SHOPHUB_CART_KEY", "shophub_cart")

# Upstash Redis - standard env var names
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# HTTP timeouts (seconds)
HTTP_TIMEOUT = float(os.environ.get("SHOPHUB_HTTP_TIMEOUT", "10"))
HTTP_CONNECT_TIMEOUT = float(os.environ.get("SHOPHUB_HTTP_CONNECT_TIMEOUT", "5"))


def get_stage_url(base_url: str | None = None) -> str:
    """Join the API base URL and the staging path."""
    base = (base_url or API_URL).rstrip("/")
    return f"{base}/{STAGE_PATH.lstrip('/')}"


class TTL:
    """Time-to-live constants (milliseconds, matching the snapshot clock)."""

    CART_MS = 86_400_000  # 24 hours
    DRAFT_MS = 3_600_000  # 1 hour

    @staticmethod
    def to_seconds(ttl_ms: int) -> int:
        # Redis expiry is whole seconds; round up
        return max(1, -(-ttl_ms // 1000))
