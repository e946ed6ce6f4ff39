"""
Error and notice message constants, plus the staging failure taxonomy.

Centralized strings avoid duplication between the checkout client,
the session surface and the tests.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Why a staging attempt did not produce a redirect target."""

    VALIDATION = "validation"  # detected locally, no network call made
    TRANSPORT = "transport"  # network failure or timeout, retryable
    REMOTE_REJECTION = "remote_rejection"  # non-2xx or malformed success body
    ABANDONED = "abandoned"  # response arrived after the user left checkout


class StorageUnavailable(RuntimeError):
    """The backing store could not be written or cleared."""


# Validation errors
ERROR_EMPTY_CART = "Your cart is empty."
ERROR_CLIENT_NAME_REQUIRED = "Please enter your full name."
ERROR_INVALID_QUANTITY = "Quantity must be a positive integer"
ERROR_INVALID_THUMBNAIL = "Product thumbnail must be an absolute http(s) URL"

# Staging errors
ERROR_CHECKOUT_FAILED = "Checkout failed. Please try again."
ERROR_BUY_NOW_FAILED = "Failed to process your order. Please try again."
ERROR_MALFORMED_RESPONSE = "Staging response did not contain a checkout URL"
ERROR_CHECKOUT_ABANDONED = "Checkout was abandoned before the order was staged"

# Lifecycle errors
ERROR_NOT_HYDRATED = "Cart accessed before hydration; call hydrate() first"

# Notices
NOTICE_ITEM_ADDED = "{name} added to cart"
NOTICE_QUANTITY_INCREASED = "Increased quantity of {name}"
NOTICE_ITEM_REMOVED = "Item removed from cart"
NOTICE_CART_CLEARED = "Cart cleared"
NOTICE_ORDER_PLACED = "Order placed successfully! Redirecting to WhatsApp..."
