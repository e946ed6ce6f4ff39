"""Shophub storefront cart and checkout-staging engine."""
from shophub.cart import Cart, CartController, LineItem
from shophub.checkout import CheckoutStagingClient, SingleItem, StagingFailure, StagingSuccess, WholeCart
from shophub.errors import FailureKind
from shophub.session import CartSession
from shophub.storage import EphemeralStore, MemoryBackend, RedisBackend

__all__ = [
    "Cart",
    "CartController",
    "CartSession",
    "CheckoutStagingClient",
    "EphemeralStore",
    "FailureKind",
    "LineItem",
    "MemoryBackend",
    "RedisBackend",
    "SingleItem",
    "StagingFailure",
    "StagingSuccess",
    "WholeCart",
]
