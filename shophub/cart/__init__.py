"""Cart package: aggregate models and lifecycle controller."""
from .models import LineItem, Cart
from .service import CartController, LifecycleState

__all__ = [
    "LineItem",
    "Cart",
    "CartController",
    "LifecycleState",
]
