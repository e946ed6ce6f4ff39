"""Checkout staging: request models, results, and the HTTP client."""
from .client import CheckoutStagingClient
from .models import (
    CartSource,
    SingleItem,
    StagedProduct,
    StagingFailure,
    StagingRequest,
    StagingResponse,
    StagingResult,
    StagingSuccess,
    WholeCart,
)

__all__ = [
    "CheckoutStagingClient",
    "CartSource",
    "SingleItem",
    "StagedProduct",
    "StagingFailure",
    "StagingRequest",
    "StagingResponse",
    "StagingResult",
    "StagingSuccess",
    "WholeCart",
]
