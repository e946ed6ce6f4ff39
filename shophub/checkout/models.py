"""
Checkout staging models.

Wire models are pydantic with the camelCase names the staging server
reads; Python code uses the snake_case attributes.
"""
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shophub.cart.models import LineItem
from shophub.errors import ERROR_CLIENT_NAME_REQUIRED, ERROR_INVALID_THUMBNAIL, FailureKind


# ==================== SOURCES ====================

@dataclass(frozen=True)
class WholeCart:
    """Stage every line currently in the session cart."""


@dataclass(frozen=True)
class SingleItem:
    """Stage one ad-hoc item, bypassing the cart entirely."""
    item: LineItem
    quantity: int = 1


CartSource = Union[WholeCart, SingleItem]


# ==================== WIRE MODELS ====================

class StagedProduct(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="product", min_length=1)
    description: str
    thumbnail: str
    quantity: int = Field(ge=1)
    unit_price: Union[int, float] = Field(alias="price", ge=0)

    @field_validator("thumbnail")
    @classmethod
    def require_absolute_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(ERROR_INVALID_THUMBNAIL)
        return v


class StagingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_name: str = Field(alias="clientName")
    products: list[StagedProduct] = Field(min_length=1)
    total_amount: Union[int, float] = Field(alias="totalAmount", ge=0)
    currency: str = Field(min_length=1)

    @field_validator("client_name")
    @classmethod
    def require_client_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError(ERROR_CLIENT_NAME_REQUIRED)
        return v

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class StagingResponse(BaseModel):
    """Success body: {"status": "success", "message": ..., "checkoutUrl": ...}"""
    model_config = ConfigDict(extra="ignore")

    checkout_url: str = Field(alias="checkoutUrl", min_length=1)
    status: Optional[str] = None
    message: Optional[str] = None


class ErrorBody(BaseModel):
    """Error body: {"status": "error", "statusCode": N, "message": ...}"""
    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    status_code: Optional[int] = Field(default=None, alias="statusCode")
    message: Optional[str] = None


# ==================== RESULTS ====================

@dataclass(frozen=True)
class StagingSuccess:
    redirect_url: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class StagingFailure:
    kind: FailureKind
    message: str  # Safe to show to the user
    status_code: Optional[int] = None
    detail: Optional[str] = None  # Server or transport detail, for logs

    @property
    def ok(self) -> bool:
        return False

    @property
    def retryable(self) -> bool:
        return self.kind in (FailureKind.TRANSPORT, FailureKind.REMOTE_REJECTION)


StagingResult = Union[StagingSuccess, StagingFailure]
