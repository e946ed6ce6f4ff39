"""
Checkout Staging Client

Turns the session cart, or a single buy-now item, into a staged order on
the remote API and hands back the redirect target (a WhatsApp deep link).

Every outcome is returned as a StagingResult; nothing is raised past
this class. The cart is only touched after the server confirms the
order, so a failed attempt never loses cart contents. There is no
automatic retry: each call sends at most one request.
"""
from typing import Optional, Union

import httpx
from pydantic import ValidationError

from shophub.cart.models import LineItem
from shophub.cart.service import CartController
from shophub.config import CHECKOUT_CURRENCY, HTTP_CONNECT_TIMEOUT, HTTP_TIMEOUT, get_stage_url
from shophub.errors import (
    ERROR_BUY_NOW_FAILED,
    ERROR_CHECKOUT_ABANDONED,
    ERROR_CHECKOUT_FAILED,
    ERROR_CLIENT_NAME_REQUIRED,
    ERROR_EMPTY_CART,
    ERROR_INVALID_QUANTITY,
    ERROR_MALFORMED_RESPONSE,
    FailureKind,
)
from shophub.logging import get_logger, sanitize_string_for_logging
from shophub.money import to_json_number
from .models import (
    CartSource,
    ErrorBody,
    SingleItem,
    StagedProduct,
    StagingFailure,
    StagingRequest,
    StagingResponse,
    StagingResult,
    StagingSuccess,
    WholeCart,
)

logger = get_logger(__name__)


def _validation_message(e: ValidationError) -> str:
    """First validator message without pydantic's "Value error, " prefix."""
    errors = e.errors()
    if not errors:
        return str(e)
    msg = errors[0].get("msg", str(e))
    return msg.removeprefix("Value error, ")


class _Prepared:
    """A request ready to send, plus what to settle on success."""

    def __init__(self, request: StagingRequest, lines: list[LineItem], revision: Optional[int]):
        self.request = request
        self.lines = lines
        self.revision = revision


class CheckoutStagingClient:
    """Stages orders against POST {API_URL}/admin/orders/stage."""

    def __init__(
        self,
        controller: CartController,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        currency: str = CHECKOUT_CURRENCY,
        cookies: dict | None = None,
    ):
        self.controller = controller
        self.stage_url = get_stage_url(base_url)
        self.currency = currency
        self._cookies = cookies
        self._http_client = http_client
        self._owns_client = http_client is None
        # Bumped by abandon(); responses carrying an older token are dropped
        self._generation = 0

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy creation of shared httpx client with timeouts."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(HTTP_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
                cookies=self._cookies,
            )
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "CheckoutStagingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def abandon(self) -> None:
        """The user left checkout: late responses must not be applied."""
        self._generation += 1

    async def stage_cart(self, client_name: str) -> StagingResult:
        return await self.stage(WholeCart(), client_name)

    async def stage_single_item(self, item: LineItem, client_name: str) -> StagingResult:
        return await self.stage(SingleItem(item), client_name)

    async def stage(self, source: CartSource, client_name: str) -> StagingResult:
        token = self._generation
        default_message = ERROR_CHECKOUT_FAILED if isinstance(source, WholeCart) else ERROR_BUY_NOW_FAILED

        prepared = await self._prepare(source, client_name)
        if isinstance(prepared, StagingFailure):
            logger.info("Staging rejected locally: %s", prepared.message)
            return prepared

        logger.info(
            "Staging order for %s: %d product(s), total %s %s",
            sanitize_string_for_logging(prepared.request.client_name),
            len(prepared.request.products),
            prepared.request.total_amount,
            prepared.request.currency,
        )

        try:
            client = await self._get_http_client()
            response = await client.post(self.stage_url, json=prepared.request.to_wire())
        except httpx.TimeoutException as e:
            logger.warning("Staging request timed out: %s", e)
            return self._after(token, StagingFailure(FailureKind.TRANSPORT, default_message, detail="Timeout"))
        except httpx.RequestError as e:
            logger.warning("Staging request failed: %s", e)
            return self._after(token, StagingFailure(FailureKind.TRANSPORT, default_message, detail=str(e)))
        except httpx.InvalidURL as e:
            logger.error("Staging URL %s is invalid: %s", self.stage_url, e)
            return self._after(token, StagingFailure(FailureKind.TRANSPORT, default_message, detail=str(e)))

        result = self._after(token, self._parse_response(response, default_message))
        if isinstance(result, StagingSuccess) and isinstance(source, WholeCart):
            await self.controller.settle(prepared.lines, prepared.revision)
        return result

    def _after(self, token: int, result: StagingResult) -> StagingResult:
        if token == self._generation:
            return result
        logger.info("Dropping staging response for an abandoned checkout (ok=%s)", result.ok)
        return StagingFailure(FailureKind.ABANDONED, ERROR_CHECKOUT_ABANDONED)

    async def _prepare(self, source: CartSource, client_name: str) -> Union[_Prepared, StagingFailure]:
        if not client_name or not client_name.strip():
            return StagingFailure(FailureKind.VALIDATION, ERROR_CLIENT_NAME_REQUIRED)

        if isinstance(source, WholeCart):
            cart = await self.controller.hydrate()
            if cart.is_empty:
                return StagingFailure(FailureKind.VALIDATION, ERROR_EMPTY_CART)
            lines = cart.items
            revision: Optional[int] = cart.revision
            total = cart.total
            products = [self._product(line, line.name, line.quantity) for line in lines]
        else:
            quantity = source.quantity
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                return StagingFailure(FailureKind.VALIDATION, ERROR_INVALID_QUANTITY)
            item = source.item
            lines = [item.copy(quantity=quantity)]
            revision = None
            total = lines[0].line_total
            products = [self._product(item, item.description or item.name, quantity)]

        try:
            request = StagingRequest(
                client_name=client_name,
                products=[StagedProduct(**p) for p in products],
                total_amount=to_json_number(total),
                currency=self.currency,
            )
        except ValidationError as e:
            return StagingFailure(FailureKind.VALIDATION, _validation_message(e))

        return _Prepared(request, lines, revision)

    @staticmethod
    def _product(item: LineItem, description: str, quantity: int) -> dict:
        return {
            "product_id": item.product_id,
            "description": description,
            "thumbnail": item.thumbnail,
            "quantity": quantity,
            "unit_price": to_json_number(item.unit_price),
        }

    @staticmethod
    def _parse_response(response: httpx.Response, default_message: str) -> StagingResult:
        if not response.is_success:
            detail = None
            try:
                detail = ErrorBody.model_validate(response.json()).message
            except (ValueError, ValidationError):
                detail = response.text[:200] if response.text else None
            logger.error("Staging rejected with HTTP %s: %s", response.status_code, detail)
            return StagingFailure(
                FailureKind.REMOTE_REJECTION,
                default_message,
                status_code=response.status_code,
                detail=detail,
            )

        try:
            body = StagingResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Malformed staging response: %s", e)
            return StagingFailure(
                FailureKind.REMOTE_REJECTION,
                default_message,
                status_code=response.status_code,
                detail=ERROR_MALFORMED_RESPONSE,
            )

        logger.info("Order staged, redirecting to %s", sanitize_string_for_logging(body.checkout_url, 40))
        return StagingSuccess(body.checkout_url)
