"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Iterator, List, Optional

from shophub.money import multiply, parse_price


def _parse_quantity(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"quantity must be an integer, got {type(value).__name__}")
    if value < 1:
        raise ValueError(f"quantity must be >= 1, got {value}")
    return value


@dataclass
class LineItem:
    """One product and its quantity in the cart."""
    product_id: str
    name: str
    thumbnail: str
    unit_price: Decimal
    quantity: int = 1
    old_price: Optional[Decimal] = None  # Shown struck through for discounts
    is_deal: bool = False
    description: Optional[str] = None  # Buy-now staging only; falls back to name

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValueError("product_id must be a non-empty string")
        # Normalize numeric fields
        self.unit_price = parse_price(self.unit_price)
        if self.old_price is not None:
            self.old_price = parse_price(self.old_price)
        self.quantity = _parse_quantity(self.quantity)

    @property
    def line_total(self) -> Decimal:
        """Price for all units of this line."""
        return multiply(self.unit_price, self.quantity)

    def copy(self, **changes) -> "LineItem":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary for the persisted snapshot."""
        data = {
            "product_id": self.product_id,
            "name": self.name,
            "thumbnail": self.thumbnail,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "is_deal": self.is_deal,
        }
        if self.old_price is not None:
            data["old_price"] = str(self.old_price)
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        """
        Create from dictionary.

        Raises KeyError, TypeError or ValueError on malformed data; callers
        loading persisted state treat any of them as "no snapshot".
        """
        if not isinstance(data, dict):
            raise TypeError(f"line item must be an object, got {type(data).__name__}")
        name = data["name"]
        thumbnail = data["thumbnail"]
        if not isinstance(name, str) or not isinstance(thumbnail, str):
            raise TypeError("name and thumbnail must be strings")
        is_deal = data.get("is_deal", False)
        if not isinstance(is_deal, bool):
            raise TypeError("is_deal must be a boolean")
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise TypeError("description must be a string")
        return cls(
            product_id=data["product_id"],
            name=name,
            thumbnail=thumbnail,
            unit_price=data["unit_price"],
            quantity=data["quantity"],
            old_price=data.get("old_price"),
            is_deal=is_deal,
            description=description,
        )


@dataclass
class Cart:
    """
    Shopping cart aggregate.

    Holds at most one LineItem per product_id, each with quantity >= 1.
    Totals are recomputed on every read. ``revision`` increases on every
    accepted mutation so callers can tell whether the cart changed while
    they were waiting on I/O.
    """
    _items: List[LineItem] = field(default_factory=list)
    revision: int = 0

    def __post_init__(self):
        seen = set()
        for item in self._items:
            if item.product_id in seen:
                raise ValueError(f"duplicate product_id in cart: {item.product_id}")
            seen.add(item.product_id)

    # -- reads ---------------------------------------------------------------

    @property
    def items(self) -> List[LineItem]:
        """Line items in display order (a copy; mutate through the cart)."""
        return [item.copy() for item in self._items]

    @property
    def total(self) -> Decimal:
        """Sum of unit_price * quantity over all items."""
        return sum((item.line_total for item in self._items), Decimal("0"))

    @property
    def count(self) -> int:
        """Total number of units in the cart."""
        return sum(item.quantity for item in self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, product_id: str) -> Optional[LineItem]:
        item = self._find(product_id)
        return item.copy() if item else None

    def contains(self, product_id: str) -> bool:
        return self._find(product_id) is not None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[LineItem]:
        return iter(self.items)

    # -- mutations -----------------------------------------------------------

    def add(self, item: LineItem, quantity: int = 1) -> LineItem:
        """
        Add ``quantity`` units of ``item``.

        An existing line with the same product_id is incremented; the
        stored name, thumbnail and prices are kept. Otherwise the item is
        appended with exactly ``quantity`` units. Returns the resulting line.
        """
        quantity = _parse_quantity(quantity)
        existing = self._find(item.product_id)
        if existing:
            existing.quantity += quantity
            result = existing
        else:
            result = item.copy(quantity=quantity)
            self._items.append(result)
        self.revision += 1
        return result.copy()

    def update_quantity(self, product_id: str, quantity: int) -> bool:
        """
        Set a line's quantity exactly; <= 0 removes it.

        Returns False (and leaves the cart untouched) when product_id is absent.
        """
        existing = self._find(product_id)
        if existing is None:
            return False
        if quantity <= 0:
            self._items.remove(existing)
        else:
            existing.quantity = _parse_quantity(quantity)
        self.revision += 1
        return True

    def remove(self, product_id: str) -> bool:
        """Remove a line if present. Returns whether anything was removed."""
        existing = self._find(product_id)
        if existing is None:
            return False
        self._items.remove(existing)
        self.revision += 1
        return True

    def clear(self) -> None:
        self._items = []
        self.revision += 1

    def deduct(self, lines: List[LineItem]) -> None:
        """Subtract the given quantities, dropping lines that reach zero."""
        for line in lines:
            existing = self._find(line.product_id)
            if existing is not None:
                self.update_quantity(line.product_id, existing.quantity - line.quantity)

    # -- persistence ---------------------------------------------------------

    def to_payload(self) -> dict:
        """Snapshot payload stored beside capturedAt."""
        return {"items": [item.to_dict() for item in self._items]}

    @classmethod
    def from_payload(cls, payload: dict) -> "Cart":
        """
        Rebuild a cart from a snapshot payload.

        Raises KeyError, TypeError or ValueError on any malformed item or
        duplicate product_id; no partial recovery.
        """
        raw_items = payload["items"]
        if not isinstance(raw_items, list):
            raise TypeError("items must be a list")
        return cls([LineItem.from_dict(raw) for raw in raw_items])

    def _find(self, product_id: str) -> Optional[LineItem]:
        return next((item for item in self._items if item.product_id == product_id), None)
