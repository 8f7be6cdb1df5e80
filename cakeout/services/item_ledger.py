"""In-memory line items of an invoice draft.

Items are kept in insertion order and addressed by position; nothing gets a
stable id until the invoice is persisted. A line total is always derived from
quantity and unit price and can never be set directly.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Any

from cakeout.errors import ValidationError, ValidationErrorKind
from cakeout.services.pricing import ZERO, format_money, to_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineItem:
    """A single invoice line."""

    name: str
    quantity: int = 1
    unit_price: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit_price", to_amount(self.unit_price))

    @property
    def line_total(self) -> Decimal:
        """quantity * unit_price, recomputed on every access."""
        return self.quantity * self.unit_price

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the invoice create call."""
        return {
            "item_name": self.name,
            "quantity": self.quantity,
            "unit_price": format_money(self.unit_price),
            "total_price": format_money(self.line_total),
        }


def validate_line_item(item: LineItem) -> None:
    """Check a line item before it is stored.

    Raises:
        ValidationError: If the name is blank, the quantity is below 1 or
            the unit price is negative.
    """
    if not item.name or not item.name.strip():
        raise ValidationError(
            ValidationErrorKind.ITEM_NAME_REQUIRED,
            "Please enter an item name",
            field="item_name",
        )
    if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
        raise ValidationError(
            ValidationErrorKind.INVALID_QUANTITY,
            "Quantity must be a whole number of at least 1",
            field="quantity",
        )
    if item.unit_price < 0:
        raise ValidationError(
            ValidationErrorKind.INVALID_UNIT_PRICE,
            "Unit price cannot be negative",
            field="unit_price",
        )


def parse_quantity(value: Any) -> int:
    """Parse a quantity typed into the entry form; blank or zero becomes 1."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value or 1
    try:
        quantity = int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        return 1
    return quantity or 1


@dataclass
class ItemEntry:
    """The entry form buffer used to add a new line or edit an existing one."""

    name: str = ""
    quantity: int = 1
    unit_price: Decimal = field(default=ZERO)

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price

    def to_item(self) -> LineItem:
        return LineItem(name=self.name, quantity=self.quantity, unit_price=self.unit_price)


class ItemLedger:
    """Ordered collection of line items with an entry/edit buffer."""

    def __init__(self, items: Iterable[LineItem] = ()) -> None:
        self._items: list[LineItem] = []
        self.buffer = ItemEntry()
        self.editing_index: int | None = None
        for item in items:
            self.add(item)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[LineItem]:
        return iter(self._items)

    def __getitem__(self, index: int) -> LineItem:
        return self._items[self._check_index(index)]

    @property
    def items(self) -> tuple[LineItem, ...]:
        """Snapshot of the current items in insertion order."""
        return tuple(self._items)

    def _check_index(self, index: int) -> int:
        if not 0 <= index < len(self._items):
            raise IndexError(f"No line item at position {index}")
        return index

    def add(self, item: LineItem) -> int:
        """Append an item.

        Returns:
            The position of the new item.

        Raises:
            ValidationError: If the item is invalid; the ledger is unchanged.
        """
        validate_line_item(item)
        self._items.append(item)
        logger.debug("Added line item %r at position %d", item.name, len(self._items) - 1)
        return len(self._items) - 1

    def update(self, index: int, item: LineItem) -> LineItem:
        """Replace the item at a position in place."""
        self._check_index(index)
        validate_line_item(item)
        self._items[index] = item
        return item

    def edit(
        self,
        index: int,
        *,
        name: str | None = None,
        quantity: int | None = None,
        unit_price: Any = None,
    ) -> LineItem:
        """Change some fields of an item; its total follows the new values."""
        current = self._items[self._check_index(index)]
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if quantity is not None:
            changes["quantity"] = quantity
        if unit_price is not None:
            changes["unit_price"] = to_amount(unit_price)
        return self.update(index, replace(current, **changes))

    def remove(self, index: int) -> LineItem:
        """Remove the item at a position.

        Removing the row being edited discards the edit buffer. Removing a row
        above it keeps the buffer pointed at the same item.
        """
        removed = self._items.pop(self._check_index(index))
        if self.editing_index is not None:
            if self.editing_index == index:
                self.cancel_edit()
            elif self.editing_index > index:
                self.editing_index -= 1
        return removed

    # --- Entry buffer ---

    def begin_edit(self, index: int) -> ItemEntry:
        """Load an existing item into the buffer for editing."""
        item = self._items[self._check_index(index)]
        self.buffer = ItemEntry(name=item.name, quantity=item.quantity, unit_price=item.unit_price)
        self.editing_index = index
        return self.buffer

    def set_buffer(
        self,
        *,
        name: str | None = None,
        quantity: Any = None,
        unit_price: Any = None,
    ) -> ItemEntry:
        """Update buffer fields as the user types."""
        if name is not None:
            self.buffer.name = name
        if quantity is not None:
            self.buffer.quantity = parse_quantity(quantity)
        if unit_price is not None:
            self.buffer.unit_price = to_amount(unit_price)
        return self.buffer

    def commit(self) -> LineItem:
        """Store the buffer as a new item, or over the item being edited.

        The buffer is reset only when the item was accepted.
        """
        item = self.buffer.to_item()
        if self.editing_index is not None:
            self.update(self.editing_index, item)
        else:
            self.add(item)
        self.cancel_edit()
        return item

    def cancel_edit(self) -> None:
        """Reset the buffer to its defaults."""
        self.buffer = ItemEntry()
        self.editing_index = None
