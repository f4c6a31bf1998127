"""
Purchasing Domain Models (``procurement_modules.purchasing.models``).

Responsibility
--------------
Frozen value objects for the purchasing lines that detection rules
inspect: purchase-order lines, inbound shipment lines and supplier invoice
lines.

Architecture position
---------------------
**Modules layer** -- pure data definitions.  No I/O.  These objects flow
into ``DetectionEngine.detect``/``detect_batch`` as items.

Invariants enforced
-------------------
* All quantity and money fields use ``Decimal`` (never ``float``).
* All dataclasses are ``frozen=True``.
* ``__post_init__`` rejects negative quantities.

Failure modes
-------------
* ``ValueError`` raised in ``__post_init__`` when a quantity is negative.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


def _require_non_negative(owner: str, **quantities: Decimal) -> None:
    for name, value in quantities.items():
        if value < 0:
            raise ValueError(f"{owner}.{name} must not be negative: {value}")


@dataclass(frozen=True)
class PurchaseOrderLine:
    """One ordered item on a purchase order."""

    po_number: str
    line_id: str
    item_code: str
    supplier_id: str
    quantity_ordered: Decimal = Decimal("0")
    quantity_received: Decimal = Decimal("0")
    quantity_backordered: Decimal = Decimal("0")
    unit_price: Decimal = Decimal("0")
    promised_date: date | None = None
    description: str = ""

    def __post_init__(self) -> None:
        _require_non_negative(
            "PurchaseOrderLine",
            quantity_ordered=self.quantity_ordered,
            quantity_received=self.quantity_received,
            quantity_backordered=self.quantity_backordered,
        )

    @property
    def quantity_open(self) -> Decimal:
        """Ordered but not yet received; never negative."""
        return max(self.quantity_ordered - self.quantity_received, Decimal("0"))


@dataclass(frozen=True)
class ShipmentLine:
    """One line of an inbound shipment against a PO line."""

    shipment_id: str
    line_id: str
    po_number: str
    item_code: str
    quantity_shipped: Decimal = Decimal("0")
    quantity_on_hold: Decimal = Decimal("0")
    hold_reason: str | None = None

    def __post_init__(self) -> None:
        _require_non_negative(
            "ShipmentLine",
            quantity_shipped=self.quantity_shipped,
            quantity_on_hold=self.quantity_on_hold,
        )


@dataclass(frozen=True)
class InvoiceLine:
    """One supplier invoice line with the PO price it bills against."""

    invoice_number: str
    line_id: str
    po_number: str
    item_code: str
    quantity_invoiced: Decimal
    unit_price: Decimal
    po_unit_price: Decimal

    def __post_init__(self) -> None:
        _require_non_negative("InvoiceLine", quantity_invoiced=self.quantity_invoiced)

    @property
    def unit_variance(self) -> Decimal:
        """Invoice price minus PO price (positive = overbilled)."""
        return self.unit_price - self.po_unit_price

    @property
    def extended_variance(self) -> Decimal:
        return self.unit_variance * self.quantity_invoiced
