"""
Purchasing Module (``procurement_modules.purchasing``).

Responsibility
--------------
Purchasing line models and the built-in rules that detect quality holds,
backorders, late deliveries and invoice price variances on them.

Architecture position
---------------------
**Modules layer** -- domain objects and declarative rules.  All detection
runs through ``procurement_engines.detection.DetectionEngine``.
"""

from procurement_modules.purchasing.models import (
    InvoiceLine,
    PurchaseOrderLine,
    ShipmentLine,
)
from procurement_modules.purchasing.rules import (
    DEFAULT_THRESHOLDS,
    build_purchasing_rules,
    create_purchasing_detection_engine,
    detect_backorder,
    detect_invoice_price_variance,
    detect_late_delivery,
    detect_quality_hold,
)

__all__ = [
    "DEFAULT_THRESHOLDS",
    "InvoiceLine",
    "PurchaseOrderLine",
    "ShipmentLine",
    "build_purchasing_rules",
    "create_purchasing_detection_engine",
    "detect_backorder",
    "detect_invoice_price_variance",
    "detect_late_delivery",
    "detect_quality_hold",
]
