"""
Purchasing Detection Rules (``procurement_modules.purchasing.rules``).

Responsibility
--------------
The built-in detection rules over purchasing lines and the factory that
assembles a configured ``DetectionEngine`` from them.

Architecture position
---------------------
**Modules layer** -- declarative rules.  Each detect function is pure:
it reads one item and the ``DetectionContext`` and returns
``DetectionResult`` descriptors.  Numbering, ids and timestamps are the
engine's job.

Rules
-----
=========================  ===============  ==========================================
Rule id                    Category         Fires when
=========================  ===============  ==========================================
quality_hold               quality_hold     shipment line has quantity on hold (high)
backorder                  backorder        PO line has backordered quantity (medium)
late_delivery              delivery         PO line open past its promised date
                                            (high beyond the critical day count,
                                            else medium)
invoice_price_variance     invoice          invoice unit price differs from the PO
                                            price beyond tolerance (high above the
                                            extended-value threshold, else low)
=========================  ===============  ==========================================

Thresholds come from ``DetectionContext.config`` and fall back to
``DEFAULT_THRESHOLDS``.  Items of the wrong type produce no results.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from procurement_config.bridges import (
    apply_detection_settings,
    build_detection_engine_config,
)
from procurement_config.schema import EngineConfigurationSet
from procurement_engines.detection import DetectionEngine
from procurement_engines.issues import create_related_object, create_suggested_action
from procurement_kernel.domain.clock import Clock
from procurement_kernel.domain.ids import IdGenerator, generate_id
from procurement_kernel.domain.issue import (
    ActionType,
    ActionUrgency,
    DetectionContext,
    DetectionEngineConfig,
    DetectionResult,
    DetectionRule,
    IssueNumberGenerator,
    IssuePriority,
    default_issue_number,
)
from procurement_kernel.logging_config import get_logger
from procurement_modules.purchasing.models import (
    InvoiceLine,
    PurchaseOrderLine,
    ShipmentLine,
)

logger = get_logger("modules.purchasing.rules")

DEFAULT_THRESHOLDS: dict[str, Decimal | int] = {
    "late_delivery_critical_days": 7,
    "invoice_variance_tolerance": Decimal("0.01"),
    "invoice_variance_high_threshold": Decimal("100"),
}


def _threshold(context: DetectionContext, name: str) -> Decimal:
    return Decimal(str(context.config.get(name, DEFAULT_THRESHOLDS[name])))


def _as_date(moment: datetime):
    return moment.date() if isinstance(moment, datetime) else moment


def _po_refs(po_number: str, line_id: str) -> tuple:
    return (
        create_related_object("purchase_order", po_number),
        create_related_object("purchase_order_line", line_id),
    )


# ---------------------------------------------------------------------------
# Detect functions
# ---------------------------------------------------------------------------


def detect_quality_hold(item: Any, context: DetectionContext) -> list[DetectionResult]:
    if not isinstance(item, ShipmentLine) or item.quantity_on_hold <= 0:
        return []
    reason = f" ({item.hold_reason})" if item.hold_reason else ""
    return [DetectionResult(
        category="quality_hold",
        priority=IssuePriority.HIGH,
        title=f"Quality hold on {item.item_code}",
        description=(
            f"{item.quantity_on_hold} of {item.quantity_shipped} units from shipment "
            f"{item.shipment_id} are on quality hold{reason}."
        ),
        suggested_action=create_suggested_action(
            ActionType.CREATE_NCR,
            "Raise non-conformance report",
            target=item.shipment_id,
            urgency=ActionUrgency.IMMEDIATE,
        ),
        related_objects=(
            create_related_object("shipment", item.shipment_id),
            create_related_object("purchase_order", item.po_number),
        ),
        affected_quantity=item.quantity_on_hold,
        source_data={"shipment_id": item.shipment_id, "line_id": item.line_id},
    )]


def detect_backorder(item: Any, context: DetectionContext) -> list[DetectionResult]:
    if not isinstance(item, PurchaseOrderLine) or item.quantity_backordered <= 0:
        return []
    return [DetectionResult(
        category="backorder",
        priority=IssuePriority.MEDIUM,
        title=f"Backorder on {item.po_number} line {item.line_id}",
        description=(
            f"Supplier {item.supplier_id} backordered {item.quantity_backordered} "
            f"of {item.quantity_ordered} units of {item.item_code}."
        ),
        suggested_action=create_suggested_action(
            ActionType.EMAIL,
            "Request revised ship date",
            target=item.supplier_id,
            urgency=ActionUrgency.SOON,
        ),
        related_objects=_po_refs(item.po_number, item.line_id),
        affected_quantity=item.quantity_backordered,
        affected_value=item.quantity_backordered * item.unit_price,
        source_data={"po_number": item.po_number, "line_id": item.line_id},
    )]


def detect_late_delivery(item: Any, context: DetectionContext) -> list[DetectionResult]:
    if not isinstance(item, PurchaseOrderLine) or item.promised_date is None:
        return []
    if item.quantity_open <= 0:
        return []
    days_overdue = (_as_date(context.current_date) - item.promised_date).days
    if days_overdue <= 0:
        return []

    critical_days = _threshold(context, "late_delivery_critical_days")
    is_critical = days_overdue > critical_days
    return [DetectionResult(
        category="delivery",
        priority=IssuePriority.HIGH if is_critical else IssuePriority.MEDIUM,
        title=f"{item.po_number} line {item.line_id} is {days_overdue} day(s) late",
        description=(
            f"{item.quantity_open} units of {item.item_code} promised for "
            f"{item.promised_date.isoformat()} have not been received."
        ),
        suggested_action=create_suggested_action(
            ActionType.ESCALATE if is_critical else ActionType.CALL,
            "Escalate to supplier" if is_critical else "Call supplier",
            target=item.supplier_id,
            urgency=ActionUrgency.IMMEDIATE if is_critical else ActionUrgency.SOON,
        ),
        related_objects=_po_refs(item.po_number, item.line_id),
        affected_quantity=item.quantity_open,
        affected_value=item.quantity_open * item.unit_price,
        source_data={"days_overdue": days_overdue},
    )]


def detect_invoice_price_variance(item: Any, context: DetectionContext) -> list[DetectionResult]:
    if not isinstance(item, InvoiceLine):
        return []
    tolerance = _threshold(context, "invoice_variance_tolerance")
    if abs(item.unit_variance) <= tolerance:
        return []

    extended = abs(item.extended_variance)
    high_threshold = _threshold(context, "invoice_variance_high_threshold")
    return [DetectionResult(
        category="invoice",
        priority=IssuePriority.HIGH if extended > high_threshold else IssuePriority.LOW,
        title=f"Price variance on invoice {item.invoice_number}",
        description=(
            f"Invoiced {item.unit_price} vs PO {item.po_unit_price} per unit "
            f"for {item.item_code}; extended variance {item.extended_variance}."
        ),
        suggested_action=create_suggested_action(
            ActionType.REVIEW,
            "Review invoice against PO",
            target=item.invoice_number,
            urgency=ActionUrgency.WHEN_POSSIBLE,
        ),
        related_objects=(
            create_related_object("invoice", item.invoice_number),
            create_related_object("purchase_order", item.po_number),
        ),
        affected_quantity=item.quantity_invoiced,
        affected_value=extended,
        source_data={
            "unit_variance": item.unit_variance,
            "extended_variance": item.extended_variance,
        },
    )]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


_RULE_SPECS: tuple[tuple[str, str, str, IssuePriority, Callable, str], ...] = (
    ("quality_hold", "Quality hold", "quality_hold", IssuePriority.HIGH,
     detect_quality_hold, "Shipment quantity placed on quality hold"),
    ("backorder", "Backorder", "backorder", IssuePriority.MEDIUM,
     detect_backorder, "Supplier backordered part of a PO line"),
    ("late_delivery", "Late delivery", "delivery", IssuePriority.MEDIUM,
     detect_late_delivery, "Open PO quantity past its promised date"),
    ("invoice_price_variance", "Invoice price variance", "invoice", IssuePriority.LOW,
     detect_invoice_price_variance, "Invoice unit price differs from PO price"),
)


def build_purchasing_rules() -> list[DetectionRule]:
    """Fresh, enabled instances of every built-in purchasing rule."""
    return [
        DetectionRule(
            id=rule_id,
            name=name,
            category=category,
            base_priority=base_priority,
            detect=detect,
            description=description,
        )
        for rule_id, name, category, base_priority, detect, description in _RULE_SPECS
    ]


def create_purchasing_detection_engine(
    config: EngineConfigurationSet | None = None,
    *,
    clock: Clock | None = None,
    generate_id: IdGenerator = generate_id,
    generate_issue_number: IssueNumberGenerator = default_issue_number,
    extra_default_config: Mapping[str, Any] | None = None,
) -> DetectionEngine:
    """Detection engine loaded with the purchasing rules.

    With ``config``, thresholds become the default context config and the
    configured rules are disabled.  Without it the rules run on
    ``DEFAULT_THRESHOLDS``.
    """
    if config is not None:
        engine_config = build_detection_engine_config(
            config, generate_id=generate_id, generate_issue_number=generate_issue_number,
        )
    else:
        engine_config = DetectionEngineConfig(
            generate_id=generate_id, generate_issue_number=generate_issue_number,
        )
    engine_config = replace(engine_config, default_config={
        **DEFAULT_THRESHOLDS,
        **engine_config.default_config,
        **(extra_default_config or {}),
    })

    engine = DetectionEngine(build_purchasing_rules(), config=engine_config, clock=clock)
    if config is not None:
        disabled = apply_detection_settings(engine, config)
        logger.info("purchasing_engine_configured", extra={
            "config_id": config.config_id,
            "disabled_rules": disabled,
        })
    return engine
