"""
Pytest fixtures for the procurement engines test suite.

Provides:
- Structured logging configuration and log capture
- Deterministic clocks and id generators
- Engine factories wired to the deterministic fixtures
- Purchasing line builders
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from procurement_engines.detection import DetectionEngine
from procurement_engines.revision import RevisionEngine, RevisionEngineConfig
from procurement_kernel.domain.clock import DeterministicClock
from procurement_kernel.domain.ids import SequentialIdGenerator
from procurement_kernel.domain.issue import DetectionEngineConfig
from procurement_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from procurement_modules.purchasing.models import (
    InvoiceLine,
    PurchaseOrderLine,
    ShipmentLine,
)

FIXED_NOW = datetime(2026, 1, 15, 9, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture procurement_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, revision_engine):
            revision_engine.create_document("purchase_order", {}, "alice")
            logs = captured_logs()
            assert any(r["message"] == "document_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("procurement_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and id fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock fixed at 2026-01-15 09:00 UTC."""
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def sequential_ids():
    return SequentialIdGenerator()


# =============================================================================
# Engine fixtures
# =============================================================================


@pytest.fixture
def make_revision_engine(deterministic_clock, sequential_ids):
    """Factory for revision engines sharing the deterministic clock and ids."""

    def _make(**config_kwargs) -> RevisionEngine:
        config = RevisionEngineConfig(generate_id=sequential_ids, **config_kwargs)
        return RevisionEngine(config, deterministic_clock)

    return _make


@pytest.fixture
def revision_engine(make_revision_engine):
    return make_revision_engine()


@pytest.fixture
def make_detection_engine(deterministic_clock, sequential_ids):
    """Factory for detection engines over the given rules."""

    def _make(rules, **config_kwargs) -> DetectionEngine:
        config = DetectionEngineConfig(generate_id=sequential_ids, **config_kwargs)
        return DetectionEngine(rules, config=config, clock=deterministic_clock)

    return _make


# =============================================================================
# Purchasing builders
# =============================================================================


@pytest.fixture
def make_po_line():
    def _make(**overrides) -> PurchaseOrderLine:
        values = dict(
            po_number="PO-0861",
            line_id="L-1",
            item_code="BRKT-220",
            supplier_id="SUP-ACME",
            quantity_ordered=Decimal("100"),
            quantity_received=Decimal("0"),
            quantity_backordered=Decimal("0"),
            unit_price=Decimal("12.50"),
            promised_date=date(2026, 1, 20),
        )
        values.update(overrides)
        return PurchaseOrderLine(**values)

    return _make


@pytest.fixture
def make_shipment_line():
    def _make(**overrides) -> ShipmentLine:
        values = dict(
            shipment_id="SHP-3001",
            line_id="SL-1",
            po_number="PO-0861",
            item_code="BRKT-220",
            quantity_shipped=Decimal("40"),
            quantity_on_hold=Decimal("0"),
        )
        values.update(overrides)
        return ShipmentLine(**values)

    return _make


@pytest.fixture
def make_invoice_line():
    def _make(**overrides) -> InvoiceLine:
        values = dict(
            invoice_number="INV-5521",
            line_id="IL-1",
            po_number="PO-0861",
            item_code="BRKT-220",
            quantity_invoiced=Decimal("40"),
            unit_price=Decimal("12.50"),
            po_unit_price=Decimal("12.50"),
        )
        values.update(overrides)
        return InvoiceLine(**values)

    return _make
