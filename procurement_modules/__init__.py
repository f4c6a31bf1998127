"""
Procurement domain modules.

Each subpackage supplies domain objects and the detection rules that
inspect them, and wires them onto the pure engines in
``procurement_engines`` using settings from ``procurement_config``.

Modules:
    purchasing -- PO lines, shipment lines, invoice lines; quality hold,
                  backorder, late delivery and invoice variance rules
"""
