"""
Config -> Engine Bridges.

Functions that convert an EngineConfigurationSet into engine inputs.  They
live in procurement_config (the producer) because the engines must NEVER
import procurement_config.

Usage:
    from procurement_config import get_default_config
    from procurement_config.bridges import build_revision_engine_config

    config = get_default_config()
    engine = RevisionEngine(build_revision_engine_config(config), clock)
"""

from __future__ import annotations

from procurement_config.schema import EngineConfigurationSet
from procurement_engines.detection import DetectionEngine
from procurement_engines.revision import RevisionEngineConfig
from procurement_kernel.domain.ids import IdGenerator, generate_id
from procurement_kernel.domain.issue import (
    DetectionEngineConfig,
    IssueNumberGenerator,
    default_issue_number,
)
from procurement_kernel.domain.revision import ComparisonOptions
from procurement_kernel.logging_config import get_logger

logger = get_logger("config.bridges")


def build_revision_engine_config(
    config: EngineConfigurationSet,
    generate_id: IdGenerator = generate_id,
) -> RevisionEngineConfig:
    """Revision engine config from the ``revision`` settings section."""
    settings = config.revision
    return RevisionEngineConfig(
        generate_id=generate_id,
        default_comparison_options=ComparisonOptions(
            max_depth=settings.max_depth,
            include_unchanged=settings.include_unchanged,
        ),
        field_labels=dict(settings.field_labels),
        major_change_fields=settings.major_change_fields,
        minor_change_fields=settings.minor_change_fields,
        ignore_fields=settings.ignore_fields,
    )


def build_detection_engine_config(
    config: EngineConfigurationSet,
    generate_id: IdGenerator = generate_id,
    generate_issue_number: IssueNumberGenerator = default_issue_number,
) -> DetectionEngineConfig:
    """Detection engine config; thresholds become the default context config."""
    settings = config.detection
    return DetectionEngineConfig(
        generate_id=generate_id,
        generate_issue_number=generate_issue_number,
        default_config=dict(settings.thresholds),
        default_meta=dict(settings.default_meta),
    )


def apply_detection_settings(
    engine: DetectionEngine,
    config: EngineConfigurationSet,
) -> list[str]:
    """Disable the rules listed in ``detection.disabled_rules``.

    Returns the ids that were actually disabled; ids the engine does not
    know are logged and skipped.
    """
    disabled: list[str] = []
    for rule_id in config.detection.disabled_rules:
        if engine.set_rule_enabled(rule_id, False):
            disabled.append(rule_id)
        else:
            logger.warning("config_disabled_rule_unknown", extra={
                "rule_id": rule_id,
                "config_id": config.config_id,
            })
    return disabled
