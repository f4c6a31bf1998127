"""
procurement_config -- engine settings for revision tracking and issue detection.

Responsibility:
    Provides the way to obtain engine settings at runtime through
    ``get_default_config()`` (bundled defaults) or ``load_config(path)``
    (a caller-supplied YAML file).  Returns an ``EngineConfigurationSet``;
    bridges in ``procurement_config.bridges`` turn it into engine configs.

Architecture position:
    Configuration -- YAML-driven settings.  This package sits above
    ``procurement_kernel`` and ``procurement_engines`` and below
    ``procurement_modules``.  The kernel and engines MUST NEVER import from
    ``procurement_config``.

Invariants enforced:
    - Every returned set has passed structural validation in the loader.
    - Deterministic loading: the same YAML always produces the same
      ``EngineConfigurationSet`` checksum.

Failure modes:
    - ``ConfigurationNotFoundError`` -- the settings file does not exist.
    - ``InvalidConfigurationError`` -- structural validation failed.

Audit relevance:
    Every successful load emits a ``PROCUREMENT_CONFIG_TRACE`` log entry
    containing the config_id, version, checksum and rule toggles, tying
    detected issues and revisions back to the settings that governed them.
"""

from __future__ import annotations

from pathlib import Path

from procurement_config.loader import load_configuration
from procurement_config.schema import (
    DetectionSettings,
    EngineConfigurationSet,
    RevisionSettings,
)
from procurement_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "procurement.yaml"


def load_config(path: Path) -> EngineConfigurationSet:
    """Load, validate and trace one settings file."""
    config = load_configuration(Path(path))
    _logger.info(
        "PROCUREMENT_CONFIG_TRACE",
        extra={
            "trace_type": "PROCUREMENT_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "major_field_count": len(config.revision.major_change_fields),
            "minor_field_count": len(config.revision.minor_change_fields),
            "disabled_rules": list(config.detection.disabled_rules),
        },
    )
    return config


def get_default_config() -> EngineConfigurationSet:
    """The bundled ``defaults/procurement.yaml`` settings."""
    return load_config(DEFAULT_CONFIG_PATH)


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DetectionSettings",
    "EngineConfigurationSet",
    "RevisionSettings",
    "get_default_config",
    "load_config",
]
