"""
EngineConfigurationSet schema.

The human-authored, reviewable settings for the revision and detection
engines.  YAML files are parsed into these types by the loader and turned
into engine configs by the bridges.

Key distinction:
  EngineConfigurationSet = source artifact (human-authored, versioned)
  RevisionEngineConfig / DetectionEngineConfig = runtime engine inputs
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

# ---------------------------------------------------------------------------
# Revision engine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RevisionSettings:
    """Labels, significance tables and comparison defaults for revisions."""

    field_labels: Mapping[str, str] = field(default_factory=dict)
    major_change_fields: tuple[str, ...] = ()
    minor_change_fields: tuple[str, ...] = ()
    ignore_fields: tuple[str, ...] = ()
    max_depth: int | None = None  # None or 0 = unlimited
    include_unchanged: bool = False


# ---------------------------------------------------------------------------
# Detection engine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DetectionSettings:
    """Rule toggles and the thresholds handed to rules via DetectionContext.config."""

    disabled_rules: tuple[str, ...] = ()
    thresholds: Mapping[str, Decimal | int] = field(default_factory=dict)
    default_meta: Mapping[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfigurationSet:
    """One versioned set of engine settings."""

    config_id: str
    version: int
    revision: RevisionSettings = field(default_factory=RevisionSettings)
    detection: DetectionSettings = field(default_factory=DetectionSettings)
    description: str = ""
    checksum: str = ""
