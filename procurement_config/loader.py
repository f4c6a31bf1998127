"""
Configuration Loader (``procurement_config.loader``).

Responsibility
--------------
Loads YAML settings files and parses them into typed
``procurement_config.schema`` dataclass instances.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel only
for its exception types; engines never import this module.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Structural problems raise ``InvalidConfigurationError`` naming the
  offending section; nothing is silently defaulted except absent
  optional keys.
* A path may not be both a major and a minor change field.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  settings for identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``ConfigurationNotFoundError``.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id``/``version`` or wrong value types
  -> ``InvalidConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from procurement_config.schema import (
    DetectionSettings,
    EngineConfigurationSet,
    RevisionSettings,
)
from procurement_kernel.exceptions import (
    ConfigurationNotFoundError,
    InvalidConfigurationError,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigurationNotFoundError: if the file does not exist.
        InvalidConfigurationError: if the document is not a mapping.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationNotFoundError(str(path))
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidConfigurationError("root", "document must be a mapping")
    return data


def _string_tuple(section: str, value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise InvalidConfigurationError(section, "expected a list of strings")
    return tuple(value)


def _mapping(section: str, value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidConfigurationError(section, "expected a mapping")
    return dict(value)


def _threshold(name: str, value: Any) -> Decimal | int:
    """Integers stay integers (day counts); everything else becomes Decimal."""
    if isinstance(value, bool):
        raise InvalidConfigurationError(f"detection.thresholds.{name}", "boolean is not a threshold")
    if isinstance(value, int):
        parsed: Decimal | int = value
    else:
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            raise InvalidConfigurationError(
                f"detection.thresholds.{name}", f"not a number: {value!r}",
            ) from None
    if parsed < 0:
        raise InvalidConfigurationError(f"detection.thresholds.{name}", "must not be negative")
    return parsed


def parse_revision_settings(data: dict[str, Any]) -> RevisionSettings:
    """Parse RevisionSettings from the ``revision`` section."""
    labels = _mapping("revision.field_labels", data.get("field_labels"))
    major = _string_tuple("revision.major_change_fields", data.get("major_change_fields"))
    minor = _string_tuple("revision.minor_change_fields", data.get("minor_change_fields"))
    overlap = sorted(set(major) & set(minor))
    if overlap:
        raise InvalidConfigurationError(
            "revision", f"paths listed as both major and minor: {', '.join(overlap)}",
        )

    max_depth = data.get("max_depth")
    if max_depth is not None and (
        isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0
    ):
        raise InvalidConfigurationError("revision.max_depth", "expected a non-negative integer")

    include_unchanged = data.get("include_unchanged", False)
    if not isinstance(include_unchanged, bool):
        raise InvalidConfigurationError("revision.include_unchanged", "expected a boolean")

    return RevisionSettings(
        field_labels={str(k): str(v) for k, v in labels.items()},
        major_change_fields=major,
        minor_change_fields=minor,
        ignore_fields=_string_tuple("revision.ignore_fields", data.get("ignore_fields")),
        max_depth=max_depth,
        include_unchanged=include_unchanged,
    )


def parse_detection_settings(data: dict[str, Any]) -> DetectionSettings:
    """Parse DetectionSettings from the ``detection`` section."""
    thresholds = _mapping("detection.thresholds", data.get("thresholds"))
    return DetectionSettings(
        disabled_rules=_string_tuple("detection.disabled_rules", data.get("disabled_rules")),
        thresholds={str(k): _threshold(str(k), v) for k, v in thresholds.items()},
        default_meta=_mapping("detection.default_meta", data.get("default_meta")),
    )


def parse_configuration(data: dict[str, Any]) -> EngineConfigurationSet:
    """Parse a complete EngineConfigurationSet from a loaded document."""
    if "config_id" not in data:
        raise InvalidConfigurationError("root", "missing config_id")
    version = data.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise InvalidConfigurationError("root", "version must be an integer")

    return EngineConfigurationSet(
        config_id=str(data["config_id"]),
        version=version,
        description=str(data.get("description", "")),
        revision=parse_revision_settings(_mapping("revision", data.get("revision"))),
        detection=parse_detection_settings(_mapping("detection", data.get("detection"))),
        checksum=compute_checksum(data),
    )


def load_configuration(path: Path) -> EngineConfigurationSet:
    """Load and parse one YAML settings file."""
    return parse_configuration(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums regardless of
    key order.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
