"""
procurement_engines.tracer -- Engine invocation tracer emitting PROCUREMENT_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps engine
    entry points (comparison, detection) with structured trace logging.
    The trace captures engine_name, engine_version, input_fingerprint
    (deterministic SHA-256 hash of selected arguments) and duration_ms.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; does not mutate inputs or results.

Invariants enforced:
    - Fingerprint computation is deterministic: mappings are canonicalized
      with sorted keys, dataclasses through their fields, sequences in order.
    - Arguments are bound against the wrapped function's signature, so
      positional and keyword calls fingerprint identically.

Failure modes:
    - Fingerprint fields that are not bound in a call are recorded as "null".
    - ``_canonicalize`` falls back to ``str(value)`` for unknown types.

Usage:
    from procurement_engines.tracer import traced_engine

    @traced_engine("comparator", "1.0", fingerprint_fields=("old", "new"))
    def calculate_changes(old, new, options=None):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any

# Tracer uses its own logger namespace; configured by the application root.
_logger = logging.getLogger("procurement_kernel.engines.tracer")


def _canonicalize(value: Any) -> str:
    """Produce a stable string representation of a value for fingerprinting."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (bool, int, float, str)):
        return str(value)
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    if is_dataclass(value) and not isinstance(value, type):
        parts = (f"{f.name}:{_canonicalize(getattr(value, f.name))}" for f in fields(value))
        return type(value).__name__ + "(" + ",".join(parts) + ")"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Compute a 16-char SHA-256 prefix over the selected bound arguments."""
    parts: list[str] = []
    for name in fingerprint_fields:
        parts.append(f"{name}={_canonicalize(arguments.get(name))}")
    canonical = "|".join(parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits PROCUREMENT_ENGINE_TRACE for engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "comparator").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names to include in the input
            fingerprint hash.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fp = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "PROCUREMENT_ENGINE_TRACE",
                extra={
                    "trace_type": "PROCUREMENT_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
