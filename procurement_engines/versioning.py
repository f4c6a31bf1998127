"""
procurement_engines.versioning -- Semantic version parse/format/compare/increment.

Responsibility:
    The version model used by revision lifecycles.  Versions are
    ``major.minor.patch`` with an optional pre-release label.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Depends only on
    ``procurement_kernel.domain.revision`` value types.

Invariants enforced:
    - Ordering is total: major, then minor, then patch, then
      pre-release before release.  ``compare_versions`` is antisymmetric.
    - Every bump yields a strictly greater version; a major bump resets
      minor and patch, a minor bump resets patch.

Failure modes:
    - ``parse_version`` never raises for string input: missing or
      non-numeric segments default to ``0``.
    - ``increment_version`` raises ``ValueError`` for a bump that is not a
      ``ChangeSignificance`` value (programming error).
"""

from __future__ import annotations

from procurement_kernel.domain.revision import ChangeSignificance, SemanticVersion


def _parse_segment(segment: str | None) -> int:
    if not segment:
        return 0
    try:
        value = int(segment.strip())
    except ValueError:
        return 0
    return value if value >= 0 else 0


def parse_version(version_string: str) -> SemanticVersion:
    """Parse ``"1.2.3"`` or ``"1.2.3-rc1"`` into a SemanticVersion.

    Only the first ``-`` separates the label, so ``"2.0.0-rc-1"`` carries the
    label ``"rc-1"``.
    """
    core, _, pre_release = version_string.strip().partition("-")
    segments = core.split(".")
    padded = (segments + [None, None, None])[:3]
    major, minor, patch = (_parse_segment(s) for s in padded)
    return SemanticVersion(
        major=major,
        minor=minor,
        patch=patch,
        pre_release=pre_release or None,
    )


def format_version(version: SemanticVersion) -> str:
    base = f"{version.major}.{version.minor}.{version.patch}"
    return f"{base}-{version.pre_release}" if version.pre_release else base


def compare_versions(a: SemanticVersion, b: SemanticVersion) -> int:
    """Negative if ``a < b``, zero if equal in ordering, positive if ``a > b``."""
    if a.major != b.major:
        return a.major - b.major
    if a.minor != b.minor:
        return a.minor - b.minor
    if a.patch != b.patch:
        return a.patch - b.patch
    if a.pre_release and not b.pre_release:
        return -1
    if not a.pre_release and b.pre_release:
        return 1
    return 0


def increment_version(
    version: SemanticVersion,
    bump: ChangeSignificance | str,
) -> SemanticVersion:
    """Return the next version for ``bump``; the pre-release label is dropped."""
    bump = ChangeSignificance(bump)
    if bump is ChangeSignificance.MAJOR:
        return SemanticVersion(version.major + 1, 0, 0)
    if bump is ChangeSignificance.MINOR:
        return SemanticVersion(version.major, version.minor + 1, 0)
    return SemanticVersion(version.major, version.minor, version.patch + 1)


def create_initial_version(pre_release: str | None = None) -> SemanticVersion:
    return SemanticVersion(1, 0, 0, pre_release)


def is_newer_version(a: SemanticVersion, b: SemanticVersion) -> bool:
    return compare_versions(a, b) > 0
