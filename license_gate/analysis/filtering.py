"""Dependency-type filtering of the SBOM."""

from __future__ import annotations

from typing import Any, Iterable, NamedTuple, Optional

from license_gate.constants import DEPENDENCY_TYPE_NAMES
from license_gate.exceptions import ConfigurationError
from license_gate.models.dependency import DependencyEntry


class FilterResult(NamedTuple):
    """Result of filtering entries by dependency type.

    Attributes:
        entries: Entries kept, in input order.
        excluded_count: Number of entries dropped.
        dependency_types: Normalized dependency types that were applied.
    """

    entries: list[DependencyEntry]
    excluded_count: int
    dependency_types: list[str]


def normalize_dependency_types(values: Optional[Iterable[Any]]) -> list[str]:
    """Validate and deduplicate dependency type names.

    Args:
        values: Dependency type names, or None.

    Returns:
        Unique names in first-seen order. None or an empty input yields
        all five dependency types.

    Raises:
        ConfigurationError: If a name is not a known dependency type.
    """
    if values is None:
        return list(DEPENDENCY_TYPE_NAMES)

    normalized: list[str] = []
    for raw in values:
        value = str(raw if raw is not None else "").strip()
        if value not in DEPENDENCY_TYPE_NAMES:
            raise ConfigurationError(
                f'Invalid dependency type "{value}". '
                f"Expected one of: {', '.join(DEPENDENCY_TYPE_NAMES)}"
            )
        if value not in normalized:
            normalized.append(value)

    return normalized if normalized else list(DEPENDENCY_TYPE_NAMES)


def parse_dependency_types_csv(text: Optional[str]) -> list[str]:
    """Parse a comma-separated list such as ``dependencies,peerDependencies``."""
    items = [item.strip() for item in str(text or "").split(",")]
    return normalize_dependency_types([item for item in items if item])


def filter_by_dependency_types(
    entries: Iterable[DependencyEntry],
    dependency_types: Optional[Iterable[str]],
) -> list[DependencyEntry]:
    """Keep entries owned by at least one of the wanted dependency types.

    Args:
        entries: SBOM entries.
        dependency_types: Wanted dependency types (None means all).

    Returns:
        Matching entries in input order.
    """
    return filter_entries(entries, dependency_types).entries


def filter_entries(
    entries: Iterable[DependencyEntry],
    dependency_types: Optional[Iterable[str]],
) -> FilterResult:
    """Filter entries by dependency type and report what was dropped.

    An entry without recorded types counts as a ``dependencies`` entry.
    """
    wanted = normalize_dependency_types(dependency_types)
    wanted_set = set(wanted)
    kept: list[DependencyEntry] = []
    excluded = 0

    for entry in entries:
        owning = entry.dependency_types or ("dependencies",)
        if any(dependency_type in wanted_set for dependency_type in owning):
            kept.append(entry)
        else:
            excluded += 1

    return FilterResult(entries=kept, excluded_count=excluded, dependency_types=wanted)
