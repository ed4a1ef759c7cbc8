"""Dependency graph models for license-gate.

A run builds one DependencyGraph from the lock structure: a flat,
deduplicated inventory of resolved packages (the SBOM), an index from
install path to entry, and a reverse-adjacency map used to explain why a
package is present.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field

from license_gate.constants import ROOT_MARKER


class DependencyEntry(BaseModel):
    """One resolved package instance from the lock structure.

    Entries are deduplicated by ``name@version``; the first install path
    seen for a given pair is the one recorded in ``path``.
    """

    model_config = {"extra": "forbid", "frozen": True, "populate_by_name": True}

    name: str = Field(description="Package name")
    version: str = Field(description="Package version, or UNKNOWN")
    license: Optional[str] = Field(
        default=None,
        description="Raw license expression as declared by the package",
    )
    path: str = Field(description="Install path in the lock structure (graph node key)")
    dependency_types: tuple[str, ...] = Field(
        default=("dependencies",),
        min_length=1,
        alias="dependencyTypes",
        description="Dependency relationships this package satisfies",
    )
    repository: Any = Field(
        default=None,
        description="Repository metadata passed through from the package manifest",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def label(self) -> str:
        """Display label in ``name@version`` form."""
        return f"{self.name}@{self.version}"

    def to_json(self) -> dict[str, Any]:
        """Return the entry as written to the SBOM file."""
        return {
            "name": self.name,
            "version": self.version,
            "license": self.license,
            "path": self.path,
            "repository": self.repository,
            "dependencyTypes": list(self.dependency_types),
        }


class DependencyGraph(BaseModel):
    """Resolved dependency inventory plus reverse adjacency.

    ``reverse_deps`` maps a child install path to its parent install paths
    in first-seen order. The project's direct dependencies point at
    ``ROOT_MARKER`` rather than at a real package.
    """

    model_config = {"extra": "forbid"}

    entries: list[DependencyEntry] = Field(
        default_factory=list,
        description="Deduplicated entries sorted by (name, version)",
    )
    node_index: dict[str, DependencyEntry] = Field(
        default_factory=dict,
        description="Install path to entry lookup",
    )
    reverse_deps: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Child install path to parent install paths",
    )

    def parents_of(self, path: str) -> list[str]:
        """Get recorded parents of a node (empty when none)."""
        return self.reverse_deps.get(path, [])

    def is_direct(self, path: str) -> bool:
        """True if the project root declares this node directly."""
        return ROOT_MARKER in self.parents_of(path)

    def filter_types(self, dependency_types: list[str]) -> list[DependencyEntry]:
        """Get entries owned by any of the given dependency types.

        Args:
            dependency_types: Dependency type names to keep.

        Returns:
            Entries in graph order.
        """
        # Lazy import to avoid circular dependency
        from license_gate.analysis.filtering import filter_by_dependency_types

        return filter_by_dependency_types(self.entries, dependency_types)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_count(self) -> int:
        """Number of entries in the inventory."""
        return len(self.entries)
