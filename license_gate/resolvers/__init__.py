"""Lock structure readers for license-gate."""

from license_gate.resolvers.lockfile import (
    build_dependency_graph,
    extract_license,
    load_dependency_graph,
    resolve_dependency_path,
)

__all__ = [
    "build_dependency_graph",
    "extract_license",
    "load_dependency_graph",
    "resolve_dependency_path",
]
