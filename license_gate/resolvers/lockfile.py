"""Dependency graph construction from an npm lock structure.

Reads ``package-lock.json`` (lockfile v2/v3 ``packages`` map) together with
the project's ``package.json`` and builds the SBOM entries, the install path
index and the reverse dependency map used for upstream explanations.
"""

from __future__ import annotations

import json
import logging
import posixpath
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from license_gate.constants import (
    ROOT_MARKER,
    UNKNOWN_LICENSE,
    UNKNOWN_VERSION,
)
from license_gate.exceptions import LockfileError
from license_gate.models.dependency import DependencyEntry, DependencyGraph

logger = logging.getLogger(__name__)

NODE_MODULES = "node_modules"

# Lock metadata flag -> dependency type it implies
LOCK_FLAG_TYPES = {
    "dev": "devDependencies",
    "optional": "optionalDependencies",
    "peer": "peerDependencies",
    "inBundle": "bundledDependencies",
}

# Manifest sections declaring direct dependencies by type
MANIFEST_SECTIONS = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)

# Sections whose names are followed as edges out of a lock node
EDGE_SECTIONS = ("dependencies", "optionalDependencies", "peerDependencies")

ManifestLookup = Callable[[str], Optional[Mapping[str, Any]]]


def extract_license(manifest: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Extract a license expression from a ``package.json`` manifest.

    Args:
        manifest: Parsed manifest, or None.

    Returns:
        ``license`` (or legacy ``licenses``) as an expression. Arrays of
        strings or ``{type}``/``{name}`` objects are joined with `` OR ``.
        None if no usable value is present.
    """
    if not manifest:
        return None
    value = manifest.get("license") or manifest.get("licenses")
    if not value:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        names = [_license_name(item) for item in value]
        joined = " OR ".join(name for name in names if name)
        return joined or None
    if isinstance(value, dict):
        return _license_name(value)
    return None


def _license_name(item: Any) -> Optional[str]:
    if isinstance(item, str):
        return item or None
    if isinstance(item, dict):
        name = item.get("type") or item.get("name")
        return str(name) if name else None
    return None


def name_from_path(key: str) -> Optional[str]:
    """Get the package name from an install path.

    ``node_modules/a/node_modules/@scope/b`` yields ``@scope/b``.
    """
    parts = [part for part in str(key or "").split(f"{NODE_MODULES}/") if part]
    if not parts:
        return None
    return parts[-1].rstrip("/") or None


def resolve_dependency_path(
    packages: Mapping[str, Any], parent_key: str, dependency: str
) -> Optional[str]:
    """Resolve where a declared dependency is installed.

    Args:
        packages: Lock ``packages`` map.
        parent_key: Install path of the parent ("" for the project root).
        dependency: Declared dependency name.

    Returns:
        The nested path under the parent if installed there, else the
        top-level path if installed there, else None.
    """
    top_level = f"{NODE_MODULES}/{dependency}"
    nested = (
        posixpath.join(parent_key, NODE_MODULES, dependency) if parent_key else top_level
    )
    if nested in packages:
        return nested
    if top_level in packages:
        return top_level
    return None


def detect_dependency_types(
    key: str,
    meta: Mapping[str, Any],
    root_manifest: Optional[Mapping[str, Any]],
) -> tuple[str, ...]:
    """Get the dependency types a lock node satisfies.

    The result is the union of the lock flags and the root manifest
    sections that declare the package. With no signal the node counts as a
    regular ``dependencies`` entry.
    """
    types: set[str] = set()
    for flag, dependency_type in LOCK_FLAG_TYPES.items():
        if meta.get(flag):
            types.add(dependency_type)

    name = name_from_path(key)
    if name and root_manifest:
        for section in MANIFEST_SECTIONS:
            declared = root_manifest.get(section)
            if isinstance(declared, Mapping) and name in declared:
                types.add(section)
        bundled = root_manifest.get("bundledDependencies") or root_manifest.get(
            "bundleDependencies"
        )
        if isinstance(bundled, list) and name in bundled:
            types.add("bundledDependencies")

    if not types:
        types.add("dependencies")
    return tuple(sorted(types))


def build_dependency_graph(
    lock: Mapping[str, Any],
    root_manifest: Optional[Mapping[str, Any]] = None,
    manifests: Optional[ManifestLookup] = None,
) -> DependencyGraph:
    """Build the dependency graph from a parsed lock structure.

    Args:
        lock: Parsed ``package-lock.json``.
        root_manifest: Parsed project ``package.json``, if any.
        manifests: Lookup from install path to the installed package's
            ``package.json``; None when installed manifests are unavailable.

    Returns:
        DependencyGraph with entries sorted by (name, version).
    """
    packages = lock.get("packages", {})
    if not isinstance(packages, Mapping):
        raise LockfileError("Lockfile 'packages' must be an object")

    seen: set[str] = set()
    entries: list[DependencyEntry] = []
    node_index: dict[str, DependencyEntry] = {}
    reverse_deps: dict[str, list[str]] = {}

    def add_reverse(child: str, parent: str) -> None:
        parents = reverse_deps.setdefault(child, [])
        if parent not in parents:
            parents.append(parent)

    for key, meta in packages.items():
        if not key or not key.startswith(NODE_MODULES):
            continue
        meta = meta if isinstance(meta, Mapping) else {}
        manifest = manifests(key) if manifests is not None else None
        manifest = manifest or {}

        name = meta.get("name") or manifest.get("name") or name_from_path(key) or key
        version = meta.get("version") or manifest.get("version") or UNKNOWN_VERSION
        label = f"{name}@{version}"
        if label in seen:
            logger.debug("Skipping duplicate %s at %s", label, key)
            continue
        seen.add(label)

        entry = DependencyEntry(
            name=str(name),
            version=str(version),
            license=extract_license(manifest) or meta.get("license") or UNKNOWN_LICENSE,
            path=key,
            repository=manifest.get("repository"),
            dependency_types=detect_dependency_types(key, meta, root_manifest),
        )
        entries.append(entry)
        node_index[key] = entry

        for dependency in _declared_dependencies(meta, EDGE_SECTIONS):
            child = resolve_dependency_path(packages, key, dependency)
            if child is not None:
                add_reverse(child, key)

    root_meta = packages.get("")
    if isinstance(root_meta, Mapping):
        for dependency in _declared_dependencies(root_meta, MANIFEST_SECTIONS):
            child = resolve_dependency_path(packages, "", dependency)
            if child is not None:
                add_reverse(child, ROOT_MARKER)

    entries.sort(key=lambda entry: (entry.name, entry.version))
    logger.debug("Built graph with %d entries", len(entries))
    return DependencyGraph(entries=entries, node_index=node_index, reverse_deps=reverse_deps)


def _declared_dependencies(
    meta: Mapping[str, Any], sections: tuple[str, ...]
) -> list[str]:
    names: list[str] = []
    for section in sections:
        declared = meta.get(section)
        if isinstance(declared, Mapping):
            names.extend(name for name in declared if name not in names)
    return names


def load_dependency_graph(
    root: Union[str, Path],
    lock_path: Union[str, Path, None] = None,
) -> DependencyGraph:
    """Read a project's lock file and manifests and build its graph.

    Args:
        root: Project root directory.
        lock_path: Lock file path, relative to ``root`` unless absolute.
            Defaults to ``package-lock.json``.

    Returns:
        DependencyGraph for the project.

    Raises:
        LockfileError: If the lock file or root manifest is missing where
            required or cannot be parsed.
    """
    root = Path(root)
    lock_file = root / (lock_path or "package-lock.json")
    if not lock_file.exists():
        raise LockfileError(f"Lockfile not found at {lock_file}")

    lock = _read_json(lock_file, "lockfile")
    if not isinstance(lock, dict):
        raise LockfileError(f"Lockfile at {lock_file} must contain a JSON object")

    root_manifest_path = root / "package.json"
    root_manifest = (
        _read_json(root_manifest_path, "package.json")
        if root_manifest_path.exists()
        else None
    )
    if root_manifest is not None and not isinstance(root_manifest, dict):
        root_manifest = None

    def installed_manifest(key: str) -> Optional[dict[str, Any]]:
        manifest_path = root / key / "package.json"
        if not manifest_path.is_file():
            return None
        try:
            data = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug("Ignoring unreadable manifest %s: %s", manifest_path, e)
            return None
        return data if isinstance(data, dict) else None

    return build_dependency_graph(lock, root_manifest, installed_manifest)


def _read_json(path: Path, description: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise LockfileError(f"Failed to read {description} at {path}: {e}") from e
