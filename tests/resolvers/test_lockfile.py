"""Tests for the lockfile dependency graph builder."""

import json
from pathlib import Path

import pytest

from license_gate.constants import ROOT_MARKER
from license_gate.exceptions import LockfileError
from license_gate.resolvers.lockfile import (
    build_dependency_graph,
    detect_dependency_types,
    extract_license,
    load_dependency_graph,
    name_from_path,
    resolve_dependency_path,
)

LOCK = {
    "name": "app",
    "lockfileVersion": 3,
    "packages": {
        "": {
            "name": "app",
            "dependencies": {"a": "^1.0.0"},
            "devDependencies": {"jest": "^29.0.0"},
        },
        "node_modules/a": {
            "version": "1.0.0",
            "license": "MIT",
            "dependencies": {"b": "^2.0.0"},
        },
        "node_modules/a/node_modules/b": {"version": "2.0.0", "license": "ISC"},
        "node_modules/b": {"version": "1.0.0", "license": "GPL-3.0"},
        "node_modules/jest": {
            "version": "29.0.0",
            "license": "MIT",
            "dev": True,
            "dependencies": {"b": "^1.0.0"},
        },
    },
}


class TestExtractLicense:
    """Tests for extract_license function."""

    def test_string(self) -> None:
        """Test a plain license string."""
        assert extract_license({"license": "MIT"}) == "MIT"

    def test_object(self) -> None:
        """Test a legacy license object."""
        assert extract_license({"license": {"type": "BSD-3-Clause"}}) == "BSD-3-Clause"

    def test_legacy_array(self) -> None:
        """Test the legacy licenses array."""
        manifest = {"licenses": [{"type": "MIT"}, {"name": "Apache-2.0"}]}
        assert extract_license(manifest) == "MIT OR Apache-2.0"

    @pytest.mark.parametrize("manifest", [None, {}, {"license": ""}, {"license": 3}])
    def test_missing(self, manifest) -> None:
        """Test that unusable values yield None."""
        assert extract_license(manifest) is None


class TestPathHelpers:
    """Tests for install path helpers."""

    def test_name_from_nested_scoped_path(self) -> None:
        """Test scoped names inside nested node_modules."""
        assert name_from_path("node_modules/a/node_modules/@scope/b") == "@scope/b"
        assert name_from_path("") is None

    def test_nested_path_preferred(self) -> None:
        """Test that a nested install wins over the top-level one."""
        packages = LOCK["packages"]
        assert (
            resolve_dependency_path(packages, "node_modules/a", "b")
            == "node_modules/a/node_modules/b"
        )
        assert resolve_dependency_path(packages, "node_modules/jest", "b") == "node_modules/b"
        assert resolve_dependency_path(packages, "node_modules/a", "zzz") is None

    def test_root_resolution(self) -> None:
        """Test resolution from the project root."""
        assert resolve_dependency_path(LOCK["packages"], "", "a") == "node_modules/a"


class TestDetectDependencyTypes:
    """Tests for detect_dependency_types function."""

    def test_default_is_dependencies(self) -> None:
        """Test the fallback type."""
        assert detect_dependency_types("node_modules/x", {}, None) == ("dependencies",)

    def test_union_of_flags_and_manifest(self) -> None:
        """Test that lock flags and manifest sections combine."""
        manifest = {"peerDependencies": {"x": "*"}, "bundledDependencies": ["x"]}
        types = detect_dependency_types("node_modules/x", {"dev": True}, manifest)
        assert types == ("bundledDependencies", "devDependencies", "peerDependencies")


class TestBuildDependencyGraph:
    """Tests for build_dependency_graph function."""

    def test_entries_sorted(self) -> None:
        """Test that entries are sorted by name then version."""
        graph = build_dependency_graph(LOCK)
        assert [entry.label for entry in graph.entries] == [
            "a@1.0.0",
            "b@1.0.0",
            "b@2.0.0",
            "jest@29.0.0",
        ]

    def test_root_edges(self) -> None:
        """Test that root manifest sections point at the root marker."""
        graph = build_dependency_graph(LOCK)
        assert graph.parents_of("node_modules/a") == [ROOT_MARKER]
        assert graph.parents_of("node_modules/jest") == [ROOT_MARKER]

    def test_nested_edges(self) -> None:
        """Test reverse edges honour nested installs."""
        graph = build_dependency_graph(LOCK)
        assert graph.parents_of("node_modules/a/node_modules/b") == ["node_modules/a"]
        assert graph.parents_of("node_modules/b") == ["node_modules/jest"]

    def test_lock_license_and_types(self) -> None:
        """Test license fallback to lock metadata and dev flags."""
        graph = build_dependency_graph(LOCK)
        jest = graph.node_index["node_modules/jest"]
        assert jest.license == "MIT"
        assert jest.dependency_types == ("devDependencies",)

    def test_manifest_license_wins(self) -> None:
        """Test that an installed manifest license takes precedence."""
        manifests = {"node_modules/a": {"license": "Apache-2.0", "repository": "x/a"}}
        graph = build_dependency_graph(LOCK, manifests=manifests.get)
        entry = graph.node_index["node_modules/a"]
        assert entry.license == "Apache-2.0"
        assert entry.repository == "x/a"

    def test_duplicates_skipped(self) -> None:
        """Test that a repeated name@version keeps the first path."""
        lock = {
            "packages": {
                "node_modules/x": {"version": "1.0.0"},
                "node_modules/y/node_modules/x": {"version": "1.0.0"},
            }
        }
        graph = build_dependency_graph(lock)
        assert len(graph.entries) == 1
        assert graph.entries[0].path == "node_modules/x"
        assert graph.entries[0].license == "UNKNOWN"

    @pytest.mark.parametrize("packages", [[], "", 0, None])
    def test_invalid_packages(self, packages) -> None:
        """Test that a non-object packages map raises, even when falsy."""
        with pytest.raises(LockfileError):
            build_dependency_graph({"packages": packages})

    def test_missing_packages_is_empty(self) -> None:
        """Test that a lock without a packages map yields an empty graph."""
        assert build_dependency_graph({"lockfileVersion": 1}).entries == []


class TestLoadDependencyGraph:
    """Tests for load_dependency_graph function."""

    def test_missing_lock(self, tmp_path: Path) -> None:
        """Test the missing lockfile error."""
        with pytest.raises(LockfileError, match="Lockfile not found"):
            load_dependency_graph(tmp_path)

    def test_invalid_lock(self, tmp_path: Path) -> None:
        """Test the unreadable lockfile error."""
        (tmp_path / "package-lock.json").write_text("{nope", encoding="utf-8")
        with pytest.raises(LockfileError, match="Failed to read lockfile"):
            load_dependency_graph(tmp_path)

    def test_reads_installed_manifests(self, tmp_path: Path) -> None:
        """Test that installed package.json files are consulted."""
        (tmp_path / "package-lock.json").write_text(json.dumps(LOCK), encoding="utf-8")
        (tmp_path / "package.json").write_text(
            json.dumps({"name": "app", "dependencies": {"a": "^1.0.0"}}),
            encoding="utf-8",
        )
        manifest_dir = tmp_path / "node_modules" / "a"
        manifest_dir.mkdir(parents=True)
        (manifest_dir / "package.json").write_text(
            json.dumps({"name": "a", "version": "1.0.0", "license": "BSD-2-Clause"}),
            encoding="utf-8",
        )
        graph = load_dependency_graph(tmp_path)
        assert graph.node_index["node_modules/a"].license == "BSD-2-Clause"
        assert graph.total_count == 4
