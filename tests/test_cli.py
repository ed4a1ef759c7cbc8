"""Tests for the CLI."""

import json
from pathlib import Path
from typing import Any, Callable

import pytest
from click.testing import CliRunner

from license_gate import __version__
from license_gate.cli import main
from license_gate.constants import PERMISSIVE_CATEGORY, WEAK_COPYLEFT_CATEGORY

LOCK = {
    "name": "app",
    "lockfileVersion": 3,
    "packages": {
        "": {
            "name": "app",
            "dependencies": {"a": "^1.0.0"},
            "devDependencies": {"gpl-dev": "^1.0.0"},
        },
        "node_modules/a": {"version": "1.0.0", "license": "MIT"},
        "node_modules/gpl-dev": {"version": "1.0.0", "license": "GPL-3.0", "dev": True},
    },
}


@pytest.fixture
def project(tmp_path: Path, write_json_file: Callable[[Path, Any], Path]) -> Path:
    """Create a project with a lockfile and a strict policy."""
    write_json_file(tmp_path / "package-lock.json", LOCK)
    write_json_file(
        tmp_path / "policy" / "policy.json",
        {"allowedCategories": [PERMISSIVE_CATEGORY]},
    )
    return tmp_path


def _exception_args(root: Path, *extra: str) -> list[str]:
    return [
        "--root",
        str(root),
        "exceptions",
        "add",
        "--package",
        "gpl-dev",
        "--reason",
        "Build tool only",
        "--approved-by",
        "legal",
        "--expires-at",
        "never",
        "--evidence-ref",
        "LEGAL-2",
        *extra,
    ]


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_version(self, cli_runner: CliRunner) -> None:
        """Test --version flag."""
        result = cli_runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, cli_runner: CliRunner) -> None:
        """Test --help lists the commands."""
        result = cli_runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("check", "init", "policy", "licenses", "exceptions"):
            assert command in result.output

    def test_licences_alias(self, cli_runner: CliRunner) -> None:
        """Test that the British spelling reaches the licenses group."""
        result = cli_runner.invoke(main, ["licences", "--help"])
        assert result.exit_code == 0
        assert "allow" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_violation_exits_one(self, cli_runner: CliRunner, project: Path) -> None:
        """Test that a denied dev dependency fails the check."""
        result = cli_runner.invoke(main, ["check", "--root", str(project)])
        assert result.exit_code == 1
        assert "gpl-dev@1.0.0" in result.output
        assert "Wrote SBOM to" in result.output
        sbom = json.loads((project / "sbom-licenses.json").read_text(encoding="utf-8"))
        assert [item["name"] for item in sbom] == ["a", "gpl-dev"]

    def test_default_command_is_check(self, cli_runner: CliRunner, project: Path) -> None:
        """Test that running without a command performs a check."""
        result = cli_runner.invoke(main, ["--root", str(project)])
        assert result.exit_code == 1

    def test_production_only_passes(self, cli_runner: CliRunner, project: Path) -> None:
        """Test that excluding dev dependencies passes."""
        result = cli_runner.invoke(
            main, ["check", "--root", str(project), "--production-only"]
        )
        assert result.exit_code == 0
        assert "All packages comply with policy." in result.output
        sbom = json.loads((project / "sbom-licenses.json").read_text(encoding="utf-8"))
        assert [item["name"] for item in sbom] == ["a"]

    def test_policy_dependency_types(
        self,
        cli_runner: CliRunner,
        project: Path,
        write_json_file: Callable[[Path, Any], Path],
    ) -> None:
        """Test that policy dependencyTypes apply without flags."""
        write_json_file(
            project / "policy" / "policy.json",
            {"allowedCategories": ["A"], "dependencyTypes": ["dependencies"]},
        )
        result = cli_runner.invoke(main, ["check", "--root", str(project)])
        assert result.exit_code == 0

    def test_invalid_dep_types(self, cli_runner: CliRunner, project: Path) -> None:
        """Test that an unknown dependency type is an error."""
        result = cli_runner.invoke(
            main, ["check", "--root", str(project), "--dep-types", "runtime"]
        )
        assert result.exit_code == 2
        assert "Invalid dependency type" in result.output

    def test_missing_lock(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test the missing lockfile error exit code."""
        result = cli_runner.invoke(main, ["check", "--root", str(tmp_path)])
        assert result.exit_code == 2
        assert "Lockfile not found" in result.output

    def test_json_format(self, cli_runner: CliRunner, project: Path) -> None:
        """Test JSON report output."""
        result = cli_runner.invoke(
            main, ["check", "--root", str(project), "--format", "json"]
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["summary"]["status"] == "fail"
        assert data["summary"]["policy_mode"] == "governed"
        assert data["violations"][0]["name"] == "gpl-dev"
        assert data["violations"][0]["upstream"] == []

    def test_markdown_format(self, cli_runner: CliRunner, project: Path) -> None:
        """Test Markdown report output."""
        result = cli_runner.invoke(
            main, ["check", "--root", str(project), "--format", "markdown"]
        )
        assert result.exit_code == 1
        assert "## License Gate Failed" in result.output
        assert "| gpl-dev@1.0.0 | GPL-3.0 |" in result.output

    def test_violations_out(self, cli_runner: CliRunner, project: Path) -> None:
        """Test writing the violations file."""
        result = cli_runner.invoke(
            main,
            ["check", "--root", str(project), "--violations-out", "violations.json", "-q"],
        )
        assert result.exit_code == 1
        assert "FAIL - 1 violation(s)" in result.output
        violations = json.loads(
            (project / "violations.json").read_text(encoding="utf-8")
        )
        assert violations[0]["reasonType"] == "license-not-allowed"

    def test_legacy_policy(
        self,
        cli_runner: CliRunner,
        tmp_path: Path,
        write_json_file: Callable[[Path, Any], Path],
    ) -> None:
        """Test checking against a legacy allowlist."""
        write_json_file(tmp_path / "package-lock.json", LOCK)
        write_json_file(tmp_path / "allowedConfig.json", ["MIT"])
        result = cli_runner.invoke(
            main, ["check", "--root", str(tmp_path), "--format", "json"]
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["summary"]["policy_mode"] == "legacy"
        assert data["warnings"]
        assert data["violations"][0]["reasonType"] == "legacy-not-allowed"

    def test_no_policy_passes(
        self,
        cli_runner: CliRunner,
        tmp_path: Path,
        write_json_file: Callable[[Path, Any], Path],
    ) -> None:
        """Test that a project without policy checks nothing."""
        write_json_file(tmp_path / "package-lock.json", LOCK)
        result = cli_runner.invoke(main, ["check", "--root", str(tmp_path)])
        assert result.exit_code == 0

    def test_malformed_license_is_a_violation_not_a_crash(
        self,
        cli_runner: CliRunner,
        project: Path,
        write_json_file: Callable[[Path, Any], Path],
    ) -> None:
        """Test that an empty-parentheses license is reported as unknown."""
        write_json_file(
            project / "package-lock.json",
            {"packages": {"node_modules/x": {"version": "1.0.0", "license": "()"}}},
        )
        result = cli_runner.invoke(
            main, ["check", "--root", str(project), "--format", "json"]
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["violations"][0]["reasonType"] == "unknown-license"

    def test_verbose_and_quiet_conflict(self, cli_runner: CliRunner, project: Path) -> None:
        """Test that -v and -q together are rejected."""
        result = cli_runner.invoke(main, ["check", "--root", str(project), "-v", "-q"])
        assert result.exit_code != 0
        assert "mutually exclusive" in result.output


class TestInitCommand:
    """Tests for the init command."""

    def test_init_preset(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test writing a standard preset for production dependencies."""
        result = cli_runner.invoke(
            main,
            ["--root", str(tmp_path), "init", "--preset", "standard", "--production-only"],
        )
        assert result.exit_code == 0
        settings = json.loads(
            (tmp_path / "policy" / "policy.json").read_text(encoding="utf-8")
        )
        assert settings["allowedCategories"] == [
            PERMISSIVE_CATEGORY,
            WEAK_COPYLEFT_CATEGORY,
        ]
        assert settings["dependencyTypes"] == ["dependencies"]
        assert (tmp_path / "policy" / "licenses.json").exists()
        assert (tmp_path / "policy" / "exceptions.json").exists()

    def test_init_requires_force(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test that existing settings are not overwritten without --force."""
        cli_runner.invoke(main, ["--root", str(tmp_path), "init"])
        result = cli_runner.invoke(main, ["--root", str(tmp_path), "init"])
        assert result.exit_code == 2
        assert "Policy already exists" in result.output

        result = cli_runner.invoke(
            main, ["--root", str(tmp_path), "init", "--force", "--preset", "permissive"]
        )
        assert result.exit_code == 0


class TestPolicyMigrateCommand:
    """Tests for the policy migrate command."""

    def test_migrate(
        self,
        cli_runner: CliRunner,
        tmp_path: Path,
        write_json_file: Callable[[Path, Any], Path],
    ) -> None:
        """Test migrating a legacy allowlist then checking with it."""
        write_json_file(tmp_path / "package-lock.json", LOCK)
        write_json_file(
            tmp_path / "allowedConfig.json",
            {"allowedLicenses": ["MIT"], "exceptions": ["gpl-dev@1.0.0"]},
        )
        result = cli_runner.invoke(main, ["--root", str(tmp_path), "policy", "migrate"])
        assert result.exit_code == 0
        exceptions = json.loads(
            (tmp_path / "policy" / "exceptions.json").read_text(encoding="utf-8")
        )
        assert exceptions[0]["scope"] == {"type": "exact", "version": "1.0.0"}

        result = cli_runner.invoke(main, ["check", "--root", str(tmp_path)])
        assert result.exit_code == 0

    def test_migrate_missing_legacy(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test migrating without a legacy file."""
        result = cli_runner.invoke(main, ["--root", str(tmp_path), "policy", "migrate"])
        assert result.exit_code == 2
        assert "Legacy config not found" in result.output


class TestLicensesAllowAddCommand:
    """Tests for the licenses allow add command."""

    def test_add_record(self, cli_runner: CliRunner, project: Path) -> None:
        """Test adding a license record non-interactively."""
        result = cli_runner.invoke(
            main,
            [
                "--root",
                str(project),
                "licenses",
                "allow",
                "add",
                "--identifier",
                "GPL-3.0",
                "--category",
                "C",
                "--rationale",
                "Build tooling only",
                "--approved-by",
                "legal,cto",
                "--evidence-ref",
                "LEGAL-1",
            ],
        )
        assert result.exit_code == 0
        assert "Added allowed-license record" in result.output
        records = json.loads(
            (project / "policy" / "licenses.json").read_text(encoding="utf-8")
        )
        assert records[0]["approvedBy"] == ["legal", "cto"]
        assert records[0]["expiresAt"] is None

        result = cli_runner.invoke(main, ["check", "--root", str(project)])
        assert result.exit_code == 0

    def test_missing_field(self, cli_runner: CliRunner, project: Path) -> None:
        """Test that a missing required flag is an error."""
        result = cli_runner.invoke(
            main,
            [
                "--root",
                str(project),
                "licenses",
                "allow",
                "add",
                "--identifier",
                "MIT",
                "--category",
                "A",
                "--approved-by",
                "legal",
                "--evidence-ref",
                "LEGAL-1",
            ],
        )
        assert result.exit_code == 2
        assert "--rationale is required" in result.output

    def test_requires_tty_for_prompts(self, cli_runner: CliRunner, project: Path) -> None:
        """Test that prompting without a terminal is refused."""
        result = cli_runner.invoke(
            main, ["--root", str(project), "licenses", "allow", "add"]
        )
        assert result.exit_code == 2
        assert "requires a TTY" in result.output


class TestExceptionsAddCommand:
    """Tests for the exceptions add command."""

    def test_range_exception(self, cli_runner: CliRunner, project: Path) -> None:
        """Test that a range exception makes the check pass."""
        result = cli_runner.invoke(main, _exception_args(project, "--range", "^1.0.0"))
        assert result.exit_code == 0
        assert "Added exception record" in result.output

        result = cli_runner.invoke(main, ["check", "--root", str(project)])
        assert result.exit_code == 0

    def test_exact_requires_version(self, cli_runner: CliRunner, project: Path) -> None:
        """Test the exact scope validation."""
        result = cli_runner.invoke(
            main, _exception_args(project, "--scope-type", "exact")
        )
        assert result.exit_code == 2
        assert "--version is required when" in result.output

    def test_invalid_scope_type(self, cli_runner: CliRunner, project: Path) -> None:
        """Test an unknown scope type."""
        result = cli_runner.invoke(main, _exception_args(project, "--scope-type", "all"))
        assert result.exit_code == 2
        assert "--scope-type must be" in result.output

    def test_edit_existing(self, cli_runner: CliRunner, project: Path) -> None:
        """Test replacing an exception in place."""
        cli_runner.invoke(main, _exception_args(project, "--version", "1.0.0"))
        result = cli_runner.invoke(
            main, _exception_args(project, "--version", "1.0.0", "--edit-existing")
        )
        assert result.exit_code == 0
        assert "Replaced exception record" in result.output
        records = json.loads(
            (project / "policy" / "exceptions.json").read_text(encoding="utf-8")
        )
        assert len(records) == 1

    def test_expires_at_required(self, cli_runner: CliRunner, project: Path) -> None:
        """Test that an expiry decision is required."""
        result = cli_runner.invoke(
            main,
            [
                "--root",
                str(project),
                "exceptions",
                "add",
                "--package",
                "gpl-dev",
                "--reason",
                "x",
                "--approved-by",
                "legal",
                "--evidence-ref",
                "E",
            ],
        )
        assert result.exit_code == 2
        assert "--expires-at is required" in result.output
