"""CLI entry point for license-gate."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Optional, cast

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from license_gate import __version__
from license_gate.analysis.categories import (
    SpdxCatalog,
    category_or_raise,
    default_catalog,
)
from license_gate.analysis.compliance import evaluate_compliance
from license_gate.analysis.filtering import parse_dependency_types_csv
from license_gate.analysis.upstream import attach_upstream
from license_gate.config.defaults import (
    DEFAULT_LOCK_NAME,
    DEFAULT_POLICY_DIR,
    DEFAULT_SBOM_NAME,
    LEGACY_CONFIG_NAME,
    PRESETS,
)
from license_gate.config.loader import (
    detect_policy_source,
    load_policy,
    load_policy_source,
    load_spdx_catalog,
    parse_exception_record,
    parse_license_record,
)
from license_gate.config.writer import (
    append_exception_record,
    append_license_record,
    ensure_policy_files,
    init_policy,
    matching_exceptions,
    migrate_policy,
    now_iso,
    write_json,
)
from license_gate.constants import (
    ALL_CATEGORY_NAMES,
    CHECK_CHAIN_LIMIT,
    DEPENDENCY_TYPE_NAMES,
    EXIT_ERROR,
    EXIT_SUCCESS,
    EXIT_VIOLATIONS,
    OTHER_CATEGORY_NAME,
)
from license_gate.exceptions import ConfigurationError, LicenseGateError
from license_gate.models.policy import (
    ExceptionScope,
    PolicyBundle,
    format_timestamp,
    parse_timestamp,
)
from license_gate.models.report import CheckOptions, CheckReport, Verbosity
from license_gate.output.report_json import ReportJsonFormatter
from license_gate.output.report_markdown import ReportMarkdownFormatter
from license_gate.output.terminal import TerminalFormatter
from license_gate.resolvers.lockfile import load_dependency_graph

logger = logging.getLogger(__name__)

# Module-level console for consistent output
_console = Console()
# Separate console for error output (writes to stderr)
_error_console = Console(stderr=True)


class _AliasedGroup(click.Group):
    """Group accepting common misspellings of sub-command names."""

    aliases = {"licences": "licenses", "license": "licenses"}

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))


@click.group(cls=_AliasedGroup, invoke_without_command=True)
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--policy-dir",
    default=None,
    help=f"Policy directory relative to the root (default: {DEFAULT_POLICY_DIR}).",
)
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, root: str | None, policy_dir: str | None) -> None:
    """License Gate - Enforce a license policy on npm dependencies.

    Reads package-lock.json, checks every dependency's declared license
    against the governed policy in policy/ and explains each violation.
    Running without a command performs a check.

    \b
    Examples:
        license-gate
        license-gate check --production-only
        license-gate init --preset standard
        license-gate licenses allow add
        license-gate exceptions add
        license-gate policy migrate
    """
    ctx.ensure_object(dict)
    ctx.obj["root"] = root
    ctx.obj["policy_dir"] = policy_dir
    if ctx.invoked_subcommand is None:
        ctx.invoke(check)


@main.command()
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--lock",
    "lock_path",
    default=DEFAULT_LOCK_NAME,
    show_default=True,
    help="Lockfile to read, relative to the root.",
)
@click.option(
    "--out",
    "out_path",
    default=DEFAULT_SBOM_NAME,
    show_default=True,
    help="Where to write the SBOM JSON, relative to the root.",
)
@click.option(
    "--violations-out",
    "violations_path",
    default=None,
    help="Where to write violating packages as JSON (optional).",
)
@click.option("--policy-dir", default=None, help="Policy directory.")
@click.option(
    "--allowed",
    "allowed_path",
    default=None,
    help="Legacy allowlist path (temporary compatibility).",
)
@click.option(
    "--dep-types",
    default=None,
    help="Comma-separated dependency types to check.",
)
@click.option(
    "--production-only",
    is_flag=True,
    default=False,
    help="Shortcut for --dep-types dependencies.",
)
@click.option(
    "--spdx-catalog",
    "catalog_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="SPDX catalog JSON mapping identifiers to default categories.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["terminal", "markdown", "json"], case_sensitive=False),
    default="terminal",
    help="Output format for the report (default: terminal).",
)
@click.option(
    "--verbose",
    "-v",
    "verbose_flag",
    is_flag=True,
    default=False,
    help="Show every upstream chain and debug logging.",
)
@click.option(
    "--quiet",
    "-q",
    "quiet_flag",
    is_flag=True,
    default=False,
    help="Suppress summary output.",
)
@click.pass_context
def check(
    ctx: click.Context,
    root: str | None,
    lock_path: str,
    out_path: str,
    violations_path: str | None,
    policy_dir: str | None,
    allowed_path: str | None,
    dep_types: str | None,
    production_only: bool,
    catalog_path: str | None,
    output_format: str,
    verbose_flag: bool,
    quiet_flag: bool,
) -> None:
    """Check dependency licenses against policy.

    Writes the SBOM of checked dependencies, reports violations with
    suggested remediation and exits 1 when any dependency violates policy.

    \b
    Examples:
        license-gate check
        license-gate check --production-only
        license-gate check --dep-types dependencies,peerDependencies
        license-gate check --format markdown >> "$GITHUB_STEP_SUMMARY"
        license-gate check --violations-out violations.json
    """
    if verbose_flag and quiet_flag:
        raise click.UsageError("--verbose and --quiet are mutually exclusive.")

    if quiet_flag:
        verbosity = Verbosity.QUIET
    elif verbose_flag:
        verbosity = Verbosity.VERBOSE
    else:
        verbosity = Verbosity.NORMAL

    _configure_logging(verbose_flag)
    format_value = cast(Literal["terminal", "markdown", "json"], output_format.lower())
    options = CheckOptions(format=format_value, verbosity=verbosity)

    try:
        project_root = _resolve_root(ctx, root)
        report = _run_check(
            project_root,
            lock_path=lock_path,
            policy_dir=policy_dir or _group_option(ctx, "policy_dir"),
            allowed_path=allowed_path,
            dependency_types=_dependency_types_from_flags(production_only, dep_types),
            catalog=_load_catalog(project_root, catalog_path),
        )

        sbom_file = project_root / out_path
        json_formatter = ReportJsonFormatter()
        write_json(sbom_file, json_formatter.format_sbom(report.entries))
        violations_file = project_root / violations_path if violations_path else None
        if violations_file is not None:
            write_json(violations_file, json_formatter.format_violations(report.violations))

        if options.format == "terminal" and verbosity != Verbosity.QUIET:
            _console.print(f"Wrote SBOM to {sbom_file}")
            if violations_file is not None:
                _console.print(f"Wrote violations to {violations_file}")

        _display_report(report, options)

        if report.violations:
            sys.exit(EXIT_VIOLATIONS)
        sys.exit(EXIT_SUCCESS)

    except LicenseGateError as e:
        _display_error(e, options.format)
        sys.exit(EXIT_ERROR)


@main.command()
@click.option(
    "--preset",
    type=click.Choice(sorted(PRESETS), case_sensitive=False),
    default="strict",
    show_default=True,
    help="Allowed categories to start from.",
)
@click.option("--force", is_flag=True, default=False, help="Overwrite existing policy settings.")
@click.option("--dep-types", default=None, help="Set policy dependencyTypes (comma-separated).")
@click.option(
    "--production-only",
    is_flag=True,
    default=False,
    help='Set policy dependencyTypes to ["dependencies"].',
)
@click.option("--policy-dir", default=None, help="Policy directory.")
@click.pass_context
def init(
    ctx: click.Context,
    preset: str,
    force: bool,
    dep_types: str | None,
    production_only: bool,
    policy_dir: str | None,
) -> None:
    """Create policy files for a project.

    \b
    Presets:
        strict      Permissive Licenses
        standard    Permissive and Weak Copyleft Licenses
        permissive  All three license categories
    """
    try:
        target = _policy_dir(ctx, policy_dir)
        dependency_types = _dependency_types_from_flags(production_only, dep_types)
        if dependency_types is None and _is_interactive():
            dependency_types = _prompt_init_dependency_types()

        policy_path = init_policy(target, preset, dependency_types, force=force)
        click.echo(f"Wrote policy settings to {policy_path}")
        click.echo(f"Policy files available in {target}")
    except LicenseGateError as e:
        _display_error(e, "terminal")
        sys.exit(EXIT_ERROR)


@main.group()
def policy() -> None:
    """Manage policy files."""
    pass


@policy.command()
@click.option(
    "--from",
    "from_path",
    default=LEGACY_CONFIG_NAME,
    show_default=True,
    help="Legacy allowlist to migrate, relative to the root.",
)
@click.option("--force", is_flag=True, default=False, help="Overwrite existing policy files.")
@click.option("--policy-dir", default=None, help="Policy directory.")
@click.option(
    "--spdx-catalog",
    "catalog_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="SPDX catalog used to categorise migrated licenses.",
)
@click.pass_context
def migrate(
    ctx: click.Context,
    from_path: str,
    force: bool,
    policy_dir: str | None,
    catalog_path: str | None,
) -> None:
    """Convert a legacy allowedConfig.json into governed policy files."""
    try:
        project_root = _resolve_root(ctx, None)
        legacy_path = project_root / from_path
        paths = migrate_policy(
            legacy_path,
            _policy_dir(ctx, policy_dir),
            _load_catalog(project_root, catalog_path),
            force=force,
        )
        click.echo(f"Migrated legacy config from {legacy_path}")
        for path in paths:
            click.echo(f"Wrote {path}")
    except LicenseGateError as e:
        _display_error(e, "terminal")
        sys.exit(EXIT_ERROR)


@main.group()
def licenses() -> None:
    """Manage allowed-license records."""
    pass


@licenses.group()
def allow() -> None:
    """Record license approvals."""
    pass


@allow.command("add")
@click.option("--identifier", default=None, help="SPDX identifier.")
@click.option("--category", default=None, help="License category.")
@click.option("--rationale", default=None, help="Why the license is approved.")
@click.option("--approved-by", default=None, help="Approver names (comma-separated).")
@click.option("--approved-at", default=None, help="ISO 8601 approval time (default: now).")
@click.option(
    "--expires-at",
    default=None,
    help='ISO 8601 expiry or "never" (default: never).',
)
@click.option("--evidence-ref", default=None, help="Ticket, URL or ID backing the approval.")
@click.option("--full-name", default=None, help="Full license name.")
@click.option("--notes", default=None, help="Optional notes.")
@click.option(
    "--non-interactive",
    is_flag=True,
    default=False,
    help="Disable prompts and take every field from flags.",
)
@click.option("--policy-dir", default=None, help="Policy directory.")
@click.option(
    "--spdx-catalog",
    "catalog_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="SPDX catalog used for default full names.",
)
@click.pass_context
def licenses_allow_add(ctx: click.Context, **flags: Any) -> None:
    """Append an allowed-license record to licenses.json.

    Existing records for the identifier are kept; the new record is a
    follow-up that supersedes them.

    \b
    Examples:
        license-gate licenses allow add
        license-gate licenses allow add --identifier MIT \\
            --category "Permissive Licenses" --rationale "Standard" \\
            --approved-by legal --evidence-ref LEGAL-1
    """
    try:
        project_root = _resolve_root(ctx, None)
        target = _policy_dir(ctx, flags["policy_dir"])
        ensure_policy_files(target)
        # Fail on an invalid policy before prompting
        load_policy(target)
        catalog = _load_catalog(project_root, flags["catalog_path"])

        keys = ("identifier", "approved_by", "category", "rationale", "evidence_ref")
        if _non_interactive(flags, keys):
            data = _license_from_flags(flags, catalog)
        else:
            _require_tty()
            data = _prompt_license(catalog)

        record = parse_license_record(data)
        result = append_license_record(target, record)
        if result.existing:
            _warn(
                f"License {record.identifier} already has records. A follow-up "
                "record was appended instead of overwriting."
            )
        click.echo(f"Added allowed-license record in {result.path}")
    except LicenseGateError as e:
        _display_error(e, "terminal")
        sys.exit(EXIT_ERROR)


@main.group()
def exceptions() -> None:
    """Manage package exceptions."""
    pass


@exceptions.command("add")
@click.option("--package", default=None, help="Package name.")
@click.option("--scope-type", default=None, help="exact | range | any.")
@click.option("--version", default=None, help="Version for exact scope.")
@click.option("--range", "range_", default=None, help="Semver range for range scope.")
@click.option("--detected-licenses", default=None, help="Detected licenses (comma-separated).")
@click.option("--reason", default=None, help="Why the exception is granted.")
@click.option("--notes", default=None, help="Optional notes.")
@click.option("--approved-by", default=None, help="Approver names (comma-separated).")
@click.option("--approved-at", default=None, help="ISO 8601 approval time (default: now).")
@click.option("--expires-at", default=None, help='ISO 8601 expiry or "never" (required).')
@click.option("--evidence-ref", default=None, help="Ticket, URL or ID backing the exception.")
@click.option(
    "--edit-existing",
    is_flag=True,
    default=False,
    help="Replace the most recent record with the same package and scope.",
)
@click.option(
    "--non-interactive",
    is_flag=True,
    default=False,
    help="Disable prompts and take every field from flags.",
)
@click.option("--policy-dir", default=None, help="Policy directory.")
@click.pass_context
def exceptions_add(ctx: click.Context, **flags: Any) -> None:
    """Add a package exception to exceptions.json.

    \b
    Examples:
        license-gate exceptions add
        license-gate exceptions add --package pkg-a --range "^1.2.0" \\
            --reason "Vendor agreement" --approved-by legal \\
            --expires-at 2026-12-31 --evidence-ref LEGAL-2
    """
    try:
        target = _policy_dir(ctx, flags["policy_dir"])
        ensure_policy_files(target)
        bundle = load_policy(target)

        keys = (
            "package",
            "scope_type",
            "version",
            "range_",
            "reason",
            "approved_by",
            "expires_at",
            "evidence_ref",
        )
        if _non_interactive(flags, keys):
            data = _exception_from_flags(flags)
            edit_existing = bool(flags["edit_existing"])
        else:
            _require_tty()
            data = _prompt_exception()
            edit_existing = _prompt_edit_existing(bundle, data)

        record = parse_exception_record(data)
        result = append_exception_record(target, record, edit_existing=edit_existing)
        action = "Replaced" if result.replaced else "Added"
        click.echo(f"{action} exception record in {result.path}")
    except LicenseGateError as e:
        _display_error(e, "terminal")
        sys.exit(EXIT_ERROR)


def _configure_logging(verbose: bool) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=_error_console, show_path=False)],
        force=True,
    )


def _group_option(ctx: click.Context, name: str) -> Any:
    root_ctx = ctx.find_root()
    return (root_ctx.obj or {}).get(name)


def _resolve_root(ctx: click.Context, root: str | None) -> Path:
    value = root or _group_option(ctx, "root")
    return Path(value).resolve() if value else Path.cwd()


def _policy_dir(ctx: click.Context, policy_dir: str | None) -> Path:
    value = policy_dir or _group_option(ctx, "policy_dir") or DEFAULT_POLICY_DIR
    return _resolve_root(ctx, None) / value


def _load_catalog(root: Path, catalog_path: str | None) -> SpdxCatalog:
    if catalog_path:
        return load_spdx_catalog(root / catalog_path)
    return default_catalog()


def _dependency_types_from_flags(
    production_only: bool, dep_types: str | None
) -> Optional[list[str]]:
    """Dependency types chosen on the command line, if any."""
    if production_only:
        return ["dependencies"]
    if dep_types:
        return parse_dependency_types_csv(dep_types)
    return None


def _run_check(
    root: Path,
    lock_path: str,
    policy_dir: str | None,
    allowed_path: str | None,
    dependency_types: Optional[list[str]],
    catalog: SpdxCatalog,
) -> CheckReport:
    """Execute the compliance check.

    Args:
        root: Project root.
        lock_path: Lockfile path relative to the root.
        policy_dir: Explicit policy directory, if any.
        allowed_path: Explicit legacy allowlist, if any.
        dependency_types: Types chosen on the command line, if any.
        catalog: SPDX category catalog.

    Returns:
        CheckReport with upstream chains attached to every violation.
    """
    source = detect_policy_source(root, policy_dir, allowed_path)
    logger.debug("Policy source: %s %s", source.mode, source.path or "")
    policy_bundle = load_policy_source(source)

    graph = load_dependency_graph(root, lock_path)

    if dependency_types is None and isinstance(policy_bundle, PolicyBundle):
        dependency_types = list(policy_bundle.settings.dependency_types)
    if dependency_types is None:
        dependency_types = list(DEPENDENCY_TYPE_NAMES)

    entries = graph.filter_types(dependency_types)
    result = evaluate_compliance(
        entries, policy_bundle, catalog, datetime.now(timezone.utc)
    )
    violations = attach_upstream(result.violations, graph, limit=CHECK_CHAIN_LIMIT)

    return CheckReport(
        entries=entries,
        violations=violations,
        warnings=result.warnings,
        dependency_types=dependency_types,
        policy_mode=source.mode,
    )


def _display_report(report: CheckReport, options: CheckOptions) -> None:
    """Display a check report in the requested format."""
    if options.format == "json":
        click.echo(ReportJsonFormatter().format_check_report(report))
    elif options.format == "markdown":
        click.echo(ReportMarkdownFormatter().format_check_report(report))
    else:
        TerminalFormatter(
            console=_console, verbosity=options.verbosity
        ).format_check_report(report)


def _display_error(error: LicenseGateError, format_type: str) -> None:
    """Display error message to user.

    All errors are written to stderr for consistent CI/CD behavior.

    Args:
        error: The exception that occurred.
        format_type: Output format type for styling.
    """
    error_type = type(error).__name__
    message = f"Error: {error_type}: {error}"

    if format_type == "terminal":
        _error_console.print(f"[red bold]{escape(message)}[/red bold]")
    else:
        click.echo(message, err=True)


def _warn(message: str) -> None:
    click.echo(f"Warning: {message}", err=True)


def _non_interactive(flags: dict[str, Any], keys: tuple[str, ...]) -> bool:
    """Prompts are skipped when requested or when any record field is given."""
    if flags.get("non_interactive"):
        return True
    return any(flags.get(key) is not None for key in keys)


def _is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def _require_tty() -> None:
    if not _is_interactive():
        raise ConfigurationError(
            "Interactive command requires a TTY terminal; pass --non-interactive "
            "with the record fields instead"
        )


def _csv_values(value: str | None) -> list[str]:
    return [item.strip() for item in str(value or "").split(",") if item.strip()]


def _parse_iso_input(value: str | None, field_name: str, allow_never: bool = False) -> str | None:
    """Normalize a user-entered date to a UTC timestamp string.

    Raises:
        ConfigurationError: If the value is not a date, datetime or "never".
    """
    raw = str(value or "").strip()
    if allow_never and raw.lower() == "never":
        return None
    parsed = parse_timestamp(raw)
    if parsed is None:
        suffix = ', or "never"' if allow_never else ""
        raise ConfigurationError(
            f"{field_name} must be an ISO 8601 date or datetime{suffix}"
        )
    return format_timestamp(parsed)


def _require_flag(value: str | None, flag: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ConfigurationError(f"{flag} is required in non-interactive mode")
    return text


def _license_from_flags(flags: dict[str, Any], catalog: SpdxCatalog) -> dict[str, Any]:
    identifier = _require_flag(flags["identifier"], "--identifier")
    if identifier not in catalog:
        _warn(
            f"{identifier} is not in the SPDX catalog; record will still be written."
        )
    approved_by = _csv_values(flags["approved_by"])
    if not approved_by:
        raise ConfigurationError("--approved-by is required in non-interactive mode")
    category = category_or_raise(str(flags["category"] or "").strip())
    rationale = _require_flag(flags["rationale"], "--rationale")
    evidence_ref = _require_flag(flags["evidence_ref"], "--evidence-ref")

    return {
        "identifier": identifier,
        "category": category,
        "fullName": flags["full_name"] or catalog.full_name_of(identifier),
        "notes": flags["notes"],
        "rationale": rationale,
        "approvedBy": approved_by,
        "approvedAt": _parse_iso_input(flags["approved_at"] or now_iso(), "approvedAt"),
        "expiresAt": _parse_iso_input(flags["expires_at"] or "never", "expiresAt", True),
        "evidenceRef": evidence_ref,
    }


def _exception_from_flags(flags: dict[str, Any]) -> dict[str, Any]:
    package = _require_flag(flags["package"], "--package")

    scope_type = flags["scope_type"] or (
        "range" if flags["range_"] else "exact" if flags["version"] else "any"
    )
    if scope_type == "exact":
        if not flags["version"]:
            raise ConfigurationError("--version is required when --scope-type=exact")
        scope = {"type": "exact", "version": str(flags["version"])}
    elif scope_type == "range":
        if not flags["range_"]:
            raise ConfigurationError("--range is required when --scope-type=range")
        scope = {"type": "range", "range": str(flags["range_"])}
    elif scope_type == "any":
        scope = {"type": "any"}
    else:
        raise ConfigurationError("--scope-type must be exact, range, or any")

    reason = _require_flag(flags["reason"], "--reason")
    approved_by = _csv_values(flags["approved_by"])
    if not approved_by:
        raise ConfigurationError("--approved-by is required in non-interactive mode")
    if not flags["expires_at"]:
        raise ConfigurationError("--expires-at is required in non-interactive mode")
    evidence_ref = _require_flag(flags["evidence_ref"], "--evidence-ref")

    return {
        "package": package,
        "scope": scope,
        "detectedLicenses": _csv_values(flags["detected_licenses"]),
        "reason": reason,
        "notes": flags["notes"],
        "approvedBy": approved_by,
        "approvedAt": _parse_iso_input(flags["approved_at"] or now_iso(), "approvedAt"),
        "expiresAt": _parse_iso_input(flags["expires_at"], "expiresAt", True),
        "evidenceRef": evidence_ref,
    }


def _prompt_choice(prompt: str, options: list[str]) -> str:
    """Ask the user to pick one option by number."""
    click.echo(prompt)
    for index, option in enumerate(options, start=1):
        click.echo(f"  {index}. {option}")
    selected = click.prompt(
        "Select an option number", type=click.IntRange(1, len(options))
    )
    return options[selected - 1]


def _prompt_text(prompt: str, default: str | None = None, required: bool = True) -> str:
    while True:
        value = click.prompt(
            prompt,
            default=default if default is not None else "",
            show_default=bool(default),
        ).strip()
        if value or not required:
            return value
        click.echo("This field is required.", err=True)


def _prompt_approval(expires_default: str | None) -> dict[str, Any]:
    approved_by = _csv_values(_prompt_text("Approved by (comma-separated)"))
    if not approved_by:
        raise ConfigurationError("approvedBy must include at least one approver")
    approved_at = _parse_iso_input(
        _prompt_text("Approved at ISO datetime", default=now_iso()), "approvedAt"
    )
    expires_at = _parse_iso_input(
        _prompt_text('Expires at ISO datetime or "never"', default=expires_default),
        "expiresAt",
        allow_never=True,
    )
    return {"approvedBy": approved_by, "approvedAt": approved_at, "expiresAt": expires_at}


def _prompt_license(catalog: SpdxCatalog) -> dict[str, Any]:
    identifier = _prompt_text("SPDX identifier")
    if identifier not in catalog:
        _warn(
            f"{identifier} is not in the SPDX catalog; record will still be written."
        )
    full_name = _prompt_text(
        "Full name (optional)", default=catalog.full_name_of(identifier), required=False
    )
    notes = _prompt_text("Notes (optional)", required=False)
    approval = _prompt_approval("never")
    category = _prompt_choice("Category", list(ALL_CATEGORY_NAMES))
    if category == OTHER_CATEGORY_NAME:
        _warn(
            f"{OTHER_CATEGORY_NAME} selected. Treat this as a temporary manual "
            "classification and revisit it with legal review."
        )
    rationale = _prompt_text("Rationale (short sentence)")
    evidence_ref = _prompt_text("Evidence reference (ticket/URL/ID)")
    return {
        "identifier": identifier,
        "category": category,
        "fullName": full_name or None,
        "notes": notes or None,
        "rationale": rationale,
        "evidenceRef": evidence_ref,
        **approval,
    }


def _prompt_exception() -> dict[str, Any]:
    package = _prompt_text("Package name")
    scope_label = _prompt_choice(
        "Scope type",
        ["exact package@version", "package@range", "package any version"],
    )
    if scope_label.startswith("exact"):
        scope = {"type": "exact", "version": _prompt_text("Version")}
    elif scope_label.startswith("package@range"):
        scope = {"type": "range", "range": _prompt_text("Semver range")}
    else:
        _warn("any-version scope is broad and should be used sparingly.")
        scope = {"type": "any"}

    detected = _csv_values(
        _prompt_text(
            "Detected license identifiers (optional, comma-separated)", required=False
        )
    )
    reason = _prompt_text("Reason")
    notes = _prompt_text("Notes (optional)", required=False)
    approval = _prompt_approval(None)
    evidence_ref = _prompt_text("Evidence reference (ticket/URL/ID)")
    return {
        "package": package,
        "scope": scope,
        "detectedLicenses": detected,
        "reason": reason,
        "notes": notes or None,
        "evidenceRef": evidence_ref,
        **approval,
    }


def _prompt_edit_existing(bundle: PolicyBundle, data: dict[str, Any]) -> bool:
    """Ask whether to replace an existing record for the same package and scope."""
    scope = ExceptionScope.model_validate(data["scope"])
    if not matching_exceptions(bundle, data["package"], scope):
        return False
    action = _prompt_choice(
        "Matching package + scope exists",
        [
            "Create follow-up exception entry (recommended)",
            "Edit most recent existing exception",
        ],
    )
    return action.startswith("Edit")


def _prompt_init_dependency_types() -> list[str]:
    choice = _prompt_choice(
        "Dependency scope for policy.dependencyTypes",
        [
            "Production runtime only (dependencies)",
            "All dependency types",
            "Custom",
        ],
    )
    if choice.startswith("Production"):
        return ["dependencies"]
    if choice.startswith("All"):
        return list(DEPENDENCY_TYPE_NAMES)
    return parse_dependency_types_csv(
        _prompt_text(
            f"Custom dependency types (comma-separated: {', '.join(DEPENDENCY_TYPE_NAMES)})"
        )
    )


if __name__ == "__main__":
    main()
