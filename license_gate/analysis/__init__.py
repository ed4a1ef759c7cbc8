"""License analysis logic for license-gate."""
from license_gate.analysis.categories import (
    COPYLEFT_LICENSES,
    PERMISSIVE_LICENSES,
    WEAK_COPYLEFT_LICENSES,
    SpdxCatalog,
    category_or_raise,
    default_catalog,
    empty_catalog,
    map_legacy_category,
)
from license_gate.analysis.compliance import (
    decide,
    decide_legacy,
    evaluate_compliance,
    find_exception,
    match_exception_scope,
)
from license_gate.analysis.filtering import (
    FilterResult,
    filter_by_dependency_types,
    filter_entries,
    normalize_dependency_types,
    parse_dependency_types_csv,
)
from license_gate.analysis.tokens import ordered_tokens, tokenize_license
from license_gate.analysis.upstream import (
    UpstreamResolver,
    attach_upstream,
    get_upstream_chains,
)

__all__ = [
    "COPYLEFT_LICENSES",
    "FilterResult",
    "PERMISSIVE_LICENSES",
    "SpdxCatalog",
    "UpstreamResolver",
    "WEAK_COPYLEFT_LICENSES",
    "attach_upstream",
    "category_or_raise",
    "decide",
    "decide_legacy",
    "default_catalog",
    "empty_catalog",
    "evaluate_compliance",
    "filter_by_dependency_types",
    "filter_entries",
    "find_exception",
    "get_upstream_chains",
    "map_legacy_category",
    "match_exception_scope",
    "normalize_dependency_types",
    "parse_dependency_types_csv",
    "ordered_tokens",
    "tokenize_license",
]
