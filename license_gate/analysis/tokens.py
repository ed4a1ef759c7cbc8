"""License expression tokenization.

Turns a declared license expression into the atomic license identifiers it
references. Well-formed SPDX expressions are parsed with the
license-expression library; anything else is split on common separators so
evaluation always has at least one token to work with.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from license_expression import Licensing

from license_gate.constants import UNKNOWN_LICENSE

logger = logging.getLogger(__name__)

# No known symbols: custom identifiers such as LicenseRef-foo stay as written
_licensing = Licensing()

# SPDX idstring, optionally document-qualified, with an optional "or later" plus
_SPDX_ID = re.compile(r"^(?:DocumentRef-[A-Za-z0-9.\-]+:)?[A-Za-z0-9.\-]+\+?$")

_FALLBACK_SEPARATORS = re.compile(
    r"\s*(?:\(|\)|\+|/|\s+OR\s+|\s+AND\s+|,|;|\||\s+WITH\s+)",
    re.IGNORECASE,
)


def tokenize_license(expression: Optional[str]) -> frozenset[str]:
    """Get the license identifiers referenced by an expression.

    Args:
        expression: Declared license expression, e.g.
            ``"(MIT OR Apache-2.0) AND BSD-3-Clause"``.

    Returns:
        Set of identifiers. Missing or blank input yields ``{"UNKNOWN"}``.
        Exception identifiers after ``WITH`` and ``+`` suffixes are not
        part of the result.
    """
    return frozenset(ordered_tokens(expression))


def ordered_tokens(expression: Optional[str]) -> tuple[str, ...]:
    """Get unique license identifiers in order of first appearance.

    Same tokens as ``tokenize_license``. Never raises.
    """
    if expression is None:
        return (UNKNOWN_LICENSE,)
    raw = str(expression).strip()
    if not raw:
        return (UNKNOWN_LICENSE,)

    parsed = _parse_tokens(raw)
    if parsed:
        return parsed

    logger.debug("Falling back to separator split for license %r", raw)
    return _split_tokens(raw)


def _parse_tokens(raw: str) -> Optional[tuple[str, ...]]:
    """Collect leaf identifiers from a structurally valid expression.

    Returns:
        Identifiers in expression order, or None if the expression does not
        parse or a leaf is not a plausible SPDX identifier.
    """
    try:
        parsed = _licensing.parse(raw)
        if parsed is None:
            return None
        symbols = _licensing.license_symbols(parsed, unique=True, decompose=False)
    except Exception as e:
        # boolean.py raises bare IndexError/TypeError on inputs such as "()"
        logger.debug("Cannot parse license %r: %s", raw, e)
        return None

    tokens: list[str] = []
    for symbol in symbols:
        # LicenseWithExceptionSymbol: keep the license side only
        license_symbol = getattr(symbol, "license_symbol", symbol)
        key = str(license_symbol.key).strip()
        if not _SPDX_ID.match(key):
            return None
        token = key[:-1] if key.endswith("+") else key
        if token not in tokens:
            tokens.append(token)
    return tuple(tokens) if tokens else None


def _split_tokens(raw: str) -> tuple[str, ...]:
    """Split a non-standard expression on separators. Never raises."""
    tokens: list[str] = []
    for part in _FALLBACK_SEPARATORS.split(raw):
        part = part.strip()
        if part and part not in tokens:
            tokens.append(part)
    return tuple(tokens) if tokens else (UNKNOWN_LICENSE,)
