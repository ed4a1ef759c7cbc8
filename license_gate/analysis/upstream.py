"""Upstream chain resolution.

Explains why a package is installed by walking the reverse dependency map
from the package back to the project's direct dependencies.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from license_gate.constants import DEFAULT_CHAIN_LIMIT, ROOT_MARKER
from license_gate.models.dependency import DependencyGraph
from license_gate.models.report import Violation

logger = logging.getLogger(__name__)


class UpstreamResolver:
    """Resolve upstream chains over one dependency graph.

    The resolver owns a memo of chain sets keyed by node only. The memo is
    shared by every lookup made through the same instance, so create one
    resolver per run and per graph.

    Keying by node rather than by traversal trail bounds the work. A memoized
    chain set that runs through the current trail is recomputed for that
    trail, so shared lookups never list a node as its own ancestor.

    Attributes:
        graph: Graph to walk.
        limit: Maximum number of chains collected per node.
    """

    def __init__(self, graph: DependencyGraph, limit: int = DEFAULT_CHAIN_LIMIT) -> None:
        self.graph = graph
        self.limit = max(1, limit)
        self._memo: dict[str, list[list[str]]] = {}

    def chains(self, target: str) -> list[list[str]]:
        """Get upstream chains for a node as ``name@version`` labels.

        Args:
            target: Install path of the node.

        Returns:
            Chains ordered from the outermost ancestor down to the node's
            direct parent. The node itself and the ROOT marker are left out,
            so a direct dependency with no other parents yields ``[]``.
            Callers that display a full path append the node's own label.
            A chain never contains the node as one of its own ancestors.
        """
        raw = self._resolve(target, (), use_memo=False)
        labelled: list[list[str]] = []
        for chain in raw:
            labels = [self._label(node) for node in chain[:-1] if node != ROOT_MARKER]
            if labels:
                labelled.append(labels)
        return labelled

    def _resolve(
        self, node: str, trail: Sequence[str], use_memo: bool = True
    ) -> list[list[str]]:
        if use_memo and node in self._memo:
            return self._memo[node]

        parents = self.graph.parents_of(node)
        if not parents:
            return [[node]]

        next_trail = (*trail, node)
        blocked = set(next_trail)
        chains: list[list[str]] = []
        for parent in parents:
            if parent in blocked:
                continue
            parent_chains = self._resolve(parent, next_trail)
            if any(blocked.intersection(chain) for chain in parent_chains):
                # Memoized under another trail: recompute for this one
                parent_chains = self._resolve(parent, next_trail, use_memo=False)
            for chain in parent_chains:
                if blocked.intersection(chain):
                    continue
                chains.append([*chain, node])
                if len(chains) >= self.limit:
                    break
            if len(chains) >= self.limit:
                break

        if not chains:
            # Every parent closes a cycle: the node heads its own chain
            logger.debug("Cycle closes at %s", node)
            chains = [[node]]

        self._memo[node] = chains
        return chains

    def _label(self, node: str) -> str:
        entry = self.graph.node_index.get(node)
        return entry.label if entry is not None else node


def get_upstream_chains(
    target: str,
    graph: DependencyGraph,
    limit: int = DEFAULT_CHAIN_LIMIT,
    resolver: Optional[UpstreamResolver] = None,
) -> list[list[str]]:
    """Get upstream chains for one node.

    Args:
        target: Install path of the node.
        graph: Dependency graph.
        limit: Maximum chains per node, used when no resolver is given.
        resolver: Resolver to reuse so its memo is shared across lookups.

    Returns:
        Label chains as described in ``UpstreamResolver.chains``.
    """
    if resolver is None:
        resolver = UpstreamResolver(graph, limit=limit)
    return resolver.chains(target)


def attach_upstream(
    violations: Sequence[Violation],
    graph: DependencyGraph,
    limit: int = DEFAULT_CHAIN_LIMIT,
) -> list[Violation]:
    """Attach upstream chains to violations, sorted by name then version.

    One resolver is shared by all violations.
    """
    resolver = UpstreamResolver(graph, limit=limit)
    attached = [
        violation.with_upstream(resolver.chains(violation.entry.path))
        for violation in violations
    ]
    return sorted(attached, key=lambda violation: (violation.name, violation.version))
