"""Hierarchy Walker.

Traverses the class-subsumption DAG exposed by a graph accessor: direct
parent/child sets, roots, leaves and every root-to-leaf path.

The hierarchy may have multiple parents per concept, several roots, or no
root at all, and may even contain cycles. Path enumeration is an explicit
stack-based depth-first search that refuses to revisit a concept already on
the current path; cyclic branches are dropped and reported to the caller's
diagnostics sink. A walk stops early when its cancel event is set.

Usage:
    walker = HierarchyWalker(accessor)
    paths = walker.enumerate_root_to_leaf_paths(diagnostics=MetricDiagnostics())
    depth = walker.longest_path_length()
"""

import logging
import threading
from typing import Dict, Iterator, List, Optional, Set, Tuple

from rdflib.term import URIRef

from domain.ontology_graph import OntologyGraphAccessor, local_name, sorted_terms
from domain.ontology_metrics_models import MetricCancelled, MetricDiagnostics, PathBudgetExceeded

logger = logging.getLogger(__name__)

Path = Tuple[URIRef, ...]

# Cycle truncations recorded one by one before the rest are summarized
MAX_CYCLE_DIAGNOSTICS = 20


class HierarchyWalker:
    """Read-only traversal helpers over the concept hierarchy."""

    def __init__(
        self,
        accessor: OntologyGraphAccessor,
        max_paths: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize the walker.

        Args:
            accessor: Graph accessor answering the hierarchy queries
            max_paths: Size budget for path enumeration (None = unbounded)
            cancel_event: When set, path enumeration raises MetricCancelled
        """
        self.accessor = accessor
        self.max_paths = max_paths
        self.cancel_event = cancel_event

    def direct_parents(self, concept: URIRef) -> Set[URIRef]:
        return self.accessor.direct_superclasses(concept)

    def direct_children(self, concept: URIRef) -> Set[URIRef]:
        return self.accessor.direct_subclasses(concept)

    def all_named_concepts(self) -> Set[URIRef]:
        return self.accessor.list_named_classes()

    def root_concepts(self) -> Set[URIRef]:
        return self.accessor.hierarchy_roots()

    def leaf_concepts(self) -> Set[URIRef]:
        """Concepts with zero direct children."""
        return {
            concept for concept in self.all_named_concepts()
            if not self.direct_children(concept)
        }

    def parent_counts(self) -> Dict[URIRef, int]:
        """Number of direct parents per concept."""
        return {concept: len(self.direct_parents(concept)) for concept in self.all_named_concepts()}

    def child_counts(self) -> Dict[URIRef, int]:
        """Number of direct children per concept."""
        return {concept: len(self.direct_children(concept)) for concept in self.all_named_concepts()}

    def iter_root_to_leaf_paths(
        self,
        diagnostics: Optional[MetricDiagnostics] = None,
    ) -> Iterator[Path]:
        """Yield every simple path from a root to a reachable leaf.

        A leaf reached through several parents yields one path per parent
        edge. Roots and children are visited in URI order so the sequence
        is deterministic.

        Every finished path and every cycle-truncated branch counts against
        max_paths. Only the first MAX_CYCLE_DIAGNOSTICS truncations are
        recorded individually; the rest are summarized in one message.

        Raises:
            PathBudgetExceeded: If more than max_paths branches are explored
            MetricCancelled: If the cancel event is set during the walk
        """
        children_cache: Dict[URIRef, List[URIRef]] = {}
        branches = 0
        truncations = 0

        def children_of(concept: URIRef) -> List[URIRef]:
            if concept not in children_cache:
                children_cache[concept] = sorted_terms(self.direct_children(concept))
            return children_cache[concept]

        def count_branch() -> None:
            nonlocal branches
            branches += 1
            if self.max_paths is not None and branches > self.max_paths:
                raise PathBudgetExceeded(self.max_paths)

        try:
            for root in sorted_terms(self.root_concepts()):
                self._check_cancelled()
                if not children_of(root):
                    count_branch()
                    yield (root,)
                    continue

                # Each frame: concept on the path and an iterator over its children
                path: List[URIRef] = [root]
                on_path: Set[URIRef] = {root}
                stack = [iter(children_of(root))]

                while stack:
                    self._check_cancelled()
                    child = next(stack[-1], None)
                    if child is None:
                        stack.pop()
                        on_path.discard(path.pop())
                        continue

                    if child in on_path:
                        truncations += 1
                        if truncations <= MAX_CYCLE_DIAGNOSTICS:
                            message = (
                                f"Cycle truncated: {' -> '.join(local_name(c) for c in path)}"
                                f" -> {local_name(child)}"
                            )
                            logger.debug(message)
                            if diagnostics is not None:
                                diagnostics.record(message)
                        count_branch()
                        continue

                    grandchildren = children_of(child)
                    if not grandchildren:
                        count_branch()
                        yield tuple(path) + (child,)
                        continue

                    path.append(child)
                    on_path.add(child)
                    stack.append(iter(grandchildren))
        finally:
            suppressed = truncations - MAX_CYCLE_DIAGNOSTICS
            if suppressed > 0 and diagnostics is not None:
                diagnostics.record(f"{suppressed} further cycle truncations not listed")

    def enumerate_root_to_leaf_paths(
        self,
        diagnostics: Optional[MetricDiagnostics] = None,
    ) -> List[Path]:
        """All root-to-leaf paths, bounded by max_paths.

        Returns an empty list when the hierarchy has no root.

        Raises:
            PathBudgetExceeded: If more than max_paths branches are explored
            MetricCancelled: If the cancel event is set during the walk
        """
        paths = list(self.iter_root_to_leaf_paths(diagnostics))

        if not paths and diagnostics is not None and not self.root_concepts():
            diagnostics.record("Hierarchy has no root concept; no paths enumerated")

        logger.debug(f"Enumerated {len(paths)} root-to-leaf paths")
        return paths

    def longest_path_length(self, diagnostics: Optional[MetricDiagnostics] = None) -> Optional[int]:
        """Concept count of the longest root-to-leaf path, None if there are no paths.

        The count equals the number of edges from the top concept to the leaf.
        """
        paths = self.enumerate_root_to_leaf_paths(diagnostics)
        if not paths:
            return None
        return max(len(path) for path in paths)

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise MetricCancelled("Hierarchy walk cancelled")
