"""Hierarchy metrics.

Metrics over the subsumption hierarchy:
- DIT: depth of the hierarchy (longest root-to-leaf path)
- LCOM: mean root-to-leaf path length
- WMC: root-to-leaf paths per leaf concept
- CBO: direct parents per non-root concept
- NAC: direct parents per leaf concept
- NOC: direct children per non-leaf concept
- TM: tangledness (parents per multi-parent concept)
- INR: subclass edges per concept

Path lengths count the concepts on a path, i.e. the edges from the top
concept down to the leaf.
"""

import logging

from application.metrics.base import MetricContext, ratio, record
from domain.ontology_metrics_models import UndefinedMetric

logger = logging.getLogger(__name__)


def depth_of_inheritance(context: MetricContext) -> float:
    """DIT = max(PathLength(Thing, Leaf_i))."""
    paths = context.walker.enumerate_root_to_leaf_paths(context.diagnostics)
    record(context, paths=len(paths))
    if not paths:
        raise UndefinedMetric("no root-to-leaf paths")

    longest = max(paths, key=len)
    record(context, longest_path=[str(c) for c in longest])
    return float(len(longest))


def lack_of_cohesion(context: MetricContext) -> float:
    """LCOM = sum(PathLength) / number of paths."""
    paths = context.walker.enumerate_root_to_leaf_paths(context.diagnostics)
    total_length = sum(len(path) for path in paths)
    record(context, paths=len(paths), total_path_length=total_length)
    return ratio(total_length, len(paths), "no root-to-leaf paths")


def weighted_method_count(context: MetricContext) -> float:
    """WMC = number of paths / number of leaf concepts."""
    paths = context.walker.enumerate_root_to_leaf_paths(context.diagnostics)
    leaves = context.walker.leaf_concepts()
    record(context, paths=len(paths), leaves=len(leaves))
    return ratio(len(paths), len(leaves), "no leaf concepts")


def coupling_between_objects(context: MetricContext) -> float:
    """CBO = sum(direct parents) / (concepts - roots)."""
    parent_counts = context.walker.parent_counts()
    roots = context.walker.root_concepts()
    total_parents = sum(parent_counts.values())
    denominator = len(parent_counts) - len(roots)
    record(
        context,
        concepts=len(parent_counts),
        roots=len(roots),
        direct_parents=total_parents,
    )
    return ratio(total_parents, denominator, "every concept is a root")


def ancestors_per_leaf(context: MetricContext) -> float:
    """NAC = sum(direct parents of leaves) / number of leaves."""
    leaves = context.walker.leaf_concepts()
    leaf_parents = sum(len(context.walker.direct_parents(leaf)) for leaf in leaves)
    record(context, leaves=len(leaves), leaf_direct_parents=leaf_parents)
    return ratio(leaf_parents, len(leaves), "no leaf concepts")


def children_per_concept(context: MetricContext) -> float:
    """NOC = sum(direct children) / (concepts - leaves)."""
    child_counts = context.walker.child_counts()
    total_children = sum(child_counts.values())
    leaves = sum(1 for count in child_counts.values() if count == 0)
    record(
        context,
        concepts=len(child_counts),
        leaves=leaves,
        direct_children=total_children,
    )
    return ratio(total_children, len(child_counts) - leaves, "every concept is a leaf")


def tangledness(context: MetricContext) -> float:
    """TM = sum(parents of multi-parent concepts) / number of such concepts."""
    multi_parent = {
        concept: count
        for concept, count in context.walker.parent_counts().items()
        if count > 1
    }
    total_parents = sum(multi_parent.values())
    record(context, multi_parent_concepts=len(multi_parent), their_direct_parents=total_parents)
    return ratio(total_parents, len(multi_parent), "no concepts with multiple parents")


def relationships_per_concept(context: MetricContext) -> float:
    """INR = subclass edges / number of concepts."""
    child_counts = context.walker.child_counts()
    edges = sum(child_counts.values())
    record(context, concepts=len(child_counts), subclass_edges=edges)
    return ratio(edges, len(child_counts), "no concepts")
