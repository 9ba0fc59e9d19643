"""Shared building blocks for metric functions."""

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from application.services.hierarchy_walker import HierarchyWalker
from application.services.namespace_classifier import NamespaceClassifier
from domain.ontology_graph import OntologyGraphAccessor
from domain.ontology_metrics_models import MetricDiagnostics, MetricName, UndefinedMetric


@dataclass
class MetricContext:
    """Inputs handed to a metric function.

    Accessor, walker and classifier are read-only and shared. Diagnostics
    and details belong to a single metric invocation.
    """
    accessor: OntologyGraphAccessor
    walker: HierarchyWalker
    classifier: NamespaceClassifier
    diagnostics: MetricDiagnostics = field(default_factory=MetricDiagnostics)
    details: Dict[str, Any] = field(default_factory=dict)


MetricFunction = Callable[[MetricContext], float]


@dataclass(frozen=True)
class MetricDefinition:
    """Registry entry describing one metric."""
    name: MetricName
    title: str
    compute: MetricFunction
    description: str = ""


def ratio(numerator: float, denominator: float, reason: str) -> float:
    """numerator / denominator, or UndefinedMetric when denominator <= 0."""
    if denominator <= 0:
        raise UndefinedMetric(reason)
    return numerator / denominator


def record(context: MetricContext, **counts: Any) -> None:
    """Attach intermediate counts to the metric result."""
    context.details.update(counts)


def new_context(
    accessor: OntologyGraphAccessor,
    max_paths: Optional[int] = None,
    base_namespace: Optional[str] = None,
    cancel_event: Optional[threading.Event] = None,
) -> MetricContext:
    """Build a context directly from an accessor."""
    return MetricContext(
        accessor=accessor,
        walker=HierarchyWalker(accessor, max_paths=max_paths, cancel_event=cancel_event),
        classifier=NamespaceClassifier(base_namespace or accessor.base_namespace()),
    )
