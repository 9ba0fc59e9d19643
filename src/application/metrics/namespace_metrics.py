"""Namespace metrics.

- CP (composability): share of external resource usages among internal
  and external usages
- AG (aggregability): max/min share of the external namespaces in the
  total external usage

Resource usage is counted per triple: subject, predicate and object are
classified independently, so one triple contributes zero to three usages.
Blank nodes and literals are never counted.
"""

import logging
from typing import Dict, List, Optional

from rdflib.term import URIRef

from application.metrics.base import MetricContext, ratio, record
from application.services.namespace_classifier import NamespaceClassifier, namespace_of
from domain.ontology_graph import OntologyGraphAccessor
from domain.ontology_metrics_models import NamespaceCategory, ResourceUsage, UndefinedMetric

logger = logging.getLogger(__name__)


def _declared_external_namespaces(
    accessor: OntologyGraphAccessor,
    classifier: NamespaceClassifier,
) -> List[str]:
    """External namespaces from the prefix map, longest first."""
    namespaces = {
        namespace for namespace in accessor.namespace_prefix_map().values()
        if namespace and classifier.is_namespace_external(namespace)
    }
    return sorted(namespaces, key=len, reverse=True)


def _attribute_namespace(uri: str, declared: List[str]) -> str:
    """Declared namespace owning the URI, else the URI's own namespace."""
    namespace = namespace_of(uri)
    for candidate in declared:
        if namespace.startswith(candidate):
            return candidate
    return namespace


def count_resource_usage(
    accessor: OntologyGraphAccessor,
    classifier: NamespaceClassifier,
) -> ResourceUsage:
    """Classify every URI occurrence in every triple."""
    usage = ResourceUsage()
    declared = _declared_external_namespaces(accessor, classifier)
    attribution: Dict[str, Optional[str]] = {}

    for triple in accessor.list_triples():
        for term in triple:
            if not isinstance(term, URIRef):
                continue
            uri = str(term)
            category = classifier.classify(uri)
            namespace = None
            if category == NamespaceCategory.EXTERNAL:
                if uri not in attribution:
                    attribution[uri] = _attribute_namespace(uri, declared)
                namespace = attribution[uri]
            usage.add(category, namespace)

    logger.debug(
        f"Resource usage: default={usage.default_usages}, "
        f"internal={usage.internal_usages}, external={usage.external_usages}"
    )
    return usage


def composability(context: MetricContext) -> float:
    """CP = external usages / (internal + external usages)."""
    usage = count_resource_usage(context.accessor, context.classifier)
    record(
        context,
        base_namespace=context.classifier.base_namespace,
        internal_usages=usage.internal_usages,
        external_usages=usage.external_usages,
        default_usages=usage.default_usages,
        total_usages=usage.total_usages,
    )
    if context.classifier.base_namespace is None:
        context.diagnostics.record("No base namespace; every non-default resource is external")
    return ratio(
        usage.external_usages,
        usage.internal_usages + usage.external_usages,
        "no internal or external resource usages",
    )


def aggregability(context: MetricContext) -> float:
    """AG = max(ENS_i / NE) / min(ENS_i / NE) over used external namespaces."""
    usage = count_resource_usage(context.accessor, context.classifier)
    contributions = {ns: n for ns, n in usage.external_by_namespace.items() if n > 0}
    total = sum(contributions.values())
    record(
        context,
        external_usages=total,
        external_namespaces=len(contributions),
        usage_by_namespace=dict(sorted(contributions.items())),
    )
    if len(contributions) < 2:
        raise UndefinedMetric("fewer than two external namespaces in use")

    shares = {ns: n / total for ns, n in contributions.items()}
    max_namespace = max(shares, key=lambda ns: (shares[ns], ns))
    min_namespace = min(shares, key=lambda ns: (shares[ns], ns))
    record(context, max_namespace=max_namespace, min_namespace=min_namespace)
    return shares[max_namespace] / shares[min_namespace]
