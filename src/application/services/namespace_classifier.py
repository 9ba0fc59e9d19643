"""Namespace Classifier.

Partitions resource URIs into default-vocabulary, internal (the ontology's
own base namespace) and external namespaces. The partition is total and
mutually exclusive; the default check wins when a URI could match both the
built-ins and the base namespace.
"""

import logging
from typing import Iterable, Optional, Tuple

from rdflib.namespace import split_uri
from rdflib.term import Node, URIRef

from domain.ontology_graph import DEFAULT_NAMESPACES
from domain.ontology_metrics_models import NamespaceCategory

logger = logging.getLogger(__name__)


def namespace_of(uri: str) -> str:
    """Namespace part of a URI (everything up to the local name).

    Falls back to splitting on the last '#' or '/' for URIs whose local
    part is not a valid XML name.
    """
    try:
        namespace, _ = split_uri(URIRef(uri))
        return str(namespace)
    except ValueError:
        for separator in ("#", "/"):
            index = uri.rfind(separator)
            if index >= 0:
                return uri[: index + 1]
        return uri


class NamespaceClassifier:
    """Classifies URIs relative to a base namespace."""

    def __init__(
        self,
        base_namespace: Optional[str],
        default_namespaces: Iterable[str] = DEFAULT_NAMESPACES,
    ):
        """Initialize the classifier.

        Args:
            base_namespace: The ontology's own namespace; None means no URI
                is internal
            default_namespaces: Built-in vocabulary namespaces
        """
        self.base_namespace = base_namespace or None
        self.default_namespaces: Tuple[str, ...] = tuple(default_namespaces)

    def is_default(self, uri: str) -> bool:
        """True if the URI belongs to a built-in vocabulary."""
        return namespace_of(uri).startswith(self.default_namespaces)

    def is_internal(self, uri: str) -> bool:
        """True if the URI belongs to the base namespace (and is not default)."""
        return self.classify(uri) == NamespaceCategory.INTERNAL

    def _in_base(self, uri: str, namespace: str) -> bool:
        if self.base_namespace is None:
            return False
        # The ontology IRI itself is the base namespace without its separator
        return namespace.startswith(self.base_namespace) or uri == self.base_namespace.rstrip("#/")

    def classify(self, uri: str) -> NamespaceCategory:
        """Classify a URI as DEFAULT, INTERNAL or EXTERNAL."""
        namespace = namespace_of(uri)
        if namespace.startswith(self.default_namespaces):
            return NamespaceCategory.DEFAULT
        if self._in_base(uri, namespace):
            return NamespaceCategory.INTERNAL
        return NamespaceCategory.EXTERNAL

    def classify_term(self, term: Node) -> Optional[NamespaceCategory]:
        """Classify an RDF term; None for blank nodes and literals."""
        if not isinstance(term, URIRef):
            return None
        return self.classify(str(term))

    def is_namespace_default(self, namespace: str) -> bool:
        """True if a namespace URI (e.g. from a prefix map) is a built-in."""
        return namespace.startswith(self.default_namespaces)

    def is_namespace_external(self, namespace: str) -> bool:
        """True if a namespace URI is neither built-in nor the base namespace."""
        if self.is_namespace_default(namespace):
            return False
        if self.base_namespace is not None and namespace.startswith(self.base_namespace):
            return False
        return True
