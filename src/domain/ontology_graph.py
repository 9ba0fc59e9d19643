"""Ontology Graph Accessor contract.

The metric engine never reads an ontology document itself. It talks to a
read-only accessor that answers a small set of structural queries over an
already materialized graph (named classes, direct sub/superclass edges,
declared properties, individuals, raw triple patterns, namespaces).

Usage:
    accessor = RdflibGraphAccessor(graph)
    for concept in accessor.list_named_classes():
        parents = accessor.direct_superclasses(concept)
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from rdflib.term import Node, URIRef


class RestrictionKind(str, Enum):
    """Kinds of OWL property restrictions recognized by the metrics."""
    SOME_VALUES_FROM = "someValuesFrom"
    ALL_VALUES_FROM = "allValuesFrom"
    HAS_VALUE = "hasValue"
    MIN_CARDINALITY = "minCardinality"
    MAX_CARDINALITY = "maxCardinality"
    NONE = "none"


# Built-in vocabularies; resources in these namespaces are never internal
# nor external to an ontology.
NS_XML = "http://www.w3.org/XML/1998/namespace"
NS_OWL = "http://www.w3.org/2002/07/owl#"
NS_OWLX = "http://www.w3.org/2003/05/owl-xml"
NS_XSD = "http://www.w3.org/2001/XMLSchema#"
NS_RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
NS_RDFS = "http://www.w3.org/2000/01/rdf-schema#"

DEFAULT_NAMESPACES: Tuple[str, ...] = (
    NS_RDF,
    NS_RDFS,
    NS_OWL,
    NS_OWLX,
    NS_XSD,
    NS_XML,
)

Triple = Tuple[Node, Node, Node]


class AccessorFailure(Exception):
    """The graph accessor could not answer a query.

    Fatal for a metrics run: no metric can be trusted once the backing
    graph stops answering.
    """

    def __init__(self, query: str, cause: Optional[BaseException] = None):
        self.query = query
        self.cause = cause
        message = f"Graph query '{query}' failed"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class OntologyGraphAccessor(ABC):
    """Read-only structural view of an ontology graph.

    All edge queries are direct (asserted, non-transitive). Implementations
    must raise AccessorFailure when the backing store cannot answer.
    """

    @abstractmethod
    def list_named_classes(self) -> Set[URIRef]:
        """All named classes (concepts) of the ontology."""

    @abstractmethod
    def direct_superclasses(self, concept: URIRef) -> Set[URIRef]:
        """Named classes asserted as direct parents of the concept."""

    @abstractmethod
    def direct_subclasses(self, concept: URIRef) -> Set[URIRef]:
        """Named classes asserted as direct children of the concept."""

    @abstractmethod
    def hierarchy_roots(self) -> Set[URIRef]:
        """Concepts with no parent other than the top concept."""

    @abstractmethod
    def declared_properties(self, concept: URIRef, direct: bool = True) -> Set[URIRef]:
        """Object/datatype properties whose domain includes the concept."""

    @abstractmethod
    def list_object_properties(self) -> Set[URIRef]:
        """Declared object properties."""

    @abstractmethod
    def list_datatype_properties(self) -> Set[URIRef]:
        """Declared datatype properties."""

    @abstractmethod
    def list_individuals(self) -> Set[URIRef]:
        """Named individuals asserted as members of some concept."""

    @abstractmethod
    def direct_instances(self, concept: URIRef) -> Set[URIRef]:
        """Individuals asserted as direct members of the concept."""

    @abstractmethod
    def list_triples(
        self,
        subject: Optional[Node] = None,
        predicate: Optional[Node] = None,
        obj: Optional[Node] = None,
    ) -> List[Triple]:
        """Triples matching the pattern; None is a wildcard."""

    @abstractmethod
    def namespace_prefix_map(self) -> Dict[str, str]:
        """Prefix -> namespace URI bindings of the ontology."""

    @abstractmethod
    def base_namespace(self) -> Optional[str]:
        """The ontology's own namespace, if one can be determined."""

    @abstractmethod
    def restriction_kind(self, expression: Node) -> RestrictionKind:
        """Kind of restriction the class expression is, or NONE."""

    def triple_count(self) -> int:
        """Number of triples in the graph."""
        return len(self.list_triples())

    def ontology_name(self) -> str:
        """Display name for reports."""
        return self.base_namespace() or "ontology"


def local_name(term: Node) -> str:
    """Display name of a term (fragment or last path segment)."""
    text = str(term)
    for separator in ("#", "/"):
        if separator in text:
            candidate = text.rsplit(separator, 1)[1]
            if candidate:
                return candidate
    return text


def sorted_terms(terms: Iterable[Node]) -> List[Node]:
    """Deterministic ordering for set-valued query results."""
    return sorted(terms, key=str)
