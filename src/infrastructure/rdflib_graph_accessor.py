"""rdflib Graph Accessor.

Answers the structural queries of OntologyGraphAccessor over an in-memory
rdflib Graph. All edges are asserted edges; no reasoning is applied.

Usage:
    accessor = RdflibGraphAccessor.from_file("pizza.owl")
    service = OntologyMetricsService(accessor)
"""

import functools
import logging
from pathlib import Path
from threading import Lock
from typing import Dict, FrozenSet, List, Optional, Set, Union

from rdflib import Graph
from rdflib.namespace import OWL, RDF, RDFS
from rdflib.term import BNode, Node, URIRef
from rdflib.util import guess_format

from domain.ontology_graph import (
    DEFAULT_NAMESPACES,
    AccessorFailure,
    OntologyGraphAccessor,
    RestrictionKind,
    Triple,
)

logger = logging.getLogger(__name__)

CLASS_TYPES = (OWL.Class, RDFS.Class)
TOP_CONCEPTS = frozenset({OWL.Thing, OWL.Nothing})

# Property characteristics that only apply to object properties
OBJECT_PROPERTY_TYPES = (
    OWL.ObjectProperty,
    OWL.TransitiveProperty,
    OWL.SymmetricProperty,
    OWL.AsymmetricProperty,
    OWL.ReflexiveProperty,
    OWL.IrreflexiveProperty,
    OWL.InverseFunctionalProperty,
)

RESTRICTION_PREDICATES = (
    (OWL.someValuesFrom, RestrictionKind.SOME_VALUES_FROM),
    (OWL.allValuesFrom, RestrictionKind.ALL_VALUES_FROM),
    (OWL.hasValue, RestrictionKind.HAS_VALUE),
    (OWL.minCardinality, RestrictionKind.MIN_CARDINALITY),
    (OWL.minQualifiedCardinality, RestrictionKind.MIN_CARDINALITY),
    (OWL.maxCardinality, RestrictionKind.MAX_CARDINALITY),
    (OWL.maxQualifiedCardinality, RestrictionKind.MAX_CARDINALITY),
)


def graph_query(method):
    """Re-raise backend errors of an accessor method as AccessorFailure."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except AccessorFailure:
            raise
        except Exception as e:
            logger.error(f"Graph query {method.__name__} failed: {e}")
            raise AccessorFailure(method.__name__, e) from e

    return wrapper


class RdflibGraphAccessor(OntologyGraphAccessor):
    """OntologyGraphAccessor over an rdflib Graph."""

    def __init__(self, graph: Graph, base_namespace: Optional[str] = None):
        """Initialize the accessor.

        Args:
            graph: Parsed ontology graph; must not be modified while in use
            base_namespace: Explicit base namespace (resolved from the graph
                when not given)
        """
        self.graph = graph
        self._base_namespace = base_namespace
        self._named_classes: Optional[FrozenSet[URIRef]] = None
        self._lock = Lock()

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        format: Optional[str] = None,
        base_namespace: Optional[str] = None,
    ) -> "RdflibGraphAccessor":
        """Parse an ontology document into a new accessor.

        Args:
            path: Ontology file (RDF/XML, Turtle, N-Triples, JSON-LD, ...)
            format: rdflib parser name; guessed from the extension if omitted
            base_namespace: Explicit base namespace
        """
        path = Path(path)
        graph = Graph()
        rdf_format = format or guess_format(str(path)) or "xml"
        graph.parse(str(path), format=rdf_format)
        logger.info(f"Loaded {len(graph)} triples from {path} ({rdf_format})")
        return cls(graph, base_namespace=base_namespace)

    # --- Classes ---

    def _compute_named_classes(self) -> FrozenSet[URIRef]:
        candidates: Set[Node] = set()
        for class_type in CLASS_TYPES:
            candidates.update(self.graph.subjects(RDF.type, class_type))
        for subject, _, obj in self.graph.triples((None, RDFS.subClassOf, None)):
            candidates.add(subject)
            candidates.add(obj)

        return frozenset(
            term for term in candidates
            if isinstance(term, URIRef)
            and term not in TOP_CONCEPTS
            and not str(term).startswith(DEFAULT_NAMESPACES)
        )

    def _named(self) -> FrozenSet[URIRef]:
        if self._named_classes is None:
            with self._lock:
                if self._named_classes is None:
                    self._named_classes = self._compute_named_classes()
        return self._named_classes

    @graph_query
    def list_named_classes(self) -> Set[URIRef]:
        return set(self._named())

    @graph_query
    def direct_superclasses(self, concept: URIRef) -> Set[URIRef]:
        named = self._named()
        return {
            parent for parent in self.graph.objects(concept, RDFS.subClassOf)
            if parent in named
        }

    @graph_query
    def direct_subclasses(self, concept: URIRef) -> Set[URIRef]:
        named = self._named()
        return {
            child for child in self.graph.subjects(RDFS.subClassOf, concept)
            if child in named
        }

    @graph_query
    def hierarchy_roots(self) -> Set[URIRef]:
        return {concept for concept in self._named() if not self.direct_superclasses(concept)}

    # --- Properties ---

    @graph_query
    def list_object_properties(self) -> Set[URIRef]:
        properties: Set[URIRef] = set()
        for property_type in OBJECT_PROPERTY_TYPES:
            properties.update(
                p for p in self.graph.subjects(RDF.type, property_type) if isinstance(p, URIRef)
            )
        return properties

    @graph_query
    def list_datatype_properties(self) -> Set[URIRef]:
        return {
            p for p in self.graph.subjects(RDF.type, OWL.DatatypeProperty)
            if isinstance(p, URIRef)
        }

    def _domain_classes(self, prop: URIRef) -> Set[Node]:
        """Classes named by a property's rdfs:domain, unfolding owl:unionOf."""
        domains: Set[Node] = set()
        for domain in self.graph.objects(prop, RDFS.domain):
            if isinstance(domain, BNode):
                for union in self.graph.objects(domain, OWL.unionOf):
                    domains.update(self.graph.items(union))
            else:
                domains.add(domain)
        return domains

    def _ancestors(self, concept: URIRef) -> Set[URIRef]:
        ancestors: Set[URIRef] = set()
        stack = [concept]
        while stack:
            for parent in self.direct_superclasses(stack.pop()):
                if parent not in ancestors and parent != concept:
                    ancestors.add(parent)
                    stack.append(parent)
        return ancestors

    @graph_query
    def declared_properties(self, concept: URIRef, direct: bool = True) -> Set[URIRef]:
        targets = {concept} if direct else {concept} | self._ancestors(concept)
        properties = self.list_object_properties() | self.list_datatype_properties()
        return {
            prop for prop in properties
            if self._domain_classes(prop) & targets
        }

    # --- Individuals ---

    @graph_query
    def list_individuals(self) -> Set[URIRef]:
        named = self._named()
        individuals: Set[URIRef] = set()
        for subject, _, rdf_type in self.graph.triples((None, RDF.type, None)):
            if not isinstance(subject, URIRef) or subject in named:
                continue
            if rdf_type in named or rdf_type == OWL.NamedIndividual:
                individuals.add(subject)
        return individuals

    @graph_query
    def direct_instances(self, concept: URIRef) -> Set[URIRef]:
        return {
            subject for subject in self.graph.subjects(RDF.type, concept)
            if isinstance(subject, URIRef)
        }

    # --- Triples and namespaces ---

    @graph_query
    def list_triples(
        self,
        subject: Optional[Node] = None,
        predicate: Optional[Node] = None,
        obj: Optional[Node] = None,
    ) -> List[Triple]:
        return list(self.graph.triples((subject, predicate, obj)))

    @graph_query
    def triple_count(self) -> int:
        return len(self.graph)

    @graph_query
    def namespace_prefix_map(self) -> Dict[str, str]:
        return {prefix: str(namespace) for prefix, namespace in self.graph.namespaces()}

    def _ontology_iri(self) -> Optional[URIRef]:
        for ontology in sorted(self.graph.subjects(RDF.type, OWL.Ontology), key=str):
            if isinstance(ontology, URIRef):
                return ontology
        return None

    @graph_query
    def base_namespace(self) -> Optional[str]:
        if self._base_namespace:
            return self._base_namespace

        default_prefix = self.namespace_prefix_map().get("")
        if default_prefix:
            return default_prefix

        ontology = self._ontology_iri()
        if ontology is not None:
            iri = str(ontology)
            return iri if iri.endswith(("#", "/")) else iri + "#"
        return None

    @graph_query
    def ontology_name(self) -> str:
        ontology = self._ontology_iri()
        if ontology is not None:
            return str(ontology)
        return self.base_namespace() or "ontology"

    # --- Restrictions ---

    @graph_query
    def restriction_kind(self, expression: Node) -> RestrictionKind:
        is_restriction = (
            (expression, RDF.type, OWL.Restriction) in self.graph
            or (expression, OWL.onProperty, None) in self.graph
        )
        if not is_restriction:
            return RestrictionKind.NONE

        for predicate, kind in RESTRICTION_PREDICATES:
            if (expression, predicate, None) in self.graph:
                return kind
        return RestrictionKind.NONE
