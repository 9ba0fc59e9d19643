"""Annotation, attribute and individual richness metrics."""

import logging
from typing import Set

from rdflib.namespace import OWL, RDF, RDFS
from rdflib.term import BNode, Node

from application.metrics.base import MetricContext, ratio, record
from domain.ontology_graph import OntologyGraphAccessor, RestrictionKind

logger = logging.getLogger(__name__)

# OWL annotation properties counted by annotation richness
ANNOTATION_PROPERTIES = (
    RDFS.comment,
    RDFS.label,
    RDFS.seeAlso,
    RDFS.isDefinedBy,
    OWL.versionInfo,
)

COUNTED_RESTRICTIONS = frozenset(RestrictionKind) - {RestrictionKind.NONE}


def annotation_richness(context: MetricContext) -> float:
    """AN = annotations on concepts / concepts."""
    accessor = context.accessor
    concepts = accessor.list_named_classes()
    annotations = sum(
        len(accessor.list_triples(concept, annotation, None))
        for concept in concepts
        for annotation in ANNOTATION_PROPERTIES
    )
    record(context, concepts=len(concepts), annotations=annotations)
    return ratio(annotations, len(concepts), "no concepts")


def _list_members(accessor: OntologyGraphAccessor, head: Node) -> list:
    """Members of an RDF collection, stopping at malformed or cyclic lists."""
    members = []
    seen: Set[Node] = set()
    while isinstance(head, BNode) and head not in seen:
        seen.add(head)
        members.extend(obj for _, _, obj in accessor.list_triples(head, RDF.first, None))
        rest = accessor.list_triples(head, RDF.rest, None)
        head = rest[0][2] if rest else RDF.nil
    return members


def count_restrictions(accessor: OntologyGraphAccessor, concept: Node) -> int:
    """Restrictions of the recognized kinds among a concept's superclass expressions.

    Boolean combinations (intersectionOf, unionOf) are descended into so
    nested restrictions count as well.
    """
    count = 0
    visited: Set[Node] = set()
    stack = [obj for _, _, obj in accessor.list_triples(concept, RDFS.subClassOf, None)]
    while stack:
        expression = stack.pop()
        if not isinstance(expression, BNode) or expression in visited:
            continue
        visited.add(expression)

        if accessor.restriction_kind(expression) in COUNTED_RESTRICTIONS:
            count += 1
            continue

        for operator in (OWL.intersectionOf, OWL.unionOf):
            for _, _, head in accessor.list_triples(expression, operator, None):
                stack.extend(_list_members(accessor, head))
    return count


def attribute_richness(context: MetricContext) -> float:
    """AR = restrictions nested in subClassOf axioms / concepts."""
    accessor = context.accessor
    concepts = accessor.list_named_classes()
    restrictions = sum(count_restrictions(accessor, concept) for concept in concepts)
    record(context, concepts=len(concepts), restrictions=restrictions)
    return ratio(restrictions, len(concepts), "no concepts")


def individual_richness(context: MetricContext) -> float:
    """CR = direct individuals per concept."""
    accessor = context.accessor
    concepts = accessor.list_named_classes()
    individuals = sum(len(accessor.direct_instances(concept)) for concept in concepts)
    record(context, concepts=len(concepts), direct_individuals=individuals)
    return ratio(individuals, len(concepts), "no concepts")
