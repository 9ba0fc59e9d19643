"""Property metrics.

- RFC: declared properties plus direct parents, per concept
- NOM: declared properties per concept
- RR: share of subclass edges among subclass edges and properties
- PR: property usages in concept and individual axioms, relative to
  subclass edges and properties
"""

import logging
from typing import List, Set

from rdflib.term import BNode, Node, URIRef

from application.metrics.base import MetricContext, ratio, record
from domain.ontology_graph import OntologyGraphAccessor, sorted_terms

logger = logging.getLogger(__name__)


def count_declared_properties(context: MetricContext) -> int:
    """Sum of direct declared-property counts over all concepts."""
    accessor = context.accessor
    return sum(
        len(accessor.declared_properties(concept, direct=True))
        for concept in accessor.list_named_classes()
    )


def count_subclass_edges(context: MetricContext) -> int:
    """Number of direct subclass edges between named concepts."""
    return sum(context.walker.child_counts().values())


def response_for_concept(context: MetricContext) -> float:
    """RFC = (sum(declared properties) + sum(direct parents)) / concepts."""
    concepts = context.accessor.list_named_classes()
    properties = count_declared_properties(context)
    parents = sum(context.walker.parent_counts().values())
    record(context, concepts=len(concepts), declared_properties=properties, direct_parents=parents)
    return ratio(properties + parents, len(concepts), "no concepts")


def properties_per_concept(context: MetricContext) -> float:
    """NOM = sum(declared properties) / concepts."""
    concepts = context.accessor.list_named_classes()
    properties = count_declared_properties(context)
    record(context, concepts=len(concepts), declared_properties=properties)
    return ratio(properties, len(concepts), "no concepts")


def relationship_richness(context: MetricContext) -> float:
    """RR = subclass edges / (subclass edges + object + datatype properties)."""
    edges = count_subclass_edges(context)
    object_properties = len(context.accessor.list_object_properties())
    datatype_properties = len(context.accessor.list_datatype_properties())
    record(
        context,
        subclass_edges=edges,
        object_properties=object_properties,
        datatype_properties=datatype_properties,
    )
    return ratio(
        edges,
        edges + object_properties + datatype_properties,
        "no subclass edges and no properties",
    )


def _properties_in_expression(
    accessor: OntologyGraphAccessor,
    node: Node,
    properties: Set[URIRef],
) -> List[URIRef]:
    """Property URIs reachable from a term through anonymous nodes.

    RDF lists inside class expressions can be long, so the blank-node
    structure is walked with an explicit stack.
    """
    found: List[URIRef] = []
    visited: Set[BNode] = set()
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, URIRef):
            if current in properties:
                found.append(current)
            continue
        if not isinstance(current, BNode) or current in visited:
            continue
        visited.add(current)
        stack.extend(obj for _, _, obj in accessor.list_triples(current, None, None))
    return found


def count_property_usages(context: MetricContext) -> int:
    """Usages of object/datatype properties in concept and individual axioms.

    Concept axioms are followed through their anonymous class expressions
    (restrictions, boolean combinations). Individual axioms count once per
    asserted triple whose predicate is a property.
    """
    accessor = context.accessor
    properties = accessor.list_object_properties() | accessor.list_datatype_properties()
    if not properties:
        return 0

    in_concepts = 0
    for concept in sorted_terms(accessor.list_named_classes()):
        for _, _, obj in accessor.list_triples(concept, None, None):
            if isinstance(obj, BNode):
                in_concepts += len(_properties_in_expression(accessor, obj, properties))

    in_individuals = 0
    for individual in accessor.list_individuals():
        in_individuals += sum(
            1 for _, predicate, _ in accessor.list_triples(individual, None, None)
            if predicate in properties
        )

    record(context, usages_in_concepts=in_concepts, usages_in_individuals=in_individuals)
    return in_concepts + in_individuals


def properties_richness(context: MetricContext) -> float:
    """PR = property usages / (subclass edges + object + datatype properties)."""
    usages = count_property_usages(context)
    edges = count_subclass_edges(context)
    object_properties = len(context.accessor.list_object_properties())
    datatype_properties = len(context.accessor.list_datatype_properties())
    record(
        context,
        property_usages=usages,
        subclass_edges=edges,
        object_properties=object_properties,
        datatype_properties=datatype_properties,
    )
    return ratio(
        usages,
        edges + object_properties + datatype_properties,
        "no subclass edges and no properties",
    )
