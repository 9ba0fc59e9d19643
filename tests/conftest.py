"""Shared fixtures: small in-memory ontologies."""

import pytest
from rdflib import Graph, Namespace

from infrastructure.rdflib_graph_accessor import RdflibGraphAccessor

EX = Namespace("http://example.org/onto#")

# Concepts: Animal, Mammal, Bird, Dog, Cat, Bat, Flyer (7)
# Roots: Animal, Flyer. Leaves: Bird, Dog, Cat, Bat. Bat has two parents.
ANIMALS_TTL = """
@prefix : <http://example.org/onto#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .

<http://example.org/onto> a owl:Ontology .

:Animal a owl:Class ;
    rdfs:subClassOf owl:Thing ;
    rdfs:label "Animal" ;
    rdfs:comment "A living creature" .
:Mammal a owl:Class ; rdfs:subClassOf :Animal ; rdfs:label "Mammal" .
:Bird a owl:Class ;
    rdfs:subClassOf :Animal ;
    rdfs:subClassOf [ a owl:Restriction ; owl:onProperty :eats ; owl:cardinality 2 ] .
:Dog a owl:Class ;
    rdfs:subClassOf :Mammal ;
    rdfs:subClassOf [ a owl:Restriction ; owl:onProperty :eats ; owl:someValuesFrom :Cat ] .
:Cat a owl:Class ;
    rdfs:subClassOf :Mammal ;
    rdfs:subClassOf [ owl:intersectionOf (
        [ a owl:Restriction ; owl:onProperty :name ; owl:maxCardinality 1 ]
        [ a owl:Restriction ; owl:onProperty :eats ; owl:allValuesFrom :Bird ]
    ) ] .
:Bat a owl:Class ; rdfs:subClassOf :Mammal , :Flyer .
:Flyer a owl:Class .

:eats a owl:ObjectProperty ; rdfs:domain :Animal .
:name a owl:DatatypeProperty ; rdfs:domain :Animal ; rdfs:range xsd:string .
:wingspan a owl:DatatypeProperty ; rdfs:domain [ owl:unionOf ( :Bird :Bat ) ] .

:rex a :Dog ; :eats :tweety ; :name "Rex" .
:tweety a :Bird .
:felix a :Cat , owl:NamedIndividual .
"""


def make_accessor(turtle: str, base_namespace=None) -> RdflibGraphAccessor:
    graph = Graph()
    graph.parse(data=turtle, format="turtle")
    return RdflibGraphAccessor(graph, base_namespace=base_namespace)


def chain_turtle(depth: int) -> str:
    """A single chain C1 <- C2 <- ... <- C<depth>."""
    lines = [
        "@prefix : <http://example.org/onto#> .",
        "@prefix owl: <http://www.w3.org/2002/07/owl#> .",
        "@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .",
        ":C1 a owl:Class .",
    ]
    for i in range(2, depth + 1):
        lines.append(f":C{i} a owl:Class ; rdfs:subClassOf :C{i - 1} .")
    return "\n".join(lines)


def looped_dag_turtle(size: int) -> str:
    """Root R over N1..N<size>, where every Nj is a subclass of every Ni with i < j.

    N1 is also a subclass of N<size>, so there is no leaf and each of the
    2 ** (size - 2) walks from N1 down to N<size> ends in a cycle back to N1.
    """
    lines = [
        "@prefix : <http://example.org/onto#> .",
        "@prefix owl: <http://www.w3.org/2002/07/owl#> .",
        "@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .",
        ":R a owl:Class .",
        f":N1 a owl:Class ; rdfs:subClassOf :R , :N{size} .",
    ]
    for j in range(2, size + 1):
        parents = " , ".join(f":N{i}" for i in range(1, j))
        lines.append(f":N{j} a owl:Class ; rdfs:subClassOf {parents} .")
    return "\n".join(lines)


@pytest.fixture
def animals_accessor():
    """Accessor over the animals ontology."""
    return make_accessor(ANIMALS_TTL)


@pytest.fixture
def empty_accessor():
    """Accessor over an empty graph."""
    return RdflibGraphAccessor(Graph())


@pytest.fixture
def external_usage_accessor():
    """Two external namespaces used 10 and 30 times."""
    graph = Graph()
    a_ns = Namespace("http://a.example.com/ns#")
    b_ns = Namespace("http://b.example.com/ns#")
    for i in range(10):
        graph.add((EX[f"x{i}"], EX.uses, a_ns[f"term{i}"]))
    for i in range(30):
        graph.add((EX[f"y{i}"], EX.uses, b_ns[f"term{i}"]))
    return RdflibGraphAccessor(graph, base_namespace=str(EX))


@pytest.fixture
def cyclic_accessor():
    """Root R with R <- B <- A, and a B <-> C cycle."""
    return make_accessor("""
        @prefix : <http://example.org/onto#> .
        @prefix owl: <http://www.w3.org/2002/07/owl#> .
        @prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
        :R a owl:Class .
        :B a owl:Class ; rdfs:subClassOf :R , :C .
        :C a owl:Class ; rdfs:subClassOf :B .
        :A a owl:Class ; rdfs:subClassOf :B .
    """)


@pytest.fixture
def accessor_from_turtle():
    """Factory: Turtle text -> accessor."""
    return make_accessor


@pytest.fixture
def chain_accessor():
    """Factory: depth -> accessor over a single-chain hierarchy."""
    return lambda depth: make_accessor(chain_turtle(depth))


@pytest.fixture
def animals_turtle():
    return ANIMALS_TTL


@pytest.fixture
def looped_dag_accessor():
    """Factory: size -> accessor over a dense hierarchy closed by one back edge."""
    return lambda size: make_accessor(looped_dag_turtle(size))
