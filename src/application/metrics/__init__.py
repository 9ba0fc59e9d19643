"""Structural metric catalogue.

METRIC_REGISTRY maps every MetricName to the function computing it. The
engine selects metrics through this mapping only.
"""

from typing import Dict

from application.metrics.base import MetricContext, MetricDefinition, new_context, ratio
from application.metrics.hierarchy_metrics import (
    ancestors_per_leaf,
    children_per_concept,
    coupling_between_objects,
    depth_of_inheritance,
    lack_of_cohesion,
    relationships_per_concept,
    tangledness,
    weighted_method_count,
)
from application.metrics.namespace_metrics import aggregability, composability, count_resource_usage
from application.metrics.property_metrics import (
    properties_per_concept,
    properties_richness,
    relationship_richness,
    response_for_concept,
)
from application.metrics.richness_metrics import (
    annotation_richness,
    attribute_richness,
    individual_richness,
)
from domain.ontology_metrics_models import MetricName

_DEFINITIONS = [
    MetricDefinition(
        MetricName.DIT, "Depth of subsumption hierarchy", depth_of_inheritance,
        "Length of the longest path from the top concept to a leaf",
    ),
    MetricDefinition(
        MetricName.LCOM, "Lack of cohesion in methods", lack_of_cohesion,
        "Mean length of all root-to-leaf paths",
    ),
    MetricDefinition(
        MetricName.WMC, "Weighted method count", weighted_method_count,
        "Root-to-leaf paths per leaf concept",
    ),
    MetricDefinition(
        MetricName.CBO, "Coupling between objects", coupling_between_objects,
        "Direct parents per concept, not counting root concepts",
    ),
    MetricDefinition(
        MetricName.NAC, "Number of ancestor concepts", ancestors_per_leaf,
        "Direct parents per leaf concept",
    ),
    MetricDefinition(
        MetricName.NOC, "Number of children concepts", children_per_concept,
        "Direct children per non-leaf concept",
    ),
    MetricDefinition(
        MetricName.TM, "Tangledness", tangledness,
        "Direct parents per concept with multiple parents",
    ),
    MetricDefinition(
        MetricName.INR, "Relationships per concept", relationships_per_concept,
        "Subclass edges per concept",
    ),
    MetricDefinition(
        MetricName.RFC, "Response for a concept", response_for_concept,
        "Declared properties and direct parents per concept",
    ),
    MetricDefinition(
        MetricName.NOM, "Number of properties", properties_per_concept,
        "Declared properties per concept",
    ),
    MetricDefinition(
        MetricName.RR, "Relationship richness", relationship_richness,
        "Subclass edges among subclass edges and properties",
    ),
    MetricDefinition(
        MetricName.PR, "Properties richness", properties_richness,
        "Property usages in axioms relative to subclass edges and properties",
    ),
    MetricDefinition(
        MetricName.AN, "Annotation richness", annotation_richness,
        "Annotations per concept",
    ),
    MetricDefinition(
        MetricName.AR, "Attribute richness", attribute_richness,
        "Property restrictions in subClassOf axioms per concept",
    ),
    MetricDefinition(
        MetricName.CR, "Individual richness", individual_richness,
        "Direct individuals per concept",
    ),
    MetricDefinition(
        MetricName.CP, "Composability", composability,
        "External resource usages among internal and external usages",
    ),
    MetricDefinition(
        MetricName.AG, "Aggregability", aggregability,
        "Ratio of the largest to the smallest external namespace share",
    ),
]

METRIC_REGISTRY: Dict[MetricName, MetricDefinition] = {d.name: d for d in _DEFINITIONS}

__all__ = [
    "METRIC_REGISTRY",
    "MetricContext",
    "MetricDefinition",
    "count_resource_usage",
    "new_context",
    "ratio",
]
