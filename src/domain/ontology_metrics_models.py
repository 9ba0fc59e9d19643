"""Ontology Structural Metrics Models.

Defines the result types for structural ontology metrics:
- Hierarchy metrics (depth, paths, coupling, tangledness)
- Property metrics (response, properties per concept, richness)
- Annotation, attribute and individual richness
- Namespace composability and aggregability

A metric value of None means the metric is undefined for the ontology
(empty input set or zero denominator). Undefined is a normal outcome,
never an error.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class MetricName(str, Enum):
    """Identifiers of the structural metrics."""
    DIT = "DIT"      # Depth of subsumption hierarchy
    LCOM = "LCOM"    # Lack of cohesion (mean root-to-leaf path length)
    WMC = "WMC"      # Paths per leaf
    CBO = "CBO"      # Coupling between objects
    NAC = "NAC"      # Ancestors per leaf
    NOC = "NOC"      # Children per non-leaf concept
    TM = "TM"        # Tangledness
    INR = "INR"      # Relationships (subclass edges) per concept
    RFC = "RFC"      # Response for a concept
    NOM = "NOM"      # Properties per concept
    RR = "RR"        # Relationship richness
    PR = "PR"        # Properties richness
    AN = "AN"        # Annotation richness
    AR = "AR"        # Attribute (restriction) richness
    CR = "CR"        # Individual richness
    CP = "CP"        # Composability
    AG = "AG"        # Aggregability

    @classmethod
    def parse(cls, value: str) -> "MetricName":
        """Resolve a metric identifier, tolerating case and an 'Onto' suffix."""
        key = value.strip().upper()
        # CBOnto shares its final "O" with the suffix
        candidates = [key]
        for suffix in ("ONTO", "NTO"):
            if key.endswith(suffix):
                candidates.append(key[: -len(suffix)])
        for candidate in candidates:
            if candidate in cls._value2member_map_:
                return cls(candidate)
        known = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown metric '{value}'. Known metrics: {known}")


class MetricStatus(str, Enum):
    """Outcome of a single metric computation."""
    OK = "ok"
    UNDEFINED = "undefined"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class NamespaceCategory(str, Enum):
    """Partition of resource URIs relative to an ontology."""
    DEFAULT = "default"       # RDF/RDFS/OWL/XSD/XML built-ins
    INTERNAL = "internal"     # The ontology's own base namespace
    EXTERNAL = "external"     # Everything else


class UndefinedMetric(Exception):
    """A metric has no meaningful value (empty input or zero denominator)."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        self.details = details or {}
        super().__init__(reason)


class PathBudgetExceeded(Exception):
    """Root-to-leaf path enumeration exceeded its size budget."""

    def __init__(self, budget: int):
        self.budget = budget
        super().__init__(f"Path enumeration exceeded budget of {budget} paths")


class MetricCancelled(Exception):
    """A metric stopped early because its run gave up waiting for it."""


class MetricsRunAborted(Exception):
    """A metrics run was aborted because the graph accessor failed."""

    def __init__(self, failed_queries: List[str]):
        self.failed_queries = failed_queries
        super().__init__(
            f"Metrics run aborted, graph accessor failed on: {', '.join(failed_queries)}"
        )


@dataclass
class MetricDiagnostics:
    """Per-metric sink for non-fatal findings (e.g. truncated cycles)."""
    messages: List[str] = field(default_factory=list)

    def record(self, message: str) -> None:
        """Record a diagnostic message."""
        self.messages.append(message)

    def __len__(self) -> int:
        return len(self.messages)


@dataclass
class MetricResult:
    """Result of one metric computation."""
    name: MetricName
    value: Optional[float] = None
    status: MetricStatus = MetricStatus.OK
    reason: str = ""

    # Intermediate counts (numerator, denominator, number of paths, ...)
    details: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[str] = field(default_factory=list)
    elapsed_ms: int = 0

    @property
    def is_defined(self) -> bool:
        """True if the metric produced a numeric value."""
        return self.status == MetricStatus.OK and self.value is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name.value,
            "value": self.value,
            "status": self.status.value,
            "reason": self.reason,
            "details": self.details,
            "diagnostics": self.diagnostics,
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass
class ResourceUsage:
    """Resource-usage tallies over every triple of a graph.

    Each URI in subject, predicate or object position is one usage.
    """
    default_usages: int = 0
    internal_usages: int = 0
    external_usages: int = 0

    # External usages per external namespace
    external_by_namespace: Counter = field(default_factory=Counter)

    @property
    def total_usages(self) -> int:
        """All classified usages, default vocabulary included."""
        return self.default_usages + self.internal_usages + self.external_usages

    def add(self, category: NamespaceCategory, namespace: Optional[str] = None) -> None:
        """Count one classified usage."""
        if category == NamespaceCategory.DEFAULT:
            self.default_usages += 1
        elif category == NamespaceCategory.INTERNAL:
            self.internal_usages += 1
        else:
            self.external_usages += 1
            if namespace is not None:
                self.external_by_namespace[namespace] += 1


@dataclass
class OntologyMetricsReport:
    """Complete structural metrics report for one ontology."""

    # Identification
    assessment_id: str
    ontology_name: str
    base_namespace: Optional[str] = None
    assessed_at: datetime = field(default_factory=datetime.now)

    results: Dict[MetricName, MetricResult] = field(default_factory=dict)

    # Metadata
    concept_count: int = 0
    triple_count: int = 0
    processing_time_ms: int = 0

    def values(self) -> Dict[MetricName, Optional[float]]:
        """Metric name -> value (None when undefined or not computed)."""
        return {
            name: (result.value if result.is_defined else None)
            for name, result in self.results.items()
        }

    def undefined_metrics(self) -> List[MetricName]:
        """Metrics without a numeric value, in catalogue order."""
        return [name for name in MetricName if name in self.results and not self.results[name].is_defined]

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary for JSON serialization."""
        return {
            "assessment_id": self.assessment_id,
            "ontology_name": self.ontology_name,
            "base_namespace": self.base_namespace,
            "assessed_at": self.assessed_at.isoformat(),
            "metrics": {
                name.value: result.to_dict()
                for name, result in sorted(self.results.items(), key=lambda item: list(MetricName).index(item[0]))
            },
            "metadata": {
                "concept_count": self.concept_count,
                "triple_count": self.triple_count,
                "processing_time_ms": self.processing_time_ms,
            },
        }
