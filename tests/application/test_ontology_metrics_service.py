"""Tests for OntologyMetricsService.

Covers metric selection, concurrent execution, per-metric isolation of
undefined and failing metrics, timeouts, path budgets and accessor
failure aborts.
"""

import threading
import time
from unittest.mock import patch

import pytest

from application.metrics import METRIC_REGISTRY, MetricDefinition
from application.services.ontology_metrics_service import OntologyMetricsService
from config.metrics_config import MetricsConfig
from domain.ontology_graph import AccessorFailure
from domain.ontology_metrics_models import MetricCancelled, MetricName, MetricStatus, MetricsRunAborted


class TestMetricSelection:
    """Tests for resolving metric selections."""

    def test_default_selection_is_catalogue(self, animals_accessor):
        service = OntologyMetricsService(animals_accessor)
        assert service.resolve_selection() == list(MetricName)

    def test_selection_uses_catalogue_order(self, animals_accessor):
        service = OntologyMetricsService(animals_accessor)
        assert service.resolve_selection(["AGOnto", "dit", MetricName.TM]) == [
            MetricName.DIT,
            MetricName.TM,
            MetricName.AG,
        ]

    def test_config_enabled_metrics(self, animals_accessor):
        config = MetricsConfig(enabled_metrics=[MetricName.CR, MetricName.AN])
        service = OntologyMetricsService(animals_accessor, config=config)
        assert service.resolve_selection() == [MetricName.AN, MetricName.CR]

    def test_unknown_metric(self, animals_accessor):
        service = OntologyMetricsService(animals_accessor)
        with pytest.raises(ValueError, match="Unknown metric"):
            service.resolve_selection(["FOO"])


class TestOntologyMetricsService:
    """Tests for full metric runs."""

    @pytest.mark.asyncio
    async def test_run_all_metrics(self, animals_accessor):
        service = OntologyMetricsService(animals_accessor)

        values = await service.run_metrics()

        assert set(values) == set(MetricName)
        assert values[MetricName.DIT] == 3.0
        assert values[MetricName.TM] == pytest.approx(2.0)
        assert values[MetricName.CP] == 0.0
        assert values[MetricName.AG] is None

    @pytest.mark.asyncio
    async def test_report(self, animals_accessor):
        service = OntologyMetricsService(animals_accessor)

        report = await service.assess([MetricName.DIT, MetricName.AG])

        assert report.ontology_name == "http://example.org/onto"
        assert report.base_namespace == "http://example.org/onto#"
        assert report.concept_count == 7
        assert report.triple_count == len(animals_accessor.graph)
        assert len(report.assessment_id) == 8
        assert report.results[MetricName.DIT].status == MetricStatus.OK
        assert report.results[MetricName.AG].status == MetricStatus.UNDEFINED
        assert report.undefined_metrics() == [MetricName.AG]

    @pytest.mark.asyncio
    async def test_zero_concepts(self, empty_accessor):
        service = OntologyMetricsService(empty_accessor)

        values = await service.run_metrics(
            [MetricName.NOM, MetricName.AN, MetricName.AR, MetricName.CR, MetricName.RFC]
        )

        assert all(value is None for value in values.values())
        assert len(values) == 5

    @pytest.mark.asyncio
    async def test_config_base_namespace_overrides_graph(self, external_usage_accessor):
        config = MetricsConfig(base_namespace="http://a.example.com/ns#")
        service = OntologyMetricsService(external_usage_accessor, config=config)

        report = await service.assess([MetricName.CP])

        # Namespace b and the example.org terms are now both external
        assert report.base_namespace == "http://a.example.com/ns#"
        assert report.results[MetricName.CP].details["internal_usages"] == 10

    @pytest.mark.asyncio
    async def test_path_budget_makes_metric_undefined(self, animals_accessor):
        config = MetricsConfig(max_paths=2)
        service = OntologyMetricsService(animals_accessor, config=config)

        report = await service.assess([MetricName.DIT, MetricName.LCOM, MetricName.TM])

        for name in (MetricName.DIT, MetricName.LCOM):
            result = report.results[name]
            assert result.status == MetricStatus.UNDEFINED
            assert "budget" in result.diagnostics[0]
        assert report.results[MetricName.TM].is_defined

    @pytest.mark.asyncio
    async def test_timeout(self, animals_accessor):
        config = MetricsConfig(metric_timeout_seconds=0.5)
        service = OntologyMetricsService(animals_accessor, config=config)
        original = animals_accessor.list_triples

        def slow_list_triples(*args, **kwargs):
            time.sleep(2.0)
            return original(*args, **kwargs)

        with patch.object(animals_accessor, "list_triples", side_effect=slow_list_triples):
            report = await service.assess([MetricName.AN, MetricName.TM])

        assert report.results[MetricName.AN].status == MetricStatus.TIMED_OUT
        assert report.results[MetricName.TM].is_defined

    @pytest.mark.asyncio
    async def test_failing_metric_does_not_stop_others(self, animals_accessor):
        def explode(context):
            raise RuntimeError("boom")

        service = OntologyMetricsService(animals_accessor)
        broken = MetricDefinition(MetricName.TM, "Tangledness", explode)

        with patch.dict(METRIC_REGISTRY, {MetricName.TM: broken}):
            report = await service.assess([MetricName.DIT, MetricName.TM])

        assert report.results[MetricName.TM].status == MetricStatus.FAILED
        assert "boom" in report.results[MetricName.TM].reason
        assert report.results[MetricName.DIT].value == 3.0

    @pytest.mark.asyncio
    async def test_accessor_failure_aborts_run(self, animals_accessor):
        service = OntologyMetricsService(animals_accessor)

        with patch.object(
            animals_accessor,
            "list_individuals",
            side_effect=AccessorFailure("list_individuals", ConnectionError("store down")),
        ):
            with pytest.raises(MetricsRunAborted) as exc_info:
                await service.assess()

        assert exc_info.value.failed_queries == ["list_individuals"]

    @pytest.mark.asyncio
    async def test_backend_error_aborts_run(self, animals_accessor):
        service = OntologyMetricsService(animals_accessor)

        with patch.object(animals_accessor.graph, "triples", side_effect=RuntimeError("store down")):
            with pytest.raises(MetricsRunAborted):
                await service.assess([MetricName.AN])

    @pytest.mark.asyncio
    async def test_failure_before_metrics_start(self, animals_accessor):
        service = OntologyMetricsService(animals_accessor)

        with patch.object(animals_accessor, "base_namespace", side_effect=AccessorFailure("base_namespace")):
            with pytest.raises(MetricsRunAborted) as exc_info:
                await service.assess([MetricName.DIT])

        assert exc_info.value.failed_queries == ["base_namespace"]

    def test_compute_metric_synchronously(self, animals_accessor):
        service = OntologyMetricsService(animals_accessor)

        result = service.compute_metric(MetricName.NOC)

        assert result.value == pytest.approx(2.0)
        assert result.details["direct_children"] == 6
        assert result.elapsed_ms >= 0


def slowed(definition: MetricDefinition, seconds: float) -> MetricDefinition:
    """The same metric, preceded by a blocking sleep."""

    def compute(context):
        time.sleep(seconds)
        return definition.compute(context)

    return MetricDefinition(definition.name, definition.title, compute)


class TestMetricScheduling:
    """Tests for timeouts with a bounded worker pool and for cancellation."""

    @pytest.mark.asyncio
    async def test_queued_metrics_get_their_own_time_budget(self, animals_accessor):
        # Together the metrics need longer than one timeout; each alone fits
        config = MetricsConfig(max_workers=1, metric_timeout_seconds=0.7)
        service = OntologyMetricsService(animals_accessor, config=config)
        names = [MetricName.DIT, MetricName.NOC, MetricName.TM]

        with patch.dict(METRIC_REGISTRY, {name: slowed(METRIC_REGISTRY[name], 0.4) for name in names}):
            report = await service.assess(names)

        assert all(report.results[name].is_defined for name in names)
        assert report.results[MetricName.DIT].value == 3.0

    @pytest.mark.asyncio
    async def test_timed_out_metric_does_not_time_out_queued_ones(self, animals_accessor):
        config = MetricsConfig(max_workers=1, metric_timeout_seconds=0.5)
        service = OntologyMetricsService(animals_accessor, config=config)
        slow_dit = slowed(METRIC_REGISTRY[MetricName.DIT], 1.0)

        with patch.dict(METRIC_REGISTRY, {MetricName.DIT: slow_dit}):
            report = await service.assess([MetricName.DIT, MetricName.TM])

        assert report.results[MetricName.DIT].status == MetricStatus.TIMED_OUT
        assert report.results[MetricName.TM].value == pytest.approx(2.0)

    @pytest.mark.asyncio
    async def test_cyclic_branches_exhaust_path_budget(self, looped_dag_accessor):
        config = MetricsConfig(max_paths=10)
        service = OntologyMetricsService(looped_dag_accessor(18), config=config)

        report = await service.assess([MetricName.DIT, MetricName.NOC])

        result = report.results[MetricName.DIT]
        assert result.status == MetricStatus.UNDEFINED
        assert "budget of 10 paths" in result.reason
        assert len(result.diagnostics) == 12
        assert report.results[MetricName.NOC].is_defined

    @pytest.mark.asyncio
    async def test_timed_out_walk_is_cancelled(self, looped_dag_accessor):
        config = MetricsConfig(max_paths=None, metric_timeout_seconds=0.3)
        service = OntologyMetricsService(looped_dag_accessor(24), config=config)
        original = METRIC_REGISTRY[MetricName.DIT]
        stopped = threading.Event()

        def tracked(context):
            try:
                return original.compute(context)
            except MetricCancelled:
                stopped.set()
                raise

        tracked_dit = MetricDefinition(MetricName.DIT, original.title, tracked)
        with patch.dict(METRIC_REGISTRY, {MetricName.DIT: tracked_dit}):
            report = await service.assess([MetricName.DIT])

        assert report.results[MetricName.DIT].status == MetricStatus.TIMED_OUT
        # The worker thread has already left the walk
        assert stopped.is_set()

    def test_compute_metric_with_cancel_event_set(self, animals_accessor):
        service = OntologyMetricsService(animals_accessor)
        cancel_event = threading.Event()
        cancel_event.set()

        result = service.compute_metric(MetricName.LCOM, cancel_event=cancel_event)

        assert result.status == MetricStatus.TIMED_OUT
        assert "cancelled" in result.reason
        assert result.value is None
