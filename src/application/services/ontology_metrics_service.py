"""Ontology Metrics Service.

Runs the structural metric catalogue over a read-only graph accessor.

Every metric is independent: each one runs as its own task in a bounded
worker pool with its own diagnostics and counters, under a per-metric
timeout. An undefined or failing metric is reported in its own result and
never stops the others. Only an accessor failure aborts the whole run.

Usage:
    service = OntologyMetricsService(accessor)
    values = await service.run_metrics({MetricName.DIT, MetricName.TM})
    report = await service.assess()
"""

import asyncio
import logging
import os
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Union

from application.metrics import METRIC_REGISTRY, MetricContext
from application.services.hierarchy_walker import HierarchyWalker
from application.services.namespace_classifier import NamespaceClassifier
from config.metrics_config import MetricsConfig
from domain.ontology_graph import AccessorFailure, OntologyGraphAccessor
from domain.ontology_metrics_models import (
    MetricCancelled,
    MetricDiagnostics,
    MetricName,
    MetricResult,
    MetricStatus,
    MetricsRunAborted,
    OntologyMetricsReport,
    PathBudgetExceeded,
    UndefinedMetric,
)

logger = logging.getLogger(__name__)

MetricSelection = Optional[Iterable[Union[MetricName, str]]]

# How long a run waits for timed-out metrics to notice their cancellation
CANCEL_GRACE_SECONDS = 2.0


class OntologyMetricsService:
    """Computes structural quality metrics for an ontology graph."""

    def __init__(
        self,
        accessor: OntologyGraphAccessor,
        config: Optional[MetricsConfig] = None,
    ):
        """Initialize the metrics service.

        Args:
            accessor: Read-only graph accessor for the ontology
            config: Metrics configuration (defaults if not provided)
        """
        self.accessor = accessor
        self.config = config or MetricsConfig()

    def resolve_selection(self, selection: MetricSelection = None) -> List[MetricName]:
        """Turn a selection into catalogue-ordered metric names.

        Raises:
            ValueError: If a name is not a known metric
        """
        if selection is None:
            selection = self.config.enabled_metrics or list(MetricName)

        requested = set()
        for item in selection:
            requested.add(item if isinstance(item, MetricName) else MetricName.parse(item))
        return [name for name in MetricName if name in requested]

    async def run_metrics(self, selection: MetricSelection = None) -> Dict[MetricName, Optional[float]]:
        """Run the selected metrics and return name -> value (None = undefined)."""
        report = await self.assess(selection)
        return report.values()

    async def assess(self, selection: MetricSelection = None) -> OntologyMetricsReport:
        """Run the selected metrics concurrently and build a report.

        Raises:
            ValueError: If the selection names an unknown metric
            MetricsRunAborted: If the graph accessor failed during the run
        """
        names = self.resolve_selection(selection)
        start_time = time.time()

        classifier = NamespaceClassifier(self._base_namespace())
        report = OntologyMetricsReport(
            assessment_id=str(uuid.uuid4())[:8],
            ontology_name=self._safe_query("ontology_name", self.accessor.ontology_name),
            base_namespace=classifier.base_namespace,
        )
        report.concept_count = len(self._safe_query("list_named_classes", self.accessor.list_named_classes))
        report.triple_count = self._safe_query("triple_count", self.accessor.triple_count)

        logger.info(
            f"Running {len(names)} metrics on {report.ontology_name} "
            f"({report.concept_count} concepts, {report.triple_count} triples)"
        )

        loop = asyncio.get_running_loop()
        workers = self.config.max_workers or min(32, (os.cpu_count() or 1) + 4)
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ontology-metric")
        # Held while a worker thread runs a metric; a metric's timeout starts once it holds one
        slots = asyncio.Semaphore(workers)
        stragglers: List[asyncio.Future] = []
        try:
            outcomes = await asyncio.gather(
                *(
                    self._run_with_timeout(loop, executor, slots, stragglers, name, classifier)
                    for name in names
                ),
                return_exceptions=True,
            )
            if stragglers:
                _, pending = await asyncio.wait(stragglers, timeout=CANCEL_GRACE_SECONDS)
                if pending:
                    logger.warning(f"{len(pending)} timed-out metrics still running after cancellation")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        failed_queries: List[str] = []
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, AccessorFailure):
                logger.error(f"{name.value}: graph accessor failed: {outcome}")
                failed_queries.append(outcome.query)
            elif isinstance(outcome, BaseException):
                logger.error(f"{name.value}: unexpected error: {outcome}", exc_info=outcome)
                report.results[name] = MetricResult(
                    name=name,
                    status=MetricStatus.FAILED,
                    reason=str(outcome),
                )
            else:
                report.results[name] = outcome

        if failed_queries:
            raise MetricsRunAborted(sorted(set(failed_queries)))

        report.processing_time_ms = int((time.time() - start_time) * 1000)
        undefined = report.undefined_metrics()
        logger.info(
            f"Metrics run {report.assessment_id} finished in {report.processing_time_ms} ms"
            + (f"; undefined: {', '.join(n.value for n in undefined)}" if undefined else "")
        )
        return report

    def _base_namespace(self) -> Optional[str]:
        if self.config.base_namespace:
            return self.config.base_namespace
        return self._safe_query("base_namespace", self.accessor.base_namespace)

    def _safe_query(self, query: str, call):
        """Run a run-level accessor query, aborting the run on failure."""
        try:
            return call()
        except AccessorFailure as e:
            logger.error(f"Graph accessor failed before metrics started: {e}")
            raise MetricsRunAborted([e.query]) from e

    async def _run_with_timeout(
        self,
        loop: asyncio.AbstractEventLoop,
        executor: ThreadPoolExecutor,
        slots: asyncio.Semaphore,
        stragglers: List[asyncio.Future],
        name: MetricName,
        classifier: NamespaceClassifier,
    ) -> MetricResult:
        """Run one metric in the pool, bounded by the per-metric timeout.

        The timeout covers the metric's own running time, not time spent
        queued for a worker. The slot is released when the worker thread
        finishes, even after a timeout, so a still-running metric keeps
        later ones queued instead of timing them out.
        """
        timeout = self.config.metric_timeout_seconds
        cancel_event = threading.Event()

        await slots.acquire()
        future = loop.run_in_executor(executor, self.compute_metric, name, classifier, cancel_event)
        future.add_done_callback(lambda _: slots.release())
        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{name.value}: timed out after {timeout}s")
            cancel_event.set()
            stragglers.append(future)
            return MetricResult(
                name=name,
                status=MetricStatus.TIMED_OUT,
                reason=f"exceeded {timeout}s time budget",
                elapsed_ms=int(timeout * 1000) if timeout else 0,
            )

    def compute_metric(
        self,
        name: MetricName,
        classifier: Optional[NamespaceClassifier] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> MetricResult:
        """Compute a single metric synchronously.

        Undefined values and exceeded path budgets become results, and so
        does a walk stopped through cancel_event. AccessorFailure propagates.
        """
        definition = METRIC_REGISTRY[name]
        context = MetricContext(
            accessor=self.accessor,
            walker=HierarchyWalker(
                self.accessor,
                max_paths=self.config.max_paths,
                cancel_event=cancel_event,
            ),
            classifier=classifier or NamespaceClassifier(self._base_namespace()),
            diagnostics=MetricDiagnostics(),
        )
        result = MetricResult(name=name)

        start_time = time.time()
        logger.debug(f"{name.value}: started")
        try:
            result.value = definition.compute(context)
        except UndefinedMetric as e:
            result.status = MetricStatus.UNDEFINED
            result.reason = e.reason
            context.details.update(e.details)
            logger.debug(f"{name.value}: undefined ({e.reason})")
        except PathBudgetExceeded as e:
            result.status = MetricStatus.UNDEFINED
            result.reason = str(e)
            context.diagnostics.record(str(e))
            logger.warning(f"{name.value}: {e}")
        except MetricCancelled as e:
            result.status = MetricStatus.TIMED_OUT
            result.reason = str(e)
            logger.debug(f"{name.value}: cancelled")

        result.elapsed_ms = int((time.time() - start_time) * 1000)
        result.details = context.details
        result.diagnostics = list(context.diagnostics.messages)
        logger.debug(f"{name.value}: finished in {result.elapsed_ms} ms, value={result.value}")
        return result
