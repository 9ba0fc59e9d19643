"""Command-line interface for the ontology metrics engine."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import List, Optional

import typer
from dotenv import load_dotenv

from application.metrics import METRIC_REGISTRY
from application.services.ontology_metrics_service import OntologyMetricsService
from config.metrics_config import MetricsConfig
from domain.ontology_metrics_models import MetricName, MetricsRunAborted
from infrastructure.rdflib_graph_accessor import RdflibGraphAccessor

# --- Environment Loading ---
load_dotenv()

# --- Typer App ---
app = typer.Typer(
    help="Structural quality metrics for OWL/RDF ontologies.",
    add_completion=False,
)


def _format_value(value: Optional[float]) -> str:
    return "undefined" if value is None else f"{value:.4f}"


@app.command("run")
def run(
    ontology_file: str = typer.Argument(..., help="Ontology document (RDF/XML, Turtle, ...)"),
    metric: Optional[List[str]] = typer.Option(
        None, "--metric", "-m", help="Metric to compute (repeatable; default: all enabled)"
    ),
    rdf_format: Optional[str] = typer.Option(
        None, "--format", help="rdflib parser format (guessed from the extension if omitted)"
    ),
    base_namespace: Optional[str] = typer.Option(
        None, "--base-namespace", help="Override of the ontology base namespace"
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to a metrics YAML config"),
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Computes structural metrics for an ontology file."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = MetricsConfig.from_env(config_path)
        if base_namespace:
            config.base_namespace = base_namespace
        selection = [MetricName.parse(name) for name in metric] if metric else None
    except ValueError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(code=1)

    try:
        accessor = RdflibGraphAccessor.from_file(ontology_file, format=rdf_format)
    except Exception as e:
        typer.echo(f"Failed to load ontology {ontology_file}: {e}", err=True)
        raise typer.Exit(code=1)

    service = OntologyMetricsService(accessor, config=config)
    try:
        report = asyncio.run(service.assess(selection))
    except MetricsRunAborted as e:
        typer.echo(f"Metrics run aborted: {e}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return

    typer.echo(f"Ontology: {report.ontology_name}")
    typer.echo(f"   Concepts: {report.concept_count}  Triples: {report.triple_count}")
    for name, result in report.results.items():
        line = f"{name.value:<5} {_format_value(result.value if result.is_defined else None)}"
        if not result.is_defined and result.reason:
            line += f"  ({result.status.value}: {result.reason})"
        typer.echo(line)
        for message in result.diagnostics:
            typer.echo(f"      - {message}")


@app.command("list-metrics")
def list_metrics():
    """Lists the metric catalogue."""
    for name in MetricName:
        definition = METRIC_REGISTRY[name]
        typer.echo(f"{name.value:<5} {definition.title}: {definition.description}")


def main():
    app()


if __name__ == "__main__":
    main()
