"""Configuration package for ontology metrics."""

from .metrics_config import MetricsConfig, get_metrics_config

__all__ = ["MetricsConfig", "get_metrics_config"]
