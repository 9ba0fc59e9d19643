"""
Ontology Metrics Configuration

Loads metric-run settings from a YAML file and environment variables.

Configuration via environment variables:
- ONTOLOGY_METRICS_CONFIG: Path of the YAML file (default: config/metrics.yaml)
- ONTOLOGY_METRICS_ENABLED: Comma-separated metric names (default: all)
- ONTOLOGY_METRICS_MAX_WORKERS: Worker threads for concurrent metrics
- ONTOLOGY_METRICS_TIMEOUT_SECONDS: Per-metric time budget (default: 60)
- ONTOLOGY_METRICS_MAX_PATHS: Root-to-leaf path budget (default: 1000000)
- ONTOLOGY_METRICS_BASE_NAMESPACE: Override of the ontology base namespace
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from domain.ontology_metrics_models import MetricName


@dataclass
class MetricsConfig:
    """Settings for a metrics run."""
    enabled_metrics: List[MetricName] = field(default_factory=lambda: list(MetricName))
    max_workers: Optional[int] = None       # None = executor default
    metric_timeout_seconds: Optional[float] = 60.0
    max_paths: Optional[int] = 1_000_000    # None = unbounded
    base_namespace: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricsConfig":
        """Create config from dictionary (parsed YAML)."""
        defaults = cls()
        enabled = data.get("enabled_metrics")
        return cls(
            enabled_metrics=(
                [MetricName.parse(str(name)) for name in enabled]
                if enabled else defaults.enabled_metrics
            ),
            max_workers=data.get("max_workers", defaults.max_workers),
            metric_timeout_seconds=data.get("metric_timeout_seconds", defaults.metric_timeout_seconds),
            max_paths=data.get("max_paths", defaults.max_paths),
            base_namespace=data.get("base_namespace", defaults.base_namespace),
        )

    @classmethod
    def from_yaml(cls, path: Optional[str] = None) -> "MetricsConfig":
        """Load config from YAML file.

        Raises:
            ValueError: If the file does not hold a mapping or names an unknown metric
        """
        if path is None:
            path = os.getenv("ONTOLOGY_METRICS_CONFIG", "config/metrics.yaml")

        config_path = Path(path)
        if not config_path.is_absolute():
            config_path = Path.cwd() / path

        if not config_path.exists():
            # Return default config if file doesn't exist
            return cls()

        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(
                f"Config file {config_path} must contain a mapping, got {type(data).__name__}"
            )
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, path: Optional[str] = None) -> "MetricsConfig":
        """
        Create config from environment variables.

        Environment variables override YAML config.
        """
        config = cls.from_yaml(path)

        if os.getenv("ONTOLOGY_METRICS_ENABLED"):
            config.enabled_metrics = [
                MetricName.parse(name)
                for name in os.getenv("ONTOLOGY_METRICS_ENABLED").split(",")
                if name.strip()
            ]

        if os.getenv("ONTOLOGY_METRICS_MAX_WORKERS"):
            config.max_workers = int(os.getenv("ONTOLOGY_METRICS_MAX_WORKERS"))

        if os.getenv("ONTOLOGY_METRICS_TIMEOUT_SECONDS"):
            config.metric_timeout_seconds = float(os.getenv("ONTOLOGY_METRICS_TIMEOUT_SECONDS"))

        if os.getenv("ONTOLOGY_METRICS_MAX_PATHS"):
            config.max_paths = int(os.getenv("ONTOLOGY_METRICS_MAX_PATHS"))

        if os.getenv("ONTOLOGY_METRICS_BASE_NAMESPACE"):
            config.base_namespace = os.getenv("ONTOLOGY_METRICS_BASE_NAMESPACE")

        return config


# Global config instance (lazy loaded)
_config: Optional[MetricsConfig] = None


def get_metrics_config() -> MetricsConfig:
    """Get the global metrics configuration (lazy loaded)."""
    global _config
    if _config is None:
        _config = MetricsConfig.from_env()
    return _config


def reload_config(path: Optional[str] = None) -> MetricsConfig:
    """Reload configuration from file."""
    global _config
    _config = MetricsConfig.from_env(path)
    return _config
