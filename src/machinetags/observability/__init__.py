"""
Machinetags Observability Module.

Provides in-process metrics collection for tag queries, parsing and errors.
"""

from machinetags.observability.metrics import MetricsStore, get_metrics_store

__all__ = ["MetricsStore", "get_metrics_store"]
