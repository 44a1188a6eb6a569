"""Prometheus metrics for rotation steps and JWKS publication."""
from __future__ import annotations

from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge


class MetricsRegistry:
    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else REGISTRY
        self.steps = Counter(
            "jwks_rotation_steps_total",
            "Rotation lifecycle step invocations by outcome",
            ["step", "outcome"],
            registry=self.registry,
        )
        self.published_keys = Gauge(
            "jwks_rotation_published_keys",
            "Number of keys in the last published JWKS document",
            registry=self.registry,
        )

    def observe_step(self, step: str, outcome: str) -> None:
        self.steps.labels(step=step, outcome=outcome).inc()

    def observe_publish(self, key_count: int) -> None:
        self.published_keys.set(key_count)


_registry: Optional[MetricsRegistry] = None


def get_registry() -> MetricsRegistry:
    global _registry
    if _registry is None:
        _registry = MetricsRegistry()
    return _registry


__all__ = ["get_registry", "MetricsRegistry"]
