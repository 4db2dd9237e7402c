"""Metricas Prometheus del pipeline de tarifas."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, generate_latest


class SyncMetrics:
    """Contadores del pipeline con registro propio (no el global de prometheus_client)."""

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.sync_runs_total = Counter(
            "tariff_sync_runs_total",
            "Pipeline runs grouped by final status.",
            ("status",),
            registry=self.registry,
        )
        self.fetch_fallback_total = Counter(
            "tariff_fetch_fallback_total",
            "Fetches answered with the built-in fallback dataset instead of API data.",
            ("reason",),
            registry=self.registry,
        )
        self.publish_destinations_total = Counter(
            "tariff_publish_destinations_total",
            "Spreadsheet destinations processed, grouped by outcome.",
            ("outcome",),
            registry=self.registry,
        )
        self.records_saved_total = Counter(
            "tariff_records_saved_total",
            "Tariff records upserted into the relational store.",
            registry=self.registry,
        )

    def record_run(self, status: str) -> None:
        self.sync_runs_total.labels(status=status).inc()

    def record_fallback(self, reason: str) -> None:
        self.fetch_fallback_total.labels(reason=reason).inc()

    def record_destination(self, *, success: bool) -> None:
        self.publish_destinations_total.labels(outcome="succeeded" if success else "failed").inc()

    def record_saved(self, count: int) -> None:
        if count > 0:
            self.records_saved_total.inc(count)

    def render(self) -> bytes:
        """Metricas en formato de exposicion Prometheus."""

        return generate_latest(self.registry)


_DEFAULT_METRICS: SyncMetrics | None = None


def get_metrics() -> SyncMetrics:
    """Instancia de metricas del proceso (se crea en el primer uso)."""

    global _DEFAULT_METRICS
    if _DEFAULT_METRICS is None:
        _DEFAULT_METRICS = SyncMetrics()
    return _DEFAULT_METRICS
