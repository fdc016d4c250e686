"""Prometheus metrics for settlements, anomaly flags, and request latency"""

from prometheus_client import Counter, Histogram

from minibus_ledger.domain.models import AnomalySummary, DailySettlementResult
from minibus_ledger.utils.money import ZERO

# Settlement metrics
settlement_counter = Counter(
    "minibus_settlement_total",
    "Daily settlements computed",
    ["branch"],  # standard | below_minimum
)

negative_operator_share_counter = Counter(
    "minibus_negative_operator_share_total",
    "Settlements where the operator absorbed a shortfall",
)

nonzero_residual_counter = Counter(
    "minibus_settlement_nonzero_residual_total",
    "Settlements whose shares do not reconcile to the gross collection",
)

# Anomaly metrics
anomaly_flag_counter = Counter(
    "minibus_anomaly_flags_total",
    "Records or drivers flagged by anomaly analysis",
    ["kind"],  # below_minimum | suspicious | at_risk
)

anomaly_report_duration_histogram = Histogram(
    "minibus_anomaly_report_duration_seconds",
    "Time spent loading and analyzing an anomaly window",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_settlement(result: DailySettlementResult) -> None:
    """Record settlement metrics"""
    settlement_counter.labels(branch=result.branch).inc()
    if result.operator_share < ZERO:
        negative_operator_share_counter.inc()
    if result.net_residual != ZERO:
        nonzero_residual_counter.inc()


def record_anomaly_report(summary: AnomalySummary) -> None:
    """Record how many flags one report raised"""
    anomaly_flag_counter.labels(kind="below_minimum").inc(summary.below_minimum_records)
    anomaly_flag_counter.labels(kind="suspicious").inc(summary.suspicious_records)
    anomaly_flag_counter.labels(kind="at_risk").inc(summary.drivers_at_risk)
