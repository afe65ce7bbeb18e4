"""Prometheus metrics helpers for the risk planning engine."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


RISK_CALC_DURATION_MS = Histogram(
    "risk_calc_duration_ms",
    "Latency of a single risk calculation in milliseconds.",
    labelnames=("mode",),
    buckets=(0.1, 0.25, 0.5, 1, 2, 5, 10, 25, 50, 100),
)

PLAN_CANDIDATE_COUNT = Histogram(
    "plan_candidate_count",
    "Number of level candidates projected per calculation.",
    labelnames=("side",),
    buckets=(1, 2, 3, 5, 8, 12, 20),
)

ANCHOR_FALLBACK_TOTAL = Counter(
    "plan_anchor_fallback_total",
    "Anchors resolved through a fallback tier.",
    labelnames=("side", "tier"),
)

CONFIDENCE_GRADE_TOTAL = Counter(
    "confidence_grade_total",
    "Confidence grades issued by the multi-factor scorer.",
    labelnames=("grade",),
)


def record_fallback(side: str, tier: str) -> None:
    ANCHOR_FALLBACK_TOTAL.labels(side=side, tier=tier).inc()


def record_candidates(side: str, count: int) -> None:
    PLAN_CANDIDATE_COUNT.labels(side=side).observe(count)


__all__ = [
    "RISK_CALC_DURATION_MS",
    "PLAN_CANDIDATE_COUNT",
    "ANCHOR_FALLBACK_TOTAL",
    "CONFIDENCE_GRADE_TOTAL",
    "record_fallback",
    "record_candidates",
]
