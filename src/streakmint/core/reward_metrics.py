"""
Daily reward instrumentation.

Provides Prometheus metrics that track claims per tier, rejected claims and
burns, with helper functions that are safe to call from the ledger's commit
path.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

claims_counter = Counter(
    "streakmint_claims_total", "Total reward tokens minted through daily claims", ["category"]
)

rejected_claims_counter = Counter(
    "streakmint_claims_rejected_total",
    "Total claim attempts rejected by the ledger",
    ["reason"],
)

burns_counter = Counter("streakmint_burns_total", "Total reward tokens burned by their owners")

minted_tokens_gauge = Gauge(
    "streakmint_minted_tokens", "Number of token IDs allocated by the ledger so far"
)


def record_claim(category: str, total_minted: int) -> None:
    """Count a successful claim and refresh the allocation gauge."""
    claims_counter.labels(category=category).inc()
    minted_tokens_gauge.set(total_minted)


def record_rejected_claim(reason: str) -> None:
    rejected_claims_counter.labels(reason=reason).inc()


def record_burn() -> None:
    burns_counter.inc()
