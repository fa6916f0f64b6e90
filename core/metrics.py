"""Prometheus metrics for co-signing decisions.

Module purpose and system role:
    - Count terminal decision states, adjudication verdicts and errors.
    - Served by the HTTP boundary on ``/metrics``.
"""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

DECISIONS = Counter(
    "cosigner_decisions_total", "Decisions by terminal state", ["state"]
)
ADJUDICATIONS = Counter(
    "cosigner_adjudications_total", "Reasoning oracle verdicts", ["verdict"]
)
ERRORS = Counter("cosigner_errors_total", "Pipeline errors by type", ["kind"])
EXECUTIONS = Counter(
    "cosigner_executions_total", "Multisig transactions executed on-chain"
)
DECISION_LATENCY = Histogram(
    "cosigner_decision_latency_seconds", "Time spent per decision"
)


# ----------------------------------------------------------------------
# Metric update helpers
# ----------------------------------------------------------------------

def record_decision(state: str, latency: float) -> None:
    DECISIONS.labels(state).inc()
    DECISION_LATENCY.observe(latency)


def record_adjudication(verdict: bool) -> None:
    ADJUDICATIONS.labels("approve" if verdict else "reject").inc()


def record_error(kind: str) -> None:
    ERRORS.labels(kind).inc()


def record_execution() -> None:
    EXECUTIONS.inc()


def render() -> tuple[bytes, str]:
    """Return the exposition body and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
