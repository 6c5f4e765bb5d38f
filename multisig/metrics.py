from __future__ import annotations

"""
Prometheus metrics for multisig wallets.

We expose counters and a histogram covering:
- operations: every facade operation by op name and result
- executions: external invocations / owner changes / cancellations by kind and result
- gas: gas consumed by executed invocations

Label conventions
  op:     "submit" | "approve" | "revoke" | "execute" | "cancel" | "propose_add" |
          "propose_remove" | "approve_change" | "execute_change" |
          "change_requirement" | "deposit"
  result: "ok" | error code in lower case ("unauthorized", "quorum_not_met", ...)
  kind:   "transaction" | "owner_change" | "cancel"
"""

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Histogram, generate_latest)

# Use a dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

OPERATIONS = Counter(
    "animica_multisig_operations_total",
    "Wallet operations by op and result.",
    labelnames=("op", "result"),
    registry=REGISTRY,
)

EXECUTIONS = Counter(
    "animica_multisig_executions_total",
    "Executions (invocations, owner changes, cancellations) by kind and result.",
    labelnames=("kind", "result"),
    registry=REGISTRY,
)

_GAS_BUCKETS = (
    0,
    1_000,
    5_000,
    21_000,
    50_000,
    100_000,
    250_000,
    500_000,
    1_000_000,
)

GAS_USED = Histogram(
    "animica_multisig_gas_used",
    "Gas consumed by the external invocation of executed transactions.",
    buckets=_GAS_BUCKETS,
    registry=REGISTRY,
)


def result_label(err: BaseException | None) -> str:
    """'ok' for success, else the lower-cased error code (or class name)."""
    if err is None:
        return "ok"
    code = getattr(err, "code", None)
    return (code or type(err).__name__).lower()


def observe_op(op: str, err: BaseException | None = None) -> None:
    OPERATIONS.labels(op=op, result=result_label(err)).inc()


def observe_execution(kind: str, ok: bool, gas_used: int = 0) -> None:
    EXECUTIONS.labels(kind=kind, result="ok" if ok else "failed").inc()
    if kind == "transaction":
        GAS_USED.observe(max(0, int(gas_used)))


def render_latest() -> tuple[bytes, str]:
    """Return (payload, content_type) for an HTTP exposition endpoint."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST


__all__ = [
    "REGISTRY",
    "OPERATIONS",
    "EXECUTIONS",
    "GAS_USED",
    "result_label",
    "observe_op",
    "observe_execution",
    "render_latest",
]
