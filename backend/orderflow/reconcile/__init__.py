"""Reconciliation package: loop-safe automatic order status correction."""

from orderflow.reconcile.circuit_breaker import UpdateCircuitBreaker, WindowState
from orderflow.reconcile.guard import GuardDecision, ReconciliationGuard

__all__ = [
    "GuardDecision",
    "ReconciliationGuard",
    "UpdateCircuitBreaker",
    "WindowState",
]
