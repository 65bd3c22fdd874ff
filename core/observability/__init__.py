"""
Observability Module for the ERP connectors

Provides:
- Structured logging with correlation IDs
- Per-call and per-workflow log helpers
"""

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    get_correlation_context,
    with_correlation,
    log_erp_call,
    log_workflow_event,
)

__all__ = [
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "get_correlation_context",
    "with_correlation",
    "log_erp_call",
    "log_workflow_event",
]
