"""Observability utilities and metrics."""

from .metrics import (counter_adjustments, counter_exhausted, fanout_width, notifications_failed, notifications_published, rewrites_applied, rewrites_skipped, trigger_failures,
                      trigger_invocations, trigger_processing_time, trigger_redeliveries)

__all__ = [
    # Trigger metrics
    "trigger_invocations",
    "trigger_failures",
    "trigger_redeliveries",
    "trigger_processing_time",
    # Counter metrics
    "counter_adjustments",
    "counter_exhausted",
    # Rewrite metrics
    "rewrites_applied",
    "rewrites_skipped",
    # Notification metrics
    "notifications_published",
    "notifications_failed",
    # Fan-out metrics
    "fanout_width",
]
