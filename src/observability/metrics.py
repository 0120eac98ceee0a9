"""Business metrics for the document store handlers.

Defines OpenTelemetry metrics for:
- Triggers: invocations, failures and redeliveries
- Counters: transaction outcomes
- Rewrites: applied vs. skipped derived-field rewrites
- Notifications: best-effort deliveries
- Fan-out: aggregation width
"""

from opentelemetry import metrics

meter = metrics.get_meter(__name__)

# =============================================================================
# TRIGGER METRICS
# =============================================================================

trigger_invocations = meter.create_counter(
    name="document_triggers.triggers.invocations",
    description="Total trigger handler invocations",
    unit="1",
)

trigger_failures = meter.create_counter(
    name="document_triggers.triggers.failures",
    description="Total failed trigger handler invocations",
    unit="1",
)

trigger_redeliveries = meter.create_counter(
    name="document_triggers.triggers.redeliveries",
    description="Total change events redelivered after a failed invocation",
    unit="1",
)

trigger_processing_time = meter.create_histogram(
    name="document_triggers.trigger.processing_time",
    description="Time to process a delivered change event",
    unit="ms",
)

# =============================================================================
# COUNTER METRICS
# =============================================================================

counter_adjustments = meter.create_counter(
    name="document_triggers.counters.adjustments",
    description="Total committed counter adjustments",
    unit="1",
)

counter_exhausted = meter.create_counter(
    name="document_triggers.counters.exhausted",
    description="Total counter adjustments abandoned after exhausting retries",
    unit="1",
)

# =============================================================================
# REWRITE METRICS
# =============================================================================

rewrites_applied = meter.create_counter(
    name="document_triggers.rewrites.applied",
    description="Total derived-field rewrites written back",
    unit="1",
)

rewrites_skipped = meter.create_counter(
    name="document_triggers.rewrites.skipped",
    description="Total update events absorbed because the source field did not change",
    unit="1",
)

# =============================================================================
# NOTIFICATION METRICS
# =============================================================================

notifications_published = meter.create_counter(
    name="document_triggers.notifications.published",
    description="Total notifications published",
    unit="1",
)

notifications_failed = meter.create_counter(
    name="document_triggers.notifications.failed",
    description="Total notifications dropped after a delivery error",
    unit="1",
)

# =============================================================================
# FAN-OUT METRICS
# =============================================================================

fanout_width = meter.create_histogram(
    name="document_triggers.fanout.width",
    description="Number of child reads issued per aggregation",
    unit="1",
)
