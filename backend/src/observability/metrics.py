"""Prometheus metrics for the inbox dispatch service.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram

# Dispatch metrics
messages_dispatched_total = Counter(
    "inbox_messages_dispatched_total",
    "Total outbound dispatch attempts that reached a channel adapter",
    ["channel_type", "operation", "status"]  # operation: text|media|template|interactive, status: success|error
)

dispatch_latency_ms = Histogram(
    "inbox_dispatch_latency_ms",
    "Channel adapter call latency in milliseconds",
    ["channel_type", "operation"],
    buckets=[50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000]
)

# Rejections before any adapter call (access, capability, batch size)
dispatch_rejections_total = Counter(
    "inbox_dispatch_rejections_total",
    "Send requests rejected by the dispatch core",
    ["error_kind"]
)

# Batch metrics
batch_size = Histogram(
    "inbox_batch_size",
    "Number of items per accepted send batch",
    buckets=[1, 5, 10, 25, 50, 75, 100]
)
