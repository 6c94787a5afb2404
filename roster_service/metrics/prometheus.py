# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "roster_requests_total",
    "Total HTTP requests to roster service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "roster_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "roster_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
CYCLES_TOTAL = Counter(
    "roster_cycles_total",
    "Assignment cycle clicks applied",
    ["team"],
)
CONFLICTS_REJECTED = Counter(
    "roster_conflicts_rejected_total",
    "Edits rejected by roster rules",
    ["kind"],
)
ABSENCE_CHANGES = Counter(
    "roster_absence_changes_total",
    "Absence toggles and reason edits",
    ["action"],
)
DIRTY_ENTRIES = Gauge(
    "roster_dirty_entries",
    "Roster entries with unsaved local edits",
)
SAVES_TOTAL = Counter(
    "roster_saves_total",
    "Bulk roster saves",
    ["status"],
)
SYNC_WRITES = Counter(
    "roster_sync_writes_total",
    "Per-edit remote writes",
    ["status"],
)
SYNC_SKIPPED = Counter(
    "roster_sync_skipped_total",
    "Queued writes skipped because a newer edit superseded them",
)
SYNC_FAILURES = Counter(
    "roster_sync_failures_total",
    "Remote writes that failed after all retries",
)
SYNC_LATENCY = Histogram(
    "roster_sync_duration_seconds",
    "Time to persist one roster entry, retries included",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)
