"""Prometheus metrics."""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"]
)
REQUEST_DURATION = Histogram(
    "http_request_duration_seconds", "HTTP request duration", ["method", "endpoint"]
)

AUTOMATION_RUNS = Counter(
    "automation_runs_total", "Automation runs by final status", ["status"]
)
AUTOMATION_RUN_DURATION = Histogram(
    "automation_run_duration_seconds", "Wall time of automation runs"
)
NODE_EXECUTIONS = Counter(
    "automation_node_executions_total",
    "Executed automation nodes",
    ["node_subtype", "outcome"],
)
NODES_SKIPPED = Counter(
    "automation_nodes_skipped_total",
    "Automation nodes skipped during a run",
    ["reason"],
)
