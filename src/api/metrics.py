from prometheus_client import Counter, Histogram, Gauge, REGISTRY


# metrics may already be registered after a hot reload or a second import in tests
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "tasks_requests_total",
    "Total requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "tasks_request_latency_seconds",
    "Request latency",
    Histogram,
    labelnames=["endpoint"],
)

EXTRACTIONS_TOTAL = get_or_create_metric(
    "tasks_extractions_total",
    "Extraction calls by mode and by the path that produced the result",
    Counter,
    labelnames=["mode", "path"],
)

EXTRACTION_FAILURES_TOTAL = get_or_create_metric(
    "tasks_extraction_failures_total",
    "Extraction calls that produced no task",
    Counter,
    labelnames=["mode", "reason"],
)

TASKS_CREATED_TOTAL = get_or_create_metric(
    "tasks_created_total", "Task records created", Counter, labelnames=["source"]
)

TASKS_STORED = get_or_create_metric(
    "tasks_stored", "Task records currently held in memory", Gauge
)
