"""
Prometheus metrics collection.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from workqueue.constants import (
    METRIC_API_LATENCY,
    METRIC_API_REQUESTS,
    METRIC_JOB_DURATION,
    METRIC_JOBS_CLAIMED,
    METRIC_JOBS_CLEANED,
    METRIC_JOBS_FINISHED,
    METRIC_JOBS_SUBMITTED,
    METRIC_QUEUE_DEPTH,
    METRIC_TIMEOUTS_FAILED,
    METRIC_TIMEOUTS_RECOVERED,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the work queue.

    Collects metrics for:
    - Queue depth by status
    - Submissions, claims and terminal transitions
    - Timeout recovery and timeout failures
    - Cleanup deletions
    - API requests
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.queue_depth = Gauge(
            METRIC_QUEUE_DEPTH,
            "Number of jobs by status",
            ["status"],
            registry=self._registry,
        )

        self.jobs_submitted = Counter(
            METRIC_JOBS_SUBMITTED,
            "Total number of jobs submitted",
            ["job_type"],
            registry=self._registry,
        )

        self.jobs_claimed = Counter(
            METRIC_JOBS_CLAIMED,
            "Total number of successful claims",
            ["attempt"],
            registry=self._registry,
        )

        self.jobs_finished = Counter(
            METRIC_JOBS_FINISHED,
            "Total number of jobs reaching a terminal status",
            ["status"],
            registry=self._registry,
        )

        self.timeouts_recovered = Counter(
            METRIC_TIMEOUTS_RECOVERED,
            "Total number of timed-out jobs returned to the queue",
            registry=self._registry,
        )

        self.timeouts_failed = Counter(
            METRIC_TIMEOUTS_FAILED,
            "Total number of jobs failed after timing out on retry",
            registry=self._registry,
        )

        self.jobs_cleaned = Counter(
            METRIC_JOBS_CLEANED,
            "Total number of terminal jobs deleted by the sweeper",
            registry=self._registry,
        )

        self.job_duration = Histogram(
            METRIC_JOB_DURATION,
            "Worker-side job execution duration in seconds",
            ["job_type", "status"],
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
            registry=self._registry,
        )

        self.api_requests = Counter(
            METRIC_API_REQUESTS,
            "Total number of API requests",
            ["method", "endpoint", "status"],
            registry=self._registry,
        )

        self.api_latency = Histogram(
            METRIC_API_LATENCY,
            "API request latency in seconds",
            ["method", "endpoint"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=self._registry,
        )

    def record_job_submitted(self, job_type: str) -> None:
        """Record a job submission."""
        self.jobs_submitted.labels(job_type=job_type).inc()

    def record_job_claimed(self, retry_count: int) -> None:
        """Record a successful claim."""
        self.jobs_claimed.labels(attempt=str(retry_count)).inc()

    def record_job_finished(self, status: str) -> None:
        """Record a terminal transition."""
        self.jobs_finished.labels(status=status).inc()

    def record_timeouts(self, recovered: int, failed: int) -> None:
        """Record timeout recovery from a claim transaction."""
        if recovered:
            self.timeouts_recovered.inc(recovered)
        if failed:
            self.timeouts_failed.inc(failed)
            self.jobs_finished.labels(status="failed").inc(failed)

    def record_jobs_cleaned(self, count: int) -> None:
        """Record sweeper deletions."""
        if count:
            self.jobs_cleaned.inc(count)

    def record_job_duration(self, job_type: str, status: str, duration_seconds: float) -> None:
        """Record worker-side execution time."""
        self.job_duration.labels(job_type=job_type, status=status).observe(
            duration_seconds
        )

    def update_queue_depth(self, counts: dict[str, int]) -> None:
        """Update the per-status gauges from a counts snapshot."""
        for status, count in counts.items():
            self.queue_depth.labels(status=status).set(count)

    def record_api_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration_seconds: float,
    ) -> None:
        """Record an API request."""
        self.api_requests.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        self.api_latency.labels(method=method, endpoint=endpoint).observe(
            duration_seconds
        )

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)

    def get_content_type(self) -> str:
        """Get the content type for metrics response."""
        return CONTENT_TYPE_LATEST


def setup_metrics(registry: CollectorRegistry | None = None) -> MetricsCollector:
    """
    Set up and return the process-wide metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector(registry)
    return _metrics


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance, creating it on first use.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics
