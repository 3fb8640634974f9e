"""Tests for observability module."""

from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_embedding_batch,
    track_embedding_request,
    track_search_request,
    track_vectorstore_operation,
)


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    async def test_metrics_endpoint_returns_prometheus_format(self) -> None:
        """Metrics endpoint returns Prometheus format."""
        transport = ASGITransport(app=create_app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert b"# HELP" in response.content


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        assert isinstance(get_metrics(), bytes)

    def test_track_embedding_request(self) -> None:
        """track_embedding_request records request."""
        track_embedding_request(
            model="all-MiniLM-L6-v2",
            duration=0.1,
            success=True,
        )

        metrics = get_metrics().decode()
        assert "embedding_request_duration_seconds" in metrics
        assert "embedding_requests_total" in metrics

    def test_track_embedding_batch(self) -> None:
        """track_embedding_batch records the real batch size."""
        track_embedding_batch(model="batch-model", batch_size=7)

        metrics = get_metrics().decode()
        assert 'embedding_batch_size_sum{model="batch-model"} 7.0' in metrics

    def test_track_vectorstore_operation(self) -> None:
        """track_vectorstore_operation records call latency."""
        track_vectorstore_operation("upsert", 0.02, success=False)

        metrics = get_metrics().decode()
        assert 'vectorstore_operation_duration_seconds_count{operation="upsert",status="error"}' in metrics

    def test_track_search_request(self) -> None:
        """track_search_request records result count and score."""
        track_search_request(results_returned=5, top_score=0.95)

        metrics = get_metrics().decode()
        assert "search_results_returned" in metrics
        assert "search_top_score" in metrics


class TestMetricsMiddleware:
    """Tests for MetricsMiddleware."""

    async def test_middleware_records_request_metrics(self) -> None:
        """Middleware records HTTP request metrics."""
        transport = ASGITransport(app=create_app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            await client.get("/health")

        metrics = get_metrics().decode()
        assert "http_request_duration_seconds" in metrics
        assert 'endpoint="/health"' in metrics

    def test_normalizes_health_paths(self) -> None:
        """Health probes share one label."""
        middleware = MetricsMiddleware(create_app())
        assert middleware._normalize_endpoint("/health/ready") == "/health"
        assert middleware._normalize_endpoint("/health/live") == "/health"

    def test_normalizes_record_ids(self) -> None:
        """Caller-chosen ids do not become labels."""
        middleware = MetricsMiddleware(create_app())
        assert middleware._normalize_endpoint("/api/v1/embed/doc_001") == "/api/v1/embed"
        assert middleware._normalize_endpoint("/api/v1/query/similar/x") == "/api/v1/query"
