"""
Prometheus metrics for the clustering service.
"""

import time
from fastapi import Request
from fastapi.responses import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from facegroup.config import settings

REQUESTS_TOTAL = Counter(
    "facegroup_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"]
)

REQUEST_DURATION = Histogram(
    "facegroup_http_request_seconds",
    "Request duration in seconds",
    ["method", "path"]
)

ORACLE_QUERIES = Counter(
    "facegroup_oracle_queries_total",
    "Similarity searches issued to the face oracle",
    ["outcome"]
)

CLUSTERING_RUNS = Counter(
    "facegroup_clustering_runs_total",
    "Clustering runs by kind",
    ["kind"]
)

CLUSTERING_DURATION = Histogram(
    "facegroup_clustering_seconds",
    "Wall time of one clustering run"
)

CLUSTERS_MERGED = Counter(
    "facegroup_clusters_merged_total",
    "Manual cluster merges"
)

ENABLED = settings.METRICS_ENABLED


async def metrics_endpoint():
    """Prometheus metrics endpoint"""
    if not ENABLED:
        return Response(b"metrics disabled", media_type="text/plain")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def metrics_middleware(app):
    """Add metrics middleware to FastAPI app"""
    if not ENABLED:
        return

    @app.middleware("http")
    async def _metrics(request: Request, call_next):
        start = time.time()
        response = await call_next(request)

        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        REQUESTS_TOTAL.labels(
            method=request.method,
            path=path,
            status=str(response.status_code)
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            path=path
        ).observe(time.time() - start)

        return response


def record_oracle_query(outcome: str):
    ORACLE_QUERIES.labels(outcome=outcome).inc()


def record_clustering_run(kind: str, seconds: float):
    CLUSTERING_RUNS.labels(kind=kind).inc()
    CLUSTERING_DURATION.observe(seconds)


def record_cluster_merge():
    CLUSTERS_MERGED.inc()
