import time

from fastapi import FastAPI, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

METRICS_PATH = "/metrics"

REQUESTS = Counter("rollout_requests_total", "Rollout API requests", ["method", "route", "http_status"])
LATENCY = Histogram("rollout_request_latency_seconds", "Rollout API request latency", ["method", "route"])
EVALS = Counter("feature_evaluations_total", "Feature activation checks", ["feature", "result"])
MUTATIONS = Counter("feature_mutations_total", "Feature mutation requests", ["operation"])

def record_evaluation(feature: str, active: bool):
    EVALS.labels(feature, "active" if active else "inactive").inc()

def record_mutation(operation: str):
    MUTATIONS.labels(operation).inc()

def _route_label(request: Request) -> str:
    # templated path, so per-feature URLs share one series
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"

def setup_metrics(app: FastAPI):

    @app.middleware("http")
    async def rollout_metrics(request: Request, call_next):
        if request.url.path == METRICS_PATH:
            return await call_next(request)
        start = time.perf_counter()
        response = await call_next(request)
        route = _route_label(request)
        LATENCY.labels(request.method, route).observe(time.perf_counter() - start)
        REQUESTS.labels(request.method, route, str(response.status_code)).inc()
        return response

    @app.get(METRICS_PATH, include_in_schema=False)
    async def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
