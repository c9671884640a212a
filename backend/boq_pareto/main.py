"""
BoQ Pareto Analyzer API
FastAPI backend with async SQLAlchemy persistence, pandas spreadsheet decoding,
Pareto / WBS cost analysis and litellm-backed value-engineering suggestions.
"""
import logging
import sys
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from boq_pareto import config
from boq_pareto.db import DATABASE_URL, init_db
from boq_pareto.services.errors import AnalysisError
from boq_pareto.services.logging_config import setup_logging
from boq_pareto.services.middleware import RequestTimingMiddleware
from boq_pareto.services.perf_monitor import tracker as perf_tracker

setup_logging(level=config.LOG_LEVEL, json_output=config.LOG_FORMAT != "text")
logger = logging.getLogger("boq-pareto-api")

# Record process start time for uptime calculation
_PROCESS_START = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info(f"{config.APP_NAME} {config.APP_VERSION} started")
    yield


app = FastAPI(
    title=config.APP_NAME,
    version=config.APP_VERSION,
    description="Pareto (80/20) cost analysis and WBS drill-down for Bills of Quantities",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Requested-With", "X-Request-ID"],
)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Routers
from boq_pareto.api.upload_routes import router as upload_router  # noqa: E402
from boq_pareto.api.project_routes import router as project_router  # noqa: E402
from boq_pareto.api.analysis_routes import router as analysis_router  # noqa: E402
from boq_pareto.api.insight_routes import router as insight_router  # noqa: E402

app.include_router(upload_router)
app.include_router(project_router)
app.include_router(analysis_router)
app.include_router(insight_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": config.APP_VERSION,
        "database": DATABASE_URL.split("://", 1)[0],
        "llm_primary": config.LLM_PRIMARY_MODEL,
    }


@app.get("/metrics")
async def metrics():
    """
    Analysis run counts, average durations and error counts from the
    in-process PerformanceTracker, plus uptime and peak memory.
    """
    uptime_seconds = round(time.monotonic() - _PROCESS_START, 1)

    memory_mb: float = 0.0
    try:
        import resource  # Unix only
        usage = resource.getrusage(resource.RUSAGE_SELF)
        # ru_maxrss is in kilobytes on Linux, bytes on macOS
        if sys.platform == "darwin":
            memory_mb = round(usage.ru_maxrss / (1024 * 1024), 2)
        else:
            memory_mb = round(usage.ru_maxrss / 1024, 2)
    except ImportError:
        memory_mb = 0.0

    snapshot = perf_tracker.get_metrics()
    return {
        "uptime_seconds": uptime_seconds,
        "memory_usage_mb": memory_mb,
        **snapshot,
    }
