import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from jobmarket.exceptions import JobMarketError
from jobmarket.logging_config import configure_logging
from jobmarket.routers import favorites, filter_context, jobs, saved_filters

# Configure logging at startup
configure_logging()

logger = logging.getLogger(__name__)

app = FastAPI(title="Job Market")

# Routers
app.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
app.include_router(
    saved_filters.router, prefix="/saved-filters", tags=["saved-filters"]
)
app.include_router(
    filter_context.router, prefix="/filter-context", tags=["filter-context"]
)
app.include_router(favorites.router, prefix="/favorites", tags=["favorites"])


@app.exception_handler(JobMarketError)
def handle_job_market_error(request: Request, exc: JobMarketError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    content = {"error": str(exc), "code": exc.code}
    field = getattr(exc, "field", None)
    if field:
        content["field"] = field
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}
