import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reqstats.middleware import StatsMiddleware
from reqstats.monitoring import Collector, Report
from settings import get_settings

settings = get_settings()

# Structured logging: include module and level; handlers can add JSON later
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fresh collector per lifespan; a stopped one cannot be restarted
    app.state.stats = Collector(reset_interval=settings.stats_reset_interval_seconds)
    app.state.stats.start()
    yield
    app.state.stats.stop()


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    """Return consistent JSON error for unhandled exceptions (500). Skip validation/HTTP errors."""
    from fastapi.exceptions import RequestValidationError
    if isinstance(exc, (HTTPException, RequestValidationError)):
        raise exc
    logger.exception("telemetry unhandled_exception path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again later."},
    )


# Order: last added = outermost. Stats wraps CORS so preflight responses are counted too.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Collector is looked up on app.state.stats per request
app.add_middleware(StatsMiddleware)


@app.get("/health")
def health(request: Request):
    logger.info("telemetry route=health")
    return {"status": "ok"}


@app.get(settings.stats_path, response_model=Report)
def get_stats(request: Request):
    """Rolling and cumulative request counts, response times and uptime for this process."""
    return request.app.state.stats.snapshot()
