"""FastAPI application relaying IP-derived locations to the weather API."""

import time
import uuid
from contextlib import asynccontextmanager

import httpx
import structlog
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import Counter, Histogram, start_http_server
from pydantic import ValidationError

from weather_relay.core.config import Settings
from weather_relay.core.logging import configure_logging, get_logger
from weather_relay.services.client_ip import resolve_client_ip
from weather_relay.services.geolocation import GeolocationClient
from weather_relay.services.upstream import UpstreamError
from weather_relay.services.weather import WeatherClient

logger = get_logger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "weather_relay_requests_total",
    "Total number of requests",
    ["method", "endpoint", "status"],
)
REQUEST_DURATION = Histogram(
    "weather_relay_request_duration_seconds",
    "Request duration in seconds",
    ["method", "endpoint"],
)
UPSTREAM_ERRORS = Counter(
    "weather_relay_upstream_errors_total",
    "Total number of failed upstream calls",
    ["stage", "error"],
)
UNMATCHED_ENDPOINT = "unmatched"

router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_geolocation_client(request: Request) -> GeolocationClient:
    return request.app.state.geolocation


def get_weather_client(request: Request) -> WeatherClient:
    return request.app.state.weather


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    settings: Settings = app.state.settings
    logger.info("application_starting", version=settings.app_version, port=settings.port)

    if settings.metrics_port is not None:
        start_http_server(settings.metrics_port)
        logger.info("metrics_server_started", port=settings.metrics_port)

    yield

    logger.info("application_shutting_down")
    await app.state.http_client.aclose()
    logger.info("application_stopped")


async def add_correlation_id(request: Request, call_next):
    """Add correlation ID to each request for tracing."""
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id

    return response


async def metrics_middleware(request: Request, call_next):
    """Track request metrics, labelled by route template."""
    method = request.method
    start = time.perf_counter()

    response = await call_next(request)

    # routing stores the matched route in the shared scope
    route = request.scope.get("route")
    endpoint = getattr(route, "path", UNMATCHED_ENDPOINT)

    REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(time.perf_counter() - start)
    REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=response.status_code).inc()

    return response


def _upstream_failure(stage: str, context: str, exc: UpstreamError) -> PlainTextResponse:
    logger.error(f"{stage}_failed", error=str(exc), error_type=type(exc).__name__)
    UPSTREAM_ERRORS.labels(stage=stage, error=type(exc).__name__).inc()
    return PlainTextResponse(f"{context}: {exc}", status_code=500)


@router.get(
    "/getWeather",
    summary="Get current weather for the caller's location",
    responses={
        200: {"description": "Weather payload as returned by the weather API"},
        500: {
            "description": "Geolocation or weather lookup failed",
            "content": {"text/plain": {"example": "Error getting location: ..."}},
        },
    },
)
async def get_weather(
    request: Request,
    ip: str | None = Query(default=None, description="IP address to use instead of the caller's"),
    settings: Settings = Depends(get_settings),
    geolocation: GeolocationClient = Depends(get_geolocation_client),
    weather: WeatherClient = Depends(get_weather_client),
):
    """Geolocate the caller's IP and return the current weather there.

    Every upstream failure ends the request with a plain-text 500; the
    weather API is only called once the geolocation lookup has succeeded.
    """
    client_ip = resolve_client_ip(request, ip)
    logger.info("weather_request", ip=client_ip)

    try:
        location = await geolocation.locate(client_ip)
    except UpstreamError as e:
        return _upstream_failure("geolocation", "Error getting location", e)

    try:
        weather_data = await weather.fetch_current(location.lat, location.lon, settings.meteoblue_api_key)
    except UpstreamError as e:
        return _upstream_failure("weather", "Error getting weather data", e)

    return JSONResponse(status_code=200, content=weather_data.model_dump())


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error("unhandled_exception", error=str(exc), path=request.url.path)

    return PlainTextResponse(f"Internal server error: {exc}", status_code=500)


def create_app(settings: Settings | None = None, http_client: httpx.AsyncClient | None = None) -> FastAPI:
    """Build the relay application.

    Args:
        settings: Application settings, loaded from the environment when omitted
        http_client: Client used for both upstreams; one without a timeout is
            created when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings()
    configure_logging(settings.log_level, settings.log_json)

    http_client = http_client or httpx.AsyncClient(timeout=settings.request_timeout)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.http_client = http_client
    app.state.geolocation = GeolocationClient(http_client, settings.geolocation_api_url)
    app.state.weather = WeatherClient(http_client, settings.weather_api_url)

    app.middleware("http")(add_correlation_id)
    app.middleware("http")(metrics_middleware)
    app.add_exception_handler(Exception, global_exception_handler)
    app.include_router(router)

    return app


def main() -> None:
    """Load settings from the environment and serve the relay."""
    configure_logging()

    try:
        settings = Settings()
    except ValidationError as e:
        logger.error("configuration_invalid", error=str(e))
        raise SystemExit(1)

    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
