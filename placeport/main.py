"""FastAPI entrypoint for PlacePort."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
import logging
from secrets import token_hex
import time
from time import monotonic
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response, status
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from placeport.analytics import AnalyticsStore, ImageStatsEvent
from placeport.config import Settings, get_settings
from placeport.generators import inspirational_quote, random_image_urls, random_properties
from placeport.hit_counter import WindowedHitCounter
from placeport.imager import render_image
from placeport.stats_service import StatsQueryService
from placeport.storage import SlotStorage, StatsStorageError, create_slot_storage
from placeport.validation import (
    ImageRequest,
    ImageRequestValidationError,
    validate_amount,
    validate_image_request,
    validate_square,
)

request_logger = logging.getLogger("placeport.request")
stats_logger = logging.getLogger("placeport.stats")
storage_logger = logging.getLogger("placeport.storage")

image_router = APIRouter(prefix="/img", tags=["images"])
stats_router = APIRouter(prefix="/stats", tags=["stats"])
meta_router = APIRouter(tags=["meta"])


def get_stats_store(request: Request) -> AnalyticsStore:
    return request.app.state.stats_store


def get_stats_service(request: Request) -> StatsQueryService:
    return request.app.state.stats_service


def _client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def _send_image(
    request: Request,
    image: ImageRequest,
    store: AnalyticsStore,
) -> Response:
    event = ImageStatsEvent(
        width=image.width,
        height=image.height,
        square=image.square,
        text=image.text,
        referrer=request.headers.get("referer"),
    )
    # Durable slot I/O blocks; keep it off the event loop.
    await run_in_threadpool(store.record_image_request, event)
    body = await run_in_threadpool(render_image, image.width, image.height, image.square, image.text)
    return Response(content=body, media_type="image/png")


@image_router.get("")
async def random_image(
    request: Request,
    square: str | None = Query(default=None),
    text: str | None = Query(default=None),
    amount: str | None = Query(default=None),
    store: AnalyticsStore = Depends(get_stats_store),
) -> Response:
    parsed_square = validate_square(square)
    parsed_amount = validate_amount(amount, square)
    if parsed_amount is not None:
        # Bulk listings only hand out links; nothing is served so no stats are kept.
        base_url = str(request.base_url)
        return JSONResponse(random_image_urls(base_url, parsed_amount, text))

    width, height, parsed_square, text = random_properties(parsed_square, text)
    image = ImageRequest(width=width, height=height, square=parsed_square, text=text)
    return await _send_image(request, image, store)


@image_router.get("/{width}")
async def square_image(
    request: Request,
    width: str,
    square: str | None = Query(default=None),
    text: str | None = Query(default=None),
    store: AnalyticsStore = Depends(get_stats_store),
) -> Response:
    image = validate_image_request(width, None, square=square, text=text)
    return await _send_image(request, image, store)


@image_router.get("/{width}/{height}")
async def sized_image(
    request: Request,
    width: str,
    height: str,
    square: str | None = Query(default=None),
    text: str | None = Query(default=None),
    store: AnalyticsStore = Depends(get_stats_store),
) -> Response:
    image = validate_image_request(width, height, square=square, text=text)
    return await _send_image(request, image, store)


@image_router.get("/{width}/{height}/inspiration")
async def inspiration_image(
    request: Request,
    width: str,
    height: str,
    square: str | None = Query(default=None),
    text: str | None = Query(default=None),
    store: AnalyticsStore = Depends(get_stats_store),
) -> Response:
    image = validate_image_request(width, height, square=square)
    if text is not None:
        raise ImageRequestValidationError(
            "Text",
            "Text query cannot be set if you are looking for a inspiration",
        )
    image = image.model_copy(update={"text": inspirational_quote()})
    return await _send_image(request, image, store)


@stats_router.get("", response_class=HTMLResponse, include_in_schema=False)
async def stats_page(request: Request) -> HTMLResponse:
    settings: Settings = request.app.state.settings
    return request.app.state.templates.TemplateResponse(
        request,
        "stats.html",
        {"app_name": settings.app_name, "app_version": settings.app_version},
    )


@stats_router.get("/texts/recent")
def recent_texts(service: StatsQueryService = Depends(get_stats_service)) -> list[str]:
    return service.recent_texts()


@stats_router.get("/paths/recent")
def recent_paths(service: StatsQueryService = Depends(get_stats_service)) -> list[str]:
    return service.recent_paths()


@stats_router.get("/sizes/recent")
def recent_sizes(
    service: StatsQueryService = Depends(get_stats_service),
) -> list[dict[str, int]]:
    return service.recent_sizes()


@stats_router.get("/sizes/top")
def top_sizes(
    service: StatsQueryService = Depends(get_stats_service),
) -> list[dict[str, int]]:
    return service.top_sizes()


@stats_router.get("/referrers/top")
def top_referrers(
    service: StatsQueryService = Depends(get_stats_service),
) -> list[dict[str, Any]]:
    return service.top_references()


@stats_router.get("/hits")
def second_hits(
    service: StatsQueryService = Depends(get_stats_service),
) -> list[dict[str, str | int]]:
    return service.second_hits()


@stats_router.delete("")
def clear_stats(service: StatsQueryService = Depends(get_stats_service)) -> Response:
    service.clear()
    return Response(status_code=status.HTTP_200_OK)


@meta_router.get("/api/v1/health")
async def basic_health(request: Request) -> dict[str, int | str | bool]:
    settings: Settings = request.app.state.settings
    store: AnalyticsStore = request.app.state.stats_store
    return {
        "status": "healthy",
        "version": settings.app_version,
        "stats_backend": settings.stats_backend,
        "stats_durable": store.durable,
        "uptime_seconds": int(monotonic() - request.app.state.started_at_monotonic),
    }


async def image_validation_error_handler(
    request: Request, exc: ImageRequestValidationError
) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_json())


async def stats_storage_error_handler(request: Request, exc: StatsStorageError) -> JSONResponse:
    storage_logger.error(
        "stats_storage_failed method=%s path=%s error=%s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Stats storage unavailable"},
    )


async def request_logging_middleware(request: Request, call_next: Any) -> Response:
    path = request.url.path
    if path.startswith("/static"):
        return await call_next(request)

    request_id = token_hex(3)
    started = monotonic()
    method = request.method.upper()
    request_logger.info(
        "request_started id=%s method=%s path=%s client=%s",
        request_id,
        method,
        path,
        _client_address(request),
    )
    try:
        response = await call_next(request)
    except Exception:
        latency_ms = int((monotonic() - started) * 1000)
        request_logger.exception(
            "request_completed id=%s method=%s path=%s status=%s latency_ms=%s",
            request_id,
            method,
            path,
            500,
            latency_ms,
        )
        raise

    latency_ms = int((monotonic() - started) * 1000)
    log = request_logger.error if response.status_code >= 500 else request_logger.info
    log(
        "request_completed id=%s method=%s path=%s status=%s latency_ms=%s",
        request_id,
        method,
        path,
        response.status_code,
        latency_ms,
    )
    return response


def create_app(
    settings: Settings | None = None,
    *,
    storage: SlotStorage | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Build the service with its own analytics store.

    ``storage`` overrides the backend chosen by ``settings.stats_backend``.
    """

    settings = settings or get_settings()
    if storage is None:
        storage = create_slot_storage(
            backend=settings.stats_backend,
            location=settings.stats_location,
            redis_url=settings.redis_url,
            prefix=settings.stats_redis_prefix,
            logger=storage_logger,
        )
    store = AnalyticsStore(storage, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        stats_logger.info(
            "service_started name=%s version=%s stats_backend=%s durable=%s",
            settings.app_name,
            settings.app_version,
            settings.stats_backend,
            store.durable,
        )
        yield
        close = getattr(storage, "close", None)
        if close is not None:
            close()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.stats_store = store
    app.state.stats_service = StatsQueryService(store, WindowedHitCounter(store))
    app.state.templates = Jinja2Templates(directory=str(settings.templates_directory))
    app.state.started_at_monotonic = monotonic()

    app.add_exception_handler(ImageRequestValidationError, image_validation_error_handler)
    app.add_exception_handler(StatsStorageError, stats_storage_error_handler)
    app.middleware("http")(request_logging_middleware)

    app.include_router(image_router)
    app.include_router(stats_router)
    app.include_router(meta_router)
    app.mount("/static", StaticFiles(directory=str(settings.static_directory)), name="static")
    return app


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


configure_logging(get_settings())
app = create_app()


def run() -> None:
    """Console entrypoint serving the module-level app with uvicorn."""

    import uvicorn

    settings = get_settings()
    uvicorn.run("placeport.main:app", host=settings.host, port=settings.port)
