"""HTTP/WebSocket front of the mock data source.

Endpoints follow the JSON data source protocol:
- *    /             -> "ok" so the front-end's connection test succeeds
- POST /search       -> fixed list of metric names
- POST /query        -> fixed `abc` time series
- POST /annotations  -> stored events inside the requested range
- WS   /echo         -> periodic push of a fixed token list

Usage:
    uvicorn jsonds.api.app:app
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, Iterable, List, Type, TypeVar

from fastapi import FastAPI, HTTPException, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from jsonds.config import Settings
from jsonds.engine.fixtures import PUSH_TOKENS, search_targets, time_series
from jsonds.engine.model import Event
from jsonds.runtime.eventlog import EventStore
from jsonds.runtime.runner import Generator, seed
from .push import push_loop
from .schemas import (
    Annotation, AnnotationEvent, AnnotationsRequest, QueryRequest,
    SearchRequest, TimeSeries, to_millis,
)

logger = logging.getLogger(__name__)

BAD_METHOD = "bad method; supported OPTIONS, POST"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

M = TypeVar("M", bound=BaseModel)

def _preflight(request: Request) -> bool:
    """True for OPTIONS (answered with an empty 200); 400 for anything but POST."""
    if request.method == "OPTIONS":
        return True
    if request.method != "POST":
        raise HTTPException(400, BAD_METHOD)
    return False

async def _decode(request: Request, model: Type[M]) -> M:
    body = await request.body()
    try:
        return model.model_validate_json(body)
    except ValidationError as e:
        raise HTTPException(400, f"json decode failure: {e}")

def _encode(payload: Any) -> Response:
    try:
        return JSONResponse(payload)
    except (TypeError, ValueError):
        # nothing useful can be sent back at this point
        logger.exception("json enc")
        return Response()

def decorate(events: Iterable[Event], annotation: Annotation) -> List[AnnotationEvent]:
    """Attach the caller's annotation to each event, always with the line shown."""
    shown = annotation.model_copy(update={"show_line": True})
    return [
        AnnotationEvent(annotation=shown, time=e.timestamp, title=e.title, tags=e.tags, text=e.text)
        for e in events
    ]

def create_app(settings: Settings | None = None, store: EventStore | None = None) -> FastAPI:
    """Build the application around `store` (a fresh one if omitted).

    The store is seeded and the generator started in the lifespan, before
    the server accepts any request.
    """
    if settings is None:
        settings = Settings.from_env()
    if store is None:
        store = EventStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        seed(store, settings.seed_count, timedelta(seconds=settings.seed_step_s))
        generator = Generator(store, settings.generate_period_s)
        app.state.generator = generator
        await generator.start()
        try:
            yield
        finally:
            await generator.stop()

    app = FastAPI(title="JSON Data Source", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    @app.middleware("http")
    async def deadline(request: Request, call_next):
        logger.info("%s: %s", request.url.path, request.method)
        try:
            return await asyncio.wait_for(call_next(request), settings.request_timeout_s)
        except TimeoutError:
            logger.warning("%s: %s exceeded %.1fs deadline",
                           request.url.path, request.method, settings.request_timeout_s)
            return PlainTextResponse("request deadline exceeded\n", status_code=504)

    # added last so it wraps the deadline middleware and its 504s carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def plain_text_error(request: Request, exc: StarletteHTTPException):
        return PlainTextResponse(f"{exc.detail}\n", status_code=exc.status_code)

    @app.api_route("/", methods=ALL_METHODS)
    async def root():
        """Lets the front-end's "test connection" step report success."""
        return PlainTextResponse("ok\n")

    @app.api_route("/search", methods=ALL_METHODS)
    async def search(request: Request):
        if _preflight(request):
            return Response()
        await _decode(request, SearchRequest)
        return _encode(search_targets())

    @app.api_route("/query", methods=ALL_METHODS)
    async def query(request: Request):
        """Fixture: the request is validated but does not shape the response."""
        if _preflight(request):
            return Response()
        await _decode(request, QueryRequest)
        series = [TimeSeries(**s) for s in time_series()]
        return _encode([s.model_dump(by_alias=True) for s in series])

    @app.api_route("/annotations", methods=ALL_METHODS)
    async def annotations(request: Request):
        if _preflight(request):
            return Response()
        req = await _decode(request, AnnotationsRequest)
        store: EventStore = request.app.state.store
        events = store.query_range(to_millis(req.range.from_), to_millis(req.range.to))
        return _encode([a.model_dump(by_alias=True) for a in decorate(events, req.annotation)])

    @app.api_route("/echo", methods=ALL_METHODS)
    async def echo_without_upgrade(request: Request):
        logger.warning("upgrade: %s %s is not a websocket handshake", request.method, request.url.path)
        raise HTTPException(400, "Bad Request")

    @app.websocket("/echo")
    async def echo(ws: WebSocket):
        logger.info("%s: websocket", ws.url.path)
        await ws.accept()
        await push_loop(ws, PUSH_TOKENS, settings.push_interval_s)

    return app

app = create_app()
