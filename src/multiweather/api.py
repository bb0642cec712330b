"""HTTP surface of the service.

Two routes: ``/hello`` for liveness and ``/weather/<city>`` for the averaged
temperature. The aggregator is built once by the caller and injected into
:func:`create_app`; handlers only read it.
"""

from __future__ import annotations
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from .errors import RequestError, WeatherError
from .service import MultiWeatherProvider

logger = logging.getLogger(__name__)

WEATHER_PREFIX = "/weather"


class UTF8JSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"


def city_from_path(path: str) -> str:
    # "/weather/<city>" -> "<city>"; everything after the second slash is the city.
    # takes the already percent-decoded path, so an escaped "?" or "#" stays part of the city
    parts = path.split("/", 2)
    if len(parts) < 3:
        raise RequestError(f"expected {WEATHER_PREFIX}/<city>, got {path!r}")
    city = parts[2]
    if not city:
        raise RequestError(f"missing city in {path!r}")
    return city


async def handle_request_error(request: Request, exc: RequestError) -> PlainTextResponse:
    logger.info("Rejected %s: %s", request.scope["path"], exc)
    return PlainTextResponse(str(exc), status_code=status.HTTP_400_BAD_REQUEST)


async def handle_weather_error(request: Request, exc: WeatherError) -> PlainTextResponse:
    logger.error("Weather lookup failed for %s: %s", request.scope["path"], exc)
    return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_app(aggregator: MultiWeatherProvider) -> FastAPI:
    app = FastAPI(title="multi-weather", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.aggregator = aggregator

    # the more specific handler is picked by the exception's mro
    app.add_exception_handler(RequestError, handle_request_error)
    app.add_exception_handler(WeatherError, handle_weather_error)

    @app.get("/hello", response_class=PlainTextResponse)
    def hello() -> str:
        return "hello!"

    # plain def: starlette runs it in its thread pool, so the blocking upstream calls are fine
    @app.get(WEATHER_PREFIX, response_class=UTF8JSONResponse)
    @app.get(WEATHER_PREFIX + "/{city:path}", response_class=UTF8JSONResponse)
    def weather(request: Request) -> UTF8JSONResponse:
        city = city_from_path(request.scope["path"])
        report = request.app.state.aggregator.measure(city)
        return UTF8JSONResponse(report.as_dict())

    return app
