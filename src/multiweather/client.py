# OOP boundary for external i/o
# every upstream detail (urls, credentials, payload shapes, units) lives here,
# so the aggregation and http layers only ever see kelvin floats or ProviderError
# a thread-local session is kept per server worker thread

from __future__ import annotations
import logging
import math
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from .errors import ConfigurationError, DecodeError, TransportError
from .models import celsius_to_kelvin

logger = logging.getLogger(__name__)

USER_AGENT = "multi-weather/0.1"


class HTTPProvider(ABC):
    # shared plumbing: session handling, one GET, status and JSON checks
    name = "http"
    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
    ):
        if timeout <= 0:
            raise ConfigurationError(f"{self.name}: timeout must be positive (got {timeout})")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent

        # each worker thread lazily obtains its own session through _session()
        self._local = threading.local()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.base_url!r})"

    def _build_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update({"User-Agent": self.user_agent})
        return s

    def _session(self) -> requests.Session:
        sess = getattr(self._local, "session", None)
        if sess is None:
            sess = self._build_session()
            self._local.session = sess
        return sess

    def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        try:
            resp = self._session().get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(self.name, f"request failed: {exc}") from exc

        # the response stream is released whichever way we leave this block
        with resp:
            if resp.status_code >= 400:
                snippet = (resp.text or "")[:300]
                raise TransportError(self.name, f"HTTP {resp.status_code}. Body: {snippet}")
            try:
                return resp.json()
            except ValueError as exc:
                raise DecodeError(self.name, f"invalid JSON: {exc}") from exc

    def _number_at(self, data: Any, *path: str) -> float:
        # walk a nested dict and insist on a real number at the end
        node = data
        for key in path:
            if not isinstance(node, dict) or key not in node:
                raise DecodeError(self.name, f"unexpected payload shape: missing {'.'.join(path)}")
            node = node[key]
        if isinstance(node, bool) or not isinstance(node, (int, float)):
            raise DecodeError(self.name, f"{'.'.join(path)} is not a number: {node!r}")
        value = float(node)
        if not math.isfinite(value):
            raise DecodeError(self.name, f"{'.'.join(path)} is not a finite number: {node!r}")
        return value

    @abstractmethod
    def temperature(self, city: str) -> float:
        ...


class OpenWeatherMap(HTTPProvider):
    # reports kelvin already, nothing to convert
    name = "openweathermap"
    BASE_URL = "http://api.openweathermap.org"

    def __init__(self, appid: str, base_url: str = BASE_URL, **kwargs: Any):
        if not appid:
            raise ConfigurationError("OPENWEATHERMAP_APPID not set")
        super().__init__(base_url, **kwargs)
        self.appid = appid

    def temperature(self, city: str) -> float:
        data = self._get_json(
            f"{self.base_url}/data/2.5/weather",
            params={"APPID": self.appid, "q": city},
        )
        kelvin = self._number_at(data, "main", "temp")
        logger.info("%s: %s: %.2f", self.name, city, kelvin)
        return kelvin


class WeatherUnderground(HTTPProvider):
    # reports celsius, converted on the way out
    name = "wunderground"
    BASE_URL = "http://api.wunderground.com"

    def __init__(self, api_key: str, base_url: str = BASE_URL, **kwargs: Any):
        if not api_key:
            raise ConfigurationError("WUNDERGROUND_API_KEY not set")
        super().__init__(base_url, **kwargs)
        self.api_key = api_key

    def temperature(self, city: str) -> float:
        # city sits in the path here, so escape it as a single segment
        data = self._get_json(
            f"{self.base_url}/api/{self.api_key}/conditions/q/{quote(city, safe='')}.json"
        )
        celsius = self._number_at(data, "current_observation", "temp_c")
        kelvin = celsius_to_kelvin(celsius)
        logger.info("%s: %s: %.2f", self.name, city, kelvin)
        return kelvin
