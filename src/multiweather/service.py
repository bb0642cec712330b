# orchestration and business rules
# providers are asked one after another, in the order they were configured.
# by default the first failure aborts the whole aggregation and is re-raised as is

from __future__ import annotations
import logging
import math
import time
from typing import Iterable, List, Sequence, Tuple

from .errors import AggregationError, ConfigurationError, ProviderError
from .models import WeatherProvider, WeatherReport, format_duration, mean

logger = logging.getLogger(__name__)


def average_temperature(city: str, providers: Sequence[WeatherProvider]) -> float:
    """Mean kelvin reading over ``providers``; the first failure propagates unchanged."""
    if not providers:
        raise ConfigurationError("no weather providers configured")

    total = 0.0
    for provider in providers:
        # an exception here leaves the remaining providers untouched
        total += provider.temperature(city)
    return total / len(providers)


class MultiWeatherProvider:
    """An ordered, fixed set of providers that answers like a single provider.

    Built once at start-up and shared by every request, so nothing on it
    changes after ``__init__``.
    """

    name = "multi"

    def __init__(self, providers: Iterable[WeatherProvider], continue_on_failure: bool = False):
        self._providers: Tuple[WeatherProvider, ...] = tuple(providers)
        if not self._providers:
            raise ConfigurationError("no weather providers configured")
        self._continue_on_failure = continue_on_failure

    @property
    def providers(self) -> Tuple[WeatherProvider, ...]:
        return self._providers

    @property
    def continue_on_failure(self) -> bool:
        return self._continue_on_failure

    def __len__(self) -> int:
        return len(self._providers)

    def __repr__(self) -> str:
        names = ", ".join(p.name for p in self._providers)
        return f"MultiWeatherProvider([{names}], continue_on_failure={self._continue_on_failure})"

    def temperature(self, city: str) -> float:
        if not self._continue_on_failure:
            return average_temperature(city, self._providers)
        return self._tolerant_temperature(city)

    def _tolerant_temperature(self, city: str) -> float:
        readings: List[float] = []
        errors: List[ProviderError] = []
        for provider in self._providers:
            try:
                readings.append(provider.temperature(city))
            except ProviderError as exc:
                logger.warning("Weather provider %s failed for %r, skipping: %s", provider.name, city, exc)
                errors.append(exc)

        if not readings:
            raise AggregationError(
                f"all {len(errors)} weather providers failed for {city!r}: {errors[0]}"
            ) from errors[0]
        return mean(readings)

    def measure(self, city: str) -> WeatherReport:
        # single request path: aggregate -> time it -> package the payload
        begin = time.monotonic()
        temp = self.temperature(city)
        if not math.isfinite(temp):
            # json cannot carry nan or inf
            raise AggregationError(f"non-finite temperature {temp!r} for {city!r}")
        took = format_duration(time.monotonic() - begin)
        logger.debug("Aggregated %s over %d providers in %s", city, len(self._providers), took)
        return WeatherReport(city=city, temp=temp, took=took)
