# models and small helpers to keep data shapes explicit and reusable across the app
# all temperatures handled by the service are kelvin

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Protocol, Union

KELVIN_OFFSET = 273.15

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000
_NS_PER_MIN = 60 * _NS_PER_S
_NS_PER_H = 60 * _NS_PER_MIN


class WeatherProvider(Protocol):
    """Anything that can produce a kelvin reading for a city."""

    name: str

    def temperature(self, city: str) -> float:
        ...


@dataclass(frozen=True)
class WeatherReport:
    # response payload for one /weather call
    city: str
    temp: float
    took: str

    def as_dict(self) -> Dict[str, Union[str, float]]:
        return {"city": self.city, "temp": self.temp, "took": self.took}


def celsius_to_kelvin(value: float) -> float:
    return value + KELVIN_OFFSET


def mean(values: Iterable[float]) -> float:
    # callers guard against empty input; reaching here with none is a bug
    values = list(values)
    if not values:
        raise ValueError("mean() of an empty sequence")
    return sum(values) / len(values)


def _scaled(ns: int, unit: int) -> str:
    whole, frac = divmod(ns, unit)
    digits = len(str(unit)) - 1
    frac_text = str(frac).zfill(digits).rstrip("0")
    return f"{whole}.{frac_text}" if frac_text else str(whole)


def format_duration(seconds: float) -> str:
    """Render an elapsed time the way humans read it: 850ns, 12.5µs, 1.25ms, 1m30.5s."""
    ns = int(round(seconds * _NS_PER_S))
    if ns <= 0:
        return "0s"
    if ns < _NS_PER_US:
        return f"{ns}ns"
    if ns < _NS_PER_MS:
        return _scaled(ns, _NS_PER_US) + "µs"
    if ns < _NS_PER_S:
        return _scaled(ns, _NS_PER_MS) + "ms"

    hours, rest = divmod(ns, _NS_PER_H)
    minutes, rest = divmod(rest, _NS_PER_MIN)
    text = _scaled(rest, _NS_PER_S) + "s"
    if hours or minutes:
        text = f"{minutes}m" + text
    if hours:
        text = f"{hours}h" + text
    return text
