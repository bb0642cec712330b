# error types shared by every layer
# adapters raise ProviderError subclasses, the aggregator passes them through untouched,
# and the http layer maps them to status codes

from __future__ import annotations


class WeatherError(RuntimeError):
    # root of everything this package raises on purpose
    pass


class ProviderError(WeatherError):
    # a single upstream could not produce a reading

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class TransportError(ProviderError):
    # the upstream could not be reached, timed out, or answered with an http error
    pass


class DecodeError(ProviderError):
    # the upstream answered but the body is not the shape we expect
    pass


class AggregationError(WeatherError):
    # only raised when failing providers are skipped and none were left
    pass


class ConfigurationError(WeatherError):
    pass


class RequestError(WeatherError):
    # malformed inbound request, mapped to 400
    pass
