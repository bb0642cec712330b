# shared fixtures: upstream http is always mocked, providers can be faked outright

from __future__ import annotations
import json
from pathlib import Path

import pytest
import requests_mock as requests_mock_lib

from multiweather.errors import TransportError

DATA_DIR = Path(__file__).parent / "data"


class FakeProvider:
    # records every call so tests can check who was asked, and in which order
    def __init__(self, name, reading=None, error=None, log=None):
        self.name = name
        self.reading = reading
        self.error = error
        self.cities = []
        self._log = log

    @property
    def calls(self):
        return len(self.cities)

    def temperature(self, city):
        self.cities.append(city)
        if self._log is not None:
            self._log.append(self.name)
        if self.error is not None:
            raise self.error
        return self.reading


@pytest.fixture()
def requests_mock():
    with requests_mock_lib.Mocker() as mocker:
        yield mocker


@pytest.fixture()
def make_provider():
    return FakeProvider


@pytest.fixture()
def load_payload():
    def _load(name):
        return json.loads((DATA_DIR / name).read_text())
    return _load


@pytest.fixture()
def transport_error():
    return TransportError("broken", "request failed: connection refused")
