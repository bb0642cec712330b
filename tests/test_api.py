# http surface through fastapi's test client; providers are faked or their upstreams mocked

import pytest
from fastapi.testclient import TestClient

from multiweather.api import city_from_path, create_app
from multiweather.client import OpenWeatherMap, WeatherUnderground
from multiweather.errors import RequestError
from multiweather.service import MultiWeatherProvider


@pytest.fixture()
def client_for():
    def _client(*providers, **kwargs):
        return TestClient(create_app(MultiWeatherProvider(providers, **kwargs)))
    return _client


def test_hello(client_for, make_provider):
    response = client_for(make_provider("a", reading=1.0)).get("/hello")

    assert response.status_code == 200
    assert response.text == "hello!"


def test_weather_returns_average(client_for, make_provider):
    client = client_for(make_provider("a", reading=300.0), make_provider("b", reading=280.0))

    response = client.get("/weather/testcity")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json; charset=utf-8"
    payload = response.json()
    assert set(payload) == {"city", "temp", "took"}
    assert payload["city"] == "testcity"
    assert payload["temp"] == 290.0
    assert isinstance(payload["took"], str) and payload["took"]


def test_weather_provider_failure_is_a_500(client_for, make_provider, transport_error):
    never = make_provider("never", reading=280.0)
    client = client_for(make_provider("broken", error=transport_error), never)

    response = client.get("/weather/testcity")

    assert response.status_code == 500
    assert response.text == str(transport_error)
    assert response.headers["content-type"].startswith("text/plain")
    assert never.calls == 0


@pytest.mark.parametrize("path", ["/weather/", "/weather"])
def test_weather_without_city_is_a_400(client_for, make_provider, path):
    provider = make_provider("a", reading=300.0)

    response = client_for(provider).get(path)

    assert response.status_code == 400
    assert response.text
    assert provider.calls == 0


def test_weather_city_is_percent_decoded(client_for, make_provider):
    provider = make_provider("a", reading=300.0)

    response = client_for(provider).get("/weather/Salt%20Lake%20City")

    assert response.status_code == 200
    assert response.json()["city"] == "Salt Lake City"
    assert provider.cities == ["Salt Lake City"]


def test_weather_end_to_end_with_real_adapters(requests_mock):
    # openweathermap reports 300 K, wunderground 6.85 °C (280 K)
    requests_mock.get("http://owm.test/data/2.5/weather", json={"name": "testcity", "main": {"temp": 300.0}})
    requests_mock.get(
        "http://wu.test/api/wu-key/conditions/q/testcity.json",
        json={"current_observation": {"temp_c": 6.85}},
    )
    client = TestClient(create_app(MultiWeatherProvider([
        OpenWeatherMap(appid="owm-key", base_url="http://owm.test"),
        WeatherUnderground(api_key="wu-key", base_url="http://wu.test"),
    ])))

    response = client.get("/weather/testcity")

    assert response.status_code == 200
    assert response.json()["temp"] == pytest.approx(290.0)
    assert requests_mock.call_count == 2


def test_weather_end_to_end_upstream_down(requests_mock):
    requests_mock.get("http://owm.test/data/2.5/weather", status_code=502, text="bad gateway")
    wu = requests_mock.get("http://wu.test/api/wu-key/conditions/q/testcity.json", json={})
    client = TestClient(create_app(MultiWeatherProvider([
        OpenWeatherMap(appid="owm-key", base_url="http://owm.test"),
        WeatherUnderground(api_key="wu-key", base_url="http://wu.test"),
    ])))

    response = client.get("/weather/testcity")

    assert response.status_code == 500
    assert "HTTP 502" in response.text
    assert not wu.called


def test_continue_on_failure_over_http(client_for, make_provider, transport_error):
    client = client_for(
        make_provider("broken", error=transport_error),
        make_provider("b", reading=280.0),
        continue_on_failure=True,
    )

    response = client.get("/weather/testcity")

    assert response.status_code == 200
    assert response.json()["temp"] == 280.0


@pytest.mark.parametrize(
    "path, city",
    [("/weather/testcity", "testcity"), ("/weather/a/b", "a/b"), ("/weather/Boise, ID", "Boise, ID")],
)
def test_city_from_path(path, city):
    assert city_from_path(path) == city


@pytest.mark.parametrize("path", ["/weather", "/weather/", "", "/"])
def test_city_from_path_rejects_short_paths(path):
    with pytest.raises(RequestError):
        city_from_path(path)


@pytest.mark.parametrize(
    "path, city",
    [("/weather/a%3Fb", "a?b"), ("/weather/%3Fx", "?x"), ("/weather/a%23b", "a#b")],
)
def test_weather_keeps_escaped_query_characters_in_city(client_for, make_provider, path, city):
    provider = make_provider("a", reading=300.0)

    response = client_for(provider).get(path)

    assert response.status_code == 200
    assert response.json()["city"] == city
    assert provider.cities == [city]


def test_weather_non_finite_reading_is_a_plain_500(client_for, make_provider):
    client = client_for(make_provider("a", reading=float("nan")))

    response = client.get("/weather/testcity")

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("text/plain")
    assert "non-finite" in response.text


def test_weather_end_to_end_nan_upstream(requests_mock):
    requests_mock.get("http://owm.test/data/2.5/weather", text='{"main": {"temp": NaN}}')
    client = TestClient(create_app(MultiWeatherProvider([
        OpenWeatherMap(appid="owm-key", base_url="http://owm.test"),
    ])))

    response = client.get("/weather/testcity")

    assert response.status_code == 500
    assert "main.temp is not a finite number" in response.text
