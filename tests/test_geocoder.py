import pytest
import requests

from school_directory_api.app.core.config import settings
from school_directory_api.app.core.exceptions import GeocodingError
from school_directory_api.app.core.geocoder import Geocoder, distance_miles, get_geocoder


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        if self.error:
            raise self.error
        return self.response


NOMINATIM_ITEM = {
    "lat": "42.3505",
    "lon": "-71.1054",
    "display_name": "233, Bay State Road, Boston, Massachusetts, 02215, United States",
    "address": {
        "house_number": "233",
        "road": "Bay State Road",
        "city": "Boston",
        "state": "Massachusetts",
        "postcode": "02215",
        "country_code": "us",
    },
}


def test_geocode_parses_first_match():
    session = FakeSession(FakeResponse([NOMINATIM_ITEM]))
    geocoder = Geocoder("https://geo.example.com/", api_key="k", timeout=3, session=session)

    location = geocoder.geocode("233 Bay State Rd Boston MA")

    assert location.latitude == 42.3505
    assert location.longitude == -71.1054
    assert location.street == "233 Bay State Road"
    assert location.city == "Boston"
    assert location.zipcode == "02215"
    assert location.country == "US"
    url, params, timeout = session.requests[0]
    assert url == "https://geo.example.com/search"
    assert params["q"] == "233 Bay State Rd Boston MA"
    assert params["key"] == "k"
    assert timeout == 3
    assert session.headers["User-Agent"] == "school-directory-api"


def test_town_is_used_when_city_is_missing():
    item = {"lat": "1", "lon": "2", "address": {"town": "Smallville"}}
    location = Geocoder("https://geo.example.com", session=FakeSession(FakeResponse([item]))).geocode("x")
    assert location.city == "Smallville"
    assert location.street is None
    assert location.country is None


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(FakeResponse([])),
        FakeSession(FakeResponse({"error": "down"}, status=503)),
        FakeSession(error=requests.ConnectionError("refused")),
        FakeSession(FakeResponse({"error": "Unable to geocode"})),
        FakeSession(FakeResponse([{"display_name": "x"}])),
        FakeSession(FakeResponse([{"lat": "abc", "lon": "1"}])),
        FakeSession(FakeResponse(["not an object"])),
    ],
)
def test_geocode_failures_raise(session):
    with pytest.raises(GeocodingError):
        Geocoder("https://geo.example.com", session=session).geocode("nowhere")


def test_get_geocoder_respects_provider(monkeypatch):
    assert get_geocoder() is None
    monkeypatch.setattr(settings, "geocoder_provider", "nominatim")
    assert isinstance(get_geocoder(), Geocoder)


def test_distance_miles():
    assert distance_miles(42.3601, -71.0589, 42.3601, -71.0589) == 0
    # Boston to New York is roughly 190 miles.
    assert 185 < distance_miles(42.3601, -71.0589, 40.7128, -74.0060) < 195
