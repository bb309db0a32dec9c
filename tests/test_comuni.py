import pytest
import requests

from pgscraper.core.config import Settings
from pgscraper.vendors import comuni

SETTINGS = Settings(locality_api_url="https://comuni.example/comuni", request_timeout=7)


class DummyResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")


class DummySession:
    def __init__(self):
        self.calls = []
        self.response = DummyResponse()
        self.error = None

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.error:
            raise self.error
        return self.response


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(comuni, "_SESSION", session)
    return session


def test_place_localities_success(patch_session):
    patch_session.response = DummyResponse(text="nome,popolazione\nPadova,214000\nAbano Terme,19000\n")

    localities = comuni.place_localities("padova", SETTINGS)

    assert localities == [comuni.Locality("Padova", 214000), comuni.Locality("Abano Terme", 19000)]
    url, params, timeout = patch_session.calls[0]
    assert url == "https://comuni.example/comuni/provincia/padova"
    assert params == {"format": "csv"}
    assert timeout == 7


def test_region_localities_uses_region_endpoint(patch_session):
    patch_session.response = DummyResponse(text="nome\nAosta\n")

    localities = comuni.region_localities("valle-d-aosta", SETTINGS)

    assert localities == [comuni.Locality("Aosta", 0)]
    assert patch_session.calls[0][0].endswith("/regione/valle-d-aosta")


def test_empty_lookup_is_not_an_error(patch_session):
    patch_session.response = DummyResponse(text="")
    assert comuni.place_localities("vigonza", SETTINGS) == []

    patch_session.response = DummyResponse(status_code=404)
    assert comuni.place_localities("vigonza", SETTINGS) == []


def test_transport_failure_raises(patch_session):
    patch_session.error = requests.ConnectionError("dns failure")

    with pytest.raises(comuni.LocalityLookupError):
        comuni.region_localities("veneto", SETTINGS)


def test_server_error_raises(patch_session):
    patch_session.response = DummyResponse(status_code=500)

    with pytest.raises(comuni.LocalityLookupError):
        comuni.region_localities("veneto", SETTINGS)


def test_parse_localities_rejects_malformed_payloads():
    with pytest.raises(comuni.LocalityLookupError):
        comuni.parse_localities("city,people\nPadova,1\n")

    with pytest.raises(comuni.LocalityLookupError):
        comuni.parse_localities("nome,popolazione\nPadova,many\n")


def test_parse_localities_skips_blank_names():
    localities = comuni.parse_localities("Nome,Popolazione\n,10\nEste,16000\n")
    assert localities == [comuni.Locality("Este", 16000)]
