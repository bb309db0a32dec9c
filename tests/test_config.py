import pytest

from pgscraper.core import config


def setup_function(function):
    config.get_settings.cache_clear()


def teardown_function(function):
    config.get_settings.cache_clear()


def test_get_settings_reads_env(monkeypatch):
    monkeypatch.setenv("PG_BASE_URL", "https://listings.example/")
    monkeypatch.setenv("PG_PAGE_LIMIT", "5")
    monkeypatch.setenv("PG_REQUESTS_BATCH", "10")
    monkeypatch.delenv("PG_CATEGORIES_URL", raising=False)

    settings = config.get_settings()

    assert settings.base_url == "https://listings.example"
    assert settings.categories_url == "https://listings.example/categorie.htm"
    assert settings.page_limit == 5
    assert settings.requests_batch == 10


def test_get_settings_defaults(monkeypatch):
    for name in ("PG_BASE_URL", "PG_PAGE_LIMIT", "PG_REQUESTS_BATCH", "PG_REQUEST_TIMEOUT", "PG_LOCALITY_API_URL"):
        monkeypatch.delenv(name, raising=False)

    settings = config.get_settings()

    assert settings.base_url == "https://www.paginegialle.it"
    assert settings.page_limit == 20
    assert settings.requests_batch == 50


@pytest.mark.parametrize("value", ["abc", "0", "-3"])
def test_get_settings_rejects_bad_numbers(monkeypatch, value):
    monkeypatch.setenv("PG_PAGE_LIMIT", value)

    with pytest.raises(config.ConfigError):
        config.get_settings()


def test_get_settings_warns_on_large_batch(monkeypatch, caplog):
    monkeypatch.setenv("PG_REQUESTS_BATCH", "500")

    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    assert settings.requests_batch == 500
    assert "PG_REQUESTS_BATCH=500 is high" in " ".join(caplog.messages)
