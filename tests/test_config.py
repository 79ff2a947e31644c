from restclient_sdk.config import IdentitySettings
from restclient_sdk.config import RestClientSettings


def test_rest_client_settings_env(monkeypatch):
    # Set environment variables to test values
    monkeypatch.setenv("RESTCLIENT_BASE_URL", "https://test-api.example.com")
    monkeypatch.setenv("RESTCLIENT_TIMEOUT", "15")
    monkeypatch.setenv("RESTCLIENT_TRANSPORT", "requests")

    settings = RestClientSettings()
    assert settings.base_url == "https://test-api.example.com"
    assert settings.timeout == 15
    assert settings.transport == "requests"


def test_rest_client_settings_defaults(monkeypatch):
    for name in ("RESTCLIENT_BASE_URL", "RESTCLIENT_TIMEOUT", "RESTCLIENT_TRANSPORT"):
        monkeypatch.delenv(name, raising=False)

    settings = RestClientSettings(_env_file=None)
    assert settings.base_url is None
    assert settings.timeout == 60.0
    assert settings.effective_timeout == 60.0
    assert RestClientSettings(_env_file=None, timeout=0).effective_timeout == 60.0


def test_identity_settings_env(monkeypatch):
    monkeypatch.setenv("RESTCLIENT_IDENTITY_USERNAME", "me")
    monkeypatch.setenv("RESTCLIENT_IDENTITY_API_KEY", "secret")

    settings = IdentitySettings()
    assert settings.identity_url == "https://identity.api.rackspacecloud.com"
    assert settings.username == "me"
    assert settings.api_key == "secret"
    assert settings.password == ""
