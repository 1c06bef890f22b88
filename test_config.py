"""
Settings Tests

Validates environment loading: required variables, defaults, parsing of
numbers, flags, CORS origins and response aliases.
"""

import pytest

from core.config import Settings, _parse_aliases


ENV_VARS = (
    "SAP_USER", "SAP_PASSWORD", "JWT_SECRET", "SAP_BASE_URL", "SAP_CLIENT",
    "SAP_TIMEOUT_SECONDS", "SAP_TRANSPORT", "SAP_WSDL_CACHE_TTL_SECONDS",
    "SAP_RESPONSE_ALIASES", "JWT_EXPIRY_HOURS", "CORS_ORIGINS",
    "ENABLE_TEST_ENDPOINTS", "LOG_LEVEL", "LOG_JSON", "HOST", "PORT",
)


@pytest.fixture
def env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SAP_USER", "portal")
    monkeypatch.setenv("SAP_PASSWORD", "secret")
    monkeypatch.setenv("JWT_SECRET", "jwt-secret")
    return monkeypatch


def test_defaults(env):
    settings = Settings.from_env()

    assert settings.sap.username == "portal"
    assert settings.sap.client == "100"
    assert settings.sap.timeout_seconds == 30
    assert settings.sap.transport == "http"
    assert settings.sap.response_aliases == {}
    assert settings.auth.jwt_secret == "jwt-secret"
    assert settings.auth.jwt_algorithm == "HS256"
    assert settings.auth.jwt_expiry_hours == 8
    assert settings.cors_origins == ["http://localhost:4200"]
    assert settings.enable_test_endpoints is False
    assert settings.port == 3000


def test_overrides(env):
    env.setenv("SAP_BASE_URL", "https://sap.example.com/sap/bc/srt/scs/sap")
    env.setenv("SAP_CLIENT", "300")
    env.setenv("SAP_TIMEOUT_SECONDS", "5.5")
    env.setenv("SAP_TRANSPORT", "WSDL")
    env.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    env.setenv("ENABLE_TEST_ENDPOINTS", "true")
    env.setenv("LOG_LEVEL", "debug")
    env.setenv("PORT", "8080")

    settings = Settings.from_env()

    assert settings.sap.service_url("ZRFC_X") == "https://sap.example.com/sap/bc/srt/scs/sap/ZRFC_X?sap-client=300"
    assert settings.sap.timeout_seconds == 5.5
    assert settings.sap.transport == "wsdl"
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.enable_test_endpoints is True
    assert settings.log_level == "DEBUG"
    assert settings.port == 8080


@pytest.mark.parametrize("missing", ["SAP_USER", "SAP_PASSWORD"])
def test_missing_sap_credentials(env, missing):
    env.delenv(missing)

    with pytest.raises(ValueError, match="SAP_USER and SAP_PASSWORD"):
        Settings.from_env()


def test_missing_jwt_secret(env):
    env.delenv("JWT_SECRET")

    with pytest.raises(ValueError, match="JWT_SECRET"):
        Settings.from_env()


def test_unknown_transport(env):
    env.setenv("SAP_TRANSPORT", "rfc")

    with pytest.raises(ValueError, match="SAP_TRANSPORT"):
        Settings.from_env()


def test_bad_number(env):
    env.setenv("SAP_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ValueError, match="SAP_TIMEOUT_SECONDS"):
        Settings.from_env()


def test_password_not_in_repr(env):
    settings = Settings.from_env()

    assert "secret" not in repr(settings.sap)
    assert "jwt-secret" not in repr(settings)


class TestResponseAliases:

    def test_empty(self):
        assert _parse_aliases(None) == {}
        assert _parse_aliases("  ") == {}

    def test_string_and_list_values(self):
        aliases = _parse_aliases('{"ZFM_A": "AResponse", "ZFM_B": ["B1", "B2"]}')

        assert aliases == {"ZFM_A": ["AResponse"], "ZFM_B": ["B1", "B2"]}

    @pytest.mark.parametrize("raw", ['["x"]', "{not json", '{"ZFM_A": 3}'])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            _parse_aliases(raw)

    def test_loaded_from_environment(self, env):
        env.setenv("SAP_RESPONSE_ALIASES", '{"ZFM_INVOICE_DETAILS_RP_863": ["InvoicesResponse"]}')

        settings = Settings.from_env()

        assert settings.sap.response_aliases == {"ZFM_INVOICE_DETAILS_RP_863": ["InvoicesResponse"]}
