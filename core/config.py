"""Application settings.

Read from environment variables; a .env file next to the project root is
loaded first if it exists.

Required:
- SAP_USER / SAP_PASSWORD: Basic auth for the SAP SOAP runtime
- JWT_SECRET: HS256 signing key for portal tokens

Optional (defaults):
- SAP_BASE_URL (http://localhost:8000/sap/bc/srt/scs/sap), SAP_CLIENT (100)
- SAP_TIMEOUT_SECONDS (30), SAP_TRANSPORT (http | wsdl)
- SAP_WSDL_CACHE_TTL_SECONDS (3600)
- SAP_RESPONSE_ALIASES: JSON object, function module → extra response element names
- JWT_EXPIRY_HOURS (8)
- CORS_ORIGINS (http://localhost:4200), comma separated
- ENABLE_TEST_ENDPOINTS (false)
- LOG_LEVEL (INFO), LOG_JSON (false)
- HOST (0.0.0.0), PORT (3000)
"""

import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

# Load .env file if it exists
from dotenv import load_dotenv
env_path = Path(__file__).resolve().parents[1] / ".env"
if env_path.exists():
    load_dotenv(env_path)

from connectors.sap.sap_client import SapConnectionConfig


SAP_TRANSPORTS = ("http", "wsdl")

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_number(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{value}'") from None


def _parse_aliases(raw: Optional[str]) -> Dict[str, List[str]]:
    if not raw or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"SAP_RESPONSE_ALIASES is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("SAP_RESPONSE_ALIASES must be a JSON object")

    aliases: Dict[str, List[str]] = {}
    for function_name, names in data.items():
        if isinstance(names, str):
            names = [names]
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ValueError(f"SAP_RESPONSE_ALIASES['{function_name}'] must be a list of strings")
        aliases[function_name] = names
    return aliases


@dataclass
class AuthSettings:
    """Portal token settings."""
    jwt_secret: str = field(default="", repr=False)
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: float = 8


@dataclass
class Settings:
    """All gateway settings."""
    sap: SapConnectionConfig
    auth: AuthSettings
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:4200"])
    enable_test_endpoints: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the environment.

        Raises:
            ValueError: If a required variable is missing or a value is invalid
        """
        username = os.getenv("SAP_USER")
        password = os.getenv("SAP_PASSWORD")
        if not username or not password:
            raise ValueError("SAP_USER and SAP_PASSWORD must be configured")

        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            raise ValueError("JWT_SECRET must be configured")

        transport = os.getenv("SAP_TRANSPORT", "http").strip().lower()
        if transport not in SAP_TRANSPORTS:
            raise ValueError(f"SAP_TRANSPORT must be one of {', '.join(SAP_TRANSPORTS)}, got '{transport}'")

        sap = SapConnectionConfig(
            base_url=os.getenv("SAP_BASE_URL", "http://localhost:8000/sap/bc/srt/scs/sap"),
            client=os.getenv("SAP_CLIENT", "100"),
            username=username,
            password=password,
            timeout_seconds=_env_number("SAP_TIMEOUT_SECONDS", 30),
            transport=transport,
            wsdl_cache_ttl_seconds=int(_env_number("SAP_WSDL_CACHE_TTL_SECONDS", 3600)),
            response_aliases=_parse_aliases(os.getenv("SAP_RESPONSE_ALIASES")),
        )
        auth = AuthSettings(
            jwt_secret=jwt_secret,
            jwt_expiry_hours=_env_number("JWT_EXPIRY_HOURS", 8),
        )
        origins = os.getenv("CORS_ORIGINS", "http://localhost:4200")

        return cls(
            sap=sap,
            auth=auth,
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            enable_test_endpoints=_env_bool("ENABLE_TEST_ENDPOINTS"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_json=_env_bool("LOG_JSON"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(_env_number("PORT", 3000)),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return Settings.from_env()
