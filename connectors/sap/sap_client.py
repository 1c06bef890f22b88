"""SAP SOAP HTTP Client.

Low-level transport for SAP's SOAP runtime. Posts one raw envelope per call
to {base_url}/{service}?sap-client={client} with Basic auth.

Failure mapping:
- Total timeout exceeded       → SapTimeoutError
- Connection/transport failure → SapTransportError
- Non-2xx HTTP status          → SapHttpStatusError (status + body kept)
- 2xx                          → raw body bytes, even when they hold a SOAP fault
- Body not well-formed XML     → SapParseError (invoke only)

There are no retries: a lookup that fails is reported, not repeated.
"""

import asyncio
import base64
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from connectors.sap.sap_envelope import SOAP_ACTION, ServiceCall, wrap_envelope
from connectors.sap.sap_errors import (
    SapHttpStatusError,
    SapTimeoutError,
    SapTransportError,
    error_kind,
)
from connectors.sap.sap_xml import parse_xml
from core.observability.logging import (
    get_logger,
    log_sap_call_complete,
    log_sap_call_error,
    log_sap_call_start,
    with_correlation,
)
from core.observability.metrics import get_metrics

logger = get_logger(__name__)


@dataclass
class SapConnectionConfig:
    """Connection settings for the SAP SOAP runtime."""
    base_url: str = "http://localhost:8000/sap/bc/srt/scs/sap"
    client: str = "100"
    username: str = ""
    password: str = field(default="", repr=False)
    timeout_seconds: float = 30
    transport: str = "http"
    wsdl_cache_ttl_seconds: int = 3600
    response_aliases: Dict[str, List[str]] = field(default_factory=dict)

    def service_url(self, service_name: str) -> str:
        """Endpoint URL for a SOAP service."""
        return f"{self.base_url.rstrip('/')}/{service_name}?sap-client={self.client}"

    def wsdl_url(self, service_name: str) -> str:
        """WSDL URL for a SOAP service."""
        return f"{self.service_url(service_name)}&wsdl"

    def authorization_header(self) -> str:
        """HTTP Basic authorization header value."""
        credentials = f"{self.username}:{self.password}".encode("utf-8")
        return "Basic " + base64.b64encode(credentials).decode("ascii")


class SapTransport(ABC):
    """A way of invoking SAP function modules.

    invoke() returns the parsed response tree ({"Envelope": {"Body": ...}});
    decoding into records is the caller's job.
    """

    @abstractmethod
    async def invoke(self, call: ServiceCall) -> Dict[str, Any]:
        ...

    async def close(self) -> None:
        return None


class SapSoapClient(SapTransport):
    """HTTP client posting raw SOAP envelopes.

    Usage:
        client = SapSoapClient(config)
        await client.connect()
        tree = await client.invoke(sales_orders_call("0000000042"))
        await client.close()

    connect() is optional; the session is created on first use.
    """

    def __init__(self, config: SapConnectionConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def connect(self) -> None:
        """Create the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "text/xml; charset=utf-8",
            "SOAPAction": SOAP_ACTION,
            "Authorization": self.config.authorization_header(),
        }

    async def _post(self, service_name: str, envelope: str) -> bytes:
        await self.connect()
        timeout_seconds = self.config.timeout_seconds
        try:
            async with self._session.post(
                self.config.service_url(service_name),
                data=envelope.encode("utf-8"),
                headers=self._get_headers(),
                timeout=aiohttp.ClientTimeout(total=timeout_seconds),
            ) as response:
                body = await response.read()
                if not 200 <= response.status < 300:
                    raise SapHttpStatusError(
                        f"HTTP {response.status}: {response.reason or 'error'}",
                        status_code=response.status,
                        response_body=body.decode("utf-8", errors="replace"),
                        service_name=service_name,
                    )
                return body
        # ServerTimeoutError is both a TimeoutError and a ClientError
        except asyncio.TimeoutError as e:
            raise SapTimeoutError(
                f"Request timeout after {timeout_seconds}s",
                timeout_seconds=timeout_seconds,
                service_name=service_name,
            ) from e
        except aiohttp.ClientError as e:
            raise SapTransportError(
                f"Connection to SAP failed: {e}",
                service_name=service_name,
            ) from e

    async def _tracked(self, service_name: str, envelope: str, decode: Callable[[bytes], Any]) -> Any:
        """Run one call under metrics and logging; every exit is recorded once."""
        metrics = get_metrics()
        log_sap_call_start(service_name, url=self.config.service_url(service_name))
        metrics.record_call_started(service_name)
        start = time.monotonic()

        try:
            body = await self._post(service_name, envelope)
            result = decode(body)
        except (Exception, asyncio.CancelledError) as e:
            duration_ms = (time.monotonic() - start) * 1000
            metrics.record_call_failed(service_name, error_kind(e), duration_ms)
            log_sap_call_error(service_name, str(e), duration_ms=duration_ms)
            raise

        duration_ms = (time.monotonic() - start) * 1000
        metrics.record_call_completed(service_name, duration_ms)
        log_sap_call_complete(service_name, duration_ms=duration_ms, response_bytes=len(body))
        return result

    async def send(self, service_name: str, envelope: str) -> bytes:
        """POST an envelope to a SOAP service and return the raw response body.

        Args:
            service_name: SOAP service path segment
            envelope: Complete SOAP envelope

        Returns:
            Undecoded body of a 2xx answer

        Raises:
            SapTimeoutError: No complete answer within the configured timeout
            SapTransportError: Connection could not be made or was dropped
            SapHttpStatusError: SAP answered with a non-2xx status
        """
        return await self._tracked(service_name, envelope, lambda body: body)

    async def invoke(self, call: ServiceCall) -> Dict[str, Any]:
        """Wrap, send and parse one function module call.

        The body goes to the XML parser as bytes so its declared encoding
        applies; a body that does not decode is a SapParseError.
        """
        with with_correlation(sap_service=call.service_name, sap_function=call.function_name):
            logger.debug(f"Invoking {call.function_name}", extra_fields={"parameters": sorted(call.parameters)})
            return await self._tracked(call.service_name, wrap_envelope(call.function_xml), parse_xml)
