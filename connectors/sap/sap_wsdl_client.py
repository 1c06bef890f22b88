"""WSDL-driven SAP transport (zeep).

Alternative to SapSoapClient for landscapes where the SOAP runtime only
accepts requests generated from the service WSDL. One zeep client per SOAP
service is built from {base}/{service}?sap-client={client}&wsdl and kept in a
WsdlClientCache for a limited time.

zeep is synchronous; calls run in a worker thread so the event loop never
blocks. Results are wrapped as {"Envelope": {"Body": {"<FN>Response": ...}}}
so the regular decoders in sap_normalizer apply unchanged.
"""

import asyncio
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

import requests
from requests.auth import HTTPBasicAuth
from zeep import Client, Settings
from zeep.exceptions import Fault, TransportError, XMLSyntaxError
from zeep.helpers import serialize_object
from zeep.transports import Transport

from connectors.sap.sap_client import SapConnectionConfig, SapTransport
from connectors.sap.sap_envelope import ServiceCall
from connectors.sap.sap_errors import (
    SapHttpStatusError,
    SapParseError,
    SapSoapFaultError,
    SapTimeoutError,
    SapTransportError,
    error_kind,
)
from core.observability.logging import (
    get_logger,
    log_sap_call_complete,
    log_sap_call_error,
    log_sap_call_start,
    with_correlation,
)
from core.observability.metrics import get_metrics

logger = get_logger(__name__)


class WsdlClientCache:
    """Time-boxed cache of zeep clients keyed by SOAP service name.

    Entries older than ttl_seconds are dropped on access and rebuilt by the
    caller's factory. Safe to use from worker threads.
    """

    def __init__(self, ttl_seconds: float = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, service_name: str) -> Optional[Any]:
        """Cached client, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(service_name)
            if entry is None:
                return None
            client, created_at = entry
            if self._clock() - created_at >= self.ttl_seconds:
                del self._entries[service_name]
                return None
            return client

    def put(self, service_name: str, client: Any) -> None:
        with self._lock:
            self._entries[service_name] = (client, self._clock())

    def get_or_create(self, service_name: str, factory: Callable[[str], Any]) -> Any:
        client = self.get(service_name)
        if client is None:
            client = factory(service_name)
            self.put(service_name, client)
        return client

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SapWsdlClient(SapTransport):
    """Invoke SAP function modules through their WSDL operations.

    Usage:
        client = SapWsdlClient(config)
        tree = await client.invoke(invoices_call("0000000042"))
    """

    def __init__(
        self,
        config: SapConnectionConfig,
        cache: Optional[WsdlClientCache] = None,
        client_factory: Optional[Callable[[str], Any]] = None,
    ):
        self.config = config
        self.cache = cache or WsdlClientCache(ttl_seconds=config.wsdl_cache_ttl_seconds)
        self._client_factory = client_factory or self._create_client

    def _create_client(self, service_name: str) -> Client:
        """Build a zeep client for one SOAP service."""
        wsdl_url = self.config.wsdl_url(service_name)
        logger.info(f"Creating WSDL client for {service_name}")

        session = requests.Session()
        session.auth = HTTPBasicAuth(self.config.username, self.config.password)
        transport = Transport(
            session=session,
            timeout=self.config.timeout_seconds,
            operation_timeout=self.config.timeout_seconds,
        )
        return Client(
            wsdl=wsdl_url,
            transport=transport,
            settings=Settings(strict=False, xml_huge_tree=True),
        )

    def _call_operation(self, call: ServiceCall) -> Dict[str, Any]:
        """Run the operation synchronously (worker thread)."""
        try:
            client = self.cache.get_or_create(call.service_name, self._client_factory)
            result = client.service[call.function_name](**call.parameters)
        except Fault as e:
            raise SapSoapFaultError(
                e.message or "",
                fault_code=str(e.code or ""),
                service_name=call.service_name,
            ) from e
        except TransportError as e:
            raise SapHttpStatusError(
                f"HTTP {e.status_code}: {e.message}",
                status_code=e.status_code,
                response_body=e.content.decode("utf-8", "replace") if isinstance(e.content, bytes) else str(e.content or ""),
                service_name=call.service_name,
            ) from e
        except XMLSyntaxError as e:
            raise SapParseError(f"Failed to parse SOAP response: {e}", service_name=call.service_name) from e
        except requests.exceptions.Timeout as e:
            raise SapTimeoutError(
                f"Request timeout after {self.config.timeout_seconds}s",
                timeout_seconds=self.config.timeout_seconds,
                service_name=call.service_name,
            ) from e
        except requests.exceptions.RequestException as e:
            raise SapTransportError(f"Connection to SAP failed: {e}", service_name=call.service_name) from e

        payload = serialize_object(result, dict)
        return {"Envelope": {"Body": {f"{call.function_name}Response": payload}}}

    async def invoke(self, call: ServiceCall) -> Dict[str, Any]:
        metrics = get_metrics()
        with with_correlation(sap_service=call.service_name, sap_function=call.function_name):
            log_sap_call_start(call.service_name, transport="wsdl")
            metrics.record_call_started(call.service_name)
            start = time.monotonic()
            try:
                tree = await asyncio.to_thread(self._call_operation, call)
            except (Exception, asyncio.CancelledError) as e:
                duration_ms = (time.monotonic() - start) * 1000
                metrics.record_call_failed(call.service_name, error_kind(e), duration_ms)
                log_sap_call_error(call.service_name, str(e), duration_ms=duration_ms)
                raise
            duration_ms = (time.monotonic() - start) * 1000
            metrics.record_call_completed(call.service_name, duration_ms)
            log_sap_call_complete(call.service_name, duration_ms=duration_ms, transport="wsdl")
            return tree

    async def close(self) -> None:
        self.cache.clear()
