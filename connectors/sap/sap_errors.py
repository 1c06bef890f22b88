"""SAP adapter exceptions.

Only failures that mean "SAP could not be asked" or "SAP's answer could not be
read" are exceptions. A well-formed response whose success flag is not set is
a business outcome and is returned as an empty result instead.
"""

import asyncio
from typing import Optional


class SapError(Exception):
    """Base exception for SAP adapter errors."""
    def __init__(self, message: str, service_name: Optional[str] = None):
        super().__init__(message)
        self.service_name = service_name


class SapTransportError(SapError):
    """Connection-level failure (DNS, refused, reset)."""
    pass


class SapTimeoutError(SapTransportError):
    """No response within the configured deadline."""
    def __init__(self, message: str, service_name: Optional[str] = None, timeout_seconds: float = 0.0):
        super().__init__(message, service_name)
        self.timeout_seconds = timeout_seconds


class SapHttpStatusError(SapError):
    """SAP answered with a non-2xx HTTP status.

    The body is kept for diagnostics and must not be forwarded to clients.
    """
    def __init__(
        self,
        message: str,
        status_code: int,
        response_body: str = "",
        service_name: Optional[str] = None,
    ):
        super().__init__(message, service_name)
        self.status_code = status_code
        self.response_body = response_body


class SapParseError(SapError):
    """Response body is not well-formed XML."""
    pass


class SapSoapFaultError(SapError):
    """Response is a well-formed SOAP fault."""
    def __init__(
        self,
        fault_string: str,
        fault_code: str = "",
        service_name: Optional[str] = None,
    ):
        super().__init__(f"SOAP Fault: {fault_string or fault_code}", service_name)
        self.fault_string = fault_string
        self.fault_code = fault_code


def error_kind(error: BaseException) -> str:
    """Short label for metrics: timeout, transport, http_status, parse, soap_fault.

    A cancelled call is "cancelled"; anything else that is not a SapError
    is "unexpected".
    """
    if isinstance(error, SapTimeoutError):
        return "timeout"
    if isinstance(error, SapTransportError):
        return "transport"
    if isinstance(error, SapHttpStatusError):
        return "http_status"
    if isinstance(error, SapParseError):
        return "parse"
    if isinstance(error, SapSoapFaultError):
        return "soap_fault"
    if isinstance(error, SapError):
        return "sap_error"
    if isinstance(error, asyncio.CancelledError):
        return "cancelled"
    return "unexpected"
