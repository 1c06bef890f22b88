"""SAP connector.

SOAP adapter for the customer portal:
- sap_envelope: request envelopes per function module
- sap_client / sap_wsdl_client: transports (raw HTTP or WSDL via zeep)
- sap_xml / sap_normalizer: response tree and per-function decoders
- sap_service: portal operations on top of a transport
"""

from connectors.sap.sap_client import SapConnectionConfig, SapSoapClient, SapTransport
from connectors.sap.sap_errors import (
    SapError,
    SapHttpStatusError,
    SapParseError,
    SapSoapFaultError,
    SapTimeoutError,
    SapTransportError,
)
from connectors.sap.sap_service import SapService, SectionResult

__all__ = [
    "SapConnectionConfig",
    "SapSoapClient",
    "SapTransport",
    "SapService",
    "SectionResult",
    "SapError",
    "SapHttpStatusError",
    "SapParseError",
    "SapSoapFaultError",
    "SapTimeoutError",
    "SapTransportError",
]
