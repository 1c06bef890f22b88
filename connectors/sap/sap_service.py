"""SAP portal service.

One method per portal action. Each method builds the function module call,
invokes it through the configured transport, rejects SOAP faults, finds the
function's response element and hands it to the matching decoder.

Transport, HTTP, parse and SOAP-fault errors propagate as SapError; a SAP
"no" (success flag not set) comes back as an empty result.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, Iterable, List, Mapping, Optional

from connectors.sap import sap_envelope as envelopes
from connectors.sap import sap_normalizer as normalizer
from connectors.sap.sap_client import SapConnectionConfig, SapSoapClient, SapTransport
from connectors.sap.sap_envelope import ServiceCall
from connectors.sap.sap_errors import SapSoapFaultError
from connectors.sap.sap_models import (
    AgingDetail,
    AgingSummary,
    CustomerProfile,
    Delivery,
    Inquiry,
    Invoice,
    LoginResult,
    Memo,
    OverallSale,
    RegistrationResult,
    SalesOrder,
)
from connectors.sap.sap_xml import extract_function_response, find_soap_fault
from core.observability.logging import get_logger

logger = get_logger(__name__)


# Sections of the dashboard summary, in display order
DASHBOARD_SECTIONS = ("inquiries", "sales_orders", "deliveries", "invoices", "overall_sales")


@dataclass(frozen=True)
class SectionResult:
    """Outcome of one sub-call of an aggregate request.

    available is False when the sub-call failed; records is then empty and
    error holds a short, client-safe description.
    """
    name: str
    available: bool = True
    records: List[Any] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.records)


class SapService:
    """Portal operations on top of a SapTransport.

    Usage:
        service = SapService.from_config(config)
        orders = await service.get_sales_orders("0000000042")
        await service.close()
    """

    def __init__(
        self,
        transport: SapTransport,
        response_aliases: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        self.transport = transport
        self.response_aliases = dict(response_aliases or {})

    @classmethod
    def from_config(cls, config: SapConnectionConfig) -> "SapService":
        """Build the service with the transport named in the config."""
        if config.transport == "wsdl":
            # zeep is only needed for the WSDL path
            from connectors.sap.sap_wsdl_client import SapWsdlClient
            transport: SapTransport = SapWsdlClient(config)
        else:
            transport = SapSoapClient(config)
        return cls(transport, config.response_aliases)

    async def close(self) -> None:
        await self.transport.close()

    async def _invoke(self, call: ServiceCall) -> Any:
        """Invoke a call and return its function response node (or None).

        Raises:
            SapSoapFaultError: The response is a SOAP fault
            SapError: Transport, HTTP or parse failure
        """
        tree = await self.transport.invoke(call)

        fault = find_soap_fault(tree)
        if fault is not None:
            raise SapSoapFaultError(
                fault["faultstring"],
                fault_code=fault["faultcode"],
                service_name=call.service_name,
            )

        response = extract_function_response(tree, call.function.response_names(self.response_aliases))
        if response is None:
            logger.warning(
                f"No {call.function_name} response element in SAP reply",
                extra_fields={"sap_service": call.service_name},
            )
        return response

    # =========================================================================
    # Authentication / customer
    # =========================================================================

    async def validate_login(self, username: str, password: str) -> LoginResult:
        response = await self._invoke(envelopes.login_call(username, password))
        return normalizer.decode_login(response)

    async def register_customer(
        self,
        username: str,
        password: str,
        email: str,
        name: str,
        customer_number: str = "",
    ) -> RegistrationResult:
        call = envelopes.registration_call(username, password, email, name, customer_number)
        return normalizer.decode_registration(await self._invoke(call))

    async def get_profile(self, user_id: str) -> Optional[CustomerProfile]:
        return normalizer.decode_profile(await self._invoke(envelopes.profile_call(user_id)))

    # =========================================================================
    # Sales
    # =========================================================================

    async def get_inquiries(self, user_id: str) -> List[Inquiry]:
        return normalizer.decode_inquiries(await self._invoke(envelopes.inquiries_call(user_id)))

    async def get_sales_orders(self, user_id: str) -> List[SalesOrder]:
        return normalizer.decode_sales_orders(await self._invoke(envelopes.sales_orders_call(user_id)))

    async def get_deliveries(self, user_id: str) -> List[Delivery]:
        return normalizer.decode_deliveries(await self._invoke(envelopes.deliveries_call(user_id)))

    async def get_overall_sales(self, user_id: str) -> List[OverallSale]:
        return normalizer.decode_overall_sales(await self._invoke(envelopes.overall_sales_call(user_id)))

    # =========================================================================
    # Financial
    # =========================================================================

    async def get_invoices(self, user_id: str) -> List[Invoice]:
        return normalizer.decode_invoices(await self._invoke(envelopes.invoices_call(user_id)))

    async def get_memos(self, user_id: str, from_date: str, to_date: str) -> List[Memo]:
        call = envelopes.memos_call(user_id, from_date, to_date)
        return normalizer.decode_memos(await self._invoke(call))

    async def get_aging_detail(self, user_id: str) -> List[AgingDetail]:
        return normalizer.decode_aging_detail(await self._invoke(envelopes.aging_detail_call(user_id)))

    async def get_aging_summary(self, user_id: str) -> Optional[AgingSummary]:
        return normalizer.decode_aging_summary(await self._invoke(envelopes.aging_summary_call(user_id)))

    async def get_invoice_pdf(self, invoice_number: str) -> Optional[bytes]:
        return normalizer.decode_invoice_pdf(await self._invoke(envelopes.invoice_pdf_call(invoice_number)))

    # =========================================================================
    # Aggregates
    # =========================================================================

    async def _guarded(self, name: str, pending: Awaitable[List[Any]]) -> SectionResult:
        try:
            records = await pending
        except Exception as e:
            logger.warning(
                f"Dashboard section '{name}' unavailable: {e}",
                extra_fields={"section": name, "error_type": type(e).__name__},
            )
            return SectionResult(name=name, available=False, error="Unavailable")
        return SectionResult(name=name, records=list(records))

    async def get_dashboard_summary(self, user_id: str) -> Dict[str, SectionResult]:
        """Fetch all dashboard sections concurrently.

        A failing section never fails the summary; it is reported with
        available=False.
        """
        fetchers = {
            "inquiries": self.get_inquiries,
            "sales_orders": self.get_sales_orders,
            "deliveries": self.get_deliveries,
            "invoices": self.get_invoices,
            "overall_sales": self.get_overall_sales,
        }
        results = await asyncio.gather(
            *(self._guarded(name, fetchers[name](user_id)) for name in DASHBOARD_SECTIONS)
        )
        return {result.name: result for result in results}
