"""SAP function module registry.

Each logical portal action maps to one SOAP service (the ICF endpoint name)
and one RFC function module (the body element name). These names are the
contract with the SAP side; renaming one on either side is a breaking change.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class SapFunction:
    """A SAP function module reachable through a SOAP service.

    Attributes:
        key: Logical action name used by the gateway
        service_name: SOAP service path segment (e.g. "ZRFC_SALEORDERS_863")
        function_name: RFC function module / body element (e.g. "ZFM_SALEORDERS_RP_863")
        extra_aliases: Response element names observed besides the generated ones
    """
    key: str
    service_name: str
    function_name: str
    extra_aliases: Tuple[str, ...] = ()

    def response_names(self, overrides: Optional[Mapping[str, Iterable[str]]] = None) -> List[str]:
        """Candidate names of the response element inside the SOAP Body.

        Generated names come first, then registry aliases, then any aliases
        configured for this function module.
        """
        names = [
            f"{self.function_name}Response",
            f"{self.function_name}.Response",
            "response",
            *self.extra_aliases,
        ]
        if overrides:
            for alias in overrides.get(self.function_name, ()):
                if alias not in names:
                    names.append(alias)
        return names


LOGIN = SapFunction("login", "ZRFC_LOGIN_VALIDATE_863", "ZFM_LOGIN_VALIDATE_RP_863")
REGISTER = SapFunction("register", "ZRFC_CUSTREG_863", "ZFM_CUSTOMER_REGISTER_RP_863")
PROFILE = SapFunction(
    "profile",
    "ZRFC_CUSTOMER_PROFILE_863",
    "ZFM_CUSTOMER_PROFILE_RS_863",
    extra_aliases=("ZRFC_CUSTOMER_PROFILE_863Response",),
)
INQUIRIES = SapFunction("inquiries", "ZRFC_CUST_INQUIRY_863", "ZFM_CUST_INQUIRY_RP_863")
SALES_ORDERS = SapFunction("sales_orders", "ZRFC_SALEORDERS_863", "ZFM_SALEORDERS_RP_863")
DELIVERIES = SapFunction("deliveries", "ZRFC_DELIVERY_LIST_863", "ZFM_DELIVERY_LIST_RP_863")
INVOICES = SapFunction("invoices", "ZRFC_INVOICE_DETAILS_863", "ZFM_INVOICE_DETAILS_RP_863")
MEMOS = SapFunction("memos", "ZRFC_CDMEMO_863", "ZFM_CDMEMO_RP_863")
AGING_DETAIL = SapFunction("aging_detail", "ZRFC_AGING_DETAIL_863", "ZFM_AGING_DETAIL_RP_863")
AGING_SUMMARY = SapFunction("aging_summary", "ZRFC_AGING_SUMMARY_863", "ZFM_AGING_SUMMARY_RP_863")
INVOICE_PDF = SapFunction("invoice_pdf", "ZRFC_INVOICE_PDF_863", "ZFM_INVOICE_PDF_RP_863")
OVERALL_SALES = SapFunction("overall_sales", "ZRFC_OVERALLSALES_863", "ZFM_OVERALLSALES_RP_863")


SAP_FUNCTIONS: Dict[str, SapFunction] = {
    fn.key: fn
    for fn in (
        LOGIN,
        REGISTER,
        PROFILE,
        INQUIRIES,
        SALES_ORDERS,
        DELIVERIES,
        INVOICES,
        MEMOS,
        AGING_DETAIL,
        AGING_SUMMARY,
        INVOICE_PDF,
        OVERALL_SALES,
    )
}


def get_function(key: str) -> SapFunction:
    """Look up a registered function module by its logical key."""
    try:
        return SAP_FUNCTIONS[key]
    except KeyError:
        raise ValueError(f"Unknown SAP function '{key}'") from None
