"""SOAP envelope builder for SAP RFC function modules.

Builds the raw XML request bodies sent to SAP's SOAP runtime. Every call
carries exactly one function module element; the envelope around it is fixed.

Usage:
    call = sales_orders_call("0000000042")
    envelope = wrap_envelope(call.function_xml)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from connectors.sap.sap_fields import strip_leading_zeros
from connectors.sap.sap_functions import (
    AGING_DETAIL,
    AGING_SUMMARY,
    DELIVERIES,
    INQUIRIES,
    INVOICE_PDF,
    INVOICES,
    LOGIN,
    MEMOS,
    OVERALL_SALES,
    PROFILE,
    REGISTER,
    SALES_ORDERS,
    SapFunction,
)


SOAP_ENV_NAMESPACE = "http://schemas.xmlsoap.org/soap/envelope/"
RFC_FUNCTIONS_NAMESPACE = "urn:sap-com:document:sap:rfc:functions"
SOAP_ACTION = RFC_FUNCTIONS_NAMESPACE

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


@dataclass(frozen=True)
class ServiceCall:
    """One SAP function module invocation.

    Attributes:
        function: Registry entry (service and function module names)
        parameters: Import parameters, IV_* name → rendered value
        function_xml: The <urn:FUNCTION> element placed in the SOAP Body
    """
    function: SapFunction
    parameters: Dict[str, str] = field(default_factory=dict)
    function_xml: str = ""

    @property
    def service_name(self) -> str:
        return self.function.service_name

    @property
    def function_name(self) -> str:
        return self.function.function_name


def escape_xml(value: Any) -> str:
    """Escape the five XML special characters. None renders as empty text."""
    if value is None:
        return ""
    text = str(value)
    # "&" first so the entities below are not escaped twice
    for char, entity in _XML_ESCAPES:
        text = text.replace(char, entity)
    return text


def build_function_call(function_name: str, fields: Mapping[str, Any]) -> str:
    """Render a function module element with one child per import parameter.

    Args:
        function_name: ABAP function module name (body element)
        fields: IV_* parameter name → value, rendered in mapping order

    Returns:
        XML fragment like <urn:FN><IV_X>value</IV_X></urn:FN>
    """
    lines = [f"<urn:{function_name}>"]
    for name, value in fields.items():
        lines.append(f"    <{name}>{escape_xml(value)}</{name}>")
    lines.append(f"</urn:{function_name}>")
    return "\n".join(lines)


def wrap_envelope(function_xml: str) -> str:
    """Wrap a function call fragment in the fixed SOAP 1.1 envelope."""
    return (
        f'<soapenv:Envelope xmlns:soapenv="{SOAP_ENV_NAMESPACE}" xmlns:urn="{RFC_FUNCTIONS_NAMESPACE}">\n'
        f"    <soapenv:Header/>\n"
        f"    <soapenv:Body>\n"
        f"        {function_xml}\n"
        f"    </soapenv:Body>\n"
        f"</soapenv:Envelope>"
    )


def _call(function: SapFunction, fields: Mapping[str, Any]) -> ServiceCall:
    parameters = {name: "" if value is None else str(value) for name, value in fields.items()}
    return ServiceCall(
        function=function,
        parameters=parameters,
        function_xml=build_function_call(function.function_name, parameters),
    )


# =============================================================================
# Per-action builders
# =============================================================================
# Field order follows the function module's import parameter list.

def login_call(username: str, password: str) -> ServiceCall:
    return _call(LOGIN, {
        "IV_PASSWORD": password,
        "IV_USERNAME": username,
    })


def registration_call(
    username: str,
    password: str,
    email: str,
    name: str,
    customer_number: str = "",
) -> ServiceCall:
    return _call(REGISTER, {
        "IV_CUSTOMER_MAIL": email,
        "IV_CUSTOMER_NAME": name,
        "IV_CUSTOMER_NUMBER": customer_number,
        "IV_PASSWORD": password,
        "IV_USERNAME": username,
    })


def profile_call(user_id: str) -> ServiceCall:
    """Profile lookup expects the customer number without padding ("2", not "0000000002")."""
    return _call(PROFILE, {
        "IV_CUSTOMER_ID": strip_leading_zeros(user_id) or "0",
    })


def inquiries_call(user_id: str) -> ServiceCall:
    return _call(INQUIRIES, {"IV_USER_ID": user_id})


def sales_orders_call(user_id: str) -> ServiceCall:
    return _call(SALES_ORDERS, {"IV_USER_ID": user_id})


def deliveries_call(user_id: str) -> ServiceCall:
    return _call(DELIVERIES, {"IV_USER_ID": user_id})


def invoices_call(user_id: str) -> ServiceCall:
    return _call(INVOICES, {"IV_USER_ID": user_id})


def memos_call(user_id: str, from_date: str, to_date: str) -> ServiceCall:
    """Credit/debit memos in a date range (YYYY-MM-DD)."""
    return _call(MEMOS, {
        "IV_FROM_DATE": from_date,
        "IV_TO_DATE": to_date,
        "IV_USER_ID": user_id,
    })


def aging_detail_call(user_id: str) -> ServiceCall:
    return _call(AGING_DETAIL, {"IV_USER_ID": user_id})


def aging_summary_call(user_id: str) -> ServiceCall:
    return _call(AGING_SUMMARY, {"IV_USER_ID": user_id})


def invoice_pdf_call(invoice_number: str) -> ServiceCall:
    return _call(INVOICE_PDF, {"IV_INVOICE_NUMBER": invoice_number})


def overall_sales_call(user_id: str) -> ServiceCall:
    return _call(OVERALL_SALES, {"IV_USER_ID": user_id})
