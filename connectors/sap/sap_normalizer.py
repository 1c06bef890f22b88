"""Per-function decoders: SAP response node → portal records.

Each decoder receives the function module's response element (the output of
extract_function_response) and returns typed records. Decoders never raise:

- A failed success flag (EV_SUCCESS not "X") gives an empty list or None
- A row that is not a structure, or that fails validation, is skipped
- Anything unexpected is logged and converted to [] / None

Transport, HTTP, parse and SOAP-fault errors are raised before a decoder
runs and are not touched here.
"""

import base64
import binascii
import functools
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from pydantic import ValidationError

from connectors.sap.sap_fields import aging_bucket, is_success, to_int, to_str
from connectors.sap.sap_models import (
    AgingDetail,
    AgingSummary,
    CustomerProfile,
    Delivery,
    Inquiry,
    Invoice,
    LoginResult,
    Memo,
    MemoItem,
    OverallSale,
    RegistrationResult,
    SalesOrder,
)
from connectors.sap.sap_xml import coerce_repeating_group
from core.observability.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


def fail_safe(default_factory: Callable[[], Any]):
    """Decorator: log any decoder exception and return default_factory() instead."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(response: Any):
            try:
                return func(response)
            except Exception as e:
                logger.warning(
                    f"Failed to normalize SAP response in {func.__name__}: {e}",
                    extra_fields={"decoder": func.__name__, "error_type": type(e).__name__},
                )
                return default_factory()
        return wrapper
    return decorator


# =============================================================================
# Helpers
# =============================================================================

def succeeded(response: Any) -> bool:
    """True when the response node carries EV_SUCCESS = "X" (or true)."""
    return isinstance(response, dict) and is_success(response.get("EV_SUCCESS"))


def business_message(response: Any) -> Optional[str]:
    """SAP's own message text (EV_MESSAGE / MESSAGE), if any."""
    if not isinstance(response, dict):
        return None
    return to_str(response.get("EV_MESSAGE")) or to_str(response.get("MESSAGE")) or None


def _first(row: Dict[str, Any], *fields: str) -> str:
    for name in fields:
        value = to_str(row.get(name))
        if value:
            return value
    return ""


def table_rows(response: Any, table: str, aliases: Sequence[str] = ()) -> List[Dict[str, Any]]:
    """Rows of an ET_* table parameter, always as a list of dicts."""
    if not isinstance(response, dict):
        return []
    group = None
    for name in (table, *aliases):
        if name in response:
            group = response[name]
            break
    return [row for row in coerce_repeating_group(group) if isinstance(row, dict)]


def _build_all(rows: List[Dict[str, Any]], build: Callable[[Dict[str, Any]], T]) -> List[T]:
    records = []
    for index, row in enumerate(rows):
        try:
            records.append(build(row))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed SAP row {index}: {e.error_count()} validation error(s)",
                extra_fields={"row_index": index},
            )
    return records


# =============================================================================
# Authentication
# =============================================================================

@fail_safe(lambda: LoginResult(success=False, message="Error processing authentication response"))
def decode_login(response: Any) -> LoginResult:
    if not isinstance(response, dict):
        return LoginResult(
            success=False,
            message="Invalid response format from authentication service",
        )
    return LoginResult(
        success=is_success(response.get("EV_SUCCESS")) or is_success(response.get("SUCCESS")),
        user_id=_first(response, "EV_USER_ID", "EV_CUSTOMER_ID", "USER_ID", "CUSTOMER_ID") or None,
        role=_first(response, "EV_ROLE", "ROLE") or "User",
        message=business_message(response),
    )


@fail_safe(lambda: RegistrationResult(success=False, message="Error processing registration response"))
def decode_registration(response: Any) -> RegistrationResult:
    if not isinstance(response, dict):
        return RegistrationResult(
            success=False,
            message="Invalid response format from registration service",
        )
    return RegistrationResult(
        success=is_success(response.get("EV_SUCCESS")) or is_success(response.get("SUCCESS")),
        user_id=_first(response, "EV_USER_ID", "USER_ID") or None,
        message=business_message(response),
    )


@fail_safe(lambda: None)
def decode_profile(response: Any) -> Optional[CustomerProfile]:
    if not succeeded(response):
        return None
    customer = response.get("ES_CUSTPROF")
    if not isinstance(customer, dict):
        return None
    return CustomerProfile(
        customer_id=customer.get("KUNNR"),
        address_number=customer.get("ADRNR"),
        name=customer.get("NAME1"),
        email=customer.get("CUSTOMER_MAIL"),
        city=customer.get("CITY1"),
        country=customer.get("COUNTRY"),
    )


# =============================================================================
# Sales
# =============================================================================

def _inquiry(row: Dict[str, Any]) -> Inquiry:
    return Inquiry(
        inquiry_number=row.get("VBELN"),
        product_code=row.get("MATNR"),
        product_description=row.get("ARKTX"),
        amount=row.get("NETWR"),
        currency=row.get("WAERK"),
        unit=row.get("VRKME"),
        valid_from=row.get("ANGDT"),
        valid_to=row.get("BNDDT"),
        created_date=row.get("ERDAT"),
        created_by=row.get("ERNAM"),
        document_type=row.get("AUART"),
        item_number=row.get("POSNR"),
    )


@fail_safe(list)
def decode_inquiries(response: Any) -> List[Inquiry]:
    if not succeeded(response):
        return []
    return _build_all(table_rows(response, "ET_INQUIRIES"), _inquiry)


def _sales_order(row: Dict[str, Any]) -> SalesOrder:
    return SalesOrder(
        order_number=row.get("VBELN"),
        order_date=row.get("ERDAT"),
        created_by=row.get("ERNAM"),
        document_type=row.get("AUART"),
        product_code=row.get("MATNR"),
        product_description=row.get("ARKTX"),
        item_number=row.get("POSNR"),
        amount=row.get("NETWR"),
        currency=row.get("WAERK"),
    )


@fail_safe(list)
def decode_sales_orders(response: Any) -> List[SalesOrder]:
    if not succeeded(response):
        return []
    return _build_all(table_rows(response, "ET_SALESORDERS"), _sales_order)


def _delivery(row: Dict[str, Any]) -> Delivery:
    return Delivery(
        delivery_number=row.get("VBELN"),
        customer_number=row.get("KUNNR"),
        shipping_point=row.get("VSTEL"),
        created_by=row.get("ERNAM"),
        created_date=row.get("ERDAT"),
        item_number=row.get("POSNR"),
        product_code=row.get("MATNR"),
        product_description=row.get("ARKTX"),
        delivery_quantity=row.get("LFIMG"),
        unit=row.get("VRKME"),
    )


@fail_safe(list)
def decode_deliveries(response: Any) -> List[Delivery]:
    if not succeeded(response):
        return []
    return _build_all(table_rows(response, "ET_DELIVERIES"), _delivery)


def _overall_sale(row: Dict[str, Any]) -> OverallSale:
    return OverallSale(
        document_number=row.get("DOCUMENT_NUMBER"),
        record_type=row.get("RECORD_TYPE"),
        material_number=row.get("MATERIAL_NUMBER"),
        material_description=row.get("MATERIAL_DESCRIPTION"),
        net_value=row.get("NET_VALUE"),
        currency=row.get("CURRENCY"),
        creation_date=row.get("CREATION_DATE"),
        billing_date=row.get("BILLING_DATE"),
        total_orders_value=row.get("TOTAL_ORDERS_VALUE"),
        total_billed_value=row.get("TOTAL_BILLED_VALUE"),
    )


@fail_safe(list)
def decode_overall_sales(response: Any) -> List[OverallSale]:
    if not succeeded(response):
        return []
    rows = table_rows(response, "ET_OVERALL_SALES", aliases=("ET_OVERALLSALES",))
    return _build_all(rows, _overall_sale)


# =============================================================================
# Financial
# =============================================================================

def _invoice(row: Dict[str, Any]) -> Invoice:
    return Invoice(
        item_number=row.get("ITEM_NO"),
        document_number=row.get("DOCUMENT_NO"),
        billing_date=row.get("BILL_DATE"),
        customer_name=row.get("CUSTOMERNAME"),
        material_number=row.get("MAT_NO"),
        material_description=row.get("MAT_DES"),
        net_value=row.get("NETWR"),
        currency=row.get("CURRENCY"),
    )


@fail_safe(list)
def decode_invoices(response: Any) -> List[Invoice]:
    if not succeeded(response):
        return []
    return _build_all(table_rows(response, "ET_INVOICES"), _invoice)


def _memo_item(row: Dict[str, Any]) -> MemoItem:
    return MemoItem(
        item_number=row.get("ITEM_NUMBER"),
        material_number=row.get("MATERIAL_NUMBER"),
        material_description=row.get("MATERIAL_DESCRIPTION"),
        billed_quantity=row.get("BILLED_QUANTITY"),
        unit_of_measure=row.get("UNIT_OF_MEASURE"),
        net_value=row.get("NET_VALUE"),
    )


@fail_safe(list)
def decode_memos(response: Any) -> List[Memo]:
    """Memo headers (ET_CDMEMO_HEAD) with their items (ET_CDMEMO_ITEM) attached.

    Items belong to the header with the same DOCUMENT_NUMBER and keep the
    order SAP returned them in.
    """
    if not succeeded(response):
        return []

    items_by_document: Dict[str, List[MemoItem]] = {}
    for row in table_rows(response, "ET_CDMEMO_ITEM"):
        try:
            item = _memo_item(row)
        except ValidationError:
            logger.warning("Skipping malformed memo item row")
            continue
        items_by_document.setdefault(to_str(row.get("DOCUMENT_NUMBER")), []).append(item)

    def _memo(row: Dict[str, Any]) -> Memo:
        document_number = to_str(row.get("DOCUMENT_NUMBER"))
        return Memo(
            document_number=document_number,
            document_type=row.get("DOCUMENT_TYPE"),
            document_type_text=row.get("DOCUMENT_TYPE_TEXT"),
            reference=row.get("REFERENCE"),
            customer_number=row.get("CUSTOMER_NUMBER"),
            customer_name=row.get("CUSTOMER_NAME"),
            billing_date=row.get("BILLING_DATE"),
            creation_date=row.get("CREATION_DATE"),
            created_by=row.get("CREATED_BY"),
            currency=row.get("CURRENCY"),
            net_value=row.get("NET_VALUE"),
            tax_amount=row.get("TAX_AMOUNT"),
            sales_org=row.get("SALES_ORG"),
            items=items_by_document.get(document_number, []),
        )

    return _build_all(table_rows(response, "ET_CDMEMO_HEAD"), _memo)


def _aging_detail(row: Dict[str, Any]) -> AgingDetail:
    days_overdue = to_int(row.get("DAYS_OVERDUE"))
    return AgingDetail(
        invoice_number=row.get("INVOICE_NUMBER"),
        billing_date=row.get("BILLING_DATE"),
        due_date=row.get("DUE_DATE"),
        amount_due=row.get("AMOUNT_DUE"),
        currency=row.get("CURRENCY"),
        days_overdue=days_overdue,
        aging_bucket=aging_bucket(days_overdue),
    )


@fail_safe(list)
def decode_aging_detail(response: Any) -> List[AgingDetail]:
    if not succeeded(response):
        return []
    return _build_all(table_rows(response, "ET_AGING_DETAIL"), _aging_detail)


@fail_safe(lambda: None)
def decode_aging_summary(response: Any) -> Optional[AgingSummary]:
    """First ET_AGING_SUMMARY row; a successful call without rows is all zeros."""
    if not succeeded(response):
        return None
    rows = table_rows(response, "ET_AGING_SUMMARY")
    if not rows:
        return AgingSummary()
    row = rows[0]
    return AgingSummary(
        days_0_30=row.get("DAYS_0_30"),
        days_31_60=row.get("DAYS_31_60"),
        days_61_90=row.get("DAYS_61_90"),
        days_91_plus=row.get("DAYS_91_PLUS"),
        total_due=row.get("TOTAL_DUE"),
        currency=row.get("CURRENCY"),
    )


@fail_safe(lambda: None)
def decode_invoice_pdf(response: Any) -> Optional[bytes]:
    """EV_PDF_BASE64 decoded to raw PDF bytes."""
    if not succeeded(response):
        return None
    encoded = to_str(response.get("EV_PDF_BASE64")).strip()
    if not encoded:
        return None
    try:
        content = base64.b64decode(encoded)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Invoice PDF is not valid base64: {e}")
        return None
    return content or None
