"""Normalized business records served to the customer portal.

These models are the stable JSON contract of the gateway. They are built
from SAP responses by connectors/sap/sap_normalizer.py and never carry
SAP field codes. Field names are snake_case in Python and camelCase on the
wire (alias generator), except AgingSummary whose keys the portal already
consumes in snake_case.

Coercion happens on the way in (Annotated validators below), so a record can
be constructed straight from raw SAP values:

    SalesOrder(order_number="0000004711", amount="120.00")
    → orderNumber "4711", amount 120.0
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

from connectors.sap.sap_fields import (
    CURRENT_BUCKET,
    DEFAULT_CURRENCY,
    strip_leading_zeros,
    to_float,
    to_int,
    to_str,
)


# =============================================================================
# Value types
# =============================================================================

def _currency(value):
    return to_str(value, DEFAULT_CURRENCY)


TextValue = Annotated[str, BeforeValidator(to_str)]
AmountValue = Annotated[float, BeforeValidator(to_float)]
CountValue = Annotated[int, BeforeValidator(to_int)]
CurrencyValue = Annotated[str, BeforeValidator(_currency)]
SapIdValue = Annotated[str, BeforeValidator(strip_leading_zeros)]


class RecordBase(BaseModel):
    """Base for all portal records: immutable, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# Sales
# =============================================================================

class Inquiry(RecordBase):
    inquiry_number: SapIdValue = ""
    product_code: SapIdValue = ""
    product_description: TextValue = ""
    amount: AmountValue = 0.0
    currency: CurrencyValue = DEFAULT_CURRENCY
    unit: TextValue = ""
    valid_from: TextValue = ""
    valid_to: TextValue = ""
    created_date: TextValue = ""
    created_by: TextValue = ""
    document_type: TextValue = ""
    item_number: TextValue = ""


class SalesOrder(RecordBase):
    order_number: SapIdValue = ""
    order_date: TextValue = ""
    created_by: TextValue = ""
    document_type: TextValue = ""
    product_code: SapIdValue = ""
    product_description: TextValue = ""
    item_number: TextValue = ""
    amount: AmountValue = 0.0
    currency: CurrencyValue = DEFAULT_CURRENCY
    status: str = "Open"


class Delivery(RecordBase):
    delivery_number: SapIdValue = ""
    customer_number: SapIdValue = ""
    shipping_point: TextValue = ""
    created_by: TextValue = ""
    created_date: TextValue = ""
    item_number: TextValue = ""
    product_code: SapIdValue = ""
    product_description: TextValue = ""
    delivery_quantity: AmountValue = 0.0
    unit: TextValue = ""
    status: str = "Delivered"


class OverallSale(RecordBase):
    """A sales order or billing document line with running totals."""
    document_number: TextValue = ""
    record_type: TextValue = ""
    material_number: SapIdValue = ""
    material_description: TextValue = ""
    net_value: AmountValue = 0.0
    currency: CurrencyValue = DEFAULT_CURRENCY
    creation_date: TextValue = ""
    billing_date: TextValue = ""
    total_orders_value: AmountValue = 0.0
    total_billed_value: AmountValue = 0.0


# =============================================================================
# Financial
# =============================================================================

class Invoice(RecordBase):
    item_number: TextValue = ""
    document_number: TextValue = ""
    billing_date: TextValue = ""
    customer_name: TextValue = ""
    material_number: SapIdValue = ""
    material_description: TextValue = ""
    net_value: AmountValue = 0.0
    currency: CurrencyValue = DEFAULT_CURRENCY


class MemoItem(RecordBase):
    item_number: TextValue = ""
    material_number: SapIdValue = ""
    material_description: TextValue = ""
    billed_quantity: AmountValue = 0.0
    unit_of_measure: TextValue = ""
    net_value: AmountValue = 0.0


class Memo(RecordBase):
    """Credit or debit memo header with its line items."""
    document_number: TextValue = ""
    document_type: TextValue = ""
    document_type_text: TextValue = ""
    reference: TextValue = ""
    customer_number: SapIdValue = ""
    customer_name: TextValue = ""
    billing_date: TextValue = ""
    creation_date: TextValue = ""
    created_by: TextValue = ""
    currency: CurrencyValue = DEFAULT_CURRENCY
    net_value: AmountValue = 0.0
    tax_amount: AmountValue = 0.0
    sales_org: TextValue = ""
    items: List[MemoItem] = Field(default_factory=list)


class AgingDetail(RecordBase):
    invoice_number: TextValue = ""
    billing_date: TextValue = ""
    due_date: TextValue = ""
    amount_due: AmountValue = 0.0
    currency: CurrencyValue = DEFAULT_CURRENCY
    days_overdue: CountValue = 0
    aging_bucket: str = CURRENT_BUCKET


class AgingSummary(BaseModel):
    """Open receivables per aging bucket."""
    model_config = ConfigDict(frozen=True)

    days_0_30: AmountValue = 0.0
    days_31_60: AmountValue = 0.0
    days_61_90: AmountValue = 0.0
    days_91_plus: AmountValue = 0.0
    total_due: AmountValue = 0.0
    currency: CurrencyValue = DEFAULT_CURRENCY


# =============================================================================
# Customer
# =============================================================================

class CustomerProfile(RecordBase):
    customer_id: SapIdValue = ""
    address_number: TextValue = ""
    name: TextValue = ""
    email: TextValue = ""
    city: TextValue = ""
    country: TextValue = ""


class LoginResult(RecordBase):
    """Outcome of SAP credential validation."""
    success: bool = False
    user_id: Optional[str] = None
    role: str = "User"
    message: Optional[str] = None


class RegistrationResult(RecordBase):
    """Outcome of customer self-registration."""
    success: bool = False
    user_id: Optional[str] = None
    message: Optional[str] = None
