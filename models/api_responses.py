"""
API Response Models for the SAP Customer Portal.

These Pydantic models define the shared data contracts between the gateway
API and the portal UI. They are designed to prevent drift and enable OpenAPI
generation.

Every response follows one envelope:
- success: {"success": true, "<dataKey>": ..., "message": "..."}
- failure: {"success": false, "error": "..."}

Hierarchy:
- ApiResponse / ErrorResponse: the envelope
- LoginResponse, RegisterResponse: authentication
- DashboardSummaryResponse: aggregate counts
- *ListResponse / *DetailResponse: one per business record type
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from connectors.sap.sap_models import (
    AgingDetail,
    AgingSummary,
    CustomerProfile,
    Delivery,
    Inquiry,
    Invoice,
    Memo,
    OverallSale,
    SalesOrder,
)


# =============================================================================
# BASE MODELS
# =============================================================================

class ResponseBase(BaseModel):
    """Base class for all API models: camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ApiResponse(ResponseBase):
    """Successful envelope."""
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(ResponseBase):
    """Failed envelope. error is always a fixed, client-safe text."""
    success: bool = False
    error: str


# =============================================================================
# AUTHENTICATION
# =============================================================================

class UserInfo(BaseModel):
    """Authenticated portal user, as carried in the JWT."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="USER_ID")
    username: str = ""
    role: str = "User"


class LoginRequest(ResponseBase):
    # Optional so a missing field gives the portal's 400, not a schema error
    username: Optional[str] = None
    password: Optional[str] = None


class RegisterRequest(ResponseBase):
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    customer_number: Optional[str] = None


class LoginResponse(ApiResponse):
    token: str
    user: UserInfo


class RegisterResponse(ApiResponse):
    user_id: Optional[str] = None


# =============================================================================
# DASHBOARD
# =============================================================================

class DashboardSummary(ResponseBase):
    """Record counts per dashboard section.

    Sections whose SAP call failed count as 0 and are listed in unavailable.
    """
    total_inquiries: int = 0
    total_sales_orders: int = 0
    total_deliveries: int = 0
    total_invoices: int = 0
    total_overall_sales: int = 0
    unavailable: List[str] = Field(default_factory=list)


class DashboardSummaryResponse(ApiResponse):
    summary: DashboardSummary


class InquiryListResponse(ApiResponse):
    inquiries: List[Inquiry]


class SalesOrderListResponse(ApiResponse):
    sales_orders: List[SalesOrder]


class SalesOrderDetailResponse(ApiResponse):
    sales_order: SalesOrder


class DeliveryListResponse(ApiResponse):
    deliveries: List[Delivery]


class DeliveryDetailResponse(ApiResponse):
    delivery: Delivery


# =============================================================================
# FINANCIAL
# =============================================================================

class InvoiceListResponse(ApiResponse):
    invoices: List[Invoice]


class MemoListResponse(ApiResponse):
    memos: List[Memo]


class AgingDetailResponse(ApiResponse):
    aging_detail: List[AgingDetail]


class AgingSummaryResponse(ApiResponse):
    aging_summary: AgingSummary


class OverallSalesResponse(ApiResponse):
    overall_sales: List[OverallSale]


# =============================================================================
# PROFILE
# =============================================================================

class ProfileResponse(ApiResponse):
    profile: CustomerProfile


class ProfileUpdateRequest(ResponseBase):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None


# =============================================================================
# DIAGNOSTICS
# =============================================================================

class TokenRequest(ResponseBase):
    username: Optional[str] = None
    role: Optional[str] = None
    user_id: Optional[str] = None


class TokenResponse(ApiResponse):
    token: str


class UserEchoResponse(ApiResponse):
    user: UserInfo
