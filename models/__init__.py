"""Models Package.

API request/response models for the customer portal. Business records
(SalesOrder, Invoice, ...) live with the SAP connector in
connectors/sap/sap_models.py and are re-exported here for convenience.
"""

from connectors.sap.sap_models import (
    AgingDetail,
    AgingSummary,
    CustomerProfile,
    Delivery,
    Inquiry,
    Invoice,
    Memo,
    MemoItem,
    OverallSale,
    SalesOrder,
)

from models.api_responses import (
    # Envelope
    ApiResponse,
    ErrorResponse,

    # Authentication
    UserInfo,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,

    # Dashboard
    DashboardSummary,
    DashboardSummaryResponse,
    InquiryListResponse,
    SalesOrderListResponse,
    SalesOrderDetailResponse,
    DeliveryListResponse,
    DeliveryDetailResponse,

    # Financial
    InvoiceListResponse,
    MemoListResponse,
    AgingDetailResponse,
    AgingSummaryResponse,
    OverallSalesResponse,

    # Profile
    ProfileResponse,
    ProfileUpdateRequest,
)

__all__ = [
    # Business records
    "AgingDetail",
    "AgingSummary",
    "CustomerProfile",
    "Delivery",
    "Inquiry",
    "Invoice",
    "Memo",
    "MemoItem",
    "OverallSale",
    "SalesOrder",

    # API models
    "ApiResponse",
    "ErrorResponse",
    "UserInfo",
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "RegisterResponse",
    "DashboardSummary",
    "DashboardSummaryResponse",
    "InquiryListResponse",
    "SalesOrderListResponse",
    "SalesOrderDetailResponse",
    "DeliveryListResponse",
    "DeliveryDetailResponse",
    "InvoiceListResponse",
    "MemoListResponse",
    "AgingDetailResponse",
    "AgingSummaryResponse",
    "OverallSalesResponse",
    "ProfileResponse",
    "ProfileUpdateRequest",
]
