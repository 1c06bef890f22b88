"""Dashboard endpoints: summary counts, inquiries, sales orders, deliveries.

Uses the shared Pydantic response models from models/api_responses.py.
All data is read live from SAP for the authenticated customer.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_current_user, get_sap_service
from api.errors import sap_unavailable
from connectors.sap.sap_errors import SapError
from connectors.sap.sap_fields import strip_leading_zeros
from connectors.sap.sap_service import SapService
from core.observability.logging import get_logger
from models.api_responses import (
    DashboardSummary,
    DashboardSummaryResponse,
    DeliveryDetailResponse,
    DeliveryListResponse,
    InquiryListResponse,
    SalesOrderDetailResponse,
    SalesOrderListResponse,
    UserInfo,
)

logger = get_logger(__name__)

router = APIRouter()


@router.get("/dashboard/summary", response_model=DashboardSummaryResponse)
async def get_dashboard_summary(
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> DashboardSummaryResponse:
    """Record counts per section, fetched concurrently.

    A section whose SAP call fails counts 0 and is listed in unavailable.
    """
    sections = await sap.get_dashboard_summary(user.user_id)

    summary = DashboardSummary(
        total_inquiries=sections["inquiries"].count,
        total_sales_orders=sections["sales_orders"].count,
        total_deliveries=sections["deliveries"].count,
        total_invoices=sections["invoices"].count,
        total_overall_sales=sections["overall_sales"].count,
        unavailable=[name for name, section in sections.items() if not section.available],
    )
    return DashboardSummaryResponse(
        summary=summary,
        message="Dashboard summary retrieved successfully.",
    )


@router.get("/inquiries", response_model=InquiryListResponse)
async def list_inquiries(
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> InquiryListResponse:
    try:
        inquiries = await sap.get_inquiries(user.user_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch inquiries from SAP. Please try again later.")

    return InquiryListResponse(
        inquiries=inquiries,
        message="No inquiries found for this customer." if not inquiries else "Inquiries retrieved successfully.",
    )


@router.get("/salesorders", response_model=SalesOrderListResponse)
async def list_sales_orders(
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> SalesOrderListResponse:
    try:
        sales_orders = await sap.get_sales_orders(user.user_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch sales orders from SAP. Please try again later.")

    return SalesOrderListResponse(
        sales_orders=sales_orders,
        message="No sales orders found for this customer." if not sales_orders else "Sales orders retrieved successfully.",
    )


@router.get("/salesorders/{order_id}", response_model=SalesOrderDetailResponse)
async def get_sales_order(
    order_id: str,
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> SalesOrderDetailResponse:
    """Single sales order; "0000004711" and "4711" address the same order."""
    try:
        sales_orders = await sap.get_sales_orders(user.user_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch sales order details from SAP. Please try again later.")

    wanted = strip_leading_zeros(order_id)
    sales_order = next((o for o in sales_orders if o.order_number == wanted), None)
    if sales_order is None:
        raise HTTPException(status_code=404, detail="Sales order not found.")

    return SalesOrderDetailResponse(
        sales_order=sales_order,
        message="Sales order details retrieved successfully.",
    )


@router.get("/deliveries", response_model=DeliveryListResponse)
async def list_deliveries(
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> DeliveryListResponse:
    try:
        deliveries = await sap.get_deliveries(user.user_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch deliveries from SAP. Please try again later.")

    return DeliveryListResponse(
        deliveries=deliveries,
        message="No deliveries found for this customer." if not deliveries else "Deliveries retrieved successfully.",
    )


@router.get("/deliveries/{delivery_id}", response_model=DeliveryDetailResponse)
async def get_delivery(
    delivery_id: str,
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> DeliveryDetailResponse:
    try:
        deliveries = await sap.get_deliveries(user.user_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch delivery details from SAP. Please try again later.")

    wanted = strip_leading_zeros(delivery_id)
    delivery = next((d for d in deliveries if d.delivery_number == wanted), None)
    if delivery is None:
        raise HTTPException(status_code=404, detail="Delivery not found.")

    return DeliveryDetailResponse(
        delivery=delivery,
        message="Delivery details retrieved successfully.",
    )
