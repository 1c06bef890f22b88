"""Financial endpoints: invoices, credit/debit memos, aging, invoice PDF, overall sales."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from api.dependencies import get_current_user, get_sap_service
from api.errors import sap_unavailable
from connectors.sap.sap_errors import SapError
from connectors.sap.sap_models import AgingSummary
from connectors.sap.sap_service import SapService
from core.observability.logging import get_logger
from models.api_responses import (
    AgingDetailResponse,
    AgingSummaryResponse,
    InvoiceListResponse,
    MemoListResponse,
    OverallSalesResponse,
    UserInfo,
)

logger = get_logger(__name__)

router = APIRouter()

DEFAULT_MEMO_FROM_DATE = "2020-01-01"


@router.get("/invoices", response_model=InvoiceListResponse)
async def list_invoices(
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> InvoiceListResponse:
    try:
        invoices = await sap.get_invoices(user.user_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch invoices from SAP. Please try again later.")

    return InvoiceListResponse(
        invoices=invoices,
        message="No invoices found for this customer." if not invoices else "Invoices retrieved successfully.",
    )


@router.get("/memos", response_model=MemoListResponse)
async def list_memos(
    from_date: Optional[str] = Query(None, alias="fromDate", description="YYYY-MM-DD, default 2020-01-01"),
    to_date: Optional[str] = Query(None, alias="toDate", description="YYYY-MM-DD, default today"),
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> MemoListResponse:
    """Credit and debit memos with their line items."""
    from_date = from_date or DEFAULT_MEMO_FROM_DATE
    to_date = to_date or date.today().isoformat()

    try:
        memos = await sap.get_memos(user.user_id, from_date, to_date)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch credit/debit memos from SAP. Please try again later.")

    return MemoListResponse(
        memos=memos,
        message="No credit/debit memos found for this customer." if not memos else "Memos retrieved successfully.",
    )


@router.get("/aging/detail", response_model=AgingDetailResponse)
async def get_aging_detail(
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> AgingDetailResponse:
    try:
        aging_detail = await sap.get_aging_detail(user.user_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch aging detail from SAP. Please try again later.")

    return AgingDetailResponse(
        aging_detail=aging_detail,
        message="No aging details found for this customer." if not aging_detail else "Aging detail retrieved successfully.",
    )


@router.get("/aging/summary", response_model=AgingSummaryResponse)
async def get_aging_summary(
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> AgingSummaryResponse:
    """Open receivables per bucket. SAP returning nothing gives all zeros."""
    try:
        aging_summary = await sap.get_aging_summary(user.user_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch aging summary from SAP. Please try again later.")

    if aging_summary is None:
        return AgingSummaryResponse(
            aging_summary=AgingSummary(),
            message="No aging summary available for this customer.",
        )
    return AgingSummaryResponse(
        aging_summary=aging_summary,
        message="Aging summary retrieved successfully.",
    )


@router.get(
    "/invoice/{invoice_id}/pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def get_invoice_pdf(
    invoice_id: str,
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> Response:
    """Invoice as a PDF, shown inline by the browser."""
    logger.info(f"Fetching invoice PDF {invoice_id}")
    try:
        content = await sap.get_invoice_pdf(invoice_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch invoice PDF from SAP. Please try again later.")

    if not content:
        raise HTTPException(status_code=404, detail="Invoice PDF not found or could not be generated.")

    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="invoice_{invoice_id}.pdf"'},
    )


@router.get("/sales/overall", response_model=OverallSalesResponse)
async def get_overall_sales(
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> OverallSalesResponse:
    try:
        overall_sales = await sap.get_overall_sales(user.user_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch overall sales from SAP. Please try again later.")

    return OverallSalesResponse(
        overall_sales=overall_sales,
        message="Overall sales retrieved successfully.",
    )
