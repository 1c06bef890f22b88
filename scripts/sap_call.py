#!/usr/bin/env python
"""Call one SAP function module from the command line.

Useful to check connectivity and response shapes without the portal.

Usage:
    # Print the SOAP envelope only (no SAP connection, no credentials):
    python scripts/sap_call.py sales_orders --user 0000000042 --dry-run

    # Registered function modules:
    python scripts/sap_call.py --list

    # Real call (SAP_USER / SAP_PASSWORD / SAP_BASE_URL from environment or .env):
    python scripts/sap_call.py invoices --user 0000000042
    python scripts/sap_call.py memos --user 42 --from 2024-01-01 --to 2024-12-31
    python scripts/sap_call.py invoice_pdf --invoice 90000123 --output invoice.pdf
"""

import argparse
import asyncio
import json
import os
import sys
from datetime import date

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from connectors.sap import sap_envelope as envelopes
from connectors.sap.sap_errors import SapError
from connectors.sap.sap_functions import SAP_FUNCTIONS, get_function
from connectors.sap.sap_service import SapService


USER_ACTIONS = {
    "profile": (envelopes.profile_call, "get_profile"),
    "inquiries": (envelopes.inquiries_call, "get_inquiries"),
    "sales_orders": (envelopes.sales_orders_call, "get_sales_orders"),
    "deliveries": (envelopes.deliveries_call, "get_deliveries"),
    "invoices": (envelopes.invoices_call, "get_invoices"),
    "aging_detail": (envelopes.aging_detail_call, "get_aging_detail"),
    "aging_summary": (envelopes.aging_summary_call, "get_aging_summary"),
    "overall_sales": (envelopes.overall_sales_call, "get_overall_sales"),
}
ACTIONS = sorted([*USER_ACTIONS, "memos", "invoice_pdf", "dashboard"])


def _to_jsonable(result):
    if result is None:
        return None
    if isinstance(result, list):
        return [_to_jsonable(r) for r in result]
    if isinstance(result, dict):
        return {k: _to_jsonable(v) for k, v in result.items()}
    if hasattr(result, "model_dump"):
        return result.model_dump(by_alias=True)
    if hasattr(result, "records"):
        return {"available": result.available, "count": result.count, "error": result.error}
    return result


def list_functions() -> int:
    for key, fn in sorted(SAP_FUNCTIONS.items()):
        print(f"{key:15} {fn.service_name:28} {fn.function_name}")
    return 0


def build_call(args):
    if args.action == "memos":
        return envelopes.memos_call(args.user, args.from_date, args.to_date)
    if args.action == "invoice_pdf":
        return envelopes.invoice_pdf_call(args.invoice)
    if args.action == "dashboard":
        return None
    builder, _ = USER_ACTIONS[args.action]
    return builder(args.user)


async def run(args) -> int:
    call = build_call(args)
    if args.dry_run:
        if call is None:
            print("dashboard fans out to several services; pick a single action for --dry-run")
            return 1
        print(f"Service:  {call.service_name}")
        print(f"Function: {call.function_name}")
        print(f"Response: {', '.join(get_function(args.action).response_names())}")
        print(envelopes.wrap_envelope(call.function_xml))
        return 0

    from core.config import get_settings
    from core.observability.logging import configure_logging
    configure_logging()

    service = SapService.from_config(get_settings().sap)
    try:
        if args.action == "memos":
            result = await service.get_memos(args.user, args.from_date, args.to_date)
        elif args.action == "invoice_pdf":
            result = await service.get_invoice_pdf(args.invoice)
            if result and args.output:
                with open(args.output, "wb") as f:
                    f.write(result)
                print(f"PDF written to: {args.output} ({len(result)} bytes)")
                return 0
            result = {"pdf_bytes": len(result) if result else 0}
        elif args.action == "dashboard":
            result = await service.get_dashboard_summary(args.user)
        else:
            _, method = USER_ACTIONS[args.action]
            result = await getattr(service, method)(args.user)
    except SapError as e:
        print(f"SAP call failed: {type(e).__name__}: {e}", file=sys.stderr)
        return 2
    finally:
        await service.close()

    print(json.dumps(_to_jsonable(result), indent=2))
    return 0


def main():
    parser = argparse.ArgumentParser(description="Call a SAP function module")
    parser.add_argument("action", nargs="?", choices=ACTIONS)
    parser.add_argument("--user", default="", help="Customer / user id (IV_USER_ID)")
    parser.add_argument("--invoice", default="", help="Invoice number for invoice_pdf")
    parser.add_argument("--from", dest="from_date", default="2020-01-01", help="Memo range start")
    parser.add_argument("--to", dest="to_date", default=date.today().isoformat(), help="Memo range end")
    parser.add_argument("--output", "-o", help="Write invoice PDF to this file")
    parser.add_argument("--dry-run", action="store_true", help="Print the envelope, do not call SAP")
    parser.add_argument("--list", action="store_true", help="List the registered function modules")

    args = parser.parse_args()
    if args.list:
        sys.exit(list_functions())
    if args.action is None:
        parser.error("an action is required unless --list is given")
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
