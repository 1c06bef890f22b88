"""
Export the portal's OpenAPI schema.

Builds the app with placeholder settings, so no SAP system or real
credentials are needed. With --check, exits non-zero when one of the
routes the portal frontend calls is missing from the schema.

Usage:
    python scripts/generate_openapi.py
    python scripts/generate_openapi.py -o openapi.json --check
    python scripts/generate_openapi.py --with-test-endpoints
"""

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from api.server import create_app
from connectors.sap.sap_client import SapConnectionConfig
from core.config import AuthSettings, Settings


PORTAL_ROUTES = [
    ("post", "/api/auth/login"),
    ("post", "/api/auth/register"),
    ("get", "/api/dashboard/summary"),
    ("get", "/api/inquiries"),
    ("get", "/api/salesorders"),
    ("get", "/api/salesorders/{order_id}"),
    ("get", "/api/deliveries"),
    ("get", "/api/deliveries/{delivery_id}"),
    ("get", "/api/invoices"),
    ("get", "/api/memos"),
    ("get", "/api/aging/detail"),
    ("get", "/api/aging/summary"),
    ("get", "/api/invoice/{invoice_id}/pdf"),
    ("get", "/api/sales/overall"),
    ("get", "/api/profile"),
]


def schema(with_test_endpoints: bool = False) -> dict:
    settings = Settings(
        sap=SapConnectionConfig(username="openapi", password="openapi"),
        auth=AuthSettings(jwt_secret="openapi"),
        enable_test_endpoints=with_test_endpoints,
    )
    return create_app(settings=settings).openapi()


def missing_routes(spec: dict) -> list:
    paths = spec.get("paths", {})
    return [f"{method.upper()} {path}" for method, path in PORTAL_ROUTES if method not in paths.get(path, {})]


def main():
    parser = argparse.ArgumentParser(description="Export the gateway OpenAPI schema")
    parser.add_argument("-o", "--output", help="write to this file instead of stdout")
    parser.add_argument("--with-test-endpoints", action="store_true", help="include /api/test/* routes")
    parser.add_argument("--check", action="store_true", help="fail if a portal route is missing")
    args = parser.parse_args()

    spec = schema(args.with_test_endpoints)
    text = json.dumps(spec, indent=2)

    if args.output:
        Path(args.output).write_text(text)
        print(f"Wrote {len(spec['paths'])} paths to {args.output}", file=sys.stderr)
    else:
        print(text)

    if args.check:
        missing = missing_routes(spec)
        for route in missing:
            print(f"missing route: {route}", file=sys.stderr)
        sys.exit(1 if missing else 0)


if __name__ == "__main__":
    main()
