"""
SAP Envelope Builder Tests

Validates:
1. XML escaping of the five special characters
2. Function call rendering (field order, empty fields)
3. The fixed SOAP envelope
4. Per-action builders carry the right service, function and fields
"""

import pytest
from lxml import etree

from connectors.sap import sap_envelope as envelopes
from connectors.sap.sap_envelope import (
    RFC_FUNCTIONS_NAMESPACE,
    SOAP_ENV_NAMESPACE,
    build_function_call,
    escape_xml,
    wrap_envelope,
)
from connectors.sap.sap_functions import SAP_FUNCTIONS, get_function


class TestEscapeXml:

    def test_escapes_special_characters(self):
        assert escape_xml("a&b") == "a&amp;b"
        assert escape_xml("<tag>") == "&lt;tag&gt;"
        assert escape_xml("\"quoted\" 'single'") == "&quot;quoted&quot; &apos;single&apos;"

    def test_ampersand_is_not_double_escaped(self):
        assert escape_xml("&lt;") == "&amp;lt;"

    def test_none_renders_empty(self):
        assert escape_xml(None) == ""

    def test_non_strings_are_stringified(self):
        assert escape_xml(42) == "42"

    def test_escaped_value_round_trips_through_parser(self):
        nasty = "Müller & Söhne <GmbH> \"quoted\" 'x'"
        xml = build_function_call("ZFM_TEST", {"IV_NAME": nasty})
        wrapped = f'<root xmlns:urn="{RFC_FUNCTIONS_NAMESPACE}">{xml}</root>'

        root = etree.fromstring(wrapped.encode("utf-8"))
        value = root.find(f"{{{RFC_FUNCTIONS_NAMESPACE}}}ZFM_TEST/IV_NAME").text

        assert value == nasty


class TestBuildFunctionCall:

    def test_fields_rendered_in_order(self):
        xml = build_function_call("ZFM_X", {"IV_B": "2", "IV_A": "1"})

        assert xml.splitlines() == [
            "<urn:ZFM_X>",
            "    <IV_B>2</IV_B>",
            "    <IV_A>1</IV_A>",
            "</urn:ZFM_X>",
        ]

    def test_empty_and_none_fields_are_kept(self):
        xml = build_function_call("ZFM_X", {"IV_A": "", "IV_B": None})

        assert "<IV_A></IV_A>" in xml
        assert "<IV_B></IV_B>" in xml


class TestWrapEnvelope:

    def test_envelope_is_well_formed(self):
        envelope = wrap_envelope(build_function_call("ZFM_X", {"IV_USER_ID": "42"}))

        root = etree.fromstring(envelope.encode("utf-8"))
        assert root.tag == f"{{{SOAP_ENV_NAMESPACE}}}Envelope"

        header = root.find(f"{{{SOAP_ENV_NAMESPACE}}}Header")
        assert header is not None and len(header) == 0

        body = root.find(f"{{{SOAP_ENV_NAMESPACE}}}Body")
        assert len(body) == 1
        assert body[0].tag == f"{{{RFC_FUNCTIONS_NAMESPACE}}}ZFM_X"


class TestActionBuilders:

    def test_login_call(self):
        call = envelopes.login_call("jdoe", "s3cr&t")

        assert call.service_name == "ZRFC_LOGIN_VALIDATE_863"
        assert call.function_name == "ZFM_LOGIN_VALIDATE_RP_863"
        assert list(call.parameters) == ["IV_PASSWORD", "IV_USERNAME"]
        assert "<IV_PASSWORD>s3cr&amp;t</IV_PASSWORD>" in call.function_xml

    def test_registration_call_fields(self):
        call = envelopes.registration_call("jdoe", "pw", "j@x.com", "John")

        assert call.service_name == "ZRFC_CUSTREG_863"
        assert call.function_name == "ZFM_CUSTOMER_REGISTER_RP_863"
        assert list(call.parameters) == [
            "IV_CUSTOMER_MAIL",
            "IV_CUSTOMER_NAME",
            "IV_CUSTOMER_NUMBER",
            "IV_PASSWORD",
            "IV_USERNAME",
        ]
        assert "<IV_CUSTOMER_NUMBER></IV_CUSTOMER_NUMBER>" in call.function_xml

    @pytest.mark.parametrize("user_id,expected", [
        ("0000000002", "2"),
        ("0000000000", "0"),
        ("17", "17"),
        ("", "0"),
    ])
    def test_profile_call_strips_padding(self, user_id, expected):
        call = envelopes.profile_call(user_id)

        assert call.parameters == {"IV_CUSTOMER_ID": expected}
        assert call.function_name == "ZFM_CUSTOMER_PROFILE_RS_863"

    def test_user_scoped_calls_keep_id_as_is(self):
        call = envelopes.sales_orders_call("0000000042")

        assert call.parameters == {"IV_USER_ID": "0000000042"}
        assert call.service_name == "ZRFC_SALEORDERS_863"

    def test_memos_call(self):
        call = envelopes.memos_call("42", "2024-01-01", "2024-06-30")

        assert call.service_name == "ZRFC_CDMEMO_863"
        assert call.parameters == {
            "IV_FROM_DATE": "2024-01-01",
            "IV_TO_DATE": "2024-06-30",
            "IV_USER_ID": "42",
        }

    def test_invoice_pdf_call(self):
        call = envelopes.invoice_pdf_call("90000123")

        assert call.service_name == "ZRFC_INVOICE_PDF_863"
        assert call.function_name == "ZFM_INVOICE_PDF_RP_863"
        assert call.parameters == {"IV_INVOICE_NUMBER": "90000123"}

    @pytest.mark.parametrize("builder,service", [
        (envelopes.inquiries_call, "ZRFC_CUST_INQUIRY_863"),
        (envelopes.deliveries_call, "ZRFC_DELIVERY_LIST_863"),
        (envelopes.invoices_call, "ZRFC_INVOICE_DETAILS_863"),
        (envelopes.aging_detail_call, "ZRFC_AGING_DETAIL_863"),
        (envelopes.aging_summary_call, "ZRFC_AGING_SUMMARY_863"),
        (envelopes.overall_sales_call, "ZRFC_OVERALLSALES_863"),
    ])
    def test_service_names(self, builder, service):
        assert builder("1").service_name == service


class TestFunctionRegistry:

    def test_all_actions_registered(self):
        assert len(SAP_FUNCTIONS) == 12

    def test_unknown_function(self):
        with pytest.raises(ValueError):
            get_function("nope")

    def test_response_names(self):
        fn = get_function("sales_orders")

        assert fn.response_names() == [
            "ZFM_SALEORDERS_RP_863Response",
            "ZFM_SALEORDERS_RP_863.Response",
            "response",
        ]

    def test_profile_has_service_alias(self):
        assert "ZRFC_CUSTOMER_PROFILE_863Response" in get_function("profile").response_names()

    def test_configured_aliases_appended(self):
        fn = get_function("invoices")
        names = fn.response_names({"ZFM_INVOICE_DETAILS_RP_863": ["InvoicesResponse"]})

        assert names[-1] == "InvoicesResponse"
        assert names[0] == "ZFM_INVOICE_DETAILS_RP_863Response"


class TestSapCallScript:

    def test_list_prints_every_function(self, capsys):
        from scripts.sap_call import list_functions

        assert list_functions() == 0

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == len(SAP_FUNCTIONS)
        assert any("ZRFC_SALEORDERS_863" in line and "ZFM_SALEORDERS_RP_863" in line for line in lines)

    def test_dry_run_prints_envelope_and_response_names(self, capsys):
        import argparse
        import asyncio

        from scripts.sap_call import run

        args = argparse.Namespace(action="sales_orders", user="0000000042", dry_run=True)

        assert asyncio.run(run(args)) == 0

        out = capsys.readouterr().out
        assert "Service:  ZRFC_SALEORDERS_863" in out
        assert "Response: ZFM_SALEORDERS_RP_863Response, ZFM_SALEORDERS_RP_863.Response, response" in out
        assert "<IV_USER_ID>0000000042</IV_USER_ID>" in out
