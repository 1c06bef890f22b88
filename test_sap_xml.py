"""
SAP XML and Field Convention Tests

Validates:
1. XML → dict conversion (namespaces, lists, empties, attributes)
2. Response element lookup and SOAP fault detection
3. Repeating group coercion (absent / one / many)
4. ABAP field helpers: numbers, zero padding, success flag, aging buckets
"""

import math

import pytest

from connectors.sap.sap_errors import SapParseError
from connectors.sap.sap_fields import (
    aging_bucket,
    is_success,
    strip_leading_zeros,
    to_float,
    to_int,
    to_str,
)
from connectors.sap.sap_xml import (
    coerce_repeating_group,
    extract_function_response,
    find_soap_fault,
    parse_xml,
)


SALES_ORDERS_TWO_ROWS = """<?xml version="1.0" encoding="utf-8"?>
<soap-env:Envelope xmlns:soap-env="http://schemas.xmlsoap.org/soap/envelope/">
  <soap-env:Header/>
  <soap-env:Body>
    <n0:ZFM_SALEORDERS_RP_863Response xmlns:n0="urn:sap-com:document:sap:rfc:functions">
      <ET_SALESORDERS>
        <item><VBELN>0000004711</VBELN><NETWR>100.00</NETWR></item>
        <item><VBELN>0000004712</VBELN><NETWR>25.50-</NETWR></item>
      </ET_SALESORDERS>
      <EV_SUCCESS>X</EV_SUCCESS>
    </n0:ZFM_SALEORDERS_RP_863Response>
  </soap-env:Body>
</soap-env:Envelope>"""

SOAP_FAULT = """<soap-env:Envelope xmlns:soap-env="http://schemas.xmlsoap.org/soap/envelope/">
  <soap-env:Body>
    <soap-env:Fault>
      <faultcode>soap-env:Client</faultcode>
      <faultstring xml:lang="en">Function module ZFM_X not found</faultstring>
    </soap-env:Fault>
  </soap-env:Body>
</soap-env:Envelope>"""


class TestParseXml:

    def test_namespaces_stripped_and_lists_built(self):
        tree = parse_xml(SALES_ORDERS_TWO_ROWS)

        response = tree["Envelope"]["Body"]["ZFM_SALEORDERS_RP_863Response"]
        assert response["EV_SUCCESS"] == "X"
        items = response["ET_SALESORDERS"]["item"]
        assert isinstance(items, list)
        assert items[0]["VBELN"] == "0000004711"

    def test_single_child_stays_a_dict(self):
        tree = parse_xml("<r><ET><item><A>1</A></item></ET></r>")

        assert tree == {"r": {"ET": {"item": {"A": "1"}}}}

    def test_empty_element_is_empty_string(self):
        tree = parse_xml("<r><EV_MESSAGE/><ET_ROWS></ET_ROWS></r>")

        assert tree["r"]["EV_MESSAGE"] == ""
        assert tree["r"]["ET_ROWS"] == ""

    def test_attributes_and_text(self):
        tree = parse_xml('<r><amount currency="EUR">12.00</amount></r>')

        assert tree["r"]["amount"] == {"$": {"currency": "EUR"}, "_": "12.00"}

    def test_bytes_input(self):
        tree = parse_xml(SALES_ORDERS_TWO_ROWS.encode("utf-8"))

        assert "Envelope" in tree

    def test_malformed_xml_raises(self):
        with pytest.raises(SapParseError):
            parse_xml("<Envelope><Body></Envelope>")

    def test_non_xml_raises(self):
        with pytest.raises(SapParseError):
            parse_xml("Service unavailable")

    def test_entities_are_not_expanded(self):
        doc = '<!DOCTYPE r [<!ENTITY x "expanded">]><r><a>&x;</a></r>'

        tree = parse_xml(doc)

        assert tree["r"]["a"] != "expanded"


class TestResponseLookup:

    def test_first_matching_alias(self):
        tree = parse_xml(SALES_ORDERS_TWO_ROWS)

        response = extract_function_response(tree, ["missing", "ZFM_SALEORDERS_RP_863Response"])

        assert response["EV_SUCCESS"] == "X"

    def test_no_alias_matches(self):
        tree = parse_xml(SALES_ORDERS_TWO_ROWS)

        assert extract_function_response(tree, ["nope"]) is None

    def test_no_body(self):
        assert extract_function_response({"Envelope": "x"}, ["a"]) is None
        assert extract_function_response(None, ["a"]) is None

    def test_fault_detected(self):
        fault = find_soap_fault(parse_xml(SOAP_FAULT))

        assert fault == {
            "faultcode": "soap-env:Client",
            "faultstring": "Function module ZFM_X not found",
        }

    def test_soap12_fault(self):
        doc = """<env:Envelope xmlns:env="http://www.w3.org/2003/05/soap-envelope">
          <env:Body><env:Fault>
            <env:Code><env:Value>env:Receiver</env:Value></env:Code>
            <env:Reason><env:Text xml:lang="en">Backend down</env:Text></env:Reason>
          </env:Fault></env:Body></env:Envelope>"""

        fault = find_soap_fault(parse_xml(doc))

        assert fault["faultcode"] == "env:Receiver"
        assert fault["faultstring"] == "Backend down"

    def test_no_fault_in_normal_response(self):
        assert find_soap_fault(parse_xml(SALES_ORDERS_TWO_ROWS)) is None


class TestCoerceRepeatingGroup:

    def test_absent(self):
        assert coerce_repeating_group({}) == []
        assert coerce_repeating_group(None) == []
        assert coerce_repeating_group("") == []

    def test_single(self):
        row = {"VBELN": "1"}
        assert coerce_repeating_group({"item": row}) == [row]

    def test_many(self):
        rows = [{"VBELN": "1"}, {"VBELN": "2"}]
        assert coerce_repeating_group({"item": rows}) == rows

    def test_custom_group_field(self):
        assert coerce_repeating_group({"row": {"A": "1"}}, group_field="row") == [{"A": "1"}]


class TestFieldHelpers:

    @pytest.mark.parametrize("value,expected", [
        ("1250.50", 1250.5),
        ("75.00-", -75.0),
        (" 1,234.5 ", 1234.5),
        ("12.5 EUR", 12.5),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ({"nested": "x"}, 0.0),
        ("NaN", 0.0),
        (3, 3.0),
    ])
    def test_to_float(self, value, expected):
        result = to_float(value)
        assert result == expected
        assert not math.isnan(result)

    def test_to_float_rejects_infinite(self):
        assert to_float(float("inf")) == 0.0
        assert to_float("1e999") == 0.0

    @pytest.mark.parametrize("value,expected", [
        ("45", 45),
        ("45.7", 45),
        ("12-", -12),
        ("", 0),
        (None, 0),
        ("x", 0),
    ])
    def test_to_int(self, value, expected):
        assert to_int(value) == expected

    def test_to_str(self):
        assert to_str(None) == ""
        assert to_str({"a": 1}) == ""
        assert to_str("", "EUR") == "EUR"
        assert to_str("USD", "EUR") == "USD"
        assert to_str(True) == "X"

    @pytest.mark.parametrize("value,expected", [
        ("0000000123", "123"),
        ("0000000000", "0"),
        ("123", "123"),
        ("", ""),
        (None, ""),
        ("  0042 ", "42"),
    ])
    def test_strip_leading_zeros(self, value, expected):
        assert strip_leading_zeros(value) == expected

    @pytest.mark.parametrize("value,expected", [
        ("X", True),
        (" X ", True),
        (True, True),
        ("", False),
        (None, False),
        ("x", False),
        ("Y", False),
    ])
    def test_is_success(self, value, expected):
        assert is_success(value) is expected

    @pytest.mark.parametrize("days,bucket", [
        (0, "Current"),
        (-5, "Current"),
        (1, "1-30 Days"),
        (30, "1-30 Days"),
        (45, "31-60 Days"),
        (60, "31-60 Days"),
        (61, "61-90 Days"),
        (90, "61-90 Days"),
        (91, "90+ Days"),
    ])
    def test_aging_bucket(self, days, bucket):
        assert aging_bucket(days) == bucket
