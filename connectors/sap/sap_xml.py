"""XML response parsing for SAP SOAP calls.

Converts the SOAP response into a plain nested dict so per-function decoders
can navigate it by bare element names:

    <soap-env:Envelope>                      {"Envelope": {
      <soap-env:Body>                           "Body": {
        <n0:ZFM_X_RP_863Response>                 "ZFM_X_RP_863Response": {
          <EV_SUCCESS>X</EV_SUCCESS>                "EV_SUCCESS": "X",
          <ET_ROWS><item>..</item></ET_ROWS>        "ET_ROWS": {"item": {...}}

Conversion rules:
- Namespace prefixes are dropped from element names
- Text-only elements become strings, empty elements ""
- Repeated sibling elements become a list, a single one stays a dict
- Attributes go under "$", text next to children or attributes under "_"

The third rule is why repeating groups must always go through
coerce_repeating_group(): one row and many rows have different shapes.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Union

from lxml import etree

from connectors.sap.sap_errors import SapParseError


_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")

ATTRIBUTES_KEY = "$"
TEXT_KEY = "_"


def _local_name(tag: str) -> str:
    return etree.QName(tag).localname


def _element_to_value(element: etree._Element) -> Any:
    children = [child for child in element if isinstance(child.tag, str)]
    attributes = {_local_name(k): v for k, v in element.attrib.items()}
    text = element.text or ""

    if not children and not attributes:
        return text

    node: Dict[str, Any] = {}
    if attributes:
        node[ATTRIBUTES_KEY] = attributes
    if text.strip():
        node[TEXT_KEY] = text

    for child in children:
        name = _local_name(child.tag)
        value = _element_to_value(child)
        if name in node:
            existing = node[name]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[name] = [existing, value]
        else:
            node[name] = value
    return node


def _parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )


def parse_xml(text: Union[str, bytes]) -> Dict[str, Any]:
    """Parse XML text into a nested dict keyed by bare element names.

    Args:
        text: Raw response body

    Returns:
        {root_name: root_value}

    Raises:
        SapParseError: If the text is not well-formed XML
    """
    if isinstance(text, str):
        # lxml refuses str input that still declares an encoding
        text = _XML_DECLARATION.sub("", text, count=1)
    try:
        root = etree.fromstring(text, parser=_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        raise SapParseError(f"Failed to parse XML response: {e}") from e
    return {_local_name(root.tag): _element_to_value(root)}


def _soap_body(tree: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(tree, dict):
        return None
    envelope = tree.get("Envelope", tree)
    if not isinstance(envelope, dict):
        return None
    body = envelope.get("Body")
    if body is None:
        body = envelope.get("body")
    return body if isinstance(body, dict) else None


def extract_function_response(tree: Any, response_names: Sequence[str]) -> Any:
    """Find a function module's response element under Envelope/Body.

    Args:
        tree: Output of parse_xml()
        response_names: Candidate element names, tried in order

    Returns:
        The first matching response node, or None
    """
    body = _soap_body(tree)
    if body is None:
        return None
    for name in response_names:
        if name in body:
            return body[name]
    return None


def find_soap_fault(tree: Any) -> Optional[Dict[str, str]]:
    """Return {"faultcode", "faultstring"} when the Body holds a SOAP fault."""
    body = _soap_body(tree)
    if body is None or "Fault" not in body:
        return None

    fault = body["Fault"]
    if not isinstance(fault, dict):
        return {"faultcode": "", "faultstring": str(fault or "")}

    fault_code = fault.get("faultcode", "")
    fault_string = fault.get("faultstring", "")
    # SOAP 1.2 shape: Code/Value and Reason/Text
    if not fault_code and isinstance(fault.get("Code"), dict):
        fault_code = fault["Code"].get("Value", "")
    if not fault_string and isinstance(fault.get("Reason"), dict):
        fault_string = fault["Reason"].get("Text", "")
    if isinstance(fault_string, dict):
        fault_string = fault_string.get(TEXT_KEY, "")
    return {"faultcode": str(fault_code or ""), "faultstring": str(fault_string or "")}


def coerce_repeating_group(node: Any, group_field: str = "item") -> List[Any]:
    """Return the rows of a repeating group as a list.

    SAP table parameters arrive as <ET_X><item/>...</ET_X>. After conversion:
    - no rows: the field is missing (or the table element is empty)  → []
    - one row: the field holds a single dict                          → [row]
    - many rows: the field holds a list                               → the same list
    """
    if not isinstance(node, dict):
        return []
    value = node.get(group_field)
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
