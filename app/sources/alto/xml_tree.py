"""
Alto XML decoding.

Alto returns every record as XML. We decode it into a plain tree of
string-keyed lists so the rest of the pipeline never touches ElementTree:

    <property id="1"><bedrooms>3</bedrooms><price currency="GBP">950</price></property>

becomes

    {"property": [{"id": ["1"], "bedrooms": ["3"],
                   "price": [{"currency": ["GBP"], "$t": "950"}]}]}

Every child element maps to a list of its occurrences, even when the
element appears once. Leaf elements without attributes collapse to their
stripped text. get_field() walks this tree with dotted paths.
"""

import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional, Union

TEXT_KEY = "$t"

XmlNode = Dict[str, Any]
XmlValue = Union[str, XmlNode, List[Any]]


class XmlParseError(ValueError):
    """Raised when a vendor response is not well-formed XML."""


def _local_name(tag: str) -> str:
    # Drop "{namespace}" prefixes
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    return tag


def _element_to_value(element: ET.Element) -> XmlValue:
    text = (element.text or "").strip()
    children = list(element)

    if not children and not element.attrib:
        return text

    node: XmlNode = {}
    for name, value in element.attrib.items():
        node[_local_name(name)] = [value]
    for child in children:
        node.setdefault(_local_name(child.tag), []).append(_element_to_value(child))
    if text:
        node[TEXT_KEY] = text
    return node


def parse_xml(text: str) -> XmlNode:
    """
    Parse vendor XML text into a nested mapping.

    Args:
        text: Raw XML document

    Returns:
        {root_tag: [root_value]}

    Raises:
        XmlParseError: If the document is not well-formed
    """
    try:
        root = ET.fromstring(text.strip())
    except ET.ParseError as e:
        raise XmlParseError(f"Invalid XML: {e}") from e
    return {_local_name(root.tag): [_element_to_value(root)]}


def _unwrap(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def get_field(tree: Any, path: str) -> Optional[Any]:
    """
    Read a dotted path from a decoded XML tree.

    Single-element lists are unwrapped transparently at every step.
    Returns None as soon as a segment is missing, and for empty text.
    """
    current = tree
    for key in path.split("."):
        current = _unwrap(current)
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None

    current = _unwrap(current)
    if current == "" or current == {}:
        return None
    return current


def get_text(tree: Any, path: str) -> Optional[str]:
    """
    Like get_field() but always returns text.

    Elements that carried attributes are stored as mappings; their text
    content lives under the "$t" key.
    """
    value = get_field(tree, path)
    if isinstance(value, dict):
        value = value.get(TEXT_KEY)
    if value is None:
        return None
    return str(value)


def as_list(value: Any) -> List[Any]:
    """Normalize a single node, a list of nodes or None into a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
