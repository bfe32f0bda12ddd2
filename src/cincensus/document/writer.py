"""
CIN Census Markup Writer

Serializes an element tree to the byte form of a census return: an XML
declaration followed by the markup, with empty elements written as an
explicit start/end pair.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def write_document(root: ET.Element, pretty: bool = False) -> bytes:
    """
    Render an element tree to UTF-8 bytes.

    Args:
        root: Root element to serialize
        pretty: Indent nested elements (two spaces per level)

    Returns:
        The serialized document
    """
    if pretty:
        ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode", short_empty_elements=False)
    separator = "\n" if pretty else ""
    return (XML_DECLARATION + separator + body).encode("utf-8")
