"""Small helpers for the XML files found in Maven repositories."""

from __future__ import annotations

import xml.etree.ElementTree as ET


def parse_xml(data: bytes) -> ET.Element:
    """Parse XML and drop namespaces from tags.

    POMs usually declare ``http://maven.apache.org/POM/4.0.0`` as default
    namespace and some do not; stripping lets one set of paths work for both.

    Raises:
        ET.ParseError: data is not well-formed XML
    """
    root = ET.fromstring(data)
    for element in root.iter():
        if isinstance(element.tag, str) and "}" in element.tag:
            element.tag = element.tag.rpartition("}")[2]
    return root


def text_of(element: ET.Element | None, path: str, default: str | None = None) -> str | None:
    """Stripped text of the child at ``path``, or default when absent or empty."""
    if element is None:
        return default
    value = element.findtext(path)
    if value is None:
        return default
    value = value.strip()
    return value or default
