"""Human-readable messages from XML error bodies.

The API reports failures as::

    <error>
      <message>Account not found</message>
    </error>

Anything else (not XML, or XML without that structure) is shown as-is.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Iterator


def extract_error_message(body: str) -> str:
    """Return the text of every ``error/message`` element in *body*.

    ``message`` elements are matched at any depth below an ``error`` element,
    and their text is concatenated in document order. Namespace URIs are
    ignored when matching tag names.

    Args:
        body: Raw response body.

    Returns:
        The extracted message, or *body* unchanged when it is not well-formed
        XML or contains no ``error/message`` element.
    """
    try:
        root = ET.fromstring(body.encode("utf-8"))
    except ET.ParseError:
        return body

    messages = list(_error_messages(root, inside_error=False))
    if not messages:
        return body
    return "".join(messages)


def _strip_ns(tag: str) -> str:
    """Remove namespace URI prefix: ``{http://...}Name`` → ``Name``."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _error_messages(element: ET.Element, inside_error: bool) -> Iterator[str]:
    tag = _strip_ns(element.tag)
    if inside_error and tag == "message":
        yield "".join(element.itertext())
        return
    for child in element:
        yield from _error_messages(child, inside_error or tag == "error")
