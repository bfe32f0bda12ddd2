"""
CIN Census Source Document

Wraps a parsed ElementTree with the two things extraction needs:

- Synthetic identities: every element gets an integer identity from a
  document-order counter, so sibling order equals identity order.
- Location resolution: a small addressing language relative to an element.

Location grammar (relative to the element being extracted):
    "."                   inner text of the element
    "@name"               attribute value
    "A/B"                 inner text of a descendant path ("..") moves up
    "#id" / "#parent"     identity of the element / of its parent
    "../../#id"           a path followed by an identity or attribute token
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional, Union

from ..exceptions import ParseError

logger = logging.getLogger(__name__)

ROOT_TAG = "Message"


class SourceDocument:
    """
    A parsed census return with synthetic identities.

    Attributes:
        root: Root element (always <Message>)
        source: Name of the file the document came from, if any
    """

    def __init__(self, root: ET.Element, source: Optional[str] = None) -> None:
        if root.tag != ROOT_TAG:
            raise ParseError(
                message=f"Expected root element <{ROOT_TAG}>, found <{root.tag}>",
                details={"root": root.tag},
                source=source,
            )
        self.root = root
        self.source = source
        self._ids: dict[ET.Element, int] = {}
        self._parents: dict[ET.Element, ET.Element] = {}
        for index, element in enumerate(root.iter()):
            self._ids[element] = index
            for child in element:
                self._parents[child] = element

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_bytes(cls, data: Union[bytes, str], source: Optional[str] = None) -> SourceDocument:
        """
        Parse a document from bytes or text.

        Raises:
            ParseError: If the markup is not well-formed or the root is wrong
        """
        try:
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise ParseError(
                message=f"Document is not well-formed: {e}",
                details={"position": list(e.position)},
                source=source,
            ) from e
        return cls(root, source=source)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> SourceDocument:
        """
        Parse a document from a file.

        Raises:
            ParseError: If the file cannot be read or parsed
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ParseError(
                message=f"Cannot read document: {e}",
                source=str(path),
            ) from e
        logger.debug("Read %d bytes from %s", len(data), path)
        return cls.from_bytes(data, source=str(path))

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def identity(self, element: ET.Element) -> int:
        """Synthetic identity of an element."""
        return self._ids[element]

    def parent(self, element: ET.Element) -> Optional[ET.Element]:
        """Containing element, None for the root."""
        return self._parents.get(element)

    def parent_identity(self, element: ET.Element) -> Optional[int]:
        parent = self.parent(element)
        return None if parent is None else self._ids[parent]

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select(self, path: str) -> list[ET.Element]:
        """
        Elements matching an absolute path, in document order.

        Args:
            path: Absolute path such as "/Message/Children/Child"

        Returns:
            Matching elements (empty if none match)
        """
        parts = [p for p in path.strip("/").split("/") if p]
        if not parts or parts[0] != self.root.tag:
            return []
        if len(parts) == 1:
            return [self.root]
        return self.root.findall("/".join(parts[1:]))

    def resolve(self, element: ET.Element, location: str) -> Optional[str]:
        """
        Resolve a location relative to an element to its raw text.

        Returns:
            Raw text, or None when the location does not resolve
        """
        head, _, token = location.rpartition("/")
        if not token:
            return None

        target: Optional[ET.Element] = element
        if head:
            target = self._walk(element, head)
        if target is None:
            return None

        if token == ".":
            return target.text
        if token.startswith("@"):
            return target.get(token[1:])
        if token == "#id":
            return str(self._ids[target])
        if token == "#parent":
            parent_id = self.parent_identity(target)
            return None if parent_id is None else str(parent_id)
        if token == "..":
            parent = self.parent(target)
            return None if parent is None else parent.text

        child = target.find(token)
        return None if child is None else child.text

    def _walk(self, element: ET.Element, path: str) -> Optional[ET.Element]:
        current: Optional[ET.Element] = element
        for step in path.split("/"):
            if current is None:
                return None
            if step in ("", "."):
                continue
            if step == "..":
                current = self.parent(current)
            else:
                current = current.find(step)
        return current

    def __repr__(self) -> str:
        return f"SourceDocument(source={self.source!r}, elements={len(self._ids)})"
