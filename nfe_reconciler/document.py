"""
Field lookup over a single NF-e document.

A path is a space-separated chain of element names (``"NFe infNFe ide nNF"``)
matched as descendants of one another, ignoring namespaces. Two strategies
implement the same lookup interface:

- ParsedDocument walks an lxml tree and is used for well-formed XML
- PatternDocument scans the raw text and is used when parsing fails

``load_document`` picks the strategy for a given text.
"""

import re
from functools import lru_cache
from typing import Optional, Protocol

from lxml import etree

from .config import logger


# Entities are never expanded and nothing is fetched from the network
XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


class FieldLookup(Protocol):
    """Given a field path, return the optional matched text."""

    def find_text(self, path: str) -> Optional[str]:
        ...

    def find_all_text(self, tag: str) -> list[str]:
        ...

    def contains_marker(self, tag: str) -> bool:
        ...


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


# ============================================================================
# Structured Strategy
# ============================================================================

@lru_cache(maxsize=128)
def _compile_path(path: str) -> etree.XPath:
    steps = "".join(f"//*[local-name()='{tag}']" for tag in path.split())
    return etree.XPath(f"({steps})[1]")


@lru_cache(maxsize=32)
def _compile_tag(tag: str) -> etree.XPath:
    return etree.XPath(f"//*[local-name()='{tag}']")


class ParsedDocument:
    """Lookup backed by a parsed lxml element tree."""

    def __init__(self, root: etree._Element):
        self._root = root

    @classmethod
    def parse(cls, raw_text: str) -> "ParsedDocument":
        """
        Parse XML text into a document.

        Raises:
            etree.XMLSyntaxError: If the text is not well-formed XML
        """
        # lxml refuses str input carrying an encoding declaration
        text = _XML_DECLARATION.sub("", raw_text.lstrip("\ufeff"), count=1)
        return cls(etree.fromstring(text, parser=XML_PARSER))

    def find_text(self, path: str) -> Optional[str]:
        nodes = _compile_path(path)(self._root)
        if not nodes:
            return None
        return _clean("".join(nodes[0].itertext()))

    def find_all_text(self, tag: str) -> list[str]:
        return ["".join(node.itertext()) for node in _compile_tag(tag)(self._root)]

    def contains_marker(self, tag: str) -> bool:
        return bool(_compile_tag(tag)(self._root))


# ============================================================================
# Text-pattern Strategy
# ============================================================================

@lru_cache(maxsize=128)
def _element_pattern(tag: str) -> re.Pattern:
    name = re.escape(tag)
    return re.compile(
        rf"<(?:[\w.-]+:)?{name}(?:\s[^>]*)?>(.*?)</(?:[\w.-]+:)?{name}\s*>",
        re.DOTALL,
    )


_TAG = re.compile(r"<[^>]+>")


class PatternDocument:
    """Lookup that scans raw text for element markers, for malformed XML."""

    def __init__(self, raw_text: str):
        self._text = raw_text

    def find_text(self, path: str) -> Optional[str]:
        current = self._text
        for tag in path.split():
            match = _element_pattern(tag).search(current)
            if not match:
                return None
            current = match.group(1)
        return _clean(_TAG.sub("", current))

    def find_all_text(self, tag: str) -> list[str]:
        return [_TAG.sub("", m.group(1)) for m in _element_pattern(tag).finditer(self._text)]

    def contains_marker(self, tag: str) -> bool:
        return re.search(rf"<(?:[\w.-]+:)?{re.escape(tag)}[\s/>]", self._text) is not None


def load_document(raw_text: str) -> FieldLookup:
    """
    Build the field lookup for one document.

    Well-formed XML gets a ParsedDocument; anything lxml rejects falls back
    to PatternDocument so best-effort extraction can still proceed.
    """
    try:
        return ParsedDocument.parse(raw_text)
    except (etree.XMLSyntaxError, ValueError) as e:
        logger.debug(f"XML parse failed, using text-pattern lookup: {e}")
        return PatternDocument(raw_text)
