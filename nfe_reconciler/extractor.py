"""
Field extraction for NF-e documents.

This module provides functionality to:
- Decide whether a document has a recognizable NF-e structure
- Pull number, series, issuer and monetary fields using ordered path variants
- Parse locale-formatted numbers the way the issuing systems write them
- Return an explicit per-document outcome instead of raising
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional, TypeVar, Union

from .config import (
    DECLARED_VALUE_PATHS,
    INVOICE_NUMBER_PATHS,
    ISSUER_NAME_PATHS,
    PAYMENT_AMOUNT_TAG,
    PAYMENT_NODE_PATHS,
    SERIES_PATHS,
    STRUCTURE_NUMBER_PATHS,
    ExtractionStatus,
    logger,
)
from .document import FieldLookup, load_document
from .schemas import Document, ExtractedRecord

T = TypeVar("T")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


# ============================================================================
# Value Parsing
# ============================================================================

def parse_integer(value: Optional[str]) -> Optional[int]:
    """
    Parse the leading integer of a text value.

    Trailing garbage is ignored ("12a" -> 12); text without leading digits
    yields None.
    """
    if not value:
        return None
    match = _LEADING_INT.match(value)
    if not match:
        return None
    return int(match.group(1))


def parse_series(value: Optional[str]) -> Optional[Union[int, str]]:
    """Series as an integer when it parses, otherwise the raw text."""
    if not value:
        return None
    number = parse_integer(value)
    return number if number is not None else value


def parse_amount(value: Optional[str]) -> float:
    """
    Parse a monetary value written with either decimal separator.

    The first comma is read as the decimal point ("257,04" -> 257.04).
    Unparsable text yields 0.0.
    """
    if not value:
        return 0.0
    match = _LEADING_FLOAT.match(value.replace(",", ".", 1))
    if not match:
        return 0.0
    return float(match.group(1))


# ============================================================================
# Field Lookup Helpers
# ============================================================================

def first_text(lookup: FieldLookup, paths: list[str]) -> Optional[str]:
    """Return the text of the first path variant that yields non-empty text."""
    for path in paths:
        text = lookup.find_text(path)
        if text:
            return text
    return None


def is_recognized_structure(lookup: FieldLookup) -> bool:
    """True if any of the structural invoice-number paths resolves."""
    return first_text(lookup, STRUCTURE_NUMBER_PATHS) is not None


def extract_paid_value(lookup: FieldLookup) -> float:
    """
    Sum every payment amount in the document.

    An invoice may be settled in several installments, each carrying its own
    vPag. Only when that sum is exactly zero is the nested payment node
    consulted.
    """
    paid = sum(parse_amount(text) for text in lookup.find_all_text(PAYMENT_AMOUNT_TAG))
    if paid == 0:
        paid = parse_amount(first_text(lookup, PAYMENT_NODE_PATHS))
    return paid


def _safe(name: str, fn: Callable[[], T], default: T, problems: list[str]) -> T:
    try:
        return fn()
    except Exception as e:
        logger.debug(f"Field {name} extraction failed: {e}")
        problems.append(f"Error extracting {name} - {e}")
        return default


def extract_fields(lookup: FieldLookup) -> tuple[ExtractedRecord, list[str]]:
    """
    Extract all fiscal fields from one document.

    Each field is extracted independently; a failure degrades that field to
    its default and is reported in the returned problem list.

    Returns:
        Tuple of (extracted record, list of field-level problem messages)
    """
    problems: list[str] = []

    number = _safe(
        "invoice number",
        lambda: parse_integer(first_text(lookup, INVOICE_NUMBER_PATHS)),
        None,
        problems,
    )
    series = _safe("series", lambda: parse_series(first_text(lookup, SERIES_PATHS)), None, problems)
    issuer_name = _safe("issuer name", lambda: first_text(lookup, ISSUER_NAME_PATHS) or "", "", problems)
    net_value = _safe(
        "declared value",
        lambda: parse_amount(first_text(lookup, DECLARED_VALUE_PATHS)),
        0.0,
        problems,
    )
    paid_value = _safe("paid value", lambda: extract_paid_value(lookup), 0.0, problems)

    record = ExtractedRecord(
        number=number,
        series=series,
        net_value=net_value,
        paid_value=paid_value,
        issuer_name=issuer_name,
    )
    return record, problems


# ============================================================================
# Main Extraction Function
# ============================================================================

@dataclass
class ExtractionOutcome:
    """
    Result of extracting one document.

    Attributes:
        status: ok, unrecognized (no known number path) or failed
        record: Extracted fields, set only when status is ok
        lookup: Field lookup built for the document, reused by later checks
        reason: Failure description when status is failed
        problems: Field-level problems that degraded individual fields
    """
    status: ExtractionStatus
    record: Optional[ExtractedRecord] = None
    lookup: Optional[FieldLookup] = None
    reason: Optional[str] = None
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == ExtractionStatus.OK


def extract_document(document: Document) -> ExtractionOutcome:
    """
    Extract the fiscal record of a single document.

    Never raises: unexpected faults are returned as a failed outcome so the
    batch loop can record them and move on.
    """
    try:
        lookup = load_document(document.raw_text)
        if not is_recognized_structure(lookup):
            return ExtractionOutcome(status=ExtractionStatus.UNRECOGNIZED, lookup=lookup)
        record, problems = extract_fields(lookup)
    except Exception as e:
        logger.error(f"Failed to extract {document.filename}: {e}")
        return ExtractionOutcome(status=ExtractionStatus.FAILED, reason=str(e) or type(e).__name__)

    return ExtractionOutcome(
        status=ExtractionStatus.OK,
        record=record,
        lookup=lookup,
        problems=problems,
    )
