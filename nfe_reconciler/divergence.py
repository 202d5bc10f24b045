"""
Declared vs. paid amount divergence check.
"""

from typing import Optional

from .config import AMOUNT_TOLERANCE, UNKNOWN_NUMBER, DivergenceStatus
from .schemas import DivergenceRecord, ExtractedRecord


def amounts_match(a: float, b: float, tolerance: float = AMOUNT_TOLERANCE) -> bool:
    """True if two amounts differ by no more than the tolerance."""
    # float noise below a micro-unit must not push a boundary case over
    return round(abs(a - b), 6) <= tolerance


def detect_divergence(
    record: ExtractedRecord,
    filename: str,
    protocol_present: bool,
    tolerance: float = AMOUNT_TOLERANCE,
) -> Optional[DivergenceRecord]:
    """
    Flag a document whose declared total differs from the amount paid.

    The boundary is exclusive: a difference of exactly the tolerance is not
    a divergence. A document with both amounts unparsable (0 and 0) is
    therefore never flagged.
    """
    if amounts_match(record.net_value, record.paid_value, tolerance):
        return None

    if record.net_value > record.paid_value:
        status = DivergenceStatus.NET_GREATER
    else:
        status = DivergenceStatus.PAID_GREATER

    return DivergenceRecord(
        number=record.number if record.number is not None else UNKNOWN_NUMBER,
        filename=filename,
        net_value=record.net_value,
        paid_value=record.paid_value,
        difference=record.net_value - record.paid_value,
        status=status,
        protocol_present=protocol_present,
    )
