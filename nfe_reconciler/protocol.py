"""
Authorization protocol (protNFe) classification.
"""

from typing import Optional

from .config import (
    PROTOCOL_MARKER_TAG,
    PROTOCOL_NUMBER_TAG,
    PROTOCOL_REASON_TAG,
    PROTOCOL_RECEIVED_TAG,
    PROTOCOL_STATUS_TAG,
)
from .document import FieldLookup, load_document
from .schemas import ProtocolInfo


def classify_protocol(raw_text: str, lookup: Optional[FieldLookup] = None) -> ProtocolInfo:
    """
    Classify the authorization protocol of one document.

    Without a protNFe marker the document has no protocol and no sub-fields
    are read. Otherwise status code, protocol number, reason text and receipt
    timestamp are extracted independently; the protocol is complete when the
    status code and protocol number are both present.

    Args:
        raw_text: Raw XML text of the document
        lookup: Lookup already built for the document, if any

    Returns:
        ProtocolInfo for the document
    """
    if lookup is None:
        lookup = load_document(raw_text)

    if not lookup.contains_marker(PROTOCOL_MARKER_TAG):
        return ProtocolInfo(present=False, complete=False)

    status_code = lookup.find_text(PROTOCOL_STATUS_TAG)
    protocol_number = lookup.find_text(PROTOCOL_NUMBER_TAG)

    return ProtocolInfo(
        present=True,
        complete=bool(status_code and protocol_number),
        status_code=status_code,
        protocol_number=protocol_number,
        reason_text=lookup.find_text(PROTOCOL_REASON_TAG),
        received_at=lookup.find_text(PROTOCOL_RECEIVED_TAG),
    )
