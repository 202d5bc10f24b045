"""
Configuration constants and enums for the NF-e Batch Reconciler.
"""

import logging
import os
from enum import Enum
from typing import Final

# ============================================================================
# Reconciliation Tolerances
# ============================================================================

# Absolute tolerance when comparing declared (vNF) and paid (vPag) amounts
AMOUNT_TOLERANCE: Final[float] = float(os.getenv("AMOUNT_TOLERANCE", "0.009"))

# A progress event is emitted every N documents and on the last one
PROGRESS_CHECKPOINT: Final[int] = int(os.getenv("PROGRESS_CHECKPOINT", "100"))

# ============================================================================
# Field Path Variants
# ============================================================================
#
# Each path is a chain of element names matched as descendants of one
# another. Variants are tried in order and the first non-empty text wins.

# Paths that decide whether a document is a recognizable NF-e at all
STRUCTURE_NUMBER_PATHS: Final[list[str]] = [
    "nfeProc NFe infNFe ide nNF",
    "NFe infNFe ide nNF",
    "infNFe ide nNF",
]

INVOICE_NUMBER_PATHS: Final[list[str]] = STRUCTURE_NUMBER_PATHS + [
    "ide nNF",
    "nNF",
]

SERIES_PATHS: Final[list[str]] = [
    "nfeProc NFe infNFe ide serie",
    "NFe infNFe ide serie",
    "infNFe ide serie",
    "ide serie",
    "serie",
]

ISSUER_NAME_PATHS: Final[list[str]] = [
    "nfeProc NFe infNFe emit xNome",
    "NFe infNFe emit xNome",
    "infNFe emit xNome",
    "emit xNome",
]

DECLARED_VALUE_PATHS: Final[list[str]] = [
    "infNFe total ICMSTot vNF",
    "total ICMSTot vNF",
    "ICMSTot vNF",
    "vNF",
]

# Every occurrence of this element is summed (installments)
PAYMENT_AMOUNT_TAG: Final[str] = "vPag"

# Used only when the summed installments come to exactly zero
PAYMENT_NODE_PATHS: Final[list[str]] = [
    "infNFe pag vPag",
    "pag vPag",
    "detPag vPag",
]

# ============================================================================
# Authorization Protocol
# ============================================================================

PROTOCOL_MARKER_TAG: Final[str] = "protNFe"
PROTOCOL_STATUS_TAG: Final[str] = "cStat"
PROTOCOL_NUMBER_TAG: Final[str] = "nProt"
PROTOCOL_REASON_TAG: Final[str] = "xMotivo"
PROTOCOL_RECEIVED_TAG: Final[str] = "dhRecbto"

# ============================================================================
# Report Labels
# ============================================================================

UNKNOWN_NUMBER: Final[str] = "unknown"
UNKNOWN_SERIES: Final[str] = "unknown"
UNKNOWN_ISSUER: Final[str] = "not identified"

MISSING_PROTOCOL_REASON: Final[str] = "Authorization protocol not found"
INCOMPLETE_PROTOCOL_REASON: Final[str] = "Incomplete protocol"


class ProtocolOutcome(str, Enum):
    """Three-way classification of a document's authorization protocol."""
    MISSING = "missing"
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"


class DivergenceStatus(str, Enum):
    """Which side of a declared/paid mismatch is larger."""
    NET_GREATER = "net-greater"
    PAID_GREATER = "paid-greater"


class DuplicateKind(str, Enum):
    """Pool a duplicate group was detected in."""
    NORMAL = "normal"
    FALLBACK = "fallback"


class ExtractionStatus(str, Enum):
    """Per-document extraction outcome."""
    OK = "ok"
    UNRECOGNIZED = "unrecognized"
    FAILED = "failed"


# ============================================================================
# API Configuration
# ============================================================================

API_HOST: Final[str] = os.getenv("API_HOST", "0.0.0.0")
API_PORT: Final[int] = int(os.getenv("API_PORT", "8000"))
MAX_UPLOAD_SIZE_MB: Final[int] = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))

# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO")

def setup_logging() -> logging.Logger:
    """Configure and return the application logger."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("nfe_reconciler")


logger = setup_logging()
