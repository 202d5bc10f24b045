"""
NF-e Batch Reconciler

A Python service for reconciling batches of NF-e fiscal XML documents:
declared vs. paid amounts, authorization protocols, duplicate filings and
gaps in the invoice-number sequence.
"""

__version__ = "0.1.0"
__author__ = "NF-e Reconciler Team"

from .schemas import Document, ExtractedRecord, ProtocolInfo, Report
from .extractor import extract_document
from .engine import ReconciliationEngine, reconcile
from .worker import ReconciliationWorker

__all__ = [
    "Document",
    "ExtractedRecord",
    "ProtocolInfo",
    "Report",
    "extract_document",
    "ReconciliationEngine",
    "ReconciliationWorker",
    "reconcile",
]
