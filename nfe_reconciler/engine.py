"""
Reconciliation engine for a batch of NF-e documents.

This module orchestrates the per-document checks (extraction, protocol
classification, duplicate tracking, divergence detection) over a batch and
produces the final report. It talks to its host purely through messages:
zero or more progress messages followed by exactly one completed or failed
message.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pydantic import ValidationError

from .aggregator import ReportBuilder
from .config import AMOUNT_TOLERANCE, PROGRESS_CHECKPOINT, ExtractionStatus, logger
from .divergence import detect_divergence
from .duplicates import DuplicateTracker
from .exceptions import InvalidBatchError, ReconciliationCancelled
from .extractor import extract_document
from .gaps import analyze_gaps
from .progress import ProgressReporter
from .protocol import classify_protocol
from .schemas import (
    BatchRequest,
    CompletedMessage,
    DivergenceRecord,
    Document,
    ExtractedRecord,
    FailedMessage,
    OutboundMessage,
    ProtocolInfo,
    Report,
    ReportLog,
)

Emit = Callable[[OutboundMessage], None]
StopCheck = Callable[[], bool]

INVALID_BATCH_MESSAGE = "Invalid data received by the reconciler"


@dataclass
class DocumentOutcome:
    """
    Per-document result of the batch loop.

    Attributes:
        filename: Document name, used to key log entries
        status: ok, unrecognized or failed
        record: Extracted fields (ok only)
        protocol: Protocol classification (ok only)
        divergence: Declared/paid mismatch, if any (ok only)
        reason: Failure description (failed only)
        problems: Field-level extraction problems (ok only)
    """
    filename: str
    status: ExtractionStatus
    record: Optional[ExtractedRecord] = None
    protocol: Optional[ProtocolInfo] = None
    divergence: Optional[DivergenceRecord] = None
    reason: Optional[str] = None
    problems: list[str] = field(default_factory=list)


def _entry_name(entry: Any) -> str:
    if isinstance(entry, dict) and entry.get("name"):
        return str(entry["name"])
    return "<unnamed>"


def process_document(document: Document, tolerance: float = AMOUNT_TOLERANCE) -> DocumentOutcome:
    """
    Run the stateless checks on one document.

    Never raises; any fault becomes a failed outcome.
    """
    extraction = extract_document(document)
    if extraction.status != ExtractionStatus.OK:
        return DocumentOutcome(
            filename=document.filename,
            status=extraction.status,
            reason=extraction.reason,
        )

    try:
        protocol = classify_protocol(document.raw_text, extraction.lookup)
        divergence = detect_divergence(extraction.record, document.filename, protocol.present, tolerance)
    except Exception as e:
        logger.error(f"Failed to check {document.filename}: {e}")
        return DocumentOutcome(
            filename=document.filename,
            status=ExtractionStatus.FAILED,
            reason=str(e) or type(e).__name__,
        )

    return DocumentOutcome(
        filename=document.filename,
        status=ExtractionStatus.OK,
        record=extraction.record,
        protocol=protocol,
        divergence=divergence,
        problems=extraction.problems,
    )


def parse_request(payload: Any) -> BatchRequest:
    """
    Validate the inbound message.

    Raises:
        InvalidBatchError: If ``documents`` is missing or not a list
    """
    try:
        return BatchRequest.model_validate(payload)
    except ValidationError as e:
        raise InvalidBatchError(INVALID_BATCH_MESSAGE) from e


class ReconciliationEngine:
    """
    Single-threaded batch loop.

    One engine instance owns the aggregation state of one run at a time;
    documents are processed strictly in input order because first-seen wins
    for duplicate groups and for the reported issuer name.
    """

    def __init__(self, checkpoint: int = PROGRESS_CHECKPOINT, tolerance: float = AMOUNT_TOLERANCE):
        self.checkpoint = checkpoint
        self.tolerance = tolerance

    def run(
        self,
        documents: Sequence[Any],
        emit: Optional[Emit] = None,
        log: Optional[ReportLog] = None,
        should_stop: Optional[StopCheck] = None,
    ) -> Report:
        """
        Reconcile a batch and build its report.

        Args:
            documents: Inbound ``{name, content}`` entries, in upload order
            emit: Receives progress messages; may be None
            log: Pre-populated batch log (e.g. upload rejections)
            should_stop: Polled before each document; returning True abandons the run

        Returns:
            The final Report

        Raises:
            ReconciliationCancelled: If ``should_stop`` returned True
        """
        logger.info(f"Reconciling batch of {len(documents)} documents")

        builder = ReportBuilder(log)
        tracker = DuplicateTracker()
        reporter = ProgressReporter(len(documents), emit or (lambda message: None), self.checkpoint)

        for index, entry in enumerate(documents):
            if should_stop is not None and should_stop():
                logger.info(f"Reconciliation cancelled after {index} of {len(documents)} documents")
                raise ReconciliationCancelled(f"Cancelled after {index} documents")
            builder.count_processed()
            outcome = self._process_entry(entry)
            self._fold(outcome, builder, tracker)
            reporter.document_done(index)

        gaps = analyze_gaps(builder.numbers)
        if gaps.found_count:
            builder.log.note(
                f"Detected range {gaps.min_number}-{gaps.max_number}: "
                f"{gaps.range_size} numbers, {gaps.found_count} found, {len(gaps.missing)} missing"
            )
        duplicates = tracker.groups()
        builder.log.note(f"Duplicate groups: {len(duplicates)}")

        report = builder.build(gaps, duplicates)
        logger.info(
            f"Reconciliation complete: {report.total_processed} processed, "
            f"{len(report.divergences)} divergences, {len(report.duplicates)} duplicates, "
            f"{len(report.missing_numbers)} missing numbers, {len(report.log.errors)} errors"
        )
        return report

    def _process_entry(self, entry: Any) -> DocumentOutcome:
        try:
            document = Document.from_entry(entry)
        except ValueError as e:
            return DocumentOutcome(filename=_entry_name(entry), status=ExtractionStatus.FAILED, reason=str(e))
        return process_document(document, self.tolerance)

    def _fold(self, outcome: DocumentOutcome, builder: ReportBuilder, tracker: DuplicateTracker) -> None:
        log = builder.log

        if outcome.status == ExtractionStatus.UNRECOGNIZED:
            log.warning(f"File {outcome.filename}: XML structure not recognized")
            return
        if outcome.status == ExtractionStatus.FAILED:
            log.error(f"File {outcome.filename}: {outcome.reason}")
            return

        for problem in outcome.problems:
            log.error(f"File {outcome.filename}: {problem}")

        record = outcome.record
        builder.add_record(record)
        builder.add_protocol(record, outcome.filename, outcome.protocol)
        tracker.observe(record, outcome.filename, log)
        builder.add_divergence(outcome.divergence)

    def handle_message(
        self,
        payload: Any,
        emit: Emit,
        log: Optional[ReportLog] = None,
        should_stop: Optional[StopCheck] = None,
    ) -> None:
        """
        Process one inbound message end to end.

        Emits progress messages and then exactly one terminal message:
        CompletedMessage with the report, or FailedMessage when the payload
        is malformed or the run faults. A cancelled run emits no terminal
        message. Never raises.
        """
        try:
            request = parse_request(payload)
        except InvalidBatchError as e:
            logger.error(f"Rejected batch: {e.__cause__}")
            emit(FailedMessage(message=str(e)))
            return

        try:
            report = self.run(request.documents, emit, log, should_stop)
        except ReconciliationCancelled:
            return
        except Exception as e:
            logger.exception("Reconciliation failed")
            emit(FailedMessage(message=str(e) or "Unknown reconciliation error"))
            return

        emit(CompletedMessage(report=report))


def reconcile(payload: Any, checkpoint: int = PROGRESS_CHECKPOINT) -> list[OutboundMessage]:
    """Run one inbound message synchronously and collect every outbound message."""
    messages: list[OutboundMessage] = []
    ReconciliationEngine(checkpoint=checkpoint).handle_message(payload, messages.append)
    return messages
