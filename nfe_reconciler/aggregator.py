"""
Report assembly for one reconciliation batch.

ReportBuilder folds per-document outcomes into running totals while the batch
loop runs, then merges the gap analysis and duplicate groups into the final,
immutable Report.
"""

from typing import Optional

from .config import (
    INCOMPLETE_PROTOCOL_REASON,
    MISSING_PROTOCOL_REASON,
    UNKNOWN_ISSUER,
    UNKNOWN_NUMBER,
    DuplicateKind,
    ProtocolOutcome,
)
from .schemas import (
    DivergenceRecord,
    DuplicateGroup,
    DuplicateStats,
    ExtractedRecord,
    GapReport,
    ProtocolInfo,
    ProtocolIssue,
    ProtocolStatus,
    RangeMetadata,
    Report,
    ReportLog,
)


class ReportBuilder:
    """Running aggregation state owned by a single batch run."""

    def __init__(self, log: Optional[ReportLog] = None):
        self.log = log if log is not None else ReportLog()
        self.total_processed = 0
        self.sum_net = 0.0
        self.sum_paid = 0.0
        self.issuer_name = ""
        self.numbers: set[int] = set()
        self.divergences: list[DivergenceRecord] = []
        self.missing_protocol: list[ProtocolIssue] = []
        self.incomplete_protocol: list[ProtocolIssue] = []
        self._protocol_total = 0
        self._with_protocol = 0
        self._incomplete = 0
        self._missing = 0

    def count_processed(self) -> None:
        """Count one attempted document, whatever its outcome."""
        self.total_processed += 1

    def add_record(self, record: ExtractedRecord) -> None:
        """Fold the extracted fields of a recognized document into the totals."""
        if record.issuer_name and not self.issuer_name:
            self.issuer_name = record.issuer_name
        if record.number is not None:
            self.numbers.add(record.number)
        self.sum_net += record.net_value
        self.sum_paid += record.paid_value

    def add_protocol(self, record: ExtractedRecord, filename: str, protocol: ProtocolInfo) -> None:
        self._protocol_total += 1
        number = record.number if record.number is not None else UNKNOWN_NUMBER
        outcome = protocol.outcome

        if outcome == ProtocolOutcome.MISSING:
            self._missing += 1
            self.missing_protocol.append(ProtocolIssue(
                number=number,
                filename=filename,
                reason=MISSING_PROTOCOL_REASON,
            ))
        elif outcome == ProtocolOutcome.INCOMPLETE:
            self._incomplete += 1
            self.incomplete_protocol.append(ProtocolIssue(
                number=number,
                filename=filename,
                reason=INCOMPLETE_PROTOCOL_REASON,
                details=protocol,
            ))
        else:
            self._with_protocol += 1

    def add_divergence(self, divergence: Optional[DivergenceRecord]) -> None:
        if divergence is not None:
            self.divergences.append(divergence)

    @property
    def protocol_status(self) -> ProtocolStatus:
        return ProtocolStatus(
            total=self._protocol_total,
            with_protocol=self._with_protocol,
            incomplete=self._incomplete,
            missing=self._missing,
        )

    def build(self, gaps: GapReport, duplicates: list[DuplicateGroup]) -> Report:
        """
        Produce the final report.

        Args:
            gaps: Gap analysis over the collected numbers
            duplicates: Realized duplicate groups, composite-key groups first
        """
        status = self.protocol_status
        with_series = sum(1 for group in duplicates if group.kind == DuplicateKind.NORMAL)
        percent = round(status.with_protocol / status.total * 100, 1) if status.total else 0.0

        return Report(
            total_processed=self.total_processed,
            sum_net=self.sum_net,
            sum_paid=self.sum_paid,
            total_difference=self.sum_net - self.sum_paid,
            divergences=tuple(self.divergences),
            duplicates=tuple(duplicates),
            missing_numbers=tuple(gaps.missing),
            protocol_status=status,
            documents_missing_protocol=tuple(self.missing_protocol),
            documents_incomplete_protocol=tuple(self.incomplete_protocol),
            issuer_name=self.issuer_name or UNKNOWN_ISSUER,
            percent_with_protocol=percent,
            all_have_protocol=status.missing == 0,
            range_metadata=RangeMetadata(
                min_number=gaps.min_number,
                max_number=gaps.max_number,
                range_size=gaps.range_size,
                found_count=gaps.found_count,
            ),
            duplicate_stats=DuplicateStats(
                total=len(duplicates),
                with_series=with_series,
                without_series=len(duplicates) - with_series,
            ),
            log=self.log.snapshot(),
        )
