"""
Pydantic models for reconciliation inputs, intermediate records and reports.

This module defines the core data structures used throughout the reconciler:
- Document and ExtractedRecord for per-document input and extracted fields
- ProtocolInfo, DuplicateGroup, DivergenceRecord and GapReport for findings
- Report for the batch-level outcome
- Progress, completion and failure messages exchanged with the host

Every model serializes with camelCase aliases (``model_dump(by_alias=True)``)
so the report matches the shape the report renderer consumes.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import DivergenceStatus, DuplicateKind, ProtocolOutcome


class WireModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenWireModel(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ============================================================================
# Input
# ============================================================================

class Document(FrozenWireModel):
    """
    One uploaded invoice document.

    Attributes:
        filename: Name the document was uploaded under
        raw_text: Full XML text of the document
    """
    filename: str = Field(..., description="Name the document was uploaded under")
    raw_text: str = Field(..., description="Raw XML text of the document")

    @classmethod
    def from_entry(cls, entry: Any) -> "Document":
        """
        Build a Document from an inbound ``{name, content}`` entry.

        Raises:
            ValueError: If the entry is not a mapping or has no text content
        """
        if not isinstance(entry, dict):
            raise ValueError("Document entry is not an object")
        content = entry.get("content")
        if not isinstance(content, str):
            raise ValueError("Document content is missing or not text")
        return cls(filename=str(entry.get("name") or ""), raw_text=content)


class ExtractedRecord(FrozenWireModel):
    """Fiscal fields extracted from a single document."""
    number: Optional[int] = Field(None, description="Invoice number (nNF); None if unparsable")
    series: Optional[Union[int, str]] = Field(None, description="Invoice series (serie)")
    net_value: float = Field(0.0, description="Declared invoice total (vNF)")
    paid_value: float = Field(0.0, description="Sum of paid amounts (vPag)")
    issuer_name: str = Field("", description="Issuer legal name (emit/xNome)")


# ============================================================================
# Per-document Findings
# ============================================================================

class ProtocolInfo(FrozenWireModel):
    """
    Authorization protocol (protNFe) state of one document.

    ``complete`` is true only when both the status code and the protocol
    number are present; reason text and receipt timestamp are informative.
    """
    present: bool = Field(..., description="True if a protNFe block exists")
    complete: bool = Field(..., description="True if cStat and nProt are both present")
    status_code: Optional[str] = Field(None, description="cStat")
    protocol_number: Optional[str] = Field(None, description="nProt")
    reason_text: Optional[str] = Field(None, description="xMotivo")
    received_at: Optional[str] = Field(None, description="dhRecbto")

    @property
    def outcome(self) -> ProtocolOutcome:
        if not self.present:
            return ProtocolOutcome.MISSING
        if not self.complete:
            return ProtocolOutcome.INCOMPLETE
        return ProtocolOutcome.COMPLETE


class DuplicateGroup(FrozenWireModel):
    """
    Set of documents sharing one invoice identity.

    Created the moment a key is seen a second time. ``filenames`` starts with
    the first-seen file and never holds the same name twice; a repeat
    sighting produces a new group via ``with_filename``.
    """
    key: str = Field(..., description="Composite 'series-number' key, or 'fallback-number'")
    number: Union[int, str] = Field(..., description="Invoice number")
    series: Union[int, str] = Field(..., description="Series, or 'unknown' in the fallback pool")
    issuer_name: str = Field("", description="Issuer name of the first-seen document")
    filenames: tuple[str, ...] = Field(default_factory=tuple, description="Files sharing the key, in order seen")
    degraded: bool = Field(False, description="True if grouped by number alone")
    kind: DuplicateKind = Field(DuplicateKind.NORMAL, description="Pool the group belongs to")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "key": "1-10",
                    "number": 10,
                    "series": 1,
                    "issuerName": "Comercial Exemplo Ltda",
                    "filenames": ["nfe-10.xml", "nfe-10-copy.xml"],
                    "degraded": False,
                    "kind": "normal"
                }
            ]
        }
    }

    def with_filename(self, filename: str) -> "DuplicateGroup":
        if filename in self.filenames:
            return self
        return self.model_copy(update={"filenames": self.filenames + (filename,)})


class DivergenceRecord(FrozenWireModel):
    """Declared vs. paid mismatch beyond tolerance for one document."""
    number: Union[int, str] = Field(..., description="Invoice number, or 'unknown'")
    filename: str
    net_value: float
    paid_value: float
    difference: float = Field(..., description="net_value - paid_value")
    status: DivergenceStatus
    protocol_present: bool


class GapReport(FrozenWireModel):
    """Missing invoice numbers within the observed min..max range."""
    missing: list[int] = Field(default_factory=list, description="Absent numbers, ascending")
    min_number: int = 0
    max_number: int = 0
    range_size: int = 0
    found_count: int = 0


# ============================================================================
# Report
# ============================================================================

class ProtocolStatus(FrozenWireModel):
    """Protocol tallies over the recognized documents."""
    total: int = Field(0, ge=0)
    with_protocol: int = Field(0, ge=0)
    incomplete: int = Field(0, ge=0)
    missing: int = Field(0, ge=0)


class ProtocolIssue(FrozenWireModel):
    """A document whose protocol is missing or incomplete."""
    number: Union[int, str] = Field(..., description="Invoice number, or 'unknown'")
    filename: str
    reason: str
    details: Optional[ProtocolInfo] = Field(None, description="Raw sub-fields, for incomplete protocols")


class RangeMetadata(FrozenWireModel):
    """Observed invoice-number range."""
    min_number: int = Field(0, alias="min")
    max_number: int = Field(0, alias="max")
    range_size: int = 0
    found_count: int = 0


class DuplicateStats(FrozenWireModel):
    total: int = 0
    with_series: int = 0
    without_series: int = 0


class ReportLog(WireModel):
    """
    Three-bucket log owned by one batch run.

    Operational logging goes through the ``nfe_reconciler`` logger; this log
    is part of the report and is shown to the user.
    """
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    info: list[str] = Field(default_factory=list)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def note(self, message: str) -> None:
        self.info.append(message)

    def snapshot(self) -> "LogSnapshot":
        """Freeze the current entries for the final report."""
        return LogSnapshot(errors=tuple(self.errors), warnings=tuple(self.warnings), info=tuple(self.info))


class LogSnapshot(FrozenWireModel):
    """Read-only copy of a ReportLog, as carried by the final report."""
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    info: tuple[str, ...] = ()


class Report(FrozenWireModel):
    """
    Complete reconciliation report for one batch.

    Built once, after the last document, and never modified afterwards. Every
    collection it carries is a tuple of frozen models.
    """
    total_processed: int = Field(..., ge=0, description="Documents attempted, including skipped and failed")
    sum_net: float = Field(..., description="Sum of declared totals (vNF)")
    sum_paid: float = Field(..., description="Sum of paid amounts (vPag)")
    total_difference: float = Field(..., description="sum_net - sum_paid")
    divergences: tuple[DivergenceRecord, ...] = ()
    duplicates: tuple[DuplicateGroup, ...] = ()
    missing_numbers: tuple[int, ...] = ()
    protocol_status: ProtocolStatus = Field(default_factory=ProtocolStatus)
    documents_missing_protocol: tuple[ProtocolIssue, ...] = ()
    documents_incomplete_protocol: tuple[ProtocolIssue, ...] = ()
    issuer_name: str
    percent_with_protocol: float = Field(0.0, ge=0, le=100)
    all_have_protocol: bool
    range_metadata: RangeMetadata = Field(default_factory=RangeMetadata)
    duplicate_stats: DuplicateStats = Field(default_factory=DuplicateStats)
    log: LogSnapshot = Field(default_factory=LogSnapshot)

    @property
    def has_errors(self) -> bool:
        """True when the batch completed with per-document errors (degraded success)."""
        return bool(self.log.errors)


# ============================================================================
# Host Messages
# ============================================================================

class BatchRequest(BaseModel):
    """
    Inbound message carrying the full document batch.

    Entries are validated one at a time by the engine so a single malformed
    entry does not reject the whole batch.
    """
    documents: list[Any] = Field(..., description="List of {name, content} entries")

    model_config = {
        "json_schema_extra": {
            "examples": [{
                "documents": [{
                    "name": "nfe-000010.xml",
                    "content": "<nfeProc><NFe><infNFe><ide><serie>1</serie><nNF>10</nNF></ide></infNFe></NFe></nfeProc>"
                }]
            }]
        }
    }


class ProgressMessage(WireModel):
    type: Literal["progress"] = "progress"
    percent: int = Field(..., ge=0, le=100)
    processed: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    status: str


class CompletedMessage(WireModel):
    type: Literal["completed"] = "completed"
    report: Report


class FailedMessage(WireModel):
    type: Literal["failed"] = "failed"
    message: str


OutboundMessage = Union[ProgressMessage, CompletedMessage, FailedMessage]
