"""
Duplicate invoice detection across a batch.

Documents are grouped by their composite series-number key when the series
is known. When the series cannot be determined, the number alone is used in
a separate fallback pool; the two pools never mix, so documents sharing a
number under different, correctly identified series never collide.

Known limitation: two documents whose series failed to extract are grouped
in the fallback pool even if they are distinct invoices.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .config import UNKNOWN_SERIES, DuplicateKind
from .schemas import DuplicateGroup, ExtractedRecord, ReportLog


@dataclass
class FirstSighting:
    """What was recorded the first time a key was seen."""
    number: int
    series: Union[int, str]
    issuer_name: str
    filename: str


def composite_key(series: Union[int, str], number: int) -> str:
    return f"{series}-{number}"


def has_known_series(series: Optional[Union[int, str]]) -> bool:
    return series is not None and series != ""


class DuplicateTracker:
    """
    Running duplicate state for one batch.

    Each pool keeps a key -> first-sighting map; a group is created only on
    the first repeat of a key, seeded with the first-seen filename.
    """

    def __init__(self):
        self._seen: dict[str, FirstSighting] = {}
        self._seen_fallback: dict[int, FirstSighting] = {}
        self._groups: dict[str, DuplicateGroup] = {}
        self._fallback_groups: dict[int, DuplicateGroup] = {}

    def observe(self, record: ExtractedRecord, filename: str, log: ReportLog) -> Optional[DuplicateGroup]:
        """
        Record one document.

        Returns:
            The group the document was added to, or None on a first sighting
            (or when the document has no number)
        """
        if record.number is None:
            return None

        if has_known_series(record.series):
            return self._observe_composite(record, filename, log)
        return self._observe_fallback(record, filename, log)

    def _observe_composite(self, record: ExtractedRecord, filename: str, log: ReportLog) -> Optional[DuplicateGroup]:
        key = composite_key(record.series, record.number)
        first = self._seen.get(key)
        if first is None:
            self._seen[key] = FirstSighting(record.number, record.series, record.issuer_name, filename)
            return None

        group = self._groups.get(key)
        if group is None:
            group = DuplicateGroup(
                key=key,
                number=first.number,
                series=first.series,
                issuer_name=first.issuer_name or record.issuer_name,
                filenames=(first.filename,),
                degraded=False,
                kind=DuplicateKind.NORMAL,
            )

        group = group.with_filename(filename)
        self._groups[key] = group

        log.warning(
            f"Series {record.series} - Invoice {record.number} duplicated in files: "
            f"{', '.join(group.filenames)} (Issuer: {record.issuer_name or 'N/A'})"
        )
        return group

    def _observe_fallback(self, record: ExtractedRecord, filename: str, log: ReportLog) -> Optional[DuplicateGroup]:
        number = record.number
        first = self._seen_fallback.get(number)
        if first is None:
            self._seen_fallback[number] = FirstSighting(number, UNKNOWN_SERIES, record.issuer_name, filename)
            return None

        group = self._fallback_groups.get(number)
        if group is None:
            group = DuplicateGroup(
                key=f"fallback-{number}",
                number=number,
                series=UNKNOWN_SERIES,
                issuer_name=first.issuer_name or record.issuer_name,
                filenames=(first.filename,),
                degraded=True,
                kind=DuplicateKind.FALLBACK,
            )

        group = group.with_filename(filename)
        self._fallback_groups[number] = group

        log.warning(
            f"Invoice {number} (no series) duplicated in files: {', '.join(group.filenames)} "
            f"(Issuer: {record.issuer_name or 'N/A'})"
        )
        return group

    @property
    def normal_count(self) -> int:
        return len(self._groups)

    @property
    def fallback_count(self) -> int:
        return len(self._fallback_groups)

    def groups(self) -> list[DuplicateGroup]:
        """All realized groups: composite-key groups first, then fallback groups."""
        return list(self._groups.values()) + list(self._fallback_groups.values())
