"""
Missing invoice-number detection.
"""

from collections.abc import Iterable

from .config import logger
from .schemas import GapReport


def analyze_gaps(numbers: Iterable[int]) -> GapReport:
    """
    Find every number absent from the observed min..max range.

    Args:
        numbers: Parsed invoice numbers; duplicates are collapsed

    Returns:
        GapReport with the missing numbers in ascending order. An empty input
        yields an all-zero report.
    """
    found = set(numbers)
    if not found:
        return GapReport()

    lowest = min(found)
    highest = max(found)
    missing = [n for n in range(lowest, highest + 1) if n not in found]

    logger.debug(
        f"Range {lowest}-{highest}: {highest - lowest + 1} numbers, "
        f"{len(found)} found, {len(missing)} missing"
    )

    return GapReport(
        missing=missing,
        min_number=lowest,
        max_number=highest,
        range_size=highest - lowest + 1,
        found_count=len(found),
    )


def compress_ranges(missing: list[int]) -> list[str]:
    """
    Collapse contiguous runs into display tokens.

    Example:
        [3, 4, 5, 9, 11, 12] -> ["3-5", "9", "11-12"]
    """
    tokens: list[str] = []
    if not missing:
        return tokens

    ordered = sorted(set(missing))
    start = prev = ordered[0]
    for n in ordered[1:]:
        if n == prev + 1:
            prev = n
            continue
        tokens.append(str(start) if start == prev else f"{start}-{prev}")
        start = prev = n
    tokens.append(str(start) if start == prev else f"{start}-{prev}")
    return tokens
