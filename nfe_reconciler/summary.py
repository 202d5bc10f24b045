"""
Plain-text rendering of a reconciliation report for terminal output.
"""

from .gaps import compress_ranges
from .schemas import Report


def format_money(value: float) -> str:
    """Format an amount in the Brazilian style: 1.234,56."""
    text = f"{value:,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_report_text(report: Report, show_ranges: bool = False) -> str:
    """
    Format a Report as human-readable text for CLI output.

    Args:
        report: Report to format
        show_ranges: List missing numbers as compressed ranges

    Returns:
        Formatted string for display
    """
    status = report.protocol_status
    meta = report.range_metadata

    lines = [
        "=" * 50,
        "RECONCILIATION SUMMARY",
        "=" * 50,
        f"Issuer:                   {report.issuer_name}",
        f"Documents processed:      {report.total_processed}",
        f"Sum of declared (vNF):    {format_money(report.sum_net)}",
        f"Sum of paid (vPag):       {format_money(report.sum_paid)}",
        f"Difference:               {format_money(report.total_difference)}",
        "",
        f"Number range:             {meta.min_number}-{meta.max_number} "
        f"({meta.found_count} of {meta.range_size} found)",
        f"Missing numbers:          {len(report.missing_numbers)}",
        f"Duplicate groups:         {len(report.duplicates)}",
        f"Divergences:              {len(report.divergences)}",
        "",
        f"With protocol:            {status.with_protocol}/{status.total} ({report.percent_with_protocol:.1f}%)",
        f"Incomplete protocol:      {status.incomplete}",
        f"Missing protocol:         {status.missing}",
        "",
    ]

    if show_ranges and report.missing_numbers:
        lines.append("Missing:")
        lines.append("-" * 40)
        lines.append("  " + ", ".join(compress_ranges(report.missing_numbers)))
        lines.append("")

    if report.duplicates:
        lines.append("Duplicates:")
        lines.append("-" * 40)
        for group in report.duplicates[:10]:
            lines.append(f"  [{group.kind.value}] {group.key}: {', '.join(group.filenames)}")
        if len(report.duplicates) > 10:
            lines.append(f"  ... and {len(report.duplicates) - 10} more")
        lines.append("")

    if report.log.errors or report.log.warnings:
        lines.append(f"Log: {len(report.log.errors)} error(s), {len(report.log.warnings)} warning(s)")
        for error in report.log.errors[:5]:
            lines.append(f"  ! {error}")
        lines.append("")

    lines.append("=" * 50)

    return "\n".join(lines)
