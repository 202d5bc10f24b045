"""
Command-line interface for the NF-e Batch Reconciler.

Provides two commands:
- reconcile: Reconcile a directory of NF-e XML files and print a summary
- version: Show version information
"""

import json
from pathlib import Path
from typing import Optional

import typer

from .config import logger
from .engine import ReconciliationEngine
from .schemas import ProgressMessage
from .summary import format_report_text


# Create Typer app
app = typer.Typer(
    name="nfe-reconcile",
    help="NF-e Batch Reconciler CLI",
    add_completion=False,
)


def load_xml_documents(xml_dir: Path) -> list[dict[str, str]]:
    """
    Read every XML file in a directory as an inbound document entry.

    Files are taken in name order; undecodable bytes are replaced.
    """
    paths = sorted(p for p in xml_dir.iterdir() if p.is_file() and p.suffix.lower() == ".xml")
    if not paths:
        logger.warning(f"No XML files found in: {xml_dir}")
    return [
        {"name": path.name, "content": path.read_text(encoding="utf-8", errors="replace")}
        for path in paths
    ]


@app.command()
def reconcile(
    xml_dir: Path = typer.Option(
        ...,
        "--xml-dir",
        "-x",
        help="Directory containing NF-e XML files",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
    report: Optional[Path] = typer.Option(
        None,
        "--report",
        "-r",
        help="Write the full report as JSON to this file",
    ),
    ranges: bool = typer.Option(
        False,
        "--ranges",
        help="List missing numbers as compressed ranges",
    ),
    fail_on_errors: bool = typer.Option(
        False,
        "--fail-on-errors",
        help="Exit with non-zero status if any document could not be processed",
    ),
) -> None:
    """
    Reconcile a directory of NF-e XML files.

    Checks declared vs. paid amounts, authorization protocols, duplicate
    filings and gaps in the invoice-number sequence.
    """
    typer.echo(f"Reconciling XML files from: {xml_dir}")

    documents = load_xml_documents(xml_dir)
    if not documents:
        typer.echo("No XML files found.", err=True)
        raise typer.Exit(code=1)

    def show_progress(message: ProgressMessage) -> None:
        typer.echo(f"  {message.percent:3d}% {message.status}")

    try:
        result = ReconciliationEngine().run(documents, show_progress)
    except Exception as e:
        typer.echo(f"Error during reconciliation: {e}", err=True)
        logger.exception("Reconciliation failed")
        raise typer.Exit(code=1)

    typer.echo("\n" + format_report_text(result, show_ranges=ranges))

    if report:
        with open(report, "w", encoding="utf-8") as f:
            json.dump(result.model_dump(mode="json", by_alias=True), f, indent=2, ensure_ascii=False)
        typer.echo(f"\n[OK] Report saved to: {report}")

    if result.has_errors:
        typer.echo(f"\n[WARN] Completed with {len(result.log.errors)} error(s)", err=True)
        if fail_on_errors:
            raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    typer.echo(f"NF-e Batch Reconciler v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
