"""
Console reports for Extended ADF images.

This module renders the output of the info and compare commands as rich
tables, plus the one-line summaries printed after merge and split.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rawadf.core.comparator import ComparisonReport
from rawadf.core.copy_engine import CopyResult
from rawadf.imaging.image_formats import EADFHeader, TrackSource


# =============================================================================
# Info Report
# =============================================================================

def build_info_table(header: EADFHeader, name: Optional[str] = None) -> Table:
    """
    Build the track table of one image.

    Columns are track index, cylinder, side, type, byte length, bit length
    and payload offset within the file.
    """
    title = escape(f"{name or header.source or '(stream)'}: {header.num_tracks} tracks")
    table = Table(title=title, title_justify="left", box=None, pad_edge=False)
    table.add_column("Track", justify="right")
    table.add_column("Cyl", justify="right")
    table.add_column("Side", justify="right")
    table.add_column("Type")
    table.add_column("Length", justify="right")
    table.add_column("Bits", justify="right")
    table.add_column("Offset", justify="right")

    for index, record in enumerate(header.tracks):
        table.add_row(
            str(index),
            str(index // 2),
            str(index % 2 + 1),
            record.track_type.name,
            str(record.size_bytes),
            str(record.size_bits),
            str(header.offset(index)),
        )
    return table


def print_info(console: Console, header: EADFHeader, name: Optional[str] = None) -> None:
    console.print(f"File name: {escape(name or header.source or '(stream)')}", soft_wrap=True)
    console.print(f"Number of tracks: {header.num_tracks}")
    console.print(build_info_table(header, name))


# =============================================================================
# Comparison Report
# =============================================================================

def build_comparison_table(report: ComparisonReport) -> Table:
    """
    Side-by-side view of two track tables.

    A '*' in the last column marks tracks that differ. When the report
    carries differing byte counts, an extra column shows them.
    """
    show_bytes = any(row.differing_bytes is not None for row in report.rows)

    table = Table(box=None, pad_edge=False)
    table.add_column("Track", justify="right")
    table.add_column("Type", header_style="bold cyan")
    table.add_column("Bytes", justify="right", header_style="bold cyan")
    table.add_column("Bits", justify="right", header_style="bold cyan")
    table.add_column("Type", header_style="bold magenta")
    table.add_column("Bytes", justify="right", header_style="bold magenta")
    table.add_column("Bits", justify="right", header_style="bold magenta")
    table.add_column("D")
    if show_bytes:
        table.add_column("Diff bytes", justify="right")

    for row in report.rows:
        cells = [
            str(row.index),
            row.type1.name, str(row.bytes1), str(row.bits1),
            row.type2.name, str(row.bytes2), str(row.bits2),
            " " if row.identical else "[bold red]*[/]",
        ]
        if show_bytes:
            cells.append("" if row.differing_bytes is None else str(row.differing_bytes))
        table.add_row(*cells)

    return table


def print_comparison(console: Console, report: ComparisonReport) -> None:
    console.print(f"SOURCE1: [cyan]{escape(report.source1 or '(stream)')}[/]", soft_wrap=True)
    console.print(f"SOURCE2: [magenta]{escape(report.source2 or '(stream)')}[/]", soft_wrap=True)
    console.print(build_comparison_table(report))
    console.print(report.summary)


# =============================================================================
# Copy Summaries
# =============================================================================

def format_copy_summary(operation: str, result: CopyResult, destination: str) -> str:
    """One-line summary of a merge or split."""
    from1 = len(result.tracks_from[TrackSource.SOURCE1])
    from2 = len(result.tracks_from[TrackSource.SOURCE2])
    empty = len(result.empty_tracks)

    if operation == "split":
        detail = f"{from1} kept, {empty} emptied"
    else:
        detail = f"{from1} from SOURCE1, {from2} from SOURCE2, {empty} empty"

    return (f"{operation}: wrote {destination} "
            f"({result.num_tracks} tracks: {detail}; {result.total_bytes} bytes)")
