"""
Console reporting for rawadf commands.
"""

from rawadf.analysis.reporter import (
    build_info_table,
    print_info,
    build_comparison_table,
    print_comparison,
    format_copy_summary,
)

__all__ = [
    "build_info_table",
    "print_info",
    "build_comparison_table",
    "print_comparison",
    "format_copy_summary",
]
