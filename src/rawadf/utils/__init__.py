"""
Utility functions for rawadf.

This module provides logging setup and the mapping from core errors to
command line messages.
"""

from rawadf.utils.error_handler import (
    EXIT_SUCCESS,
    EXIT_FAILURE,
    describe_error,
    error_kind_name,
)

from rawadf.utils.logging import (
    setup_logging,
    log_system_info,
    log_operation,
    log_error,
    log_performance,
)

__all__ = [
    # Error handling
    "EXIT_SUCCESS",
    "EXIT_FAILURE",
    "describe_error",
    "error_kind_name",

    # Logging
    "setup_logging",
    "log_system_info",
    "log_operation",
    "log_error",
    "log_performance",
]
