"""Command-line interface (``python -m excel2sql.cli`` / ``excel2sql``)."""

from .main import EXIT_FATAL, EXIT_LOAD_FAILURE, EXIT_SUCCESS, main

__all__ = [
    "EXIT_FATAL",
    "EXIT_LOAD_FAILURE",
    "EXIT_SUCCESS",
    "main",
]
