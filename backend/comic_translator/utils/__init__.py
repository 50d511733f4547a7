"""Utility functions and helpers"""
from .helpers import (
    generate_file_hash,
    generate_session_id,
    generate_page_id,
    utc_now,
    get_file_extension,
    format_bytes,
)

__all__ = [
    "generate_file_hash",
    "generate_session_id",
    "generate_page_id",
    "utc_now",
    "get_file_extension",
    "format_bytes",
]
