"""
Ingestion module for OpsIntel.

Converts uploads and clipboard text into dataset content.
"""

from .file_loader import (
    ingest_file,
    read_clipboard,
    get_extension,
    dataframe_to_json,
    UNSUPPORTED_FORMAT_MESSAGE,
    PARSE_FAILED_MESSAGE,
    CLIPBOARD_MESSAGE,
)

__all__ = [
    'ingest_file',
    'read_clipboard',
    'get_extension',
    'dataframe_to_json',
    'UNSUPPORTED_FORMAT_MESSAGE',
    'PARSE_FAILED_MESSAGE',
    'CLIPBOARD_MESSAGE',
]
