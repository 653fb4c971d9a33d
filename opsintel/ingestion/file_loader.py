"""
File ingestion - turns an uploaded ticket log into dataset content.

The generative model reads text, so every upload is normalised to a single
string before it is stored:

- ``.xlsx`` / ``.xls`` / ``.csv`` -- the first sheet is read with pandas
  (``openpyxl`` for xlsx, ``xlrd`` for legacy xls) and rendered as a JSON
  array of row objects, header -> cell value, indented by two spaces.
  Empty cells become ``null`` and date cells become ISO-8601 strings.
  CSV columns with zero-padded values (``007``) are kept as text.
- ``.json`` -- the bytes are decoded as UTF-8 and passed through unchanged,
  so whatever structure the export tool produced reaches the model as-is.

Anything else is rejected before it touches the session.  The clipboard
surface (:func:`read_clipboard`) is the paste-button equivalent and uses the
clipboard backend bundled with pandas.
"""

import io
import json
import logging

import pandas as pd
from pandas.io.clipboard import PyperclipException, clipboard_get

from opsintel.core.config import (
    CSV_EXTENSIONS,
    JSON_EXTENSIONS,
    SPREADSHEET_EXTENSIONS,
    SUPPORTED_EXTENSIONS,
)
from opsintel.core.errors import ClipboardError, FileParseError, UnsupportedFormatError

logger = logging.getLogger(__name__)

UNSUPPORTED_FORMAT_MESSAGE = "Unsupported file format. Use .xlsx, .csv, or .json"
PARSE_FAILED_MESSAGE = "Parsing failed. Check file structure."
CLIPBOARD_MESSAGE = "Clipboard access denied or empty."


def get_extension(filename_or_extension: str) -> str:
    """Return the lower-case extension with its leading dot.

    Accepts a full file name (``"week 44.XLSX"``), a bare extension with or
    without the dot (``".csv"`` / ``"csv"``).
    """
    name = str(filename_or_extension).strip().lower()
    return "." + name.rsplit(".", 1)[-1]


def _restore_numbers(df: pd.DataFrame) -> pd.DataFrame:
    """Convert all-numeric text columns back to numbers.

    Columns holding zero-padded values (``007``, ``0042``) stay text so that
    ticket and site ids reach the model exactly as exported.
    """
    for col in df.columns:
        values = df[col].dropna()
        if values.str.match(r"-?0\d").any():
            continue
        numbers = pd.to_numeric(df[col], errors="coerce")
        if numbers.notna().sum() == len(values):
            df[col] = numbers
    return df


def _read_table(payload: bytes, extension: str) -> pd.DataFrame:
    buffer = io.BytesIO(payload)
    if extension in CSV_EXTENSIONS:
        return _restore_numbers(pd.read_csv(buffer, dtype=str))
    engine = "openpyxl" if extension == ".xlsx" else "xlrd"
    return pd.read_excel(buffer, sheet_name=0, engine=engine)


def dataframe_to_json(df: pd.DataFrame) -> str:
    """Render ``df`` as an indented JSON array of row objects.

    pandas handles the awkward cells: NaN/NaT become ``null`` and datetimes
    are written in ISO-8601.  Column order is preserved.
    """
    records = json.loads(df.to_json(orient="records", date_format="iso"))
    return json.dumps(records, indent=2, ensure_ascii=False)


def ingest_file(payload: bytes, filename_or_extension: str) -> str:
    """Convert an uploaded file into the text stored as dataset content.

    Args:
        payload: Raw bytes of the upload.
        filename_or_extension: Original file name, or just its extension.

    Returns:
        The normalised text content.

    Raises:
        UnsupportedFormatError: The extension is not one of
            ``.xlsx``, ``.xls``, ``.csv``, ``.json``.
        FileParseError: The extension is supported but the bytes could not
            be read (corrupt workbook, empty CSV, invalid UTF-8).
    """
    extension = get_extension(filename_or_extension)
    if extension not in SUPPORTED_EXTENSIONS:
        logger.warning(f"Rejected upload '{filename_or_extension}': unsupported extension {extension}")
        raise UnsupportedFormatError(UNSUPPORTED_FORMAT_MESSAGE)

    if extension in JSON_EXTENSIONS:
        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning(f"JSON upload is not valid UTF-8: {e}")
            raise FileParseError(PARSE_FAILED_MESSAGE) from e
        logger.info(f"Ingested JSON upload ({len(text):,} chars)")
        return text

    try:
        df = _read_table(payload, extension)
    except Exception as e:
        # pandas surfaces corrupt input through many exception types
        # (ValueError, BadZipFile, EmptyDataError, XLRDError, ...)
        logger.warning(f"Failed to parse {extension} upload: {e}")
        raise FileParseError(PARSE_FAILED_MESSAGE) from e

    logger.info(f"Ingested {extension} upload: {len(df):,} rows x {len(df.columns)} columns")
    return dataframe_to_json(df)


def read_clipboard() -> str:
    """Read plain text from the system clipboard.

    Raises:
        ClipboardError: No clipboard mechanism is available, access was
            denied, or the clipboard holds no text.
    """
    try:
        text = clipboard_get()
    except (PyperclipException, OSError) as e:
        logger.warning(f"Clipboard read failed: {e}")
        raise ClipboardError(CLIPBOARD_MESSAGE) from e

    if not text or not text.strip():
        raise ClipboardError(CLIPBOARD_MESSAGE)
    return text
