"""
Spreadsheet Decoder — CSV / Excel bytes to row mappings keyed by column header.

Only the first worksheet of a workbook is read. Every cell is read as text so
WBS codes such as ``"1.10"`` survive intact; numeric parsing is left to the
row parser.
"""
import io
import logging
import os
from typing import Any, Optional

import pandas as pd

from boq_pareto.services.errors import DecodeError

logger = logging.getLogger("boq-pareto-decoder")

_XLSX_MAGIC = b"PK\x03\x04"
_XLS_MAGIC = b"\xd0\xcf\x11\xe0"

# Only empty cells count as missing; "NA", "NULL", "None" and the like stay text
_TEXT_ONLY = {"keep_default_na": False, "na_values": [""]}


def detect_format(data: bytes, file_name: Optional[str] = None) -> str:
    """Return ``"excel"`` or ``"csv"`` from the file extension, else from the leading bytes."""
    ext = os.path.splitext(file_name or "")[-1].lower()
    if ext in (".xlsx", ".xls", ".xlsm"):
        return "excel"
    if ext == ".csv":
        return "csv"
    if data.startswith(_XLSX_MAGIC) or data.startswith(_XLS_MAGIC):
        return "excel"
    return "csv"


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


class PandasSpreadsheetDecoder:

    def decode(self, data: bytes, file_name: Optional[str] = None) -> list[dict[str, Any]]:
        fmt = detect_format(data, file_name)
        try:
            if fmt == "excel":
                df = pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=str, **_TEXT_ONLY)
            else:
                df = pd.read_csv(io.StringIO(_decode_text(data)), dtype=str, skip_blank_lines=True, **_TEXT_ONLY)
        except pd.errors.EmptyDataError:
            return []
        except Exception as exc:
            raise DecodeError(f"Could not decode {fmt} data: {exc}") from exc

        df.columns = [str(c).strip() for c in df.columns]
        df = df.dropna(how="all")
        df = df.astype(object).where(pd.notna(df), None)
        rows = df.to_dict(orient="records")
        logger.debug(f"Decoded {len(rows)} rows ({fmt}) with columns {list(df.columns)}")
        return rows
