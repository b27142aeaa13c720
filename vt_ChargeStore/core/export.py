# vt_ChargeStore/core/export.py
from __future__ import annotations
from pathlib import Path
from typing import Sequence
import logging
import numpy as np
import pandas as pd
from scipy.io import savemat
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .model import ChargeCycle

_LOG = logging.getLogger(__name__)

# (column label, ChargeCycle attribute)
_LAYOUT: tuple[tuple[str, str], ...] = (
    ("Start Date/Time",  "start_time"),
    ("Ending Date/Time", "end_time"),
    ("Supercharger?",    "super_charger"),
    ("Phases",           "phases"),
    ("Start Range",      "start_range"),
    ("End Range",        "end_range"),
    ("Start SOC",        "start_soc"),
    ("End SOC",          "end_soc"),
    ("Latitude",         "lat"),
    ("Longitude",        "lng"),
    ("Odometer",         "odometer"),
    ("Peak V",           "peak_voltage"),
    ("Avg V",            "avg_voltage"),
    ("Peak I",           "peak_current"),
    ("Avg I",            "avg_current"),
    ("Energy",           "energy_added"),
)
EXPORT_COLUMNS: tuple[str, ...] = tuple(label for label, _ in _LAYOUT)
DATE_COLUMNS: tuple[str, ...] = ("Start Date/Time", "Ending Date/Time")

EXCEL_DATE_FORMAT = "m/d/yy h:mm:ss"     # M/d/yy H:mm:ss
SHEET_NAME = "Sheet1"
MAT_VARIABLE = "charges"

_STD_FONT = Font(name="Arial", size=12)
_HDR_FONT = Font(name="Arial", size=12, bold=True)


def _to_datetimes(ms: list[int], tz: str | None) -> pd.Series:
    t = pd.to_datetime(pd.Series(ms, dtype="int64"), unit="ms", utc=True)
    if tz:
        t = t.dt.tz_convert(tz)
    return t.dt.tz_localize(None)


def build_table(records: Sequence[ChargeCycle], tz: str | None = None) -> pd.DataFrame:
    """
    One row per cycle, columns in export order. Date columns are naive
    datetimes in ``tz`` (UTC when None).
    """
    cols = {}
    for label, attr in _LAYOUT:
        values = [getattr(r, attr) for r in records]
        if label in DATE_COLUMNS:
            cols[label] = _to_datetimes(values, tz)
        elif attr == "super_charger":
            cols[label] = pd.Series(values, dtype=bool)
        elif attr == "phases":
            cols[label] = pd.Series(values, dtype="int64")
        else:
            cols[label] = pd.Series(values, dtype=float)
    return pd.DataFrame(cols, columns=list(EXPORT_COLUMNS))


def format_timestamp(ts: pd.Timestamp) -> str:
    """M/d/yy H:mm:ss, no zero padding on month, day and hour."""
    return f"{ts.month}/{ts.day}/{ts:%y} {ts.hour}:{ts:%M:%S}"


def _dates_as_text(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for c in DATE_COLUMNS:
        out[c] = out[c].map(format_timestamp).astype(object)
    return out


# ---------- writers ----------
def _write_xlsx(df: pd.DataFrame, out_path: Path) -> None:
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, index=False, freeze_panes=(1, 0))
        ws = writer.sheets[SHEET_NAME]
        for col, label in enumerate(EXPORT_COLUMNS, start=1):
            ws.column_dimensions[get_column_letter(col)].width = len(label) + 3
        date_cols = {EXPORT_COLUMNS.index(c) + 1 for c in DATE_COLUMNS}
        for row in ws.iter_rows():
            for cell in row:
                cell.font = _HDR_FONT if cell.row == 1 else _STD_FONT
                if cell.row > 1 and cell.column in date_cols:
                    cell.number_format = EXCEL_DATE_FORMAT


def _write_csv(df: pd.DataFrame, out_path: Path) -> None:
    _dates_as_text(df).to_csv(out_path, index=False, encoding="utf-8")


def _to_mat_cellstr(seq: list[str]) -> np.ndarray:
    """Make a MATLAB column cell array from a list of strings."""
    arr = np.empty((len(seq), 1), dtype=object)
    arr[:, 0] = [str(s) for s in seq]
    return arr


def _write_mat(df: pd.DataFrame, out_path: Path) -> None:
    """
    Save a MATLAB struct with one field per column (attribute names).
    Dates become cell arrays of text (Nx1), everything else double (Nx1).
    """
    text = _dates_as_text(df)
    mat_struct = {}
    for label, attr in _LAYOUT:
        if label in DATE_COLUMNS:
            mat_struct[attr] = _to_mat_cellstr(text[label].tolist())
        else:
            mat_struct[attr] = df[label].to_numpy(dtype=float).reshape(-1, 1)
    savemat(out_path, {MAT_VARIABLE: mat_struct})


_WRITERS = {".csv": _write_csv, ".mat": _write_mat, ".xlsx": _write_xlsx}


def export_table(records: Sequence[ChargeCycle], destination: Path, tz: str | None = None) -> bool:
    """
    Write header + one row per cycle to ``destination``. The suffix picks the
    format (.xlsx, .csv or .mat); any other suffix is refused. Returns False
    instead of raising so the caller can tell the user the export failed.
    """
    destination = Path(destination)
    writer = _WRITERS.get(destination.suffix.lower())
    if writer is None:
        _LOG.warning("Unable to save charge data to %s: unsupported format %r (use %s)",
                     destination, destination.suffix, ", ".join(sorted(_WRITERS)))
        return False
    try:
        df = build_table(records, tz)
        destination.parent.mkdir(parents=True, exist_ok=True)
        writer(df, destination)
    except (OSError, ValueError, KeyError) as e:
        _LOG.warning("Unable to save charge data to %s: %s", destination, e)
        return False
    _LOG.info("exported %d charge cycle(s) → %s", len(records), destination)
    return True
