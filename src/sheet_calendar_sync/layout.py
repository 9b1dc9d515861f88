"""
Sheet layout: where the controls live and which column holds what.

Column indices are resolved once, either from fixed column letters or from
the text of a header row, and handed to the codec/reconciler as a
ColumnMap.  Nothing here touches a live sheet.
"""

from collections.abc import Callable
from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace

from openpyxl.utils.cell import column_index_from_string
from openpyxl.utils.cell import coordinate_to_tuple
from openpyxl.utils.cell import range_boundaries
from openpyxl.utils.exceptions import CellCoordinatesException

from sheet_calendar_sync.models import ConfigurationError
from sheet_calendar_sync.parsers import DATE_ORDERS
from sheet_calendar_sync.parsers import DAY_FIRST

STATUS_RIGHT_OF_UPLOAD = "right-of-upload"
STATUS_FROM_HEADER = "header"

DEFAULT_HEADERS = {
    "id": "ID",
    "title": "Title",
    "date": "Date",
    "time": "Time",
    "duration": "Duration",
    "upload": "Upload",
    "status": "Status",
}

DEFAULT_COLUMNS = {
    "id": "A",
    "title": "B",
    "date": "C",
    "time": "D",
    "duration": "E",
    "upload": "F",
}

_REQUIRED = ("id", "title", "date", "time", "duration", "upload")


@dataclass(frozen=True)
class ColumnMap:
    """1-based column index for every field of an output row."""

    id: int
    title: int
    date: int
    time: int
    duration: int
    upload: int
    status: int

    @property
    def data_columns(self) -> tuple[int, ...]:
        """Columns written from an event, in RowFields order."""
        return (self.id, self.title, self.date, self.time, self.duration)

    @property
    def output_columns(self) -> tuple[int, ...]:
        return self.data_columns + (self.upload, self.status)


@dataclass(frozen=True)
class SheetLayout:
    """Everything the core needs to know about the sheet's shape."""

    download_cell: tuple[int, int]
    period_start_cell: tuple[int, int]
    period_end_cell: tuple[int, int]
    first_data_row: int
    columns: ColumnMap
    sheet_name: str | None = None
    date_order: str = DAY_FIRST
    true_indicator: str = "TRUE"
    formats: dict[str, str] = field(
        default_factory=lambda: {"date": "yyyy-mm-dd", "time": "hh:mm", "duration": "0.00"}
    )


def parse_cell_address(address: str, what: str = "cell") -> tuple[int, int]:
    """Turn an A1-style address into (row, col)."""
    try:
        return coordinate_to_tuple(address.strip().upper().replace("$", ""))
    except (CellCoordinatesException, ValueError, TypeError, AttributeError):
        raise ConfigurationError(f"Invalid {what} address: {address!r}") from None


def parse_range_address(address: str) -> tuple[int, int, int, int]:
    """Turn "F6" or "F6:F8" into (row, last_row, col, last_col)."""
    try:
        min_col, min_row, max_col, max_row = range_boundaries(
            address.strip().upper().replace("$", "")
        )
    except (CellCoordinatesException, ValueError, TypeError, AttributeError):
        raise ConfigurationError(f"Invalid range address: {address!r}") from None
    if None in (min_col, min_row, max_col, max_row):
        raise ConfigurationError(f"Range must name whole cells: {address!r}")
    return min_row, max_row, min_col, max_col


def _column_index(letter: str, name: str) -> int:
    try:
        return column_index_from_string(letter.strip().upper())
    except (ValueError, AttributeError):
        raise ConfigurationError(f"Invalid {name} column: {letter!r}") from None


def resolve_fixed_columns(letters: Mapping[str, str], status: str | None = None) -> ColumnMap:
    """Build a ColumnMap from column letters (missing keys fall back to defaults).

    ``status`` is either a column letter or None / ``right-of-upload``
    (``header`` is treated as right-of-upload, since there are no headers).
    """
    idx = {
        name: _column_index(letters.get(name) or DEFAULT_COLUMNS[name], name)
        for name in _REQUIRED
    }
    if status and status not in (STATUS_RIGHT_OF_UPLOAD, STATUS_FROM_HEADER):
        idx["status"] = _column_index(status, "status")
    else:
        idx["status"] = idx["upload"] + 1
    return ColumnMap(**idx)


def _norm(value) -> str:
    return " ".join(str(value).split()).casefold() if value is not None else ""


def resolve_header_columns(
    header_values: Sequence,
    names: Mapping[str, str] | None = None,
    status_mode: str = STATUS_RIGHT_OF_UPLOAD,
) -> ColumnMap:
    """Derive a ColumnMap from the text of a header row.

    Matching ignores case and surrounding/duplicate whitespace.  A missing
    status header is tolerated when ``status_mode`` is right-of-upload.
    """
    wanted = dict(DEFAULT_HEADERS)
    wanted.update(names or {})

    positions: dict[str, int] = {}
    for col, value in enumerate(header_values, start=1):
        key = _norm(value)
        if key and key not in positions:
            positions[key] = col

    idx: dict[str, int] = {}
    missing = []
    for name in _REQUIRED:
        col = positions.get(_norm(wanted[name]))
        if col is None:
            missing.append(wanted[name])
        else:
            idx[name] = col
    if missing:
        raise ConfigurationError(
            "Missing header(s) in sheet: " + ", ".join(repr(m) for m in missing)
        )

    status_col = positions.get(_norm(wanted["status"]))
    if status_col is None:
        if status_mode != STATUS_RIGHT_OF_UPLOAD:
            raise ConfigurationError(f"Missing header in sheet: {wanted['status']!r}")
        status_col = idx["upload"] + 1
    idx["status"] = status_col
    return ColumnMap(**idx)


def _positive_int(options: Mapping[str, str], key: str, default: int) -> int:
    raw = options.get(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigurationError(f"{key} must be >= 1, got {value}")
    return value


def load_layout(
    options: Mapping[str, str],
    header_reader: Callable[[int], Sequence] | None = None,
) -> SheetLayout:
    """Build a SheetLayout from a flat config mapping.

    Recognised keys: ``sheet_name``, ``download_cell``, ``period_start_cell``,
    ``period_end_cell``, ``first_data_row``, ``header_row``, ``<field>_column``,
    ``<field>_header``, ``status_column``, ``date_order``, ``true_indicator``,
    ``date_format``, ``time_format``, ``duration_format``.

    When ``header_row`` is set, columns come from that row's text via
    ``header_reader``; otherwise from the fixed column letters.
    """
    status_opt = (options.get("status_column") or STATUS_RIGHT_OF_UPLOAD).strip()

    header_row = options.get("header_row")
    if header_row:
        if header_reader is None:
            raise ConfigurationError("header_row is set but the sheet headers cannot be read")
        row = _positive_int(options, "header_row", 1)
        names = {
            name: options[f"{name}_header"]
            for name in DEFAULT_HEADERS
            if options.get(f"{name}_header")
        }
        explicit_status = status_opt not in (STATUS_RIGHT_OF_UPLOAD, STATUS_FROM_HEADER)
        columns = resolve_header_columns(
            header_reader(row),
            names,
            STATUS_RIGHT_OF_UPLOAD if explicit_status else status_opt,
        )
        if explicit_status:
            columns = replace(columns, status=_column_index(status_opt, "status"))
        default_first = row + 1
    else:
        letters = {
            name: options[f"{name}_column"] for name in _REQUIRED if options.get(f"{name}_column")
        }
        columns = resolve_fixed_columns(letters, status_opt)
        default_first = 5

    date_order = (options.get("date_order") or DAY_FIRST).strip()
    if date_order not in DATE_ORDERS:
        raise ConfigurationError(
            f"date_order must be one of {', '.join(DATE_ORDERS)}, got {date_order!r}"
        )

    formats = {"date": "yyyy-mm-dd", "time": "hh:mm", "duration": "0.00"}
    for key in formats:
        if options.get(f"{key}_format"):
            formats[key] = options[f"{key}_format"]

    return SheetLayout(
        download_cell=parse_cell_address(options.get("download_cell") or "B1", "download_cell"),
        period_start_cell=parse_cell_address(
            options.get("period_start_cell") or "B2", "period_start_cell"
        ),
        period_end_cell=parse_cell_address(
            options.get("period_end_cell") or "B3", "period_end_cell"
        ),
        first_data_row=_positive_int(options, "first_data_row", default_first),
        columns=columns,
        sheet_name=options.get("sheet_name") or None,
        date_order=date_order,
        true_indicator=(options.get("true_indicator") or "TRUE").strip(),
        formats=formats,
    )
