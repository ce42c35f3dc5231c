"""Tabular Exporter

Serializes record collections to JSON or CSV documents for offline export.

JSON export is a faithful structural dump of the records; non-finite floats
are written as null. CSV export emits one column per field spec entry,
resolving dot-separated paths through nested records. Header labels are
written as given. A cell is quoted only when it contains a comma, a double
quote or a newline, and embedded quotes are doubled.
"""

import json
import logging
import math
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ValidationError

from opsconsole.exceptions import OpsProcessingError
from .exceptions import ExportError
from .models import ExportField

logger = logging.getLogger(__name__)

FieldSpec = Union[ExportField, str, Mapping[str, Any]]

_MISSING = object()
_QUOTE_TRIGGERS = (",", '"', "\n")


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _as_mapping(record: Any) -> Mapping[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump()
    if isinstance(record, Mapping):
        return record
    raise ExportError(f"Records must be mappings, got {type(record).__name__}")


def normalize_fields(fields: Optional[Iterable[FieldSpec]]) -> List[ExportField]:
    """Coerce a field specification into ExportField columns.
    
    Raises:
        ExportError: If the specification is empty or an entry has no path
    """
    try:
        columns = [ExportField.coerce(spec) for spec in (fields or [])]
    except (ValidationError, AttributeError) as e:
        raise ExportError(f"Invalid export field specification: {e}")
    if not columns:
        raise ExportError("CSV export requires at least one field")
    return columns


def resolve_field_path(record: Mapping[str, Any], path: str) -> Any:
    """Walk a dot-separated path through nested mappings and lists.
    
    Returns the module's missing marker when any segment is absent; numeric
    segments index into lists.
    """
    value: Any = record
    for segment in path.split("."):
        if isinstance(value, BaseModel):
            value = value.model_dump()
        if isinstance(value, Mapping):
            if segment not in value:
                return _MISSING
            value = value[segment]
        elif isinstance(value, (list, tuple)) and segment.isdigit():
            index = int(segment)
            if index >= len(value):
                return _MISSING
            value = value[index]
        else:
            return _MISSING
    return value


def format_number(value: float) -> str:
    """Shortest round-trip text of a float in ECMAScript ``Number#toString`` form.

    Positional notation for magnitudes in ``[1e-6, 1e21)``, exponent form
    (``1e+21``, ``1.5e-7``) outside it.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign, digit_tuple, exponent = Decimal(repr(value)).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    # value == 0.<digits> * 10**n
    n = exponent + k
    prefix = "-" if sign else ""

    if k <= n <= 21:
        return prefix + digits + "0" * (n - k)
    if 0 < n <= 21:
        return prefix + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return prefix + "0." + "0" * -n + digits

    e = n - 1
    mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
    return f"{prefix}{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


def format_cell(value: Any) -> str:
    """Plain text of a resolved value, before CSV escaping."""
    if value is _MISSING or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple, BaseModel)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def escape_cell(text: str) -> str:
    escaped = text.replace('"', '""')
    if any(trigger in escaped for trigger in _QUOTE_TRIGGERS):
        return f'"{escaped}"'
    return escaped


def _finite_or_none(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, Mapping):
        return {key: _finite_or_none(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite_or_none(item) for item in value]
    if isinstance(value, BaseModel):
        return _finite_or_none(value.model_dump(mode="json"))
    return value


def render_json(records: Sequence[Any]) -> str:
    """Pretty-printed JSON document of ``records`` (two-space indent).

    NaN and infinities are written as ``null`` so the document stays valid JSON.
    """
    try:
        return json.dumps(_finite_or_none(list(records)), indent=2, ensure_ascii=False,
                          allow_nan=False, default=_json_default)
    except (TypeError, ValueError) as e:
        raise ExportError(f"Records cannot be exported as JSON: {e}")


def render_csv(records: Sequence[Any], fields: Iterable[FieldSpec]) -> str:
    """CSV document with a header row followed by one row per record.
    
    Raises:
        ExportError: If ``fields`` is empty
    """
    columns = normalize_fields(fields)
    
    rows = [",".join(column.header for column in columns)]
    for record in records:
        mapping = _as_mapping(record)
        rows.append(",".join(
            escape_cell(format_cell(resolve_field_path(mapping, column.path)))
            for column in columns
        ))
    return "\n".join(rows)


class TabularExporter:
    """Writes JSON and CSV export documents to an output directory.
    
    Args:
        output_dir: Directory export files are written to
        clock: Callable returning the export time; its UTC date names the file
    """
    
    def __init__(self, output_dir: Union[str, Path] = ".",
                 clock: Optional[Callable[[], datetime]] = None):
        self.output_dir = Path(output_dir)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
    
    def build_filename(self, base: str, extension: str) -> str:
        """``{base}_{YYYY-MM-DD}.{extension}`` for the current export date."""
        exported_at = self.clock()
        if exported_at.tzinfo is not None:
            exported_at = exported_at.astimezone(timezone.utc)
        return f"{base or 'export'}_{exported_at.date().isoformat()}.{extension}"
    
    def export_json(self, records: Sequence[Any], filename: str = "export") -> Path:
        return self._write(render_json(records), self.build_filename(filename, "json"), len(records))
    
    def export_csv(self, records: Sequence[Any], fields: Iterable[FieldSpec],
                   filename: str = "export") -> Path:
        return self._write(render_csv(records, fields), self.build_filename(filename, "csv"), len(records))
    
    def _write(self, content: str, filename: str, record_count: int) -> Path:
        path = self.output_dir / filename
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise OpsProcessingError(f"Failed to write export {path}: {e}")
        
        logger.info(f"Exported {record_count} records to {path}")
        return path
