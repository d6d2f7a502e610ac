"""Output formatting for Entroscan CLI.

Implements JSON and human-readable output modes.
stdout contains only results; stderr carries progress and logs.
"""

import json
import sys
from datetime import datetime
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel

OutputFormat = Literal["json", "human"]

_output_format: OutputFormat = "json"


def set_output_format(format: OutputFormat) -> None:
    """Set the global output format."""
    global _output_format
    _output_format = format


def get_output_format() -> OutputFormat:
    """Get the current output format."""
    return _output_format


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for Entroscan types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        return super().default(obj)


def _to_plain(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_to_plain(item) for item in data]
    return data


def output_json(data: Any, file: Any = None) -> None:
    """Output data as JSON to stdout.

    Args:
        data: Data to output (dict, list, or Pydantic model)
        file: Output file (defaults to stdout)
    """
    if file is None:
        file = sys.stdout

    json.dump(_to_plain(data), file, cls=JSONEncoder, ensure_ascii=False)
    file.write("\n")
    file.flush()


def output_human(data: Any, title: str | None = None, file: Any = None) -> None:
    """Output data in human-readable format to stdout.

    Args:
        data: Data to output
        title: Optional title for the output
        file: Output file (defaults to stdout)
    """
    if file is None:
        file = sys.stdout

    if title:
        file.write(f"\n{title}\n")
        file.write("=" * len(title) + "\n\n")

    data = _to_plain(data)

    if isinstance(data, dict):
        _format_dict(data, file)
    elif isinstance(data, list) and data and all(isinstance(item, dict) for item in data):
        output_human_table(data, file=file)
    elif isinstance(data, list):
        for item in data:
            file.write(f"- {item}\n")
    else:
        file.write(str(data) + "\n")

    file.flush()


def output_human_table(
    records: list[dict[str, Any]],
    columns: list[str] | None = None,
    title: str | None = None,
    file: Any = None,
    max_width: int = 60,
) -> None:
    """Output records as a human-readable table.

    Args:
        records: List of record dictionaries
        columns: Columns to display (all keys of the first record if None)
        title: Optional title for the table
        file: Output file (defaults to stdout)
        max_width: Maximum column width
    """
    if file is None:
        file = sys.stdout

    if not records:
        file.write("No records.\n")
        return

    if title:
        file.write(f"\n{title}\n")
        file.write("=" * len(title) + "\n\n")

    if columns is None:
        columns = list(records[0].keys())

    widths = {col: len(col) for col in columns}
    for record in records[:100]:
        for col in columns:
            widths[col] = min(max_width, max(widths[col], len(str(record.get(col, "")))))

    header = " | ".join(col.ljust(widths[col])[: widths[col]] for col in columns)
    file.write(header + "\n")
    file.write("-" * len(header) + "\n")

    for record in records:
        row = []
        for col in columns:
            value = record.get(col)
            value_str = str(value) if value is not None else ""
            if len(value_str) > widths[col]:
                value_str = "..." + value_str[-(widths[col] - 3) :]
            row.append(value_str.ljust(widths[col]))
        file.write(" | ".join(row) + "\n")

    file.write(f"\nTotal: {len(records)} records\n")
    file.flush()


def _format_dict(data: dict[str, Any], file: Any, indent: int = 0) -> None:
    """Format a dictionary for human-readable output."""
    prefix = "  " * indent
    for key, value in data.items():
        if isinstance(value, dict):
            file.write(f"{prefix}{key}:\n")
            _format_dict(value, file, indent + 1)
        elif isinstance(value, list):
            file.write(f"{prefix}{key}:\n")
            for item in value:
                file.write(f"{prefix}  - {item}\n")
        else:
            file.write(f"{prefix}{key}: {value}\n")


def output(data: Any, format: OutputFormat | None = None, **kwargs: Any) -> None:
    """Output data in the specified format.

    Args:
        data: Data to output
        format: Output format (uses global if not specified)
        **kwargs: Additional arguments passed to format-specific function
    """
    if format is None:
        format = _output_format

    if format == "human":
        output_human(data, **kwargs)
    else:
        output_json(data, **kwargs)


def output_error(error: Any, file: Any = None) -> None:
    """Output an error to stdout in the current format.

    Errors are output to stdout (not stderr) for programmatic handling.
    """
    output(error, file=file)
