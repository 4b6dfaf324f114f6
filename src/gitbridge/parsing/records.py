"""Delimited-record parsing.

Used for ``for-each-ref --format`` and ``show --format`` output where fields
are separated by ``\\x1f`` and records by newlines (or ``\\x1e``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from gitbridge.constants import FIELD_DELIMITER

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["parse_delimited_records", "split_fields"]


def split_fields(
    line: str,
    field_names: Sequence[str],
    delimiter: str = FIELD_DELIMITER,
) -> dict[str, str]:
    """Split one record into a dict keyed by *field_names*.

    git omits trailing empty fields in some formats, so missing fields
    default to ``""``. Extra fields beyond *field_names* are folded into the
    last field, which keeps free text (such as a commit body) intact even
    if it happens to contain the delimiter.
    """
    parts = line.split(delimiter, len(field_names) - 1) if field_names else []
    values = parts + [""] * (len(field_names) - len(parts))
    return dict(zip(field_names, values, strict=True))


def parse_delimited_records(
    text: str,
    field_names: Sequence[str],
    *,
    delimiter: str = FIELD_DELIMITER,
    record_separator: str = "\n",
) -> list[dict[str, str]]:
    """Parse *text* into a list of field dicts, one per non-blank record.

    Args:
        text: Raw command output.
        field_names: Ordered names of the fields in each record.
        delimiter: Field separator.
        record_separator: Record separator (newline by default).

    Returns:
        One dict per record, in output order.

    Example:
        >>> parse_delimited_records("a\\x1fb\\nc", ["x", "y"])
        [{'x': 'a', 'y': 'b'}, {'x': 'c', 'y': ''}]
    """
    records: list[dict[str, str]] = []
    for raw in text.split(record_separator):
        record = raw.strip("\r\n")
        if not record.strip():
            continue
        records.append(split_fields(record, field_names, delimiter))
    return records
