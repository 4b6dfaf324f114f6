"""Marker-bounded multi-section parsing.

``git log`` can print structured fields followed by free text (``--stat``,
``-p``). The structured part of each record is wrapped between two sentinel
markers that cannot appear in ordinary output; whatever follows the end
marker up to the next start marker is the record's auxiliary block.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from gitbridge.constants import (
    COMMIT_END_MARKER,
    COMMIT_START_MARKER,
    DIFF_HEADER,
    FIELD_DELIMITER,
)
from gitbridge.parsing.records import split_fields

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["MarkedBlock", "parse_marker_blocks", "split_auxiliary"]


@dataclass(frozen=True, slots=True)
class MarkedBlock:
    """One marker-bounded record.

    Attributes:
        fields: Structured fields keyed by name.
        auxiliary: Free text following the end marker, with surrounding
            newlines removed ("" when there is none).
    """

    fields: dict[str, str]
    auxiliary: str


def parse_marker_blocks(
    text: str,
    field_names: Sequence[str],
    *,
    start_marker: str = COMMIT_START_MARKER,
    end_marker: str = COMMIT_END_MARKER,
    delimiter: str = FIELD_DELIMITER,
) -> list[MarkedBlock]:
    """Split *text* into :class:`MarkedBlock` records.

    Text before the first start marker is ignored. A record whose end
    marker is missing (truncated output) is still returned, with all of
    its text treated as fields.
    """
    blocks: list[MarkedBlock] = []
    for chunk in text.split(start_marker)[1:]:
        structured, found, rest = chunk.partition(end_marker)
        auxiliary = rest.strip("\n") if found else ""
        blocks.append(
            MarkedBlock(
                fields=split_fields(structured, field_names, delimiter),
                auxiliary=auxiliary,
            )
        )
    return blocks


def split_auxiliary(
    auxiliary: str,
    sections: Sequence[str],
    *,
    header: str = DIFF_HEADER,
) -> dict[str, str | None]:
    """Divide an auxiliary block into the requested named sections.

    With one requested section the whole block belongs to it. With two, the
    block is split at the first line starting with *header*: text before it
    is the first section, the header line onwards the second. Sections that
    end up empty map to None.

    Example:
        >>> split_auxiliary(" a | 1 +\\ndiff --git a/a b/a", ["stat", "patch"])
        {'stat': ' a | 1 +', 'patch': 'diff --git a/a b/a'}
    """
    if not sections:
        return {}
    if len(sections) == 1:
        return {sections[0]: auxiliary or None}

    first, second = sections[0], sections[1]
    if auxiliary.startswith(header):
        head, tail = "", auxiliary
    else:
        head, found, rest = auxiliary.partition(f"\n{header}")
        tail = f"{header}{rest}" if found else ""

    parts: dict[str, str | None] = {
        first: head.strip("\n") or None,
        second: tail.strip("\n") or None,
    }
    for name in sections[2:]:
        parts[name] = None
    return parts
