"""Output parsing engine.

Reusable strategies for turning git's text output into structured data:
delimited records, marker-bounded blocks, tracking suffixes, the line
classifier (conflicts and ref updates), diff-stat lines and porcelain v2
status.
"""

from __future__ import annotations

from gitbridge.parsing.diffstat import (
    DiffStatSummary,
    parse_stat_files,
    parse_stat_summary,
)
from gitbridge.parsing.lines import (
    ClassifiedLine,
    ConflictReport,
    LineKind,
    OutputScan,
    RefUpdate,
    classify_line,
    detect_conflicts,
    parse_ref_update,
    scan_output,
)
from gitbridge.parsing.markers import MarkedBlock, parse_marker_blocks, split_auxiliary
from gitbridge.parsing.records import parse_delimited_records, split_fields
from gitbridge.parsing.status import ChangeSet, PorcelainStatus, parse_porcelain_v2
from gitbridge.parsing.tracking import TrackingInfo, parse_tracking

__all__ = [
    # Records
    "parse_delimited_records",
    "split_fields",
    # Marker blocks
    "MarkedBlock",
    "parse_marker_blocks",
    "split_auxiliary",
    # Tracking
    "TrackingInfo",
    "parse_tracking",
    # Line classifier
    "ClassifiedLine",
    "ConflictReport",
    "LineKind",
    "OutputScan",
    "RefUpdate",
    "classify_line",
    "detect_conflicts",
    "parse_ref_update",
    "scan_output",
    # Diff stat
    "DiffStatSummary",
    "parse_stat_files",
    "parse_stat_summary",
    # Status
    "ChangeSet",
    "PorcelainStatus",
    "parse_porcelain_v2",
]
