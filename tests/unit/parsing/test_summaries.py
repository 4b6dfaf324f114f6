"""Tests for tracking suffixes and diff-stat parsing."""

from __future__ import annotations

import pytest

from gitbridge.parsing import (
    DiffStatSummary,
    TrackingInfo,
    parse_stat_files,
    parse_stat_summary,
    parse_tracking,
)

MERGE_STDOUT = """\
Updating 1a2b3c4..5d6e7f8
Fast-forward
 src/app.py          | 12 +++++++-----
 docs/guide with space.md |  3 +++
 assets/logo.png     | Bin 0 -> 1024 bytes
 3 files changed, 10 insertions(+), 5 deletions(-)
"""


class TestParseTracking:
    @pytest.mark.parametrize(
        ("track", "ahead", "behind", "gone"),
        [
            ("[ahead 2, behind 1]", 2, 1, False),
            ("[ahead 3]", 3, 0, False),
            ("[behind 7]", 0, 7, False),
            ("ahead 4", 4, 0, False),
            ("[gone]", 0, 0, True),
            ("", 0, 0, False),
        ],
    )
    def test_counts(self, track: str, ahead: int, behind: int, gone: bool) -> None:
        info = parse_tracking(track, "origin/main")
        assert (info.ahead, info.behind, info.gone) == (ahead, behind, gone)

    def test_upstream_empty_string_is_none(self) -> None:
        assert parse_tracking("", "").upstream is None

    def test_to_dict(self) -> None:
        assert parse_tracking("[ahead 1]", "origin/x").to_dict() == {
            "upstream": "origin/x",
            "ahead": 1,
            "behind": 0,
            "gone": False,
        }

    def test_default(self) -> None:
        assert TrackingInfo() == parse_tracking("")


class TestDiffStat:
    def test_files(self) -> None:
        assert parse_stat_files(MERGE_STDOUT) == [
            "src/app.py",
            "docs/guide with space.md",
            "assets/logo.png",
        ]

    def test_conflict_lines_skipped(self) -> None:
        text = "CONFLICT (content): Merge conflict in a | b\n x.py | 1 +\n"
        assert parse_stat_files(text) == ["x.py"]

    def test_summary(self) -> None:
        assert parse_stat_summary(MERGE_STDOUT) == DiffStatSummary(3, 10, 5)

    @pytest.mark.parametrize(
        ("line", "expected"),
        [
            (" 1 file changed, 1 insertion(+)", DiffStatSummary(1, 1, 0)),
            (" 2 files changed, 4 deletions(-)", DiffStatSummary(2, 0, 4)),
            (" 1 file changed, 1 insertion(+), 1 deletion(-)", DiffStatSummary(1, 1, 1)),
        ],
    )
    def test_summary_variants(self, line: str, expected: DiffStatSummary) -> None:
        assert parse_stat_summary(line) == expected

    def test_no_summary(self) -> None:
        assert parse_stat_summary("Already up to date.") == DiffStatSummary()
