"""Upstream tracking suffix parsing.

Decodes ``%(upstream:track)`` values such as ``[ahead 2, behind 1]`` and
``[gone]``.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass

__all__ = ["TrackingInfo", "parse_tracking"]

_AHEAD_RE = re.compile(r"ahead (\d+)")
_BEHIND_RE = re.compile(r"behind (\d+)")


@dataclass(frozen=True, slots=True)
class TrackingInfo:
    """Relationship between a branch and its upstream.

    Attributes:
        upstream: Upstream ref name (e.g. ``"origin/main"``), if any.
        ahead: Commits on the branch not on the upstream.
        behind: Commits on the upstream not on the branch.
        gone: The configured upstream no longer exists.
    """

    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    gone: bool = False

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def parse_tracking(track: str, upstream: str | None = None) -> TrackingInfo:
    """Parse a bracketed tracking suffix.

    Args:
        track: ``"[ahead 2, behind 1]"``, ``"ahead 2"``, ``"[gone]"`` or "".
        upstream: Upstream name reported alongside, if known.
    """
    body = track.strip().strip("[]")
    ahead = _AHEAD_RE.search(body)
    behind = _BEHIND_RE.search(body)
    return TrackingInfo(
        upstream=upstream or None,
        ahead=int(ahead.group(1)) if ahead else 0,
        behind=int(behind.group(1)) if behind else 0,
        gone=body == "gone",
    )
