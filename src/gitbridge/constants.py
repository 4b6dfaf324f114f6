"""Constants shared by the builder, runner and parsers."""

from __future__ import annotations

from typing import Final

__all__ = [
    "GIT_BINARY",
    "DEFAULT_TIMEOUT",
    "NETWORK_TIMEOUT",
    "TERMINATION_GRACE_PERIOD",
    "MAX_OUTPUT_BYTES",
    "FIELD_DELIMITER",
    "RECORD_DELIMITER",
    "COMMIT_START_MARKER",
    "COMMIT_END_MARKER",
    "DIFF_HEADER",
    "DEFAULT_REMOTE",
    "DEFAULT_INITIAL_BRANCH",
    "DEFAULT_MERGE_STRATEGY",
    "DEFAULT_STASH_REF",
    "NON_INTERACTIVE_ENV",
    "LOCALE_ENV",
]

GIT_BINARY: Final = "git"

#: Default per-call timeout for local operations (seconds).
DEFAULT_TIMEOUT: Final = 120.0

#: Timeout for clone/fetch/pull/push (seconds).
NETWORK_TIMEOUT: Final = 600.0

#: Time between SIGTERM and SIGKILL when stopping a subprocess (seconds).
TERMINATION_GRACE_PERIOD: Final = 2.0

#: Cap on combined stdout + stderr bytes captured from one invocation.
MAX_OUTPUT_BYTES: Final = 50 * 1024 * 1024

#: ASCII unit separator, splits fields inside a record.
FIELD_DELIMITER: Final = "\x1f"

#: ASCII record separator, terminates a record when lines are not enough.
RECORD_DELIMITER: Final = "\x1e"

COMMIT_START_MARKER: Final = "<<<COMMIT_START>>>"
COMMIT_END_MARKER: Final = "<<<COMMIT_END>>>"

#: Sub-header that starts the patch section of a ``log --stat -p`` block.
DIFF_HEADER: Final = "diff --git"

DEFAULT_REMOTE: Final = "origin"
DEFAULT_INITIAL_BRANCH: Final = "main"
DEFAULT_MERGE_STRATEGY: Final = "ort"
DEFAULT_STASH_REF: Final = "stash@{0}"

#: Applied after every other env source; callers cannot re-enable prompts.
NON_INTERACTIVE_ENV: Final = {
    "GIT_TERMINAL_PROMPT": "0",
    "GCM_INTERACTIVE": "never",
    "GIT_EDITOR": "true",
}

#: Stable English output so the text parsers see the messages they expect.
LOCALE_ENV: Final = {
    "LANG": "en_US.UTF-8",
    "LC_ALL": "en_US.UTF-8",
}
