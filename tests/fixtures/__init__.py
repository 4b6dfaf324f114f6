"""Shared test fixtures for the gitbridge test suite.

Runner Mocks (from tests/fixtures/runners.py)
----------------------------------------------

Functions:
    make_result: Build an ExecutionResult (stdout, stderr, exit code).

Fixtures:
    mock_runner: AsyncMock GitRunner. ``run`` returns an empty successful
        result by default; ``map_failure`` classifies with the real mapper.

    op_context: OperationContext bound to mock_runner and ``tmp_path``.

Example:
    >>> @pytest.mark.asyncio
    ... async def test_status(mock_runner, op_context):
    ...     mock_runner.run.return_value = make_result(stdout="# branch.head main\\n")
    ...     result = await StatusExecutor().execute(op_context, options, argv)
    ...     assert result.current_branch == "main"
"""

from __future__ import annotations

from tests.fixtures.runners import make_result, mock_runner, op_context

__all__ = [
    "make_result",
    "mock_runner",
    "op_context",
]
