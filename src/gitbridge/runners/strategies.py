"""Process spawning strategies.

Two strategies produce the same :class:`~gitbridge.runners.models.ProcessOutcome`:

- :class:`AsyncioSpawnStrategy` uses ``asyncio.create_subprocess_exec``.
- :class:`ThreadedSpawnStrategy` runs ``subprocess.Popen`` in a worker thread,
  for event loops without subprocess support (the selector loop on Windows,
  some embedded loops).

:func:`detect_spawn_strategy` picks one the first time it is called and
keeps that choice for the life of the process.

Both strategies enforce the same three stop conditions: timeout, the cancel
token, and the combined output cap. In each case the process is sent
SIGTERM, given :data:`~gitbridge.constants.TERMINATION_GRACE_PERIOD` and then
killed.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import subprocess
import sys
import threading
import time
from pathlib import Path
from typing import IO, TYPE_CHECKING, Literal, Protocol

from gitbridge.constants import TERMINATION_GRACE_PERIOD
from gitbridge.logging import get_logger
from gitbridge.runners.cancel import CancelToken
from gitbridge.runners.models import ProcessOutcome

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "SpawnStrategy",
    "SpawnStrategyName",
    "AsyncioSpawnStrategy",
    "ThreadedSpawnStrategy",
    "detect_spawn_strategy",
    "get_spawn_strategy",
]

logger = get_logger(__name__)

SpawnStrategyName = Literal["auto", "asyncio", "thread"]

#: Bytes requested per read from a pipe.
_CHUNK_SIZE = 64 * 1024

#: How often the threaded strategy re-checks its stop conditions (seconds).
_POLL_INTERVAL = 0.05


class _OutputOverflow(Exception):
    """Internal signal raised by a pump when the byte budget is exhausted."""


class _OutputBudget:
    """Shared byte counter for stdout + stderr of one process."""

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._used = 0
        self._lock = threading.Lock()

    def consume(self, size: int) -> bool:
        """Account for *size* bytes; False once the limit is exceeded."""
        with self._lock:
            self._used += size
            return self._used <= self._limit


class SpawnStrategy(Protocol):
    """Interface shared by the spawning strategies."""

    name: str

    async def spawn(
        self,
        command: Sequence[str],
        *,
        cwd: Path,
        env: dict[str, str],
        timeout: float | None,
        cancel_token: CancelToken | None,
        max_output_bytes: int,
    ) -> ProcessOutcome: ...


# =============================================================================
# asyncio subprocesses
# =============================================================================


class AsyncioSpawnStrategy:
    """Spawn with ``asyncio.create_subprocess_exec``."""

    name = "asyncio"

    async def spawn(
        self,
        command: Sequence[str],
        *,
        cwd: Path,
        env: dict[str, str],
        timeout: float | None,
        cancel_token: CancelToken | None,
        max_output_bytes: int,
    ) -> ProcessOutcome:
        """Run *command* to completion or until a stop condition fires.

        Raises:
            FileNotFoundError: The executable does not exist.
            PermissionError: The executable is not runnable.
        """
        start_time = time.monotonic()
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=env,
        )

        loop = asyncio.get_running_loop()
        cancel_event = asyncio.Event()
        unregister = (
            cancel_token.on_cancel(
                lambda: loop.call_soon_threadsafe(cancel_event.set)
            )
            if cancel_token is not None
            else _noop
        )

        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        budget = _OutputBudget(max_output_bytes)
        collect_task = asyncio.create_task(
            _collect(process, stdout_chunks, stderr_chunks, budget)
        )
        cancel_task = asyncio.create_task(cancel_event.wait())

        timed_out = False
        cancelled = False
        overflowed = False
        try:
            done, _ = await asyncio.wait(
                {collect_task, cancel_task},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if collect_task in done:
                if isinstance(collect_task.exception(), _OutputOverflow):
                    overflowed = True
                    await _terminate(process)
                else:
                    # Re-raise unexpected pump failures
                    collect_task.result()
            else:
                if cancel_task in done:
                    cancelled = True
                else:
                    timed_out = True
                await _terminate(process)
                collect_task.cancel()
                with contextlib.suppress(asyncio.CancelledError, _OutputOverflow):
                    await collect_task
        except asyncio.CancelledError:
            # The awaiting task itself was cancelled; do not leak the child
            collect_task.cancel()
            await _terminate(process)
            raise
        finally:
            unregister()
            cancel_task.cancel()

        duration_ms = int((time.monotonic() - start_time) * 1000)
        stopped = timed_out or cancelled or overflowed
        return ProcessOutcome(
            returncode=-1 if stopped else (process.returncode or 0),
            stdout=b"".join(stdout_chunks),
            stderr=b"".join(stderr_chunks),
            duration_ms=duration_ms,
            timed_out=timed_out,
            cancelled=cancelled,
            overflowed=overflowed,
        )


async def _collect(
    process: asyncio.subprocess.Process,
    stdout_chunks: list[bytes],
    stderr_chunks: list[bytes],
    budget: _OutputBudget,
) -> None:
    await asyncio.gather(
        _pump(process.stdout, stdout_chunks, budget),
        _pump(process.stderr, stderr_chunks, budget),
    )
    await process.wait()


async def _pump(
    stream: asyncio.StreamReader | None,
    chunks: list[bytes],
    budget: _OutputBudget,
) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        if not budget.consume(len(chunk)):
            raise _OutputOverflow
        chunks.append(chunk)


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """SIGTERM, wait for the grace period, then SIGKILL."""
    if process.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=TERMINATION_GRACE_PERIOD)
    except TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()


# =============================================================================
# Threaded subprocess.Popen
# =============================================================================


class ThreadedSpawnStrategy:
    """Spawn with ``subprocess.Popen`` inside ``asyncio.to_thread``."""

    name = "thread"

    async def spawn(
        self,
        command: Sequence[str],
        *,
        cwd: Path,
        env: dict[str, str],
        timeout: float | None,
        cancel_token: CancelToken | None,
        max_output_bytes: int,
    ) -> ProcessOutcome:
        # A private token lets task cancellation reach the worker thread too
        stop_token = CancelToken()
        unregister = (
            cancel_token.on_cancel(stop_token.cancel)
            if cancel_token is not None
            else _noop
        )
        try:
            return await asyncio.to_thread(
                self._spawn_blocking,
                list(command),
                cwd,
                env,
                timeout,
                stop_token,
                max_output_bytes,
            )
        except asyncio.CancelledError:
            stop_token.cancel("task cancelled")
            raise
        finally:
            unregister()

    def _spawn_blocking(
        self,
        command: list[str],
        cwd: Path,
        env: dict[str, str],
        timeout: float | None,
        stop_token: CancelToken,
        max_output_bytes: int,
    ) -> ProcessOutcome:
        start_time = time.monotonic()
        deadline = start_time + timeout if timeout is not None else None
        process = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=env,
        )

        budget = _OutputBudget(max_output_bytes)
        overflow = threading.Event()
        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        readers = [
            threading.Thread(
                target=_drain,
                args=(stream, chunks, budget, overflow),
                daemon=True,
            )
            for stream, chunks in (
                (process.stdout, stdout_chunks),
                (process.stderr, stderr_chunks),
            )
        ]
        for reader in readers:
            reader.start()

        timed_out = False
        cancelled = False
        while process.poll() is None:
            if stop_token.cancelled:
                cancelled = True
                break
            if overflow.is_set():
                break
            if deadline is not None and time.monotonic() >= deadline:
                timed_out = True
                break
            stop_token.wait(_POLL_INTERVAL)

        if process.poll() is None:
            _terminate_blocking(process)
        for reader in readers:
            reader.join()
        for stream in (process.stdout, process.stderr):
            if stream is not None:
                stream.close()

        overflowed = overflow.is_set()
        stopped = timed_out or cancelled or overflowed
        return ProcessOutcome(
            returncode=-1 if stopped else (process.returncode or 0),
            stdout=b"".join(stdout_chunks),
            stderr=b"".join(stderr_chunks),
            duration_ms=int((time.monotonic() - start_time) * 1000),
            timed_out=timed_out,
            cancelled=cancelled,
            overflowed=overflowed,
        )


def _drain(
    stream: IO[bytes] | None,
    chunks: list[bytes],
    budget: _OutputBudget,
    overflow: threading.Event,
) -> None:
    if stream is None:
        return
    while True:
        chunk = stream.read1(_CHUNK_SIZE)  # type: ignore[attr-defined]
        if not chunk:
            return
        if not budget.consume(len(chunk)):
            overflow.set()
            return
        chunks.append(chunk)


def _terminate_blocking(process: subprocess.Popen[bytes]) -> None:
    with contextlib.suppress(ProcessLookupError):
        process.terminate()
    try:
        process.wait(timeout=TERMINATION_GRACE_PERIOD)
    except subprocess.TimeoutExpired:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        process.wait()


def _noop() -> None:
    return None


# =============================================================================
# Detection
# =============================================================================


def _asyncio_subprocess_supported() -> bool:
    """True unless running on a Windows selector event loop."""
    if sys.platform != "win32":
        return True
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # Without a running loop the interpreter default (proactor) applies
        return True
    selector_loop = getattr(asyncio, "SelectorEventLoop", None)
    return selector_loop is None or not isinstance(loop, selector_loop)


@functools.cache
def detect_spawn_strategy() -> SpawnStrategy:
    """Return the strategy for this process, detected once and cached."""
    strategy: SpawnStrategy
    if _asyncio_subprocess_supported():
        strategy = AsyncioSpawnStrategy()
    else:
        strategy = ThreadedSpawnStrategy()
    logger.debug("spawn_strategy_detected", strategy=strategy.name)
    return strategy


def get_spawn_strategy(name: SpawnStrategyName = "auto") -> SpawnStrategy:
    """Return the strategy named *name*, detecting when ``"auto"``."""
    if name == "asyncio":
        return AsyncioSpawnStrategy()
    if name == "thread":
        return ThreadedSpawnStrategy()
    return detect_spawn_strategy()
