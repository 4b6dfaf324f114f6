"""Process execution for git.

Provides :class:`GitRunner` (the execution adapter), :class:`CancelToken`
and the raw result models.
"""

from __future__ import annotations

from gitbridge.runners.cancel import CancelToken
from gitbridge.runners.command import GitRunner, build_git_env
from gitbridge.runners.models import CommandInvocation, ExecutionResult, ProcessOutcome
from gitbridge.runners.strategies import (
    AsyncioSpawnStrategy,
    SpawnStrategy,
    ThreadedSpawnStrategy,
    detect_spawn_strategy,
    get_spawn_strategy,
)

__all__ = [
    # Runner
    "GitRunner",
    "build_git_env",
    "CancelToken",
    # Models
    "CommandInvocation",
    "ExecutionResult",
    "ProcessOutcome",
    # Strategies
    "SpawnStrategy",
    "AsyncioSpawnStrategy",
    "ThreadedSpawnStrategy",
    "detect_spawn_strategy",
    "get_spawn_strategy",
]
