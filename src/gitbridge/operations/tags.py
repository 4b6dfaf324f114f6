"""Tag operations."""

from __future__ import annotations

from gitbridge.builder import ArgvBuilder, require
from gitbridge.logging import get_logger
from gitbridge.models.options import CommandKind, TagOptions
from gitbridge.models.results import (
    ParsedResult,
    TagCreateResult,
    TagDeleteResult,
    TagListResult,
)
from gitbridge.operations.base import (
    OperationContext,
    OperationExecutor,
    non_empty_lines,
    resolve_sign,
)

__all__ = ["TagExecutor", "build_tag_argv"]

logger = get_logger(__name__)


def build_tag_argv(
    options: TagOptions, *, sign: bool | None = None, annotate: bool = False
) -> tuple[str, ...]:
    """Argument vector for the selected tag mode.

    A signed tag always carries a message (``Tag <name>`` by default). An
    unsigned tag is annotated when ``annotated`` or *annotate* is set or a
    message is given, since ``-m`` implies an annotated tag anyway. The
    unsigned retry of a signed tag passes *annotate* so it keeps its message.
    """
    command = CommandKind.TAG.value
    if options.mode == "list":
        return ("tag", "-l")
    name = require(options.name, "name", command)
    if options.mode == "delete":
        return ArgvBuilder("tag", "-d").positional(name).build()

    builder = ArgvBuilder("tag")
    if sign:
        builder.flag("-s").pair("-m", options.message or f"Tag {name}")
    elif annotate or options.annotated or options.message:
        builder.flag("-a").pair("-m", options.message or f"Tag {name}")
    return builder.flag("--force", options.force).positional(name, options.commit).build()


class TagExecutor(OperationExecutor[TagOptions, ParsedResult]):
    """``git tag`` list/create/delete, with signing fallback on create."""

    command = CommandKind.TAG

    def build_argv(self, options: TagOptions) -> tuple[str, ...]:
        return build_tag_argv(options, sign=options.sign)

    async def execute(
        self,
        ctx: OperationContext,
        options: TagOptions,
        argv: tuple[str, ...],
    ) -> ParsedResult:
        if options.mode == "list":
            result = await self._run(ctx, argv)
            return TagListResult(tags=tuple(non_empty_lines(result.stdout)))

        name = require(options.name, "name", self.command.value)
        if options.mode == "delete":
            await self._run(ctx, argv)
            logger.info("git_tag_deleted", tag=name)
            return TagDeleteResult(deleted=name)

        sign = resolve_sign(options.sign, ctx.signing.sign_tags)
        _, signed = await self._run_signed(
            ctx,
            lambda s: build_tag_argv(options, sign=s, annotate=bool(sign)),
            sign=sign,
            fallback=options.force_unsigned_on_failure,
        )
        logger.info("git_tag_created", tag=name, signed=signed)
        return TagCreateResult(created=name, signed=signed)
