from __future__ import annotations


class GitBridgeError(Exception):
    """Root of the gitbridge exception hierarchy.

    Everything raised deliberately by this package derives from this class,
    so a hosting application can catch gitbridge failures at its tool or
    request boundary while letting programming errors propagate.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            result = await service.run("push", {}, tenant_id="acme")
        except GitBridgeError as e:
            report_tool_failure(e.message)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the GitBridgeError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
