"""Error Message Formatting — renders (ErrorKind, ErrorContext) into user-facing text.

Invariants:
    - Pure: no IO, output depends only on kind + context
    - Never includes debug_info (internal details stay out of responses)
"""

from meetup.core.errors import ErrorContext, ErrorKind


def _resource(ctx: ErrorContext) -> str:
    name = ctx.resource_type.value if ctx.resource_type else "Resource"
    return f"{name} '{ctx.resource_id}'" if ctx.resource_id else name


def format_error_message(kind: ErrorKind, ctx: ErrorContext) -> str:
    """Render a one-line message for the given error kind."""
    if kind is ErrorKind.NOT_FOUND:
        return f"{_resource(ctx)} not found"
    if kind is ErrorKind.NOT_A_MEMBER:
        return f"User '{ctx.user_id}' is not a member of {_resource(ctx)}"
    if kind is ErrorKind.ALREADY_MEMBER:
        return f"User '{ctx.user_id}' is already a member of {_resource(ctx)}"
    if kind is ErrorKind.BAD_VALUES:
        return f"Invalid values: {ctx.detail or 'request rejected'}"
    if kind is ErrorKind.NOT_ALLOWED:
        return f"Not allowed: {ctx.detail or 'operation forbidden'}"
    if kind is ErrorKind.UNAUTHENTICATED:
        return f"Not authenticated: {ctx.detail or 'no acting user'}"
    if kind is ErrorKind.CONTENTION:
        suffix = f" after {ctx.attempt} attempt(s)" if ctx.attempt else ""
        return f"{_resource(ctx)} is busy{suffix}; retry shortly"
    if kind is ErrorKind.STORE:
        return f"Database {ctx.operation or 'operation'} failed: {ctx.detail}"
    return kind.value
