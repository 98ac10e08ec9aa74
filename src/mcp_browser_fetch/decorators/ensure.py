# mcp_browser_fetch/decorators/ensure.py
import inspect
import functools


def with_context(fn):
    """
    Make sure a tool runs against an initialized BrowserContext.

    Callers may pass ``ctx=``; otherwise the process context is used. Nothing connects here:
    connections are opened lazily by the tools that need a page.
    """
    def _resolve(ctx):
        if ctx is None:
            from ..context import get_context  # late import, context imports the whole engine
            return get_context()
        if not ctx.is_initialized():
            ctx.init()
        return ctx

    if inspect.iscoroutinefunction(fn):
        @functools.wraps(fn)
        async def wrapper(*args, ctx=None, **kwargs):
            return await fn(*args, ctx=_resolve(ctx), **kwargs)
        return wrapper

    @functools.wraps(fn)
    def wrapper(*args, ctx=None, **kwargs):
        return fn(*args, ctx=_resolve(ctx), **kwargs)
    return wrapper
