"""
Normalization of route handlers. Every handler in a route's chain is called as ``handler(context, next)``, where
``next()`` returns an awaitable that runs the rest of the chain. Handlers can be written in three ways, and all of them
behave the same once they went through ``normalize``::

    def plain(context, next):
        context.response.headers["X-Plain"] = "1"
        return next()

    async def coroutine(context, next):
        await next()
        context.response.headers["X-Async"] = "1"

    def legacy(context, next):
        result = yield next
        context.response.headers["X-Legacy"] = "1"

Legacy (generator) handlers suspend by yielding. The yielded value is resolved and sent back into the generator:
awaitables are awaited, generators are driven, zero-argument callables (like ``next``) are called, and lists, tuples
or dicts are resolved concurrently.
"""
import asyncio
import functools
import inspect
import logging
import types
import typing as t

LOG = logging.getLogger(__name__)

Next = t.Callable[[], t.Awaitable[t.Any]]


class Handler(t.Protocol):
    """The signature of a handler in a route's handler chain."""

    def __call__(self, context: t.Any, next: Next) -> t.Any:
        """
        Handle the request.

        :param context: the request context
        :param next: returns an awaitable that invokes the remaining handlers of the chain
        :return: optionally a result value, or an awaitable that resolves to one
        """
        ...


def is_generator_function(fn: t.Any) -> bool:
    """
    Returns True if calling ``fn`` creates a generator. Sees through ``functools.partial`` and bound methods, and
    looks at ``__call__`` for callable objects.
    """
    if inspect.isgeneratorfunction(fn):
        return True
    if inspect.isfunction(fn) or inspect.ismethod(fn) or isinstance(fn, functools.partial):
        return False
    return inspect.isgeneratorfunction(getattr(fn, "__call__", None))


async def _resolve(value: t.Any) -> t.Any:
    if inspect.isawaitable(value):
        return await value
    if inspect.isgenerator(value):
        return await _drive(value)
    if isinstance(value, (list, tuple)):
        return list(await asyncio.gather(*[_resolve(item) for item in value]))
    if isinstance(value, dict):
        results = await asyncio.gather(*[_resolve(item) for item in value.values()])
        return dict(zip(value.keys(), results))
    if callable(value):
        result = value()
        if inspect.isawaitable(result) or inspect.isgenerator(result):
            return await _resolve(result)
        return result

    raise TypeError(
        f"cannot yield a {type(value).__name__} from a handler, only awaitables, generators, "
        f"callables, lists and dicts are supported"
    )


async def _drive(gen: t.Generator) -> t.Any:
    """Runs the given generator to completion and returns its return value."""
    value = None
    error = None
    try:
        while True:
            try:
                if error is not None:
                    yielded = gen.throw(error)
                else:
                    yielded = gen.send(value)
            except StopIteration as e:
                return e.value

            value, error = None, None
            try:
                value = await _resolve(yielded)
            except Exception as e:
                error = e
    finally:
        gen.close()


def to_coroutine(fn: t.Callable[..., t.Generator]) -> t.Callable[..., t.Awaitable[t.Any]]:
    """
    Converts a generator function into a coroutine function. The returned function takes the same arguments, and
    drives the generator to completion when awaited.

    :param fn: the generator function
    :return: an ``async`` function
    """

    @functools.wraps(fn)
    async def _wrapper(*args, **kwargs):
        return await _drive(fn(*args, **kwargs))

    return _wrapper


def normalize(handler: t.Callable) -> Handler:
    """
    Makes sure the given handler follows the ``Handler`` protocol. Generator based handlers are converted with
    ``to_coroutine``, any other callable is returned unchanged.

    :param handler: the handler to normalize
    :return: the normalized handler
    """
    if is_generator_function(handler):
        LOG.debug("converting generator handler %s", handler)
        return to_coroutine(handler)
    return handler


def invoke(fn: t.Any, args: t.Sequence[t.Any] = None, receiver: t.Any = None) -> t.Any:
    """
    Calls ``fn`` with the given arguments, converting generator functions first. If ``receiver`` is given and ``fn``
    is a plain function, the receiver is bound as its first argument (like ``self`` for methods). Non-callables are
    ignored.

    :param fn: the function to call
    :param args: positional arguments
    :param receiver: optional object to bind the function to
    :return: whatever the function returns, which may be an awaitable
    """
    args = args or ()
    if not callable(fn):
        return None

    bind = receiver is not None and inspect.isfunction(fn)
    if is_generator_function(fn):
        fn = to_coroutine(fn)
    if bind:
        fn = types.MethodType(fn, receiver)

    return fn(*args)


def accepts_continuation(fn: t.Callable) -> bool:
    """
    Returns True if the given callable can be called with a second positional argument (the ``next`` continuation).
    Callables whose signature cannot be inspected are assumed to accept it.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return True

    positional = 0
    for param in signature.parameters.values():
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            positional += 1

    return positional >= 2


def invoke_action(fn: t.Callable, context: t.Any, next: Next, receiver: t.Any = None) -> t.Any:
    """
    Invokes a terminal controller action. Actions may take ``(context, next)`` or only ``(context)``.
    """
    target = fn
    if receiver is not None and inspect.isfunction(fn):
        target = types.MethodType(fn, receiver)

    if accepts_continuation(target):
        return invoke(fn, (context, next), receiver)
    return invoke(fn, (context,), receiver)


def compose(handlers: t.Iterable[Handler]) -> t.Callable[..., t.Awaitable[t.Any]]:
    """
    Composes the given handlers into a single coroutine function ``composed(context, next=None)``. Each handler is
    called with the context and a ``next`` callable that runs the next handler in the list. After the last handler,
    ``next`` runs the outer continuation if one was passed. The composed function returns the result of the first
    handler.

    :param handlers: the handlers to compose
    :return: the composed coroutine function
    """
    handlers = list(handlers)

    async def composed(context: t.Any, next: Next = None) -> t.Any:
        index = -1

        async def dispatch(i: int) -> t.Any:
            nonlocal index
            if i <= index:
                raise RuntimeError("next() called multiple times")
            index = i

            if i < len(handlers):
                handler = handlers[i]
            else:
                handler = next

            if handler is None:
                return None

            if i < len(handlers):
                result = handler(context, functools.partial(dispatch, i + 1))
            else:
                result = handler()

            if inspect.isawaitable(result):
                result = await result
            return result

        return await dispatch(0)

    return composed
