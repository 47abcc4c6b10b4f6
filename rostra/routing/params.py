import re
import typing as t

from .controller import ControllerRegistry, resolve_controller


class RouteArguments(t.NamedTuple):
    """
    The arguments of a route declaration, split into the prefix (either ``[path]`` or ``[name, path]``) and the
    handlers, where the last handler is the resolved controller.
    """

    prefix: list[t.Any]
    handlers: list[t.Any]

    @property
    def name(self) -> t.Optional[str]:
        if len(self.prefix) == 2:
            return self.prefix[0]
        return None

    @property
    def path(self) -> t.Union[str, re.Pattern, None]:
        if not self.prefix:
            return None
        return self.prefix[-1]


def split_route_args(
    args: t.Sequence[t.Any], namespace: t.Union[ControllerRegistry, t.Mapping, None] = None
) -> RouteArguments:
    """
    Splits the positional arguments of a route declaration. Declarations come in two forms::

        router.get("/users", auth, "user.index")             # (path, *middlewares, controller)
        router.get("users", "/users", auth, "user.index")    # (name, path, *middlewares, controller)

    The second form is assumed if there are at least three arguments and the second one is a string or a compiled
    regular expression. The last argument is always the controller, and it's resolved against the namespace.

    :param args: the arguments passed to the declaration
    :param namespace: the controllers to resolve string references against
    :return: the split arguments
    :raises ResolutionError: if the controller cannot be resolved
    """
    args = list(args)

    if len(args) >= 3 and isinstance(args[1], (str, re.Pattern)):
        prefix = args[:2]
        handlers = args[2:]
    else:
        prefix = args[:1]
        handlers = args[1:]

    controller = handlers.pop() if handlers else None
    handlers.append(resolve_controller(controller, namespace))

    return RouteArguments(prefix, handlers)
