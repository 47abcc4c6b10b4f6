import functools
import logging
import typing as t

from .controller import ControllerRegistry, resolve_controller
from .handler import Handler, Next, invoke_action, normalize
from .params import split_route_args
from .resource import expand
from .router import PathType, Router

LOG = logging.getLogger(__name__)


def _wrap_controller(controller: t.Callable) -> Handler:
    """
    Wraps a resolved controller action as the terminal handler of a chain. The action is invoked through
    ``invoke_action``, so it may be a generator function, and it may or may not accept ``next``.
    """

    def _controller_handler(context, next: Next):
        return invoke_action(controller, context, next)

    if callable(controller):
        functools.update_wrapper(
            _controller_handler, controller, assigned=("__module__", "__name__", "__qualname__", "__doc__"), updated=()
        )
        del _controller_handler.__wrapped__
    return _controller_handler


class ResourceRouter(Router):
    """
    A router that accepts the declarative route definition style. Routes can be declared with an optional route name,
    any number of middlewares, and a controller that can be referenced by a dotted name::

        controllers = ControllerRegistry({"user": UserController, "home": home})

        router = ResourceRouter(controllers=controllers)
        router.get("/", "home")
        router.get("user_avatar", "/users/:id/avatar", require_login, "user.avatar")
        router.resources("user", "/users", require_login, "user")

    Middlewares and controllers can be plain functions, coroutine functions, or generator functions, they are all
    normalized to the ``(context, next)`` handler protocol.
    """

    controllers: ControllerRegistry

    def __init__(
        self,
        controllers: t.Union[ControllerRegistry, t.Mapping[str, t.Any], None] = None,
        strict_resources: bool = False,
        **kwargs,
    ):
        """
        :param controllers: the controllers string references are resolved against
        :param strict_resources: reject resource controllers that don't provide all REST actions
        :param kwargs: options passed to ``Router``
        """
        super().__init__(**kwargs)
        if isinstance(controllers, ControllerRegistry):
            self.controllers = controllers
        else:
            self.controllers = ControllerRegistry(controllers)
        self.strict_resources = strict_resources

    def add_route(self, methods: t.Optional[t.Iterable[str]], *args, name: str = None) -> "ResourceRouter":
        """
        Declares a route for the given methods. ``args`` are ``([name,] path, *middlewares, controller)``.
        """
        arguments = split_route_args(args, self.controllers)
        return self.register(arguments.path, methods, arguments.handlers, name=arguments.name or name)

    def register(
        self,
        path: t.Union[PathType, t.Sequence[PathType]],
        methods: t.Optional[t.Iterable[str]],
        handlers: t.Union[t.Any, t.Sequence[t.Any]],
        name: t.Optional[str] = None,
        **kwargs,
    ) -> "ResourceRouter":
        """
        Registers one route per given path, all sharing the same methods, handlers and name. The last handler is the
        controller action, which may still be a reference that is resolved against ``controllers``. All handlers are
        normalized to the ``(context, next)`` protocol.

        :param path: a path, or a list of paths
        :param methods: the allowed HTTP verbs
        :param handlers: the middlewares followed by the controller, or a single controller
        :param name: an optional route name
        :param kwargs: any other argument that can be passed to ``werkzeug.routing.Rule``
        :return: the router
        """
        if not isinstance(handlers, (list, tuple)):
            handlers = [handlers]
        handlers = self._convert_handlers(list(handlers))

        paths = path if isinstance(path, (list, tuple)) else [path]
        for p in paths:
            super().register(p, methods, handlers, name=name, **kwargs)

        return self

    def _convert_handlers(self, handlers: list[t.Any]) -> list[Handler]:
        controller = resolve_controller(handlers.pop() if handlers else None, self.controllers)
        middlewares = [normalize(handler) for handler in handlers]
        return [*middlewares, _wrap_controller(controller)]

    def resources(self, *args) -> "ResourceRouter":
        """
        Declares a RESTful resource. ``args`` are ``([name,] path, *middlewares, controller)``, where the controller
        provides some of the actions ``index``, ``new``, ``create``, ``show``, ``edit``, ``update`` and ``destroy``.
        Every action the controller provides becomes a route, see ``rostra.routing.resource.REST_ACTIONS``.

        :return: the router
        """
        arguments = split_route_args(args, self.controllers)
        middlewares = arguments.handlers
        controller = middlewares.pop()
        LOG.debug("expanding resource %s with controller %s", arguments.prefix, controller)

        for registration in expand(arguments.prefix, controller, middlewares, strict=self.strict_resources):
            self.register(
                registration.path,
                list(registration.methods),
                list(registration.handlers),
                name=registration.name,
            )

        return self
