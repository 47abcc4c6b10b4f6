import logging
import re
import threading
import typing as t

from werkzeug.exceptions import MethodNotAllowed, NotFound
from werkzeug.exceptions import NotImplemented as MethodNotImplemented
from werkzeug.routing import BaseConverter, BuildError, Map

from rostra.context import RequestContext
from rostra.errors import RoutingError
from rostra.response import Response

from .converter import RegexConverter
from .handler import Handler, Next
from .rules import Route

if t.TYPE_CHECKING:
    from rostra.serving.wsgi import WsgiRouter

LOG = logging.getLogger(__name__)

HTTP_METHODS = ("HEAD", "OPTIONS", "GET", "PUT", "PATCH", "POST", "DELETE")

PathType = t.Union[str, re.Pattern]


def _clone_map_without_rules(old: Map) -> Map:
    return Map(
        default_subdomain=old.default_subdomain,
        strict_slashes=old.strict_slashes,
        merge_slashes=old.merge_slashes,
        redirect_defaults=old.redirect_defaults,
        converters=old.converters,
        sort_parameters=old.sort_parameters,
        sort_key=old.sort_key,
        host_matching=old.host_matching,
    )


def _clone_map_with_rules(old: Map) -> Map:
    """
    Creates a new copy of the existing map, with fresh unbound copies of all its containing rules.

    :param old: the map to copy
    :return: a new instance of the map
    """
    new = _clone_map_without_rules(old)

    for old_rule in old.iter_rules():
        new.add(old_rule.empty())

    return new


class Router:
    """
    A Router is a wrapper around werkzeug's routing Map. Each registered ``Route`` holds a chain of handlers that
    follow the ``(context, next)`` protocol, which is run by ``dispatch`` when a request matches the route::

        async def show_user(context, next):
            return {"id": context.params["id"]}

        router = Router(prefix="/api")
        router.get("/users/:id", show_user, name="user")

        router.url_for("user", id=7)  # "/api/users/7"
    """

    default_converters: dict[str, t.Type[BaseConverter]] = {
        "regex": RegexConverter,
    }

    url_map: Map
    routes: list[Route]

    def __init__(
        self,
        prefix: str = None,
        strict_slashes: bool = False,
        converters: t.Mapping[str, t.Type[BaseConverter]] = None,
        methods: t.Iterable[str] = None,
    ):
        if converters is None:
            converters = dict(self.default_converters)
        else:
            converters = {**self.default_converters, **converters}

        self.prefix = (prefix or "").rstrip("/")
        self.methods = tuple(method.upper() for method in (methods or HTTP_METHODS))
        self.url_map = Map(
            strict_slashes=strict_slashes,
            converters=converters,
            redirect_defaults=False,
        )
        self.routes = []
        self._pattern_routes: list[Route] = []
        self._mutex = threading.RLock()

    def register(
        self,
        path: PathType,
        methods: t.Optional[t.Iterable[str]],
        handlers: t.Union[Handler, t.Iterable[Handler]],
        name: t.Optional[str] = None,
        **kwargs,
    ) -> "Router":
        """
        Creates a new ``Route`` and adds it to the router.

        :param path: the path pattern to match, using ``:param`` or werkzeug ``<param>`` placeholders, or a compiled
            regular expression that has to match the entire path
        :param methods: the allowed HTTP verbs for this route, or None to allow any method
        :param handlers: the handler chain
        :param name: an optional name for the route, which can be used to build URLs with ``url_for``
        :param kwargs: any other argument that can be passed to ``werkzeug.routing.Rule``
        :return: the router
        """
        if callable(handlers):
            handlers = [handlers]

        route = Route(self._prefixed(path), methods, handlers, name=name, **kwargs)
        LOG.debug("registering %s", route)

        with self._mutex:
            if route.is_pattern:
                self._pattern_routes = [*self._pattern_routes, route]
            else:
                self._add_rules(route)
            self.routes = [*self.routes, route]

        return self

    def _prefixed(self, path: PathType) -> PathType:
        if not self.prefix or not isinstance(path, str):
            return path
        if not path or path == "/":
            return self.prefix
        return self.prefix + (path if path.startswith("/") else "/" + path)

    def _add_rules(self, route: Route):
        """
        Thread safe version of Werkzeug's ``Map.add``. The method clones and replaces the underlying URL Map, which
        guarantees that ``match`` never sees a partially updated map. Adding rules is therefore a relatively
        expensive operation.

        :param route: the route to add
        """
        with self._mutex:
            new = _clone_map_with_rules(self.url_map)
            for rule in route.get_rules(new):
                new.add(rule)
            self.url_map = new

    def add_route(self, methods: t.Optional[t.Iterable[str]], path: PathType, *handlers, name: str = None):
        return self.register(path, methods, list(handlers), name=name)

    def head(self, *args, **kwargs) -> "Router":
        return self.add_route(["HEAD"], *args, **kwargs)

    def options(self, *args, **kwargs) -> "Router":
        return self.add_route(["OPTIONS"], *args, **kwargs)

    def get(self, *args, **kwargs) -> "Router":
        return self.add_route(["GET"], *args, **kwargs)

    def put(self, *args, **kwargs) -> "Router":
        return self.add_route(["PUT"], *args, **kwargs)

    def patch(self, *args, **kwargs) -> "Router":
        return self.add_route(["PATCH"], *args, **kwargs)

    def post(self, *args, **kwargs) -> "Router":
        return self.add_route(["POST"], *args, **kwargs)

    def delete(self, *args, **kwargs) -> "Router":
        return self.add_route(["DELETE"], *args, **kwargs)

    def all(self, *args, **kwargs) -> "Router":
        return self.add_route(list(self.methods), *args, **kwargs)

    def route(
        self, path: PathType, methods: t.Optional[t.Iterable[str]] = None, name: str = None, **kwargs
    ) -> t.Callable[[Handler], Handler]:
        """
        Returns a decorator that registers the decorated handler as route. This effectively mimics flask's
        ``@app.route``.

        :param path: the path pattern to match
        :param methods: the allowed HTTP verbs for this route
        :param name: an optional route name
        :param kwargs: any other argument that can be passed to ``werkzeug.routing.Rule``
        :return: a decorator that returns the handler unchanged
        """

        def wrapper(fn):
            self.register(path, methods, [fn], name=name, **kwargs)
            return fn

        return wrapper

    def redirect(self, source: PathType, destination: str, status: int = 301) -> "Router":
        """
        Registers a route for all methods that redirects to the given destination.

        :param source: the path to redirect from
        :param destination: the URL to redirect to, or the name of a route
        :param status: the redirect status code
        :return: the router
        """
        if not destination.startswith("/") and self.find(destination):
            destination = self.url_for(destination)

        def redirect_handler(context, next):
            context.response.status_code = status
            context.response.headers["Location"] = destination

        return self.all(source, redirect_handler)

    def find(self, name: str) -> t.Optional[Route]:
        """
        Returns the first route registered with the given name.

        :param name: the route name
        :return: the route or None
        """
        for route in self.routes:
            if route.name == name:
                return route
        return None

    def url_for(self, name: str, **params) -> str:
        """
        Builds the path of the named route. Params that are not part of the path are added as query string.

        :param name: the route name
        :param params: the path parameters
        :return: the URL path
        :raises RoutingError: if there is no route with this name, or the URL cannot be built
        """
        route = self.find(name)
        if route is None:
            raise RoutingError(f"no route named '{name}'")
        if route.is_pattern:
            raise RoutingError(f"cannot build a URL for the regex route '{name}'")

        try:
            return self.url_map.bind("localhost").build(route, params)
        except BuildError as e:
            raise RoutingError(f"cannot build a URL for '{name}': {e}") from e

    def match(self, path: str, method: str = "GET") -> tuple[Route, dict[str, t.Any]]:
        """
        Finds the route that matches the given path and method.

        :param path: the request path
        :param method: the request method
        :return: a tuple of the matching route and the path parameters
        :raises NotFound: if no route matches the path
        :raises MethodNotAllowed: if routes match the path, but none of them allows the method
        :raises MethodNotImplemented: if the router does not implement the method
        """
        if method not in self.methods:
            raise MethodNotImplemented()

        matcher = self.url_map.bind("localhost")
        try:
            return matcher.match(path, method=method)
        except NotFound:
            if not self._pattern_routes:
                raise

        allowed = set()
        for route in self._pattern_routes:
            params = route.match_pattern(path)
            if params is None:
                continue
            if route.allows(method):
                return route, params
            allowed.update(route.methods)

        if allowed:
            raise MethodNotAllowed(valid_methods=sorted(allowed))
        raise NotFound()

    async def dispatch(self, context: RequestContext, next: Next = None) -> Response:
        """
        Matches the request of the given context, and runs the handler chain of the matching route. The result of
        the route's last handler is written into the context's response.

        :param context: the request context
        :param next: an optional continuation that is run after the last handler of the route
        :return: the response of the context
        """
        request = context.request
        route, params = self.match(request.path, request.method)

        context.route = route
        context.params = params

        await route.chain(context, next)
        return context.response

    def routes_handler(self) -> Handler:
        """
        Returns the router as a handler, which can be used as middleware in another handler chain. If no route
        matches, the handler calls ``next``.
        """

        async def _dispatch_routes(context: RequestContext, next: Next):
            try:
                route, params = self.match(context.request.path, context.request.method)
            except NotFound:
                return await next()

            context.route = route
            context.params = params
            return await route.chain(context, next)

        return _dispatch_routes

    def wsgi(self) -> "WsgiRouter":
        """
        Returns this router as a WSGI compatible interface. This can be used to conveniently serve a Router instance
        through a WSGI server, for instance werkzeug's dev server::

            from werkzeug.serving import run_simple

            run_simple("localhost", 5000, router.wsgi())

        :return: a WSGI callable that invokes this router
        """
        from rostra.serving.wsgi import WsgiRouter

        return WsgiRouter(self)
