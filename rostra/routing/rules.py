import inspect
import re
import typing as t

from werkzeug.routing import Map, Rule, RuleFactory

from .converter import to_rule_path
from .handler import Handler, Next, compose


def respond_with_result(handler: Handler) -> Handler:
    """
    Wraps the last handler of a route. Its result is written into the context's response, so middlewares around it
    don't have to return what ``next()`` gives them.
    """

    async def _respond(context, next: Next):
        result = handler(context, next)
        if inspect.isawaitable(result):
            result = await result
        context.response.set_result(result)
        return result

    return _respond


class Route(RuleFactory):
    """
    A single entry of a ``Router``: a path, the allowed HTTP methods, and the handler chain to run when a request
    matches. String paths are compiled into a werkzeug ``Rule`` that has the route itself as endpoint. Paths that are
    compiled regular expressions are matched with ``fullmatch``, and their named groups become the request params.
    """

    path: t.Union[str, re.Pattern]
    methods: t.Optional[tuple[str, ...]]
    handlers: list[Handler]
    name: t.Optional[str]

    def __init__(
        self,
        path: t.Union[str, re.Pattern],
        methods: t.Optional[t.Iterable[str]],
        handlers: t.Iterable[Handler],
        name: t.Optional[str] = None,
        **kwargs,
    ):
        self.path = path
        self.methods = tuple(method.upper() for method in methods) if methods is not None else None
        self.handlers = list(handlers)
        self.name = name
        self.kwargs = kwargs
        if self.handlers:
            self.chain = compose([*self.handlers[:-1], respond_with_result(self.handlers[-1])])
        else:
            self.chain = compose([])

    @property
    def is_pattern(self) -> bool:
        return isinstance(self.path, re.Pattern)

    def allows(self, method: str) -> bool:
        if self.methods is None:
            return True
        if method == "HEAD" and "GET" in self.methods:
            return True
        return method in self.methods

    def match_pattern(self, path: str) -> t.Optional[dict[str, t.Any]]:
        match = self.path.fullmatch(path)
        if match is None:
            return None
        return match.groupdict()

    def get_rules(self, map: Map) -> t.Iterable[Rule]:
        yield Rule(to_rule_path(self.path), endpoint=self, methods=self.methods, **self.kwargs)

    def __repr__(self):
        path = self.path.pattern if self.is_pattern else self.path
        methods = ",".join(self.methods) if self.methods else "*"
        return f"<Route {methods} {path} name={self.name!r}>"
