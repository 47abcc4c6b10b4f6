"""
The request context that is passed as first argument through every handler chain.
"""
import typing as t

from werkzeug.wrappers import Request

from .response import Response

if t.TYPE_CHECKING:
    from .routing.rules import Route


class RequestContext:
    """
    A request context holds the original incoming HTTP Request, the Response to be populated, and arbitrary data. It
    is passed through the handler chain and allows handlers to communicate. Once a route matched, ``route`` and
    ``params`` hold the matching route and the path parameters extracted from the URL.
    """

    request: Request
    response: Response
    params: dict[str, t.Any]
    route: t.Optional["Route"]

    def __init__(self, request: Request = None, response: Response = None):
        self.request = request
        self.response = response if response is not None else Response()
        self.params = {}
        self.route = None

    def __setattr__(self, key, value):
        self.__dict__[key] = value

    def __getattr__(self, item):
        try:
            return self.__dict__[item]
        except KeyError:
            pass
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{item}'")

    def get(self, key: str) -> t.Optional[t.Any]:
        return self.__dict__.get(key)
