import asyncio
import logging
import typing as t

from werkzeug.datastructures import Headers
from werkzeug.exceptions import HTTPException, InternalServerError
from werkzeug.routing import RequestRedirect
from werkzeug.wrappers import Request

from rostra.context import RequestContext
from rostra.response import Response

if t.TYPE_CHECKING:
    from _typeshed.wsgi import StartResponse, WSGIEnvironment

    from rostra.routing.router import Router

LOG = logging.getLogger(__name__)


class WsgiRouter:
    """
    Exposes a ``Router`` as a WSGI application. Every request gets its own ``RequestContext``, and the handler chain
    of the matching route runs on a new event loop. Werkzeug HTTP exceptions raised while routing or handling the
    request are rendered as JSON documents, any other exception results in a 500 response.
    """

    router: "Router"

    def __init__(self, router: "Router", context_class: t.Type[RequestContext] = None) -> None:
        super().__init__()
        self.router = router
        self.context_class = context_class or RequestContext

    def __call__(
        self, environ: "WSGIEnvironment", start_response: "StartResponse"
    ) -> t.Iterable[bytes]:
        LOG.debug(
            "%s %s%s",
            environ["REQUEST_METHOD"],
            environ.get("HTTP_HOST"),
            environ.get("PATH_INFO"),
        )
        request = Request(environ)
        # by default, werkzeug requests from environ are immutable
        request.headers = Headers(request.headers)

        context = self.context_class(request, Response())
        response = self.process(context)

        return response(environ, start_response)

    def process(self, context: RequestContext) -> Response:
        try:
            return asyncio.run(self.router.dispatch(context))
        except HTTPException as e:
            return self.to_error_response(e)
        except Exception:
            LOG.exception("exception while handling %s %s", context.request.method, context.request.path)
            return self.to_error_response(InternalServerError())

    def to_error_response(self, exception: HTTPException) -> Response:
        if isinstance(exception.response, Response):
            return exception.response
        if isinstance(exception, RequestRedirect):
            return Response.force_type(exception.get_response())

        headers = Headers(exception.get_headers())
        headers.pop("Content-Type", None)

        response = Response.for_json(
            {"code": exception.code, "description": exception.description},
            status=exception.code,
        )
        response.headers.update(headers)
        return response
