import asyncio
import re

import pytest
from werkzeug import Request
from werkzeug.exceptions import MethodNotAllowed, NotFound
from werkzeug.exceptions import NotImplemented as MethodNotImplemented

from rostra import RequestContext, Response, Router, RoutingError


def _handler(context, next):
    return {"params": context.params}


def _dispatch(router: Router, path: str, method: str = "GET") -> Response:
    context = RequestContext(Request.from_values(path, method=method), Response())
    return asyncio.run(router.dispatch(context))


class TestMatch:
    def test_match_path_params(self):
        router = Router()
        router.get("/users/:id", _handler)

        route, params = router.match("/users/7", "GET")

        assert route.path == "/users/:id"
        assert route.methods == ("GET",)
        assert params == {"id": "7"}

    def test_match_werkzeug_placeholders(self):
        router = Router()
        router.get("/users/<int:id>", _handler)

        _, params = router.match("/users/7", "GET")
        assert params == {"id": 7}

        with pytest.raises(NotFound):
            router.match("/users/foo", "GET")

    def test_match_static_before_params(self):
        router = Router()
        router.get("/users/:id", _handler, name="user")
        router.get("/users/new", _handler, name="new_user")

        route, _ = router.match("/users/new", "GET")
        assert route.name == "new_user"

    def test_head_matches_get(self):
        router = Router()
        router.get("/users", _handler)

        route, _ = router.match("/users", "HEAD")
        assert route.path == "/users"

    def test_not_found(self):
        router = Router()
        router.get("/users", _handler)

        with pytest.raises(NotFound):
            router.match("/groups", "GET")

    def test_method_not_allowed(self):
        router = Router()
        router.get("/users/:id", _handler)
        router.delete("/users/:id", _handler)

        with pytest.raises(MethodNotAllowed) as e:
            router.match("/users/1", "POST")

        assert set(e.value.valid_methods) == {"GET", "HEAD", "DELETE"}

    def test_method_not_implemented(self):
        router = Router()
        router.all("/users", _handler)

        with pytest.raises(MethodNotImplemented):
            router.match("/users", "TRACE")

    def test_all_methods(self):
        router = Router()
        router.all("/users", _handler)

        for method in ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]:
            route, _ = router.match("/users", method)
            assert route.path == "/users"

    def test_regex_converter(self):
        router = Router()
        router.get("/tags/<regex('[a-z]+'):tag>", _handler)

        assert router.match("/tags/python", "GET")[1] == {"tag": "python"}
        with pytest.raises(NotFound):
            router.match("/tags/123", "GET")

    def test_regex_path(self):
        router = Router()
        router.get(re.compile(r"/files/(?P<name>.+)"), _handler)

        route, params = router.match("/files/a/b.txt", "GET")

        assert route.is_pattern
        assert params == {"name": "a/b.txt"}

        with pytest.raises(MethodNotAllowed):
            router.match("/files/a/b.txt", "POST")
        with pytest.raises(NotFound):
            router.match("/other", "GET")

    def test_prefix(self):
        router = Router(prefix="/api/")
        router.get("/users", _handler)
        router.get("/", _handler)

        assert router.match("/api/users", "GET")[0].path == "/api/users"
        assert router.match("/api", "GET")[0].path == "/api"
        with pytest.raises(NotFound):
            router.match("/users", "GET")


class TestRegister:
    def test_register_returns_router(self):
        router = Router()

        assert router.register("/users", ["GET"], [_handler]) is router
        assert router.get("/groups", _handler) is router

    def test_register_single_handler(self):
        router = Router()
        router.register("/users", ["get"], _handler)

        assert router.routes[0].handlers == [_handler]
        assert router.routes[0].methods == ("GET",)

    def test_routes_are_independent_entries(self):
        router = Router()
        router.get("/a", _handler, name="same")
        router.get("/b", _handler, name="same")

        assert len(router.routes) == 2
        assert router.match("/a", "GET")[0] is router.routes[0]
        assert router.match("/b", "GET")[0] is router.routes[1]

    def test_route_decorator(self):
        router = Router()

        @router.route("/users/:id", methods=["GET"], name="user")
        def show(context, next):
            return context.params["id"]

        assert router.match("/users/1", "GET")[0].handlers == [show]
        assert router.url_for("user", id=1) == "/users/1"


class TestUrlFor:
    def test_url_for(self):
        router = Router()
        router.get("/users/:id/edit", _handler, name="edit_user")

        assert router.url_for("edit_user", id=7) == "/users/7/edit"

    def test_url_for_appends_query(self):
        router = Router()
        router.get("/users", _handler, name="users")

        assert router.url_for("users", page=2) == "/users?page=2"

    def test_url_for_uses_first_route(self):
        router = Router()
        router.get("/a", _handler, name="same")
        router.get("/b", _handler, name="same")

        assert router.url_for("same") == "/a"

    def test_url_for_with_prefix(self):
        router = Router(prefix="/api")
        router.get("/users/:id", _handler, name="user")

        assert router.url_for("user", id=1) == "/api/users/1"

    def test_url_for_unknown_name(self):
        router = Router()

        with pytest.raises(RoutingError):
            router.url_for("users")

    def test_url_for_missing_params(self):
        router = Router()
        router.get("/users/:id", _handler, name="user")

        with pytest.raises(RoutingError):
            router.url_for("user")


class TestDispatch:
    def test_dispatch_populates_response(self):
        router = Router()
        router.get("/users/:id", _handler)

        response = _dispatch(router, "/users/7")

        assert response.status_code == 200
        assert response.get_json() == {"params": {"id": "7"}}

    def test_dispatch_sets_context(self):
        router = Router()
        contexts = []

        async def handler(context, next):
            contexts.append(context)
            return "ok"

        router.get("/users/:id", handler, name="user")

        response = _dispatch(router, "/users/1")

        assert response.get_data() == b"ok"
        assert contexts[0].route.name == "user"
        assert contexts[0].params == {"id": "1"}

    def test_dispatch_runs_chain(self):
        router = Router()

        async def middleware(context, next):
            await next()
            context.response.headers["X-Middleware"] = "1"

        def handler(context, next):
            context.response.status_code = 201
            context.response.data = "created"

        router.post("/users", middleware, handler)

        response = _dispatch(router, "/users", "POST")

        assert response.status_code == 201
        assert response.get_data() == b"created"
        assert response.headers["X-Middleware"] == "1"

    def test_dispatch_keeps_result_of_last_handler(self):
        router = Router()

        async def middleware(context, next):
            await next()

        router.get("/users/:id", middleware, _handler)

        response = _dispatch(router, "/users/3")

        assert response.get_json() == {"params": {"id": "3"}}

    def test_dispatch_not_found(self):
        with pytest.raises(NotFound):
            _dispatch(Router(), "/users")

    def test_routes_handler_falls_through(self):
        router = Router()
        router.get("/users", _handler)
        handler = router.routes_handler()

        async def fallback():
            return "fallback"

        context = RequestContext(Request.from_values("/groups"), Response())
        assert asyncio.run(handler(context, fallback)) == "fallback"

        context = RequestContext(Request.from_values("/users"), Response())
        assert asyncio.run(handler(context, fallback)) == {"params": {}}

    def test_redirect(self):
        router = Router()
        router.get("/users", _handler, name="users")
        router.redirect("/people", "users")
        router.redirect("/old", "https://example.com/new", status=302)

        response = _dispatch(router, "/people")
        assert response.status_code == 301
        assert response.headers["Location"] == "/users"

        response = _dispatch(router, "/old", "POST")
        assert response.status_code == 302
        assert response.headers["Location"] == "https://example.com/new"
