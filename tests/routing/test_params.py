import re

import pytest

from rostra import ResolutionError
from rostra.routing.params import split_route_args


def middleware(context, next):
    return next()


def handler(context, next):
    return "ok"


def test_path_and_controller():
    arguments = split_route_args(["/users", handler])

    assert arguments.prefix == ["/users"]
    assert arguments.handlers == [handler]
    assert arguments.name is None
    assert arguments.path == "/users"


def test_path_middlewares_and_controller():
    arguments = split_route_args(["/users", middleware, middleware, handler])

    assert arguments.prefix == ["/users"]
    assert arguments.handlers == [middleware, middleware, handler]


def test_name_path_and_controller():
    arguments = split_route_args(["users", "/users", middleware, handler])

    assert arguments.prefix == ["users", "/users"]
    assert arguments.handlers == [middleware, handler]
    assert arguments.name == "users"
    assert arguments.path == "/users"


def test_name_and_regex_path():
    pattern = re.compile(r"/users/(?P<id>\d+)")
    arguments = split_route_args(["user", pattern, handler])

    assert arguments.prefix == ["user", pattern]
    assert arguments.handlers == [handler]


def test_two_strings_are_path_and_controller_reference():
    arguments = split_route_args(["/users", "user.index"], {"user": {"index": handler}})

    assert arguments.prefix == ["/users"]
    assert arguments.handlers == [handler]


def test_controller_reference_is_resolved():
    namespace = {"user": {"index": handler}}
    arguments = split_route_args(["users", "/users", middleware, "user.index"], namespace)

    assert arguments.handlers == [middleware, handler]


def test_unresolvable_controller_reference():
    with pytest.raises(ResolutionError) as e:
        split_route_args(["/users", "user.index"], {})

    assert e.value.reference == "user.index"


def test_missing_controller():
    with pytest.raises(ResolutionError, match="controller not exists"):
        split_route_args(["/users"])
