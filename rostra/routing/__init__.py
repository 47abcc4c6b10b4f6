from .controller import Controller, ControllerAction, ControllerRegistry, Resolution, resolve_controller
from .converter import RegexConverter
from .handler import Handler, compose, invoke, normalize, to_coroutine
from .params import RouteArguments, split_route_args
from .resource import REST_ACTIONS, ActionSpec, RouteRegistration, expand
from .resources import ResourceRouter
from .router import HTTP_METHODS, Router
from .rules import Route

__all__ = [
    "ActionSpec",
    "Controller",
    "ControllerAction",
    "ControllerRegistry",
    "HTTP_METHODS",
    "Handler",
    "REST_ACTIONS",
    "RegexConverter",
    "Resolution",
    "ResourceRouter",
    "Route",
    "RouteArguments",
    "RouteRegistration",
    "Router",
    "compose",
    "expand",
    "invoke",
    "normalize",
    "resolve_controller",
    "split_route_args",
    "to_coroutine",
]
