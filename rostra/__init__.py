from werkzeug.wrappers import Request

from .context import RequestContext
from .errors import ResolutionError, RoutingError
from .response import Response
from .routing.controller import Controller, ControllerRegistry
from .routing.resources import ResourceRouter
from .routing.router import Router

__all__ = [
    "Controller",
    "ControllerRegistry",
    "Request",
    "RequestContext",
    "ResolutionError",
    "ResourceRouter",
    "Response",
    "Router",
    "RoutingError",
]
