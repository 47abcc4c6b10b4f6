"""
This module expands a RESTful resource declaration into concrete routes. A controller provides some of the seven
actions of ``REST_ACTIONS``, and every action it provides becomes a route::

    class UserController(Controller):
        def index(self, context):
            return {"users": [...]}

        def show(self, context):
            return {"id": context.params["id"]}

    router.resources("user", "/users", UserController)

    # GET /users      -> UserController.index, named "users"
    # GET /users/:id  -> UserController.show, named "user"

Member actions operate on a single resource and get singular route names, collection actions get plural names.
"""
import logging
import types
import typing as t

import inflection

from rostra.errors import ResolutionError

from .controller import get_action

LOG = logging.getLogger(__name__)


class ActionSpec(t.NamedTuple):
    """The shape of the route that is generated for a controller action."""

    member: bool
    """Whether the action operates on a single resource, rather than the collection."""
    name_prefix: str
    """Prepended to the route name."""
    suffix: str
    """Appended to the resource path."""
    methods: tuple[str, ...]
    """The HTTP methods of the route."""


REST_ACTIONS: t.Mapping[str, ActionSpec] = types.MappingProxyType(
    {
        "index": ActionSpec(member=False, name_prefix="", suffix="", methods=("GET",)),
        "new": ActionSpec(member=True, name_prefix="new_", suffix="new", methods=("GET",)),
        "create": ActionSpec(member=False, name_prefix="", suffix="", methods=("POST",)),
        "show": ActionSpec(member=True, name_prefix="", suffix=":id", methods=("GET",)),
        "edit": ActionSpec(member=True, name_prefix="edit_", suffix=":id/edit", methods=("GET",)),
        "update": ActionSpec(member=True, name_prefix="", suffix=":id", methods=("PATCH", "PUT")),
        "destroy": ActionSpec(member=True, name_prefix="destroy_", suffix=":id", methods=("DELETE",)),
    }
)


class RouteRegistration(t.NamedTuple):
    path: str
    methods: tuple[str, ...]
    name: str
    handlers: list[t.Any]


def route_base_name(prefix: str) -> str:
    """
    Derives a route base name from a resource path, by joining its static segments with underscores, e.g.,
    ``/users/`` becomes ``users``, and ``/admin/:org/users`` becomes ``admin_users``.
    """
    segments = [
        segment
        for segment in prefix.split("/")
        if segment and not segment.startswith((":", "<"))
    ]
    return "_".join(segments)


def format_route_name(base_name: str, spec: ActionSpec) -> str:
    if spec.member:
        name = inflection.singularize(base_name)
    else:
        name = inflection.pluralize(base_name)

    if spec.name_prefix:
        name = spec.name_prefix + name

    return name


def resource_path(prefix: str, suffix: str) -> str:
    if prefix.endswith("/"):
        prefix = prefix[:-1]
    if suffix:
        return f"{prefix}/{suffix}"
    return prefix


def expand(
    prefixes: t.Sequence[str],
    controller: t.Any,
    handlers: t.Sequence[t.Any] = (),
    strict: bool = False,
) -> list[RouteRegistration]:
    """
    Expands a resource into one route registration per action the controller provides.

    :param prefixes: either ``[path]``, or ``[name, path]`` to set the route base name explicitly
    :param controller: a mapping, object or class that provides some of the ``REST_ACTIONS``
    :param handlers: middlewares that run before each action
    :param strict: if set, a controller that does not provide all actions is rejected
    :return: the route registrations, in the order of ``REST_ACTIONS``
    :raises ResolutionError: in strict mode, if the controller misses actions
    """
    if len(prefixes) == 2:
        base_name, prefix = prefixes
    else:
        prefix = prefixes[0]
        base_name = None

    if not isinstance(prefix, str):
        raise TypeError(f"resource path must be a string, not {type(prefix).__name__}")
    if base_name is None:
        base_name = route_base_name(prefix)

    registrations = []
    missing = []
    for key, spec in REST_ACTIONS.items():
        action = get_action(controller, key)
        if action is None:
            missing.append(key)
            continue

        registrations.append(
            RouteRegistration(
                path=resource_path(prefix, spec.suffix),
                methods=spec.methods,
                name=format_route_name(base_name, spec),
                handlers=[*handlers, action],
            )
        )

    if missing:
        if strict:
            raise ResolutionError(
                f"controller for resource '{base_name}' does not provide actions {', '.join(missing)}", controller
            )
        LOG.debug("resource %s: controller does not provide %s", base_name, missing)

    return registrations
