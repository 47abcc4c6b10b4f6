"""
Controllers and the resolution of controller references. A controller reference is either a direct handler (a
function, a controller object or class), or a dotted string like ``"admin.user.show"`` that is looked up in a
``ControllerRegistry``::

    registry = ControllerRegistry()
    registry.register("admin.user", UserController)

    router = ResourceRouter(controllers=registry)
    router.get("/admin/users/:id", "admin.user.show")
"""
import inspect
import logging
import types
import typing as t

from rostra.errors import ResolutionError

from .handler import Next, invoke_action

LOG = logging.getLogger(__name__)


class Controller:
    """
    Optional base class for class based controllers. A new instance is created for every request that is routed to
    one of its actions, so instances can safely hold request state.
    """

    def __init__(self, context):
        self.context = context

    @property
    def request(self):
        return self.context.request

    @property
    def response(self):
        return self.context.response

    @property
    def params(self) -> dict[str, t.Any]:
        return self.context.params


class ControllerAction:
    """
    A handler that invokes the method ``action`` of a controller class. For every call it creates a new instance of
    the class with the request context, and calls the method with that instance bound as ``self``.
    """

    def __init__(self, controller_class: type, action: str):
        self.controller_class = controller_class
        self.action = action

    def __call__(self, context, next: Next):
        instance = self.controller_class(context)
        return invoke_action(getattr(self.controller_class, self.action), context, next, receiver=instance)

    def __eq__(self, other):
        if not isinstance(other, ControllerAction):
            return False
        return self.controller_class is other.controller_class and self.action == other.action

    def __hash__(self):
        return hash((self.controller_class, self.action))

    def __repr__(self):
        return f"<ControllerAction {self.controller_class.__name__}.{self.action}>"


def get_action(controller: t.Any, key: str) -> t.Any:
    """
    Returns the member ``key`` of the given controller, or ``None`` if it doesn't exist. Mappings are read by key,
    anything else by attribute. Plain functions defined on a controller class are returned as ``ControllerAction``.

    :param controller: a mapping, a controller object, or a controller class
    :param key: the name of the member
    :return: the member or None
    """
    if isinstance(controller, t.Mapping):
        return controller.get(key)

    if inspect.isclass(controller):
        if isinstance(inspect.getattr_static(controller, key, None), types.FunctionType):
            return ControllerAction(controller, key)

    return getattr(controller, key, None)


class Resolution(t.NamedTuple):
    """
    The result of looking up a dotted controller reference. It is truthy if the lookup succeeded, in which case
    ``value`` holds the controller. Otherwise ``missing`` holds the first segment that could not be found.
    """

    value: t.Any = None
    missing: t.Optional[str] = None

    def __bool__(self):
        return self.missing is None


class ControllerRegistry:
    """
    A registry of controllers addressable by dotted names. Registries are usually built once at startup, and then
    passed to a ``ResourceRouter`` to resolve string references like ``"admin.user.show"``.
    """

    def __init__(self, controllers: t.Mapping[str, t.Any] = None):
        self._controllers: dict[str, t.Any] = {}
        for name, controller in (controllers or {}).items():
            self.register(name, controller)

    def register(self, name: str, controller: t.Any) -> None:
        """
        Registers a controller under the given name. Dotted names create intermediate levels, so registering
        ``"admin.user"`` makes the controller available as ``registry.lookup("admin.user")``.

        :param name: the (dotted) name
        :param controller: the controller, a mapping, object, class or function
        """
        *parents, key = name.split(".")
        level = self._controllers
        for parent in parents:
            level = level.setdefault(parent, {})
            if not isinstance(level, dict):
                raise ValueError(f"cannot register '{name}': '{parent}' is already a controller")
        level[key] = controller

    def lookup(self, ref: str) -> Resolution:
        """
        Walks the dotted reference through the registered controllers. This never raises, the returned
        ``Resolution`` tells whether the walk succeeded.

        :param ref: the dotted reference
        :return: the resolution
        """
        obj: t.Any = self._controllers
        for key in ref.split("."):
            obj = get_action(obj, key)
            if obj is None:
                return Resolution(missing=key)
        return Resolution(value=obj)

    def __contains__(self, ref: str) -> bool:
        return bool(self.lookup(ref))

    def __repr__(self):
        return f"<ControllerRegistry {sorted(self._controllers)}>"


def resolve_controller(
    ref: t.Any, namespace: t.Union[ControllerRegistry, t.Mapping[str, t.Any], None] = None
) -> t.Any:
    """
    Resolves a controller reference into the controller it refers to. Strings are looked up in the namespace, any
    other value is returned as is.

    :param ref: the reference, a dotted string or a direct controller/handler
    :param namespace: a ``ControllerRegistry`` or a nested mapping of controllers
    :return: the controller
    :raises ResolutionError: if a string reference cannot be looked up, or there is no controller
    """
    if isinstance(ref, str):
        if isinstance(namespace, ControllerRegistry):
            registry = namespace
        else:
            registry = ControllerRegistry(namespace)

        resolution = registry.lookup(ref)
        if not resolution:
            LOG.debug("controller reference %s not found, missing segment %s", ref, resolution.missing)
            raise ResolutionError(f"controller '{ref}' not exists", ref)

        LOG.debug("resolved controller reference %s to %s", ref, resolution.value)
        ref = resolution.value

    if ref is None:
        raise ResolutionError("controller not exists")

    return ref
