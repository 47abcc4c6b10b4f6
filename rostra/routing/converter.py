import re
import typing as t

from werkzeug.routing import BaseConverter, Map

_PATH_PARAM = re.compile(r"(?<!\w):([A-Za-z_][A-Za-z0-9_]*)")
_PLACEHOLDER = re.compile(r"(<[^>]*>)")


def to_rule_path(path: str) -> str:
    """
    Translates ``:param`` style path parameters into werkzeug placeholders, e.g., ``/users/:id/edit`` becomes
    ``/users/<id>/edit``. Werkzeug style placeholders like ``<int:id>`` are left untouched.

    :param path: the path pattern
    :return: a path pattern that can be passed to a werkzeug ``Rule``
    """
    # werkzeug placeholders end up at the odd indexes
    parts = _PLACEHOLDER.split(path)
    parts[::2] = [_PATH_PARAM.sub(r"<\1>", part) for part in parts[::2]]
    rule = "".join(parts)
    if not rule.startswith("/"):
        rule = "/" + rule
    return rule


class RegexConverter(BaseConverter):
    """
    A converter that can be used to inject a regex as parameter, e.g., ``path=/<regex('[a-z]+'):my_var>``.
    When using groups in regex, make sure they are non-capturing ``(?:[a-z]+)``
    """

    def __init__(self, map: Map, *args: t.Any, **kwargs: t.Any) -> None:
        super().__init__(map, *args, **kwargs)
        self.regex = args[0]
