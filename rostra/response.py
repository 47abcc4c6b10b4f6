import json
import typing as t

from werkzeug.wrappers import Response as WerkzeugResponse

ResultValue = t.Union[
    WerkzeugResponse,
    str,
    bytes,
    dict[str, t.Any],  # a JSON dict
    list[t.Any],
]


class Response(WerkzeugResponse):
    """
    An HTTP Response object, which simply extends werkzeug's Response object with a few convenience methods.
    """

    def update_from(self, other: WerkzeugResponse):
        """
        Updates this response object with the data from the given response object. It reads the status code,
        the response data, and updates its own headers (overwrites existing headers, but does not remove ones
        not present in the given object). Also updates ``call_on_close`` callbacks in the same way.

        :param other: the response object to read from
        """
        self.status_code = other.status_code
        self.response = other.response
        self._on_close.extend(other._on_close)
        self.headers.update(other.headers)

    def set_json(self, doc: t.Any, cls: t.Type[json.JSONEncoder] = None):
        """
        Serializes the given document into a json response, and sets the mimetype automatically to
        ``application/json``.

        :param doc: the response document to be serialized as JSON
        :param cls: the JSON encoder class to use for serializing the passed document
        """
        self.data = json.dumps(doc, cls=cls)
        self.mimetype = "application/json"

    def set_result(self, value: ResultValue, cls: t.Type[json.JSONEncoder] = None) -> "Response":
        """
        Populates the response from the value a handler chain returned. Werkzeug responses replace the contents of
        this response, strings and bytes become the body, and dicts or lists are serialized into JSON. ``None``
        leaves the response untouched.

        :param value: the handler result
        :param cls: the JSON encoder class to use for dicts and lists
        :return: this response
        """
        if value is None:
            return self

        if isinstance(value, WerkzeugResponse):
            self.update_from(value)
        elif isinstance(value, (str, bytes, bytearray)):
            self.data = value
        elif isinstance(value, (dict, list)):
            self.set_json(value, cls=cls)
        else:
            raise ValueError("unhandled result type %s" % type(value))

        return self

    @classmethod
    def for_json(cls, doc: t.Any, *args, **kwargs) -> "Response":
        """
        Creates a new JSON response from the given document. It automatically sets the mimetype to ``application/json``.

        :param doc: the document to serialize into JSON
        :param args: arguments passed to the ``Response`` constructor
        :param kwargs: keyword arguments passed to the ``Response`` constructor
        :return: a new Response object
        """
        response = cls(*args, **kwargs)
        response.set_json(doc)
        return response
