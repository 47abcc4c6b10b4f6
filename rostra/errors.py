class RoutingError(Exception):
    """Base class for errors raised while declaring or resolving routes."""


class ResolutionError(RoutingError):
    """
    Raised at route declaration time when a controller reference cannot be resolved. ``reference`` holds the
    original (dotted) reference, or ``None`` if there was nothing to resolve.
    """

    reference: object

    def __init__(self, message: str, reference: object = None):
        super().__init__(message)
        self.reference = reference
