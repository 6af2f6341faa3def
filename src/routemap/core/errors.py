"""Exception hierarchy for routemap.

Every error carries the structured context a caller needs to build a
protocol-appropriate response (method, path, allowed methods, route name).
"""

from collections.abc import Iterable


class RoutemapError(Exception):
    """Base class for all routemap errors."""


class ConfigurationError(RoutemapError):
    """Raised when a route configuration file cannot be loaded or validated."""


class ArgumentError(RoutemapError, ValueError):
    """Raised when a route is registered with invalid arguments."""


class BadRouteError(RoutemapError, ValueError):
    """Raised when a route pattern is malformed or conflicts with another route."""


class NotFoundError(RoutemapError, LookupError):
    """Raised when a route id or route name is not present in a collection.

    Attributes:
        key: The id or name that was looked up.
    """

    def __init__(self, key: str, message: str = ""):
        self.key = key
        super().__init__(message or f'A route with the key "{key}" could not be found.')


class RouteNotFound(RoutemapError):  # noqa: N818
    """No registered route matches the request (HTTP 404 semantics).

    Attributes:
        method: The requested HTTP method.
        path: The requested URI path.
    """

    status = 404

    def __init__(self, method: str, path: str, message: str = ""):
        self.method = method
        self.path = path
        super().__init__(
            message
            or (
                f'The requested resource could not be found at the location "{path}", '
                f'using the HTTP method "{method}".'
            )
        )


class HttpMethodNotAllowed(RoutemapError):  # noqa: N818
    """The path matches a route but the method does not (HTTP 405 semantics).

    Attributes:
        method: The requested HTTP method.
        allowed_methods: Methods registered for the requested path.
    """

    status = 405

    def __init__(self, method: str, allowed_methods: Iterable[str], message: str = ""):
        self.method = method
        self.allowed_methods = list(allowed_methods)
        super().__init__(
            message
            or (
                f'The HTTP method "{method}" of the current request is not supported. '
                f"The allowed HTTP methods are: {', '.join(self.allowed_methods)}."
            )
        )

    @property
    def allow_header(self) -> str:
        """Value for the ``Allow`` response header."""
        return ", ".join(self.allowed_methods)

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        """Response headers a 405 response must carry."""
        return (("Allow", self.allow_header),)


class GenerationError(RoutemapError, ValueError):
    """Raised when a URI cannot be generated for a named route.

    Attributes:
        route_name: Name of the route the URI was requested for.
    """

    def __init__(self, route_name: str, message: str = ""):
        self.route_name = route_name
        super().__init__(
            message
            or (
                f'The provided route parameters do not match the ones defined '
                f'in the pattern of the route "{route_name}".'
            )
        )


class DispatchIntegrationError(RoutemapError, RuntimeError):
    """Raised when a dispatcher returns an outcome outside its contract.

    Attributes:
        outcome: The unrecognized outcome value.
    """

    def __init__(self, outcome: object):
        self.outcome = outcome
        super().__init__(f"An error occurred during URI dispatching: unknown outcome {outcome!r}.")
