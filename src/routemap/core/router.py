"""Router: resolves (method, path) pairs to registered routes.

The router interprets a dispatcher's outcome and either returns the matched
route with its parameters set, or reports why nothing matched.
"""

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Protocol, Union

from routemap.core.collection import RouteCollection
from routemap.core.errors import DispatchIntegrationError, HttpMethodNotAllowed, RouteNotFound
from routemap.core.patterns import DispatchResult, DispatchStatus, build_dispatcher
from routemap.core.route import Route

if TYPE_CHECKING:
    from routemap.core.metrics import RoutemapMetrics

logger = logging.getLogger(__name__)


class SupportsDispatch(Protocol):
    """Anything that can dispatch a request against compiled routes."""

    def dispatch(self, method: str, path: str) -> DispatchResult: ...


@dataclass
class Matched:
    """A route matched; its ``parameters`` hold the extracted values."""

    route: Route


@dataclass
class NotMatched:
    """No route matches the path (HTTP 404)."""

    method: str
    path: str


@dataclass
class MethodMismatch:
    """The path matches but not for this method (HTTP 405)."""

    method: str
    path: str
    allowed_methods: List[str]


MatchResult = Union[Matched, NotMatched, MethodMismatch]


class Router:
    """Resolves requests using a dispatcher and a route collection.

    Usage::

        router = Router(routes, build_dispatcher(routes))
        route = router.match("GET", "/users/42")
        route.parameters  # {"id": "42"}
    """

    def __init__(
        self,
        collection: RouteCollection,
        dispatcher: SupportsDispatch,
        metrics: Optional["RoutemapMetrics"] = None,
    ):
        """Initialize the router.

        Args:
            collection: Collection holding the routes known to the dispatcher
            dispatcher: Dispatcher compiled from the same collection
            metrics: Optional metrics recorder
        """
        self.collection = collection
        self.dispatcher = dispatcher
        self.metrics = metrics

    def match(self, method: str, path: str) -> Route:
        """Match a request to a route.

        Args:
            method: HTTP method
            path: Request path

        Returns:
            The matched route with its parameters set

        Raises:
            RouteNotFound: If no route matches the path
            HttpMethodNotAllowed: If the path matches but the method does not
            DispatchIntegrationError: If the dispatcher returns an unknown outcome
            NotFoundError: If the dispatcher returns an id missing from the collection
        """
        result = self.resolve(method, path)

        if isinstance(result, NotMatched):
            raise RouteNotFound(method, path)
        if isinstance(result, MethodMismatch):
            raise HttpMethodNotAllowed(method, result.allowed_methods)
        return result.route

    def resolve(self, method: str, path: str) -> MatchResult:
        """Match a request without raising for 404 and 405 outcomes.

        Returns:
            ``Matched``, ``NotMatched`` or ``MethodMismatch``
        """
        start = time.perf_counter()
        outcome = self.dispatcher.dispatch(method, path)
        status = outcome.status

        result: MatchResult
        if status == DispatchStatus.FOUND:
            route = self.collection.get_route_by_id(outcome.route_id)
            route.parameters = dict(outcome.parameters)
            result = Matched(route)
            logger.debug(
                f"Route matched: {route.id}",
                extra={
                    "route_id": route.id,
                    "method": method,
                    "path": path,
                    "params": route.parameters,
                },
            )
        elif status == DispatchStatus.NOT_FOUND:
            result = NotMatched(method, path)
            logger.debug(
                f"No route matched for {method} {path}",
                extra={"method": method, "path": path},
            )
        elif status == DispatchStatus.METHOD_NOT_ALLOWED:
            result = MethodMismatch(method, path, list(outcome.allowed_methods))
            logger.debug(
                f"Method {method} not allowed for {path}",
                extra={"method": method, "path": path, "allowed_methods": result.allowed_methods},
            )
        else:
            raise DispatchIntegrationError(status)

        if self.metrics is not None:
            self.metrics.record_match(_outcome_label(result), time.perf_counter() - start)
        return result


def _outcome_label(result: MatchResult) -> str:
    if isinstance(result, Matched):
        return "found"
    if isinstance(result, NotMatched):
        return "not_found"
    return "method_not_allowed"


def create_router(
    collection: RouteCollection, metrics: Optional["RoutemapMetrics"] = None
) -> Router:
    """Create a router over a freshly compiled dispatcher (convenience function).

    Args:
        collection: Registered routes
        metrics: Optional metrics recorder, its route gauge is set to the collection size

    Returns:
        Configured Router instance
    """
    dispatcher = build_dispatcher(collection)
    if metrics is not None:
        metrics.update_registered_routes(collection)
    return Router(collection, dispatcher, metrics=metrics)
