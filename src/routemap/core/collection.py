"""Route collection: an ordered registry of routes with scoped groups.

This module implements:
- Route registration through a generic method and per-verb helpers
- Nested group prefixes applied once, at registration time
- Lookup by registry id and by route name
"""

import logging
from collections.abc import Callable, Iterable, Iterator

from routemap.core.errors import ArgumentError, NotFoundError
from routemap.core.route import Handler, Route

logger = logging.getLogger(__name__)

ROUTE_ID_PREFIX = "route"

# RFC 7231 section 4 methods plus PATCH (RFC 5789)
ALLOWED_METHODS = (
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "CONNECT",
    "OPTIONS",
    "TRACE",
    "PATCH",
)


class RouteCollection:
    """Stores routes keyed by a synthetic id, in insertion order.

    Example::

        routes = RouteCollection()
        routes.get("/users/{id}", "app.users:show").set_name("user.show")

        def admin(group: RouteCollection) -> None:
            group.post("/users", "app.admin:create_user")

        routes.group("/admin", admin)
    """

    def __init__(self) -> None:
        self._routes: dict[str, Route] = {}
        self._group_patterns: list[str] = []
        self._id_counter = 0

    def group(
        self, pattern: str, callback: Callable[["RouteCollection"], object]
    ) -> "RouteCollection":
        """Register the routes added by ``callback`` under a pattern prefix.

        Args:
            pattern: Prefix prepended to every route registered inside the callback
            callback: Called with this collection as its only argument

        Returns:
            This collection
        """
        self._group_patterns.append(pattern)
        try:
            callback(self)
        finally:
            self._group_patterns.pop()
        return self

    def route(self, methods: str | Iterable[str], pattern: str, handler: Handler) -> Route:
        """Register a route for one or more HTTP methods."""
        return self._add_route(methods, pattern, handler)

    def any(self, pattern: str, handler: Handler) -> Route:
        """Register a route for every allowed HTTP method."""
        return self._add_route(ALLOWED_METHODS, pattern, handler)

    def get(self, pattern: str, handler: Handler) -> Route:
        return self._add_route("GET", pattern, handler)

    def head(self, pattern: str, handler: Handler) -> Route:
        return self._add_route("HEAD", pattern, handler)

    def post(self, pattern: str, handler: Handler) -> Route:
        return self._add_route("POST", pattern, handler)

    def put(self, pattern: str, handler: Handler) -> Route:
        return self._add_route("PUT", pattern, handler)

    def delete(self, pattern: str, handler: Handler) -> Route:
        return self._add_route("DELETE", pattern, handler)

    def connect(self, pattern: str, handler: Handler) -> Route:
        return self._add_route("CONNECT", pattern, handler)

    def options(self, pattern: str, handler: Handler) -> Route:
        return self._add_route("OPTIONS", pattern, handler)

    def trace(self, pattern: str, handler: Handler) -> Route:
        return self._add_route("TRACE", pattern, handler)

    def patch(self, pattern: str, handler: Handler) -> Route:
        return self._add_route("PATCH", pattern, handler)

    def _add_route(self, methods: str | Iterable[str], pattern: str, handler: Handler) -> Route:
        """Validate, prefix, store and return a new route."""
        if isinstance(methods, str):
            methods = [methods] if methods else []
        methods = list(methods)
        if not methods:
            raise ArgumentError("One or more HTTP methods must be provided.")
        if not handler:
            raise ArgumentError("The route handler can not be empty.")

        prefixed_pattern = "".join(self._group_patterns) + pattern
        route = Route(methods=tuple(methods), pattern=prefixed_pattern, handler=handler)

        route.id = f"{ROUTE_ID_PREFIX}{self._id_counter}"
        self._routes[route.id] = route
        self._id_counter += 1

        logger.debug(
            f"Registered route {route.id}: {', '.join(route.methods)} {route.pattern}",
            extra={"route_id": route.id, "methods": list(route.methods), "pattern": route.pattern},
        )
        return route

    def get_route_by_id(self, route_id: str) -> Route:
        """Return the route stored under ``route_id``.

        Raises:
            NotFoundError: If no route has that id
        """
        try:
            return self._routes[route_id]
        except KeyError:
            raise NotFoundError(
                route_id, f'A route with the id "{route_id}" could not be found.'
            ) from None

    def get_route_by_name(self, name: str) -> Route:
        """Return the first route, in insertion order, named ``name``.

        Raises:
            NotFoundError: If no route has that name
        """
        for route in self._routes.values():
            if route.name == name:
                return route
        raise NotFoundError(name, f'A route with the name "{name}" could not be found.')

    def exists(self, route_id: str) -> bool:
        return route_id in self._routes

    def remove(self, route_id: str) -> "RouteCollection":
        """Remove a route. Unknown ids are ignored."""
        self._routes.pop(route_id, None)
        return self

    def all(self) -> dict[str, Route]:
        return dict(self._routes)

    def clear(self) -> "RouteCollection":
        self._routes.clear()
        return self

    def is_empty(self) -> bool:
        return not self._routes

    def count(self) -> int:
        return len(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, route_id: object) -> bool:
        return route_id in self._routes

    def __iter__(self) -> Iterator[Route]:
        return iter(list(self._routes.values()))
