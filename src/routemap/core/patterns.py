"""Pattern parsing, compilation and dispatching.

This module implements the matching engine underneath the router:
- Pattern parsing into variants (optional trailing parts expanded)
- Compilation of variants into static lookups and anchored regexes
- Dispatching of (method, path) pairs with 404/405 detection

Pattern syntax::

    /users                      literal
    /users/{id}                 parameter, matches [^/]+
    /users/{id:\\d+}             parameter with a custom regex
    /archive[/{year}[/{month}]] optional trailing parts, nestable
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Union

from routemap.core.errors import BadRouteError

if TYPE_CHECKING:
    from routemap.core.collection import RouteCollection

logger = logging.getLogger(__name__)

DEFAULT_PARAMETER_REGEX = "[^/]+"

_PLACEHOLDER_RE = re.compile(r"^\s*([a-zA-Z_][a-zA-Z0-9_-]*)\s*(?::\s*(.*?))?\s*$", re.DOTALL)

# A literal string or a (parameter name, parameter regex) pair
Segment = Union[str, Tuple[str, str]]
Variant = List[Segment]


class RouteParser:
    """Parses route patterns into variants.

    ``parse`` returns the variants ordered from least specific (no optional
    part expanded) to most specific (every optional part expanded). The URI
    generator relies on this ordering.
    """

    def parse(self, pattern: str) -> List[Variant]:
        """Parse a pattern into its variants.

        Args:
            pattern: Route pattern, e.g. ``/a/{x}[/b/{y}]``

        Returns:
            List of variants, least specific first

        Raises:
            BadRouteError: If the optional parts or placeholders are malformed
        """
        without_closing = pattern.rstrip("]")
        num_optionals = len(pattern) - len(without_closing)

        parts = _split_outside_placeholders(without_closing, "[")
        if num_optionals != len(parts) - 1:
            if len(_split_outside_placeholders(without_closing, "]")) > 1:
                raise BadRouteError(
                    f'Optional segments can only occur at the end of a route: "{pattern}"'
                )
            raise BadRouteError(
                f"Number of opening '[' and closing ']' does not match in \"{pattern}\""
            )

        variants: List[Variant] = []
        current = ""
        for position, part in enumerate(parts):
            if part == "" and position != 0:
                raise BadRouteError(f'Empty optional part in "{pattern}"')
            current += part
            variants.append(self._parse_placeholders(current, pattern))
        return variants

    def _parse_placeholders(self, text: str, pattern: str) -> Variant:
        """Split one variant into literal and parameter segments."""
        segments: Variant = []
        literal = ""
        index = 0
        while index < len(text):
            if text[index] != "{":
                literal += text[index]
                index += 1
                continue

            end = _placeholder_end(text, index, pattern)
            if literal:
                segments.append(literal)
                literal = ""
            segments.append(_parse_placeholder(text[index + 1 : end], pattern))
            index = end + 1

        if literal or not segments:
            segments.append(literal)
        return segments


def _placeholder_end(text: str, start: int, pattern: str) -> int:
    """Return the index of the brace closing the placeholder opened at ``start``."""
    depth = 0
    for index in range(start, len(text)):
        if text[index] == "{":
            depth += 1
        elif text[index] == "}":
            depth -= 1
            if depth == 0:
                return index
    raise BadRouteError(f'Unterminated placeholder in "{pattern}"')


def _parse_placeholder(inner: str, pattern: str) -> Tuple[str, str]:
    match = _PLACEHOLDER_RE.match(inner)
    if not match:
        raise BadRouteError(f'Invalid placeholder "{{{inner}}}" in "{pattern}"')
    name, regex = match.group(1), match.group(2)
    return name, regex if regex else DEFAULT_PARAMETER_REGEX


def _split_outside_placeholders(text: str, separator: str) -> List[str]:
    """Split ``text`` on ``separator`` occurrences that are not inside ``{...}``."""
    pieces: List[str] = []
    current = ""
    depth = 0
    for char in text:
        if char == "{":
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
        if char == separator and depth == 0:
            pieces.append(current)
            current = ""
        else:
            current += char
    pieces.append(current)
    return pieces


@dataclass
class VariableRoute:
    """A compiled regex route for one method."""

    route_id: str
    regex: re.Pattern
    variables: Tuple[str, ...]

    def match(self, path: str) -> Optional[Dict[str, str]]:
        """Match a path against this route.

        Args:
            path: URL path to match

        Returns:
            Dictionary of extracted parameters if matched, None otherwise
        """
        match = self.regex.match(path)
        if not match:
            return None
        return dict(zip(self.variables, match.groups()))


@dataclass
class RouteData:
    """Compiled routing table: static paths and regex routes per method."""

    static_routes: Dict[str, Dict[str, str]] = field(default_factory=dict)
    variable_routes: Dict[str, List[VariableRoute]] = field(default_factory=dict)


class RouteDataGenerator:
    """Compiles parsed patterns into a ``RouteData`` table."""

    def __init__(self, parser: Optional[RouteParser] = None):
        self.parser = parser or RouteParser()
        self._data = RouteData()
        self._variable_regexes: Dict[str, Dict[str, VariableRoute]] = {}

    def add_route(self, methods: Iterable[str], pattern: str, route_id: str) -> None:
        """Add every variant of ``pattern`` for every method.

        Raises:
            BadRouteError: If the pattern is malformed or conflicts with a known route
        """
        variants = self.parser.parse(pattern)
        for method in methods:
            for variant in variants:
                if self._is_static(variant):
                    self._add_static_route(method, variant[0], route_id)
                else:
                    self._add_variable_route(method, variant, route_id)

    def get_data(self) -> RouteData:
        return self._data

    @staticmethod
    def _is_static(variant: Variant) -> bool:
        return len(variant) == 1 and isinstance(variant[0], str)

    def _add_static_route(self, method: str, path: str, route_id: str) -> None:
        static = self._data.static_routes.setdefault(method, {})
        if path in static:
            raise BadRouteError(
                f'Cannot register two routes matching "{path}" for method "{method}"'
            )

        for route in self._data.variable_routes.get(method, []):
            if route.match(path) is not None:
                raise BadRouteError(
                    f'Static route "{path}" is shadowed by previously defined variable '
                    f'route "{route.regex.pattern}" for method "{method}"'
                )

        static[path] = route_id

    def _add_variable_route(self, method: str, variant: Variant, route_id: str) -> None:
        regex, variables = self._build_regex(variant)

        known = self._variable_regexes.setdefault(method, {})
        if regex in known:
            raise BadRouteError(
                f'Cannot register two routes matching "{regex}" for method "{method}"'
            )

        route = VariableRoute(route_id=route_id, regex=re.compile(regex), variables=variables)
        known[regex] = route
        self._data.variable_routes.setdefault(method, []).append(route)

    def _build_regex(self, variant: Variant) -> Tuple[str, Tuple[str, ...]]:
        """Compile a variant into an anchored regex and its parameter names."""
        regex = ""
        variables: List[str] = []
        for segment in variant:
            if isinstance(segment, str):
                regex += re.escape(segment)
                continue

            name, parameter_regex = segment
            if name in variables:
                raise BadRouteError(f'Cannot use the same placeholder "{name}" twice')
            try:
                has_groups = re.compile(parameter_regex).groups > 0
            except re.error as e:
                raise BadRouteError(
                    f'Invalid regex "{parameter_regex}" for parameter "{name}": {e}'
                ) from e
            if has_groups:
                raise BadRouteError(
                    f'Regex "{parameter_regex}" for parameter "{name}" contains a capturing group'
                )

            variables.append(name)
            regex += f"({parameter_regex})"

        return f"^{regex}$", tuple(variables)


class DispatchStatus(IntEnum):
    """Outcome of a dispatch."""

    NOT_FOUND = 0
    FOUND = 1
    METHOD_NOT_ALLOWED = 2


@dataclass
class DispatchResult:
    """Result of matching a (method, path) pair against the routing table."""

    status: int
    route_id: Optional[str] = None
    parameters: Dict[str, str] = field(default_factory=dict)
    allowed_methods: List[str] = field(default_factory=list)


class Dispatcher:
    """Matches (method, path) pairs against compiled route data.

    Resolution order:
    1. Static and regex routes of the requested method
    2. GET routes when the method is HEAD
    3. Routes registered for the ``*`` method
    4. Otherwise every other method matching the path makes the result
       METHOD_NOT_ALLOWED, and no match at all makes it NOT_FOUND
    """

    def __init__(self, data: RouteData):
        self.data = data

    def dispatch(self, method: str, path: str) -> DispatchResult:
        """Dispatch a request.

        Args:
            method: HTTP method
            path: Request path

        Returns:
            DispatchResult describing the outcome
        """
        candidates = [method]
        if method == "HEAD":
            candidates.append("GET")
        candidates.append("*")

        for candidate in candidates:
            result = self._dispatch_method(candidate, path)
            if result is not None:
                return result

        allowed_methods: List[str] = []
        for other_method, paths in self.data.static_routes.items():
            if other_method != method and path in paths:
                allowed_methods.append(other_method)
        for other_method, routes in self.data.variable_routes.items():
            if other_method == method or other_method in allowed_methods:
                continue
            if any(route.match(path) is not None for route in routes):
                allowed_methods.append(other_method)

        if allowed_methods:
            return DispatchResult(
                status=DispatchStatus.METHOD_NOT_ALLOWED, allowed_methods=allowed_methods
            )
        return DispatchResult(status=DispatchStatus.NOT_FOUND)

    def _dispatch_method(self, method: str, path: str) -> Optional[DispatchResult]:
        route_id = self.data.static_routes.get(method, {}).get(path)
        if route_id is not None:
            return DispatchResult(status=DispatchStatus.FOUND, route_id=route_id)

        for route in self.data.variable_routes.get(method, []):
            parameters = route.match(path)
            if parameters is not None:
                return DispatchResult(
                    status=DispatchStatus.FOUND, route_id=route.route_id, parameters=parameters
                )
        return None


def build_dispatcher(
    collection: "RouteCollection", parser: Optional[RouteParser] = None
) -> Dispatcher:
    """Compile every route of a collection into a dispatcher.

    Args:
        collection: Routes to compile
        parser: Parser to use (default: RouteParser)

    Returns:
        Dispatcher over the compiled routes
    """
    generator = RouteDataGenerator(parser)
    for route in collection:
        generator.add_route(route.methods, route.pattern, route.id)

    logger.info(
        f"Compiled dispatcher with {len(collection)} routes",
        extra={"route_count": len(collection)},
    )
    return Dispatcher(generator.get_data())
