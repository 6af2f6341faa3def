"""URI generation (reverse routing).

Builds a concrete URI from a route name and parameter values by choosing the
most specific pattern variant the supplied parameters can satisfy.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Union
from urllib.parse import quote, urlencode

from routemap.core.collection import RouteCollection
from routemap.core.errors import BadRouteError, GenerationError, NotFoundError
from routemap.core.patterns import RouteParser, Variant

if TYPE_CHECKING:
    from routemap.core.metrics import RoutemapMetrics

logger = logging.getLogger(__name__)

QueryArgs = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]


class UriGenerator:
    """Generates URIs for named routes.

    Example::

        routes.get("/a/{x}[/b/{y}]", handler).set_name("r")
        generator = UriGenerator(routes)
        generator.generate("r", {"x": "1", "y": "2"})  # "/a/1/b/2"
        generator.generate("r", {"x": "1"})            # "/a/1"
    """

    def __init__(
        self,
        collection: RouteCollection,
        parser: Optional[RouteParser] = None,
        metrics: Optional["RoutemapMetrics"] = None,
    ):
        self.collection = collection
        self.parser = parser or RouteParser()
        self.metrics = metrics

    def generate(
        self,
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        query_args: Optional[QueryArgs] = None,
        fragment: str = "",
        encode_path: bool = False,
        encode_fragment: bool = True,
    ) -> str:
        """Generate the URI of a named route.

        Args:
            name: Route name
            params: Values for the pattern parameters
            query_args: Query string arguments, always percent-encoded
            fragment: URI fragment, without the leading ``#``
            encode_path: Percent-encode the generated path. Off by default
                because parameter values may already be encoded.
            encode_fragment: Percent-encode the fragment

        Returns:
            The URI: path, then ``?query`` and ``#fragment`` when non-empty

        Raises:
            NotFoundError: If no route has the given name
            BadRouteError: If the route pattern is malformed
            GenerationError: If no pattern variant can be satisfied by ``params``
        """
        try:
            route = self.collection.get_route_by_name(name)
            variants = self.parser.parse(route.pattern)
            path = self._build_path(name, variants, params or {})
        except (NotFoundError, BadRouteError, GenerationError):
            if self.metrics is not None:
                self.metrics.record_generation(success=False)
            raise

        if encode_path:
            path = quote(path, safe="/")

        query = build_query_string(query_args or {})

        if encode_fragment:
            fragment = quote(fragment, safe="")

        uri = path
        if query:
            uri += "?" + query
        if fragment:
            uri += "#" + fragment

        if self.metrics is not None:
            self.metrics.record_generation(success=True)
        logger.debug(f"Generated URI for {name}: {uri}", extra={"route_name": name, "uri": uri})
        return uri

    def _build_path(self, name: str, variants: List[Variant], params: Mapping[str, Any]) -> str:
        """Render the most specific variant whose parameters are all supplied."""
        if len(variants) > 1:
            variants = list(reversed(variants))

        for variant in variants:
            parts = self._render_variant(name, variant, params)
            if parts is not None:
                return "".join(parts)

        raise GenerationError(name)

    @staticmethod
    def _render_variant(
        name: str, variant: Variant, params: Mapping[str, Any]
    ) -> Optional[List[str]]:
        parts: List[str] = []
        for segment in variant:
            if isinstance(segment, str):
                parts.append(segment)
            elif isinstance(segment, (tuple, list)) and len(segment) == 2:
                value = params.get(segment[0])
                # Missing, None and "" all mean "not provided"
                if value is None or value == "":
                    return None
                parts.append(str(value))
            else:
                raise GenerationError(
                    name,
                    f"Every segment of a parsed route pattern must be either a string "
                    f"or a (name, regex) pair, got {segment!r}.",
                )
        return parts


def build_query_string(query_args: QueryArgs) -> str:
    """Percent-encode query arguments (RFC 3986, spaces as ``%20``).

    Sequence values repeat the key, mapping values expand to ``key[sub]``
    pairs and ``None`` values are dropped.
    """
    items = query_args.items() if isinstance(query_args, Mapping) else query_args
    return urlencode(list(_flatten_query(items)), doseq=True, quote_via=quote)


def _flatten_query(
    items: Iterable[Tuple[Any, Any]], prefix: Optional[str] = None
) -> Iterator[Tuple[str, Any]]:
    for key, value in items:
        if value is None:
            continue
        name = f"{prefix}[{key}]" if prefix is not None else str(key)
        if isinstance(value, Mapping):
            yield from _flatten_query(value.items(), name)
        else:
            yield name, value


def create_uri_generator(
    collection: RouteCollection, metrics: Optional["RoutemapMetrics"] = None
) -> UriGenerator:
    """Create a URI generator (convenience function)."""
    return UriGenerator(collection, metrics=metrics)
