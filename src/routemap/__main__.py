"""Command-line entry point for routemap.

Loads a YAML route table and lists, matches or reverse-routes against it::

    python -m routemap --config config/routes.yaml routes
    python -m routemap match GET /users/42
    python -m routemap url user.show id=42 --query tab=posts
"""

import argparse
import sys

from routemap.core.collection import RouteCollection
from routemap.core.config import load_config, register_routes
from routemap.core.errors import (
    BadRouteError,
    ConfigurationError,
    GenerationError,
    HttpMethodNotAllowed,
    NotFoundError,
    RouteNotFound,
)
from routemap.core.logging import initialize_logging
from routemap.core.router import create_router
from routemap.core.uri_generator import create_uri_generator


def _parse_pairs(pairs: list[str]) -> dict[str, str]:
    """Turn ``key=value`` arguments into a dict."""
    parsed: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise SystemExit(f"Error: expected key=value, got {pair!r}")
        parsed[key] = value
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="routemap", description="Inspect a routemap route table.")
    parser.add_argument("--config", default=None, help="Path to the YAML route table")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("routes", help="List registered routes")

    match_parser = subparsers.add_parser("match", help="Resolve a request to a route")
    match_parser.add_argument("method", help="HTTP method")
    match_parser.add_argument("path", help="Request path")

    url_parser = subparsers.add_parser("url", help="Generate the URI of a named route")
    url_parser.add_argument("name", help="Route name")
    url_parser.add_argument("params", nargs="*", default=[], help="Route parameters as key=value")
    url_parser.add_argument(
        "--query", action="append", default=[], help="Query argument as key=value (repeatable)"
    )
    url_parser.add_argument("--fragment", default="", help="URI fragment")
    url_parser.add_argument("--encode-path", action="store_true", help="Percent-encode the path")

    return parser


def _print_routes(collection: RouteCollection) -> None:
    rows = [
        (route.id, ", ".join(route.methods), route.pattern, route.name)
        for route in collection
    ]
    if not rows:
        print("No routes registered.")
        return

    header = ("ID", "METHODS", "PATTERN", "NAME")
    widths = [max(len(row[i]) for row in [header, *rows]) for i in range(3)]
    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:<{widths[2]}}}  {{}}"
    print(fmt.format(*header))
    for row in rows:
        print(fmt.format(*row))


def main(argv: list[str] | None = None) -> int:
    """Run the command line and return its exit code."""
    args = _build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    event_logger = initialize_logging(config.logging.model_copy(update={"output": "stderr"}))
    collection = register_routes(config, RouteCollection())

    if args.command == "routes":
        _print_routes(collection)
        return 0

    if args.command == "match":
        method = args.method.upper()
        try:
            router = create_router(collection)
        except BadRouteError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        try:
            route = router.match(method, args.path)
        except RouteNotFound as e:
            event_logger.log_match_failure(method, args.path, e.status)
            print(str(e), file=sys.stderr)
            return 1
        except HttpMethodNotAllowed as e:
            event_logger.log_match_failure(method, args.path, e.status, e.allowed_methods)
            print(str(e), file=sys.stderr)
            return 2
        event_logger.log_match(method, args.path, route.id)
        print(route.id, route.parameters)
        return 0

    params = _parse_pairs(args.params)
    try:
        uri = create_uri_generator(collection).generate(
            args.name,
            params,
            query_args=_parse_pairs(args.query),
            fragment=args.fragment,
            encode_path=args.encode_path,
        )
    except (NotFoundError, BadRouteError, GenerationError) as e:
        event_logger.log_generation(args.name, params, None, error=str(e))
        print(str(e), file=sys.stderr)
        return 1
    event_logger.log_generation(args.name, params, uri)
    print(uri)
    return 0


if __name__ == "__main__":
    sys.exit(main())
