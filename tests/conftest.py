"""Shared pytest fixtures and configuration."""

import pytest
from prometheus_client import REGISTRY

from routemap.core.collection import RouteCollection


def _unregister_routemap_collectors() -> None:
    for collector in list(REGISTRY._collector_to_names.keys()):
        names = REGISTRY._collector_to_names.get(collector, [])
        if any(name.startswith("routemap") for name in names):
            REGISTRY.unregister(collector)


@pytest.fixture(autouse=True)
def reset_prometheus_registry():
    """Reset Prometheus registry before each test to avoid duplicate metric errors."""
    _unregister_routemap_collectors()
    yield
    _unregister_routemap_collectors()


@pytest.fixture
def routes() -> RouteCollection:
    """Collection with a small, typical route table."""
    collection = RouteCollection()
    collection.get("/users", "app.users:index").set_name("user.index")
    collection.post("/users", "app.users:create")
    collection.get("/users/{id:\\d+}", "app.users:show").set_name("user.show")
    collection.route(["PUT", "DELETE"], "/users/{id:\\d+}", "app.users:modify")
    collection.get("/a/{x}[/b/{y}]", "app.misc:optional").set_name("r")
    return collection
