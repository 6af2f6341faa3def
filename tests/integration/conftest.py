"""Shared fixtures for integration tests."""

from pathlib import Path

import pytest
import yaml

from routemap.core.collection import RouteCollection
from routemap.core.config import load_config, register_routes

ROUTE_TABLE = {
    "environment": "test",
    "logging": {"level": "WARNING", "format": "text"},
    "routes": [
        {"methods": ["GET"], "pattern": "/", "handler": "app.pages:home", "name": "home"},
        {
            "methods": ["GET"],
            "pattern": "/blog[/{year:\\d{4}}[/{slug}]]",
            "handler": "app.blog:index",
            "name": "blog",
        },
    ],
    "groups": [
        {
            "prefix": "/api",
            "groups": [
                {
                    "prefix": "/v1",
                    "routes": [
                        {
                            "methods": ["GET"],
                            "pattern": "/users",
                            "handler": "app.api:users",
                            "name": "api.users",
                        },
                        {
                            "methods": ["GET"],
                            "pattern": "/users/{id:\\d+}",
                            "handler": {"controller": "app.api.UserController", "action": "show"},
                            "name": "api.user",
                        },
                        {
                            "methods": ["PUT", "DELETE"],
                            "pattern": "/users/{id:\\d+}",
                            "handler": {"controller": "app.api.UserController", "action": "modify"},
                        },
                    ],
                }
            ],
        }
    ],
}


@pytest.fixture
def route_table_file(tmp_path: Path) -> Path:
    """Write the route table to a YAML file."""
    config_file = tmp_path / "routes.yaml"
    with open(config_file, "w") as f:
        yaml.dump(ROUTE_TABLE, f)
    return config_file


@pytest.fixture
def collection(route_table_file: Path) -> RouteCollection:
    """Collection registered from the YAML route table."""
    return register_routes(load_config(str(route_table_file)), RouteCollection())
