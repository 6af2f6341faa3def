"""Unit tests for configuration module."""

from pathlib import Path

import pytest
import yaml

from routemap.core.collection import ALLOWED_METHODS, RouteCollection
from routemap.core.config import (
    ConfigLoader,
    GroupConfig,
    LoggingConfig,
    MetricsConfig,
    RouteConfig,
    RoutemapConfig,
    load_config,
    register_routes,
)
from routemap.core.errors import ConfigurationError
from routemap.core.route import ControllerHandler


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Create a temporary configuration file."""
    config_data = {
        "environment": "test",
        "logging": {"level": "DEBUG"},
        "routes": [
            {
                "methods": ["get"],
                "pattern": "/health",
                "handler": "app.health:check",
                "name": "health",
            },
        ],
        "groups": [
            {
                "prefix": "/api",
                "routes": [
                    {
                        "methods": ["GET"],
                        "pattern": "/users/{id}",
                        "handler": {"controller": "app.UserController", "action": "show"},
                        "name": "user.show",
                    }
                ],
                "groups": [
                    {
                        "prefix": "/admin",
                        "routes": [
                            {"methods": "*", "pattern": "/stats", "handler": "app.admin:stats"}
                        ],
                    }
                ],
            }
        ],
    }
    config_file = tmp_path / "routes.yaml"
    with open(config_file, "w") as f:
        yaml.dump(config_data, f)
    return config_file


def test_logging_config_defaults() -> None:
    """Test LoggingConfig with default values."""
    config = LoggingConfig()
    assert config.level == "INFO"
    assert config.format == "json"
    assert "password" in config.redact_params


def test_logging_config_level_validation() -> None:
    """Test LoggingConfig log level validation."""
    for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        config = LoggingConfig(level=level)
        assert config.level == level

    # Case insensitive
    config = LoggingConfig(level="debug")
    assert config.level == "DEBUG"

    with pytest.raises(ValueError, match="Invalid log level"):
        LoggingConfig(level="INVALID")


def test_logging_config_format_validation() -> None:
    assert LoggingConfig(format="TEXT").format == "text"
    with pytest.raises(ValueError, match="Invalid log format"):
        LoggingConfig(format="xml")


def test_metrics_config_defaults() -> None:
    config = MetricsConfig()
    assert config.enabled is True
    assert config.namespace == "routemap"


def test_route_config_methods() -> None:
    """Test methods are uppercased, deduplicated and '*' expanded."""
    config = RouteConfig(methods=["get", "GET", "post"], pattern="/", handler="h")
    assert config.methods == ["GET", "POST"]

    config = RouteConfig(methods="*", pattern="/", handler="h")
    assert config.methods == list(ALLOWED_METHODS)

    with pytest.raises(ValueError, match="Invalid HTTP method"):
        RouteConfig(methods=["FETCH"], pattern="/", handler="h")

    with pytest.raises(ValueError, match="One or more HTTP methods"):
        RouteConfig(methods=[], pattern="/", handler="h")


def test_route_config_handler() -> None:
    """Test string and controller handlers."""
    assert RouteConfig(methods=["GET"], pattern="/", handler="app:h").build_handler() == "app:h"

    config = RouteConfig(
        methods=["GET"], pattern="/", handler={"controller": "app.Users", "action": "index"}
    )
    assert config.build_handler() == ControllerHandler("app.Users", "index")

    with pytest.raises(ValueError, match="handler can not be empty"):
        RouteConfig(methods=["GET"], pattern="/", handler="  ")


def test_routemap_config_defaults() -> None:
    """Test RoutemapConfig with all defaults."""
    config = RoutemapConfig()
    assert config.environment == "development"
    assert config.logging.level == "INFO"
    assert config.routes == []
    assert config.groups == []


def test_config_loader_file_loading(temp_config_file: Path) -> None:
    """Test ConfigLoader loads from file correctly."""
    config = ConfigLoader(config_path=str(temp_config_file)).load()

    assert config.environment == "test"
    assert config.logging.level == "DEBUG"
    assert config.routes[0].methods == ["GET"]
    assert isinstance(config.groups[0], GroupConfig)
    assert config.groups[0].groups[0].prefix == "/admin"


def test_config_loader_missing_file() -> None:
    """Test ConfigLoader handles missing file gracefully."""
    config = ConfigLoader(config_path="nonexistent.yaml").load()
    assert config.environment == "development"


def test_config_loader_env_override(
    temp_config_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test ConfigLoader overrides from environment variables."""
    monkeypatch.setenv("ROUTEMAP_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("ROUTEMAP_LOG_FORMAT", "text")
    monkeypatch.setenv("ROUTEMAP_METRICS_ENABLED", "false")
    monkeypatch.setenv("ROUTEMAP_ENV", "production")

    config = ConfigLoader(config_path=str(temp_config_file)).load()

    assert config.logging.level == "ERROR"
    assert config.logging.format == "text"
    assert config.metrics.enabled is False
    assert config.environment == "production"


def test_config_loader_env_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test ConfigLoader resolves config path from environment."""
    config_file = tmp_path / "from_env.yaml"
    with open(config_file, "w") as f:
        yaml.dump({"environment": "env_test"}, f)

    monkeypatch.setenv("ROUTEMAP_CONFIG_PATH", str(config_file))

    config = ConfigLoader().load()
    assert config.environment == "env_test"


def test_config_loader_environment_specific_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test config/routes.<env>.yaml is preferred when it exists."""
    (tmp_path / "config").mkdir()
    with open(tmp_path / "config" / "routes.staging.yaml", "w") as f:
        yaml.dump({"environment": "staging"}, f)

    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ROUTEMAP_CONFIG_PATH", raising=False)
    monkeypatch.setenv("ROUTEMAP_ENV", "staging")

    loader = ConfigLoader()
    assert loader.config_path == Path("config/routes.staging.yaml")
    assert loader.load().environment == "staging"


def test_load_config_convenience_function(temp_config_file: Path) -> None:
    """Test load_config convenience function."""
    config = load_config(config_path=str(temp_config_file))
    assert isinstance(config, RoutemapConfig)
    assert config.environment == "test"


def test_config_validation_error() -> None:
    """Test configuration validation catches errors."""
    loader = ConfigLoader(config_path="nonexistent.yaml")
    loader._load_from_file = lambda: {"routes": [{"pattern": "/"}]}  # type: ignore

    with pytest.raises(ConfigurationError, match="Configuration validation failed"):
        loader.load()


def test_invalid_yaml(tmp_path: Path) -> None:
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("routes: [unclosed\n")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        ConfigLoader(config_path=str(config_file)).load()


def test_non_mapping_yaml(tmp_path: Path) -> None:
    config_file = tmp_path / "list.yaml"
    config_file.write_text("- a\n- b\n")

    with pytest.raises(ConfigurationError, match="must contain a mapping"):
        ConfigLoader(config_path=str(config_file)).load()


def test_register_routes(temp_config_file: Path) -> None:
    """Test routes and nested groups are registered with their prefixes."""
    collection = register_routes(load_config(str(temp_config_file)), RouteCollection())

    patterns = [route.pattern for route in collection]
    assert patterns == ["/health", "/api/users/{id}", "/api/admin/stats"]

    user_show = collection.get_route_by_name("user.show")
    assert user_show.handler == ControllerHandler("app.UserController", "show")
    assert collection.get_route_by_id("route2").methods == ALLOWED_METHODS

    # No group prefix leaks into later registrations
    assert collection.get("/after", "h").pattern == "/after"
