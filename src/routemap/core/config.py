"""Configuration management module for routemap.

This module handles loading and validating configuration from multiple sources:
- Route table files (YAML)
- Environment variables
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from routemap.core.collection import ALLOWED_METHODS, RouteCollection
from routemap.core.errors import ConfigurationError
from routemap.core.route import ControllerHandler


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format (json or text)")
    output: str = Field(default="stdout", description="Log output (stdout, stderr or a file path)")
    redact_params: list[str] = Field(
        default_factory=lambda: ["password", "token", "secret"],
        description="Route parameter names to redact from logs",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is valid."""
        v_lower = v.lower()
        if v_lower not in ("json", "text"):
            raise ValueError(f"Invalid log format: {v}. Must be json or text")
        return v_lower


class MetricsConfig(BaseModel):
    """Metrics configuration."""

    enabled: bool = Field(default=True, description="Enable metrics collection")
    namespace: str = Field(default="routemap", description="Prefix for metric names")


class HandlerConfig(BaseModel):
    """Controller/action handler reference."""

    controller: str = Field(min_length=1, description="Controller class reference")
    action: str = Field(min_length=1, description="Controller method name")


class RouteConfig(BaseModel):
    """Route configuration."""

    methods: list[str] = Field(description="HTTP methods, or ['*'] for all of them")
    pattern: str = Field(description="URI pattern")
    handler: str | HandlerConfig = Field(description="Handler reference")
    name: str = Field(default="", description="Route name used for URI generation")

    @field_validator("methods", mode="before")
    @classmethod
    def validate_methods(cls, v: Any) -> list[str]:
        """Uppercase methods, expand '*' and reject unknown methods."""
        if isinstance(v, str):
            v = [v]
        if not v:
            raise ValueError("One or more HTTP methods must be provided")

        methods: list[str] = []
        for method in v:
            method_upper = str(method).upper()
            if method_upper == "*":
                methods.extend(m for m in ALLOWED_METHODS if m not in methods)
                continue
            if method_upper not in ALLOWED_METHODS:
                raise ValueError(
                    f"Invalid HTTP method: {method}. Must be one of {list(ALLOWED_METHODS)}"
                )
            if method_upper not in methods:
                methods.append(method_upper)
        return methods

    @field_validator("handler")
    @classmethod
    def validate_handler(cls, v: str | HandlerConfig) -> str | HandlerConfig:
        """Validate a string handler is not empty."""
        if isinstance(v, str) and not v.strip():
            raise ValueError("The route handler can not be empty")
        return v

    def build_handler(self) -> str | ControllerHandler:
        """Return the handler in the form routes store it."""
        if isinstance(self.handler, HandlerConfig):
            return ControllerHandler(self.handler.controller, self.handler.action)
        return self.handler


class GroupConfig(BaseModel):
    """A group of routes sharing a pattern prefix."""

    prefix: str = Field(description="Pattern prefix for every route in the group")
    routes: list[RouteConfig] = Field(default_factory=list)
    groups: list["GroupConfig"] = Field(default_factory=list)


class RoutemapConfig(BaseModel):
    """Main routemap configuration."""

    environment: str = Field(default="development", description="Environment name")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    routes: list[RouteConfig] = Field(default_factory=list)
    groups: list[GroupConfig] = Field(default_factory=list)


class ConfigLoader:
    """Loads and validates configuration from multiple sources."""

    def __init__(self, config_path: str | None = None):
        """Initialize the configuration loader.

        Args:
            config_path: Path to configuration file. If None, uses environment variable
                        ROUTEMAP_CONFIG_PATH or defaults to config/routes.yaml
        """
        self.config_path = self._resolve_config_path(config_path)

    def _resolve_config_path(self, config_path: str | None) -> Path:
        """Resolve configuration file path."""
        if config_path:
            return Path(config_path)

        env_path = os.getenv("ROUTEMAP_CONFIG_PATH")
        if env_path:
            return Path(env_path)

        # Try environment-specific config first
        env = os.getenv("ROUTEMAP_ENV", "development")
        env_specific = Path(f"config/routes.{env}.yaml")
        if env_specific.exists():
            return env_specific

        return Path("config/routes.yaml")

    def load(self) -> RoutemapConfig:
        """Load and validate configuration.

        Returns:
            Validated RoutemapConfig instance

        Raises:
            ConfigurationError: If the file cannot be parsed or the configuration is invalid
        """
        config_dict = self._load_from_file()
        config_dict = self._override_from_env(config_dict)

        try:
            config = RoutemapConfig(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        return config

    def _load_from_file(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            # Return empty dict if file doesn't exist, will use defaults
            return {}

        try:
            with open(self.config_path) as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration file {self.config_path} must contain a mapping"
            )
        return config_dict

    def _override_from_env(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """Override configuration with environment variables.

        Environment variables follow the pattern: ROUTEMAP_<SECTION>_<KEY>
        For example: ROUTEMAP_LOG_LEVEL=DEBUG
        """
        # Logging config
        if log_level := os.getenv("ROUTEMAP_LOG_LEVEL"):
            config_dict.setdefault("logging", {})["level"] = log_level
        if log_format := os.getenv("ROUTEMAP_LOG_FORMAT"):
            config_dict.setdefault("logging", {})["format"] = log_format

        # Metrics config
        if metrics_enabled := os.getenv("ROUTEMAP_METRICS_ENABLED"):
            config_dict.setdefault("metrics", {})["enabled"] = metrics_enabled.lower() == "true"

        # Environment
        if env := os.getenv("ROUTEMAP_ENV"):
            config_dict["environment"] = env

        return config_dict


def load_config(config_path: str | None = None) -> RoutemapConfig:
    """Load configuration (convenience function).

    Args:
        config_path: Optional path to configuration file

    Returns:
        Validated RoutemapConfig instance
    """
    loader = ConfigLoader(config_path)
    return loader.load()


def register_routes(config: RoutemapConfig, collection: RouteCollection) -> RouteCollection:
    """Register the configured routes and groups into a collection.

    Args:
        config: Validated configuration
        collection: Collection receiving the routes

    Returns:
        The collection
    """
    _register(collection, config.routes, config.groups)
    return collection


def _register(
    collection: RouteCollection, routes: list[RouteConfig], groups: list[GroupConfig]
) -> None:
    for route_config in routes:
        route = collection.route(
            route_config.methods, route_config.pattern, route_config.build_handler()
        )
        route.set_name(route_config.name)

    for group in groups:
        collection.group(
            group.prefix,
            lambda scoped, group=group: _register(scoped, group.routes, group.groups),
        )
