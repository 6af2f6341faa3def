"""Route entity and handler descriptors."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Union

from routemap.core.errors import ArgumentError


@dataclass(frozen=True)
class ControllerHandler:
    """A handler expressed as a controller class and one of its methods.

    Example: ``ControllerHandler("app.controllers.UserController", "show")``
    """

    controller: str
    action: str

    def __bool__(self) -> bool:
        return bool(self.controller) and bool(self.action)

    def __str__(self) -> str:
        return f"{self.controller}.{self.action}"


# A dotted reference ("pkg.module:function"), a controller descriptor or a callable.
Handler = Union[str, ControllerHandler, Callable[..., Any]]


def normalize_methods(methods: str | Iterable[str]) -> tuple[str, ...]:
    """Turn a method or a list of methods into a tuple of unique uppercase tokens.

    Duplicates are dropped, keeping the first occurrence.

    Raises:
        ArgumentError: If no method is given or an item is not a non-empty string.
    """
    if isinstance(methods, str):
        methods = [methods]

    normalized = []
    for position, method in enumerate(methods):
        if not isinstance(method, str) or not method:
            raise ArgumentError(
                f"The value at position {position} of the list of HTTP methods "
                f"must be a non-empty string."
            )
        method = method.upper()
        if method not in normalized:
            normalized.append(method)

    if not normalized:
        raise ArgumentError("One or more HTTP methods must be provided.")

    return tuple(normalized)


@dataclass
class Route:
    """An addressable route: methods, pattern, handler and an optional name.

    The ``id`` is assigned once by the owning collection. ``parameters`` is
    filled in by the router on every successful match.
    """

    methods: tuple[str, ...]
    pattern: str
    handler: Handler
    name: str = ""
    parameters: dict[str, str] = field(default_factory=dict, compare=False)
    _id: str = field(default="", init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        # methods are normalized on construction and on every reassignment
        if name == "methods":
            value = normalize_methods(value)
        super().__setattr__(name, value)

    @property
    def id(self) -> str:
        return self._id

    @id.setter
    def id(self, value: str) -> None:
        if self._id:
            raise ValueError(f'Route already has the id "{self._id}".')
        self._id = value

    def set_name(self, name: str) -> "Route":
        """Set the route name and return the route for chaining."""
        self.name = name
        return self
