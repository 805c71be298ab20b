from __future__ import annotations

from abc import ABC, abstractmethod
from inspect import Parameter, getmembers, isfunction, signature
from typing import Any, Callable, ClassVar, Generic, TypeVar

from .query.ast import PatternNode

_VRT = TypeVar("_VRT")


def _visited_node_type(method: Callable[..., Any]) -> type[PatternNode] | str:
    """Return the node type a `visit_*` method accepts, or a description of what is wrong with
    its signature."""
    params = list(signature(method, eval_str=True).parameters.values())

    if len(params) < 2:
        return "Method must have at least two parameters: self and node"

    annotation = params[1].annotation

    if annotation is Parameter.empty:
        return "Node type annotation is missing"

    if not isinstance(annotation, type):
        return "Node type annotation must be a single PatternNode subclass"

    if not issubclass(annotation, PatternNode):
        return "Node type annotation must be a subclass of PatternNode"

    return annotation


class PatternVisitor(Generic[_VRT], ABC):
    """Base class for visitors over pattern trees.

    `visit` calls the `visit_*` method whose node argument annotation matches the
    visited node type, or `generic_visit` if there is none. The method name is not
    used for dispatch, only the annotation, which must be a single `PatternNode`
    subclass.

    Non-strict visitors (the default) also accept a method for a base class of the
    node, the closest one in the node MRO wins. Set `strict = True` to only
    dispatch on exact types.

    Pass `validate=True` when subclassing to also require that method names match
    the annotation, i.e. `visit_Name(self, node: Name)`.

    """

    _methods: ClassVar[dict[type[PatternNode], Callable[..., Any]]] = {}

    strict: ClassVar[bool] = False

    def __init__(self) -> None:
        self._bound: dict[type[PatternNode], Callable[[PatternNode], _VRT]] = {}

    def __init_subclass__(cls, *, validate: bool = False, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        cls._methods = {}
        errors: list[tuple[str, str]] = []

        for method_name, method in getmembers(cls, isfunction):
            if not method_name.startswith("visit_"):
                continue

            node_type = _visited_node_type(method)

            if isinstance(node_type, str):
                errors.append((method_name, node_type))
            elif validate and node_type.__name__ != method_name.removeprefix("visit_"):
                errors.append(
                    (method_name, "Method name doesn't match the second argument type annotation")
                )
            else:
                cls._methods[node_type] = method

        if errors:
            raise TypeError(
                f"Visitor class '{cls.__name__}' method(s) have invalid signature(s):\n  - "
                + "\n  - ".join(f"'{name}': {error}" for name, error in sorted(errors))
            )

    def _dispatch(self, node_type: type[PatternNode]) -> Callable[[PatternNode], _VRT]:
        bound = self._bound.get(node_type)
        if bound is not None:
            return bound

        candidates = (node_type,) if self.strict else node_type.__mro__
        method = next((self._methods[c] for c in candidates if c in self._methods), None)

        bound = method.__get__(self) if method is not None else self.generic_visit
        self._bound[node_type] = bound

        return bound

    @abstractmethod
    def generic_visit(self, node: PatternNode) -> _VRT:
        raise NotImplementedError

    def visit(self, node: PatternNode) -> _VRT:
        return self._dispatch(node.__class__)(node)
