"""Polymorphic dict/JSON serialization of pattern trees.

Pattern node fields are annotated with base classes (`child: PatternNode`), so
plain mashumaro serialization would lose the concrete node type. Every class
derived from `DataClassSerializeMixin` is therefore registered by name, and
its serialized form carries the name under `TYPE_KEY`.

"""
from __future__ import annotations

import enum
import inspect
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator, Mapping, Type, TypeVar, cast

import orjson
from mashumaro.exceptions import InvalidFieldValue
from mashumaro.mixins.dict import DataClassDictMixin
from mashumaro.types import SerializableType

TYPE_KEY = "__type"
"""Key holding the class name of a serialized object."""

TYPES: dict[str, Type[DataClassSerializeMixin]] = {}
"""Registry of serializable classes by class name."""

T = TypeVar("T", bound="DataClassSerializeMixin")


@enum.unique
class SerializationOption(str, enum.Enum):
    SKIP_CLASS = "skip_class"
    """Omit `TYPE_KEY`. The output can't be deserialized polymorphically anymore."""

    SORT_KEYS = "sort_keys"
    """Output keys in sorted order (after `TYPE_KEY`)."""


_options: ContextVar[Mapping[str, Any]] = ContextVar("serialization_options", default={})


@contextmanager
def _serialization_options(options: Mapping[str, Any] | None) -> Generator[None, None, None]:
    token = _options.set(dict(options) if options else {})
    try:
        yield
    finally:
        _options.reset(token)


def json_loader(value: bytes | str) -> Any:
    return orjson.loads(value)


def json_dumper_to_str(value: dict[str, Any], indent: bool = False) -> str:
    option = orjson.OPT_INDENT_2 if indent else None
    return orjson.dumps(value, option=option).decode("utf-8")


class DataClassSerializeMixin(DataClassDictMixin, SerializableType):
    __slots__ = ()

    def __init_subclass__(cls, **kwargs: Any):
        existing = TYPES.get(cls.__name__)

        # Names are the only thing stored in the serialized form, so they must be unique
        if existing is not None and inspect.getmodule(existing) is not inspect.getmodule(cls):
            raise ValueError(
                f"Serializable class <{cls.__name__}> is already defined in "
                f"{inspect.getmodule(existing)!s}. Please use a different name."
            )

        TYPES[cls.__name__] = cls
        return super().__init_subclass__(**kwargs)

    def __post_serialize__(self, d: dict[str, Any]) -> dict[str, Any]:
        options = _options.get()

        out: dict[str, Any] = {}
        if not options.get(SerializationOption.SKIP_CLASS, False):
            out[TYPE_KEY] = self.__class__.__name__

        if options.get(SerializationOption.SORT_KEYS, False):
            out.update(sorted(d.items()))
        else:
            out.update(d)

        return out

    def _serialize(self) -> dict[str, Any]:
        return self.to_dict()

    @classmethod
    def _deserialize(cls: Type[T], value: dict[str, Any]) -> T:
        class_name = value.get(TYPE_KEY)

        if not isinstance(class_name, str):
            # No type information, trust the annotation
            return cast(T, cls.from_dict(value))

        clazz = TYPES.get(class_name)

        if clazz is None:
            raise ValueError(f"Unknown class name: {class_name}")

        if not issubclass(clazz, cls):
            raise ValueError(f"Class <{class_name}> is not a subclass of <{cls.__name__}>")

        return cast(T, clazz.from_dict(value))

    def as_dict(self, serialization_options: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Serialize to a dict.

        Args:
            serialization_options (Mapping[str, Any], optional): see `SerializationOption`.
                Only affect this call.

        """
        with _serialization_options(serialization_options):
            return self._serialize()

    @classmethod
    def as_obj(cls: Type[T], value: dict[str, Any]) -> T:
        """Deserialize from a dict produced by `as_dict`. The concrete class is taken from
        `TYPE_KEY` and must be `cls` or its subclass."""
        return cls._deserialize(value)

    def to_json(
        self,
        *,
        indent: bool = False,
        serialization_options: Mapping[str, Any] | None = None,
    ) -> str:
        return json_dumper_to_str(
            self.as_dict(serialization_options=serialization_options), indent=indent
        )

    @classmethod
    def from_json(cls: Type[T], value: bytes | str) -> T:
        return cls.as_obj(json_loader(value))


def unwrap_invalid_field_exception(exc: InvalidFieldValue) -> tuple[str, BaseException]:
    """Follow a chain of nested InvalidFieldValue exceptions.

    Returns:
        tuple[str, BaseException]: dotted path to the innermost invalid field and the exception
            that made it invalid (`exc` itself if there is no nested cause)

    """
    path = [exc.field_name]
    cause: BaseException = exc

    while cause.__context__ is not None:
        cause = cause.__context__

        if not isinstance(cause, InvalidFieldValue):
            break

        path.append(cause.field_name)

    return ".".join(path), cause
