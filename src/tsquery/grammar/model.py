"""Typed records for a grammar description document (`grammar.json`).

Only the top-level tables are typed. The rule table is kept as raw JSON and is
only consulted for metadata: which node types, anonymous literals and fields
a grammar defines.

"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Iterator, Literal, Union

from mashumaro import DataClassDictMixin
from mashumaro.types import Discriminator


@dataclass(frozen=True)
class SymbolElement(DataClassDictMixin):
    name: str
    type: Literal["SYMBOL"] = "SYMBOL"


@dataclass(frozen=True)
class PatternElement(DataClassDictMixin):
    value: str
    type: Literal["PATTERN"] = "PATTERN"


@dataclass(frozen=True)
class StringElement(DataClassDictMixin):
    value: str
    type: Literal["STRING"] = "STRING"


NamedElement = Annotated[
    Union[SymbolElement, PatternElement, StringElement],
    Discriminator(field="type", include_supertypes=True),
]


def _iter_rule_nodes(value: Any) -> Iterator[dict[str, Any]]:
    """Walk a raw rule tree and yield every object that has a `type`."""
    stack = [value]

    while stack:
        item = stack.pop()

        if isinstance(item, dict):
            if isinstance(item.get("type"), str):
                yield item
            stack.extend(item.values())
        elif isinstance(item, list):
            stack.extend(item)


@dataclass
class Grammar(DataClassDictMixin):
    """A language grammar description.

    `externals` and any other unknown keys of the document are ignored.

    """

    name: str
    extras: list[NamedElement]
    conflicts: list[list[str]]
    precedences: list[list[NamedElement]]
    inline: list[str]
    supertypes: list[str]
    word: str | None = None
    rules: dict[str, Any] = field(default_factory=dict, repr=False)

    def rule_names(self) -> set[str]:
        return set(self.rules)

    def node_names(self) -> set[str]:
        """Names of node types that may appear in a syntax tree (and thus in a pattern).

        These are all visible rules, named aliases and supertypes. Hidden rules (starting with
        an underscore) are excluded unless they are supertypes.

        """
        names = {name for name in self.rules if not name.startswith("_")}
        names.update(self.supertypes)

        for node in _iter_rule_nodes(list(self.rules.values())):
            if node["type"] == "ALIAS" and node.get("named") and isinstance(node.get("value"), str):
                names.add(node["value"])

        return names

    def literal_names(self) -> set[str]:
        """Anonymous node types, i.e. string literals and anonymous aliases."""
        names: set[str] = set()

        for node in _iter_rule_nodes(list(self.rules.values())):
            match node["type"]:
                case "STRING" if isinstance(node.get("value"), str):
                    names.add(node["value"])
                case "ALIAS" if not node.get("named") and isinstance(node.get("value"), str):
                    names.add(node["value"])

        return names

    def field_names(self) -> set[str]:
        return {
            node["name"]
            for node in _iter_rule_nodes(list(self.rules.values()))
            if node["type"] == "FIELD" and isinstance(node.get("name"), str)
        }
