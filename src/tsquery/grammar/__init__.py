from .model import Grammar, NamedElement, PatternElement, StringElement, SymbolElement
from .reader import load_grammar, parse_grammar

__all__ = [
    "Grammar",
    "NamedElement",
    "PatternElement",
    "StringElement",
    "SymbolElement",
    "load_grammar",
    "parse_grammar",
]
