"""
H-45 Symbol Table
=================

Chained scopes used by the semantic analyzer.

Each Scope maps names to Symbols and holds a reference to its enclosing
scope. The reference is used only for lookup: a scope never owns or
changes its parent. Lookup walks outward, so an inner definition hides
an outer one of the same name without modifying it.

Scope Levels
------------
The root (global) scope is level 0 and every child is one deeper than
its parent. Scopes are opened on entering a function (parameters), a
block, or a for-loop header, and dropped on leaving it.

Example
-------
>>> root = Scope()
>>> root.define("x", TypeTag.INT, SymbolKind.VARIABLE)
>>> inner = root.child()
>>> inner.define("x", TypeTag.FLOAT, SymbolKind.VARIABLE)  # shadowing is fine
>>> inner.lookup("x").type_tag
<TypeTag.FLOAT: 'float'>
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from h45.errors import SourceLocation
from h45.lang.errors import RedeclarationError
from h45.lang.types import TypeTag


class SymbolKind(Enum):
    """What a declared name refers to."""
    VARIABLE = "variable"
    PARAMETER = "parameter"
    FUNCTION = "function"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Symbol:
    """
    A declared name.

    Attributes:
        name: Identifier as written in the source
        type_tag: Declared type (the return type for functions)
        kind: Variable, parameter or function
        level: Level of the scope that owns the symbol
        location: Where the name was declared (None if unknown)
    """
    name: str
    type_tag: TypeTag
    kind: SymbolKind
    level: int
    location: Optional[SourceLocation] = None

    @property
    def is_function(self) -> bool:
        return self.kind is SymbolKind.FUNCTION


class Scope:
    """
    One level of the symbol table.

    Attributes:
        parent: The enclosing scope (None for the root)
        level: Nesting depth, 0 for the root
    """

    def __init__(self, parent: Optional["Scope"] = None):
        self.parent = parent
        self.level = parent.level + 1 if parent is not None else 0
        self._symbols: dict[str, Symbol] = {}

    def define(
        self,
        name: str,
        type_tag: TypeTag,
        kind: SymbolKind,
        location: Optional[SourceLocation] = None,
    ) -> Symbol:
        """
        Add a symbol to this scope.

        Raises:
            RedeclarationError: If name is already defined in this scope;
                the existing symbol is left untouched
        """
        if name in self._symbols:
            raise RedeclarationError(name, location, what=str(kind))
        symbol = Symbol(name, type_tag, kind, self.level, location)
        self._symbols[name] = symbol
        return symbol

    def lookup(self, name: str) -> Optional[Symbol]:
        """Find name in this scope or the nearest enclosing scope that defines it."""
        scope: Optional[Scope] = self
        while scope is not None:
            symbol = scope._symbols.get(name)
            if symbol is not None:
                return symbol
            scope = scope.parent
        return None

    def lookup_local(self, name: str) -> Optional[Symbol]:
        """Find name in this scope only."""
        return self._symbols.get(name)

    def is_defined_locally(self, name: str) -> bool:
        return name in self._symbols

    def child(self) -> "Scope":
        """Create a new scope nested in this one."""
        return Scope(self)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self) -> str:
        return f"Scope(level={self.level}, symbols={list(self._symbols)})"
