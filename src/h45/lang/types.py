"""
H-45 Type System
================

H-45 has four primitive types and no user-defined types.

Supported Types
---------------
| Type   | Numeric | Notes                                |
|--------|---------|--------------------------------------|
| int    | yes     | widened to float where float needed  |
| float  | yes     |                                      |
| bool   | no      | result of comparisons and && || !    |
| string | no      |                                      |

Compatibility
-------------
A value of type ``actual`` may be stored where ``expected`` is declared
when the two are identical, or when ``expected`` is float and ``actual``
is int. Int-to-float promotion is the only implicit conversion.

There is no void type. TypeTag.UNCONSTRAINED marks a function whose
return value is not checked; no source construct produces it, since
every function declaration names one of the four primitive types.
"""

from enum import Enum
from typing import Optional


# =============================================================================
# Type Tags
# =============================================================================

class TypeTag(Enum):
    """
    Declared or inferred type of a value.

    The value of each member is its source spelling.
    """
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"
    UNCONSTRAINED = "<unconstrained>"

    def __str__(self) -> str:
        return self.value

    @property
    def is_numeric(self) -> bool:
        """True for int and float."""
        return self in (TypeTag.INT, TypeTag.FLOAT)

    @classmethod
    def from_keyword(cls, keyword: str) -> "TypeTag":
        """
        Map a type keyword to its tag.

        Raises:
            ValueError: If keyword is not one of int, float, bool, string
        """
        tag = cls(keyword)
        if tag is cls.UNCONSTRAINED:
            raise ValueError(f"not a type keyword: {keyword!r}")
        return tag


# =============================================================================
# Type Rules
# =============================================================================

def is_compatible(expected: TypeTag, actual: TypeTag) -> bool:
    """Return True if a value of type actual may be used where expected is declared."""
    if expected is actual:
        return True
    return expected is TypeTag.FLOAT and actual is TypeTag.INT


def promote_numeric(left: TypeTag, right: TypeTag) -> Optional[TypeTag]:
    """
    Result type of an arithmetic operation.

    Returns:
        FLOAT if either operand is float, INT if both are int,
        None if either operand is not numeric
    """
    if not (left.is_numeric and right.is_numeric):
        return None
    if TypeTag.FLOAT in (left, right):
        return TypeTag.FLOAT
    return TypeTag.INT
