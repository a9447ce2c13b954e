"""
H-45 Error Hierarchy
====================

This module defines the root of the exception hierarchy for the H-45
toolchain. All exceptions inherit from H45Error, allowing callers to catch
every toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
H45Error (base)
├── H45Diagnostic - a recorded language-level error (see h45.lang.errors)
│   ├── LexicalDiagnostic
│   ├── SyntaxDiagnostic
│   ├── SemanticDiagnostic
│   ├── TypeDiagnostic
│   ├── UndeclaredVariableError
│   ├── RedeclarationError
│   ├── FunctionNotFoundError
│   └── ArgumentMismatchError
├── H45CompilationError - aggregate report of a failed compilation
└── H45InternalError - compiler bug, never a user mistake

Error messages follow this format:
    filename:line:column: error: description
"""

from dataclasses import dataclass


# =============================================================================
# Base Exception Class
# =============================================================================

class H45Error(Exception):
    """
    Base exception for all H-45 toolchain errors.

        try:
            compile_h45(source)
        except H45Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Used by tokens, AST nodes, symbols and diagnostics. The frozen design
    ensures locations cannot be accidentally modified.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"
