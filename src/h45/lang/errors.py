"""
H-45 Compiler Diagnostics
=========================

This module defines the diagnostics produced by the H-45 compiler phases
and the reporter that collects them.

Every language-level mistake is represented by an H45Diagnostic instance.
Diagnostics are exceptions so that the parser can unwind to its recovery
point with ``raise``, but they are always *recorded* on an ErrorReporter
rather than allowed to escape the compiler.

Diagnostic Kinds
----------------
The set of kinds is closed:

| Kind                | Raised by            |
|---------------------|----------------------|
| LEXICAL_ERROR       | lexer                |
| SYNTAX_ERROR        | parser               |
| SEMANTIC_ERROR      | semantic analyzer    |
| TYPE_ERROR          | semantic analyzer    |
| UNDECLARED_VARIABLE | semantic analyzer    |
| REDECLARATION_ERROR | semantic analyzer    |
| FUNCTION_NOT_FOUND  | semantic analyzer    |
| ARGUMENT_MISMATCH   | (reserved, unused)   |

ARGUMENT_MISMATCH exists in the taxonomy but no phase reports it: call
arity and argument types are not checked against the callee's signature.

Message Format
--------------
    test.h45:3:13: error: cannot assign string to variable of type int

Diagnostics without a position render as ``error: message`` and report
line and column -1.
"""

import logging
from enum import Enum, auto
from typing import List, Optional

from h45.errors import H45Error, SourceLocation


logger = logging.getLogger(__name__)


# =============================================================================
# Diagnostic Kinds
# =============================================================================

class ErrorKind(Enum):
    """Closed taxonomy of compiler diagnostics."""
    LEXICAL_ERROR = auto()
    SYNTAX_ERROR = auto()
    SEMANTIC_ERROR = auto()
    TYPE_ERROR = auto()
    UNDECLARED_VARIABLE = auto()
    REDECLARATION_ERROR = auto()
    FUNCTION_NOT_FOUND = auto()
    ARGUMENT_MISMATCH = auto()


# =============================================================================
# Diagnostic Base
# =============================================================================

class H45Diagnostic(H45Error):
    """
    Base class for all language-level compiler diagnostics.

    Subclasses fix the ``kind`` class attribute; instances carry the
    message and an optional source location.

    Attributes:
        kind: The ErrorKind of this diagnostic
        message: The error description
        location: Where in the source the error occurred (None if unknown)
    """

    kind: ErrorKind = ErrorKind.SEMANTIC_ERROR

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        self.message = message
        self.location = location
        super().__init__(self._format_message())

    @property
    def line(self) -> int:
        """1-based line number, or -1 when the position is unknown."""
        return self.location.line if self.location else -1

    @property
    def column(self) -> int:
        """1-based column number, or -1 when the position is unknown."""
        return self.location.column if self.location else -1

    def _format_message(self) -> str:
        if self.location:
            return f"{self.location}: error: {self.message}"
        return f"error: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.kind.name}, {self.message!r}, {self.line}:{self.column})"


class LexicalDiagnostic(H45Diagnostic):
    """Invalid character, lone '&' or '|', or unterminated string."""
    kind = ErrorKind.LEXICAL_ERROR


class SyntaxDiagnostic(H45Diagnostic):
    """
    Grammar violation found by the parser.

    Examples:
        - Missing ';' after a statement
        - Missing ')' after a condition
        - Expression expected but another token found
        - Invalid assignment target
    """
    kind = ErrorKind.SYNTAX_ERROR


class SemanticDiagnostic(H45Diagnostic):
    """
    Program is well-formed but violates language semantics.

    Examples:
        - 'return' outside of any function
        - Calling a variable as if it were a function
    """
    kind = ErrorKind.SEMANTIC_ERROR


class TypeDiagnostic(H45Diagnostic):
    """
    Type mismatch between an expression and its context.

    Attributes:
        expected_type: The type required by the context, if any
        actual_type: The type the expression has, if any
    """
    kind = ErrorKind.TYPE_ERROR

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        expected_type: Optional[str] = None,
        actual_type: Optional[str] = None,
    ):
        self.expected_type = expected_type
        self.actual_type = actual_type
        super().__init__(message, location)


class UndeclaredVariableError(H45Diagnostic):
    """Reference or assignment to a name not declared in any enclosing scope."""
    kind = ErrorKind.UNDECLARED_VARIABLE

    def __init__(self, identifier: str, location: Optional[SourceLocation] = None):
        self.identifier = identifier
        super().__init__(f"undeclared variable '{identifier}'", location)


class RedeclarationError(H45Diagnostic):
    """Name declared twice in the same scope."""
    kind = ErrorKind.REDECLARATION_ERROR

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        what: str = "variable",
    ):
        self.identifier = identifier
        super().__init__(f"{what} '{identifier}' is already declared in this scope", location)


class FunctionNotFoundError(H45Diagnostic):
    """Call to a name that is not declared in any enclosing scope."""
    kind = ErrorKind.FUNCTION_NOT_FOUND

    def __init__(self, function_name: str, location: Optional[SourceLocation] = None):
        self.function_name = function_name
        super().__init__(f"undefined function '{function_name}'", location)


class ArgumentMismatchError(H45Diagnostic):
    """
    Call arguments do not match the callee's parameters.

    Part of the taxonomy for completeness; the semantic analyzer does not
    check call arity or argument types, so this is never reported.
    """
    kind = ErrorKind.ARGUMENT_MISMATCH


# =============================================================================
# Non-diagnostic Errors
# =============================================================================

class H45CompilationError(H45Error):
    """
    Aggregate error for a failed compilation.

    Raised only by the convenience helpers (compile_h45 and friends); the
    message is the already formatted report from ErrorReporter.

    Attributes:
        errors: The diagnostics that caused the failure
    """

    def __init__(self, report: str, errors: Optional[List[H45Diagnostic]] = None):
        self.errors = list(errors or [])
        super().__init__(report)


class H45InternalError(H45Error):
    """
    Unexpected compiler state.

    Raised when a phase meets input that an earlier phase should have
    ruled out, such as a node outside the closed AST node set. This is a
    compiler bug, not a problem with the program being compiled.
    """
    pass


# =============================================================================
# Diagnostic Sink
# =============================================================================

class ErrorReporter:
    """
    Collects diagnostics for batch reporting.

    Every phase records its diagnostics here instead of stopping at the
    first one. The compiler queries has_errors() once per phase boundary to
    decide whether to run the next phase.

    Example:
        reporter = ErrorReporter(max_errors=100)
        parser = H45Parser(tokens, "prog.h45", reporter)
        program = parser.parse()
        if reporter.has_errors():
            print(reporter.report())
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the reporter.

        Args:
            max_errors: Number of errors after which should_stop() is True
        """
        self.errors: List[H45Diagnostic] = []
        self.max_errors = max_errors

    def add(self, error: H45Diagnostic) -> None:
        """Record a diagnostic."""
        logger.debug(f"recorded {error.kind.name}: {error}")
        self.errors.append(error)

    def has_errors(self) -> bool:
        """Return True if any diagnostic has been recorded."""
        return len(self.errors) > 0

    def should_stop(self) -> bool:
        """Return True if max_errors has been reached."""
        return len(self.errors) >= self.max_errors

    def error_count(self) -> int:
        """Return the number of recorded diagnostics."""
        return len(self.errors)

    def errors_of_kind(self, kind: ErrorKind) -> List[H45Diagnostic]:
        """Return the recorded diagnostics of one kind, in report order."""
        return [e for e in self.errors if e.kind is kind]

    def report(self) -> str:
        """Format all diagnostics and a summary line for display."""
        lines = [str(error) for error in self.errors]
        word = "error" if len(self.errors) == 1 else "errors"
        lines.append(f"{len(self.errors)} {word}")
        return "\n".join(lines)

    def clear(self) -> None:
        """Forget all recorded diagnostics."""
        self.errors.clear()

    def raise_if_errors(self) -> None:
        """Raise H45CompilationError if any diagnostic was recorded."""
        if self.has_errors():
            raise H45CompilationError(self.report(), self.errors)
