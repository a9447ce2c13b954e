"""
H-45 Compiler
=============

A compiler for H-45, a small statically typed teaching language with
int, float, bool and string values, functions, and structured control
flow.

Pipeline
--------
    Source → Lexer → Parser → AST → Semantic Analyzer → Code Generator → Listing

The output is an x86-flavoured stack-machine pseudo-assembly listing. It
shows how the program would be lowered; it is not meant to be assembled.

Usage
-----
>>> from h45 import compile_h45
>>> source = '''
... int main() {
...     int x = 10;
...     print(x * 2);
...     return 0;
... }
... '''
>>> asm_output = compile_h45(source)
>>> print(asm_output)  # stack-machine listing

Language Summary
----------------
- Types: int, float, bool, string (int widens to float implicitly)
- Operators: + - * / %  == != < <= > >=  && || !  and assignment
- Control flow: if/else, while, for, return
- Functions with typed parameters, print(expr)
- Line comments: // ...
"""

# =============================================================================
# Version Information
# =============================================================================

__version__ = "1.0.0"

# =============================================================================
# Public API Imports
# =============================================================================

from h45.errors import H45Error, SourceLocation
from h45.lang.compiler import (
    CompilerOptions,
    CompilerPhase,
    CompilerResult,
    H45Compiler,
    compile_file,
    compile_h45,
)
from h45.lang.errors import (
    ErrorKind,
    ErrorReporter,
    H45CompilationError,
    H45Diagnostic,
    H45InternalError,
)

__all__ = [
    "__version__",
    "H45Error",
    "SourceLocation",
    "CompilerOptions",
    "CompilerPhase",
    "CompilerResult",
    "H45Compiler",
    "compile_file",
    "compile_h45",
    "ErrorKind",
    "ErrorReporter",
    "H45CompilationError",
    "H45Diagnostic",
    "H45InternalError",
]
