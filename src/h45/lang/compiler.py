"""
H-45 Compiler Main Module
=========================

This module provides the main compiler interface for H-45.
It runs the complete compilation process:

    Source → Lex → Parse → Analyze → Generate → Listing

Usage
-----
Command line:
    $ h45c program.h45 -o program.asm

Programmatic:
    >>> from h45 import compile_h45
    >>> asm = compile_h45('int main() { return 0; }')

Compilation Pipeline
--------------------
1. **Lexical Analysis**: Convert source to tokens
2. **Parsing**: Build Abstract Syntax Tree (AST)
3. **Semantic Analysis**: Resolve names and check types
4. **Code Generation**: Lower the AST to a stack-machine listing

Phases run strictly in order. A phase that records any diagnostic stops
the pipeline before the next phase starts; the parser still reports as
many independent errors as it can find in its single pass.

Error Handling
--------------
H45Compiler.compile_source() never raises for mistakes in the program
being compiled: it returns a CompilerResult with success=False, the
phase that failed and the diagnostics. compile_h45() and compile_file()
raise H45CompilationError instead. Compiler bugs surface as
H45InternalError.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from h45.lang.ast import Program
from h45.lang.codegen import DEFAULT_FRAME_SIZE, CodeGenerator
from h45.lang.errors import ErrorReporter, H45CompilationError, H45Diagnostic
from h45.lang.lexer import H45Lexer, Token
from h45.lang.parser import H45Parser
from h45.lang.semantic import SemanticAnalyzer


logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        max_errors: The parser stops once this many diagnostics are
                    recorded; every diagnostic is still kept
        frame_size: Stack bytes reserved by every generated function
        output_comments: Annotate the generated listing with comments
    """
    max_errors: int = 100
    frame_size: int = DEFAULT_FRAME_SIZE
    output_comments: bool = True


class CompilerPhase(Enum):
    """Compilation phases in execution order."""
    LEXICAL = (1, "Lexical analysis")
    SYNTAX = (2, "Syntax analysis")
    SEMANTIC = (3, "Semantic analysis")
    CODEGEN = (4, "Code generation")

    @property
    def number(self) -> int:
        return self.value[0]

    @property
    def title(self) -> str:
        return self.value[1]


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if every phase completed without diagnostics
        failed_phase: The phase that recorded diagnostics (None on success)
        phases: Phases that ran, with True for each that completed cleanly
        assembly: Generated listing (empty unless successful)
        tokens: Token list from the lexer
        ast: Abstract syntax tree (if parsing ran)
        errors: Recorded diagnostics in report order
    """
    filename: str = ""
    success: bool = False
    failed_phase: Optional[CompilerPhase] = None
    phases: list[tuple[CompilerPhase, bool]] = field(default_factory=list)
    assembly: str = ""
    tokens: list[Token] = field(default_factory=list)
    ast: Optional[Program] = None
    errors: list[H45Diagnostic] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)


class H45Compiler:
    """
    H-45 compiler.

    Example:
        compiler = H45Compiler()
        result = compiler.compile_file("hello.h45")
        print(result.assembly)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        """
        Initialize the compiler.

        Args:
            options: Compiler configuration (uses defaults if None)
        """
        self.options = options or CompilerOptions()
        self._errors = ErrorReporter(self.options.max_errors)

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile H-45 source code.

        Args:
            source: H-45 source code string
            filename: Source filename for error messages

        Returns:
            CompilerResult containing the listing or the diagnostics
        """
        self._errors.clear()
        result = CompilerResult(filename=filename)
        logger.info(f"compiling {filename}")

        # Stage 1: Lexical analysis
        result.tokens = H45Lexer(source, filename, self._errors).tokenize()
        if not self._finish_phase(result, CompilerPhase.LEXICAL):
            return result

        # Stage 2: Parsing
        result.ast = H45Parser(result.tokens, filename, self._errors).parse()
        if not self._finish_phase(result, CompilerPhase.SYNTAX):
            return result

        # Stage 3: Semantic analysis
        SemanticAnalyzer(self._errors).analyze(result.ast)
        if not self._finish_phase(result, CompilerPhase.SEMANTIC):
            return result

        # Stage 4: Code generation
        generator = CodeGenerator(
            frame_size=self.options.frame_size,
            output_comments=self.options.output_comments,
        )
        result.assembly = generator.generate(result.ast)
        self._finish_phase(result, CompilerPhase.CODEGEN)

        result.success = True
        logger.info(f"compiled {filename}: {len(result.assembly.splitlines())} lines")
        return result

    def compile_file(self, filepath: Union[str, Path]) -> CompilerResult:
        """
        Compile an H-45 source file.

        Raises:
            FileNotFoundError: If the source file does not exist
            OSError: If the source file cannot be read
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8")
        return self.compile_source(source, str(filepath))

    def _finish_phase(self, result: CompilerResult, phase: CompilerPhase) -> bool:
        """Record the outcome of a phase; returns False if the pipeline must stop."""
        ok = not self._errors.has_errors()
        result.phases.append((phase, ok))
        if ok:
            logger.debug(f"phase {phase.number} ({phase.title}) ok")
            return True

        result.failed_phase = phase
        result.errors = list(self._errors.errors)
        logger.info(
            f"phase {phase.number} ({phase.title}) failed with "
            f"{self._errors.error_count()} error(s)"
        )
        return False


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_h45(
    source: str,
    filename: str = "<input>",
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile H-45 source code to a listing.

    This is the primary high-level interface for compiling H-45.

    Args:
        source: H-45 source code
        filename: Source filename for error messages
        options: Compiler configuration (uses defaults if None)

    Returns:
        Generated listing

    Raises:
        H45CompilationError: If any phase reported diagnostics

    Example:
        >>> asm = compile_h45('int main() { print(42); return 0; }')
        >>> "call   print_int" in asm
        True
    """
    compiler = H45Compiler(options)
    result = compiler.compile_source(source, filename)
    _raise_on_failure(result)
    return result.assembly


def compile_file(
    filepath: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile an H-45 source file to a listing.

    Args:
        filepath: Path to H-45 source file
        output_path: Optional path to write the listing to
        options: Compiler configuration (uses defaults if None)

    Returns:
        Generated listing

    Raises:
        H45CompilationError: If any phase reported diagnostics
        FileNotFoundError: If source file not found
    """
    compiler = H45Compiler(options)
    result = compiler.compile_file(filepath)
    _raise_on_failure(result)

    if output_path:
        Path(output_path).write_text(result.assembly, encoding="utf-8")

    return result.assembly


def _raise_on_failure(result: CompilerResult) -> None:
    if result.success:
        return
    reporter = ErrorReporter()
    for error in result.errors:
        reporter.add(error)
    reporter.raise_if_errors()
