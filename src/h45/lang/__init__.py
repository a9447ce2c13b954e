"""
H-45 Language Implementation
============================

The compiler proper: lexer, parser, AST, symbol table, semantic
analyzer and code generator, plus the pipeline that runs them.

Modules
-------
- errors: diagnostic kinds, diagnostic classes, ErrorReporter
- lexer: H45Lexer, Token, TokenType, KEYWORDS
- types: TypeTag and the compatibility rules
- ast: the closed AST node set and ASTPrinter
- parser: H45Parser, parse_source()
- symbols: Scope, Symbol, SymbolKind
- semantic: SemanticAnalyzer, analyze()
- codegen: CodeGenerator, GenerationContext
- compiler: H45Compiler, CompilerOptions, CompilerResult
"""

from h45.lang.compiler import H45Compiler, CompilerOptions, CompilerResult, compile_h45
from h45.lang.parser import H45Parser, parse_source
from h45.lang.semantic import SemanticAnalyzer
from h45.lang.codegen import CodeGenerator

__all__ = [
    "H45Compiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_h45",
    "H45Parser",
    "parse_source",
    "SemanticAnalyzer",
    "CodeGenerator",
]
