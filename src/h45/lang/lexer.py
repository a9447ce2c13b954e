"""
H-45 Lexer (Tokenizer)
======================

This module implements the lexer for the H-45 language. It converts
source text into a flat list of tokens for the parser.

Token Categories
----------------
- Type keywords: int, float, bool, string
- Other keywords: if, else, while, for, function, return, true, false, print
- Identifiers: variable and function names
- Numbers: integer (42) and float (3.14) literals
- Strings: "double quoted", may span lines
- Operators: + - * / % = == != < <= > >= && || !
- Delimiters: ( ) { } [ ] ; ,
- NEWLINE for every line break, EOF at the end

Comments
--------
- Single-line: // comment

Escape Sequences
----------------
\\n (newline), \\r (return), \\t (tab), \\\\ (backslash),
\\" (double quote), \\0 (null)

Lexical errors are recorded on the ErrorReporter and scanning continues
with the next character, so one pass reports every bad character.

Example Usage
-------------
>>> from h45.lang.lexer import H45Lexer
>>> for token in H45Lexer('int x = 42;').tokenize():
...     print(token)
Token(INT, 'int', 1:1)
Token(IDENTIFIER, 'x', 1:5)
Token(ASSIGN, '=', 1:7)
Token(INTEGER_LITERAL, '42', 1:9)
Token(SEMICOLON, ';', 1:11)
Token(EOF, '', 1:12)
"""

import string
from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import Mapping, Optional

from h45.errors import SourceLocation
from h45.lang.errors import ErrorReporter, LexicalDiagnostic


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for the H-45 language."""

    # === Literals ===
    INTEGER_LITERAL = auto()
    FLOAT_LITERAL = auto()
    STRING_LITERAL = auto()

    # === Identifiers ===
    IDENTIFIER = auto()

    # === Keywords - Type Specifiers ===
    INT = auto()
    FLOAT = auto()
    BOOL = auto()
    STRING = auto()

    # === Keywords - Statements ===
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    FUNCTION = auto()       # reserved
    RETURN = auto()
    PRINT = auto()

    # === Keywords - Boolean Literals ===
    TRUE = auto()
    FALSE = auto()

    # === Arithmetic Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    MULTIPLY = auto()       # *
    DIVIDE = auto()         # /
    MODULO = auto()         # %

    # === Assignment and Comparison ===
    ASSIGN = auto()         # =
    EQUAL = auto()          # ==
    NOT_EQUAL = auto()      # !=
    LESS_THAN = auto()      # <
    LESS_EQUAL = auto()     # <=
    GREATER_THAN = auto()   # >
    GREATER_EQUAL = auto()  # >=

    # === Logical Operators ===
    LOGICAL_AND = auto()    # &&
    LOGICAL_OR = auto()     # ||
    LOGICAL_NOT = auto()    # !

    # === Delimiters ===
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    LEFT_BRACKET = auto()   # reserved
    RIGHT_BRACKET = auto()  # reserved
    SEMICOLON = auto()
    COMMA = auto()

    # === Structural ===
    NEWLINE = auto()
    EOF = auto()


# =============================================================================
# Keyword Mapping
# =============================================================================

# Built once at import time; the proxy makes it read-only.
KEYWORDS: Mapping[str, TokenType] = MappingProxyType({
    "int": TokenType.INT,
    "float": TokenType.FLOAT,
    "bool": TokenType.BOOL,
    "string": TokenType.STRING,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "for": TokenType.FOR,
    "function": TokenType.FUNCTION,
    "return": TokenType.RETURN,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "print": TokenType.PRINT,
})

TYPE_KEYWORDS = frozenset({
    TokenType.INT,
    TokenType.FLOAT,
    TokenType.BOOL,
    TokenType.STRING,
})

# Single-character tokens that never combine with a following character.
_SINGLE_CHAR_TOKENS: Mapping[str, TokenType] = MappingProxyType({
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    "[": TokenType.LEFT_BRACKET,
    "]": TokenType.RIGHT_BRACKET,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTIPLY,
    "%": TokenType.MODULO,
})

# Operators that become a different token when followed by '='.
_EQUALS_PAIRS: Mapping[str, tuple[TokenType, TokenType]] = MappingProxyType({
    "!": (TokenType.LOGICAL_NOT, TokenType.NOT_EQUAL),
    "=": (TokenType.ASSIGN, TokenType.EQUAL),
    "<": (TokenType.LESS_THAN, TokenType.LESS_EQUAL),
    ">": (TokenType.GREATER_THAN, TokenType.GREATER_EQUAL),
})


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from H-45 source code.

    Attributes:
        type: The TokenType classification
        value: The literal text (string literal contents without quotes)
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def is_type_keyword(self) -> bool:
        """Return True if this token is one of the primitive type keywords."""
        return self.type in TYPE_KEYWORDS


# =============================================================================
# Lexer Implementation
# =============================================================================

class H45Lexer:
    """
    Tokenizes H-45 source code.

    Usage:
        lexer = H45Lexer(source_text, filename, reporter)
        tokens = lexer.tokenize()

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
        reporter: Sink for lexical diagnostics
    """

    DIGITS = string.digits
    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    ESCAPE_SEQUENCES = {
        "n": "\n",
        "r": "\r",
        "t": "\t",
        "\\": "\\",
        '"': '"',
        "0": "\0",
    }

    def __init__(
        self,
        source: str,
        filename: str = "<input>",
        reporter: Optional[ErrorReporter] = None,
    ):
        self.source = source
        self.filename = filename
        self.reporter = reporter if reporter is not None else ErrorReporter()

        self._pos = 0
        self._line = 1
        self._column = 1

    def tokenize(self) -> list[Token]:
        """
        Scan the whole source.

        Returns:
            All tokens in source order, terminated by a single EOF token
        """
        tokens = []
        while not self._at_end():
            token = self._scan_token()
            if token is not None:
                tokens.append(token)
        tokens.append(self._make_token(TokenType.EOF, "", self._line, self._column))
        return tokens

    # =========================================================================
    # Character Access
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Return the character at current position + offset ('' past the end)."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume one character, keeping line and column up to date."""
        char = self.source[self._pos]
        self._pos += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return char

    def _match(self, expected: str) -> bool:
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_digit(self, char: str) -> bool:
        """ASCII digits only; other Unicode digits are not part of a number."""
        return char != "" and char in self.DIGITS

    def _make_token(self, token_type: TokenType, value: str, line: int, column: int) -> Token:
        return Token(token_type, value, line, column, self.filename)

    def _error(self, message: str, line: int, column: int) -> None:
        self.reporter.add(LexicalDiagnostic(message, SourceLocation(self.filename, line, column)))

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Optional[Token]:
        """Scan the next token; returns None for skipped input."""
        line, column = self._line, self._column
        char = self._advance()

        if char in " \t\r":
            return None

        if char == "\n":
            return self._make_token(TokenType.NEWLINE, "\n", line, column)

        if char == "/":
            if self._peek() == "/":
                while not self._at_end() and self._peek() != "\n":
                    self._advance()
                return None
            return self._make_token(TokenType.DIVIDE, "/", line, column)

        if char in _SINGLE_CHAR_TOKENS:
            return self._make_token(_SINGLE_CHAR_TOKENS[char], char, line, column)

        if char in _EQUALS_PAIRS:
            single, double = _EQUALS_PAIRS[char]
            if self._match("="):
                return self._make_token(double, char + "=", line, column)
            return self._make_token(single, char, line, column)

        if char in "&|":
            if self._match(char):
                token_type = TokenType.LOGICAL_AND if char == "&" else TokenType.LOGICAL_OR
                return self._make_token(token_type, char * 2, line, column)
            self._error(f"unexpected character '{char}'", line, column)
            return None

        if char == '"':
            return self._scan_string(line, column)

        if self._is_digit(char):
            return self._scan_number(line, column)

        if char in self.IDENT_START:
            return self._scan_identifier(line, column)

        self._error(f"unexpected character '{char}'", line, column)
        return None

    def _scan_identifier(self, line: int, column: int) -> Token:
        """Scan an identifier or keyword."""
        start = self._pos - 1
        while self._peek() and self._peek() in self.IDENT_CHARS:
            self._advance()
        text = self.source[start:self._pos]
        token_type = KEYWORDS.get(text, TokenType.IDENTIFIER)
        return self._make_token(token_type, text, line, column)

    def _scan_number(self, line: int, column: int) -> Token:
        """Scan an integer or float literal."""
        start = self._pos - 1
        while self._is_digit(self._peek()):
            self._advance()

        # A fractional part needs at least one digit after the '.'
        if self._peek() == "." and self._is_digit(self._peek(1)):
            self._advance()
            while self._is_digit(self._peek()):
                self._advance()
            return self._make_token(TokenType.FLOAT_LITERAL, self.source[start:self._pos], line, column)

        return self._make_token(TokenType.INTEGER_LITERAL, self.source[start:self._pos], line, column)

    def _scan_string(self, line: int, column: int) -> Optional[Token]:
        """Scan a string literal; the opening quote is already consumed."""
        chars = []
        while not self._at_end() and self._peek() != '"':
            char = self._advance()
            if char == "\\" and not self._at_end():
                escaped = self._advance()
                chars.append(self.ESCAPE_SEQUENCES.get(escaped, escaped))
            else:
                chars.append(char)

        if self._at_end():
            self._error("unterminated string", line, column)
            return None

        self._advance()  # closing quote
        return self._make_token(TokenType.STRING_LITERAL, "".join(chars), line, column)


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """
    Tokenize source, raising H45CompilationError on lexical errors.

    Convenience wrapper for tests and tooling.
    """
    reporter = ErrorReporter()
    tokens = H45Lexer(source, filename, reporter).tokenize()
    reporter.raise_if_errors()
    return tokens
