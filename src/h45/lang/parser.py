"""
H-45 Recursive Descent Parser
=============================

This module implements a recursive descent parser for the H-45
language. It takes the token list from the lexer and builds an
Abstract Syntax Tree (AST).

Grammar (Simplified EBNF)
-------------------------
program         ::= declaration* EOF
declaration     ::= function_decl | variable_decl | statement
function_decl   ::= type IDENTIFIER '(' params? ')' block
params          ::= type IDENTIFIER (',' type IDENTIFIER)*
variable_decl   ::= type IDENTIFIER ('=' expr)? ';'
type            ::= 'int' | 'float' | 'bool' | 'string'

statement       ::= if_stmt | while_stmt | for_stmt | return_stmt
                  | print_stmt | block | expr_stmt
if_stmt         ::= 'if' '(' expr ')' statement ('else' statement)?
while_stmt      ::= 'while' '(' expr ')' statement
for_stmt        ::= 'for' '(' (variable_decl | expr_stmt | ';')
                      expr? ';' expr? ')' statement
return_stmt     ::= 'return' expr? ';'
print_stmt      ::= 'print' '(' expr ')' ';'
block           ::= '{' declaration* '}'
expr_stmt       ::= expr ';'

Expression Precedence (lowest to highest)
-----------------------------------------
1. assignment     =  (right-associative, target must be a variable)
2. logical_or     ||
3. logical_and    &&
4. equality       == !=
5. relational     < <= > >=
6. additive       + -
7. multiplicative * / %
8. unary          ! -
9. call           callee(args), chains allowed
10. primary       literal, IDENTIFIER, '(' expr ')'

A declaration that starts with a type keyword is a function when the
next two tokens are IDENTIFIER and '('; otherwise it is a variable.

Newline tokens are dropped before parsing, so line breaks may appear
anywhere whitespace may.

Error Recovery
--------------
A syntax error is recorded on the ErrorReporter and the parser skips
ahead to the next statement boundary, so a single pass can report
several independent errors. parse() never raises for bad input.

Example Usage
-------------
>>> from h45.lang.lexer import H45Lexer
>>> from h45.lang.parser import H45Parser
>>> tokens = H45Lexer('int main() { return 42; }', "test.h45").tokenize()
>>> program = H45Parser(tokens, "test.h45").parse()
>>> program.statements[0].name
'main'
"""

import logging
from typing import Callable, Optional

from h45.errors import SourceLocation
from h45.lang.ast import (
    AssignmentExpression,
    BinaryExpression,
    BinaryOperator,
    BlockStatement,
    CallExpression,
    Expression,
    ExpressionStatement,
    ForStatement,
    FunctionDeclaration,
    IfStatement,
    LiteralExpression,
    Parameter,
    PrintStatement,
    Program,
    ReturnStatement,
    Statement,
    UnaryExpression,
    UnaryOperator,
    VariableDeclaration,
    VariableExpression,
    WhileStatement,
)
from h45.lang.errors import ErrorReporter, SyntaxDiagnostic
from h45.lang.lexer import TYPE_KEYWORDS, H45Lexer, Token, TokenType
from h45.lang.types import TypeTag


logger = logging.getLogger(__name__)


# Tokens that begin a new statement; recovery stops in front of them.
_STATEMENT_STARTS = frozenset({
    TokenType.RIGHT_BRACE,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.FOR,
    TokenType.RETURN,
    TokenType.PRINT,
    TokenType.FUNCTION,
}) | TYPE_KEYWORDS


class H45Parser:
    """
    Recursive descent parser for H-45.

    Parses a list of tokens into an Abstract Syntax Tree (AST). Syntax
    errors are recorded on the reporter rather than raised.

    Attributes:
        tokens: Tokens to parse, without NEWLINE tokens
        filename: Source filename for error reporting
        reporter: Sink for syntax diagnostics
    """

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        reporter: Optional[ErrorReporter] = None,
    ):
        """
        Initialize the parser.

        Args:
            tokens: Tokens from the lexer, ending with EOF
            filename: Source filename for error messages
            reporter: Diagnostic sink (a private one is created if omitted)
        """
        self.tokens = [t for t in tokens if t.type is not TokenType.NEWLINE]
        if not self.tokens or self.tokens[-1].type is not TokenType.EOF:
            self.tokens.append(Token(TokenType.EOF, "", 1, 1, filename))
        self.filename = filename
        self.reporter = reporter if reporter is not None else ErrorReporter()

        # Current position in token stream
        self._pos = 0

        # Number of blocks currently open
        self._block_depth = 0

    def parse(self) -> Program:
        """
        Parse the token stream into an AST.

        Statements that failed to parse are left out of the result.

        Returns:
            Program containing all top-level statements
        """
        statements = []

        while not self._at_end():
            if self.reporter.should_stop():
                logger.debug("error limit reached, parsing stopped")
                break
            stmt = self._parse_declaration()
            if stmt is not None:
                statements.append(stmt)

        logger.debug(f"parsed {len(statements)} top-level statements")
        return Program(
            location=SourceLocation(self.filename, 1, 1),
            statements=tuple(statements),
        )

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        """Check if we've reached the end of tokens."""
        return self._peek().type is TokenType.EOF

    def _peek(self, offset: int = 0) -> Token:
        """Look at token at current position + offset."""
        pos = self._pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[pos]

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._peek()
        if not self._at_end():
            self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        """Check if current token is one of the given types."""
        return self._peek().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        """
        Consume current token if it matches one of the types.

        Returns:
            The consumed token, or None if no match
        """
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, message: str) -> Token:
        """
        Expect and consume a specific token type.

        Raises:
            SyntaxDiagnostic: At the current token if it is not token_type
        """
        if self._check(token_type):
            return self._advance()
        raise self._error(message)

    def _error(self, message: str, token: Optional[Token] = None) -> SyntaxDiagnostic:
        """Build a syntax diagnostic at token (default: the current token)."""
        token = token or self._peek()
        found = "end of input" if token.type is TokenType.EOF else f"'{token.value}'"
        return SyntaxDiagnostic(f"{message}, found {found}", token.location)

    def _synchronize(self) -> None:
        """
        Skip tokens after an error until a likely statement boundary.

        Consumes at least one token, except a '}' that closes an open
        block. Stops after a ';' or in front of a token that starts a
        statement or closes a block.
        """
        if not (self._check(TokenType.RIGHT_BRACE) and self._block_depth > 0):
            if self._advance().type is TokenType.SEMICOLON:
                return

        while not self._at_end():
            if self._peek().type is TokenType.SEMICOLON:
                self._advance()
                return
            if self._peek().type in _STATEMENT_STARTS:
                return
            self._advance()

    # =========================================================================
    # Declarations
    # =========================================================================

    def _parse_declaration(self) -> Optional[Statement]:
        """
        Parse one declaration or statement, recovering from syntax errors.

        Returns:
            The parsed statement, or None if it had a syntax error
        """
        try:
            if self._peek().is_type_keyword():
                if (self._peek(1).type is TokenType.IDENTIFIER
                        and self._peek(2).type is TokenType.LEFT_PAREN):
                    return self._parse_function()
                return self._parse_variable_declaration()
            return self._parse_statement()
        except SyntaxDiagnostic as e:
            self.reporter.add(e)
            self._synchronize()
            return None

    def _parse_type(self) -> TypeTag:
        """Consume a type keyword."""
        token = self._peek()
        if not token.is_type_keyword():
            raise self._error("expected type")
        self._advance()
        return TypeTag.from_keyword(token.value)

    def _parse_function(self) -> FunctionDeclaration:
        """Parse function definition: type name(params) { body }."""
        location = self._peek().location
        return_type = self._parse_type()
        name = self._expect(TokenType.IDENTIFIER, "expected function name").value
        self._expect(TokenType.LEFT_PAREN, "expected '(' after function name")

        parameters = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                param_location = self._peek().location
                if not self._peek().is_type_keyword():
                    raise self._error("expected parameter type")
                param_type = self._parse_type()
                param_name = self._expect(TokenType.IDENTIFIER, "expected parameter name").value
                parameters.append(Parameter(param_type, param_name, param_location))
                if not self._match(TokenType.COMMA):
                    break

        self._expect(TokenType.RIGHT_PAREN, "expected ')' after parameters")
        if not self._check(TokenType.LEFT_BRACE):
            raise self._error("expected '{' before function body")
        body = self._parse_block()

        logger.debug(f"parsed function '{name}' with {len(parameters)} parameters")
        return FunctionDeclaration(
            location=location,
            return_type=return_type,
            name=name,
            parameters=tuple(parameters),
            body=body,
        )

    def _parse_variable_declaration(self) -> VariableDeclaration:
        """Parse variable declaration: type name [= expr];"""
        location = self._peek().location
        var_type = self._parse_type()
        name = self._expect(TokenType.IDENTIFIER, "expected variable name").value

        initializer = None
        if self._match(TokenType.ASSIGN):
            initializer = self._parse_expression()

        self._expect(TokenType.SEMICOLON, "expected ';' after variable declaration")
        return VariableDeclaration(
            location=location,
            var_type=var_type,
            name=name,
            initializer=initializer,
        )

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse any statement other than a declaration."""
        token = self._peek()

        if token.type is TokenType.IF:
            return self._parse_if_statement()
        if token.type is TokenType.WHILE:
            return self._parse_while_statement()
        if token.type is TokenType.FOR:
            return self._parse_for_statement()
        if token.type is TokenType.RETURN:
            return self._parse_return_statement()
        if token.type is TokenType.PRINT:
            return self._parse_print_statement()
        if token.type is TokenType.LEFT_BRACE:
            return self._parse_block()

        return self._parse_expression_statement()

    def _parse_block(self) -> BlockStatement:
        """Parse a block statement { ... }."""
        location = self._peek().location
        self._expect(TokenType.LEFT_BRACE, "expected '{'")

        statements = []
        self._block_depth += 1
        try:
            while not self._check(TokenType.RIGHT_BRACE) and not self._at_end():
                if self.reporter.should_stop():
                    break
                stmt = self._parse_declaration()
                if stmt is not None:
                    statements.append(stmt)
        finally:
            self._block_depth -= 1

        self._expect(TokenType.RIGHT_BRACE, "expected '}' after block")
        return BlockStatement(location=location, statements=tuple(statements))

    def _parse_if_statement(self) -> IfStatement:
        """Parse if statement."""
        location = self._advance().location
        self._expect(TokenType.LEFT_PAREN, "expected '(' after 'if'")
        condition = self._parse_expression()
        self._expect(TokenType.RIGHT_PAREN, "expected ')' after if condition")

        then_branch = self._parse_statement()

        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._parse_statement()

        return IfStatement(
            location=location,
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch,
        )

    def _parse_while_statement(self) -> WhileStatement:
        """Parse while statement."""
        location = self._advance().location
        self._expect(TokenType.LEFT_PAREN, "expected '(' after 'while'")
        condition = self._parse_expression()
        self._expect(TokenType.RIGHT_PAREN, "expected ')' after while condition")

        body = self._parse_statement()

        return WhileStatement(location=location, condition=condition, body=body)

    def _parse_for_statement(self) -> ForStatement:
        """Parse for statement."""
        location = self._advance().location
        self._expect(TokenType.LEFT_PAREN, "expected '(' after 'for'")

        # Initializer: empty, a declaration, or an expression statement.
        # Each form consumes its own ';'.
        initializer: Optional[Statement] = None
        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._peek().is_type_keyword():
            initializer = self._parse_variable_declaration()
        else:
            initializer = self._parse_expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._parse_expression()
        self._expect(TokenType.SEMICOLON, "expected ';' after loop condition")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._parse_expression()
        self._expect(TokenType.RIGHT_PAREN, "expected ')' after for clauses")

        body = self._parse_statement()

        return ForStatement(
            location=location,
            initializer=initializer,
            condition=condition,
            increment=increment,
            body=body,
        )

    def _parse_return_statement(self) -> ReturnStatement:
        """Parse return statement."""
        location = self._advance().location
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._parse_expression()
        self._expect(TokenType.SEMICOLON, "expected ';' after return value")
        return ReturnStatement(location=location, value=value)

    def _parse_print_statement(self) -> PrintStatement:
        """Parse print(expr); statement."""
        location = self._advance().location
        self._expect(TokenType.LEFT_PAREN, "expected '(' after 'print'")
        expression = self._parse_expression()
        self._expect(TokenType.RIGHT_PAREN, "expected ')' after print expression")
        self._expect(TokenType.SEMICOLON, "expected ';' after print statement")
        return PrintStatement(location=location, expression=expression)

    def _parse_expression_statement(self) -> ExpressionStatement:
        """Parse expression statement."""
        location = self._peek().location
        expression = self._parse_expression()
        self._expect(TokenType.SEMICOLON, "expected ';' after expression")
        return ExpressionStatement(location=location, expression=expression)

    # =========================================================================
    # Expression Parsing (Operator Precedence)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse expression (top-level, handles assignment)."""
        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        """
        Parse assignment expression (right-associative).

        A target other than a bare variable is recorded as an error at the
        '=' token and the left side is returned so parsing can go on.
        """
        expr = self._parse_logical_or()

        if self._check(TokenType.ASSIGN):
            equals = self._advance()
            value = self._parse_assignment()

            if isinstance(expr, VariableExpression):
                return AssignmentExpression(
                    location=expr.location,
                    name=expr.name,
                    value=value,
                )

            self.reporter.add(SyntaxDiagnostic("invalid assignment target", equals.location))

        return expr

    def _parse_logical_or(self) -> Expression:
        """Parse logical OR expression (||)."""
        return self._parse_binary(
            self._parse_logical_and,
            {TokenType.LOGICAL_OR: BinaryOperator.LOGICAL_OR},
        )

    def _parse_logical_and(self) -> Expression:
        """Parse logical AND expression (&&)."""
        return self._parse_binary(
            self._parse_equality,
            {TokenType.LOGICAL_AND: BinaryOperator.LOGICAL_AND},
        )

    def _parse_equality(self) -> Expression:
        """Parse equality expression (== !=)."""
        return self._parse_binary(
            self._parse_relational,
            {
                TokenType.EQUAL: BinaryOperator.EQUAL,
                TokenType.NOT_EQUAL: BinaryOperator.NOT_EQUAL,
            },
        )

    def _parse_relational(self) -> Expression:
        """Parse relational expression (< <= > >=)."""
        return self._parse_binary(
            self._parse_additive,
            {
                TokenType.LESS_THAN: BinaryOperator.LESS,
                TokenType.LESS_EQUAL: BinaryOperator.LESS_EQ,
                TokenType.GREATER_THAN: BinaryOperator.GREATER,
                TokenType.GREATER_EQUAL: BinaryOperator.GREATER_EQ,
            },
        )

    def _parse_additive(self) -> Expression:
        """Parse additive expression (+ -)."""
        return self._parse_binary(
            self._parse_multiplicative,
            {
                TokenType.PLUS: BinaryOperator.ADD,
                TokenType.MINUS: BinaryOperator.SUBTRACT,
            },
        )

    def _parse_multiplicative(self) -> Expression:
        """Parse multiplicative expression (* / %)."""
        return self._parse_binary(
            self._parse_unary,
            {
                TokenType.MULTIPLY: BinaryOperator.MULTIPLY,
                TokenType.DIVIDE: BinaryOperator.DIVIDE,
                TokenType.MODULO: BinaryOperator.MODULO,
            },
        )

    def _parse_binary(
        self,
        operand_parser: Callable[[], Expression],
        operators: dict[TokenType, BinaryOperator],
    ) -> Expression:
        """
        Generic left-associative binary expression parser.

        Args:
            operand_parser: Function to parse operands
            operators: Map of token types to binary operators
        """
        expr = operand_parser()

        while self._peek().type in operators:
            op_token = self._advance()
            right = operand_parser()
            expr = BinaryExpression(
                location=expr.location,
                left=expr,
                operator=operators[op_token.type],
                right=right,
            )

        return expr

    def _parse_unary(self) -> Expression:
        """Parse prefix unary expression (! -)."""
        if self._check(TokenType.LOGICAL_NOT, TokenType.MINUS):
            op_token = self._advance()
            operand = self._parse_unary()
            operator = UnaryOperator.LOGICAL_NOT if op_token.type is TokenType.LOGICAL_NOT else UnaryOperator.NEGATE
            return UnaryExpression(
                location=op_token.location,
                operator=operator,
                operand=operand,
            )
        return self._parse_call()

    def _parse_call(self) -> Expression:
        """Parse call expressions; callee(args)(args) chains are allowed."""
        expr = self._parse_primary()

        while self._match(TokenType.LEFT_PAREN):
            arguments = []
            if not self._check(TokenType.RIGHT_PAREN):
                while True:
                    arguments.append(self._parse_expression())
                    if not self._match(TokenType.COMMA):
                        break
            self._expect(TokenType.RIGHT_PAREN, "expected ')' after arguments")
            expr = CallExpression(
                location=expr.location,
                callee=expr,
                arguments=tuple(arguments),
            )

        return expr

    def _parse_primary(self) -> Expression:
        """Parse primary expression (literals, identifiers, parenthesized)."""
        token = self._peek()

        if token.type is TokenType.TRUE:
            self._advance()
            return LiteralExpression(location=token.location, value=True)

        if token.type is TokenType.FALSE:
            self._advance()
            return LiteralExpression(location=token.location, value=False)

        if token.type is TokenType.INTEGER_LITERAL:
            self._advance()
            return LiteralExpression(location=token.location, value=int(token.value))

        if token.type is TokenType.FLOAT_LITERAL:
            self._advance()
            return LiteralExpression(location=token.location, value=float(token.value))

        if token.type is TokenType.STRING_LITERAL:
            self._advance()
            return LiteralExpression(location=token.location, value=token.value)

        if token.type is TokenType.IDENTIFIER:
            self._advance()
            return VariableExpression(location=token.location, name=token.value)

        if token.type is TokenType.LEFT_PAREN:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenType.RIGHT_PAREN, "expected ')' after expression")
            return expr

        raise self._error("expected expression")


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str, filename: str = "<input>") -> Program:
    """
    Parse H-45 source code into an AST.

    This is a convenience function that combines lexing and parsing.

    Args:
        source: The H-45 source code
        filename: Source filename for error messages

    Returns:
        The root Program node of the AST

    Raises:
        H45CompilationError: If lexing or parsing reported any error
    """
    reporter = ErrorReporter()
    tokens = H45Lexer(source, filename, reporter).tokenize()
    reporter.raise_if_errors()
    program = H45Parser(tokens, filename, reporter).parse()
    reporter.raise_if_errors()
    return program
