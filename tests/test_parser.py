"""
H-45 Parser Test Suite
======================

Tests for the recursive descent parser: statement forms, operator
precedence and associativity, function/variable disambiguation, and
error recovery.
"""

import pytest

from h45.lang.ast import (
    AssignmentExpression,
    ASTPrinter,
    BinaryExpression,
    BinaryOperator,
    BlockStatement,
    CallExpression,
    ExpressionStatement,
    ForStatement,
    FunctionDeclaration,
    IfStatement,
    LiteralExpression,
    PrintStatement,
    Program,
    ReturnStatement,
    UnaryExpression,
    UnaryOperator,
    VariableDeclaration,
    VariableExpression,
    WhileStatement,
)
from h45.lang.errors import ErrorKind, ErrorReporter, H45CompilationError
from h45.lang.lexer import H45Lexer
from h45.lang.parser import H45Parser, parse_source
from h45.lang.types import TypeTag


def parse(source: str, max_errors: int = 100) -> tuple[Program, ErrorReporter]:
    reporter = ErrorReporter(max_errors)
    tokens = H45Lexer(source, "test.h45", reporter).tokenize()
    program = H45Parser(tokens, "test.h45", reporter).parse()
    return program, reporter


def parse_expr(source: str):
    """Parse a single expression statement and return its expression."""
    program, reporter = parse(source + ";")
    assert not reporter.has_errors(), reporter.report()
    stmt = program.statements[0]
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression


# =============================================================================
# Declarations
# =============================================================================

class TestDeclarations:
    """Tests for variable and function declarations."""

    def test_variable_declaration_with_initializer(self):
        """Type keyword, name, '=' and an expression."""
        program, reporter = parse("float ratio = 1.5;")
        assert not reporter.has_errors()
        decl = program.statements[0]
        assert isinstance(decl, VariableDeclaration)
        assert decl.var_type is TypeTag.FLOAT
        assert decl.name == "ratio"
        assert decl.initializer.value == 1.5

    def test_variable_declaration_without_initializer(self):
        """The initializer is optional."""
        program, _ = parse("string s;")
        decl = program.statements[0]
        assert decl.var_type is TypeTag.STRING
        assert decl.initializer is None

    def test_function_declaration(self):
        """type IDENT '(' starts a function."""
        program, reporter = parse("int add(int a, float b) { return a; }")
        assert not reporter.has_errors()
        func = program.statements[0]
        assert isinstance(func, FunctionDeclaration)
        assert func.name == "add"
        assert func.return_type is TypeTag.INT
        assert [(p.param_type, p.name) for p in func.parameters] == [
            (TypeTag.INT, "a"),
            (TypeTag.FLOAT, "b"),
        ]
        assert isinstance(func.body, BlockStatement)
        assert isinstance(func.body.statements[0], ReturnStatement)

    def test_function_without_parameters(self):
        """An empty parameter list is allowed."""
        program, reporter = parse("bool ready() { return true; }")
        assert not reporter.has_errors()
        assert program.statements[0].parameters == ()

    def test_function_then_variable(self):
        """Disambiguation looks two tokens ahead."""
        program, reporter = parse("int f() { return 1; } int x = f();")
        assert not reporter.has_errors()
        assert isinstance(program.statements[0], FunctionDeclaration)
        assert isinstance(program.statements[1], VariableDeclaration)

    def test_parameter_needs_type(self):
        """A parameter without a type keyword is a syntax error."""
        _, reporter = parse("int f(a) { return 1; }")
        assert reporter.errors[0].kind == ErrorKind.SYNTAX_ERROR
        assert "expected parameter type" in reporter.errors[0].message


# =============================================================================
# Statements
# =============================================================================

class TestStatements:
    """Tests for statement forms."""

    def test_if_else(self):
        """if with else branch."""
        program, reporter = parse("if (x < 1) print(1); else print(2);")
        assert not reporter.has_errors()
        stmt = program.statements[0]
        assert isinstance(stmt, IfStatement)
        assert isinstance(stmt.condition, BinaryExpression)
        assert isinstance(stmt.then_branch, PrintStatement)
        assert isinstance(stmt.else_branch, PrintStatement)

    def test_if_without_else(self):
        program, _ = parse("if (done) { }")
        assert program.statements[0].else_branch is None

    def test_while(self):
        """while loop with a block body."""
        program, reporter = parse("while (x > 0) { x = x - 1; }")
        assert not reporter.has_errors()
        stmt = program.statements[0]
        assert isinstance(stmt, WhileStatement)
        assert isinstance(stmt.body, BlockStatement)

    def test_for_with_declaration(self):
        """A type keyword in the for header starts a declaration."""
        program, reporter = parse("for (int i = 0; i < 10; i = i + 1) print(i);")
        assert not reporter.has_errors()
        stmt = program.statements[0]
        assert isinstance(stmt, ForStatement)
        assert isinstance(stmt.initializer, VariableDeclaration)
        assert stmt.initializer.name == "i"
        assert isinstance(stmt.condition, BinaryExpression)
        assert isinstance(stmt.increment, AssignmentExpression)
        assert isinstance(stmt.body, PrintStatement)

    def test_for_with_expression_initializer(self):
        """Any other initializer is an expression statement."""
        program, reporter = parse("for (i = 0; i < 3;) { }")
        assert not reporter.has_errors()
        stmt = program.statements[0]
        assert isinstance(stmt.initializer, ExpressionStatement)
        assert stmt.increment is None

    def test_for_with_empty_clauses(self):
        """All three clauses are optional."""
        program, reporter = parse("for (;;) { }")
        assert not reporter.has_errors()
        stmt = program.statements[0]
        assert stmt.initializer is None
        assert stmt.condition is None
        assert stmt.increment is None

    def test_return_without_value(self):
        program, _ = parse("int f() { return; }")
        ret = program.statements[0].body.statements[0]
        assert isinstance(ret, ReturnStatement)
        assert ret.value is None

    def test_nested_blocks(self):
        program, reporter = parse("{ { int x; } }")
        assert not reporter.has_errors()
        outer = program.statements[0]
        assert isinstance(outer.statements[0], BlockStatement)

    def test_newlines_are_insignificant(self):
        """Line breaks may appear inside statements and between them."""
        program, reporter = parse("\n\nint x\n=\n1\n;\n\nprint(\nx\n);\n")
        assert not reporter.has_errors()
        assert len(program.statements) == 2

    def test_statement_location(self):
        """Statements carry the location of their first token."""
        program, _ = parse("\n  while (true) { }")
        loc = program.statements[0].location
        assert (loc.filename, loc.line, loc.column) == ("test.h45", 2, 3)


# =============================================================================
# Expressions
# =============================================================================

class TestExpressions:
    """Tests for operator precedence and associativity."""

    def test_multiplication_binds_tighter_than_addition(self):
        """1 + 2 * 3 parses as 1 + (2 * 3)."""
        expr = parse_expr("1 + 2 * 3")
        assert expr.operator == BinaryOperator.ADD
        assert expr.left.value == 1
        assert expr.right.operator == BinaryOperator.MULTIPLY
        assert (expr.right.left.value, expr.right.right.value) == (2, 3)

    def test_parentheses_override_precedence(self):
        expr = parse_expr("(1 + 2) * 3")
        assert expr.operator == BinaryOperator.MULTIPLY
        assert expr.left.operator == BinaryOperator.ADD

    def test_left_associative_subtraction(self):
        """a - b - c parses as (a - b) - c."""
        expr = parse_expr("a - b - c")
        assert expr.operator == BinaryOperator.SUBTRACT
        assert isinstance(expr.left, BinaryExpression)
        assert expr.right.name == "c"

    def test_precedence_tower(self):
        """|| < && < equality < relational < additive."""
        expr = parse_expr("a || b && c == d < e + f")
        assert expr.operator == BinaryOperator.LOGICAL_OR
        and_expr = expr.right
        assert and_expr.operator == BinaryOperator.LOGICAL_AND
        eq_expr = and_expr.right
        assert eq_expr.operator == BinaryOperator.EQUAL
        rel_expr = eq_expr.right
        assert rel_expr.operator == BinaryOperator.LESS
        assert rel_expr.right.operator == BinaryOperator.ADD

    def test_assignment_is_right_associative(self):
        """a = b = 1 parses as a = (b = 1)."""
        expr = parse_expr("a = b = 1")
        assert isinstance(expr, AssignmentExpression)
        assert expr.name == "a"
        assert isinstance(expr.value, AssignmentExpression)
        assert expr.value.name == "b"
        assert expr.value.value.value == 1

    def test_unary_binds_tighter_than_binary(self):
        """-x * 2 parses as (-x) * 2."""
        expr = parse_expr("-x * 2")
        assert expr.operator == BinaryOperator.MULTIPLY
        assert isinstance(expr.left, UnaryExpression)
        assert expr.left.operator == UnaryOperator.NEGATE

    def test_nested_unary(self):
        expr = parse_expr("!!ok")
        assert expr.operator == UnaryOperator.LOGICAL_NOT
        assert expr.operand.operator == UnaryOperator.LOGICAL_NOT
        assert isinstance(expr.operand.operand, VariableExpression)

    def test_call_with_arguments(self):
        expr = parse_expr("add(1, x + 2)")
        assert isinstance(expr, CallExpression)
        assert expr.callee.name == "add"
        assert len(expr.arguments) == 2
        assert isinstance(expr.arguments[1], BinaryExpression)

    def test_call_chain(self):
        """f(1)(2) is a call whose callee is a call."""
        expr = parse_expr("f(1)(2)")
        assert isinstance(expr, CallExpression)
        assert isinstance(expr.callee, CallExpression)
        assert expr.callee.callee.name == "f"

    def test_literals(self):
        """Literal values keep their Python type."""
        values = [parse_expr(src).value for src in ("7", "2.5", '"hi"', "true", "false")]
        assert values == [7, 2.5, "hi", True, False]
        assert parse_expr("true").type_tag is TypeTag.BOOL
        assert parse_expr("7").type_tag is TypeTag.INT


# =============================================================================
# Error Recovery
# =============================================================================

class TestErrorRecovery:
    """Tests for syntax error reporting and synchronization."""

    def test_missing_semicolon_at_end(self):
        _, reporter = parse("int x = 1")
        assert reporter.error_count() == 1
        error = reporter.errors[0]
        assert error.kind == ErrorKind.SYNTAX_ERROR
        assert "expected ';' after variable declaration" in error.message
        assert "end of input" in error.message

    def test_multiple_independent_errors(self):
        """One pass reports every independent error."""
        source = "int x = ;\nint y = 2;\nprint(y;\nwhile (true) { }\n"
        program, reporter = parse(source)
        assert reporter.error_count() == 2
        assert [e.line for e in reporter.errors] == [1, 3]
        assert isinstance(program.statements[0], VariableDeclaration)
        assert program.statements[0].name == "y"
        assert isinstance(program.statements[1], WhileStatement)

    def test_error_inside_block_keeps_function(self):
        """Recovery inside a block resumes at the next statement."""
        program, reporter = parse("int main() { int a = ; return 0; }")
        assert reporter.error_count() == 1
        func = program.statements[0]
        assert isinstance(func, FunctionDeclaration)
        assert isinstance(func.body.statements[0], ReturnStatement)

    def test_missing_semicolon_before_closing_brace(self):
        """The '}' that closes the block is not skipped by recovery."""
        program, reporter = parse("int main() { int a = 1 } int b = 2;")
        assert reporter.error_count() == 1
        assert isinstance(program.statements[0], FunctionDeclaration)
        assert program.statements[1].name == "b"

    def test_invalid_assignment_target(self):
        """Reported at '=', parsing continues with the left side."""
        program, reporter = parse("1 = 2;\nint z = 0;")
        assert reporter.error_count() == 1
        error = reporter.errors[0]
        assert error.message == "invalid assignment target"
        assert (error.line, error.column) == (1, 3)
        stmt = program.statements[0]
        assert isinstance(stmt, ExpressionStatement)
        assert isinstance(stmt.expression, LiteralExpression)
        assert program.statements[1].name == "z"

    def test_stray_closing_brace(self):
        """A '}' at top level is skipped."""
        program, reporter = parse("} int x = 1;")
        assert reporter.error_count() == 1
        assert program.statements[0].name == "x"

    def test_error_limit_stops_parsing(self):
        """Parsing stops once max_errors diagnostics are recorded."""
        _, reporter = parse("x = ;\n" * 5, max_errors=2)
        assert reporter.error_count() == 2


# =============================================================================
# Convenience API and Printer
# =============================================================================

class TestParseSource:
    """Tests for parse_source() and ASTPrinter."""

    def test_parse_source_raises_on_error(self):
        with pytest.raises(H45CompilationError):
            parse_source("int = 3;")

    def test_parsing_is_deterministic(self):
        """Two parses of the same text produce equal trees."""
        source = "int main() { int x = 1 + 2 * 3; if (x > 2) print(x); return x; }"
        assert parse_source(source) == parse_source(source)

    def test_ast_printer(self):
        program = parse_source("int main() { int x = 1 + 2; return -x; }")
        output = ASTPrinter().print(program)
        assert "Program" in output
        assert "Function: int main()" in output
        assert "Variable: int x = (1 + 2)" in output
        assert "Return (-x)" in output
