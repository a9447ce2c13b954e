"""
H-45 Semantic Analyzer Test Suite
=================================

Tests for name resolution, scoping and type checking.
"""

import pytest

from h45.errors import SourceLocation
from h45.lang.ast import BlockStatement, FunctionDeclaration, Program, ReturnStatement, Statement
from h45.lang.errors import ErrorKind, ErrorReporter, H45InternalError
from h45.lang.parser import parse_source
from h45.lang.semantic import SemanticAnalyzer, analyze
from h45.lang.types import TypeTag


def check(source: str) -> ErrorReporter:
    """Parse source (which must be syntactically valid) and analyze it."""
    return analyze(parse_source(source, "test.h45"))


def kinds(source: str) -> list[ErrorKind]:
    return [e.kind for e in check(source).errors]


def messages(source: str) -> list[str]:
    return [e.message for e in check(source).errors]


# =============================================================================
# Declarations and Scopes
# =============================================================================

class TestDeclarations:
    """Tests for declarations, redeclarations and visibility."""

    def test_valid_program(self):
        source = """
            int add(int a, int b) { return a + b; }
            int main() {
                int total = add(1, 2);
                print(total);
                return 0;
            }
        """
        assert not check(source).has_errors()

    def test_redeclaration_in_same_scope(self):
        assert kinds("int x = 1; int x = 2;") == [ErrorKind.REDECLARATION_ERROR]

    def test_redeclared_initializer_not_checked(self):
        """The initializer of a redeclared variable is skipped."""
        assert kinds('int x = 1; int x = "s" + undefined;') == [ErrorKind.REDECLARATION_ERROR]

    def test_shadowing_in_nested_block(self):
        assert not check("int x = 1; { float x = 2.5; print(x); }").has_errors()

    def test_block_variable_not_visible_after_block(self):
        assert kinds("{ int x = 1; } print(x);") == [ErrorKind.UNDECLARED_VARIABLE]

    def test_initializer_sees_outer_scope_only(self):
        """A variable is defined after its initializer is checked."""
        assert messages("int x = x;") == ["undeclared variable 'x'"]

    def test_function_redeclaration(self):
        source = "int f() { return 1; } int f() { return 2; }"
        assert messages(source) == ["function 'f' is already declared in this scope"]

    def test_duplicate_parameter(self):
        source = "int f(int a, int a) { return a; }"
        assert messages(source) == ["parameter 'a' is already declared in this scope"]

    def test_body_may_shadow_parameter(self):
        """The body block is a scope nested inside the parameter scope."""
        assert not check("int f(int a) { int a = 2; return a; }").has_errors()

    def test_parameters_not_visible_outside(self):
        assert kinds("int f(int a) { return a; } print(a);") == [ErrorKind.UNDECLARED_VARIABLE]

    def test_for_variable_scoped_to_loop(self):
        source = "for (int i = 0; i < 3; i = i + 1) { print(i); } print(i);"
        reporter = check(source)
        assert reporter.error_count() == 1
        assert reporter.errors[0].kind == ErrorKind.UNDECLARED_VARIABLE
        assert reporter.errors[0].column == 55

    def test_undeclared_reported_per_occurrence(self):
        """Each use of an undeclared name is reported."""
        reporter = check("print(y); y = 1; print(y + 1);")
        assert [e.kind for e in reporter.errors] == [ErrorKind.UNDECLARED_VARIABLE] * 3

    def test_scope_restored_after_analysis(self):
        analyzer = SemanticAnalyzer()
        analyzer.analyze(parse_source("int f() { { int a = 1; } return 0; }"))
        assert analyzer.current_scope.level == 0
        assert analyzer.current_scope.lookup("f").is_function

    def test_each_analysis_starts_fresh(self):
        """Running analyze() again does not see the previous program's names."""
        program = parse_source("int x = 1;")
        reporter = ErrorReporter()
        analyzer = SemanticAnalyzer(reporter)
        analyzer.analyze(program)
        analyzer.analyze(program)
        assert not reporter.has_errors()


# =============================================================================
# Type Checking
# =============================================================================

class TestTypeChecking:
    """Tests for declaration, assignment and operator types."""

    def test_int_promotes_to_float(self):
        assert not check("float f = 1; f = 2;").has_errors()

    def test_float_does_not_narrow_to_int(self):
        reporter = check("int i = 1.5;")
        assert reporter.error_count() == 1
        error = reporter.errors[0]
        assert error.kind == ErrorKind.TYPE_ERROR
        assert error.message == "cannot assign float to variable of type int"
        assert (error.expected_type, error.actual_type) == ("int", "float")

    def test_string_to_int(self):
        reporter = check('int x = "hello";')
        assert [e.kind for e in reporter.errors] == [ErrorKind.TYPE_ERROR]
        assert (reporter.errors[0].line, reporter.errors[0].column) == (1, 1)

    def test_assignment_type_mismatch(self):
        assert messages("bool b = true; b = 3;") == ["cannot assign int to variable of type bool"]

    def test_arithmetic_result_types(self):
        assert not check("float x = 1 + 2.0; int y = 7 % 2; float z = -1.5;").has_errors()
        assert messages("int x = 1 * 2.0;") == ["cannot assign float to variable of type int"]

    def test_arithmetic_on_bool(self):
        """The bad operand is reported once; the declaration is not also flagged."""
        assert messages("int x = 1 + true;") == ["invalid operand types for '+': int and bool"]

    def test_string_concatenation_is_not_supported(self):
        assert kinds('string s = "a" + "b";') == [ErrorKind.TYPE_ERROR]

    def test_relational(self):
        assert not check("bool b = 1 < 2.5;").has_errors()
        assert messages('bool b = "a" < "b";') == [
            "invalid operand types for '<': string and string"
        ]

    def test_equality(self):
        source = 'bool a = 1 == 2; bool b = "x" != "y"; bool d = 2.0 == 1;'
        assert not check(source).has_errors()
        assert messages("bool e = 1 == true;") == ["invalid operand types for '==': int and bool"]

    def test_equality_promotes_right_operand_only(self):
        """The right operand may widen to the left operand's type, not the reverse."""
        assert not check("bool d = 2.0 != 1;").has_errors()
        reporter = check("bool c = 1 == 2.0;")
        assert [e.kind for e in reporter.errors] == [ErrorKind.TYPE_ERROR]
        assert reporter.errors[0].message == "invalid operand types for '==': int and float"

    def test_logical(self):
        assert not check("bool a = true && !false || false;").has_errors()
        assert messages("bool b = true && 1;") == ["invalid operand types for '&&': bool and int"]

    def test_unary(self):
        assert messages("int n = -true;") == ["invalid operand type for '-': bool"]
        assert messages("bool b = !1;") == ["invalid operand type for '!': int"]

    def test_errors_do_not_cascade(self):
        """An undeclared operand hides the enclosing operator and declaration checks."""
        assert kinds("int x = (missing + 1) * 2;") == [ErrorKind.UNDECLARED_VARIABLE]

    def test_analysis_continues_after_error(self):
        assert kinds('int x = "s"; bool y = 1; float z = true;') == [ErrorKind.TYPE_ERROR] * 3


# =============================================================================
# Control Flow
# =============================================================================

class TestControlFlow:
    """Tests for conditions and return statements."""

    @pytest.mark.parametrize("source,construct", [
        ("if (1) { }", "if"),
        ("while (1) { }", "while"),
        ("for (; 1;) { }", "for"),
    ])
    def test_condition_must_be_bool(self, source, construct):
        reporter = check(source)
        assert reporter.error_count() == 1
        error = reporter.errors[0]
        assert error.kind == ErrorKind.TYPE_ERROR
        assert error.message == f"{construct} condition must be bool, got int"

    def test_condition_error_at_condition(self):
        reporter = check('if ("yes") { }')
        assert (reporter.errors[0].line, reporter.errors[0].column) == (1, 5)

    def test_bool_conditions(self):
        assert not check("bool done = false; while (!done) { done = true; }").has_errors()

    def test_return_outside_function(self):
        reporter = check("return 1;")
        assert reporter.errors[0].kind == ErrorKind.SEMANTIC_ERROR
        assert reporter.errors[0].message == "'return' outside of function"

    def test_return_in_top_level_loop(self):
        assert kinds("while (true) { { return; } }") == [ErrorKind.SEMANTIC_ERROR]

    def test_return_type_mismatch(self):
        assert messages("int f() { return true; }") == [
            "cannot return bool from function returning int"
        ]

    def test_return_promotes_int_to_float(self):
        assert not check("float f() { return 1; }").has_errors()

    def test_bare_return_in_typed_function(self):
        assert messages("int f() { return; }") == ["function must return a value of type int"]

    def test_return_checked_against_innermost_function(self):
        source = "int outer() { bool inner() { return true; } return 1; }"
        assert not check(source).has_errors()

    def test_unconstrained_return_type(self):
        """A function with an unconstrained return type accepts any return."""
        loc = SourceLocation("t.h45", 1, 1)
        body = BlockStatement(loc, (ReturnStatement(loc),))
        func = FunctionDeclaration(loc, TypeTag.UNCONSTRAINED, "f", (), body)
        reporter = analyze(Program(loc, (func,)))
        assert not reporter.has_errors()


# =============================================================================
# Calls
# =============================================================================

class TestCalls:
    """Tests for function call resolution."""

    def test_call_result_type(self):
        assert not check("float half() { return 0.5; } float h = half();").has_errors()
        assert kinds("bool ok() { return true; } int n = ok();") == [ErrorKind.TYPE_ERROR]

    def test_function_not_found(self):
        reporter = check("foo(1, 2);")
        assert reporter.error_count() == 1
        assert reporter.errors[0].kind == ErrorKind.FUNCTION_NOT_FOUND
        assert reporter.errors[0].message == "undefined function 'foo'"

    def test_arguments_of_unknown_function_not_checked(self):
        assert kinds("foo(missing);") == [ErrorKind.FUNCTION_NOT_FOUND]

    def test_call_before_declaration(self):
        source = "int main() { return helper(); } int helper() { return 1; }"
        assert kinds(source) == [ErrorKind.FUNCTION_NOT_FOUND]

    def test_recursion(self):
        assert not check("int fact(int n) { if (n < 2) return 1; return n * fact(n - 1); }").has_errors()

    def test_calling_a_variable(self):
        assert messages("int x = 1; x();") == ["'x' is not a function"]

    def test_calling_a_call_result(self):
        source = "int f() { return 1; } f()();"
        assert messages(source) == ["only functions can be called"]

    def test_arity_not_checked(self):
        assert not check("int f(int a) { return a; } int r = f(1, 2, 3);").has_errors()

    def test_arguments_are_analyzed(self):
        assert kinds("int f(int a) { return a; } f(nope);") == [ErrorKind.UNDECLARED_VARIABLE]


class TestInternalErrors:
    """Tests for nodes outside the closed AST node set."""

    def test_unknown_statement(self):
        loc = SourceLocation("t.h45", 1, 1)
        with pytest.raises(H45InternalError):
            analyze(Program(loc, (Statement(loc),)))
