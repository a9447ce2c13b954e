"""
H-45 Semantic Analyzer
======================

Walks the AST once, resolving names through a chain of scopes and
checking types. The AST is not modified; expression types are computed
on the fly and returned to the caller.

Checks
------
- Redeclaration of a name in the same scope (shadowing in a nested
  scope is allowed)
- Initializer, assignment and return types against the declared type
  (int may be used where float is declared, nothing else converts)
- if / while / for conditions must be bool
- Operand types of binary and unary operators
- Use of undeclared variables
- 'return' outside of any function
- Calls: callee must be a declared function

Call arity and argument types against the callee's parameters are not
checked.

Error Cascades
--------------
An expression whose subtree already produced a diagnostic has type None.
Checks that see a None operand stay silent, so each mistake is reported
once.

Scopes
------
A fresh root scope is used for each analyze() call. A function opens a
scope for its parameters and its body block opens another one inside
it. Blocks and for-loop headers open a scope each. Names are visible
from their declaration onward, so a function can call itself and any
function declared before it.
"""

import logging
from typing import Optional

from h45.lang.ast import (
    AssignmentExpression,
    BinaryExpression,
    BlockStatement,
    CallExpression,
    Expression,
    ExpressionStatement,
    ForStatement,
    FunctionDeclaration,
    IfStatement,
    LiteralExpression,
    PrintStatement,
    Program,
    ReturnStatement,
    Statement,
    UnaryExpression,
    UnaryOperator,
    VariableDeclaration,
    VariableExpression,
    WhileStatement,
    unknown_node,
)
from h45.lang.errors import (
    ErrorReporter,
    FunctionNotFoundError,
    RedeclarationError,
    SemanticDiagnostic,
    TypeDiagnostic,
    UndeclaredVariableError,
)
from h45.lang.symbols import Scope, SymbolKind
from h45.lang.types import TypeTag, is_compatible, promote_numeric


logger = logging.getLogger(__name__)


class SemanticAnalyzer:
    """
    Name resolution and type checking for one program.

    Diagnostics are recorded on the reporter; analyze() never raises for
    errors in the program being analyzed.

    Attributes:
        reporter: Sink for semantic diagnostics
    """

    def __init__(self, reporter: Optional[ErrorReporter] = None):
        self.reporter = reporter if reporter is not None else ErrorReporter()

        self._scope = Scope()

        # Function context: None when outside every function
        self._return_type: Optional[TypeTag] = None
        self._in_function = False

    def analyze(self, program: Program) -> None:
        """Check every statement of program in source order."""
        self._scope = Scope()
        self._return_type = None
        self._in_function = False

        errors_before = self.reporter.error_count()
        for stmt in program.statements:
            self._analyze_statement(stmt)

        logger.debug(
            f"semantic analysis found {self.reporter.error_count() - errors_before} error(s)"
        )

    # =========================================================================
    # Scope Management
    # =========================================================================

    @property
    def current_scope(self) -> Scope:
        return self._scope

    def _enter_scope(self) -> None:
        self._scope = self._scope.child()

    def _exit_scope(self) -> None:
        self._scope = self._scope.parent

    def _declare(self, name: str, type_tag: TypeTag, kind: SymbolKind, location) -> bool:
        """Define name in the current scope; records an error and returns False on redeclaration."""
        try:
            self._scope.define(name, type_tag, kind, location)
        except RedeclarationError as e:
            self.reporter.add(e)
            return False
        return True

    # =========================================================================
    # Statements
    # =========================================================================

    def _analyze_statement(self, stmt: Statement) -> None:
        """Dispatch on statement node type."""
        if isinstance(stmt, VariableDeclaration):
            self._analyze_variable_declaration(stmt)
        elif isinstance(stmt, FunctionDeclaration):
            self._analyze_function(stmt)
        elif isinstance(stmt, BlockStatement):
            self._analyze_block(stmt)
        elif isinstance(stmt, ExpressionStatement):
            self._analyze_expression(stmt.expression)
        elif isinstance(stmt, IfStatement):
            self._check_condition(stmt.condition, "if")
            self._analyze_statement(stmt.then_branch)
            if stmt.else_branch is not None:
                self._analyze_statement(stmt.else_branch)
        elif isinstance(stmt, WhileStatement):
            self._check_condition(stmt.condition, "while")
            self._analyze_statement(stmt.body)
        elif isinstance(stmt, ForStatement):
            self._analyze_for(stmt)
        elif isinstance(stmt, ReturnStatement):
            self._analyze_return(stmt)
        elif isinstance(stmt, PrintStatement):
            self._analyze_expression(stmt.expression)
        else:
            raise unknown_node(stmt)

    def _analyze_variable_declaration(self, stmt: VariableDeclaration) -> None:
        # A redeclared variable is not defined again and its
        # initializer is not checked.
        if self._scope.is_defined_locally(stmt.name):
            self.reporter.add(RedeclarationError(stmt.name, stmt.location))
            return

        if stmt.initializer is not None:
            init_type = self._analyze_expression(stmt.initializer)
            if init_type is not None and not is_compatible(stmt.var_type, init_type):
                self.reporter.add(TypeDiagnostic(
                    f"cannot assign {init_type} to variable of type {stmt.var_type}",
                    stmt.location,
                    expected_type=str(stmt.var_type),
                    actual_type=str(init_type),
                ))

        self._declare(stmt.name, stmt.var_type, SymbolKind.VARIABLE, stmt.location)

    def _analyze_function(self, stmt: FunctionDeclaration) -> None:
        if not self._declare(stmt.name, stmt.return_type, SymbolKind.FUNCTION, stmt.location):
            return

        saved_return_type = self._return_type
        saved_in_function = self._in_function
        self._return_type = stmt.return_type
        self._in_function = True

        self._enter_scope()
        for param in stmt.parameters:
            self._declare(param.name, param.param_type, SymbolKind.PARAMETER, param.location)
        self._analyze_block(stmt.body)
        self._exit_scope()

        self._return_type = saved_return_type
        self._in_function = saved_in_function

    def _analyze_block(self, stmt: BlockStatement) -> None:
        self._enter_scope()
        for inner in stmt.statements:
            self._analyze_statement(inner)
        self._exit_scope()

    def _analyze_for(self, stmt: ForStatement) -> None:
        # The header gets its own scope so a loop variable is not visible
        # after the loop.
        self._enter_scope()
        if stmt.initializer is not None:
            self._analyze_statement(stmt.initializer)
        if stmt.condition is not None:
            self._check_condition(stmt.condition, "for")
        if stmt.increment is not None:
            self._analyze_expression(stmt.increment)
        self._analyze_statement(stmt.body)
        self._exit_scope()

    def _analyze_return(self, stmt: ReturnStatement) -> None:
        if not self._in_function:
            self.reporter.add(SemanticDiagnostic("'return' outside of function", stmt.location))
            return

        expected = self._return_type
        if stmt.value is not None:
            value_type = self._analyze_expression(stmt.value)
            if (value_type is not None
                    and expected is not TypeTag.UNCONSTRAINED
                    and not is_compatible(expected, value_type)):
                self.reporter.add(TypeDiagnostic(
                    f"cannot return {value_type} from function returning {expected}",
                    stmt.location,
                    expected_type=str(expected),
                    actual_type=str(value_type),
                ))
        elif expected is not TypeTag.UNCONSTRAINED:
            self.reporter.add(TypeDiagnostic(
                f"function must return a value of type {expected}",
                stmt.location,
                expected_type=str(expected),
            ))

    def _check_condition(self, condition: Expression, construct: str) -> None:
        cond_type = self._analyze_expression(condition)
        if cond_type is not None and cond_type is not TypeTag.BOOL:
            self.reporter.add(TypeDiagnostic(
                f"{construct} condition must be bool, got {cond_type}",
                condition.location,
                expected_type=str(TypeTag.BOOL),
                actual_type=str(cond_type),
            ))

    # =========================================================================
    # Expressions
    # =========================================================================

    def _analyze_expression(self, expr: Expression) -> Optional[TypeTag]:
        """
        Compute the type of expr, recording any errors found.

        Returns:
            The inferred type, or None if expr contains an error
        """
        if isinstance(expr, LiteralExpression):
            return expr.type_tag
        if isinstance(expr, VariableExpression):
            symbol = self._scope.lookup(expr.name)
            if symbol is None:
                self.reporter.add(UndeclaredVariableError(expr.name, expr.location))
                return None
            return symbol.type_tag
        if isinstance(expr, AssignmentExpression):
            return self._analyze_assignment(expr)
        if isinstance(expr, BinaryExpression):
            return self._analyze_binary(expr)
        if isinstance(expr, UnaryExpression):
            return self._analyze_unary(expr)
        if isinstance(expr, CallExpression):
            return self._analyze_call(expr)
        raise unknown_node(expr)

    def _analyze_assignment(self, expr: AssignmentExpression) -> Optional[TypeTag]:
        symbol = self._scope.lookup(expr.name)
        if symbol is None:
            self.reporter.add(UndeclaredVariableError(expr.name, expr.location))
            return None

        value_type = self._analyze_expression(expr.value)
        if value_type is not None and not is_compatible(symbol.type_tag, value_type):
            self.reporter.add(TypeDiagnostic(
                f"cannot assign {value_type} to variable of type {symbol.type_tag}",
                expr.location,
                expected_type=str(symbol.type_tag),
                actual_type=str(value_type),
            ))
        return symbol.type_tag

    def _analyze_binary(self, expr: BinaryExpression) -> Optional[TypeTag]:
        left = self._analyze_expression(expr.left)
        right = self._analyze_expression(expr.right)
        if left is None or right is None:
            return None

        op = expr.operator
        if op.is_arithmetic:
            result = promote_numeric(left, right)
            if result is not None:
                return result
        elif op.is_equality:
            # The left operand sets the expected type: 2.0 == 1 is fine,
            # 1 == 2.0 is not.
            if is_compatible(left, right):
                return TypeTag.BOOL
        elif op.is_relational:
            if left.is_numeric and right.is_numeric:
                return TypeTag.BOOL
        elif op.is_logical:
            if left is TypeTag.BOOL and right is TypeTag.BOOL:
                return TypeTag.BOOL

        self.reporter.add(TypeDiagnostic(
            f"invalid operand types for '{op}': {left} and {right}",
            expr.location,
        ))
        return None

    def _analyze_unary(self, expr: UnaryExpression) -> Optional[TypeTag]:
        operand = self._analyze_expression(expr.operand)
        if operand is None:
            return None

        if expr.operator is UnaryOperator.NEGATE and operand.is_numeric:
            return operand
        if expr.operator is UnaryOperator.LOGICAL_NOT and operand is TypeTag.BOOL:
            return TypeTag.BOOL

        self.reporter.add(TypeDiagnostic(
            f"invalid operand type for '{expr.operator}': {operand}",
            expr.location,
        ))
        return None

    def _analyze_call(self, expr: CallExpression) -> Optional[TypeTag]:
        if not isinstance(expr.callee, VariableExpression):
            self.reporter.add(SemanticDiagnostic("only functions can be called", expr.location))
            return None

        name = expr.callee.name
        symbol = self._scope.lookup(name)
        if symbol is None:
            self.reporter.add(FunctionNotFoundError(name, expr.location))
            return None
        if not symbol.is_function:
            self.reporter.add(SemanticDiagnostic(f"'{name}' is not a function", expr.location))
            return None

        # Arguments are checked on their own; they are not matched
        # against the callee's parameters.
        for arg in expr.arguments:
            self._analyze_expression(arg)

        return symbol.type_tag


# =============================================================================
# Convenience Functions
# =============================================================================

def analyze(program: Program, reporter: Optional[ErrorReporter] = None) -> ErrorReporter:
    """
    Run semantic analysis on program.

    Returns:
        The reporter holding any diagnostics found
    """
    reporter = reporter if reporter is not None else ErrorReporter()
    SemanticAnalyzer(reporter).analyze(program)
    return reporter
