"""
H-45 Abstract Syntax Tree (AST) Definitions
===========================================

This module defines the AST node types built by the H-45 parser and
consumed by the semantic analyzer and code generator.

Node Hierarchy
--------------
ASTNode (base)
├── Program - root node, ordered top-level statements
├── Statements
│   ├── ExpressionStatement - expression followed by ';'
│   ├── VariableDeclaration - type name [= initializer];
│   ├── BlockStatement - { ... }
│   ├── IfStatement - if/else
│   ├── WhileStatement - while loop
│   ├── ForStatement - for loop
│   ├── ReturnStatement - return [value];
│   ├── FunctionDeclaration - type name(params) { ... }
│   └── PrintStatement - print(expr);
└── Expressions
    ├── BinaryExpression - left op right
    ├── UnaryExpression - op operand
    ├── LiteralExpression - int, float, string or bool constant
    ├── VariableExpression - variable reference
    ├── CallExpression - callee(args)
    └── AssignmentExpression - name = value

Design Notes
------------
- The node set is closed. STATEMENT_NODES and EXPRESSION_NODES list every
  member; each phase dispatches with an isinstance chain over them and
  raises H45InternalError for anything else.
- All nodes are frozen dataclasses and child sequences are tuples, so a
  tree cannot change after the parser builds it.
- Each node stores the source location of its first token.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from h45.errors import SourceLocation
from h45.lang.errors import H45InternalError
from h45.lang.types import TypeTag


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass(frozen=True)
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node appears
    """
    location: SourceLocation

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}@{self.location.line}:{self.location.column}"


@dataclass(frozen=True, repr=False)
class Statement(ASTNode):
    """Base class for all statement nodes."""
    pass


@dataclass(frozen=True, repr=False)
class Expression(ASTNode):
    """Base class for all expression nodes."""
    pass


# =============================================================================
# Operators
# =============================================================================

class BinaryOperator(Enum):
    """Binary operators; the value is the source spelling."""
    # Arithmetic
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"

    # Equality
    EQUAL = "=="
    NOT_EQUAL = "!="

    # Relational
    LESS = "<"
    LESS_EQ = "<="
    GREATER = ">"
    GREATER_EQ = ">="

    # Logical
    LOGICAL_AND = "&&"
    LOGICAL_OR = "||"

    def __str__(self) -> str:
        return self.value

    @property
    def is_arithmetic(self) -> bool:
        return self in _ARITHMETIC_OPERATORS

    @property
    def is_equality(self) -> bool:
        return self in (BinaryOperator.EQUAL, BinaryOperator.NOT_EQUAL)

    @property
    def is_relational(self) -> bool:
        return self in _RELATIONAL_OPERATORS

    @property
    def is_logical(self) -> bool:
        return self in (BinaryOperator.LOGICAL_AND, BinaryOperator.LOGICAL_OR)


_ARITHMETIC_OPERATORS = frozenset({
    BinaryOperator.ADD,
    BinaryOperator.SUBTRACT,
    BinaryOperator.MULTIPLY,
    BinaryOperator.DIVIDE,
    BinaryOperator.MODULO,
})

_RELATIONAL_OPERATORS = frozenset({
    BinaryOperator.LESS,
    BinaryOperator.LESS_EQ,
    BinaryOperator.GREATER,
    BinaryOperator.GREATER_EQ,
})


class UnaryOperator(Enum):
    """Prefix unary operators; the value is the source spelling."""
    NEGATE = "-"
    LOGICAL_NOT = "!"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Program Root Node
# =============================================================================

@dataclass(frozen=True, repr=False)
class Program(ASTNode):
    """
    Root node of the AST representing a complete H-45 source file.

    Attributes:
        statements: Top-level statements in source order
    """
    statements: tuple[Statement, ...] = ()


# =============================================================================
# Expression Nodes
# =============================================================================

LiteralValue = Union[bool, int, float, str]


@dataclass(frozen=True, repr=False)
class BinaryExpression(Expression):
    """
    Binary operation expression (left op right).

    Attributes:
        left: Left operand expression
        operator: The binary operator
        right: Right operand expression
    """
    left: Expression
    operator: BinaryOperator
    right: Expression


@dataclass(frozen=True, repr=False)
class UnaryExpression(Expression):
    """Prefix operation (op operand)."""
    operator: UnaryOperator
    operand: Expression


@dataclass(frozen=True, repr=False)
class LiteralExpression(Expression):
    """
    Constant value.

    The type of the literal follows from the Python type of value:
    bool, int, float or str.
    """
    value: LiteralValue

    @property
    def type_tag(self) -> TypeTag:
        # bool first: True is also an int
        if isinstance(self.value, bool):
            return TypeTag.BOOL
        if isinstance(self.value, int):
            return TypeTag.INT
        if isinstance(self.value, float):
            return TypeTag.FLOAT
        return TypeTag.STRING


@dataclass(frozen=True, repr=False)
class VariableExpression(Expression):
    """Variable reference by name."""
    name: str


@dataclass(frozen=True, repr=False)
class CallExpression(Expression):
    """
    Function call expression.

    Attributes:
        callee: Expression being called (a VariableExpression for a
                well-formed call, but the grammar allows any postfix chain)
        arguments: Argument expressions in source order
    """
    callee: Expression
    arguments: tuple[Expression, ...] = ()


@dataclass(frozen=True, repr=False)
class AssignmentExpression(Expression):
    """
    Assignment expression (name = value).

    Only a bare variable may be assigned to, so the target is a name.
    """
    name: str
    value: Expression


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True, repr=False)
class ExpressionStatement(Statement):
    """Expression evaluated for its side effects."""
    expression: Expression


@dataclass(frozen=True, repr=False)
class VariableDeclaration(Statement):
    """
    Variable declaration.

    Attributes:
        var_type: Declared type
        name: Variable name
        initializer: Initial value expression (None if not initialized)
    """
    var_type: TypeTag
    name: str
    initializer: Optional[Expression] = None


@dataclass(frozen=True, repr=False)
class BlockStatement(Statement):
    """Compound statement { ... }; opens a new scope."""
    statements: tuple[Statement, ...] = ()


@dataclass(frozen=True, repr=False)
class IfStatement(Statement):
    """
    If statement with optional else.

    Attributes:
        condition: Condition expression (must be bool)
        then_branch: Statement executed if condition is true
        else_branch: Statement executed if condition is false (optional)
    """
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None


@dataclass(frozen=True, repr=False)
class WhileStatement(Statement):
    """While loop statement."""
    condition: Expression
    body: Statement


@dataclass(frozen=True, repr=False)
class ForStatement(Statement):
    """
    For loop statement.

    Attributes:
        initializer: VariableDeclaration or ExpressionStatement (optional)
        condition: Loop condition (optional, must be bool when present)
        increment: Expression evaluated after each iteration (optional)
        body: Loop body statement
    """
    initializer: Optional[Statement]
    condition: Optional[Expression]
    increment: Optional[Expression]
    body: Statement


@dataclass(frozen=True, repr=False)
class ReturnStatement(Statement):
    """Return statement with optional value."""
    value: Optional[Expression] = None


@dataclass(frozen=True)
class Parameter:
    """Function parameter: declared type and name."""
    param_type: TypeTag
    name: str
    location: SourceLocation


@dataclass(frozen=True, repr=False)
class FunctionDeclaration(Statement):
    """
    Function definition.

    Attributes:
        return_type: Declared return type
        name: Function name
        parameters: Parameters in declaration order
        body: Function body
    """
    return_type: TypeTag
    name: str
    parameters: tuple[Parameter, ...]
    body: BlockStatement


@dataclass(frozen=True, repr=False)
class PrintStatement(Statement):
    """print(expr);"""
    expression: Expression


# =============================================================================
# Closed Node Set
# =============================================================================

STATEMENT_NODES = (
    ExpressionStatement,
    VariableDeclaration,
    BlockStatement,
    IfStatement,
    WhileStatement,
    ForStatement,
    ReturnStatement,
    FunctionDeclaration,
    PrintStatement,
)

EXPRESSION_NODES = (
    BinaryExpression,
    UnaryExpression,
    LiteralExpression,
    VariableExpression,
    CallExpression,
    AssignmentExpression,
)


def unknown_node(node: object) -> H45InternalError:
    """Build the error raised when dispatch meets a node outside the closed set."""
    return H45InternalError(f"unexpected AST node: {type(node).__name__}")


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter:
    """
    Pretty printer for AST debugging.

    Produces a human-readable, indented representation of the tree.

    Usage:
        printer = ASTPrinter()
        output = printer.print(program)
        print(output)
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Print the AST and return as string."""
        self.output = []
        self.indent_level = 0
        if isinstance(node, Program):
            self._print_program(node)
        elif isinstance(node, Expression):
            self._emit(self._expr_str(node))
        else:
            self._print_statement(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        """Emit a line with current indentation."""
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _nested(self, node: Statement) -> None:
        self.indent_level += 1
        self._print_statement(node)
        self.indent_level -= 1

    def _print_program(self, node: Program) -> None:
        self._emit("Program")
        self.indent_level += 1
        for stmt in node.statements:
            self._print_statement(stmt)
        self.indent_level -= 1

    def _print_statement(self, node: Statement) -> None:
        if isinstance(node, FunctionDeclaration):
            params = ", ".join(f"{p.param_type} {p.name}" for p in node.parameters)
            self._emit(f"Function: {node.return_type} {node.name}({params})")
            self._nested(node.body)
        elif isinstance(node, VariableDeclaration):
            init = f" = {self._expr_str(node.initializer)}" if node.initializer else ""
            self._emit(f"Variable: {node.var_type} {node.name}{init}")
        elif isinstance(node, BlockStatement):
            self._emit("Block")
            self.indent_level += 1
            for stmt in node.statements:
                self._print_statement(stmt)
            self.indent_level -= 1
        elif isinstance(node, IfStatement):
            self._emit(f"If ({self._expr_str(node.condition)})")
            self.indent_level += 1
            self._emit("Then:")
            self._nested(node.then_branch)
            if node.else_branch:
                self._emit("Else:")
                self._nested(node.else_branch)
            self.indent_level -= 1
        elif isinstance(node, WhileStatement):
            self._emit(f"While ({self._expr_str(node.condition)})")
            self._nested(node.body)
        elif isinstance(node, ForStatement):
            init = self._init_str(node.initializer)
            cond = self._expr_str(node.condition)
            incr = self._expr_str(node.increment)
            self._emit(f"For ({init}; {cond}; {incr})")
            self._nested(node.body)
        elif isinstance(node, ReturnStatement):
            if node.value:
                self._emit(f"Return {self._expr_str(node.value)}")
            else:
                self._emit("Return")
        elif isinstance(node, PrintStatement):
            self._emit(f"Print {self._expr_str(node.expression)}")
        elif isinstance(node, ExpressionStatement):
            self._emit(f"Expr: {self._expr_str(node.expression)}")
        else:
            raise unknown_node(node)

    def _init_str(self, init: Optional[Statement]) -> str:
        if init is None:
            return ""
        if isinstance(init, VariableDeclaration):
            value = f" = {self._expr_str(init.initializer)}" if init.initializer else ""
            return f"{init.var_type} {init.name}{value}"
        if isinstance(init, ExpressionStatement):
            return self._expr_str(init.expression)
        raise unknown_node(init)

    def _expr_str(self, expr: Optional[Expression]) -> str:
        """Convert expression to string representation."""
        if expr is None:
            return ""
        if isinstance(expr, LiteralExpression):
            if expr.type_tag is TypeTag.STRING:
                return f'"{expr.value}"'
            if expr.type_tag is TypeTag.BOOL:
                return "true" if expr.value else "false"
            return str(expr.value)
        if isinstance(expr, VariableExpression):
            return expr.name
        if isinstance(expr, BinaryExpression):
            return f"({self._expr_str(expr.left)} {expr.operator} {self._expr_str(expr.right)})"
        if isinstance(expr, UnaryExpression):
            return f"({expr.operator}{self._expr_str(expr.operand)})"
        if isinstance(expr, AssignmentExpression):
            return f"({expr.name} = {self._expr_str(expr.value)})"
        if isinstance(expr, CallExpression):
            args = ", ".join(self._expr_str(a) for a in expr.arguments)
            return f"{self._expr_str(expr.callee)}({args})"
        raise unknown_node(expr)
