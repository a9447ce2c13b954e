"""
Stack-Machine Code Generator for H-45
=====================================

This module lowers a checked H-45 AST into a textual, x86-flavoured
pseudo-assembly listing. The listing illustrates the evaluation model;
it is not meant to be fed to a real assembler.

Code Generation Strategy
------------------------
1. Every expression leaves its value in the accumulator (eax)
2. For binary operations the left value is pushed, the right value is
   computed into eax, moved to ebx, and the left value popped into eax
3. Comparisons produce 0 or 1 in eax; && and || are bitwise and/or on
   those 0/1 values
4. Variables live in memory slots addressed by source name: [x]
5. Float values are handled as truncated integers

Register Usage
--------------
| Register | Usage                                  |
|----------|----------------------------------------|
| eax      | Accumulator, function return value     |
| ebx      | Right operand of binary operations     |
| edx      | Remainder after idiv                   |
| ebp      | Frame pointer                          |
| esp      | Stack pointer                          |

Calling Convention
------------------
Arguments are pushed right-to-left and the caller removes them after
the call (4 bytes each). The callee sets up a frame of fixed size and
leaves its result in eax. Every 'return' repeats the epilogue inline.

Labels
------
Control-flow labels are ``<prefix>_<n>``. One counter, owned by the
GenerationContext of a generate() call, numbers every label of that
call, so no label is ever minted twice:

| Construct      | Labels              |
|----------------|---------------------|
| if             | else_N, endif_M     |
| while          | loop_N, endloop_M   |
| for            | forloop_N, endfor_M |
| string literal | str_N               |

Example output:
    main:
        push   ebp
        mov    ebp, esp
        sub    esp, 64             ; reserve space for locals
        ...
        mov    esp, ebp
        pop    ebp
        ret
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

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
from h45.lang.errors import H45InternalError
from h45.lang.types import TypeTag


logger = logging.getLogger(__name__)


# Size of one pushed argument in bytes
WORD_SIZE = 4

# Default stack frame reservation per function in bytes
DEFAULT_FRAME_SIZE = 64

# Comparison operator -> setcc mnemonic
_SET_CONDITION = {
    BinaryOperator.EQUAL: "sete",
    BinaryOperator.NOT_EQUAL: "setne",
    BinaryOperator.LESS: "setl",
    BinaryOperator.LESS_EQ: "setle",
    BinaryOperator.GREATER: "setg",
    BinaryOperator.GREATER_EQ: "setge",
}


# =============================================================================
# Generation Context
# =============================================================================

@dataclass
class GenerationContext:
    """
    Mutable state of one generate() call.

    Attributes:
        lines: Output lines emitted so far
        label_counter: Number of labels minted so far
    """
    lines: list[str] = field(default_factory=list)
    label_counter: int = 0

    def new_label(self, prefix: str) -> str:
        """Mint a label that has not been used in this context."""
        label = f"{prefix}_{self.label_counter}"
        self.label_counter += 1
        return label


# =============================================================================
# Code Generator Class
# =============================================================================

class CodeGenerator:
    """
    Generates pseudo-assembly from a checked H-45 AST.

    The input must have passed semantic analysis without errors; the
    generator does not re-check names or types.

    Attributes:
        frame_size: Bytes reserved on the stack by every function
        output_comments: Emit comment lines and trailing comments
    """

    def __init__(self, frame_size: int = DEFAULT_FRAME_SIZE, output_comments: bool = True):
        """
        Initialize the code generator.

        Args:
            frame_size: Fixed stack frame reservation per function.
                        The size is not computed from the locals.
            output_comments: Annotate the output with comments
        """
        self.frame_size = frame_size
        self.output_comments = output_comments
        self._ctx: Optional[GenerationContext] = None

    def generate(self, program: Program) -> str:
        """
        Generate the listing for a program.

        Args:
            program: The root AST node

        Returns:
            The complete listing, one instruction or label per line
        """
        self._ctx = GenerationContext()
        try:
            self._emit_header()
            for stmt in program.statements:
                self._generate_statement(stmt)
            self._emit_entry_point()
            lines = self._ctx.lines
            logger.debug(
                f"generated {len(lines)} lines, {self._ctx.label_counter} labels"
            )
        finally:
            self._ctx = None
        return "\n".join(lines) + "\n"

    # =========================================================================
    # Assembly Output Methods
    # =========================================================================

    def _emit(self, line: str = "") -> None:
        """Emit a line of assembly."""
        if self._ctx is None:
            raise H45InternalError("code generator used outside generate()")
        self._ctx.lines.append(line)

    def _emit_comment(self, comment: str) -> None:
        """Emit an indented comment line (dropped when comments are off)."""
        if self.output_comments:
            self._emit(f"    ; {comment}")

    def _emit_label(self, label: str) -> None:
        """Emit a label definition."""
        self._emit(f"{label}:")

    def _emit_instruction(self, mnemonic: str, operand: str = "", comment: str = "") -> None:
        """Emit an instruction with optional operand and trailing comment."""
        line = f"    {mnemonic:<7}{operand}".rstrip()
        if comment and self.output_comments:
            line = f"{line:<31}; {comment}"
        self._emit(line)

    def _new_label(self, prefix: str) -> str:
        """Generate a unique label."""
        return self._ctx.new_label(prefix)

    # =========================================================================
    # Header and Entry Point
    # =========================================================================

    def _emit_header(self) -> None:
        self._emit("; H-45 Compiler Generated Code")
        self._emit("; Target: Assembly-like Intermediate Representation")
        self._emit()
        self._emit("section .text")
        self._emit("global _start")
        self._emit()

    def _emit_entry_point(self) -> None:
        self._emit()
        self._emit_label("_start")
        self._emit_instruction("call", "main")
        self._emit_instruction("mov", "eax, 1", "sys_exit")
        self._emit_instruction("mov", "ebx, 0", "exit status")
        self._emit_instruction("int", "0x80", "call kernel")

    def _emit_epilogue(self) -> None:
        self._emit_instruction("mov", "esp, ebp")
        self._emit_instruction("pop", "ebp")
        self._emit_instruction("ret")

    # =========================================================================
    # Statement Generation
    # =========================================================================

    def _generate_statement(self, stmt: Statement) -> None:
        """Generate code for a statement."""
        if isinstance(stmt, FunctionDeclaration):
            self._generate_function(stmt)
        elif isinstance(stmt, VariableDeclaration):
            self._emit_comment(f"Variable declaration: {stmt.name}")
            if stmt.initializer is not None:
                self._generate_expression(stmt.initializer)
                self._emit_instruction("mov", f"[{stmt.name}], eax", "store initial value")
        elif isinstance(stmt, BlockStatement):
            self._emit_comment("Block start")
            for inner in stmt.statements:
                self._generate_statement(inner)
            self._emit_comment("Block end")
        elif isinstance(stmt, ExpressionStatement):
            self._generate_expression(stmt.expression)
        elif isinstance(stmt, IfStatement):
            self._generate_if(stmt)
        elif isinstance(stmt, WhileStatement):
            self._generate_while(stmt)
        elif isinstance(stmt, ForStatement):
            self._generate_for(stmt)
        elif isinstance(stmt, ReturnStatement):
            self._emit_comment("Return statement")
            if stmt.value is not None:
                self._generate_expression(stmt.value)
            else:
                self._emit_instruction("mov", "eax, 0", "default return value")
            self._emit_epilogue()
        elif isinstance(stmt, PrintStatement):
            self._emit_comment("Print statement")
            self._generate_expression(stmt.expression)
            self._emit_instruction("push", "eax", "push value to print")
            self._emit_instruction("call", "print_int")
            self._emit_instruction("add", f"esp, {WORD_SIZE}", "clean up stack")
        else:
            raise unknown_node(stmt)

    def _generate_function(self, func: FunctionDeclaration) -> None:
        """Generate code for a function definition."""
        self._emit()
        self._emit_label(func.name)
        self._emit_instruction("push", "ebp")
        self._emit_instruction("mov", "ebp, esp")
        self._emit_instruction("sub", f"esp, {self.frame_size}", "reserve space for locals")

        self._generate_statement(func.body)

        self._emit_epilogue()

    def _generate_if(self, stmt: IfStatement) -> None:
        else_label = self._new_label("else")
        end_label = self._new_label("endif")

        self._emit_comment("If statement")
        self._generate_expression(stmt.condition)
        self._emit_instruction("cmp", "eax, 0")
        self._emit_instruction("je", else_label)

        self._generate_statement(stmt.then_branch)
        self._emit_instruction("jmp", end_label)

        self._emit_label(else_label)
        if stmt.else_branch is not None:
            self._generate_statement(stmt.else_branch)

        self._emit_label(end_label)

    def _generate_while(self, stmt: WhileStatement) -> None:
        loop_label = self._new_label("loop")
        end_label = self._new_label("endloop")

        self._emit_comment("While loop")
        self._emit_label(loop_label)
        self._generate_expression(stmt.condition)
        self._emit_instruction("cmp", "eax, 0")
        self._emit_instruction("je", end_label)

        self._generate_statement(stmt.body)
        self._emit_instruction("jmp", loop_label)

        self._emit_label(end_label)

    def _generate_for(self, stmt: ForStatement) -> None:
        loop_label = self._new_label("forloop")
        end_label = self._new_label("endfor")

        self._emit_comment("For loop")
        if stmt.initializer is not None:
            self._generate_statement(stmt.initializer)

        self._emit_label(loop_label)
        if stmt.condition is not None:
            self._generate_expression(stmt.condition)
            self._emit_instruction("cmp", "eax, 0")
            self._emit_instruction("je", end_label)

        self._generate_statement(stmt.body)
        if stmt.increment is not None:
            self._generate_expression(stmt.increment)
        self._emit_instruction("jmp", loop_label)

        self._emit_label(end_label)

    # =========================================================================
    # Expression Generation
    # =========================================================================

    def _generate_expression(self, expr: Expression) -> None:
        """Generate code for an expression; the result is left in eax."""
        if isinstance(expr, LiteralExpression):
            self._generate_literal(expr)
        elif isinstance(expr, VariableExpression):
            self._emit_instruction("mov", f"eax, [{expr.name}]", f"load variable {expr.name}")
        elif isinstance(expr, AssignmentExpression):
            self._generate_expression(expr.value)
            self._emit_instruction("mov", f"[{expr.name}], eax", f"assign to {expr.name}")
        elif isinstance(expr, BinaryExpression):
            self._generate_binary(expr)
        elif isinstance(expr, UnaryExpression):
            self._generate_expression(expr.operand)
            if expr.operator is UnaryOperator.NEGATE:
                self._emit_instruction("neg", "eax", "negate")
            else:
                self._emit_set_condition("sete", "eax, 0")
        elif isinstance(expr, CallExpression):
            self._generate_call(expr)
        else:
            raise unknown_node(expr)

    def _generate_literal(self, expr: LiteralExpression) -> None:
        tag = expr.type_tag
        if tag is TypeTag.BOOL:
            self._emit_instruction("mov", f"eax, {int(expr.value)}", "boolean literal")
        elif tag is TypeTag.INT:
            self._emit_instruction("mov", f"eax, {expr.value}", "integer literal")
        elif tag is TypeTag.FLOAT:
            self._emit_comment("Float literal (simplified as integer)")
            self._emit_instruction("mov", f"eax, {int(expr.value)}")
        else:
            # The label stands in for a data-section entry that is not emitted
            label = self._new_label("str")
            self._emit_instruction("mov", f"eax, {label}", "string literal")

    def _generate_binary(self, expr: BinaryExpression) -> None:
        self._generate_expression(expr.left)
        self._emit_instruction("push", "eax", "save left operand")
        self._generate_expression(expr.right)
        self._emit_instruction("mov", "ebx, eax", "right operand in ebx")
        self._emit_instruction("pop", "eax", "left operand in eax")

        op = expr.operator
        if op is BinaryOperator.ADD:
            self._emit_instruction("add", "eax, ebx", "addition")
        elif op is BinaryOperator.SUBTRACT:
            self._emit_instruction("sub", "eax, ebx", "subtraction")
        elif op is BinaryOperator.MULTIPLY:
            self._emit_instruction("imul", "eax, ebx", "multiplication")
        elif op in (BinaryOperator.DIVIDE, BinaryOperator.MODULO):
            self._emit_instruction("cdq", comment="sign extend")
            self._emit_instruction("idiv", "ebx", "division")
            if op is BinaryOperator.MODULO:
                self._emit_instruction("mov", "eax, edx", "remainder in edx")
        elif op in _SET_CONDITION:
            self._emit_set_condition(_SET_CONDITION[op], "eax, ebx")
        elif op is BinaryOperator.LOGICAL_AND:
            self._emit_instruction("and", "eax, ebx", "logical and")
        elif op is BinaryOperator.LOGICAL_OR:
            self._emit_instruction("or", "eax, ebx", "logical or")
        else:
            raise H45InternalError(f"unexpected binary operator: {op}")

    def _emit_set_condition(self, setcc: str, operands: str) -> None:
        """Compare, then turn the flag into 0/1 in eax."""
        self._emit_instruction("cmp", operands)
        self._emit_instruction(setcc, "al")
        self._emit_instruction("movzx", "eax, al")

    def _generate_call(self, expr: CallExpression) -> None:
        if not isinstance(expr.callee, VariableExpression):
            raise H45InternalError("call target is not a function name")
        name = expr.callee.name

        self._emit_comment(f"Function call: {name}")
        # Right-to-left so the first argument ends up on top
        for index in reversed(range(len(expr.arguments))):
            self._generate_expression(expr.arguments[index])
            self._emit_instruction("push", "eax", f"push argument {index}")

        self._emit_instruction("call", name)

        if expr.arguments:
            size = len(expr.arguments) * WORD_SIZE
            self._emit_instruction("add", f"esp, {size}", "clean up arguments")
