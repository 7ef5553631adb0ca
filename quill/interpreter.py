"""Tree-walking interpreter for the Quill language.

`Interpreter.evaluate` is the single dispatcher used for every node: statement
nodes are handled by `execute`, a closed dispatch over the statement variants,
and expression nodes by `evaluate_expression`. Blocks and function calls each
run in a fresh child `Environment`; functions keep a reference to the
environment they were declared in, which is how closures see variables of
blocks that have already finished.
"""

from __future__ import annotations

import math
import sys
from typing import Any, List, Optional

from .ast import (
    Stmt, Expr, Program, VarDeclaration, FunctionDeclaration, IfElseStatement,
    WhileStatement, ReturnStatement, NumericLiteral, StringLiteral, Identifier,
    AssignmentExpr, BinaryExpr, LogicalExpr, UnaryExpr, CallExpr, MemberExpr,
    ObjectLiteral, ArrayLiteral,
)
from .environment import Environment
from .errors import (
    EvaluationError, TypeMismatchError, UnsupportedStatementError,
    NotCallableError, ArgumentCountError, ReturnSignal,
)
from .lexer import DEFAULT_LINE_TERMINATOR
from .parser import parse_program
from .values import (
    RuntimeVal, NullVal, BooleanVal, NumberVal, StringVal, ObjectVal, ArrayVal,
    FunctionVal, make_null, make_bool, make_number, to_string, type_name,
)


# Nested Quill calls cost several Python frames each; `run` raises the
# interpreter recursion limit so `max_call_depth` calls fit.
DEFAULT_MAX_CALL_DEPTH = 500
FRAMES_PER_CALL = 20


class Interpreter:
    """Core interpreter that executes a Quill AST."""
    def __init__(self, debug_level: int = 0, debug_file: Optional[str] = 'debug.txt',
                 max_call_depth: int = DEFAULT_MAX_CALL_DEPTH):
        self.debug_level = debug_level
        self.max_call_depth = max_call_depth
        self.call_depth = 0
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 and debug_file else None
        self.global_scope = self.create_global_scope()

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def __enter__(self) -> 'Interpreter':
        return self

    def __exit__(self, *exc_info):
        self.close()

    @staticmethod
    def create_global_scope() -> Environment:
        env = Environment()
        env.declare('true', make_bool(True), constant=True)
        env.declare('false', make_bool(False), constant=True)
        env.declare('null', make_null(), constant=True)
        return env

    # Public API
    def run(self, program: Program, scope: Optional[Environment] = None) -> RuntimeVal:
        if scope is None:
            scope = self.global_scope
        if self.debug_level >= 1:
            self.debug(f"run program with {len(program.body)} statements")
        limit = sys.getrecursionlimit()
        needed = self.max_call_depth * FRAMES_PER_CALL + 1000
        if needed > limit:
            sys.setrecursionlimit(needed)
        try:
            result = self.execute(program, scope)
        finally:
            sys.setrecursionlimit(limit)
        if self.debug_level >= 1:
            self.debug(f"program finished -> {to_string(result)}")
        return result

    def evaluate(self, node: Stmt, scope: Environment) -> RuntimeVal:
        if isinstance(node, Expr):
            return self.evaluate_expression(node, scope)
        return self.execute(node, scope)

    ###########################################################################
    # Statements
    ###########################################################################

    def execute(self, node: Stmt, scope: Environment) -> RuntimeVal:
        if isinstance(node, Program):
            return self.eval_program(node, scope)
        if isinstance(node, VarDeclaration):
            return self.eval_var_declaration(node, scope)
        if isinstance(node, FunctionDeclaration):
            return self.eval_fn_declaration(node, scope)
        if isinstance(node, IfElseStatement):
            return self.eval_if_else_statement(node, scope)
        if isinstance(node, WhileStatement):
            return self.eval_while_statement(node, scope)
        if isinstance(node, ReturnStatement):
            value = self.evaluate(node.value, scope) if node.value is not None else make_null()
            raise ReturnSignal(value)
        raise UnsupportedStatementError(node)

    def eval_program(self, program: Program, scope: Environment) -> RuntimeVal:
        result: RuntimeVal = make_null()
        try:
            for stmt in program.body:
                result = self.evaluate(stmt, scope)
        except ReturnSignal:
            raise EvaluationError("'return' outside of a function") from None
        return result

    def eval_var_declaration(self, node: VarDeclaration, scope: Environment) -> RuntimeVal:
        value = self.evaluate(node.value, scope) if node.value is not None else make_null()
        scope.declare(node.identifier, value, node.constant)
        if self.debug_level >= 2:
            self.debug(f"declare {node.kind} {node.identifier} = {to_string(value)}")
        return value

    def eval_fn_declaration(self, node: FunctionDeclaration, scope: Environment) -> RuntimeVal:
        fn = FunctionVal(node.name, list(node.parameters), scope, node.body)
        scope.declare(node.name, fn, constant=True)  # functions are const
        if self.debug_level >= 2:
            self.debug(f"define function {node.name}({', '.join(node.parameters)})")
        return fn

    def execute_block(self, statements: List[Stmt], parent: Environment) -> RuntimeVal:
        block_scope = Environment(parent=parent)
        if self.debug_level >= 3:
            self.debug(f"enter block scope (depth {block_scope.depth()})")
        result: RuntimeVal = make_null()
        for stmt in statements:
            result = self.evaluate(stmt, block_scope)
        return result

    def eval_condition(self, check: Expr, scope: Environment, statement: str) -> bool:
        cond = self.evaluate(check, scope)
        if not isinstance(cond, BooleanVal):
            raise TypeMismatchError(f"{statement} condition must be boolean, got {type_name(cond)}")
        return cond.value

    def eval_if_else_statement(self, node: IfElseStatement, scope: Environment) -> RuntimeVal:
        if self.eval_condition(node.check, scope, 'if'):
            if self.debug_level >= 3:
                self.debug('if: taking main branch')
            self.execute_block(node.body, scope)
            return make_null()
        for index, branch in enumerate(node.child_checks):
            if self.eval_condition(branch.check, scope, 'if'):
                if self.debug_level >= 3:
                    self.debug(f"if: taking else-if branch {index}")
                self.execute_block(branch.body, scope)
                break
        else:
            if node.else_body is not None:
                if self.debug_level >= 3:
                    self.debug('if: taking else branch')
                self.execute_block(node.else_body, scope)
        return make_null()

    def eval_while_statement(self, node: WhileStatement, scope: Environment) -> RuntimeVal:
        while self.eval_condition(node.check, scope, 'while'):
            self.execute_block(node.body, scope)
        return make_null()

    ###########################################################################
    # Expressions
    ###########################################################################

    def evaluate_expression(self, node: Expr, scope: Environment) -> RuntimeVal:
        if isinstance(node, NumericLiteral):
            return make_number(node.value)
        if isinstance(node, StringLiteral):
            return StringVal(node.value)
        if isinstance(node, Identifier):
            return scope.lookup(node.symbol)
        if isinstance(node, AssignmentExpr):
            return self.eval_assignment(node, scope)
        if isinstance(node, LogicalExpr):
            return self.eval_logical(node, scope)
        if isinstance(node, BinaryExpr):
            left = self.evaluate(node.left, scope)
            right = self.evaluate(node.right, scope)
            return self.apply_binary_op(node.operator, left, right)
        if isinstance(node, UnaryExpr):
            return self.eval_unary(node, scope)
        if isinstance(node, CallExpr):
            func = self.evaluate(node.callee, scope)
            args = [self.evaluate(arg, scope) for arg in node.arguments]
            return self.call_function(func, args)
        if isinstance(node, MemberExpr):
            return self.eval_member(node, scope)
        if isinstance(node, ObjectLiteral):
            properties = {}
            for prop in node.properties:
                if prop.value is None:
                    properties[prop.key] = scope.lookup(prop.key)
                else:
                    properties[prop.key] = self.evaluate(prop.value, scope)
            return ObjectVal(properties)
        if isinstance(node, ArrayLiteral):
            return ArrayVal([self.evaluate(el, scope) for el in node.elements])
        raise EvaluationError(f"unsupported expression {type(node).__name__}")

    def eval_assignment(self, node: AssignmentExpr, scope: Environment) -> RuntimeVal:
        value = self.evaluate(node.value, scope)
        target = node.assignee
        if isinstance(target, Identifier):
            scope.assign(target.symbol, value)
            if self.debug_level >= 2:
                self.debug(f"assign {target.symbol} = {to_string(value)}")
            return value
        if isinstance(target, MemberExpr):
            container = self.evaluate(target.object, scope)
            key = self.member_key(target, scope)
            if isinstance(container, ObjectVal):
                container.properties[str(key)] = value
                return value
            if isinstance(container, ArrayVal):
                container.elements[self.array_index(container, key)] = value
                return value
            raise TypeMismatchError(f"cannot assign a member of {type_name(container)}")
        raise EvaluationError('invalid assignment target')

    def eval_logical(self, node: LogicalExpr, scope: Environment) -> RuntimeVal:
        left = self.evaluate(node.left, scope)
        self.expect_boolean(left, node.operator)
        # short-circuit
        if node.operator == 'and' and not left.value:
            return left
        if node.operator == 'or' and left.value:
            return left
        right = self.evaluate(node.right, scope)
        self.expect_boolean(right, node.operator)
        return right

    def eval_unary(self, node: UnaryExpr, scope: Environment) -> RuntimeVal:
        operand = self.evaluate(node.operand, scope)
        if node.operator == '!':
            self.expect_boolean(operand, '!')
            return make_bool(not operand.value)
        if node.operator in ('-', '+'):
            if not isinstance(operand, NumberVal):
                raise TypeMismatchError(f"unary {node.operator} expects number, got {type_name(operand)}")
            return make_number(-operand.value) if node.operator == '-' else operand
        raise EvaluationError(f"unsupported unary operator {node.operator}")

    def eval_member(self, node: MemberExpr, scope: Environment) -> RuntimeVal:
        target = self.evaluate(node.object, scope)
        key = self.member_key(node, scope)
        if isinstance(target, ObjectVal):
            return target.properties.get(str(key), make_null())
        if isinstance(target, ArrayVal):
            return target.elements[self.array_index(target, key)]
        raise TypeMismatchError(f"cannot access member {key!r} of {type_name(target)}")

    def member_key(self, node: MemberExpr, scope: Environment) -> Any:
        if not node.computed:
            return node.property.symbol
        key = self.evaluate(node.property, scope)
        if isinstance(key, (StringVal, NumberVal)):
            return key.value
        raise TypeMismatchError(f"member key must be string or number, got {type_name(key)}")

    def array_index(self, array: ArrayVal, key: Any) -> int:
        if isinstance(key, bool) or not isinstance(key, int):
            raise TypeMismatchError(f"array index must be an integer, got {key!r}")
        if key < 0 or key >= len(array.elements):
            raise EvaluationError(f"array index {key} out of range")
        return key

    def expect_boolean(self, value: RuntimeVal, operator: str):
        if not isinstance(value, BooleanVal):
            raise TypeMismatchError(f"operator {operator!r} expects boolean operands, got {type_name(value)}")

    def call_function(self, func: Any, args: List[RuntimeVal]) -> RuntimeVal:
        if not isinstance(func, FunctionVal):
            raise NotCallableError(f"{type_name(func)} is not callable")
        if len(args) != len(func.parameters):
            raise ArgumentCountError(f"{func.name} expects {len(func.parameters)} arguments, got {len(args)}")
        if self.call_depth >= self.max_call_depth:
            raise EvaluationError(f"maximum call depth exceeded ({self.max_call_depth})")
        # the call's scope hangs off the declaration scope, not the caller's
        call_scope = Environment(parent=func.declaration_scope)
        for name, arg in zip(func.parameters, args):
            call_scope.declare(name, arg)
        if self.debug_level >= 3:
            self.debug(f"call {func.name}({', '.join(to_string(a) for a in args)})")
        result: RuntimeVal = make_null()
        self.call_depth += 1
        try:
            for stmt in func.body:
                result = self.evaluate(stmt, call_scope)
        except ReturnSignal as signal:
            return signal.value
        except RecursionError:
            raise EvaluationError('maximum call depth exceeded') from None
        finally:
            self.call_depth -= 1
        return result

    def apply_binary_op(self, op: str, a: RuntimeVal, b: RuntimeVal) -> RuntimeVal:
        if op in ('==', '!='):
            eq = self.equal_values(a, b)
            return make_bool(eq if op == '==' else not eq)
        if op == '+' and (isinstance(a, StringVal) or isinstance(b, StringVal)):
            return StringVal(to_string(a) + to_string(b))
        if op in ('<', '>', '<=', '>='):
            if isinstance(a, NumberVal) and isinstance(b, NumberVal) or \
                    isinstance(a, StringVal) and isinstance(b, StringVal):
                x, y = a.value, b.value
                if op == '<': return make_bool(x < y)
                if op == '>': return make_bool(x > y)
                if op == '<=': return make_bool(x <= y)
                return make_bool(x >= y)
            raise TypeMismatchError(f"comparison not supported for {type_name(a)} and {type_name(b)}")
        if not (isinstance(a, NumberVal) and isinstance(b, NumberVal)):
            raise TypeMismatchError(f"unsupported {op} for {type_name(a)} and {type_name(b)}")
        try:
            return make_number(self.arithmetic(op, a.value, b.value))
        except OverflowError:
            raise EvaluationError(f"numeric overflow in {op}") from None

    def arithmetic(self, op: str, x: Any, y: Any) -> Any:
        if op == '+':
            return x + y
        if op == '-':
            return x - y
        if op == '*':
            return x * y
        if op == '/':
            if y == 0:
                raise EvaluationError('division by zero')
            # exact integer quotients never go through float
            if isinstance(x, int) and isinstance(y, int) and x % y == 0:
                return x // y
            return x / y
        if op == '%':
            if y == 0:
                raise EvaluationError('modulo by zero')
            # remainder takes the sign of the dividend
            if isinstance(x, int) and isinstance(y, int):
                r = abs(x) % abs(y)
                return -r if x < 0 else r
            return math.fmod(x, y)
        raise EvaluationError(f"unknown operator {op}")

    def equal_values(self, a: RuntimeVal, b: RuntimeVal) -> bool:
        # primitives compare by value, objects/arrays/functions by identity
        if isinstance(a, (NullVal, BooleanVal, NumberVal, StringVal)):
            return a == b
        return a is b


def run_program(source: str, debug_level: int = 0,
                line_terminator: str = DEFAULT_LINE_TERMINATOR) -> RuntimeVal:
    """Convenience function to parse and run a Quill program from source."""
    ast_program = parse_program(source, line_terminator)
    with Interpreter(debug_level=debug_level) as interpreter:
        return interpreter.run(ast_program)
