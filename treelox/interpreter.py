"""Tree-walking interpreter for the Lox language.

`Interpreter.execute` runs one statement and returns its control-flow
outcome: `None` for normal completion, or a `ReturnSignal` / `BreakSignal`
that every enclosing statement passes upward until a function call or a
loop consumes it. Genuine errors are `LoxError` exceptions.

The interpreter owns one "current environment". Blocks and function
calls replace it with a fresh child scope and put the previous one back
in a `finally` clause, so the current scope is correct after any exit,
including a runtime error.
"""

from __future__ import annotations

import math
import sys
from typing import Any, List, Optional

from .ast import (
    Stmt, Expr, Literal, Unary, Binary, Logical, Grouping, Variable, Assign,
    Call, ExprStmt, Print, VarDecl, Block, If, While, FunctionDecl, Return,
    Break, SourceLocation,
)
from .builtin_function import NativeFunction, standard_natives
from .environment import Environment
from .errors import (
    LoxRuntimeError, RuntimeTypeError, UninitializedVariableError,
    StackOverflowError, ReturnSignal, BreakSignal,
)
from .parser import parse_program
from .scanner import Token, TokenType
from .types import NIL, NilVal, UNDEFINED, UserFunction, is_number, to_string, type_name

MAX_CALL_DEPTH = 200
# Python frames one Lox call can take, and the highest recursion limit ever requested
FRAMES_PER_CALL = 20
RECURSION_LIMIT_CAP = 5000


def divide(a: float, b: float) -> float:
    # IEEE division: x/0 is +-inf and 0/0 is nan instead of an exception
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


class Interpreter:
    """Core interpreter that executes Lox statements."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt',
                 max_call_depth: int = MAX_CALL_DEPTH):
        self.globals = Environment()
        self.environment = self.globals
        self.debug_level = debug_level
        self.debug_file = debug_file
        self.debug_fp = None
        self.max_call_depth = max_call_depth
        self.call_depth = 0
        self.call_location = SourceLocation(0, 0)
        # room for max_call_depth nested calls before Python itself gives up
        recursion_limit = min(max_call_depth * FRAMES_PER_CALL, RECURSION_LIMIT_CAP)
        if recursion_limit > sys.getrecursionlimit():
            sys.setrecursionlimit(recursion_limit)
        for name, native in standard_natives().items():
            self.globals.define(name, native)

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp is None:
                self.debug_fp = open(self.debug_file, 'w', encoding='utf-8')
            self.debug_fp.write(msg + '\n')
            self.debug_fp.flush()

    def close(self):
        if self.debug_fp is not None:
            self.debug_fp.close()
            self.debug_fp = None

    # Public API
    def interpret(self, statements: List[Stmt], env: Optional[Environment] = None):
        """Run top-level statements in `env` (the globals by default)."""
        previous = self.environment
        self.environment = env if env is not None else self.globals
        try:
            for stmt in statements:
                if self.debug_level >= 1:
                    self.debug(f"execute {type(stmt).__name__}")
                result = self.execute(stmt)
                if isinstance(result, ReturnSignal):
                    raise LoxRuntimeError("Can't return from top-level code.")
                if isinstance(result, BreakSignal):
                    raise LoxRuntimeError("Can't use 'break' outside of a loop.", result.line, result.column)
        except RecursionError:
            location = self.call_location
            raise StackOverflowError("Stack overflow.", location.line, location.column) from None
        finally:
            self.environment = previous

    def run(self, source: str):
        """Parse and run a complete program against the persisted globals."""
        self.interpret(parse_program(source))

    def execute_block(self, statements: List[Stmt], env: Environment) -> Any:
        previous = self.environment
        self.environment = env
        try:
            for stmt in statements:
                result = self.execute(stmt)
                # propagate return and break signals
                if result is not None:
                    return result
            return None
        finally:
            self.environment = previous

    def execute(self, node: Stmt) -> Any:
        env = self.environment
        if isinstance(node, ExprStmt):
            self.evaluate(node.expression)
            return None
        if isinstance(node, Print):
            value = self.evaluate(node.expression)
            print(to_string(value))
            return None
        if isinstance(node, VarDecl):
            value = self.evaluate(node.initializer) if node.initializer is not None else UNDEFINED
            env.define(node.name.name, value)
            if self.debug_level >= 2:
                self.debug(f"declare {node.name.name}: {type_name(value)} = {value!r}")
            return None
        if isinstance(node, Block):
            return self.execute_block(node.statements, Environment(parent=env))
        if isinstance(node, If):
            cond = self.evaluate(node.condition)
            truthy = self.is_truthy(cond, node.location)
            if self.debug_level >= 3:
                self.debug(f"if condition {cond!r} -> {truthy}")
            if truthy:
                return self.execute(node.then_branch)
            if node.else_branch is not None:
                return self.execute(node.else_branch)
            return None
        if isinstance(node, While):
            while True:
                cond = self.evaluate(node.condition)
                truthy = self.is_truthy(cond, node.location)
                if self.debug_level >= 3:
                    self.debug(f"while condition {cond!r} -> {truthy}")
                if not truthy:
                    break
                res = self.execute(node.body)
                if isinstance(res, BreakSignal):
                    break
                if isinstance(res, ReturnSignal):
                    return res
            return None
        if isinstance(node, FunctionDecl):
            env.define(node.name.name, UserFunction(node))
            if self.debug_level >= 2:
                self.debug(f"define function {node.name.name}")
            return None
        if isinstance(node, Return):
            value = self.evaluate(node.value) if node.value is not None else NIL
            return ReturnSignal(value)
        if isinstance(node, Break):
            return BreakSignal(node.location.line, node.location.column)
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def evaluate(self, node: Expr) -> Any:
        if isinstance(node, Literal):
            if node.literal_type == 'Nil':
                return NIL
            return node.value
        if isinstance(node, Grouping):
            return self.evaluate(node.expression)
        if isinstance(node, Variable):
            value = self.environment.get(node.name)
            if value is UNDEFINED:
                raise UninitializedVariableError(node.name.name, node.name.line, node.name.column)
            return value
        if isinstance(node, Assign):
            value = self.evaluate(node.value)
            self.environment.assign(node.name, value)
            return value
        if isinstance(node, Unary):
            operand = self.evaluate(node.operand)
            op = node.operator
            if op.type == TokenType.MINUS:
                if not is_number(operand):
                    raise RuntimeTypeError(
                        f"Operand of '-' must be a number, got {type_name(operand)}.", op.line, op.column)
                return -operand
            if op.type == TokenType.BANG:
                return not self.is_truthy(operand, SourceLocation(op.line, op.column))
            raise RuntimeTypeError(f"Unsupported unary operator '{op.lexeme}'.", op.line, op.column)
        if isinstance(node, Logical):
            left = self.evaluate(node.left)
            op = node.operator
            left_truthy = self.is_truthy(left, SourceLocation(op.line, op.column))
            if op.type == TokenType.OR:
                if left_truthy:
                    return left
            elif not left_truthy:
                return left
            return self.evaluate(node.right)
        if isinstance(node, Binary):
            left = self.evaluate(node.left)
            right = self.evaluate(node.right)
            return self.apply_binary_op(node.operator, left, right)
        if isinstance(node, Call):
            callee = self.evaluate(node.callee)
            args = [self.evaluate(arg) for arg in node.arguments]
            return self.call_function(callee, args, node.location)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def call_function(self, func: Any, args: List[Any], location: SourceLocation) -> Any:
        if not isinstance(func, (NativeFunction, UserFunction)):
            raise RuntimeTypeError("Can only call functions and classes.", location.line, location.column)
        if len(args) != func.arity:
            raise RuntimeTypeError(
                f"{func.name} expects {func.arity} arguments but got {len(args)}.",
                location.line, location.column)
        if self.debug_level >= 4:
            self.debug(f"call {func.name}({', '.join(repr(a) for a in args)})")
        if isinstance(func, NativeFunction):
            return func.fn(self, args)
        self.call_location = location
        if self.call_depth >= self.max_call_depth:
            raise StackOverflowError("Stack overflow.", location.line, location.column)
        # the call scope encloses the caller's scope, not the declaring one
        call_env = Environment(parent=self.environment)
        for param, arg in zip(func.declaration.params, args):
            call_env.define(param.name, arg)
        self.call_depth += 1
        try:
            res = self.execute_block(func.declaration.body, call_env)
        finally:
            self.call_depth -= 1
        if isinstance(res, ReturnSignal):
            ret_val = res.value
        elif isinstance(res, BreakSignal):
            raise LoxRuntimeError("Can't use 'break' outside of a loop.", res.line, res.column)
        else:
            ret_val = NIL
        if self.debug_level >= 4:
            self.debug(f"return {func.name} -> {ret_val!r}")
        return ret_val

    def is_truthy(self, value: Any, location: SourceLocation) -> bool:
        # only booleans and numbers have a truth value; a number is true when > 0
        if isinstance(value, bool):
            return value
        if is_number(value):
            return value > 0.0
        raise RuntimeTypeError(
            f"{type_name(value)} cannot be used as a condition; expected Bool or Number.",
            location.line, location.column)

    def apply_binary_op(self, op: Token, a: Any, b: Any) -> Any:
        kind = op.type
        if is_number(a) and is_number(b):
            if kind == TokenType.PLUS:
                return a + b
            if kind == TokenType.MINUS:
                return a - b
            if kind == TokenType.STAR:
                return a * b
            if kind == TokenType.SLASH:
                return divide(a, b)
            if kind == TokenType.GREATER:
                return a > b
            if kind == TokenType.GREATER_EQUAL:
                return a >= b
            if kind == TokenType.LESS:
                return a < b
            if kind == TokenType.LESS_EQUAL:
                return a <= b
            if kind == TokenType.EQUAL_EQUAL:
                return a == b
            if kind == TokenType.BANG_EQUAL:
                return a != b
        elif isinstance(a, str) and isinstance(b, str):
            if kind == TokenType.PLUS:
                return a + b
            if kind == TokenType.EQUAL_EQUAL:
                return a == b
            if kind == TokenType.BANG_EQUAL:
                return a != b
        elif isinstance(a, bool) and isinstance(b, bool):
            if kind == TokenType.EQUAL_EQUAL:
                return a == b
            if kind == TokenType.BANG_EQUAL:
                return a != b
        elif isinstance(a, NilVal) and isinstance(b, NilVal):
            if kind == TokenType.EQUAL_EQUAL:
                return True
            if kind == TokenType.BANG_EQUAL:
                return False
        raise RuntimeTypeError(
            f"Unsupported operands for '{op.lexeme}': {type_name(a)} and {type_name(b)}.",
            op.line, op.column)


def run_program(source: str, debug_level: int = 0) -> Interpreter:
    """Convenience function to parse and run a Lox program from source string."""
    interpreter = Interpreter(debug_level=debug_level)
    try:
        interpreter.run(source)
    finally:
        interpreter.close()
    return interpreter
