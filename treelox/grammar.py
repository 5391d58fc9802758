"""Grammar-driven frontend for the Lox language.

This module parses Lox with a Lark LALR(1) parser instead of the
hand-written recursive-descent parser in parser.py. The parse tree is
turned into exactly the same AST by `ASTTransformer`, so the interpreter
cannot tell which frontend produced a program.

Two checks cannot be expressed in the grammar and run afterwards:

1. **Context checks**: `return` outside a function and `break` outside a
   loop are found by walking the finished AST.
2. **Limits**: the 255 parameter/argument caps and the assignment target
   rule are enforced inside the transformer.

Lark stops at the first syntax error, so unlike the recursive-descent
parser this frontend reports at most one syntax error per parse.
"""

from __future__ import annotations

from typing import List, Optional

from lark import Lark, Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken, VisitError

from .ast import (
    Stmt, Literal, Unary, Binary, Logical, Grouping, Variable, Assign, Call,
    ExprStmt, Print, VarDecl, Block, If, While, FunctionDecl, Return, Break,
    Symbol, SourceLocation,
)
from .errors import (
    LoxError, ScanError, ScanErrors, ParseError, ParseErrors,
    UnexpectedTokenError, MaxParamsExceededError, ReturnNotInFunctionError,
    BreakNotInLoopError, InvalidAssignmentTargetError, TooManyArgumentsError,
    NestingTooDeepError,
)
from .parser import MAX_ARGUMENTS
from .scanner import OPERATORS, Token

RESERVED_WORDS = {'class', 'this', 'super'}


LOX_GRAMMAR = r"""
    ?start: program
    program: declaration*

    // Statements
    ?declaration: fun_decl
                | var_decl
                | statement

    fun_decl: "fun" IDENT "(" [params] ")" block
    params: IDENT ("," IDENT)*
    var_decl: "var" IDENT ["=" expression] ";"

    ?statement: expr_stmt
              | for_stmt
              | if_stmt
              | print_stmt
              | return_stmt
              | while_stmt
              | break_stmt
              | block

    expr_stmt: expression ";"
    for_stmt: FOR "(" for_init [expression] ";" [expression] ")" statement
    for_init: var_decl | expr_stmt | ";"
    // a dangling else binds to the nearest if; LALR resolves it as shift
    if_stmt: IF "(" expression ")" statement ["else" statement]
    print_stmt: "print" expression ";"
    return_stmt: RETURN [expression] ";"
    while_stmt: WHILE "(" expression ")" statement
    break_stmt: BREAK ";"
    block: "{" declaration* "}"

    // Expressions with precedence
    ?expression: assignment
    ?assignment: logic_or "=" assignment -> assign
               | logic_or
    ?logic_or: logic_and (OR logic_and)*
    ?logic_and: equality (AND equality)*
    ?equality: comparison ((EQUAL_EQUAL | BANG_EQUAL) comparison)*
    ?comparison: term ((GREATER | GREATER_EQUAL | LESS | LESS_EQUAL) term)*
    ?term: factor ((PLUS | MINUS) factor)*
    ?factor: unary ((STAR | SLASH) unary)*
    ?unary: (BANG | MINUS) unary
          | call
    ?call: primary
         | call "(" [arguments] ")"
    arguments: expression ("," expression)*
    ?primary: "true" -> true
            | "false" -> false
            | "nil" -> nil
            | NUMBER -> number
            | STRING -> string
            | IDENT -> variable
            | "(" expression ")" -> grouping

    // Tokens
    FOR: "for"
    IF: "if"
    WHILE: "while"
    RETURN: "return"
    BREAK: "break"
    OR: "or"
    AND: "and"
    BANG_EQUAL: "!="
    EQUAL_EQUAL: "=="
    GREATER_EQUAL: ">="
    GREATER: ">"
    LESS_EQUAL: "<="
    LESS: "<"
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    BANG: "!"

    IDENT: /[^\W\d]\w*/
    NUMBER: /[0-9]+(\.[0-9]+)?/
    STRING: /"[^"]*"/

    %import common.WS
    %ignore WS

    // Comments
    COMMENT: /\/\/[^\n]*/
    %ignore COMMENT
"""


LOX_PARSER = Lark(
    LOX_GRAMMAR,
    parser='lalr',
    lexer='basic',
    propagate_positions=True,
    maybe_placeholders=True,
)


def location(token) -> SourceLocation:
    return SourceLocation(token.line, token.column)


class ASTTransformer(Transformer):
    """Transforms the Lark parse tree into the AST."""

    def symbol(self, token) -> Symbol:
        if token.value in RESERVED_WORDS:
            raise UnexpectedTokenError(f"'{token.value}' is not supported.", token.line, token.column)
        return Symbol(str(token), token.line, token.column)

    def operator(self, token) -> Token:
        return Token(OPERATORS[token.value], token.value, None, token.line, token.column)

    def fold(self, items, node_class):
        # items pattern: operand (operator operand)*, folded to the left
        expr = items[0]
        for i in range(1, len(items), 2):
            expr = node_class(expr, self.operator(items[i]), items[i + 1])
        return expr

    def program(self, items):
        return list(items)

    # Statements
    def fun_decl(self, items):
        name, params, body = items
        params = params or []
        if len(params) > MAX_ARGUMENTS:
            extra = params[MAX_ARGUMENTS]
            raise MaxParamsExceededError(
                f"Can't have more than {MAX_ARGUMENTS} parameters.", extra.line, extra.column)
        return FunctionDecl(self.symbol(name), params, body.statements)

    def params(self, items):
        return [self.symbol(token) for token in items]

    def var_decl(self, items):
        name, initializer = items
        return VarDecl(self.symbol(name), initializer)

    def expr_stmt(self, items):
        return ExprStmt(items[0])

    def for_init(self, items):
        return items[0] if items else None

    def for_stmt(self, items):
        keyword, initializer, condition, increment, body = items
        if increment is not None:
            body = Block([body, ExprStmt(increment)])
        if condition is None:
            condition = Literal(True, 'Bool')
        loop = While(condition, body, location(keyword))
        if initializer is not None:
            return Block([initializer, loop])
        return loop

    def if_stmt(self, items):
        keyword, condition, then_branch, else_branch = items
        return If(condition, then_branch, else_branch, location(keyword))

    def print_stmt(self, items):
        return Print(items[0])

    def return_stmt(self, items):
        keyword, value = items
        return Return(location(keyword), value)

    def while_stmt(self, items):
        keyword, condition, body = items
        return While(condition, body, location(keyword))

    def break_stmt(self, items):
        return Break(location(items[0]))

    def block(self, items):
        return Block(list(items))

    # Expressions
    @v_args(meta=True)
    def assign(self, meta, items):
        target, value = items
        if not isinstance(target, Variable):
            raise InvalidAssignmentTargetError("Invalid assignment target.", meta.line, meta.column)
        return Assign(target.name, value)

    def logic_or(self, items):
        return self.fold(items, Logical)

    def logic_and(self, items):
        return self.fold(items, Logical)

    def equality(self, items):
        return self.fold(items, Binary)

    def comparison(self, items):
        return self.fold(items, Binary)

    def term(self, items):
        return self.fold(items, Binary)

    def factor(self, items):
        return self.fold(items, Binary)

    def unary(self, items):
        op, operand = items
        return Unary(self.operator(op), operand)

    @v_args(meta=True)
    def call(self, meta, items):
        callee, arguments = items
        arguments = arguments or []
        # the closing paren ends the call
        paren = SourceLocation(meta.end_line, meta.end_column - 1)
        if len(arguments) > MAX_ARGUMENTS:
            raise TooManyArgumentsError(
                f"Can't have more than {MAX_ARGUMENTS} arguments.", paren.line, paren.column)
        return Call(callee, paren, arguments)

    def arguments(self, items):
        return list(items)

    def true(self, items):
        return Literal(True, 'Bool')

    def false(self, items):
        return Literal(False, 'Bool')

    def nil(self, items):
        return Literal(None, 'Nil')

    def number(self, items):
        return Literal(float(items[0]), 'Number')

    def string(self, items):
        return Literal(str(items[0])[1:-1], 'String')

    def variable(self, items):
        return Variable(self.symbol(items[0]))

    def grouping(self, items):
        return Grouping(items[0])


def check_control_flow(statements: List[Stmt], in_function: bool = False, in_loop: bool = False,
                       errors: Optional[List[ParseError]] = None) -> List[ParseError]:
    """Find every `return` outside a function and `break` outside a loop."""
    if errors is None:
        errors = []
    for stmt in statements:
        if isinstance(stmt, Return) and not in_function:
            errors.append(ReturnNotInFunctionError(
                "Can't return from top-level code.", stmt.location.line, stmt.location.column))
        elif isinstance(stmt, Break) and not in_loop:
            errors.append(BreakNotInLoopError(
                "Can't use 'break' outside of a loop.", stmt.location.line, stmt.location.column))
        elif isinstance(stmt, Block):
            check_control_flow(stmt.statements, in_function, in_loop, errors)
        elif isinstance(stmt, If):
            branches = [stmt.then_branch] if stmt.else_branch is None else [stmt.then_branch, stmt.else_branch]
            check_control_flow(branches, in_function, in_loop, errors)
        elif isinstance(stmt, While):
            check_control_flow([stmt.body], in_function, True, errors)
        elif isinstance(stmt, FunctionDecl):
            check_control_flow(stmt.body, True, False, errors)
    return errors


def nesting_error(tree) -> NestingTooDeepError:
    # the transformer gives no position when it overflows; report the program start
    meta = getattr(tree, "meta", None)
    return NestingTooDeepError("Too much nesting.", getattr(meta, "line", 1), getattr(meta, "column", 1))


def parse_program(source: str) -> List[Stmt]:
    """Parse Lox source code with the Lark grammar.

    Raises `ScanErrors` for characters no token can start with and
    `ParseErrors` for everything else, mirroring parser.parse_program.
    """
    tree = None
    try:
        tree = LOX_PARSER.parse(source)
        statements = ASTTransformer().transform(tree)
        errors = check_control_flow(statements)
    except UnexpectedCharacters as e:
        raise ScanErrors([ScanError(f"Unexpected character {e.char!r}.", e.line, e.column)]) from None
    except UnexpectedToken as e:
        if e.token.type == '$END':
            error = UnexpectedTokenError("Unexpected end of input.", e.line, e.column)
        else:
            error = UnexpectedTokenError(f"Unexpected token {e.token.value!r}.", e.line, e.column)
        raise ParseErrors([error]) from None
    except UnexpectedInput as e:
        raise ParseErrors([UnexpectedTokenError("Unexpected end of input.", e.line, e.column)]) from None
    except RecursionError:
        raise ParseErrors([nesting_error(tree)]) from None
    except VisitError as e:
        if isinstance(e.orig_exc, RecursionError):
            raise ParseErrors([nesting_error(tree)]) from None
        if isinstance(e.orig_exc, ParseError):
            raise ParseErrors([e.orig_exc]) from None
        if isinstance(e.orig_exc, LoxError):
            raise e.orig_exc from None
        raise
    if errors:
        raise ParseErrors(errors)
    return statements
