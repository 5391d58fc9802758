"""Recursive-descent parser for the Lox language.

Expressions are parsed one precedence level per method, lowest first:

    assignment -> or -> and -> equality -> comparison -> term -> factor
               -> unary -> call -> primary

Each binary level parses an operand at the next level up and then loops
over operators of its own level, so chains associate to the left.
Assignment is the exception: it recurses into itself for the right-hand
side and therefore associates to the right.

A statement that fails to parse is recorded and the parser skips ahead
to the next statement boundary, so one pass can report several
independent errors. `parse` raises them together as a `ParseErrors`.
"""

from __future__ import annotations

from typing import List, Optional

from .ast import (
    Expr, Stmt, Literal, Unary, Binary, Logical, Grouping, Variable, Assign,
    Call, ExprStmt, Print, VarDecl, Block, If, While, FunctionDecl, Return,
    Break, Symbol, SourceLocation,
)
from .errors import (
    ParseError, ParseErrors, UnexpectedTokenError, TokenMismatchError,
    MaxParamsExceededError, ReturnNotInFunctionError, BreakNotInLoopError,
    InvalidAssignmentTargetError, TooManyArgumentsError,
    ExpectedExpressionError, InvalidOperatorUsageError, NestingTooDeepError,
)
from .scanner import Token, TokenType, scan_tokens

MAX_ARGUMENTS = 255

# Tokens that start a statement; synchronization stops in front of them.
STATEMENT_KEYWORDS = {
    TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR,
    TokenType.IF, TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
}

EQUALITY_OPS = [TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL]
COMPARISON_OPS = [TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL]
TERM_OPS = [TokenType.MINUS, TokenType.PLUS]
FACTOR_OPS = [TokenType.SLASH, TokenType.STAR]


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.errors: List[ParseError] = []
        self.loop_depth = 0
        self.function_depth = 0

    # Token cursor

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def advance(self) -> Token:
        if not self.is_at_end():
            self.pos += 1
        return self.previous()

    def match(self, *types: TokenType) -> bool:
        if self.is_at_end():
            return False
        return self.peek().type in types

    def consume(self, expected: TokenType, message: str) -> Token:
        if self.match(expected):
            return self.advance()
        raise TokenMismatchError(expected, self.peek(), message)

    def synchronize(self):
        """Skip tokens until the start of the next statement."""
        self.advance()
        while not self.is_at_end():
            if self.previous().type == TokenType.SEMICOLON:
                return
            if self.peek().type in STATEMENT_KEYWORDS:
                return
            self.advance()

    # Statements

    def parse(self) -> List[Stmt]:
        statements: List[Stmt] = []
        try:
            while not self.is_at_end():
                stmt = self.parse_declaration()
                if stmt is not None:
                    statements.append(stmt)
        except RecursionError:
            # parsing stops here; the rest of the input is not checked
            token = self.peek()
            self.errors.append(NestingTooDeepError("Too much nesting.", token.line, token.column))
        if self.errors:
            raise ParseErrors(self.errors)
        return statements

    def parse_declaration(self) -> Optional[Stmt]:
        try:
            if self.match(TokenType.FUN):
                self.advance()
                return self.parse_function()
            if self.match(TokenType.VAR):
                self.advance()
                return self.parse_var_decl()
            if self.match(TokenType.CLASS):
                token = self.peek()
                raise UnexpectedTokenError("Classes are not supported.", token.line, token.column)
            return self.parse_statement()
        except ParseError as e:
            self.errors.append(e)
            self.synchronize()
            return None

    def parse_statement(self) -> Stmt:
        if self.match(TokenType.FOR):
            return self.parse_for_stmt()
        if self.match(TokenType.BREAK):
            return self.parse_break_stmt()
        if self.match(TokenType.IF):
            return self.parse_if_stmt()
        if self.match(TokenType.PRINT):
            self.advance()
            value = self.parse_expression()
            self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
            return Print(value)
        if self.match(TokenType.RETURN):
            return self.parse_return_stmt()
        if self.match(TokenType.WHILE):
            return self.parse_while_stmt()
        if self.match(TokenType.LEFT_BRACE):
            self.advance()
            return Block(self.parse_block())
        return self.parse_expr_stmt()

    def parse_expr_stmt(self) -> ExprStmt:
        expr = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ExprStmt(expr)

    def parse_var_decl(self) -> VarDecl:
        name = self.consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer: Optional[Expr] = None
        if self.match(TokenType.EQUAL):
            self.advance()
            initializer = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return VarDecl(Symbol.from_token(name), initializer)

    def parse_function(self) -> FunctionDecl:
        name = self.consume(TokenType.IDENTIFIER, "Expect function name.")
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after function name.")
        params: List[Symbol] = []
        if not self.match(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    token = self.peek()
                    raise MaxParamsExceededError(
                        f"Can't have more than {MAX_ARGUMENTS} parameters.", token.line, token.column)
                param = self.consume(TokenType.IDENTIFIER, "Expect parameter name.")
                params.append(Symbol.from_token(param))
                if not self.match(TokenType.COMMA):
                    break
                self.advance()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        self.consume(TokenType.LEFT_BRACE, "Expect '{' before function body.")
        # break never crosses a function boundary
        saved_loop_depth = self.loop_depth
        self.loop_depth = 0
        self.function_depth += 1
        try:
            body = self.parse_block()
        finally:
            self.function_depth -= 1
            self.loop_depth = saved_loop_depth
        return FunctionDecl(Symbol.from_token(name), params, body)

    def parse_block(self) -> List[Stmt]:
        # the opening brace has already been consumed
        statements: List[Stmt] = []
        while not self.match(TokenType.RIGHT_BRACE) and not self.is_at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def parse_if_stmt(self) -> If:
        keyword = self.advance()
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.parse_expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self.parse_statement()
        else_branch: Optional[Stmt] = None
        if self.match(TokenType.ELSE):
            self.advance()
            else_branch = self.parse_statement()
        return If(condition, then_branch, else_branch, SourceLocation(keyword.line, keyword.column))

    def parse_loop_body(self) -> Stmt:
        self.loop_depth += 1
        try:
            return self.parse_statement()
        finally:
            self.loop_depth -= 1

    def parse_while_stmt(self) -> While:
        keyword = self.advance()
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.parse_expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        body = self.parse_loop_body()
        return While(condition, body, SourceLocation(keyword.line, keyword.column))

    def parse_for_stmt(self) -> Stmt:
        keyword = self.advance()
        location = SourceLocation(keyword.line, keyword.column)
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")
        initializer: Optional[Stmt]
        if self.match(TokenType.SEMICOLON):
            self.advance()
            initializer = None
        elif self.match(TokenType.VAR):
            self.advance()
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition: Optional[Expr] = None
        if not self.match(TokenType.SEMICOLON):
            condition = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment: Optional[Expr] = None
        if not self.match(TokenType.RIGHT_PAREN):
            increment = self.parse_expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")
        body = self.parse_loop_body()

        if increment is not None:
            body = Block([body, ExprStmt(increment)])
        if condition is None:
            condition = Literal(True, 'Bool')
        loop: Stmt = While(condition, body, location)
        if initializer is not None:
            loop = Block([initializer, loop])
        return loop

    def parse_break_stmt(self) -> Break:
        keyword = self.advance()
        if self.loop_depth == 0:
            raise BreakNotInLoopError("Can't use 'break' outside of a loop.", keyword.line, keyword.column)
        self.consume(TokenType.SEMICOLON, "Expect ';' after 'break'.")
        return Break(SourceLocation(keyword.line, keyword.column))

    def parse_return_stmt(self) -> Return:
        keyword = self.advance()
        if self.function_depth == 0:
            raise ReturnNotInFunctionError("Can't return from top-level code.", keyword.line, keyword.column)
        value: Optional[Expr] = None
        if not self.match(TokenType.SEMICOLON):
            value = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return Return(SourceLocation(keyword.line, keyword.column), value)

    # Expressions

    def parse_expression(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        expr = self.parse_or()
        if self.match(TokenType.EQUAL):
            equals = self.advance()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            raise InvalidAssignmentTargetError("Invalid assignment target.", equals.line, equals.column)
        return expr

    def parse_or(self) -> Expr:
        expr = self.parse_and()
        while self.match(TokenType.OR):
            operator = self.advance()
            right = self.parse_and()
            expr = Logical(expr, operator, right)
        return expr

    def parse_and(self) -> Expr:
        expr = self.parse_equality()
        while self.match(TokenType.AND):
            operator = self.advance()
            right = self.parse_equality()
            expr = Logical(expr, operator, right)
        return expr

    def parse_equality(self) -> Expr:
        expr = self.parse_comparison()
        while self.match(*EQUALITY_OPS):
            operator = self.advance()
            right = self.parse_comparison()
            expr = Binary(expr, operator, right)
        return expr

    def parse_comparison(self) -> Expr:
        expr = self.parse_term()
        while self.match(*COMPARISON_OPS):
            operator = self.advance()
            right = self.parse_term()
            expr = Binary(expr, operator, right)
        return expr

    def parse_term(self) -> Expr:
        expr = self.parse_factor()
        while self.match(*TERM_OPS):
            operator = self.advance()
            right = self.parse_factor()
            expr = Binary(expr, operator, right)
        return expr

    def parse_factor(self) -> Expr:
        expr = self.parse_unary()
        while self.match(*FACTOR_OPS):
            operator = self.advance()
            right = self.parse_unary()
            expr = Binary(expr, operator, right)
        return expr

    def parse_unary(self) -> Expr:
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator = self.advance()
            operand = self.parse_unary()
            return Unary(operator, operand)
        return self.parse_call()

    def parse_call(self) -> Expr:
        expr = self.parse_primary()
        while self.match(TokenType.LEFT_PAREN):
            self.advance()
            expr = self.finish_call(expr)
        return expr

    def finish_call(self, callee: Expr) -> Call:
        arguments: List[Expr] = []
        if not self.match(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    token = self.peek()
                    raise TooManyArgumentsError(
                        f"Can't have more than {MAX_ARGUMENTS} arguments.", token.line, token.column)
                arguments.append(self.parse_expression())
                if not self.match(TokenType.COMMA):
                    break
                self.advance()
        paren = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, SourceLocation(paren.line, paren.column), arguments)

    def parse_primary(self) -> Expr:
        token = self.peek()
        if token.type == TokenType.FALSE:
            self.advance()
            return Literal(False, 'Bool')
        if token.type == TokenType.TRUE:
            self.advance()
            return Literal(True, 'Bool')
        if token.type == TokenType.NIL:
            self.advance()
            return Literal(None, 'Nil')
        if token.type == TokenType.NUMBER:
            self.advance()
            return Literal(token.literal, 'Number')
        if token.type == TokenType.STRING:
            self.advance()
            return Literal(token.literal, 'String')
        if token.type == TokenType.IDENTIFIER:
            self.advance()
            return Variable(Symbol.from_token(token))
        if token.type == TokenType.LEFT_PAREN:
            self.advance()
            expr = self.parse_expression()
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)
        if token.type in (TokenType.THIS, TokenType.SUPER):
            raise UnexpectedTokenError(f"'{token.lexeme}' is not supported.", token.line, token.column)
        if token.type in EQUALITY_OPS or token.type in COMPARISON_OPS \
                or token.type in (TokenType.PLUS, TokenType.SLASH, TokenType.STAR):
            # parse and drop the right operand so the error points at the operator alone
            self.advance()
            self.parse_unary()
            raise InvalidOperatorUsageError(
                f"Binary operator '{token.lexeme}' is missing its left operand.", token.line, token.column)
        raise ExpectedExpressionError(
            f"Expect expression, found {token.type.name}.", token.line, token.column)


def parse(tokens: List[Token]) -> List[Stmt]:
    """Parse a token list into top-level statements, raising `ParseErrors` on failure."""
    return Parser(tokens).parse()


def parse_program(source: str) -> List[Stmt]:
    """Scan and parse Lox source code."""
    return parse(scan_tokens(source))
