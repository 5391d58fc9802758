"""Abstract Syntax Tree (AST) definitions for the Lox language.

Expressions and statements are plain dataclasses. Every node owns its
children outright; nothing is shared between nodes. Operators keep the
scanner `Token` they came from so runtime errors can point at them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .scanner import Token


@dataclass(eq=False)
class Symbol:
    """An identifier occurrence. Compares and hashes by name only."""
    name: str
    line: int = 0
    column: int = 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Symbol):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    @staticmethod
    def from_token(token: Token) -> 'Symbol':
        return Symbol(token.lexeme, token.line, token.column)


@dataclass(frozen=True)
class SourceLocation:
    line: int
    column: int


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


###############################################################################
# Expressions
###############################################################################


@dataclass
class Expr(Node):
    pass


@dataclass
class Literal(Expr):
    value: Any
    literal_type: str  # 'Number', 'String', 'Bool' or 'Nil'


@dataclass
class Unary(Expr):
    operator: Token
    operand: Expr


@dataclass
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass
class Logical(Expr):
    left: Expr
    operator: Token  # AND or OR
    right: Expr


@dataclass
class Grouping(Expr):
    expression: Expr


@dataclass
class Variable(Expr):
    name: Symbol


@dataclass
class Assign(Expr):
    name: Symbol
    value: Expr


@dataclass
class Call(Expr):
    callee: Expr
    location: SourceLocation
    arguments: List[Expr] = field(default_factory=list)


###############################################################################
# Statements
###############################################################################


@dataclass
class Stmt(Node):
    pass


@dataclass
class ExprStmt(Stmt):
    expression: Expr


@dataclass
class Print(Stmt):
    expression: Expr


@dataclass
class VarDecl(Stmt):
    name: Symbol
    initializer: Optional[Expr] = None


@dataclass
class Block(Stmt):
    statements: List[Stmt]


@dataclass
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None
    location: SourceLocation = SourceLocation(0, 0)


@dataclass
class While(Stmt):
    condition: Expr
    body: Stmt
    location: SourceLocation = SourceLocation(0, 0)


@dataclass
class FunctionDecl(Stmt):
    name: Symbol
    params: List[Symbol]
    body: List[Stmt]


@dataclass
class Return(Stmt):
    location: SourceLocation
    value: Optional[Expr] = None


@dataclass
class Break(Stmt):
    location: SourceLocation = SourceLocation(0, 0)
