"""JSON serialization/deserialization for the Lox AST.

This module converts between AST dataclasses and plain Python dict/list
structures suitable for JSON encoding. Operator tokens are stored with
their type name and position so a loaded program reports runtime errors
at the same places as the original.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .ast import (
    Literal, Unary, Binary, Logical, Grouping, Variable, Assign, Call,
    ExprStmt, Print, VarDecl, Block, If, While, FunctionDecl, Return, Break,
    Symbol, SourceLocation,
)
from .scanner import Token, TokenType


def symbol_to_obj(s: Symbol) -> Dict[str, Any]:
    return {"name": s.name, "line": s.line, "column": s.column}


def symbol_from_obj(o: Dict[str, Any]) -> Symbol:
    return Symbol(o["name"], o.get("line", 0), o.get("column", 0))


def location_to_obj(loc: SourceLocation) -> List[int]:
    return [loc.line, loc.column]


def location_from_obj(o: List[int]) -> SourceLocation:
    return SourceLocation(o[0], o[1])


def token_to_obj(t: Token) -> Dict[str, Any]:
    return {"type": t.type.name, "lexeme": t.lexeme, "line": t.line, "column": t.column}


def token_from_obj(o: Dict[str, Any]) -> Token:
    return Token(TokenType[o["type"]], o["lexeme"], None, o["line"], o["column"])


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None
    if isinstance(node, list):
        return [ast_to_obj(n) for n in node]

    # Expressions
    if isinstance(node, Literal):
        return {"type": "Literal", "value": node.value, "literal_type": node.literal_type}
    if isinstance(node, Unary):
        return {"type": "Unary", "operator": token_to_obj(node.operator), "operand": ast_to_obj(node.operand)}
    if isinstance(node, Binary):
        return {
            "type": "Binary",
            "left": ast_to_obj(node.left),
            "operator": token_to_obj(node.operator),
            "right": ast_to_obj(node.right),
        }
    if isinstance(node, Logical):
        return {
            "type": "Logical",
            "left": ast_to_obj(node.left),
            "operator": token_to_obj(node.operator),
            "right": ast_to_obj(node.right),
        }
    if isinstance(node, Grouping):
        return {"type": "Grouping", "expression": ast_to_obj(node.expression)}
    if isinstance(node, Variable):
        return {"type": "Variable", "name": symbol_to_obj(node.name)}
    if isinstance(node, Assign):
        return {"type": "Assign", "name": symbol_to_obj(node.name), "value": ast_to_obj(node.value)}
    if isinstance(node, Call):
        return {
            "type": "Call",
            "callee": ast_to_obj(node.callee),
            "location": location_to_obj(node.location),
            "arguments": [ast_to_obj(a) for a in node.arguments],
        }

    # Statements
    if isinstance(node, ExprStmt):
        return {"type": "ExprStmt", "expression": ast_to_obj(node.expression)}
    if isinstance(node, Print):
        return {"type": "Print", "expression": ast_to_obj(node.expression)}
    if isinstance(node, VarDecl):
        return {"type": "VarDecl", "name": symbol_to_obj(node.name), "initializer": ast_to_obj(node.initializer)}
    if isinstance(node, Block):
        return {"type": "Block", "statements": [ast_to_obj(s) for s in node.statements]}
    if isinstance(node, If):
        return {
            "type": "If",
            "condition": ast_to_obj(node.condition),
            "then_branch": ast_to_obj(node.then_branch),
            "else_branch": ast_to_obj(node.else_branch),
            "location": location_to_obj(node.location),
        }
    if isinstance(node, While):
        return {
            "type": "While",
            "condition": ast_to_obj(node.condition),
            "body": ast_to_obj(node.body),
            "location": location_to_obj(node.location),
        }
    if isinstance(node, FunctionDecl):
        return {
            "type": "FunctionDecl",
            "name": symbol_to_obj(node.name),
            "params": [symbol_to_obj(p) for p in node.params],
            "body": [ast_to_obj(s) for s in node.body],
        }
    if isinstance(node, Return):
        return {"type": "Return", "location": location_to_obj(node.location), "value": ast_to_obj(node.value)}
    if isinstance(node, Break):
        return {"type": "Break", "location": location_to_obj(node.location)}

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, list):
        return [ast_from_obj(o) for o in obj]
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")

    # Expressions
    if t == "Literal":
        value = obj["value"]
        if obj["literal_type"] == "Number":
            value = float(value)
        return Literal(value=value, literal_type=obj["literal_type"])
    if t == "Unary":
        return Unary(operator=token_from_obj(obj["operator"]), operand=ast_from_obj(obj["operand"]))
    if t == "Binary":
        return Binary(
            left=ast_from_obj(obj["left"]),
            operator=token_from_obj(obj["operator"]),
            right=ast_from_obj(obj["right"]),
        )
    if t == "Logical":
        return Logical(
            left=ast_from_obj(obj["left"]),
            operator=token_from_obj(obj["operator"]),
            right=ast_from_obj(obj["right"]),
        )
    if t == "Grouping":
        return Grouping(expression=ast_from_obj(obj["expression"]))
    if t == "Variable":
        return Variable(name=symbol_from_obj(obj["name"]))
    if t == "Assign":
        return Assign(name=symbol_from_obj(obj["name"]), value=ast_from_obj(obj["value"]))
    if t == "Call":
        return Call(
            callee=ast_from_obj(obj["callee"]),
            location=location_from_obj(obj["location"]),
            arguments=[ast_from_obj(a) for a in obj["arguments"]],
        )

    # Statements
    if t == "ExprStmt":
        return ExprStmt(expression=ast_from_obj(obj["expression"]))
    if t == "Print":
        return Print(expression=ast_from_obj(obj["expression"]))
    if t == "VarDecl":
        return VarDecl(name=symbol_from_obj(obj["name"]), initializer=ast_from_obj(obj.get("initializer")))
    if t == "Block":
        return Block(statements=[ast_from_obj(s) for s in obj["statements"]])
    if t == "If":
        return If(
            condition=ast_from_obj(obj["condition"]),
            then_branch=ast_from_obj(obj["then_branch"]),
            else_branch=ast_from_obj(obj.get("else_branch")),
            location=location_from_obj(obj["location"]),
        )
    if t == "While":
        return While(
            condition=ast_from_obj(obj["condition"]),
            body=ast_from_obj(obj["body"]),
            location=location_from_obj(obj["location"]),
        )
    if t == "FunctionDecl":
        return FunctionDecl(
            name=symbol_from_obj(obj["name"]),
            params=[symbol_from_obj(p) for p in obj["params"]],
            body=[ast_from_obj(s) for s in obj["body"]],
        )
    if t == "Return":
        return Return(location=location_from_obj(obj["location"]), value=ast_from_obj(obj.get("value")))
    if t == "Break":
        return Break(location=location_from_obj(obj["location"]))

    raise ValueError(f"Unknown AST node type: {t}")
