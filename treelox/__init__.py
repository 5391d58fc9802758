# treelox language package
# This package provides a scanner, parser and tree-walking interpreter for Lox.
from .errors import LoxError, ScanErrors, ParseErrors, LoxRuntimeError
from .interpreter import run_program, parse_program, Interpreter

__all__ = [
    'run_program',
    'parse_program',
    'Interpreter',
    'LoxError',
    'ScanErrors',
    'ParseErrors',
    'LoxRuntimeError',
]
