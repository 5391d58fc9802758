"""CLI entry point for the treelox interpreter.

Usage:
    python -m treelox [-v|-vv|-vvv|-vvvv] [--lark] [program_file]
    python -m treelox [-v...] [--lark] --emit-ast <program_file>
    python -m treelox [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --lark        Parse with the Lark grammar instead of the recursive-descent parser
  --emit-ast    Parse the given .lox file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Without a program file the interpreter reads stdin line by line, running
each line as a program against the same globals. Debug information is
written to `debug.txt` in the current directory when verbosity is
greater than zero.

Exit status is 65 for scan and parse errors, 66 when the input file does
not exist and 70 for runtime errors.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Callable, List, Optional

from . import grammar
from .ast import Stmt
from .ast_json import ast_to_obj, ast_from_obj
from .errors import LoxError, LoxRuntimeError
from .interpreter import parse_program, Interpreter

EXIT_DATA_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_SOFTWARE = 70

Frontend = Callable[[str], List[Stmt]]


def read_source(path: Path) -> Optional[str]:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        return None
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def execute(interpreter: Interpreter, statements: List[Stmt]) -> int:
    try:
        interpreter.interpret(statements)
    except LoxRuntimeError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        return EXIT_SOFTWARE
    return 0


def run_file(path: Path, interpreter: Interpreter, frontend: Frontend = parse_program) -> int:
    source = read_source(path)
    if source is None:
        return EXIT_NO_INPUT
    try:
        statements = frontend(source)
    except LoxError as e:
        print(e, file=sys.stderr)
        return EXIT_DATA_ERROR
    return execute(interpreter, statements)


def run_prompt(interpreter: Interpreter, frontend: Frontend = parse_program, stream=None) -> int:
    """Run each input line as a program; errors are reported and the loop goes on."""
    stream = stream if stream is not None else sys.stdin
    while True:
        print('> ', end='', flush=True)
        line = stream.readline()
        if not line:
            print()
            return 0
        try:
            interpreter.interpret(frontend(line))
        except LoxError as e:
            print(e, file=sys.stderr)


def emit_ast(path: Path, frontend: Frontend = parse_program) -> int:
    source = read_source(path)
    if source is None:
        return EXIT_NO_INPUT
    try:
        statements = frontend(source)
    except LoxError as e:
        print(e, file=sys.stderr)
        return EXIT_DATA_ERROR
    obj = ast_to_obj(statements)
    out_path = path.with_name(path.name + '.ast.json')
    with open(out_path, 'w', encoding='utf-8') as out:
        json.dump(obj, out, ensure_ascii=False, indent=2)
    print(str(out_path))
    return 0


def run_ast(path: Path, interpreter: Interpreter) -> int:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        return EXIT_NO_INPUT
    with open(path, 'r', encoding='utf-8') as f:
        try:
            statements = ast_from_obj(json.load(f))
        except (ValueError, TypeError, KeyError) as e:
            print(f"Error: invalid AST file {path}: {e}", file=sys.stderr)
            return EXIT_DATA_ERROR
    return execute(interpreter, statements)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog='treelox', description="Lox tree-walking interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--lark', action='store_true', help='parse with the Lark grammar frontend')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='LOX_FILE', help='emit AST JSON for the given .lox file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='Lox program file to execute; omit for a prompt')
    args = parser.parse_args(argv)

    frontend = grammar.parse_program if args.lark else parse_program

    if args.emit_ast:
        return emit_ast(Path(args.emit_ast), frontend)

    interpreter = Interpreter(debug_level=args.v)
    try:
        if args.ast:
            return run_ast(Path(args.ast), interpreter)
        if args.program:
            return run_file(Path(args.program), interpreter, frontend)
        return run_prompt(interpreter, frontend)
    finally:
        interpreter.close()


if __name__ == '__main__':
    sys.exit(main())
