from pathlib import Path

import pytest

from treelox import grammar
from treelox.errors import (
    ParseErrors, ScanErrors, InvalidAssignmentTargetError, BreakNotInLoopError,
    ReturnNotInFunctionError, TooManyArgumentsError, UnexpectedTokenError,
    NestingTooDeepError,
)
from treelox.interpreter import parse_program, Interpreter

PROGRAMS = sorted(Path('examples').glob('program_*.lox'))


def read(path):
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


@pytest.mark.parametrize('path', PROGRAMS, ids=lambda p: p.stem)
def test_both_frontends_build_the_same_ast(path):
    source = read(path)
    assert grammar.parse_program(source) == parse_program(source)


@pytest.mark.parametrize('path', PROGRAMS, ids=lambda p: p.stem)
def test_both_frontends_print_the_same_output(path, capsys):
    source = read(path)
    Interpreter().interpret(parse_program(source))
    expected = capsys.readouterr().out
    Interpreter().interpret(grammar.parse_program(source))
    assert capsys.readouterr().out == expected


def test_operator_positions_match_scanner():
    source = "var a = 1;\nprint a +\n  2 * (a - 3);\nprint a(1, 2);"
    assert grammar.parse_program(source) == parse_program(source)


def test_invalid_assignment_target():
    with pytest.raises(ParseErrors) as excinfo:
        grammar.parse_program("1 = 2;")
    assert isinstance(excinfo.value.errors[0], InvalidAssignmentTargetError)


def test_control_flow_placement_errors_are_collected():
    with pytest.raises(ParseErrors) as excinfo:
        grammar.parse_program("break;\nfun f() { while (true) { fun g() { break; } } }\nreturn;")
    errors = excinfo.value.errors
    assert [type(e) for e in errors] == [BreakNotInLoopError, BreakNotInLoopError, ReturnNotInFunctionError]
    assert [e.line for e in errors] == [1, 2, 3]


def test_too_many_arguments():
    with pytest.raises(ParseErrors) as excinfo:
        grammar.parse_program("f(" + ", ".join(["1"] * 256) + ");")
    assert isinstance(excinfo.value.errors[0], TooManyArgumentsError)


@pytest.mark.parametrize('source', ['print 1', 'var = 3;', 'class A {}', 'print this;'])
def test_syntax_errors(source):
    with pytest.raises(ParseErrors) as excinfo:
        grammar.parse_program(source)
    assert isinstance(excinfo.value.errors[0], UnexpectedTokenError)


def test_unknown_character():
    with pytest.raises(ScanErrors):
        grammar.parse_program("print 1 @ 2;")


def test_deep_nesting_is_a_parse_error():
    source = "print " + "(" * 10000 + "1" + ")" * 10000 + ";"
    with pytest.raises(ParseErrors) as excinfo:
        grammar.parse_program(source)
    assert isinstance(excinfo.value.errors[0], NestingTooDeepError)
