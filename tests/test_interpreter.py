import math

import pytest

from treelox.ast import Break, Grouping, Literal, Return, SourceLocation
from treelox.environment import Environment
from treelox.errors import (
    LoxRuntimeError, RuntimeTypeError, UndefinedVariableError,
    UninitializedVariableError, StackOverflowError,
)
from treelox.interpreter import parse_program, Interpreter, divide, run_program
from treelox.types import NIL


def evaluate(source):
    (stmt,) = parse_program(source)
    return Interpreter().evaluate(stmt.expression)


def run(source):
    interp = Interpreter()
    interp.interpret(parse_program(source))
    return interp


def test_grouping_is_transparent():
    interp = Interpreter()
    inner = Literal(4.0, 'Number')
    assert interp.evaluate(Grouping(inner)) == interp.evaluate(inner)
    assert evaluate("(1 + 2) * 3;") == 9.0


def test_arithmetic_precedence_and_associativity():
    assert evaluate("1 + 2 * 3;") == 7.0
    assert evaluate("8 - 3 - 2;") == 3.0


def test_number_truthiness():
    assert evaluate("!5;") is False
    assert evaluate("!(-5);") is True
    assert evaluate("!0;") is True


@pytest.mark.parametrize('condition', ['"text"', 'nil', 'clock'])
def test_only_bools_and_numbers_are_conditions(condition):
    with pytest.raises(RuntimeTypeError):
        run(f"if ({condition}) print 1;")


def test_logical_operators_return_operands():
    assert evaluate("1 or 2;") == 1.0
    assert evaluate("0 or 5;") == 5.0
    assert evaluate("3 and 4;") == 4.0
    assert evaluate("0 and 4;") == 0.0


def test_logical_operators_short_circuit(capsys):
    run('fun loud() { print "called"; return true; } var a = true or loud(); var b = false and loud();')
    assert capsys.readouterr().out == ''


def test_string_and_equality_rules():
    assert evaluate('"foo" + "bar";') == 'foobar'
    assert evaluate('"a" == "a";') is True
    assert evaluate('true != false;') is True
    assert evaluate('nil == nil;') is True
    assert evaluate('2 >= 2;') is True


@pytest.mark.parametrize('source', ['1 + "a";', '"a" < "b";', '1 == "1";', 'true + true;', '-"a";', 'nil == false;'])
def test_mismatched_operands_are_type_errors(source):
    with pytest.raises(RuntimeTypeError):
        evaluate(source)


def test_type_error_points_at_operator():
    with pytest.raises(RuntimeTypeError) as excinfo:
        evaluate('1 +\n  "a";')
    assert (excinfo.value.line, excinfo.value.column) == (1, 3)


def test_division_follows_ieee():
    assert evaluate("1 / 0;") == math.inf
    assert divide(-1.0, 0.0) == -math.inf
    assert math.isnan(divide(0.0, 0.0))
    assert divide(7.0, 2.0) == 3.5


def test_block_scope_does_not_leak(capsys):
    run("var x = 1; { var x = 2; } print x;")
    assert capsys.readouterr().out.strip() == '1'


def test_assigning_undeclared_variable():
    with pytest.raises(UndefinedVariableError) as excinfo:
        run("x = 1;")
    assert excinfo.value.name == 'x'


def test_reading_declared_but_unset_variable(capsys):
    with pytest.raises(UninitializedVariableError):
        run("var x; print x;")
    run("var y; y = 3; print y;")
    assert capsys.readouterr().out.strip() == '3'


def test_redeclaration_overwrites(capsys):
    run("var x = 1; var x = 2; print x;")
    assert capsys.readouterr().out.strip() == '2'


def test_while_break(capsys):
    run("var i = 0; while (i < 5) { i = i + 1; if (i == 3) break; } print i;")
    assert capsys.readouterr().out.strip() == '3'


def test_function_without_return_yields_nil():
    interp = run("fun f() {} var r = f(); fun g() { return; } var s = g();")
    assert interp.globals.values['r'] is NIL
    assert interp.globals.values['s'] is NIL


def test_return_exits_nested_loops(capsys):
    run("fun find() { for (var i = 0; i < 10; i = i + 1) { while (true) { return i + 100; } } } print find();")
    assert capsys.readouterr().out.strip() == '100'


def test_free_variables_resolve_in_caller_scope(capsys):
    run("""
        var x = "global";
        fun show() { print x; }
        fun caller() { var x = "caller"; show(); }
        caller();
        show();
    """)
    assert capsys.readouterr().out.split() == ['caller', 'global']


def test_arity_is_checked():
    with pytest.raises(RuntimeTypeError) as excinfo:
        run("fun f(a) {} f();")
    assert "expects 1 arguments but got 0" in excinfo.value.message
    with pytest.raises(RuntimeTypeError):
        run("clock(1);")


def test_calling_a_non_function():
    with pytest.raises(RuntimeTypeError) as excinfo:
        run('"abc"();')
    assert excinfo.value.message == "Can only call functions and classes."


def test_call_depth_limit():
    interp = Interpreter(max_call_depth=50)
    with pytest.raises(StackOverflowError):
        interp.interpret(parse_program("var depth = 0; fun dive() { depth = depth + 1; dive(); } dive();"))
    assert interp.globals.values['depth'] == 50.0
    assert interp.environment is interp.globals
    assert interp.call_depth == 0


def test_unbounded_recursion_is_a_stack_overflow():
    interp = Interpreter(max_call_depth=100000)
    with pytest.raises(StackOverflowError) as excinfo:
        interp.interpret(parse_program("fun f() { f(); } f();"))
    assert interp.environment is interp.globals
    # reported at the innermost call
    assert (excinfo.value.line, excinfo.value.column) == (1, 13)


def test_recursion_up_to_the_call_limit(capsys):
    interp = Interpreter()
    interp.interpret(parse_program(
        "fun count(n) { if (n > 0) { while (true) { count(n - 1); break; } } } count(190); print \"ok\";"))
    assert capsys.readouterr().out.strip() == "ok"
    assert interp.call_depth == 0


def test_runtime_error_keeps_earlier_assignments():
    interp = Interpreter()
    with pytest.raises(RuntimeTypeError):
        interp.interpret(parse_program('var a = 1; a = 2; a = "x" - 1; a = 3;'))
    assert interp.globals.values['a'] == 2.0
    assert interp.environment is interp.globals


def test_signals_at_top_level_are_errors():
    interp = Interpreter()
    with pytest.raises(LoxRuntimeError):
        interp.interpret([Return(SourceLocation(1, 1))])
    with pytest.raises(LoxRuntimeError):
        interp.interpret([Break(SourceLocation(1, 1))])


def test_globals_persist_between_runs(capsys):
    interp = Interpreter()
    interp.run("var a = 1;")
    interp.run("print a + 1;")
    assert capsys.readouterr().out.strip() == '2'


def test_interpret_in_given_environment():
    interp = Interpreter()
    env = Environment(parent=interp.globals)
    interp.interpret(parse_program("var local = 5;"), env)
    assert env.values['local'] == 5.0
    assert not interp.globals.contains('local')
    assert interp.environment is interp.globals


def test_print_formats_values(capsys):
    run('print 2.5; print 3; print nil; print true; print "s"; print clock;')
    assert capsys.readouterr().out.split('\n')[:-1] == ['2.5', '3', 'nil', 'true', 's', '<native fn clock>']


def test_debug_trace_written_to_file(tmp_path, capsys):
    debug_file = tmp_path / 'debug.txt'
    interp = Interpreter(debug_level=4, debug_file=str(debug_file))
    interp.run("fun f(a) { return a; } var x = f(1); if (x > 0) print x;")
    interp.close()
    trace = debug_file.read_text(encoding='utf-8')
    assert "define function f" in trace
    assert "call f(1.0)" in trace
    assert "return f -> 1.0" in trace
    assert "declare x: Number = 1.0" in trace
    assert "if condition True -> True" in trace
    assert capsys.readouterr().out.strip() == '1'


def test_no_debug_file_without_verbosity(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    run_program("print 1;")
    assert not (tmp_path / 'debug.txt').exists()
