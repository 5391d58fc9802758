import pytest

from treelox.ast import Symbol
from treelox.environment import Environment
from treelox.errors import UndefinedVariableError


def test_define_and_get():
    env = Environment()
    env.define('a', 1.0)
    assert env.get(Symbol('a')) == 1.0


def test_inner_scope_shadows_outer():
    outer = Environment()
    outer.define('a', 1.0)
    inner = Environment(parent=outer)
    inner.define('a', 2.0)
    assert inner.get(Symbol('a')) == 2.0
    assert outer.get(Symbol('a')) == 1.0


def test_assign_updates_nearest_binding():
    outer = Environment()
    outer.define('a', 1.0)
    inner = Environment(parent=outer)
    inner.assign(Symbol('a'), 5.0)
    assert outer.values['a'] == 5.0
    assert 'a' not in inner.values


def test_redefine_overwrites():
    env = Environment()
    env.define('a', 1.0)
    env.define('a', 2.0)
    assert env.get(Symbol('a')) == 2.0


def test_undefined_name_reports_position():
    env = Environment(parent=Environment())
    with pytest.raises(UndefinedVariableError) as excinfo:
        env.get(Symbol('missing', 3, 7))
    assert excinfo.value.name == 'missing'
    assert (excinfo.value.line, excinfo.value.column) == (3, 7)
    with pytest.raises(UndefinedVariableError):
        env.assign(Symbol('missing'), 1.0)


def test_depth_and_contains():
    globals_env = Environment()
    globals_env.define('g', 0.0)
    inner = Environment(parent=Environment(parent=globals_env))
    assert globals_env.depth == 0
    assert inner.depth == 2
    assert inner.contains('g')
    assert not globals_env.contains('h')
