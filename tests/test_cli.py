import io
import json

from treelox.__main__ import main


def write_program(tmp_path, source, name='prog.lox'):
    path = tmp_path / name
    path.write_text(source, encoding='utf-8')
    return path


def test_run_file(tmp_path, capsys):
    path = write_program(tmp_path, 'var a = 20; print a + 22;')
    assert main([str(path)]) == 0
    assert capsys.readouterr().out.strip() == '42'


def test_run_file_with_lark_frontend(tmp_path, capsys):
    path = write_program(tmp_path, 'fun sq(x) { return x * x; } print sq(7);')
    assert main(['--lark', str(path)]) == 0
    assert capsys.readouterr().out.strip() == '49'


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / 'nope.lox')]) == 66
    assert 'not found' in capsys.readouterr().err


def test_parse_error_exit_status(tmp_path, capsys):
    path = write_program(tmp_path, '1 = 2;\nprint ;')
    assert main([str(path)]) == 65
    err = capsys.readouterr().err
    assert 'InvalidAssignmentTarget' in err
    assert 'ExpectedExpression' in err


def test_scan_error_exit_status(tmp_path, capsys):
    path = write_program(tmp_path, 'print "open;')
    assert main([str(path)]) == 65
    assert 'Unterminated string.' in capsys.readouterr().err


def test_runtime_error_exit_status(tmp_path, capsys):
    path = write_program(tmp_path, 'print "before";\nprint missing;')
    assert main([str(path)]) == 70
    captured = capsys.readouterr()
    assert captured.out.strip() == 'before'
    assert "Undefined variable 'missing'." in captured.err


def test_emit_and_run_ast(tmp_path, capsys):
    path = write_program(tmp_path, 'for (var i = 0; i < 3; i = i + 1) print i;')
    assert main(['--emit-ast', str(path)]) == 0
    ast_path = tmp_path / 'prog.lox.ast.json'
    assert capsys.readouterr().out.strip() == str(ast_path)
    with open(ast_path, 'r', encoding='utf-8') as f:
        assert json.load(f)[0]['type'] == 'Block'
    assert main(['--ast', str(ast_path)]) == 0
    assert capsys.readouterr().out.split() == ['0', '1', '2']


def test_invalid_ast_file(tmp_path, capsys):
    path = write_program(tmp_path, '[{"type": "Nope"}]', name='bad.ast.json')
    assert main(['--ast', str(path)]) == 65


def test_prompt_keeps_state_and_survives_errors(monkeypatch, capsys):
    monkeypatch.setattr('sys.stdin', io.StringIO('var a = 1;\nprint b;\nprint a + 1;\n1 = ;\nprint a;\n'))
    assert main([]) == 0
    captured = capsys.readouterr()
    lines = [line for line in captured.out.replace('> ', '').split('\n') if line]
    assert lines == ['2', '1']
    assert "Undefined variable 'b'." in captured.err
    assert 'ExpectedExpression' in captured.err


def test_verbose_writes_debug_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    path = write_program(tmp_path, 'var a = 1;')
    assert main(['-vv', str(path)]) == 0
    assert 'declare a' in (tmp_path / 'debug.txt').read_text(encoding='utf-8')


def test_deep_nesting_exit_status(tmp_path, capsys):
    path = write_program(tmp_path, 'print ' + '(' * 3000 + '1' + ')' * 3000 + ';')
    assert main([str(path)]) == 65
    assert 'NestingTooDeep' in capsys.readouterr().err
    assert main(['--emit-ast', str(path)]) == 65


def test_prompt_survives_deep_nesting(monkeypatch, capsys):
    nested = '(' * 3000 + '1' + ')' * 3000
    monkeypatch.setattr('sys.stdin', io.StringIO(f'print {nested};\nprint 7;\n'))
    assert main([]) == 0
    captured = capsys.readouterr()
    assert 'NestingTooDeep' in captured.err
    assert captured.out.replace('> ', '').split() == ['7']


def test_recursive_program_within_call_limit(tmp_path, capsys):
    path = write_program(tmp_path, 'fun count(n) { if (n > 0) { count(n - 1); } } count(190); print "ok";')
    assert main([str(path)]) == 0
    assert capsys.readouterr().out.strip() == 'ok'
