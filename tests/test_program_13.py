from treelox.interpreter import parse_program, Interpreter


def test_program_13_else_if_chain(capsys):
    with open('examples/program_13.lox', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.interpret(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['positive', 'negative', 'zero']
