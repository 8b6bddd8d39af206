from ember.compiler import transpile
from conftest import read_example, needs_gcc


def test_program_7_raw_mode_end_closers():
    result = transpile(read_example('program_7.em'), 'raw')
    assert result.ok, result.report()
    main = result.c_source.split('int main(void) {\n', 1)[1]
    assert main == (
        '    int total = 0;\n'
        '    for (int i = 1; i <= 4; i++) {\n'
        '        if (i % 2 == 0) {\n'
        '            total += i;\n'
        '        }\n'
        '    }\n'
        '    printf("%d\\n", (int)(total));\n'
        '    return 0;\n'
        '}\n'
    )


def test_program_7_end_also_closes_in_optimized_mode():
    source = read_example('program_7.em')
    assert transpile(source).c_source == transpile(source, 'raw').c_source


def test_program_7_without_end_reports_unclosed_blocks():
    source = '\n'.join(
        line for line in read_example('program_7.em').splitlines() if line.strip() != 'end'
    )
    result = transpile(source, 'raw')
    assert not result.ok
    assert [(d.line, d.message) for d in result.errors] == [
        (4, "unclosed 'if' block opened at line 4"),
        (3, "unclosed 'for' block opened at line 3"),
    ]


@needs_gcc
def test_program_7_runs(execute):
    assert execute(transpile(read_example('program_7.em'), 'raw')).strip() == '6'
