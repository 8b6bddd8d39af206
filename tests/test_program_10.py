from ember.compiler import transpile
from conftest import read_example, needs_gcc


def test_program_10_brace_else_on_closing_line():
    result = transpile(read_example('program_10.em'))
    assert result.ok
    assert not result.warnings
    main = result.c_source.split('int main(void) {\n', 1)[1]
    assert main == (
        '    int n = 7;\n'
        '    if (n % 2 == 0) {\n'
        '        printf("%s\\n", "even");\n'
        '    } else {\n'
        '        printf("%s\\n", "odd");\n'
        '    }\n'
        '    return 0;\n'
        '}\n'
    )


@needs_gcc
def test_program_10_runs(execute):
    assert execute(transpile(read_example('program_10.em'))).strip() == 'odd'
